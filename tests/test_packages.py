from __future__ import annotations

import pytest

from tab2fig.errors import UsageError
from tab2fig.packages import babel, dedupe, flatten_packages, fontspec, geometry


class TestGeometry:
    def test_no_options(self):
        assert geometry() == r"\usepackage{geometry}"

    def test_margin_and_paper(self):
        assert geometry("5mm", "a4paper") == r"\usepackage[margin=5mm,paper=a4paper]{geometry}"

    def test_landscape_flag(self):
        assert geometry(landscape=True) == r"\usepackage[landscape]{geometry}"

    def test_extra_options(self):
        assert geometry(top="1in", twoside=True) == r"\usepackage[top=1in,twoside]{geometry}"


class TestBabel:
    def test_language(self):
        assert babel("german") == r"\usepackage[german]{babel}"

    def test_empty_rejected(self):
        with pytest.raises(UsageError):
            babel("")


class TestFontspec:
    def test_fonts(self):
        assert fontspec("Times New Roman", mono_font="Courier") == [
            r"\usepackage{fontspec}",
            r"\setmainfont{Times New Roman}",
            r"\setmonofont{Courier}",
        ]


class TestFlattenPackages:
    def test_none(self):
        assert flatten_packages(None) == ()

    def test_string(self):
        assert flatten_packages(r"\usepackage{a}") == (r"\usepackage{a}",)

    def test_nested(self):
        nested = [r"\usepackage{a}", [r"\usepackage{b}", [r"\usepackage{c}"]]]
        assert flatten_packages(nested) == (r"\usepackage{a}", r"\usepackage{b}", r"\usepackage{c}")

    def test_helpers_compose(self):
        entries = [geometry("1cm"), fontspec("Arial")]
        assert flatten_packages(entries)[0] == r"\usepackage[margin=1cm]{geometry}"
        assert len(flatten_packages(entries)) == 3


class TestDedupe:
    def test_keeps_first(self):
        assert dedupe(["b", "a", "b", "c", "a"]) == ("b", "a", "c")
