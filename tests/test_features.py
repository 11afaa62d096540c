from __future__ import annotations

import logging

import pandas as pd
import pytest

from tab2fig.errors import UsageError
from tab2fig.features import (
    MULTIROW_PACKAGE,
    THREEPARTTABLE_PACKAGE,
    apply_cell_formats,
    apply_collapse_rows,
    apply_features,
    apply_footnotes,
    apply_header_style,
    apply_spanning_headers,
    bold_columns,
    build_notes,
    build_table,
    cell_format,
    collapse_groups,
    collapse_rows,
    color_rows,
    feature_packages,
    footnote,
    header_above,
    highlight,
    render_cell,
    render_rows,
)
from tab2fig.latex_utils import column_name_map
from tab2fig.models import CellStyle, StyleConfig


def _style(**overrides) -> StyleConfig:
    values = {
        "shading_color": "blue!10",
        "document_class": "article",
        "extra_packages": (),
        "header_bold": True,
        "striped": True,
    }
    values.update(overrides)
    return StyleConfig(**values)


def _frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "group": ["A", "A", "B", "B", "B", "C"],
            "sub": ["x", "y", "y", "y", "z", "z"],
            "value": [1.5, 2.0, 3.25, 4.0, 5.0, 6.0],
        }
    )


def _base():
    frame = _frame()
    return frame, build_table(frame, list(frame.columns))


class TestBuildTable:
    def test_cells_sanitized(self):
        frame = pd.DataFrame({"a b": ["50%", "x&y"], "n": [1, 2]})
        rendered = build_table(frame, ["a_b", "n"])
        assert rendered.header == (r"a\_b", "n")
        assert rendered.rows == ((r"50\%", "1"), (r"x\&y", "2"))

    def test_shape(self):
        _, rendered = _base()
        assert rendered.nrow == 6
        assert rendered.ncol == 3
        assert rendered.row_prefixes == ("",) * 6

    def test_integer_column_not_promoted(self):
        frame = pd.DataFrame({"n": [1, 2], "x": [0.5, 1.5]})
        assert build_table(frame, ["n", "x"]).rows[0] == ("1", "0.5")

    def test_header_count_mismatch(self):
        with pytest.raises(UsageError):
            build_table(_frame(), ["only"])


class TestApplyHeaderStyle:
    def test_bold_header(self):
        _, rendered = _base()
        styled = apply_header_style(rendered, _style())
        assert styled.header[0] == r"\textbf{group}"

    def test_plain_header(self):
        _, rendered = _base()
        assert apply_header_style(rendered, _style(header_bold=False)).header[0] == "group"

    def test_decimal_header_braced(self):
        _, rendered = _base()
        styled = apply_header_style(rendered, _style(), decimal_columns=[2])
        assert styled.header[2] == r"{\textbf{value}}"

    def test_stripes_on_alternate_rows(self):
        _, rendered = _base()
        prefixes = apply_header_style(rendered, _style()).row_prefixes
        assert prefixes[0] == r"\rowcolor{blue!10}"
        assert prefixes[1] == ""
        assert prefixes[2] == r"\rowcolor{blue!10}"

    def test_no_stripes_without_shading(self):
        _, rendered = _base()
        styled = apply_header_style(rendered, _style(shading_color=None))
        assert all(p == "" for p in styled.row_prefixes)

    def test_input_not_mutated(self):
        _, rendered = _base()
        apply_header_style(rendered, _style())
        assert rendered.header[0] == "group"


class TestSpanningHeaders:
    def test_exact_sum_succeeds(self):
        _, rendered = _base()
        result = apply_spanning_headers(rendered, [header_above(("", 1), ("Details", 2))])
        line = result.header_above[0]
        assert r"\multicolumn{2}{c}{\textbf{Details}}" in line
        assert r"\cmidrule(lr{3pt}){2-3}" in line

    def test_blank_label_has_no_rule(self):
        _, rendered = _base()
        result = apply_spanning_headers(rendered, [header_above({" ": 1, "B": 2})])
        assert "{1-1}" not in result.header_above[0]

    @pytest.mark.parametrize("spans", [(("A", 1), ("B", 1)), (("A", 2), ("B", 2))])
    def test_wrong_sum_rejected(self, spans):
        _, rendered = _base()
        with pytest.raises(UsageError, match="3 column"):
            apply_spanning_headers(rendered, [header_above(*spans)])

    def test_stacked_outermost_first(self):
        _, rendered = _base()
        outer = header_above(("Everything", 3))
        inner = header_above(("", 1), ("Detail", 2))
        result = apply_spanning_headers(rendered, [outer, inner])
        assert "Everything" in result.header_above[0]
        assert "Detail" in result.header_above[1]

    def test_label_escaped(self):
        _, rendered = _base()
        result = apply_spanning_headers(rendered, [header_above(("R&D", 3), bold=False)])
        assert r"\multicolumn{3}{c}{R\&D}" in result.header_above[0]

    def test_italic(self):
        _, rendered = _base()
        result = apply_spanning_headers(
            rendered, [header_above(("All", 3), bold=False, italic=True, line=False)]
        )
        assert result.header_above[0] == r"\multicolumn{3}{c}{\textit{All}} \\"

    def test_invalid_span_value(self):
        with pytest.raises(UsageError):
            header_above(("A", 0))


class TestCollapseGroups:
    def test_run_sizes(self):
        groups = collapse_groups(["A", "A", "B", "B", "B", "C"])
        assert [length for _, length in groups] == [2, 3, 1]
        assert [start for start, _ in groups] == [0, 2, 5]

    def test_breaks_split_runs(self):
        assert collapse_groups(["y", "y", "y"], breaks=[1]) == [(0, 1), (1, 2)]

    def test_empty(self):
        assert collapse_groups([]) == []


class TestApplyCollapseRows:
    def test_multirow_anchored_on_last_row(self):
        frame, rendered = _base()
        result = apply_collapse_rows(rendered, collapse_rows("group"), frame)
        assert result.multirow[(1, 0)] == (2, "c")
        assert result.multirow[(4, 0)] == (3, "c")
        assert (5, 0) not in result.multirow
        assert [row[0] for row in result.rows] == ["", "A", "", "", "B", "C"]
        assert MULTIROW_PACKAGE in result.packages

    def test_nested_columns(self):
        frame, rendered = _base()
        result = apply_collapse_rows(rendered, collapse_rows(["group", "sub"]), frame)
        # "y" spans rows 1-3 but row 2 starts group B, so it splits.
        assert result.multirow[(3, 1)] == (2, "c")
        assert (2, 1) not in result.multirow

    def test_major_rules_at_group_boundaries(self):
        frame, rendered = _base()
        result = apply_collapse_rows(rendered, collapse_rows(0, hline="major"), frame)
        assert [bool(r) for r in result.rules_after] == [False, True, False, False, True, True]

    def test_full_rules_skip_spanned_column(self):
        frame, rendered = _base()
        result = apply_collapse_rows(rendered, collapse_rows(0), frame)
        assert result.rules_after[0] == r"\cmidrule{2-3}"
        assert result.rules_after[1] == r"\midrule"

    def test_custom_rules(self):
        frame, rendered = _base()
        result = apply_collapse_rows(
            rendered, collapse_rows(0, hline="custom", custom_rows=[2]), frame
        )
        assert result.rules_after == ("", "", r"\midrule", "", "", "")

    def test_valign_top(self):
        frame, rendered = _base()
        result = apply_collapse_rows(rendered, collapse_rows(0, valign="top"), frame)
        assert result.multirow[(1, 0)] == (2, "t")

    def test_invalid_valign(self):
        with pytest.raises(UsageError):
            collapse_rows(0, valign="sideways")

    def test_rendered_multirow_cell(self):
        frame, rendered = _base()
        result = apply_collapse_rows(rendered, collapse_rows(0), frame)
        assert render_rows(result)[1].startswith(r"\multirow[c]{-2}{*}{A}")

    def test_original_name_beats_clashing_sanitized_name(self):
        frame = pd.DataFrame({"a_b": ["x", "y"], "a_b_2": ["k", "k"]})
        rendered = build_table(frame, ["a_b", "a_b_2"])
        name_map = column_name_map(["a b", "a_b"])
        result = apply_collapse_rows(rendered, collapse_rows("a_b"), frame, name_map)
        assert result.multirow == {(1, 1): (2, "c")}


class TestApplyCellFormats:
    def test_column_by_original_name(self):
        frame = pd.DataFrame({"a": [1, 2], "b_c": [3, 4]})
        rendered = build_table(frame, ["a", "b_c"])
        result = apply_cell_formats(rendered, [bold_columns("b c")], frame, {"b c": "b_c"})
        assert result.cell_styles[(0, 1)].bold is True
        assert (0, 0) not in result.cell_styles

    def test_original_name_beats_clashing_sanitized_name(self):
        # "a b" sanitizes to "a_b", so the column originally named "a_b" becomes "a_b_2".
        frame = pd.DataFrame({"a_b": [1], "a_b_2": [2]})
        rendered = build_table(frame, ["a_b", "a_b_2"])
        name_map = column_name_map(["a b", "a_b"])
        formats = [cell_format(cols="a_b", bold=True), cell_format(cols="a b", italic=True)]
        result = apply_cell_formats(rendered, formats, frame, name_map)
        assert result.cell_styles == {(0, 0): CellStyle(italic=True), (0, 1): CellStyle(bold=True)}

    def test_out_of_range_dropped_with_warning(self, caplog):
        frame, rendered = _base()
        with caplog.at_level(logging.WARNING, logger="tab2fig.features"):
            result = apply_cell_formats(rendered, [color_rows([0, 99], "red!10")], frame)
        assert "99" in caplog.text
        assert result.cell_styles[(0, 0)].background == "red!10"
        assert all(i == 0 for i, _ in result.cell_styles)

    def test_unknown_column_dropped(self, caplog):
        frame, rendered = _base()
        with caplog.at_level(logging.WARNING, logger="tab2fig.features"):
            result = apply_cell_formats(rendered, [bold_columns("missing")], frame)
        assert result.cell_styles == {}
        assert "missing" in caplog.text

    def test_condition_on_raw_value(self):
        frame, rendered = _base()
        result = apply_cell_formats(rendered, [highlight(lambda v: v > 4, cols="value")], frame)
        assert set(result.cell_styles) == {(4, 2), (5, 2)}
        assert result.cell_styles[(4, 2)].background == "yellow!30"

    def test_failing_condition_is_no_match(self):
        frame, rendered = _base()
        # Comparing strings with ints raises TypeError in the text columns.
        result = apply_cell_formats(rendered, [highlight(lambda v: v > 4)], frame)
        assert set(result.cell_styles) == {(4, 2), (5, 2)}

    def test_field_level_merge(self):
        frame, rendered = _base()
        formats = [
            cell_format(rows=0, cols=0, bold=True, color="red"),
            cell_format(rows=0, cols=0, color="blue", italic=True),
        ]
        result = apply_cell_formats(rendered, formats, frame)
        assert result.cell_styles[(0, 0)] == CellStyle(bold=True, italic=True, color="blue")


class TestRenderCell:
    def test_plain(self):
        assert render_cell("x") == "x"

    def test_full_style(self):
        style = CellStyle(bold=True, italic=True, color="red", background="gray!20")
        assert render_cell("x", style) == r"\cellcolor{gray!20}\textcolor{red}{\textit{\textbf{x}}}"

    def test_multirow(self):
        assert render_cell("A", None, (3, "b")) == r"\multirow[b]{-3}{*}{A}"


class TestFootnotes:
    def test_general_note_with_title(self):
        notes = build_notes(footnote("Data from 2020."))
        assert notes == (r"\textit{Note: }", "Data from 2020.")

    def test_labeled_groups(self):
        notes = build_notes(
            footnote(
                number=["one", "two"],
                alphabet="first",
                symbol=["s1", "s2"],
                general_title=None,
            )
        )
        assert notes == (
            r"\textsuperscript{1} one",
            r"\textsuperscript{2} two",
            r"\textsuperscript{a} first",
            r"\textsuperscript{*} s1",
            r"\textsuperscript{\dag} s2",
        )

    def test_as_chunk(self):
        notes = build_notes(footnote(["a.", "b."], as_chunk=True))
        assert notes == (r"\textit{Note: } a. b.",)

    def test_note_text_sanitized(self):
        assert build_notes(footnote("5% & up", general_title=None)) == (r"5\% \& up",)

    def test_threeparttable_wrap(self):
        _, rendered = _base()
        result = apply_footnotes(rendered, footnote("n"))
        assert result.threeparttable is True
        assert THREEPARTTABLE_PACKAGE in result.packages

    def test_without_threeparttable(self):
        _, rendered = _base()
        result = apply_footnotes(rendered, footnote("n", threeparttable=False))
        assert result.threeparttable is False
        assert THREEPARTTABLE_PACKAGE not in result.packages

    def test_empty_spec_is_noop(self):
        _, rendered = _base()
        assert apply_footnotes(rendered, footnote()) is rendered


class TestFeaturePackages:
    def test_collapse_and_footnote(self):
        packages = feature_packages(footnote=footnote("n"), collapse=[collapse_rows(0)])
        assert packages == (MULTIROW_PACKAGE, THREEPARTTABLE_PACKAGE)

    def test_longtable_replaces_threeparttable(self):
        packages = feature_packages(footnote=footnote("n"), longtable=True)
        assert packages == (r"\usepackage{longtable}",)

    def test_nothing(self):
        assert feature_packages() == ()


class TestApplyFeatures:
    def test_fixed_order(self):
        frame, rendered = _base()
        result = apply_features(
            rendered,
            _style(),
            frame,
            headers=[header_above(("", 2), ("Value", 1))],
            collapse=[collapse_rows("group")],
            formats=[bold_columns("value")],
            footnote=footnote("n"),
        )
        assert result.header[0] == r"\textbf{group}"
        assert len(result.header_above) == 1
        assert result.multirow
        assert result.cell_styles[(0, 2)].bold is True
        assert result.notes[-1] == "n"

    def test_several_collapse_specs_rejected(self):
        frame, rendered = _base()
        with pytest.raises(UsageError, match="one collapse_rows spec"):
            apply_features(
                rendered,
                _style(),
                frame,
                collapse=[collapse_rows("group"), collapse_rows("sub")],
            )
