from __future__ import annotations

import pandas as pd
import pytest

from tab2fig.alignment import (
    auto_align,
    decimal,
    detect_decimal_columns,
    resolve_alignment,
    siunitx,
)
from tab2fig.errors import UsageError
from tab2fig.models import DecimalColumn


def _frame() -> pd.DataFrame:
    return pd.DataFrame({"name": ["a", "b"], "n": [1, 2], "x": [0.5, 1.5], "ok": [True, False]})


class TestAutoAlign:
    def test_numeric_right_text_left(self):
        assert auto_align(_frame()).columns == ("l", "r", "r", "l")

    def test_no_packages(self):
        assert auto_align(_frame()).packages == ()


class TestResolveAlignment:
    def test_none_auto_detects(self):
        assert resolve_alignment(None, _frame()).column_spec == "lrrl"

    def test_single_tag_broadcast(self):
        resolved = resolve_alignment("c", _frame())
        assert resolved.columns == ("c", "c", "c", "c")

    def test_long_names_accepted(self):
        assert resolve_alignment("right", _frame()).column_spec == "rrrr"

    def test_explicit_vector(self):
        frame = pd.DataFrame({"a": [1], "b": [2], "c": [3]})
        assert resolve_alignment(["l", "r", "c"], frame).column_spec == "lrc"

    def test_tag_run_string(self):
        frame = pd.DataFrame({"a": [1], "b": [2], "c": [3]})
        assert resolve_alignment("lrc", frame).column_spec == "lrc"

    def test_wrong_length_vector(self):
        with pytest.raises(UsageError, match="3 entries"):
            resolve_alignment(["l", "r", "c"], _frame())

    def test_wrong_length_tag_run(self):
        with pytest.raises(UsageError):
            resolve_alignment("lr", _frame())

    def test_unknown_tag(self):
        with pytest.raises(UsageError, match="Unknown alignment"):
            resolve_alignment(["l", "x", "r", "r"], _frame())

    def test_paragraph_column(self):
        resolved = resolve_alignment(["p{3cm}", "r", "r", "l"], _frame())
        assert resolved.columns[0] == "p{3cm}"

    def test_decimal_column_object(self):
        resolved = resolve_alignment(["l", decimal(2, 1), "r", "l"], _frame())
        assert resolved.columns[1] == "S[table-format=2.1,detect-weight=true,mode=text]"
        assert resolved.decimal_columns == (1,)
        assert r"\usepackage{siunitx}" in resolved.packages

    def test_raw_siunitx_string(self):
        resolved = resolve_alignment(["l", "S[table-format=1.2]", "r", "l"], _frame())
        assert resolved.decimal_columns == (1,)
        assert resolved.packages == DecimalColumn.packages


class TestDecimalColumns:
    def test_siunitx_parses_table_format(self):
        column = siunitx("4.3", round_mode="places", round_precision=3)
        assert column.integers == 4
        assert column.decimals == 3
        assert "round-mode=places" in column.spec
        assert "round-precision=3" in column.spec

    def test_siunitx_rejects_bad_format(self):
        with pytest.raises(UsageError):
            siunitx("three")

    def test_group_separator(self):
        assert "group-separator={,}" in DecimalColumn(group_separator=",").spec

    def test_detect_weight_off(self):
        assert DecimalColumn(detect_weight=False).spec == "S[table-format=3.2]"

    def test_negative_digits_rejected(self):
        with pytest.raises(UsageError):
            decimal(-1, 2)

    def test_detect_decimal_columns(self):
        assert detect_decimal_columns(["l", decimal(), "S", "r"]) == [1, 2]
