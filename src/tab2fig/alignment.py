"""Per-column alignment: auto-detection, broadcasting, and decimal columns."""

from __future__ import annotations

import re
from collections.abc import Sequence

import pandas as pd

from tab2fig.errors import UsageError
from tab2fig.models import DecimalColumn, ResolvedAlignment

AlignEntry = str | DecimalColumn

_TAGS: dict[str, str] = {
    "l": "l",
    "c": "c",
    "r": "r",
    "left": "l",
    "center": "c",
    "centre": "c",
    "right": "r",
}
_PARAGRAPH_COLUMN = re.compile(r"[pmb]\{[^{}]+\}")
_SIUNITX_COLUMN = re.compile(r"S(\[.*\])?")
_TAG_RUN = re.compile(r"[lcr]+")
_TABLE_FORMAT = re.compile(r"(\d+)\.(\d+)")


def decimal(integers: int = 3, decimals: int = 2) -> DecimalColumn:
    """Decimal-aligned column holding up to *integers* and *decimals* digits."""
    return DecimalColumn(integers=integers, decimals=decimals)


def siunitx(
    table_format: str = "3.2",
    *,
    round_mode: str = "none",
    round_precision: int | None = None,
    detect_weight: bool = True,
    group_separator: str | None = None,
) -> DecimalColumn:
    """Decimal-aligned column from a siunitx ``table-format`` string like ``"3.2"``."""
    match = _TABLE_FORMAT.fullmatch(table_format)
    if match is None:
        msg = f"table_format must look like '3.2', got {table_format!r}"
        raise UsageError(msg)
    return DecimalColumn(
        integers=int(match.group(1)),
        decimals=int(match.group(2)),
        round_mode=round_mode,
        round_precision=round_precision,
        detect_weight=detect_weight,
        group_separator=group_separator,
    )


def _is_numeric(series: pd.Series) -> bool:
    return pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)


def auto_align(table: pd.DataFrame) -> ResolvedAlignment:
    """Right-align numeric columns and left-align everything else."""
    columns = tuple(
        "r" if _is_numeric(table.iloc[:, i]) else "l" for i in range(table.shape[1])
    )
    return ResolvedAlignment(columns=columns)


def _is_decimal(entry: AlignEntry) -> bool:
    if isinstance(entry, DecimalColumn):
        return True
    return isinstance(entry, str) and _SIUNITX_COLUMN.fullmatch(entry.strip()) is not None


def detect_decimal_columns(entries: Sequence[AlignEntry]) -> list[int]:
    """Indices of decimal-aligned entries, whether objects or raw ``S[...]`` specs."""
    return [i for i, entry in enumerate(entries) if _is_decimal(entry)]


def _column_spec(entry: AlignEntry) -> str:
    if isinstance(entry, DecimalColumn):
        return entry.spec
    if not isinstance(entry, str):
        msg = f"Alignment entries must be strings or decimal columns, got {type(entry).__name__}"
        raise UsageError(msg)
    tag = entry.strip()
    if tag.lower() in _TAGS:
        return _TAGS[tag.lower()]
    if _PARAGRAPH_COLUMN.fullmatch(tag) or _SIUNITX_COLUMN.fullmatch(tag):
        return tag
    valid = ", ".join(sorted(_TAGS))
    msg = f"Unknown alignment {entry!r}; expected one of {valid}, p{{width}} or S[...]"
    raise UsageError(msg)


def _is_single(explicit: AlignEntry | Sequence[AlignEntry]) -> bool:
    if isinstance(explicit, DecimalColumn):
        return True
    if isinstance(explicit, str):
        tag = explicit.strip()
        return (
            tag.lower() in _TAGS
            or _PARAGRAPH_COLUMN.fullmatch(tag) is not None
            or _SIUNITX_COLUMN.fullmatch(tag) is not None
        )
    return False


def resolve_alignment(
    explicit: AlignEntry | Sequence[AlignEntry] | None,
    table: pd.DataFrame,
) -> ResolvedAlignment:
    """Resolve *explicit* alignment against *table*'s columns.

    ``None`` auto-detects.  A single tag is broadcast to every column, and a
    run of ``l``/``c``/``r`` characters as long as the column count is split
    per column.  Sequences must have one entry per column.

    Raises:
        UsageError: On unknown tags or a length mismatch.
    """
    ncol = table.shape[1]
    if explicit is None:
        return auto_align(table)

    entries: list[AlignEntry]
    if _is_single(explicit):
        entries = [explicit] * ncol  # type: ignore[list-item]
    elif isinstance(explicit, str):
        tag = explicit.strip()
        if _TAG_RUN.fullmatch(tag) is None or len(tag) != ncol:
            msg = (
                f"`align` {explicit!r} does not match the table's {ncol} column(s); "
                "pass one tag per column"
            )
            raise UsageError(msg)
        entries = list(tag)
    else:
        entries = list(explicit)
        if len(entries) != ncol:
            msg = f"`align` has {len(entries)} entries but the table has {ncol} column(s)"
            raise UsageError(msg)

    columns = tuple(_column_spec(entry) for entry in entries)
    decimal_columns = tuple(detect_decimal_columns(entries))
    packages = DecimalColumn.packages if decimal_columns else ()
    return ResolvedAlignment(
        columns=columns,
        packages=packages,
        decimal_columns=decimal_columns,
    )
