"""Table decorations layered onto a base rendered table.

Appliers are pure: each takes a ``RenderedTable`` and returns a new one.
They run in a fixed order (header styling, spanning headers, collapsed
rows, cell formatting, footnotes) because each stage relies on the output
of the ones before it.
"""

from __future__ import annotations

import logging
import numbers
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any

import pandas as pd

from tab2fig.errors import UsageError
from tab2fig.latex_utils import (
    escape_header,
    escape_latex,
    footnote_label,
    looks_like_markup,
    sanitize_cell,
    sanitize_cells,
)
from tab2fig.models import (
    CellFormat,
    CellStyle,
    CollapseSpec,
    FootnoteSpec,
    HeaderSpec,
    RenderedTable,
    StyleConfig,
)

logger = logging.getLogger(__name__)

MULTIROW_PACKAGE = "\\usepackage{multirow}"
THREEPARTTABLE_PACKAGE = "\\usepackage{threeparttable}"
LONGTABLE_PACKAGE = "\\usepackage{longtable}"

_VALIGN_FLAGS = {"middle": "c", "top": "t", "bottom": "b"}


# -- constructors -----------------------------------------------------------


def _as_tuple(value: Any) -> tuple | None:
    if value is None:
        return None
    if isinstance(value, (str, numbers.Integral)):
        return (value,)
    return tuple(value)


def footnote(
    general: str | Sequence[str] | None = None,
    number: str | Sequence[str] | None = None,
    alphabet: str | Sequence[str] | None = None,
    symbol: str | Sequence[str] | None = None,
    *,
    general_title: str | None = "Note: ",
    number_title: str | None = None,
    alphabet_title: str | None = None,
    symbol_title: str | None = None,
    as_chunk: bool = False,
    threeparttable: bool = True,
) -> FootnoteSpec:
    """Notes for the block below the table, one group per label style."""
    return FootnoteSpec(
        general=_as_tuple(general) or (),
        number=_as_tuple(number) or (),
        alphabet=_as_tuple(alphabet) or (),
        symbol=_as_tuple(symbol) or (),
        general_title=general_title,
        number_title=number_title,
        alphabet_title=alphabet_title,
        symbol_title=symbol_title,
        as_chunk=as_chunk,
        threeparttable=threeparttable,
    )


def header_above(
    *pairs: tuple[str, int] | Mapping[str, int],
    bold: bool = True,
    italic: bool = False,
    align: str = "c",
    line: bool = True,
    line_sep: float = 3,
) -> HeaderSpec:
    """One spanning-header row.

    Accepts ``(label, span)`` pairs, or a single mapping of label to span::

        header_above(("", 1), ("Treatment", 2))
        header_above({" ": 1, "Treatment": 2})
    """
    if len(pairs) == 1 and isinstance(pairs[0], Mapping):
        spans = tuple(pairs[0].items())
    else:
        spans = tuple(tuple(p) for p in pairs)  # type: ignore[misc]
    for pair in spans:
        if len(pair) != 2:
            msg = f"Spanning header entries must be (label, span) pairs, got {pair!r}"
            raise UsageError(msg)
    return HeaderSpec(
        spans=spans,  # type: ignore[arg-type]
        bold=bold,
        italic=italic,
        align=align,
        line=line,
        line_sep=line_sep,
    )


def collapse_rows(
    columns: int | str | Sequence[int | str],
    *,
    valign: str = "middle",
    hline: str = "full",
    custom_rows: Sequence[int] = (),
) -> CollapseSpec:
    return CollapseSpec(
        columns=_as_tuple(columns) or (),
        valign=valign,
        hline=hline,
        custom_rows=tuple(custom_rows),
    )


def cell_format(
    rows: int | Sequence[int] | None = None,
    cols: int | str | Sequence[int | str] | None = None,
    *,
    bold: bool | None = None,
    italic: bool | None = None,
    color: str | None = None,
    background: str | None = None,
    condition: Callable[[Any], Any] | None = None,
) -> CellFormat:
    return CellFormat(
        rows=_as_tuple(rows),
        cols=_as_tuple(cols),
        style=CellStyle(bold=bold, italic=italic, color=color, background=background),
        condition=condition,
    )


def highlight(
    condition: Callable[[Any], Any],
    *,
    background: str | None = "yellow!30",
    bold: bool = False,
    color: str | None = None,
    rows: int | Sequence[int] | None = None,
    cols: int | str | Sequence[int | str] | None = None,
) -> CellFormat:
    """Style every cell whose raw value satisfies *condition*."""
    return cell_format(
        rows,
        cols,
        bold=True if bold else None,
        color=color,
        background=background,
        condition=condition,
    )


def bold_columns(cols: int | str | Sequence[int | str]) -> CellFormat:
    return cell_format(cols=cols, bold=True)


def italic_columns(cols: int | str | Sequence[int | str]) -> CellFormat:
    return cell_format(cols=cols, italic=True)


def color_rows(rows: int | Sequence[int], background: str) -> CellFormat:
    return cell_format(rows=rows, background=background)


# -- base table -------------------------------------------------------------


def build_table(frame: pd.DataFrame, header_names: Sequence[str]) -> RenderedTable:
    """Sanitize *frame*'s cells into the base ``RenderedTable``.

    *header_names* are the already-sanitized column names.
    """
    if len(header_names) != frame.shape[1]:
        msg = f"Expected {frame.shape[1]} header names, got {len(header_names)}"
        raise UsageError(msg)
    columns = [sanitize_cells(frame.iloc[:, j].tolist()) for j in range(frame.shape[1])]
    rows = tuple(tuple(row) for row in zip(*columns, strict=True)) if columns else ()
    nrow = frame.shape[0]
    return RenderedTable(
        header=tuple(escape_header(name) for name in header_names),
        rows=rows,
        row_prefixes=("",) * nrow,
        rules_after=("",) * nrow,
    )


# -- selectors --------------------------------------------------------------


def resolve_columns(
    selectors: Iterable[int | str] | None,
    frame: pd.DataFrame,
    name_map: Mapping[str, str] | None = None,
) -> list[int]:
    """Turn column indices or names into valid 0-based indices.

    Names may be original or sanitized.  Unknown names and out-of-range
    indices are dropped with a warning.
    """
    ncol = frame.shape[1]
    if selectors is None:
        return list(range(ncol))

    names = [str(c) for c in frame.columns]
    name_map = name_map or {}
    resolved: list[int] = []
    for sel in selectors:
        if isinstance(sel, str):
            target = name_map.get(sel, sel)
            if target not in names:
                logger.warning("Dropping unknown column selector %r", sel)
                continue
            index = names.index(target)
        elif isinstance(sel, numbers.Integral) and not isinstance(sel, bool):
            if not 0 <= sel < ncol:
                logger.warning("Dropping column index %d outside 0..%d", sel, ncol - 1)
                continue
            index = int(sel)
        else:
            logger.warning("Dropping column selector of type %s", type(sel).__name__)
            continue
        if index not in resolved:
            resolved.append(index)
    return resolved


def resolve_rows(selectors: Iterable[int] | None, nrow: int) -> list[int]:
    """Turn row indices into valid 0-based indices, dropping the rest with a warning."""
    if selectors is None:
        return list(range(nrow))
    resolved: list[int] = []
    for sel in selectors:
        if isinstance(sel, bool) or not isinstance(sel, numbers.Integral) or not 0 <= sel < nrow:
            logger.warning("Dropping row selector %r outside 0..%d", sel, nrow - 1)
            continue
        if int(sel) not in resolved:
            resolved.append(int(sel))
    return resolved


# -- appliers ---------------------------------------------------------------


def apply_header_style(
    rendered: RenderedTable,
    style: StyleConfig,
    decimal_columns: Iterable[int] = (),
) -> RenderedTable:
    """Bold the header, brace decimal-column headers, and stripe body rows."""
    decimal = set(decimal_columns)
    header = []
    for j, text in enumerate(rendered.header):
        if style.header_bold:
            text = f"\\textbf{{{text}}}"
        if j in decimal:
            text = f"{{{text}}}"
        header.append(text)

    prefixes = list(rendered.row_prefixes)
    if style.striped and style.shading_color:
        for i in range(0, rendered.nrow, 2):
            prefixes[i] = f"\\rowcolor{{{style.shading_color}}}"

    return replace(rendered, header=tuple(header), row_prefixes=tuple(prefixes))


def check_header_spans(headers: Iterable[HeaderSpec], ncol: int) -> None:
    """Raise ``UsageError`` unless every header row spans exactly *ncol* columns."""
    for spec in headers:
        if spec.total != ncol:
            labels = ", ".join(f"{label!r}={span}" for label, span in spec.spans)
            msg = (
                f"Spanning header spans sum to {spec.total} but the table has "
                f"{ncol} column(s): {labels}"
            )
            raise UsageError(msg)


def _header_label(text: str) -> str:
    return text if looks_like_markup(text) else escape_latex(text)


def _spanning_row(spec: HeaderSpec) -> str:
    cells: list[str] = []
    rules: list[str] = []
    start = 1
    for label, span in spec.spans:
        text = _header_label(label.strip())
        if text and spec.italic:
            text = f"\\textit{{{text}}}"
        if text and spec.bold:
            text = f"\\textbf{{{text}}}"
        cells.append(f"\\multicolumn{{{span}}}{{{spec.align}}}{{{text}}}")
        if spec.line and text:
            rules.append(f"\\cmidrule(lr{{{spec.line_sep:g}pt}}){{{start}-{start + span - 1}}}")
        start += span

    row = " & ".join(cells) + " \\\\"
    if rules:
        row += "\n" + " ".join(rules)
    return row


def apply_spanning_headers(rendered: RenderedTable, headers: Sequence[HeaderSpec]) -> RenderedTable:
    """Stack spanning-header rows above the column header, outermost first."""
    if not headers:
        return rendered
    check_header_spans(headers, rendered.ncol)
    lines = tuple(_spanning_row(spec) for spec in headers)
    return replace(rendered, header_above=lines + rendered.header_above)


def check_collapse_specs(collapse: Sequence[CollapseSpec]) -> None:
    if len(collapse) > 1:
        msg = (
            f"Only one collapse_rows spec is supported, got {len(collapse)}; "
            "list every column in a single spec"
        )
        raise UsageError(msg)


def collapse_groups(values: Sequence[str], breaks: Iterable[int] = ()) -> list[tuple[int, int]]:
    """Runs of consecutive equal values as ``(start, length)`` pairs.

    A run also ends right before any row index in *breaks*, which keeps the
    runs of an inner column nested inside those of an outer one.
    """
    forced = set(breaks)
    groups: list[tuple[int, int]] = []
    start = 0
    for i in range(1, len(values) + 1):
        if i == len(values) or values[i] != values[start] or i in forced:
            groups.append((start, i - start))
            start = i
    return groups


def _rule_after(
    row: int,
    ends: list[set[int]],
    columns: list[int],
    ncol: int,
) -> str:
    # Rows where every collapsed column ends a run get a full rule; otherwise
    # the rule starts right of the last column still spanning the boundary.
    spanning = [col for col, col_ends in zip(columns, ends, strict=True) if row not in col_ends]
    if not spanning:
        return "\\midrule"
    first = max(spanning) + 2
    if first > ncol:
        return ""
    return f"\\cmidrule{{{first}-{ncol}}}"


def apply_collapse_rows(
    rendered: RenderedTable,
    spec: CollapseSpec,
    frame: pd.DataFrame,
    name_map: Mapping[str, str] | None = None,
) -> RenderedTable:
    """Merge runs of equal values in the chosen columns into multirow cells."""
    columns = resolve_columns(spec.columns, frame, name_map)
    if not columns or rendered.nrow == 0:
        return replace(rendered, packages=(*rendered.packages, MULTIROW_PACKAGE))

    rows = [list(row) for row in rendered.rows]
    multirow = dict(rendered.multirow)
    flag = _VALIGN_FLAGS[spec.valign]
    breaks: set[int] = set()
    ends: list[set[int]] = []

    for col in columns:
        groups = collapse_groups([row[col] for row in rows], breaks)
        col_ends = set()
        for start, length in groups:
            last = start + length - 1
            col_ends.add(last)
            breaks.add(start)
            if length < 2:
                continue
            multirow[(last, col)] = (length, flag)
            for i in range(start, last):
                rows[i][col] = ""
        ends.append(col_ends)

    if spec.hline == "full":
        rules = [_rule_after(i, ends, columns, rendered.ncol) for i in range(rendered.nrow)]
    elif spec.hline == "major":
        rules = ["\\midrule" if i in ends[0] else "" for i in range(rendered.nrow)]
    elif spec.hline == "custom":
        custom = set(resolve_rows(spec.custom_rows, rendered.nrow))
        rules = ["\\midrule" if i in custom else "" for i in range(rendered.nrow)]
    else:
        rules = [""] * rendered.nrow

    return replace(
        rendered,
        rows=tuple(tuple(row) for row in rows),
        multirow=multirow,
        rules_after=tuple(rules),
        packages=(*rendered.packages, MULTIROW_PACKAGE),
    )


def _matches(condition: Callable[[Any], Any], value: Any) -> bool:
    try:
        return bool(condition(value))
    except Exception:  # noqa: BLE001
        logger.debug("Condition raised for value %r; treating as no match", value, exc_info=True)
        return False


def apply_cell_formats(
    rendered: RenderedTable,
    formats: Sequence[CellFormat],
    frame: pd.DataFrame,
    name_map: Mapping[str, str] | None = None,
) -> RenderedTable:
    """Attach per-cell styles; later formats override earlier ones field by field."""
    if not formats:
        return rendered
    styles = dict(rendered.cell_styles)
    for fmt in formats:
        rows = resolve_rows(fmt.rows, rendered.nrow)
        cols = resolve_columns(fmt.cols, frame, name_map)
        for i in rows:
            for j in cols:
                if fmt.condition is not None and not _matches(fmt.condition, frame.iat[i, j]):
                    continue
                styles[(i, j)] = styles.get((i, j), CellStyle()).merged(fmt.style)
    return replace(rendered, cell_styles=styles)


def _note_group(
    notes: Sequence[str],
    title: str | None,
    kind: str | None,
    as_chunk: bool,
) -> list[str]:
    if not notes:
        return []
    entries: list[str] = []
    for position, note in enumerate(notes):
        text = sanitize_cell(note)
        if kind is not None:
            text = f"\\textsuperscript{{{footnote_label(kind, position)}}} {text}"
        entries.append(text)

    heading = f"\\textit{{{sanitize_cell(title)}}}" if title else ""
    if as_chunk:
        return [" ".join(part for part in (heading, *entries) if part)]
    return [heading, *entries] if heading else entries


def build_notes(spec: FootnoteSpec) -> tuple[str, ...]:
    """LaTeX text of each notes-block line, in group order."""
    return tuple(
        [
            *_note_group(spec.general, spec.general_title, None, spec.as_chunk),
            *_note_group(spec.number, spec.number_title, "number", spec.as_chunk),
            *_note_group(spec.alphabet, spec.alphabet_title, "alphabet", spec.as_chunk),
            *_note_group(spec.symbol, spec.symbol_title, "symbol", spec.as_chunk),
        ]
    )


def apply_footnotes(rendered: RenderedTable, spec: FootnoteSpec | None) -> RenderedTable:
    if spec is None or spec.is_empty:
        return rendered
    packages = rendered.packages
    if spec.threeparttable:
        packages = (*packages, THREEPARTTABLE_PACKAGE)
    return replace(
        rendered,
        notes=rendered.notes + build_notes(spec),
        threeparttable=spec.threeparttable,
        packages=packages,
    )


# -- rendering --------------------------------------------------------------


def render_cell(
    text: str,
    style: CellStyle | None = None,
    multirow: tuple[int, str] | None = None,
) -> str:
    """Wrap one body cell in its style and multirow commands."""
    if style is not None:
        if style.bold:
            text = f"\\textbf{{{text}}}"
        if style.italic:
            text = f"\\textit{{{text}}}"
        if style.color:
            text = f"\\textcolor{{{style.color}}}{{{text}}}"
    if multirow is not None:
        span, flag = multirow
        text = f"\\multirow[{flag}]{{-{span}}}{{*}}{{{text}}}"
    if style is not None and style.background:
        text = f"\\cellcolor{{{style.background}}}{text}"
    return text


def render_rows(rendered: RenderedTable) -> list[str]:
    """Body rows as LaTeX lines, without trailing rules."""
    lines = []
    for i, row in enumerate(rendered.rows):
        cells = [
            render_cell(text, rendered.cell_styles.get((i, j)), rendered.multirow.get((i, j)))
            for j, text in enumerate(row)
        ]
        lines.append(rendered.row_prefixes[i] + " & ".join(cells) + " \\\\")
    return lines


def feature_packages(
    *,
    footnote: FootnoteSpec | None = None,
    collapse: Sequence[CollapseSpec] = (),
    longtable: bool = False,
) -> tuple[str, ...]:
    """Preamble lines the given feature specs will need."""
    packages: list[str] = []
    if collapse:
        packages.append(MULTIROW_PACKAGE)
    if longtable:
        packages.append(LONGTABLE_PACKAGE)
    elif footnote is not None and not footnote.is_empty and footnote.threeparttable:
        packages.append(THREEPARTTABLE_PACKAGE)
    return tuple(packages)


def apply_features(
    rendered: RenderedTable,
    style: StyleConfig,
    frame: pd.DataFrame,
    *,
    decimal_columns: Iterable[int] = (),
    headers: Sequence[HeaderSpec] = (),
    collapse: Sequence[CollapseSpec] = (),
    formats: Sequence[CellFormat] = (),
    footnote: FootnoteSpec | None = None,
    name_map: Mapping[str, str] | None = None,
) -> RenderedTable:
    """Run every applier in order."""
    check_collapse_specs(collapse)
    rendered = apply_header_style(rendered, style, decimal_columns)
    rendered = apply_spanning_headers(rendered, headers)
    for spec in collapse:
        rendered = apply_collapse_rows(rendered, spec, frame, name_map)
    rendered = apply_cell_formats(rendered, formats, frame, name_map)
    return apply_footnotes(rendered, footnote)
