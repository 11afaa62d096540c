"""Assemble a standalone LaTeX document around a rendered table."""

from __future__ import annotations

from tab2fig.features import LONGTABLE_PACKAGE, THREEPARTTABLE_PACKAGE, render_rows
from tab2fig.latex_utils import sanitize_cell
from tab2fig.models import RenderedTable, ResolvedAlignment, StyleConfig
from tab2fig.packages import dedupe


def preamble(style: StyleConfig, rendered: RenderedTable, *, longtable: bool = False) -> list[str]:
    packages = [*style.extra_packages, *rendered.packages]
    if longtable:
        # Notes become rows, so threeparttable is never used.
        packages = [p for p in packages if p != THREEPARTTABLE_PACKAGE]
        packages.append(LONGTABLE_PACKAGE)
    return [
        f"\\documentclass{{{style.document_class}}}",
        *dedupe(packages),
        "\\begin{document}",
        "\\thispagestyle{empty}",
    ]


def _caption(caption: str | None, caption_short: str | None) -> str | None:
    if caption is None:
        return None
    if caption_short is not None:
        return f"\\caption[{sanitize_cell(caption_short)}]{{{sanitize_cell(caption)}}}"
    return f"\\caption{{{sanitize_cell(caption)}}}"


def _head(rendered: RenderedTable) -> list[str]:
    return [
        "\\toprule",
        *rendered.header_above,
        " & ".join(rendered.header) + " \\\\",
        "\\midrule",
    ]


def _body(rendered: RenderedTable) -> list[str]:
    lines: list[str] = []
    last = rendered.nrow - 1
    for i, row in enumerate(render_rows(rendered)):
        lines.append(row)
        rule = rendered.rules_after[i]
        if rule and i < last:
            lines.append(rule)
    return lines


def _note_rows(rendered: RenderedTable) -> list[str]:
    return [f"\\multicolumn{{{rendered.ncol}}}{{l}}{{{note}}}\\\\" for note in rendered.notes]


def _tabular(rendered: RenderedTable, column_spec: str) -> list[str]:
    boxed = rendered.threeparttable and bool(rendered.notes)
    lines = [
        f"\\begin{{tabular}}{{{column_spec}}}",
        *_head(rendered),
        *_body(rendered),
        "\\bottomrule",
    ]
    if not boxed:
        lines.extend(_note_rows(rendered))
    lines.append("\\end{tabular}")
    if not boxed:
        return lines

    return [
        "\\begin{threeparttable}",
        *lines,
        "\\begin{tablenotes}",
        *(f"\\item {note}" for note in rendered.notes),
        "\\end{tablenotes}",
        "\\end{threeparttable}",
    ]


def _longtable(
    rendered: RenderedTable,
    column_spec: str,
    caption: str | None,
    label: str | None,
) -> list[str]:
    lines = [f"\\begin{{longtable}}{{{column_spec}}}"]
    if caption is not None:
        suffix = f"\\label{{{label}}}" if label else ""
        lines.append(f"{caption}{suffix}\\\\")
    head = _head(rendered)
    lines.extend([*head, "\\endfirsthead", *head, "\\endhead"])
    lines.extend(_body(rendered))
    lines.append("\\bottomrule")
    lines.extend(_note_rows(rendered))
    lines.append("\\end{longtable}")
    return lines


def assemble(
    rendered: RenderedTable,
    style: StyleConfig,
    alignment: ResolvedAlignment,
    *,
    caption: str | None = None,
    caption_short: str | None = None,
    label: str | None = None,
    longtable: bool = False,
) -> str:
    """Return the complete LaTeX source for *rendered*.

    With a caption or label the tabular sits in a centered ``table`` float;
    otherwise it is emitted bare.  Long tables use ``longtable`` and repeat
    the header on every page, and any notes become trailing rows since
    ``threeparttable`` cannot wrap them.
    """
    lines = preamble(style, rendered, longtable=longtable)
    if style.font_size:
        lines.append(f"\\{style.font_size}")

    caption_line = _caption(caption, caption_short)
    if longtable:
        lines.extend(_longtable(rendered, alignment.column_spec, caption_line, label))
    elif caption_line is not None or label is not None:
        lines.extend(["\\begin{table}[!h]", "\\centering"])
        if caption_line is not None:
            lines.append(caption_line)
        if label is not None:
            lines.append(f"\\label{{{label}}}")
        lines.extend(_tabular(rendered, alignment.column_spec))
        lines.append("\\end{table}")
    else:
        lines.extend(_tabular(rendered, alignment.column_spec))

    lines.append("\\end{document}")
    return "\n".join(lines) + "\n"
