"""LaTeX snippets for embedding generated tables in a host document."""

from __future__ import annotations

from pathlib import Path

from tab2fig.errors import UsageError

REF_KINDS = ("ref", "autoref", "pageref", "nameref")
_ALIGN_COMMANDS = {"center": "centering", "left": "raggedright", "right": "raggedleft"}
WRAP_PLACEMENTS = ("r", "l", "i", "o", "R", "L", "I", "O")


def resolve_pdf_path(path: str | Path) -> Path:
    """Path of the cropped PDF for *path* (a base name, ``.pdf`` or ``.tex``).

    Paths already ending in ``_cropped.pdf`` are returned unchanged.
    """
    path = Path(path)
    if path.name.endswith("_cropped.pdf"):
        return path
    stem = path.stem if path.suffix in (".pdf", ".tex") else path.name
    return path.with_name(f"{stem}_cropped.pdf")


def include_figure(
    path: str | Path,
    *,
    caption: str | None = None,
    label: str | None = None,
    position: str = "htbp",
    width: str = "\\textwidth",
    center: bool = True,
    short_caption: str | None = None,
) -> str:
    """A ``figure`` float around ``\\includegraphics`` of the cropped table."""
    lines = [f"\\begin{{figure}}[{position}]"]
    if center:
        lines.append("\\centering")
    lines.append(f"\\includegraphics[width={width}]{{{resolve_pdf_path(path).as_posix()}}}")
    if caption is not None:
        short = f"[{short_caption}]" if short_caption else ""
        lines.append(f"\\caption{short}{{{caption}}}")
    if label is not None:
        lines.append(f"\\label{{{label}}}")
    lines.append("\\end{figure}")
    return "\n".join(lines)


def include_inline(
    path: str | Path,
    *,
    width: str = "\\textwidth",
    align: str = "center",
    caption: str | None = None,
    label: str | None = None,
) -> str:
    """Non-floating inclusion; captions use ``\\captionof`` from the caption package."""
    if align not in _ALIGN_COMMANDS:
        msg = f"align must be one of {', '.join(_ALIGN_COMMANDS)}; got {align!r}"
        raise UsageError(msg)
    lines = [
        "\\begin{minipage}{\\linewidth}",
        f"\\{_ALIGN_COMMANDS[align]}",
        f"\\includegraphics[width={width}]{{{resolve_pdf_path(path).as_posix()}}}",
    ]
    if caption is not None:
        lines.append(f"\\captionof{{figure}}{{{caption}}}")
    if label is not None:
        lines.append(f"\\label{{{label}}}")
    lines.append("\\end{minipage}")
    return "\n".join(lines)



def include_wrap(
    path: str | Path,
    *,
    placement: str = "r",
    wrap_width: str = "0.5\\textwidth",
    width: str | None = None,
    caption: str | None = None,
    label: str | None = None,
) -> str:
    """A ``wrapfigure`` that lets body text flow around the table.

    *placement* is one of ``r``/``l`` (right/left), ``i``/``o`` (inside/outside
    margin), or their uppercase floating variants.  The image fills
    *wrap_width* unless *width* is given.  Needs ``\\usepackage{wrapfig}``.
    """
    if placement not in WRAP_PLACEMENTS:
        msg = f"placement must be one of {', '.join(WRAP_PLACEMENTS)}; got {placement!r}"
        raise UsageError(msg)
    lines = [
        f"\\begin{{wrapfigure}}{{{placement}}}{{{wrap_width}}}",
        "\\centering",
        f"\\includegraphics[width={width or wrap_width}]{{{resolve_pdf_path(path).as_posix()}}}",
    ]
    if caption is not None:
        lines.append(f"\\caption{{{caption}}}")
    if label is not None:
        lines.append(f"\\label{{{label}}}")
    lines.append("\\end{wrapfigure}")
    return "\n".join(lines)


def _panel(path: str | Path, width: str, caption: str | None, label: str | None) -> list[str]:
    lines = [
        f"\\begin{{minipage}}{{{width}}}",
        "\\centering",
        f"\\includegraphics[width=\\textwidth]{{{resolve_pdf_path(path).as_posix()}}}",
    ]
    if caption is not None:
        lines.append(f"\\caption{{{caption}}}")
    if label is not None:
        lines.append(f"\\label{{{label}}}")
    lines.append("\\end{minipage}")
    return lines


def include_sidebyside(
    path1: str | Path,
    path2: str | Path,
    *,
    caption1: str | None = None,
    caption2: str | None = None,
    label1: str | None = None,
    label2: str | None = None,
    width1: str = "0.48\\textwidth",
    width2: str = "0.48\\textwidth",
    position: str = "htbp",
    main_caption: str | None = None,
    main_label: str | None = None,
) -> str:
    """Two tables in minipages within one ``figure``, separated by ``\\hfill``."""
    lines = [
        f"\\begin{{figure}}[{position}]",
        "\\centering",
        *_panel(path1, width1, caption1, label1),
        "\\hfill",
        *_panel(path2, width2, caption2, label2),
    ]
    if main_caption is not None:
        lines.append(f"\\caption{{{main_caption}}}")
    if main_label is not None:
        lines.append(f"\\label{{{main_label}}}")
    lines.append("\\end{figure}")
    return "\n".join(lines)


def ref(label: str, kind: str = "ref") -> str:
    if kind not in REF_KINDS:
        msg = f"Reference kind must be one of {', '.join(REF_KINDS)}; got {kind!r}"
        raise UsageError(msg)
    return f"\\{kind}{{{label}}}"
