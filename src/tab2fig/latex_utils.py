"""LaTeX sanitization: column names, filenames, and cell text."""

from __future__ import annotations

import numbers
import re
from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np
import pandas as pd

from tab2fig.errors import UsageError

# Characters that must be escaped in LaTeX header text.
_LATEX_SPECIAL = str.maketrans(
    {
        "&": r"\&",
        "%": r"\%",
        "$": r"\$",
        "#": r"\#",
        "_": r"\_",
        "{": r"\{",
        "}": r"\}",
        "~": r"\textasciitilde{}",
        "^": r"\textasciicircum{}",
        "\\": r"\textbackslash{}",
    }
)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")
_CELL_SPECIAL = re.compile(r"([#%&$])")
# A backslash-letter macro or a math-mode marker such as $^{*}$ means the
# caller embedded LaTeX on purpose.
_EMBEDDED_MARKUP = re.compile(r"\\[A-Za-z]|\$[\^_]\{")

_EMPTY_COLUMN_NAME = "X"
_EMPTY_FILENAME = "table"

_SYMBOL_MARKS = ("*", r"\dag", r"\ddag", r"\S", r"\P")
_MARK_KINDS = ("symbol", "number", "alphabet")


def escape_latex(text: str) -> str:
    """Escape every LaTeX special character in plain header text."""
    return text.translate(_LATEX_SPECIAL)


def sanitize_column_name(name: object) -> str:
    """Replace characters outside ``[A-Za-z0-9_]`` with ``_``.

    Total over all inputs; the empty name maps to ``X``.
    """
    cleaned = _UNSAFE_NAME_CHARS.sub("_", str(name))
    return cleaned or _EMPTY_COLUMN_NAME


def sanitize_column_names(names: Iterable[object]) -> list[str]:
    """Sanitize *names* and make collisions unique.

    The first occurrence keeps its sanitized name; later duplicates get
    ``_2``, ``_3``, ... skipping any suffix that is already taken.
    """
    sanitized = [sanitize_column_name(n) for n in names]
    taken = set(sanitized)
    seen: set[str] = set()
    result: list[str] = []
    for name in sanitized:
        if name not in seen:
            seen.add(name)
            result.append(name)
            continue
        suffix = 2
        while f"{name}_{suffix}" in taken:
            suffix += 1
        unique = f"{name}_{suffix}"
        taken.add(unique)
        seen.add(unique)
        result.append(unique)
    return result


def column_name_map(names: Sequence[object]) -> dict[str, str]:
    """Map each original column name (as text) to its sanitized, unique form.

    Sanitized names map to themselves as well, so selectors may use either.
    An original name always wins over a sanitized name with the same text.
    """
    sanitized = sanitize_column_names(names)
    mapping = {str(original): clean for original, clean in zip(names, sanitized, strict=True)}
    for clean in sanitized:
        mapping.setdefault(clean, clean)
    return mapping


def escape_header(name: str) -> str:
    """Render a sanitized column name as header text (underscores escaped)."""
    return escape_latex(name)


def sanitize_filename(name: object) -> str:
    """Replace characters outside ``[A-Za-z0-9_]`` with ``_``.

    No length limit is applied; callers should keep names to a sensible
    path-component length.
    """
    cleaned = _UNSAFE_NAME_CHARS.sub("_", str(name))
    return cleaned or _EMPTY_FILENAME


def format_cell(value: Any) -> str:
    """Stringify a cell value in a locale-independent way.

    Missing values (None, NaN, NaT, ``pd.NA``) become the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return str(bool(value))
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        return f"{float(value):.15g}"
    return str(value)


def looks_like_markup(text: str) -> bool:
    return _EMBEDDED_MARKUP.search(text) is not None


def sanitize_cell(value: Any) -> str:
    """Escape ``# % & $`` and replace ``< >`` in one cell.

    Cells that already contain LaTeX markup pass through unchanged.  Not
    idempotent: sanitize each value exactly once, right before embedding.
    """
    text = format_cell(value)
    if looks_like_markup(text):
        return text
    escaped = _CELL_SPECIAL.sub(r"\\\1", text)
    return escaped.replace("<", "\\textless{}").replace(">", "\\textgreater{}")


def sanitize_cells(values: Iterable[Any]) -> list[str]:
    return [sanitize_cell(v) for v in values]


def mark(text: object, index: int, kind: str = "symbol") -> str:
    """Append a superscript footnote marker to *text*.

    *index* is 1-based, matching the label shown in the notes block.
    """
    if kind not in _MARK_KINDS:
        msg = f"Marker kind must be one of {', '.join(_MARK_KINDS)}; got {kind!r}"
        raise UsageError(msg)
    if index < 1:
        msg = f"Marker index must be >= 1, got {index}"
        raise UsageError(msg)

    marker = footnote_label(kind, index - 1)
    return f"{format_cell(text)}\\textsuperscript{{{marker}}}"


def footnote_label(kind: str, position: int) -> str:
    """Label for the note at 0-based *position* within a group."""
    if kind == "number":
        return str(position + 1)
    if kind == "alphabet":
        letters = "abcdefghijklmnopqrstuvwxyz"
        label = ""
        n = position
        while True:
            label = letters[n % 26] + label
            n = n // 26 - 1
            if n < 0:
                return label
    repeat, slot = divmod(position, len(_SYMBOL_MARKS))
    return _SYMBOL_MARKS[slot] * (repeat + 1)
