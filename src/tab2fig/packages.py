"""Helpers that build LaTeX preamble lines for common packages."""

from __future__ import annotations

from collections.abc import Iterable

from tab2fig.errors import UsageError


def geometry(
    margin: str | None = None,
    paper: str | None = None,
    *,
    landscape: bool = False,
    **options: str | bool,
) -> str:
    """Return a ``\\usepackage[...]{geometry}`` line.

    Boolean options that are true appear as bare flags (``landscape``);
    everything else is written as ``key=value``.
    """
    opts: dict[str, str | bool] = {}
    if margin is not None:
        opts["margin"] = margin
    if paper is not None:
        opts["paper"] = paper
    opts.update({k: v for k, v in options.items() if v is not None})
    if landscape:
        opts["landscape"] = True

    parts: list[str] = []
    for key, value in opts.items():
        if value is True:
            parts.append(key)
        elif value is False:
            continue
        else:
            parts.append(f"{key}={value}")

    if not parts:
        return "\\usepackage{geometry}"
    return f"\\usepackage[{','.join(parts)}]{{geometry}}"


def babel(language: str) -> str:
    if not isinstance(language, str) or not language:
        msg = "`language` must be a single non-empty string"
        raise UsageError(msg)
    return f"\\usepackage[{language}]{{babel}}"


def fontspec(
    main_font: str | None = None,
    sans_font: str | None = None,
    mono_font: str | None = None,
) -> list[str]:
    """Return fontspec preamble lines; requires a Unicode engine (xelatex/lualatex)."""
    lines = ["\\usepackage{fontspec}"]
    if main_font is not None:
        lines.append(f"\\setmainfont{{{main_font}}}")
    if sans_font is not None:
        lines.append(f"\\setsansfont{{{sans_font}}}")
    if mono_font is not None:
        lines.append(f"\\setmonofont{{{mono_font}}}")
    return lines


def flatten_packages(entries: str | Iterable[str | Iterable[str]] | None) -> tuple[str, ...]:
    """Flatten package specs (strings or nested lists of strings) in order."""
    if entries is None:
        return ()
    if isinstance(entries, str):
        return (entries,)

    flat: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            flat.append(entry)
        else:
            flat.extend(flatten_packages(entry))
    return tuple(flat)


def dedupe(lines: Iterable[str]) -> tuple[str, ...]:
    """Drop repeated preamble lines, keeping the first occurrence."""
    seen: set[str] = set()
    result: list[str] = []
    for line in lines:
        if line not in seen:
            seen.add(line)
            result.append(line)
    return tuple(result)
