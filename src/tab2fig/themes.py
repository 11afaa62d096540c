"""Themes, the theme registry, and style composition.

A theme supplies defaults; explicit arguments always win over the theme, and
the theme wins over the built-in defaults.  Registries are plain objects
owned by the caller, so two pipelines never see each other's themes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tab2fig.errors import UsageError
from tab2fig.models import StyleConfig, Theme
from tab2fig.packages import dedupe, flatten_packages

logger = logging.getLogger(__name__)

BASE_PACKAGES: tuple[str, ...] = (
    "\\usepackage[table]{xcolor}",
    "\\usepackage{booktabs}",
)

DEFAULT_SHADING = "blue!10"
DEFAULT_DOCUMENT_CLASS = "article"

FONT_SIZES = (
    "tiny",
    "scriptsize",
    "footnotesize",
    "small",
    "normalsize",
    "large",
    "Large",
    "LARGE",
    "huge",
    "Huge",
)

NO_THEME = Theme(name="none")


def theme(
    name: str,
    *,
    shading_color: str | None = None,
    document_class: str | None = None,
    extra_packages: str | Iterable[str] | None = None,
    header_bold: bool | None = None,
    striped: bool | None = None,
    font_size: str | None = None,
) -> Theme:
    """Build a validated ``Theme``.

    ``font_size`` may be given with or without the leading backslash.
    """
    if not isinstance(name, str) or not name:
        msg = "Theme name must be a non-empty string"
        raise UsageError(msg)
    if font_size is not None:
        font_size = font_size.lstrip("\\")
        if font_size not in FONT_SIZES:
            msg = f"font_size must be one of {', '.join(FONT_SIZES)}; got {font_size!r}"
            raise UsageError(msg)
    return Theme(
        name=name,
        shading_color=shading_color,
        document_class=document_class,
        extra_packages=flatten_packages(extra_packages),
        header_bold=header_bold,
        striped=striped,
        font_size=font_size,
    )


BUILTIN_THEMES: dict[str, Theme] = {
    "minimal": theme("minimal", striped=False, shading_color="none", header_bold=True),
    "apa": theme("apa", striped=False, header_bold=False),
    "nature": theme("nature", shading_color="gray!10", font_size="small"),
    "nejm": theme("nejm", shading_color="blue!5", font_size="small"),
}


class ThemeRegistry:
    """Built-in themes plus any the caller registers."""

    def __init__(self) -> None:
        self._custom: dict[str, Theme] = {}

    def register(self, theme: Theme, name: str | None = None, *, overwrite: bool = False) -> Theme:
        """Register *theme* under *name* (defaults to ``theme.name``)."""
        if not isinstance(theme, Theme):
            msg = f"Expected a Theme, got {type(theme).__name__}"
            raise UsageError(msg)
        key = name or theme.name
        if key in BUILTIN_THEMES:
            msg = f"Cannot overwrite built-in theme {key!r}"
            raise UsageError(msg)
        if key in self._custom and not overwrite:
            msg = f"Theme {key!r} is already registered; pass overwrite=True to replace it"
            raise UsageError(msg)
        self._custom[key] = theme
        logger.debug("Registered theme %s", key)
        return theme

    def unregister(self, name: str) -> bool:
        if name in BUILTIN_THEMES:
            msg = f"Cannot unregister built-in theme {name!r}"
            raise UsageError(msg)
        return self._custom.pop(name, None) is not None

    def clear(self) -> int:
        """Drop every custom theme; returns how many were removed."""
        count = len(self._custom)
        self._custom.clear()
        return count

    def names(self, *, builtin_only: bool = False) -> list[str]:
        if builtin_only:
            return list(BUILTIN_THEMES)
        return list(BUILTIN_THEMES) + sorted(self._custom)

    def get(self, name: str) -> Theme:
        if name in BUILTIN_THEMES:
            return BUILTIN_THEMES[name]
        if name in self._custom:
            return self._custom[name]
        msg = f"Unknown theme {name!r}. Available themes: {', '.join(self.names())}"
        raise UsageError(msg)

    def __contains__(self, name: object) -> bool:
        return name in BUILTIN_THEMES or name in self._custom


def resolve_theme(value: str | Theme | None, registry: ThemeRegistry | None = None) -> Theme:
    """Turn a theme name, a ``Theme`` or ``None`` into a ``Theme``."""
    if value is None:
        return NO_THEME
    if isinstance(value, Theme):
        return value
    if isinstance(value, str):
        return (registry or ThemeRegistry()).get(value)
    msg = f"`theme` must be a name, a Theme or None; got {type(value).__name__}"
    raise UsageError(msg)


def _pick(override, themed, default):
    if override is not None:
        return override
    if themed is not None:
        return themed
    return default


def compose_style(
    theme: Theme = NO_THEME,
    *,
    shading_color: str | None = None,
    document_class: str | None = None,
    extra_packages: str | Iterable[str] | None = None,
    header_bold: bool | None = None,
    striped: bool | None = None,
    font_size: str | None = None,
    contributed: Iterable[str] = (),
) -> StyleConfig:
    """Merge explicit arguments, *theme* and built-in defaults into a ``StyleConfig``.

    Package lines are ordered base, theme, explicit, then those *contributed*
    by alignment and features; repeats keep their first position.
    """
    shading = _pick(shading_color, theme.shading_color, DEFAULT_SHADING)
    if isinstance(shading, str) and shading.lower() == "none":
        shading = None

    size = _pick(font_size, theme.font_size, None)
    if size is not None:
        size = size.lstrip("\\")
        if size not in FONT_SIZES:
            msg = f"font_size must be one of {', '.join(FONT_SIZES)}; got {size!r}"
            raise UsageError(msg)

    packages = dedupe(
        [
            *BASE_PACKAGES,
            *theme.extra_packages,
            *flatten_packages(extra_packages),
            *contributed,
        ]
    )
    return StyleConfig(
        shading_color=shading,
        document_class=_pick(document_class, theme.document_class, DEFAULT_DOCUMENT_CLASS),
        extra_packages=packages,
        header_bold=bool(_pick(header_bold, theme.header_bold, True)),
        striped=bool(_pick(striped, theme.striped, True)),
        font_size=size,
    )
