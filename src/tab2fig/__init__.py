"""Render tabular data as cropped, publication-ready LaTeX tables."""

from __future__ import annotations

from tab2fig.alignment import decimal, siunitx
from tab2fig.errors import (
    CompilationError,
    DependencyMissingError,
    PostProcessError,
    Tab2FigError,
    UsageError,
)
from tab2fig.features import (
    bold_columns,
    cell_format,
    collapse_rows,
    color_rows,
    footnote,
    header_above,
    highlight,
    italic_columns,
)
from tab2fig.include import (
    include_figure,
    include_inline,
    include_sidebyside,
    include_wrap,
    ref,
    resolve_pdf_path,
)
from tab2fig.latex_utils import mark
from tab2fig.pipeline import generate_table
from tab2fig.postprocess import check_dependencies
from tab2fig.themes import ThemeRegistry, theme

__version__ = "0.1.0"

__all__ = [
    "CompilationError",
    "DependencyMissingError",
    "PostProcessError",
    "Tab2FigError",
    "ThemeRegistry",
    "UsageError",
    "bold_columns",
    "cell_format",
    "check_dependencies",
    "collapse_rows",
    "color_rows",
    "decimal",
    "footnote",
    "generate_table",
    "header_above",
    "highlight",
    "include_figure",
    "include_inline",
    "include_sidebyside",
    "include_wrap",
    "italic_columns",
    "mark",
    "ref",
    "resolve_pdf_path",
    "siunitx",
    "theme",
]
