"""End-to-end table generation: input table to cropped PDF (or PNG, SVG, TeX).

Every argument is validated before the output directory is touched, so a
``UsageError`` never leaves files behind.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, TypeVar

from tab2fig.alignment import AlignEntry, resolve_alignment
from tab2fig.compiler import compile_source
from tab2fig.config import Settings, load_settings
from tab2fig.document import assemble
from tab2fig.errors import UsageError
from tab2fig.features import (
    apply_features,
    build_table,
    check_collapse_specs,
    check_header_spans,
    feature_packages,
)
from tab2fig.latex_utils import column_name_map, sanitize_column_names, sanitize_filename
from tab2fig.models import (
    CellFormat,
    CollapseSpec,
    CompilationRequest,
    FootnoteSpec,
    HeaderSpec,
    Theme,
)
from tab2fig.postprocess import convert_to_png, convert_to_svg, crop_pdf, normalize_margins
from tab2fig.tables import as_table
from tab2fig.themes import ThemeRegistry, compose_style, resolve_theme

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("pdf", "png", "svg", "tex")

_T = TypeVar("_T")


def _as_specs(value: _T | Sequence[_T] | None, kind: type[_T], argument: str) -> list[_T]:
    if value is None:
        return []
    items = [value] if isinstance(value, kind) else list(value)  # type: ignore[arg-type]
    for item in items:
        if not isinstance(item, kind):
            msg = f"`{argument}` entries must be {kind.__name__}, got {type(item).__name__}"
            raise UsageError(msg)
    return items  # type: ignore[return-value]


def _check_optional_str(value: Any, argument: str) -> None:
    if value is not None and not isinstance(value, str):
        msg = f"`{argument}` must be a string or None, got {type(value).__name__}"
        raise UsageError(msg)


def _prepare_directory(directory: Path) -> Path:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Cannot create output directory {directory}: {exc}"
        raise UsageError(msg) from exc
    if not os.access(directory, os.W_OK):
        msg = f"Output directory {directory} is not writable"
        raise UsageError(msg)
    return directory


def generate_table(
    x: Any,
    filename: str = "table",
    sub_dir: str | Path | None = None,
    *,
    shading_color: str | None = None,
    document_class: str | None = None,
    extra_packages: str | Iterable[str] | None = None,
    caption: str | None = None,
    caption_short: str | None = None,
    label: str | None = None,
    align: AlignEntry | Sequence[AlignEntry] | None = None,
    longtable: bool | None = None,
    crop: bool = True,
    crop_margin: float | Sequence[float] | None = None,
    theme: str | Theme | None = None,
    footnote: FootnoteSpec | None = None,
    header_above: HeaderSpec | Sequence[HeaderSpec] | None = None,
    collapse_rows: CollapseSpec | Sequence[CollapseSpec] | None = None,
    formatting: CellFormat | Sequence[CellFormat] | None = None,
    header_bold: bool | None = None,
    striped: bool | None = None,
    font_size: str | None = None,
    output_format: str = "pdf",
    dpi: int | None = None,
    settings: Settings | None = None,
    registry: ThemeRegistry | None = None,
) -> Path:
    """Render *x* as a LaTeX table, compile it, and return the main artifact.

    The artifact is the cropped PDF by default; the plain PDF when
    ``crop=False``; the PNG or SVG when ``output_format`` asks for one; or
    the ``.tex`` source for ``output_format="tex"`` (which is still
    compiled, so errors surface).  Files are written to
    ``settings.output_dir`` (joined with *sub_dir* when given).

    ``longtable=None`` switches to a page-breaking table once the row count
    exceeds ``settings.longtable_threshold``.

    Raises:
        UsageError: Invalid input or arguments; nothing is written.
        DependencyMissingError: A required external tool is not installed.
        CompilationError: The LaTeX engine failed.
        PostProcessError: Cropping or conversion failed.
    """
    settings = settings or load_settings()
    frame = as_table(x)

    if frame.shape[0] == 0 or frame.shape[1] == 0:
        msg = f"Input table is empty ({frame.shape[0]} rows, {frame.shape[1]} columns)"
        raise UsageError(msg)
    if output_format not in OUTPUT_FORMATS:
        msg = f"output_format must be one of {', '.join(OUTPUT_FORMATS)}; got {output_format!r}"
        raise UsageError(msg)
    if not isinstance(filename, str):
        msg = f"`filename` must be a string, got {type(filename).__name__}"
        raise UsageError(msg)
    for value, argument in (
        (caption, "caption"),
        (caption_short, "caption_short"),
        (label, "label"),
        (shading_color, "shading_color"),
        (document_class, "document_class"),
    ):
        _check_optional_str(value, argument)
    if footnote is not None and not isinstance(footnote, FootnoteSpec):
        msg = f"`footnote` must be a FootnoteSpec, got {type(footnote).__name__}"
        raise UsageError(msg)

    original_names = list(frame.columns)
    header_names = sanitize_column_names(original_names)
    name_map = column_name_map(original_names)
    frame.columns = header_names
    basename = sanitize_filename(filename)

    headers = _as_specs(header_above, HeaderSpec, "header_above")
    collapse = _as_specs(collapse_rows, CollapseSpec, "collapse_rows")
    formats = _as_specs(formatting, CellFormat, "formatting")
    check_header_spans(headers, frame.shape[1])
    check_collapse_specs(collapse)
    if crop_margin is not None:
        normalize_margins(crop_margin)
    if dpi is not None and dpi <= 0:
        msg = f"dpi must be positive, got {dpi}"
        raise UsageError(msg)

    alignment = resolve_alignment(align, frame)
    if longtable is None:
        longtable = frame.shape[0] > settings.longtable_threshold
    resolved_theme = resolve_theme(theme if theme is not None else settings.default_theme, registry)
    style = compose_style(
        resolved_theme,
        shading_color=shading_color,
        document_class=document_class,
        extra_packages=extra_packages,
        header_bold=header_bold,
        striped=striped,
        font_size=font_size,
        contributed=(
            *alignment.packages,
            *feature_packages(footnote=footnote, collapse=collapse, longtable=longtable),
        ),
    )

    directory = Path(settings.output_dir)
    if sub_dir is not None:
        directory = directory / sub_dir
    _prepare_directory(directory)
    logger.info("Generating LaTeX table %s (%d rows, %d columns)", basename, *frame.shape)

    rendered = apply_features(
        build_table(frame, header_names),
        style,
        frame,
        decimal_columns=alignment.decimal_columns,
        headers=headers,
        collapse=collapse,
        formats=formats,
        footnote=footnote,
        name_map=name_map,
    )
    source = assemble(
        rendered,
        style,
        alignment,
        caption=caption,
        caption_short=caption_short,
        label=label,
        longtable=longtable,
    )

    request = CompilationRequest(source=source, directory=directory, basename=basename)
    result = compile_source(
        request,
        engine=settings.latex_engine,
        timeout=settings.compile_timeout,
    )
    pdf_path = result.raise_for_status()
    logger.info("PDF generated at %s", pdf_path)

    if crop:
        pdf_path = crop_pdf(
            pdf_path,
            directory / f"{basename}_cropped.pdf",
            settings.crop_margin if crop_margin is None else crop_margin,
            command=settings.pdfcrop_command,
            timeout=settings.postprocess_timeout,
        )

    if output_format == "png":
        return convert_to_png(
            pdf_path,
            directory / f"{basename}.png",
            dpi=dpi or settings.png_dpi,
            timeout=settings.postprocess_timeout,
        )
    if output_format == "svg":
        return convert_to_svg(
            pdf_path,
            directory / f"{basename}.svg",
            timeout=settings.postprocess_timeout,
        )
    if output_format == "tex":
        return result.tex_path
    return pdf_path
