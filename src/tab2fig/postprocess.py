"""Cropping and format conversion of compiled PDFs.

Every step checks that its external tool exists before running it and
verifies that the expected output file appeared afterwards.
"""

from __future__ import annotations

import logging
import numbers
import shutil
import subprocess
from collections.abc import Iterable, Sequence
from pathlib import Path

from tab2fig.config import Settings
from tab2fig.errors import DependencyMissingError, PostProcessError, UsageError, install_hint

logger = logging.getLogger(__name__)

_STDERR_EXCERPT = 500

PNG_TOOLS = ("magick", "convert")
SVG_TOOLS = ("pdf2svg", "inkscape")


def command_exists(command: str) -> bool:
    return shutil.which(command) is not None


def _first_available(tools: Sequence[str], purpose: str) -> str:
    for tool in tools:
        if command_exists(tool):
            return tool
    raise DependencyMissingError(list(tools), purpose)


def _run_tool(tool: str, args: list[str], timeout: float | None) -> None:
    logger.debug("Running %s", " ".join([tool, *args]))
    try:
        proc = subprocess.run(
            [tool, *args],
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        msg = f"timed out after {timeout} seconds"
        raise PostProcessError(tool, msg) from exc

    if proc.returncode != 0:
        stderr = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
        msg = f"exited with code {proc.returncode}"
        raise PostProcessError(
            tool,
            msg,
            returncode=proc.returncode,
            stderr=stderr[-_STDERR_EXCERPT:],
        )


def normalize_margins(margin: float | Sequence[float]) -> str:
    """Format a pdfcrop ``--margins`` value from one or four numbers (bp).

    Four values are ordered left, top, right, bottom.
    """
    if isinstance(margin, numbers.Real):
        values = [margin]
    elif isinstance(margin, Iterable) and not isinstance(margin, str):
        values = list(margin)
    else:
        msg = f"Crop margin must be a number or a sequence of numbers, got {margin!r}"
        raise UsageError(msg)
    if len(values) not in (1, 4):
        msg = f"Crop margin must be one number or four numbers, got {len(values)}"
        raise UsageError(msg)
    for value in values:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            msg = f"Crop margins must be numbers, got {value!r}"
            raise UsageError(msg)
    return " ".join(f"{float(v):g}" for v in values)


def crop_pdf(
    input_path: Path,
    output_path: Path,
    margin: float | Sequence[float] = 10,
    *,
    command: str = "pdfcrop",
    timeout: float | None = None,
) -> Path:
    """Crop *input_path* to its content bounding box plus *margin*.

    Raises:
        DependencyMissingError: *command* is not on ``PATH``.
        PostProcessError: The tool failed or wrote no output.
    """
    margins = normalize_margins(margin)
    if not command_exists(command):
        raise DependencyMissingError([command], "PDF cropping")

    input_path = Path(input_path)
    output_path = Path(output_path)
    logger.info("Cropping PDF %s", input_path.name)
    _run_tool(command, ["--margins", margins, str(input_path), str(output_path)], timeout)

    if not output_path.exists():
        # Some pdfcrop builds ignore the output argument and write <stem>-crop.pdf.
        fallback = input_path.with_name(f"{input_path.stem}-crop.pdf")
        if fallback.exists():
            fallback.replace(output_path)
    if not output_path.exists():
        msg = f"PDF cropping failed: {output_path} was not created"
        raise PostProcessError(command, msg)

    logger.debug("Cropped %s -> %s", input_path.name, output_path.name)
    return output_path


def convert_to_png(
    input_path: Path,
    output_path: Path | None = None,
    dpi: int = 300,
    background: str = "white",
    *,
    timeout: float | None = None,
) -> Path:
    """Rasterize a PDF with ImageMagick, flattening onto *background*."""
    if dpi <= 0:
        msg = f"dpi must be positive, got {dpi}"
        raise UsageError(msg)
    tool = _first_available(PNG_TOOLS, "PNG conversion")
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path else input_path.with_suffix(".png")

    _run_tool(
        tool,
        [
            "-density",
            str(dpi),
            str(input_path),
            "-background",
            background,
            "-flatten",
            str(output_path),
        ],
        timeout,
    )
    if not output_path.exists():
        msg = f"PNG conversion failed: {output_path} was not created"
        raise PostProcessError(tool, msg)
    logger.info("Converted %s -> %s at %d dpi", input_path.name, output_path.name, dpi)
    return output_path


def convert_to_svg(
    input_path: Path,
    output_path: Path | None = None,
    *,
    timeout: float | None = None,
) -> Path:
    """Convert a PDF to SVG with pdf2svg, or Inkscape when pdf2svg is missing."""
    tool = _first_available(SVG_TOOLS, "SVG conversion")
    input_path = Path(input_path)
    output_path = Path(output_path) if output_path else input_path.with_suffix(".svg")

    if tool == "pdf2svg":
        args = [str(input_path), str(output_path)]
    else:
        args = [str(input_path), f"--export-filename={output_path}"]
    _run_tool(tool, args, timeout)

    if not output_path.exists():
        msg = f"SVG conversion failed: {output_path} was not created"
        raise PostProcessError(tool, msg)
    logger.info("Converted %s -> %s", input_path.name, output_path.name)
    return output_path


def available_output_formats() -> dict[str, bool]:
    return {
        "pdf": True,
        "tex": True,
        "png": any(command_exists(t) for t in PNG_TOOLS),
        "svg": any(command_exists(t) for t in SVG_TOOLS),
    }


def check_dependencies(settings: Settings | None = None) -> dict[str, bool]:
    """Report whether the LaTeX engine and pdfcrop are installed."""
    settings = settings or Settings()
    status = {
        "engine": command_exists(settings.latex_engine),
        "pdfcrop": command_exists(settings.pdfcrop_command),
    }
    tools = {"engine": settings.latex_engine, "pdfcrop": settings.pdfcrop_command}
    for key, present in status.items():
        if not present:
            logger.warning(
                "%s not found. To install: %s",
                tools[key],
                install_hint(tools[key]) or "see your package manager",
            )
    status["ready"] = status["engine"] and status["pdfcrop"]
    return status
