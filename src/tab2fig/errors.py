"""Exception hierarchy for table generation.

Usage problems are raised before any file is written or any external
process is started.  Compilation and post-processing failures carry an
excerpt of the underlying tool's own diagnostics.
"""

from __future__ import annotations

from pathlib import Path


class Tab2FigError(Exception):
    """Base exception for all tab2fig errors."""


class UsageError(Tab2FigError, ValueError):
    """Raised when caller-supplied configuration is structurally invalid."""


class CompilationError(Tab2FigError):
    """Raised when the LaTeX engine fails or produces no PDF."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        diagnostics: tuple[str, ...] = (),
        log_path: Path | None = None,
    ) -> None:
        self.returncode = returncode
        self.diagnostics = diagnostics
        self.log_path = log_path
        super().__init__(message)


class PostProcessError(Tab2FigError):
    """Raised when cropping or format conversion fails."""

    def __init__(
        self,
        tool: str,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        detail = f"{tool}: {message}"
        if stderr:
            detail = f"{detail}\n{stderr}"
        super().__init__(detail)


_INSTALL_HINTS: dict[str, str] = {
    "pdflatex": "install a TeX distribution (TeX Live, MacTeX or MiKTeX)",
    "xelatex": "install a TeX distribution (TeX Live, MacTeX or MiKTeX)",
    "lualatex": "install a TeX distribution (TeX Live, MacTeX or MiKTeX)",
    "pdfcrop": "macOS: brew install pdfcrop; Ubuntu: sudo apt install texlive-extra-utils",
    "magick": "macOS: brew install imagemagick; Ubuntu: sudo apt install imagemagick",
    "convert": "macOS: brew install imagemagick; Ubuntu: sudo apt install imagemagick",
    "pdf2svg": "macOS: brew install pdf2svg; Ubuntu: sudo apt install pdf2svg",
    "inkscape": "see https://inkscape.org/release/",
}


def install_hint(tool: str) -> str:
    return _INSTALL_HINTS.get(tool, "")


class DependencyMissingError(Tab2FigError):
    """Raised when a required external tool is not on ``PATH``."""

    def __init__(self, tools: list[str], purpose: str) -> None:
        self.tools = tools
        self.purpose = purpose
        names = " or ".join(f"'{t}'" for t in tools)
        hint = install_hint(tools[0])
        message = f"{names} not found; required for {purpose}."
        if hint:
            message = f"{message} To install: {hint}"
        super().__init__(message)
