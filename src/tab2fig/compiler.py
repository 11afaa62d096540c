"""Drive the LaTeX engine and classify its outcome.

The engine runs from inside the output directory so its auxiliary files
land next to the source.  The process working directory is always restored
afterwards, including when the engine times out or cannot be started.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from tab2fig.errors import CompilationError, DependencyMissingError
from tab2fig.models import CompilationRequest, CompilationResult

logger = logging.getLogger(__name__)

DIAGNOSTIC_LIMIT = 3


@contextmanager
def run_in_directory(path: Path) -> Iterator[Path]:
    """Change into *path* for the duration of the block."""
    saved = Path.cwd()
    os.chdir(path)
    try:
        yield path
    finally:
        os.chdir(saved)


def write_source(request: CompilationRequest) -> Path:
    """Write ``<basename>.tex``; the directory must already exist."""
    tex_path = request.tex_path
    tex_path.write_text(request.source, encoding="utf-8")
    logger.debug("Wrote %s (%d chars)", tex_path, len(request.source))
    return tex_path


def extract_diagnostics(log_text: str, limit: int = DIAGNOSTIC_LIMIT) -> tuple[str, ...]:
    """First *limit* fatal-error lines (those starting with ``!``) from a log."""
    found: list[str] = []
    for line in log_text.splitlines():
        if line.startswith("!"):
            found.append(line.rstrip())
            if len(found) == limit:
                break
    return tuple(found)


def _read_log(log_path: Path) -> str:
    if not log_path.exists():
        return ""
    return log_path.read_text(encoding="utf-8", errors="replace")


def compile_latex(
    tex_path: Path,
    *,
    engine: str = "pdflatex",
    timeout: float | None = None,
) -> CompilationResult:
    """Run *engine* once over *tex_path* in batch mode.

    Returns a result describing success or failure; call
    ``raise_for_status()`` on it to turn failure into ``CompilationError``.

    Raises:
        DependencyMissingError: *engine* is not on ``PATH``.
        CompilationError: The engine did not finish within *timeout*.
    """
    if shutil.which(engine) is None:
        raise DependencyMissingError([engine], "LaTeX compilation")

    tex_path = Path(tex_path).resolve()
    pdf_path = tex_path.with_suffix(".pdf")
    # A PDF left over from an earlier run would hide a failed compile.
    pdf_path.unlink(missing_ok=True)

    logger.info("Compiling %s with %s", tex_path.name, engine)
    with run_in_directory(tex_path.parent):
        try:
            proc = subprocess.run(
                [engine, "-interaction=batchmode", tex_path.name],
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            msg = f"LaTeX compilation timed out after {timeout} seconds"
            raise CompilationError(msg, log_path=tex_path.with_suffix(".log")) from exc

    produced = pdf_path.exists()
    diagnostics: tuple[str, ...] = ()
    if proc.returncode != 0 or not produced:
        diagnostics = extract_diagnostics(_read_log(tex_path.with_suffix(".log")))
        logger.warning(
            "%s exited with code %d for %s (%d diagnostic line(s))",
            engine,
            proc.returncode,
            tex_path.name,
            len(diagnostics),
        )

    return CompilationResult(
        tex_path=tex_path,
        pdf_path=pdf_path,
        returncode=proc.returncode,
        produced=produced,
        diagnostics=diagnostics,
    )


def compile_source(
    request: CompilationRequest,
    *,
    engine: str = "pdflatex",
    timeout: float | None = None,
) -> CompilationResult:
    """Write *request* to disk and compile it."""
    return compile_latex(write_source(request), engine=engine, timeout=timeout)
