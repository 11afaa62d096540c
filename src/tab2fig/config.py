"""Application settings and logging configuration.

Settings are grouped by concern: output location, external tool names and
timeouts, table layout thresholds, and the default theme.  Every value can be
overridden through ``TAB2FIG_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    output_dir: Path = Path("figures")

    latex_engine: str = "pdflatex"
    pdfcrop_command: str = "pdfcrop"
    crop_margin: float = 10.0
    # None means wait for the tool to finish, however long it takes.
    compile_timeout: float | None = None
    postprocess_timeout: float | None = None

    longtable_threshold: int = 40
    default_theme: str | None = None
    png_dpi: int = 300

    log_path: Path = Path.home() / ".tab2fig" / "tab2fig.log"

    model_config = {"env_prefix": "TAB2FIG_", "env_file": ".env", "extra": "ignore"}


def load_settings() -> Settings:
    """Load application settings. Creates a fresh instance each call (no caching)."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Set up root logger with stderr and file handlers at INFO level.

    Idempotent: returns early if root logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        return
    settings.log_path.parent.mkdir(parents=True, exist_ok=True)
    root.setLevel(logging.INFO)

    fmt = logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")

    stderr_handler = logging.StreamHandler()
    stderr_handler.setLevel(logging.INFO)
    stderr_handler.setFormatter(fmt)
    root.addHandler(stderr_handler)

    file_handler = RotatingFileHandler(
        settings.log_path,
        maxBytes=5_000_000,  # 5 MB per file
        backupCount=3,  # keep tab2fig.log.1, .2, .3
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)
