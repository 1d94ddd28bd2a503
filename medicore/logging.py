"""Logging setup for the terminal app.

Records go to ``settings.log_file`` when it is set, so they do not interleave
with the interactive prompts; otherwise to stderr.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from medicore.settings import settings

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUPS = 3

# Third-party loggers that are chatty below WARNING.
NOISY_LOGGERS = ("sqlalchemy.engine", "alembic.runtime.migration", "fontTools", "fpdf")


def _build_handler() -> logging.Handler:
    if settings.log_file:
        path = Path(settings.log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    return logging.StreamHandler(sys.stderr)


def _build_formatter() -> logging.Formatter:
    if settings.log_json:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt=JSON_FORMAT,
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    return logging.Formatter(TEXT_FORMAT)


def configure_logging() -> None:
    """Install a single root handler based on settings. Call once at startup."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = _build_handler()
    handler.setFormatter(_build_formatter())

    root = logging.getLogger()
    root.setLevel(level)
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def reconfigure() -> None:
    """Re-apply the configuration after Alembic's ``fileConfig`` replaced the root handlers."""
    configure_logging()
