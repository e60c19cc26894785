"""Logging setup for the wbi-charts CLI and library.

Console output is human-readable by default (``--json-logs`` switches it to
JSON); a rotating JSON log under ``logs/`` (or ``$WBI_LOG_DIR``) keeps the
full DEBUG trail of fetches, layouts and renders.
"""

import logging
import logging.config
import os
from pathlib import Path
from typing import Any

DEFAULT_LOG_DIR = "logs"
LOG_DIR_ENV = "WBI_LOG_DIR"
LOG_FILE = "wbi_charts.log"

# Chatty at DEBUG (font discovery, connection pool, PNG chunks)
QUIET_LOGGERS = ("matplotlib", "urllib3", "PIL")


def build_logging_config(
    json_output: bool = False,
    log_level: str = "INFO",
    log_dir: str | Path = DEFAULT_LOG_DIR,
) -> dict[str, Any]:
    """Return a fresh ``dictConfig`` mapping.

    Args:
        json_output: Use the JSON formatter on the console too
        log_level: Console and package level (case-insensitive)
        log_dir: Directory of the rotating JSON log file
    """
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
            "console": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if json_output else "console",
                "stream": "ext://sys.stderr",
            },
            "json_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "json",
                "filename": str(Path(log_dir) / LOG_FILE),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "encoding": "utf-8",
            },
        },
        "loggers": {
            "wbi_charts": {
                "level": level,
                "handlers": ["console", "json_file"],
                "propagate": False,
            },
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        },
        "root": {
            "level": "INFO",
            "handlers": ["console"],
        },
    }


def setup_logging(
    json_output: bool = False,
    log_level: str = "INFO",
    log_dir: str | Path | None = None,
) -> Path:
    """Configure logging for a CLI run and return the log file path."""
    directory = Path(log_dir or os.getenv(LOG_DIR_ENV) or DEFAULT_LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(json_output, log_level, directory))
    return directory / LOG_FILE


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass structured context through ``extra``.

    Example:
        logger = get_logger(__name__)
        logger.info("Chart written", extra={"path": "gdp.svg", "series": 4})
    """
    return logging.getLogger(name)
