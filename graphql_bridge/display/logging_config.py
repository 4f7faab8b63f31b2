"""Logging configuration setup."""

import logging
import logging.config
import os
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from graphql_bridge.constants import LOG_DIR

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_FILE_FORMAT = "%(asctime)s - %(name)30s:%(lineno)-4d - %(levelname)-7s - %(message)s"

# Loggers whose level follows the requested level.
_APP_LOGGERS = ("graphql_bridge", "uvicorn", "uvicorn.error", "starlette")


def _file_logger(level: str) -> Dict[str, Any]:
    return {"handlers": ["file_handler"], "propagate": False, "level": level}


def build_log_config(log_fpath: str, level: str) -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping that sends every record to *log_fpath*."""
    verbose = level == "DEBUG"
    loggers = {name: _file_logger(level) for name in _APP_LOGGERS}
    # Access lines only when debugging.
    loggers["uvicorn.access"] = _file_logger("INFO" if verbose else "WARNING")
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "file": {"format": _FILE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": {
            "file_handler": {
                "class": "logging.FileHandler",
                "level": "DEBUG",
                "formatter": "file",
                "filename": log_fpath,
                "encoding": "utf-8",
            },
        },
        "loggers": loggers,
        "root": {"handlers": ["file_handler"], "level": level if verbose else "WARNING"},
    }


def setup_logging(log_lvl_str: str, *, log_dir: Optional[str] = None) -> Tuple[str, str]:
    """Log to a timestamped file under *log_dir* (default ``logs/``).

    An unknown level falls back to ``INFO``.

    Returns:
        A tuple of (log_file_path, validated_log_level).
    """
    level = log_lvl_str.upper()
    unknown = level not in VALID_LEVELS
    if unknown:
        level = "INFO"

    log_dir = log_dir or LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_fpath = os.path.join(log_dir, f"graphql_bridge_{ts}_{level}.log")

    logging.config.dictConfig(build_log_config(log_fpath, level))
    if unknown:
        logging.getLogger(__name__).warning("Unknown log level '%s'; using INFO.", log_lvl_str)
    return log_fpath, level
