from __future__ import annotations

import logging
import logging.config
from pathlib import Path

LOG_FILE_NAME = "vacation_responder.log"

# Chatty third-party loggers that only matter when debugging the API wiring.
_QUIET_LOGGERS = ("googleapiclient.discovery", "googleapiclient.discovery_cache", "schedule")


def configure_logging(log_dir: Path, level: str = "INFO") -> Path:
    """Configure stdout and rotating file logging for the responder.

    Uvicorn's own loggers are routed through the same handlers so that HTTP
    access lines and poll-loop activity end up in one file.
    """

    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME
    root_level = level.upper()

    loggers = {name: {"level": "WARNING"} for name in _QUIET_LOGGERS}
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        loggers[name] = {"handlers": [], "propagate": True}

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s",
            },
            "console": {
                "format": "%(asctime)s %(levelname)s | %(message)s",
                "datefmt": "%H:%M:%S",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "standard",
                "filename": str(log_path),
                "maxBytes": 1_000_000,
                "backupCount": 3,
                "encoding": "utf-8",
            },
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": loggers,
        "root": {
            "handlers": ["file", "stdout"],
            "level": root_level,
        },
    }

    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug("Logging configured at %s, writing to %s", root_level, log_path)
    return log_path
