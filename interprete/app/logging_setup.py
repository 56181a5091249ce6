from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from interprete.app.config import app_paths

LOG_FILE_NAME = "interprete.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUPS = 5

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def record_fields(record: logging.LogRecord) -> dict[str, object]:
    """The structured ``extra=`` fields attached to ``record``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event, then the extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exc_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_app_logger(
    name: str = "interprete",
    *,
    debug: bool = False,
) -> tuple[logging.Logger, Path, Path]:
    """
    Route the ``name`` logger tree into a rotating JSON-lines file under the
    user config directory and return ``(logger, log_dir, log_path)``.

    Module loggers (``interprete.pipeline``, ``interprete.capture``, ...)
    propagate into this logger, so one file holds the whole session. Calling
    it again replaces the previous handler.
    """
    log_dir = app_paths().config_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME

    logger = logging.getLogger(name)
    _reset_handlers(logger)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    handler = RotatingFileHandler(log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setFormatter(JsonLineFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    logger.addHandler(handler)
    return logger, log_dir, log_path
