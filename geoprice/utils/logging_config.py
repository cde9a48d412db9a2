"""
Logging setup for geoprice.

Console output always, plus a rotating file when one is configured.
``format: json`` in the config (or ``LOG_FORMAT=json`` in the environment)
switches every handler to one JSON object per line.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"

NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "multipart")

# Record attribute holding the fields bound by LogContext
CONTEXT_ATTR = "geoprice_fields"


class JSONFormatter(jsonlogger.JsonFormatter):
    """JSON records with short key names and any LogContext fields."""

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = log_record.pop("asctime", None) or self.formatTime(record)
        log_record["level"] = log_record.pop("levelname", record.levelname)
        log_record["logger"] = log_record.pop("name", record.name)
        log_record["where"] = f"{record.module}:{record.lineno}"
        log_record.update(getattr(record, CONTEXT_ATTR, {}))


def _formatter_for(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter(JSON_FIELDS)
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: Path | str | None = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """
    Configure the root logger.

    Replaces any handlers already installed, so calling it twice (CLI, then
    web app startup) does not duplicate output.

    Args:
        level: Level name, e.g. "INFO" or "DEBUG".
        log_format: "text" or "json". ``LOG_FORMAT`` in the environment wins.
        log_file: Optional path for a rotating log file.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
    """
    env_format = os.environ.get("LOG_FORMAT", "").strip().lower()
    if env_format in ("text", "json"):
        log_format = env_format
    formatter = _formatter_for(log_format.lower())

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug(f"Logging ready (level={level}, format={log_format}, file={log_file or '-'})")


class LogContext:
    """
    Bind fields to every record created inside the block.

        with LogContext(product_id="42", remote_addr="8.8.8.8"):
            logger.info("quoted")    # JSON output carries both fields

    Blocks nest; inner fields win on key clashes.
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._previous = None

    def __enter__(self) -> "LogContext":
        previous = self._previous = logging.getLogRecordFactory()
        fields = self.fields

        def factory(*args, **kwargs) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            bound = getattr(record, CONTEXT_ATTR, {})
            setattr(record, CONTEXT_ATTR, {**bound, **fields})
            return record

        logging.setLogRecordFactory(factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        logging.setLogRecordFactory(self._previous)
        return False
