"""
Structured logging for the session store.

Store modules log through ``logging.getLogger(__name__)`` and attach
context as ``extra={"extra_data": {...}}``. This module renders those
records as one JSON object per line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from pgrest_session.config.settings import StoreSettings


class JSONFormatter(logging.Formatter):
    """
    Log formatter that outputs one JSON object per record.

    Each log entry contains:
    - timestamp: ISO 8601 formatted UTC timestamp
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - message: The log message
    - logger: Name of the logger that produced the entry

    Fields passed in the 'extra_data' attribute of the record are merged
    into the entry.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.module:
            log_data["module"] = record.module
        if record.funcName and record.funcName != "<module>":
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_trace"] = record.stack_info

        return json.dumps(log_data, default=str)


def setup_logging(
    settings: Optional[StoreSettings] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure structured JSON logging on the root logger.

    Existing root handlers are replaced so records are not emitted twice.

    Args:
        settings: Store settings; only ``log_level`` is used. Defaults to INFO.
        stream: Output stream, stdout by default.

    Returns:
        The package logger, "pgrest_session".
    """
    log_level = settings.log_level_value if settings is not None else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    logger = logging.getLogger("pgrest_session")
    logger.debug("Logging configured", extra={
        "extra_data": {"log_level": logging.getLevelName(log_level)}
    })
    return logger
