"""
Structured logging configuration with JSON formatter.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides how records are rendered. Fields passed with ``extra={...}`` (trigger
type, counts, bytes) end up as top-level JSON keys.
"""
import logging
import json
import sys
from datetime import date, datetime, timezone
from typing import Any, Dict


# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'message',
})


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON objects.

    Example output:
    {
        "timestamp": "2026-01-19T10:30:45.123456+00:00",
        "level": "INFO",
        "logger": "vehicle_storage.storage.cleanup",
        "message": "Cleanup completed",
        "trigger_type": "zombie_360",
        "files_removed": 12
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = self._serialize_value(value)

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _serialize_value(self, value: Any) -> Any:
        """Convert values json.dumps cannot handle natively."""
        if isinstance(value, (datetime, date)):
            return value.isoformat()

        if isinstance(value, bytes):
            return f"<binary data: {len(value)} bytes>"

        if isinstance(value, Exception):
            return {"type": type(value).__name__, "message": str(value)}

        return value


def setup_json_logging(level: str = "INFO", json_format: bool = True) -> logging.Logger:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSONFormatter when True, plain text otherwise

    Returns:
        The configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    logger.addHandler(handler)

    return logger
