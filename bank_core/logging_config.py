"""
Structured Logging Configuration Module

JSON log lines for bank core operations. Records may carry user_id, action,
resource and extra attributes; log_action() attaches them.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import json
import logging


STRUCTURED_FIELDS = ("user_id", "action", "resource", "extra")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; absent fields are left out"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "bank_core",
                  log_format: str = "json") -> logging.Logger:
    """
    Attach a single stderr handler to the named logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        logger_name: Logger to configure
        log_format: "json", or anything else for a plain text line

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    return logger


def get_logger(name: str = "bank_core") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               user_id: Optional[int] = None, action: Optional[str] = None,
               resource: Optional[str] = None, extra: Optional[dict] = None):
    """Log message at level ("info", "warning", ...) with structured fields"""
    fields = {
        "user_id": user_id,
        "action": action,
        "resource": resource,
        "extra": extra,
    }
    logger.log(
        getattr(logging, level.upper()),
        message,
        extra={name: value for name, value in fields.items() if value is not None}
    )
