"""
Structured Logging Configuration Module

Teller log records carry the session, the acting identity, the action and
its outcome as separate fields so they can be filtered without parsing the
message. JSON is the default output; plain text is available for a console.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Record attributes that log_action sets and the JSON output picks up
STRUCTURED_FIELDS = ("session_id", "identity", "action", "outcome", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, empty fields omitted"""

    def format(self, record):
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
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


def setup_logging(level: str = "INFO", logger_name: str = "atm",
                  log_format: str = "json", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the teller's root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Logger to configure; "atm.*" children inherit it
        log_format: "json" for structured output, "text" for plain lines
        log_file: Optional file path; logs go to stderr when omitted

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)

    # Reconfiguring replaces the previous handler
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logger


def get_logger(name: str = "atm") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               identity: Optional[str] = None, action: Optional[str] = None,
               outcome: Optional[str] = None, session_id: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a teller event with structured fields.

    Args:
        logger: Logger instance
        level: Level name (info, warning, error, ...)
        message: Human readable message
        identity: Logged-in identity, if any
        action: Action type or operation name
        outcome: Transition outcome code
        session_id: Teller session the event belongs to
        extra: Any other structured data
    """
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    fields = {
        "session_id": session_id,
        "identity": identity,
        "action": action,
        "outcome": outcome,
        "extra": extra or None,
    }
    logger.log(levelno, message, extra={k: v for k, v in fields.items() if v is not None})
