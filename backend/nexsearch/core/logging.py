import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict

_LOGGING_CONFIGURED = False

# Structured fields copied from `extra=` onto the JSON record when present
STRUCTURED_FIELDS = ("request_id", "adapter", "company", "step", "status_code")


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter for structured logs.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": getattr(record, "service", "nexsearch"),
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_record[field] = getattr(record, field)

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def configure_logging(level: int = logging.INFO) -> None:
    """
    Configure root logger once with JSON output.

    Safe to call multiple times – subsequent calls are no-ops.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs every request at INFO; keep provider URLs (with query params) out of our logs
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """Strip control characters and truncate user-provided text before logging."""
    sanitized = "".join(
        c if c.isprintable() and c not in "\n\r\t" else " " for c in value
    )
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized
