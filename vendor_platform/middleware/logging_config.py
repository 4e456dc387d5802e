"""
Structured logging configuration.

- Development: one readable line per record, tagged with vendor/entity context
- Production: JSON, one object per line
- Log level: LOG_LEVEL env variable
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Request fields set by the timing middleware.
_REQUEST_KEYS = ("request_id", "method", "path", "status", "duration_ms", "remote_addr")
# Domain fields services attach through ``extra=``.
_CONTEXT_KEYS = ("vendor_id", "entity_type", "entity_id", "event_type")


def _present(record: logging.LogRecord, keys) -> dict:
    return {k: getattr(record, k) for k in keys if getattr(record, k, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own creation time."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(_present(record, _REQUEST_KEYS))
        payload.update(_present(record, _CONTEXT_KEYS))
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Short console line: ``HH:MM:SS LEVEL logger: message {vendor=7 document#3} [12ms]``."""

    LEVEL_COLORS = {
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        color = self.LEVEL_COLORS.get(record.levelno, "")
        level = f"{color}{record.levelname:<8}{self.RESET if color else ''}"
        line = f"{ts} {level} {record.name}: {record.getMessage()}"

        context = []
        if getattr(record, "vendor_id", None) is not None:
            context.append(f"vendor={record.vendor_id}")
        if getattr(record, "entity_type", None) and getattr(record, "entity_id", None) is not None:
            context.append(f"{record.entity_type}#{record.entity_id}")
        if context:
            line += " {" + " ".join(context) + "}"

        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    JSON outside debug/testing, readable otherwise. The handler list is
    reset so repeated ``create_app`` calls in tests do not stack handlers.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # werkzeug duplicates the timing middleware's access line
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    if not app.config.get("SQLALCHEMY_ECHO"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    app.logger.setLevel(level)
    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, "JSON" if is_prod else "readable")
