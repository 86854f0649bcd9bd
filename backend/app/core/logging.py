# app/core/logging.py
"""
Logs JSON sur stdout, une ligne par événement.

Les modules loggent via logging.getLogger(__name__) et passent le
contexte métier dans `extra` (rdv_id, processed, sent, failed, error…).
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_KNOWN_FIELDS = {
    "method",
    "path",
    "status_code",
    "user_id",
    "visite_id",
    "rdv_id",
    "processed",
    "sent",
    "failed",
    "recipients",
    "error",
}


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        fields: Dict[str, Any] = {
            key: value for key, value in record.__dict__.items() if key in _KNOWN_FIELDS
        }
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)

        error_value = fields.get("error")
        if isinstance(error_value, str):
            fields["error"] = error_value[:500]

        if fields:
            payload["fields"] = fields
        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(level_name: str = "INFO") -> None:
    root_logger = logging.getLogger()
    if getattr(root_logger, "_salestracker_configured", False):
        return

    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonLogFormatter())

    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger._salestracker_configured = True  # type: ignore[attr-defined]
