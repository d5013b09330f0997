"""JSON logging with stable schema."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

JSON_LOG_FIELDS = (
    "timestamp",
    "event",
    "hazard_id",
    "category",
    "status",
    "error_code",
    "result_count",
    "message",
)


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None),
            "hazard_id": getattr(record, "hazard_id", None),
            "category": getattr(record, "category", None),
            "status": getattr(record, "status", None),
            "error_code": getattr(record, "error_code", None),
            "result_count": getattr(record, "result_count", None),
            "message": record.getMessage(),
        }
        for field in JSON_LOG_FIELDS:
            payload.setdefault(field, None)
        return json.dumps(payload, ensure_ascii=False, default=str)


def build_logger(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger("hazard_watch")
    logger.setLevel(level.upper())
    logger.handlers.clear()

    stream = logging.StreamHandler()
    stream.setFormatter(JsonLineFormatter())
    logger.addHandler(stream)
    return logger


def log_event(logger: logging.Logger, message: str, **event_fields: Any) -> None:
    logger.info(message, extra=event_fields)
