"""
Structured logging helpers for pdm2dsf.

Conversion steps are reported as named events (see ``EventType``) with
key/value fields, rendered either for humans or as JSON lines.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePath
from typing import Any


class LogFormat(str, Enum):
    HUMAN = "human"
    JSON = "json"


class EventType(str, Enum):
    PDM_STREAM = "pdm_stream"
    DSF_WRITTEN = "dsf_written"


def _display_value(value: Any) -> Any:
    if isinstance(value, float):
        return round(value, 3)
    if isinstance(value, PurePath):
        return str(value)
    return value


class EventLogger:
    """Wrapper that emits conversion events in human or JSON format."""

    def __init__(self, logger: logging.Logger, log_format: LogFormat = LogFormat.HUMAN) -> None:
        self.logger = logger
        self.log_format = log_format

    def log(self, event: EventType | str, *, level: str = "info", **fields: Any) -> None:
        event_name = event.value if isinstance(event, EventType) else event
        timestamp = datetime.now(timezone.utc).isoformat()
        values = {key: _display_value(value) for key, value in fields.items()}
        log_method = getattr(self.logger, level, self.logger.info)

        if self.log_format == LogFormat.JSON:
            payload = {
                "timestamp": timestamp,
                "event": event_name,
                "fields": values,
            }
            log_method(json.dumps(payload, separators=(",", ":")))
            return

        # sizes first, then the rest alphabetically
        ordered = sorted(values, key=lambda key: (not key.endswith("bytes"), key))
        field_blob = " ".join(f"{key}={values[key]}" for key in ordered)
        message = f"[{event_name}] {timestamp}"
        if field_blob:
            message = f"{message} | {field_blob}"
        log_method(message)


def create_event_logger(logger: logging.Logger, fmt: str | LogFormat) -> EventLogger:
    try:
        log_format = LogFormat(fmt)
    except ValueError:
        log_format = LogFormat.HUMAN
    return EventLogger(logger, log_format)
