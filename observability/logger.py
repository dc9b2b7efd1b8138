"""Structured event logging for compliance interview sessions.

Every event is a single log record carrying the payload dict on
``record.event``. The console handler renders it as one readable line;
when ``ENABLE_FILE_LOGS`` is set a rotating handler also writes it as a
JSON line.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "0").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("LOG_FILE", "logs/vendoriq-events.jsonl")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

# Fields worth showing on the console line, in order
CONSOLE_FIELDS = (
    "respondent_id",
    "question",
    "requirement",
    "value",
    "outcome",
    "decision",
    "status",
    "score",
    "error",
)

events = logging.getLogger("vendoriq.events")
events.propagate = False


class ConsoleEventFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("[%(asctime)s] %(levelname)s %(name)s :: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        evt = getattr(record, "event", None)
        if isinstance(evt, dict):
            parts = [f"session={evt.get('session_id')}", f"kind={evt.get('kind')}"]
            parts += [f"{name}={evt[name]}" for name in CONSOLE_FIELDS if evt.get(name) is not None]
            record = logging.makeLogRecord({**record.__dict__, "msg": " ".join(parts), "args": ()})
        return super().format(record)


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        evt = getattr(record, "event", None) or {"message": record.getMessage()}
        return json.dumps(evt, ensure_ascii=False, default=str)


def _install_handlers() -> None:
    if events.handlers:
        return
    events.setLevel(LOG_LEVEL)

    console = logging.StreamHandler(stream=sys.stdout)
    console.setFormatter(ConsoleEventFormatter())
    events.addHandler(console)

    if ENABLE_FILE_LOGS:
        folder = os.path.dirname(LOG_FILE)
        if folder:
            os.makedirs(folder, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            LOG_FILE, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
        )
        rotating.setFormatter(JsonLineFormatter())
        events.addHandler(rotating)


def log_event(kind: str, session_id: str, **fields: Any) -> dict[str, Any]:
    """Record a session event and return the payload that was logged."""

    _install_handlers()
    evt: dict[str, Any] = {"ts": time.time(), "event_id": uuid.uuid4().hex, "kind": kind, "session_id": session_id}
    evt.update(fields)
    events.info(kind, extra={"event": evt})
    return evt


__all__ = ["log_event"]
