"""Structured event logging for interview turns and oracle calls.

Every event is one flat dict keyed by ``kind`` and ``interview_id``. The
console (and the optional human log file) gets a one-line summary; the
optional JSON log file gets the full payload.
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
LOG_FILE = os.getenv("LOG_FILE", "logs/interview-events.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

SUMMARY_KEYS = ("node", "action", "topic", "follow_up", "asked", "ms", "reason", "outcome")

_logger = logging.getLogger("interview.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


def _is_json(record: logging.LogRecord) -> bool:
    return getattr(record, "is_json", False) is True


def _attach(handler: logging.Handler, *, json_lines: bool) -> None:
    handler.setLevel(LOG_LEVEL)
    if json_lines:
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.addFilter(_is_json)
    else:
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s %(name)s :: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        handler.addFilter(lambda record: not _is_json(record))
    _logger.addHandler(handler)


def _rotating(path: str) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)


def _ensure_handlers() -> None:
    if _logger.handlers:
        return
    _attach(logging.StreamHandler(stream=sys.stdout), json_lines=False)
    if not ENABLE_FILE_LOGS:
        return

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    base, ext = os.path.splitext(LOG_FILE)
    _attach(_rotating(LOG_FILE), json_lines=True)
    _attach(_rotating(f"{base}-human{ext or '.log'}"), json_lines=False)


def _format_human(evt: dict[str, Any]) -> str:
    extras = [f"{key}={evt[key]}" for key in SUMMARY_KEYS if key in evt]
    base = f"interview={evt.get('interview_id')} kind={evt.get('kind')}"
    return " ".join([base, *extras])


def _emit(level: int, message: str, *, is_json: bool) -> None:
    record = _logger.makeRecord(_logger.name, level, "", 0, message, (), None)
    record.is_json = is_json  # type: ignore[attr-defined]
    _logger.handle(record)


def log_event(kind: str, interview_id: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one interview event to the configured handlers."""

    _ensure_handlers()
    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "interview_id": interview_id,
    }
    payload.update(fields)

    _emit(level, _format_human(payload), is_json=False)
    if ENABLE_FILE_LOGS:
        _emit(level, json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


__all__ = ["log_event"]
