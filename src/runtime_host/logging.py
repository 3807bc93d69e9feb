from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

# extras copied onto the JSON line when present on the record
_PASSTHROUGH = ("request_id", "status", "bytes", "error_type", "handler", "deadline_ms")


def is_level(name: Optional[str]) -> bool:
    return bool(name) and isinstance(logging.getLevelName(name.upper()), int)


def _json_formatter(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "level": record.levelname.lower(),
        "logger": record.name,
        "msg": record.getMessage(),
    }
    for k in _PASSTHROUGH:
        v = record.__dict__.get(k)
        if v is not None:
            payload[k] = v
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def configure_logging(level: str = "INFO", *, httpx_level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """
    JSON logging to stdout. Replaces any handlers already on the root logger,
    so calling it twice is harmless.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonLogFormatter())
    root.addHandler(handler)

    # httpx logs every request at INFO; one per /next is noisy
    logging.getLogger("httpx").setLevel((httpx_level or level).upper())
    logging.getLogger("httpcore").setLevel("WARNING")
