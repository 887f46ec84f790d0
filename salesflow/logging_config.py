"""Logging setup for salesflow.

Services log through ``logging.getLogger(__name__)``; this module only wires
handlers onto the ``salesflow`` logger hierarchy. Structured fields are
passed with ``extra={...}`` and end up as keys of the JSON line.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', (), None)).keys()
) | {'message', 'taskName'}

_LOGGER_NAME = 'salesflow'

_configured = False
_lock = threading.Lock()


class _JSONEncoder(json.JSONEncoder):
    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            'ts': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload['exc_type'] = type(exc).__name__
            payload['exc_message'] = str(exc)
            if hasattr(exc, 'code'):
                payload['exc_code'] = exc.code
            payload['traceback'] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder, default=str)


def configure_logging(*, level: str | int = 'INFO', json_lines: bool = True, stream: Any = None) -> None:
    """Attach a single handler to the salesflow logger (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        handler = logging.StreamHandler(stream or sys.stderr)
        if json_lines:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        root = logging.getLogger(_LOGGER_NAME)
        root.addHandler(handler)
        root.setLevel(level)
        root.propagate = False
        _configured = True


def reset_logging() -> None:
    global _configured
    with _lock:
        root = logging.getLogger(_LOGGER_NAME)
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.propagate = True
        _configured = False
