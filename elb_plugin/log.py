"""Logging helpers.

Plugin output goes to stdout and is parsed by the agent, so every handler
installed here writes to stderr.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Iterable

DEFAULT_REDACTION_PATTERNS = ("secret", "key", "token", "password")

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with credential-looking fields redacted."""

    def __init__(self, redaction_patterns: Iterable[str] = DEFAULT_REDACTION_PATTERNS):
        super().__init__()
        self.patterns = [p.lower() for p in redaction_patterns]

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            k: v
            for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS and not k.startswith("_")
        }
        data.update(self.redact(extra))
        if record.exc_info:
            et, ev, tb = record.exc_info
            data["exception"] = {
                "type": et.__name__,
                "message": str(ev),
                "stack": traceback.format_tb(tb),
            }
        return json.dumps(data, default=str)

    def redact(self, data: dict) -> dict:
        out = {}
        for k, v in data.items():
            if any(p in k.lower() for p in self.patterns):
                out[k] = "[REDACTED]"
            elif isinstance(v, dict):
                out[k] = self.redact(v)
            else:
                out[k] = v
        return out


_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def configure_logging(level: str = "WARNING", json_format: bool = False) -> logging.Logger:
    global _configured

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    _configured = True
    return root


def get_logger(name: str, auto_configure: bool = True) -> logging.Logger:
    """Return a named logger, installing a minimal stderr handler on first use."""
    global _configured

    if auto_configure and not _configured:
        logging.basicConfig(
            level=logging.WARNING,
            stream=sys.stderr,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        _configured = True

    return logging.getLogger(name)
