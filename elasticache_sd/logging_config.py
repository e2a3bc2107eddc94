"""Structured logging configuration (JSON or logfmt-style text)."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from .config import LoggingConfig

# Structured context the discovery code attaches via ``extra=``
DISCOVERY_FIELDS = (
    "cluster_id", "node_id", "region", "account_id", "attempt",
    "target_groups", "elapsed_seconds", "output_file", "resource_arn",
)

_NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def _record_extras(record: logging.LogRecord, fields: Iterable[str]) -> dict[str, Any]:
    return {key: getattr(record, key) for key in fields if getattr(record, key, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Records from the background discovery thread carry its name so that loop
    output can be told apart from the file_sd writer on the main thread.
    """

    def __init__(self, fields: Iterable[str] = DISCOVERY_FIELDS) -> None:
        super().__init__()
        self._fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.threadName and record.threadName != "MainThread":
            payload["thread"] = record.threadName
        payload.update(_record_extras(record, self._fields))

        if record.exc_info and record.exc_info[1]:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line followed by ``key=value`` pairs for structured extras."""

    def __init__(self, fields: Iterable[str] = DISCOVERY_FIELDS) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self._fields = tuple(fields)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _record_extras(record, self._fields)
        if not extras:
            return line
        head, sep, tail = line.partition("\n")
        pairs = " ".join(f"{key}={value}" for key, value in extras.items())
        return f"{head} {pairs}{sep}{tail}"


def configure_logging(config: LoggingConfig) -> logging.Handler:
    """Install a single stderr handler on the root logger and return it."""
    root = logging.getLogger()
    root.setLevel(logging.getLevelName(config.level.upper()))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if config.format == "json" else TextFormatter())
    root.addHandler(handler)

    # boto logs every retry and credential lookup at INFO/DEBUG
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return handler
