"""Log output setup for the gallery service.

Request lines carry ``method``, ``path``, ``status``, ``duration_ms`` and
``request_id``; record operations carry ``record_id``. Both formats render
these from the ``extra`` attributes set at the call sites.
"""

import json
import logging
import sys
from datetime import datetime, timezone

_CONTEXT_FIELDS = ("method", "path", "status", "duration_ms", "request_id", "record_id")

# Fields the text format appends; the rest are already in the message
_TEXT_CONTEXT_FIELDS = ("request_id", "record_id")

# Chatty third-party loggers held at WARNING unless running at DEBUG
_NOISY_LOGGERS = ("botocore", "aiobotocore", "urllib3")


def _context(record: logging.LogRecord, fields: tuple[str, ...]) -> dict[str, object]:
    return {
        name: getattr(record, name)
        for name in fields
        if getattr(record, name, None) is not None
    }


def _timestamp(record: logging.LogRecord) -> str:
    ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record, _CONTEXT_FIELDS),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with request and record ids appended.

    Example: ``... INFO gallery.service: Saved record uploads/1 [record_id=uploads/1]``
    """

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record, _TEXT_CONTEXT_FIELDS)
        if not context:
            return line
        tags = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{tags}]{sep}{tail}"


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        fmt: ``text`` or ``json``.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
        )
