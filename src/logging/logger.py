# src/logging/logger.py
"""Logging setup for the noiengine logger tree.

Every record carries the render context of the call that emitted it
(entity, render id, template format, pipeline step), so the lines of
one generate() call can be grouped after the fact.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from noiengine.logging.context import get_context

ROOT_LOGGER = "noiengine"


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _record_data(record: logging.LogRecord) -> dict[str, Any] | None:
    data = getattr(record, "data", None)
    return data if isinstance(data, dict) and data else None


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Keys: timestamp, level, logger, message; plus ``context`` while a
    render is in progress, ``data`` when the call passed
    ``extra={"data": {...}}`` and ``exception`` for logged tracebacks.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        render_context = get_context().as_dict()
        if render_context:
            payload["context"] = render_context
        data = _record_data(record)
        if data is not None:
            payload["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Single-line console format, e.g.

    2024-01-02 10:00:00 INFO     noiengine.rendering.engine [claim-1 word-merge] (merge) NOI document generated: ...
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        line = (
            f"{_record_time(record):%Y-%m-%d %H:%M:%S} "
            f"{record.levelname:<8s} {record.name}"
        )
        tags = " ".join(t for t in (ctx.entity_id, ctx.template_format) if t)
        if tags:
            line += f" [{tags}]"
        if ctx.step:
            line += f" ({ctx.step})"
        line += f" {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
    stream: TextIO | None = None,
) -> None:
    """(Re)configure the ``noiengine`` logger.

    Calling it again replaces the previous handlers.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Optional rotating log file next to the console output.
        rotation: Size that triggers a rollover ("10MB").
        retention: Rotated files kept.
        stream: Console stream; stdout when omitted.
    """
    engine_logger = logging.getLogger(ROOT_LOGGER)
    engine_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    engine_logger.handlers.clear()

    formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        from noiengine.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        engine_logger.addHandler(handler)
