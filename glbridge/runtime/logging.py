"""Logging pipeline for the ``glbridge`` logger namespace.

Bridge records are ``event key=value ...`` lines. The JSON formatter splits
them into an ``event`` name and ``fields``, and merges any structured
``gl`` mapping passed through ``extra`` (bootstrap failure details, for
example).
"""

from __future__ import annotations

import json
import logging
import queue
import re
from datetime import UTC, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path

from glbridge.api.logging import BridgeLoggingConfig

BRIDGE_LOGGER = "glbridge"

_FIELD_PATTERN = re.compile(r"(\w+)=(\S+)")
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_QUEUE_LISTENER: QueueListener | None = None


class JsonFormatter(logging.Formatter):
    """One JSON object per bridge event."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        event, _, rest = message.partition(" ")
        fields: dict[str, object] = dict(_FIELD_PATTERN.findall(rest))
        structured = getattr(record, "gl", None)
        if isinstance(structured, dict):
            fields.update(structured)
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": event,
        }
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_bridge_logging(config: BridgeLoggingConfig) -> None:
    """Install handlers on the ``glbridge`` logger, replacing earlier ones.

    A file sink is written from a queue listener thread so driver calls never
    wait on disk.
    """
    global _QUEUE_LISTENER

    logger = logging.getLogger(BRIDGE_LOGGER)
    _stop_listener()
    logger.handlers.clear()
    logger.setLevel(getattr(logging, config.level_name.upper(), logging.INFO))
    logger.propagate = False

    console = logging.StreamHandler()
    console.setFormatter(_formatter(config.console_format))
    if not config.file_path:
        logger.addHandler(console)
        return

    path = Path(config.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sink = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
    sink.setFormatter(_formatter(config.file_format))
    records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    logger.addHandler(QueueHandler(records))
    _QUEUE_LISTENER = QueueListener(records, console, sink, respect_handler_level=True)
    _QUEUE_LISTENER.start()


def setup_bridge_logging(
    level_name: str = "INFO",
    *,
    console_format: str = "text",
    file_path: str | None = None,
) -> None:
    """Give the bridge its handlers unless the host already configured logging."""
    if logging.getLogger().handlers or logging.getLogger(BRIDGE_LOGGER).handlers:
        return
    configure_bridge_logging(
        BridgeLoggingConfig(level_name=level_name, console_format=console_format, file_path=file_path)
    )


def shutdown_bridge_logging() -> None:
    """Flush the file sink and hand bridge records back to the root logger."""
    logger = logging.getLogger(BRIDGE_LOGGER)
    _stop_listener()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def _stop_listener() -> None:
    global _QUEUE_LISTENER

    if _QUEUE_LISTENER is not None:
        _QUEUE_LISTENER.stop()
        _QUEUE_LISTENER = None


def _formatter(kind: str) -> logging.Formatter:
    if kind.strip().lower() == "json":
        return JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT)
