from __future__ import annotations

import json
import logging

import pytest

from glbridge.api.logging import BridgeLoggingConfig
from glbridge.runtime.logging import (
    BRIDGE_LOGGER,
    JsonFormatter,
    configure_bridge_logging,
    setup_bridge_logging,
    shutdown_bridge_logging,
)


@pytest.fixture
def bare_root():
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    root.handlers.clear()
    try:
        yield root
    finally:
        shutdown_bridge_logging()
        root.handlers.clear()
        root.handlers.extend(original_handlers)


def test_setup_bridge_logging_scopes_handler_to_bridge_namespace(bare_root) -> None:
    setup_bridge_logging("DEBUG")
    bridge = logging.getLogger(BRIDGE_LOGGER)
    assert len(bridge.handlers) == 1
    assert bridge.level == logging.DEBUG
    assert bridge.propagate is False
    assert bare_root.handlers == []


def test_setup_bridge_logging_defers_to_host_configuration(bare_root) -> None:
    sentinel = logging.NullHandler()
    bare_root.addHandler(sentinel)
    setup_bridge_logging("DEBUG")
    bridge = logging.getLogger(BRIDGE_LOGGER)
    assert bridge.handlers == []
    assert bridge.level == logging.NOTSET
    assert bare_root.handlers == [sentinel]


def test_json_formatter_splits_event_and_fields() -> None:
    record = logging.LogRecord(
        "glbridge.bootstrap",
        logging.WARNING,
        __file__,
        1,
        "gl_bootstrap_missing_extension extension=%s",
        ("GL_ARB_copy_image",),
        None,
    )
    record.gl = {"verified": ["GL_ARB_texture_storage"]}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["event"] == "gl_bootstrap_missing_extension"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "glbridge.bootstrap"
    assert payload["fields"] == {
        "extension": "GL_ARB_copy_image",
        "verified": ["GL_ARB_texture_storage"],
    }


def test_json_formatter_omits_empty_fields() -> None:
    record = logging.LogRecord("glbridge", logging.INFO, __file__, 1, "gl_context_ready", (), None)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["event"] == "gl_context_ready"
    assert "fields" not in payload


def test_configure_bridge_logging_streams_json_to_file(bare_root, tmp_path) -> None:
    log_path = tmp_path / "logs" / "bridge.jsonl"
    configure_bridge_logging(BridgeLoggingConfig(level_name="INFO", file_path=str(log_path)))
    logging.getLogger("glbridge.bootstrap").info("gl_bootstrap_complete builtin_extensions=false verified=6")
    shutdown_bridge_logging()

    payload = json.loads(log_path.read_text(encoding="utf-8").splitlines()[-1])
    assert payload["event"] == "gl_bootstrap_complete"
    assert payload["fields"] == {"builtin_extensions": "false", "verified": "6"}
    assert logging.getLogger(BRIDGE_LOGGER).propagate is True
