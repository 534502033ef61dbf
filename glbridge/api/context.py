"""Public GL context entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from glbridge.api.driver import GLDriver
    from glbridge.runtime.config import BridgeConfig
    from glbridge.runtime.context import GLContext


def create_gl_context(
    *,
    driver: GLDriver | None = None,
    config: BridgeConfig | None = None,
    bootstrap: bool = True,
) -> GLContext:
    """Create a GL context over ``driver`` (or the configured one) and bootstrap it."""
    from glbridge.api.driver import create_driver
    from glbridge.runtime.config import load_bridge_config
    from glbridge.runtime.context import GLContext
    from glbridge.runtime.logging import setup_bridge_logging

    cfg = config or load_bridge_config()
    setup_bridge_logging(cfg.log_level, console_format=cfg.log_format, file_path=cfg.log_file)
    context = GLContext(driver if driver is not None else create_driver(cfg), config=cfg)
    if bootstrap:
        context.bootstrap()
    return context
