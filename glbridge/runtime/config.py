"""Centralized binding-layer configuration sourced from environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_LOADERS = ("auto", "glfw", "library")
_LOG_FORMATS = ("text", "json")


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    error_checking: bool = True
    headless: bool = False
    loader: str = "auto"
    gl_library: str | None = None
    scratch_limit_bytes: int = 0
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: str | None = None


def _raw(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = os.getenv(name) if env is None else env.get(name)
    return None if value is None else str(value)


def _flag(name: str, default: bool, *, env: Mapping[str, str] | None = None) -> bool:
    raw = _raw(name, env=env)
    if raw is None:
        return bool(default)
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    raw = _raw(name, env=env)
    if raw is None:
        value = int(default)
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = int(default)
    if minimum is None:
        return value
    return max(int(minimum), value)


def _text(name: str, default: str, *, env: Mapping[str, str] | None = None) -> str:
    raw = _raw(name, env=env)
    if raw is None:
        return str(default)
    value = raw.strip()
    return value if value else str(default)


def _normalize_loader(raw: str) -> str:
    value = str(raw).strip().lower()
    if value in {"glfw", "proc", "proc_address"}:
        return "glfw"
    if value in {"library", "lib", "dll", "framework"}:
        return "library"
    return value if value in _LOADERS else "auto"


def resolve_log_level_name(default: str = "INFO", *, env: Mapping[str, str] | None = None) -> str:
    """Resolve log level with bridge-prefixed override."""
    value = _raw("GLBRIDGE_LOG_LEVEL", env=env)
    if value is None:
        value = _raw("LOG_LEVEL", env=env) or default
    return value.strip().upper()


def load_bridge_config(*, env: Mapping[str, str] | None = None) -> BridgeConfig:
    gl_library = _text("GLBRIDGE_GL_LIBRARY", "", env=env)
    log_format = _text("GLBRIDGE_LOG_FORMAT", "text", env=env).lower()
    log_file = _text("GLBRIDGE_LOG_FILE", "", env=env)
    return BridgeConfig(
        error_checking=_flag("GLBRIDGE_ERROR_CHECKING", True, env=env),
        headless=_flag("GLBRIDGE_HEADLESS", False, env=env),
        loader=_normalize_loader(_text("GLBRIDGE_LOADER", "auto", env=env)),
        gl_library=gl_library or None,
        scratch_limit_bytes=_int("GLBRIDGE_SCRATCH_LIMIT_BYTES", 0, minimum=0, env=env),
        log_level=resolve_log_level_name(env=env),
        log_format=log_format if log_format in _LOG_FORMATS else "text",
        log_file=log_file or None,
    )
