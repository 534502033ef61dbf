"""One-time capability bootstrap for a GL context."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from glbridge.api.driver import GLDriver
from glbridge.api.errors import BootstrapError, CapabilityMissingError
from glbridge.native.constants import ARB_TEXTURE_BUFFER_OBJECT_RGB32, ARB_TEXTURE_STORAGE

_LOG = logging.getLogger("glbridge.bootstrap")

REQUIRED_EXTENSIONS: tuple[str, ...] = (ARB_TEXTURE_STORAGE, ARB_TEXTURE_BUFFER_OBJECT_RGB32)


@dataclass(frozen=True, slots=True)
class BootstrapReport:
    """Outcome of a successful bootstrap."""

    builtin_extensions: bool
    verified: tuple[str, ...]


def run_capability_bootstrap(
    driver: GLDriver,
    *,
    required: tuple[str, ...] = REQUIRED_EXTENSIONS,
) -> BootstrapReport:
    """Initialize the extension loader and verify required extensions in order."""
    _LOG.debug("gl_bootstrap_start driver=%s", type(driver).__name__)
    try:
        driver.load()
    except BootstrapError:
        raise
    except Exception as exc:
        details: dict[str, object] = {
            "driver": f"{type(driver).__module__}.{type(driver).__name__}",
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        }
        _LOG.warning("gl_bootstrap_failed stage=load", extra={"gl": details})
        raise BootstrapError(
            f"Unable to initialize the OpenGL extension loader: {exc}",
            details=details,
        ) from exc

    if driver.builtin_extensions:
        _LOG.info("gl_bootstrap_complete builtin_extensions=true verified=0")
        return BootstrapReport(builtin_extensions=True, verified=())

    verified: list[str] = []
    for name in required:
        if not driver.extension_supported(name):
            _LOG.warning(
                "gl_bootstrap_missing_extension extension=%s",
                name,
                extra={"gl": {"verified": list(verified)}},
            )
            raise CapabilityMissingError(name)
        verified.append(name)
        _LOG.debug("gl_bootstrap_extension_ok extension=%s", name)
    _LOG.info("gl_bootstrap_complete builtin_extensions=false verified=%d", len(required))
    return BootstrapReport(builtin_extensions=False, verified=tuple(required))
