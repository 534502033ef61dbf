"""Native driver boundary contracts."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from glbridge.native.descriptors import CallDescriptor
    from glbridge.runtime.config import BridgeConfig

NativeResult = int | float | bytes | None
NativeCall = Callable[..., NativeResult]


class GLDriver(Protocol):
    """Source of bound native entry points for one GL context.

    Implementations receive already-marshaled arguments: integers, floats,
    bytes, and integer memory addresses (``None`` for a null pointer).
    """

    @property
    def builtin_extensions(self) -> bool:
        """True when the base library exposes extensions without a loader step."""

    def load(self) -> None:
        """Initialize the extension-loading subsystem; raise on failure."""

    def extension_supported(self, name: str) -> bool:
        """Return whether the named extension (``GL_ARB_...``) is available."""

    def bind(self, descriptor: CallDescriptor) -> NativeCall | None:
        """Return a callable for the descriptor's entry point, or None when absent.

        Descriptors marked ``blocking`` must be bound so that the host
        interpreter lock is released for the duration of the native call.
        """


class ProcLoader(Protocol):
    """Resolves GL entry point addresses for the current context."""

    @property
    def builtin_extensions(self) -> bool: ...

    def initialize(self) -> None: ...

    def get_proc_address(self, name: str) -> int | None: ...

    def extension_supported(self, name: str) -> bool: ...


def create_driver(config: BridgeConfig | None = None) -> GLDriver:
    """Create the driver selected by configuration.

    Headless configurations get the in-process simulated driver. ``auto``
    prefers the GLFW loader when the ``glfw`` package is importable and an
    explicit library path is not configured.
    """
    import importlib.util
    import sys

    from glbridge.native.ctypes_driver import CtypesDriver
    from glbridge.native.loader import GlfwProcLoader, LibraryProcLoader
    from glbridge.native.simulated import SimulatedDriver
    from glbridge.runtime.config import load_bridge_config

    cfg = config or load_bridge_config()
    if cfg.headless:
        return SimulatedDriver()
    loader = cfg.loader
    if loader == "auto":
        use_library = bool(cfg.gl_library) or sys.platform == "darwin"
        use_library = use_library or importlib.util.find_spec("glfw") is None
        loader = "library" if use_library else "glfw"
    if loader == "library":
        return CtypesDriver(LibraryProcLoader(cfg.gl_library))
    return CtypesDriver(GlfwProcLoader())
