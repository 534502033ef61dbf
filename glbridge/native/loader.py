"""Entry point address loaders for a current GL context."""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import sys
from typing import Any

from glbridge.api.errors import BootstrapError
from glbridge.native.constants import GL_EXTENSIONS, GL_NUM_EXTENSIONS

_LOG = logging.getLogger("glbridge.native.loader")

_MACOS_FRAMEWORK = "/System/Library/Frameworks/OpenGL.framework/OpenGL"


class GlfwProcLoader:
    """Resolves entry points through GLFW for the calling thread's current context."""

    builtin_extensions = False

    def __init__(self, glfw_module: Any | None = None) -> None:
        self._glfw = glfw_module

    def initialize(self) -> None:
        glfw = self._module()
        if not glfw.get_current_context():
            raise BootstrapError(
                "No current OpenGL context; make a GLFW window context current before bootstrap",
                details={"loader": "glfw"},
            )
        _LOG.debug("gl_loader_ready loader=glfw")

    def get_proc_address(self, name: str) -> int | None:
        address = self._module().get_proc_address(name)
        return int(address) if address else None

    def extension_supported(self, name: str) -> bool:
        return bool(self._module().extension_supported(name))

    def _module(self) -> Any:
        if self._glfw is None:
            try:
                import glfw
            except Exception as exc:
                raise BootstrapError(
                    "GLFW loader unavailable; install 'glfw'",
                    details={
                        "loader": "glfw",
                        "exception_type": exc.__class__.__name__,
                        "exception_message": str(exc),
                    },
                ) from exc
            self._glfw = glfw
        return self._glfw


def default_gl_library_path() -> str | None:
    """Return the platform GL library to open when no path is configured."""
    if sys.platform == "darwin":
        return _MACOS_FRAMEWORK
    if sys.platform == "win32":
        return "opengl32"
    return ctypes.util.find_library("GL") or "libGL.so.1"


class LibraryProcLoader:
    """Resolves entry points from the platform GL shared library.

    The macOS OpenGL framework exports every core and extension entry point
    directly, so extension checks are skipped there.
    """

    def __init__(self, path: str | None = None, *, builtin_extensions: bool | None = None) -> None:
        self._path = path or default_gl_library_path()
        self._builtin = sys.platform == "darwin" if builtin_extensions is None else bool(builtin_extensions)
        self._library: ctypes.CDLL | None = None
        self._resolver: Any = None
        self._extensions: frozenset[str] | None = None

    @property
    def builtin_extensions(self) -> bool:
        return self._builtin

    @property
    def path(self) -> str | None:
        return self._path

    def initialize(self) -> None:
        if self._library is not None:
            return
        try:
            self._library = ctypes.CDLL(self._path)
        except OSError as exc:
            raise BootstrapError(
                f"Unable to open the OpenGL library {self._path!r}: {exc}",
                details={"loader": "library", "path": self._path},
            ) from exc
        self._resolver = self._platform_resolver(self._library)
        _LOG.debug("gl_loader_ready loader=library path=%s builtin=%s", self._path, self._builtin)

    def get_proc_address(self, name: str) -> int | None:
        library = self._require_library()
        symbol = getattr(library, name, None)
        if symbol is not None:
            return ctypes.cast(symbol, ctypes.c_void_p).value
        if self._resolver is None:
            return None
        address = self._resolver(name.encode("ascii"))
        return int(address) if address else None

    def extension_supported(self, name: str) -> bool:
        if self._extensions is None:
            self._extensions = self._query_extensions()
        return name in self._extensions

    def _require_library(self) -> ctypes.CDLL:
        if self._library is None:
            raise BootstrapError("OpenGL library loader used before initialize()", details={"loader": "library"})
        return self._library

    def _query_extensions(self) -> frozenset[str]:
        get_integer = self._function("glGetIntegerv", None, ctypes.c_uint, ctypes.c_void_p)
        get_string_i = self._function("glGetStringi", ctypes.c_char_p, ctypes.c_uint, ctypes.c_uint)
        if get_integer is None or get_string_i is None:
            return frozenset()
        count = ctypes.c_int(0)
        get_integer(GL_NUM_EXTENSIONS, ctypes.addressof(count))
        names: set[str] = set()
        for index in range(max(0, count.value)):
            raw = get_string_i(GL_EXTENSIONS, index)
            if raw:
                names.add(raw.decode("ascii", errors="replace"))
        _LOG.debug("gl_loader_extensions count=%d", len(names))
        return frozenset(names)

    def _function(self, name: str, restype: Any, *argtypes: Any) -> Any:
        address = self.get_proc_address(name)
        if not address:
            return None
        return ctypes.CFUNCTYPE(restype, *argtypes)(address)

    @staticmethod
    def _platform_resolver(library: ctypes.CDLL) -> Any:
        for name in ("glXGetProcAddressARB", "glXGetProcAddress", "wglGetProcAddress", "eglGetProcAddress"):
            resolver = getattr(library, name, None)
            if resolver is not None:
                resolver.argtypes = [ctypes.c_char_p]
                resolver.restype = ctypes.c_void_p
                return resolver
        return None
