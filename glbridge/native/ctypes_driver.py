"""Native GL driver bound through ctypes function pointers."""

from __future__ import annotations

import ctypes
import logging

from glbridge.api.driver import NativeCall, ProcLoader
from glbridge.native.descriptors import CallDescriptor

_LOG = logging.getLogger("glbridge.native.ctypes_driver")


def function_prototype(descriptor: CallDescriptor) -> type:
    """Build the ctypes prototype for one descriptor.

    Blocking calls use ``CFUNCTYPE``, which releases the interpreter lock
    while the native call runs; the rest use ``PYFUNCTYPE``, which keeps it.
    """
    factory = ctypes.CFUNCTYPE if descriptor.blocking else ctypes.PYFUNCTYPE
    return factory(descriptor.restype, *descriptor.argtypes)


class CtypesDriver:
    """GL driver backed by entry points resolved from a proc-address loader."""

    def __init__(self, loader: ProcLoader) -> None:
        self._loader = loader

    @property
    def loader(self) -> ProcLoader:
        return self._loader

    @property
    def builtin_extensions(self) -> bool:
        return bool(self._loader.builtin_extensions)

    def load(self) -> None:
        self._loader.initialize()

    def extension_supported(self, name: str) -> bool:
        return bool(self._loader.extension_supported(name))

    def bind(self, descriptor: CallDescriptor) -> NativeCall | None:
        address = self._loader.get_proc_address(descriptor.name)
        if not address:
            _LOG.debug("gl_entry_point_missing name=%s", descriptor.name)
            return None
        return function_prototype(descriptor)(address)
