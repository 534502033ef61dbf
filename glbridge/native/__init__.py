"""Native entry point descriptors, loaders, and drivers."""

from glbridge.native.ctypes_driver import CtypesDriver, function_prototype
from glbridge.native.descriptors import DESCRIPTORS, ArgKind, CallDescriptor, Param, get_descriptor
from glbridge.native.loader import GlfwProcLoader, LibraryProcLoader, default_gl_library_path
from glbridge.native.simulated import SimulatedCall, SimulatedDriver

__all__ = [
    "ArgKind",
    "CallDescriptor",
    "CtypesDriver",
    "DESCRIPTORS",
    "GlfwProcLoader",
    "LibraryProcLoader",
    "Param",
    "SimulatedCall",
    "SimulatedDriver",
    "default_gl_library_path",
    "function_prototype",
    "get_descriptor",
]
