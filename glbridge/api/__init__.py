"""Public binding-layer API contracts."""

from glbridge.api.context import create_gl_context
from glbridge.api.driver import GLDriver, NativeCall, NativeResult, ProcLoader, create_driver
from glbridge.api.errors import (
    AllocationError,
    ArgumentError,
    BootstrapError,
    CapabilityMissingError,
    CapacityError,
    DriverError,
    DriverErrorKind,
    DriverOutOfMemoryError,
    DriverOverflowError,
    DriverStateError,
    DriverUnknownError,
    GLBridgeError,
    NullPointerError,
)
from glbridge.api.handles import (
    BufferHandle,
    GLHandle,
    ProgramHandle,
    ShaderHandle,
    TextureHandle,
    VertexArrayHandle,
)
from glbridge.api.logging import BridgeLoggingConfig

__all__ = [
    "AllocationError",
    "ArgumentError",
    "BootstrapError",
    "BridgeLoggingConfig",
    "BufferHandle",
    "CapabilityMissingError",
    "CapacityError",
    "DriverError",
    "DriverErrorKind",
    "DriverOutOfMemoryError",
    "DriverOverflowError",
    "DriverStateError",
    "DriverUnknownError",
    "GLBridgeError",
    "GLDriver",
    "GLHandle",
    "NativeCall",
    "NativeResult",
    "NullPointerError",
    "ProcLoader",
    "ProgramHandle",
    "ShaderHandle",
    "TextureHandle",
    "VertexArrayHandle",
    "create_driver",
    "create_gl_context",
]
