"""Typed error taxonomy raised by the GL binding layer."""

from __future__ import annotations

from enum import StrEnum


class GLBridgeError(Exception):
    """Root of every error raised by the binding layer."""


class ArgumentError(GLBridgeError, TypeError, ValueError):
    """Host argument failed arity, type, or range validation before the native call."""

    def __init__(self, message: str, *, operation: str = "", parameter: str = "") -> None:
        super().__init__(message)
        self.operation = operation
        self.parameter = parameter


class CapacityError(ArgumentError):
    """Request exceeds the fixed per-call capacity of the layer."""

    def __init__(self, message: str, *, operation: str = "", requested: int = 0, limit: int = 0) -> None:
        super().__init__(message, operation=operation, parameter="n")
        self.requested = requested
        self.limit = limit


class NullPointerError(GLBridgeError, ValueError):
    """Decoded memory address is null."""

    def __init__(self, message: str, *, operation: str = "", parameter: str = "") -> None:
        super().__init__(message)
        self.operation = operation
        self.parameter = parameter


class AllocationError(GLBridgeError, MemoryError):
    """Local scratch region could not be allocated."""

    def __init__(self, message: str, *, requested_bytes: int = 0) -> None:
        super().__init__(message)
        self.requested_bytes = requested_bytes


class BootstrapError(GLBridgeError, RuntimeError):
    """Extension-loading subsystem could not be initialized."""

    def __init__(self, message: str, *, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})


class CapabilityMissingError(GLBridgeError, RuntimeError):
    """Required or optional driver capability is absent."""

    def __init__(self, capability: str, message: str | None = None) -> None:
        super().__init__(
            message
            or f"The OpenGL driver on this system is missing the required extension: {capability}"
        )
        self.capability = capability


class DriverErrorKind(StrEnum):
    BAD_ENUM = "bad-enum"
    BAD_VALUE = "bad-value"
    BAD_OPERATION = "bad-operation"
    INCOMPLETE_FRAMEBUFFER = "incomplete-framebuffer"
    OUT_OF_MEMORY = "out-of-memory"
    STACK_OVERFLOW = "stack-overflow"
    STACK_UNDERFLOW = "stack-underflow"
    UNKNOWN = "unknown"


class DriverError(GLBridgeError, RuntimeError):
    """Driver reported an error through its error register after a native call."""

    def __init__(self, message: str, *, kind: DriverErrorKind, code: int, operation: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.code = code
        self.operation = operation


class DriverStateError(DriverError, ValueError):
    """Bad enum, value, operation, or incomplete framebuffer."""


class DriverOutOfMemoryError(DriverError, MemoryError):
    """Driver ran out of memory executing the command."""


class DriverOverflowError(DriverError, OverflowError):
    """Driver internal stack overflowed or underflowed."""


class DriverUnknownError(DriverError):
    """Driver reported an error code outside the known set."""
