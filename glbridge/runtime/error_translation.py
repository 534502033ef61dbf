"""Driver error register translation into typed host errors."""

from __future__ import annotations

from collections.abc import Callable

from glbridge.api.errors import (
    DriverError,
    DriverErrorKind,
    DriverOutOfMemoryError,
    DriverOverflowError,
    DriverStateError,
    DriverUnknownError,
)
from glbridge.native.constants import (
    GL_INVALID_ENUM,
    GL_INVALID_FRAMEBUFFER_OPERATION,
    GL_INVALID_OPERATION,
    GL_INVALID_VALUE,
    GL_NO_ERROR,
    GL_OUT_OF_MEMORY,
    GL_STACK_OVERFLOW,
    GL_STACK_UNDERFLOW,
)

_ERROR_TABLE: dict[int, tuple[DriverErrorKind, type[DriverError], str]] = {
    GL_INVALID_ENUM: (
        DriverErrorKind.BAD_ENUM,
        DriverStateError,
        "An enum value is invalid (GL_INVALID_ENUM)",
    ),
    GL_INVALID_VALUE: (
        DriverErrorKind.BAD_VALUE,
        DriverStateError,
        "A numeric value is invalid (GL_INVALID_VALUE)",
    ),
    GL_INVALID_OPERATION: (
        DriverErrorKind.BAD_OPERATION,
        DriverStateError,
        "This operation is not allowed in the current state (GL_INVALID_OPERATION)",
    ),
    GL_INVALID_FRAMEBUFFER_OPERATION: (
        DriverErrorKind.INCOMPLETE_FRAMEBUFFER,
        DriverStateError,
        "The framebuffer object is not complete (GL_INVALID_FRAMEBUFFER_OPERATION)",
    ),
    GL_OUT_OF_MEMORY: (
        DriverErrorKind.OUT_OF_MEMORY,
        DriverOutOfMemoryError,
        "There is not enough memory left to execute the command (GL_OUT_OF_MEMORY)",
    ),
    GL_STACK_OVERFLOW: (
        DriverErrorKind.STACK_OVERFLOW,
        DriverOverflowError,
        "An operation would cause an internal stack to overflow (GL_STACK_OVERFLOW)",
    ),
    GL_STACK_UNDERFLOW: (
        DriverErrorKind.STACK_UNDERFLOW,
        DriverOverflowError,
        "An operation would cause an internal stack to underflow (GL_STACK_UNDERFLOW)",
    ),
}


def translate_error_code(code: int, *, operation: str = "") -> DriverError | None:
    """Map one error register value to its typed error, or None for GL_NO_ERROR."""
    if code == GL_NO_ERROR:
        return None
    kind, error_type, message = _ERROR_TABLE.get(
        code,
        (DriverErrorKind.UNKNOWN, DriverUnknownError, f"An unknown OpenGL error occurred ({code:#06x})"),
    )
    if operation:
        message = f"{operation}: {message}"
    return error_type(message, kind=kind, code=code, operation=operation)


class ErrorChecker:
    """Queries the driver error register after native calls while enabled."""

    def __init__(self, query: Callable[[], int], *, enabled: bool = True) -> None:
        self._query = query
        self._enabled = bool(enabled)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    def after_call(self, operation: str) -> None:
        """Raise the pending driver error, if any, when checking is enabled."""
        if self._enabled:
            self.check_now(operation)

    def check_now(self, operation: str = "") -> None:
        """Query the register once regardless of the toggle and raise on error."""
        error = translate_error_code(int(self._query()), operation=operation)
        if error is not None:
            raise error
