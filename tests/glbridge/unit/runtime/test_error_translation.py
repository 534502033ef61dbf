from __future__ import annotations

import pytest

from glbridge.api.errors import (
    DriverErrorKind,
    DriverOutOfMemoryError,
    DriverOverflowError,
    DriverStateError,
    DriverUnknownError,
)
from glbridge.runtime.error_translation import ErrorChecker, translate_error_code


@pytest.mark.parametrize(
    ("code", "kind", "error_type"),
    [
        (0x0500, DriverErrorKind.BAD_ENUM, DriverStateError),
        (0x0501, DriverErrorKind.BAD_VALUE, DriverStateError),
        (0x0502, DriverErrorKind.BAD_OPERATION, DriverStateError),
        (0x0506, DriverErrorKind.INCOMPLETE_FRAMEBUFFER, DriverStateError),
        (0x0505, DriverErrorKind.OUT_OF_MEMORY, DriverOutOfMemoryError),
        (0x0503, DriverErrorKind.STACK_OVERFLOW, DriverOverflowError),
        (0x0504, DriverErrorKind.STACK_UNDERFLOW, DriverOverflowError),
        (0x9999, DriverErrorKind.UNKNOWN, DriverUnknownError),
    ],
)
def test_translate_error_code_categorizes(code: int, kind: DriverErrorKind, error_type: type) -> None:
    error = translate_error_code(code, operation="glClear")
    assert type(error) is error_type
    assert error.kind is kind
    assert error.code == code
    assert str(error).startswith("glClear: ")


def test_translate_no_error_is_none() -> None:
    assert translate_error_code(0) is None


def test_unknown_code_message_includes_hex_value() -> None:
    assert "0x9999" in str(translate_error_code(0x9999))


def test_checker_queries_once_per_call_when_enabled() -> None:
    codes = [0, 0x0501]
    checker = ErrorChecker(lambda: codes.pop(0))
    checker.after_call("glViewport")
    with pytest.raises(DriverStateError):
        checker.after_call("glViewport")
    assert codes == []


def test_checker_disabled_never_queries() -> None:
    queries: list[int] = []

    def query() -> int:
        queries.append(1)
        return 0x0500

    checker = ErrorChecker(query, enabled=False)
    checker.after_call("glEnable")
    assert queries == []
    with pytest.raises(DriverStateError):
        checker.check_now("check_error")
    assert queries == [1]
