from __future__ import annotations

import math

import pytest

from glbridge.api.errors import ArgumentError, NullPointerError
from glbridge.api.handles import BufferHandle, ProgramHandle, ShaderHandle, TextureHandle
from glbridge.native.descriptors import ArgKind, get_descriptor
from glbridge.runtime.marshal import INT32_MAX, UINT32_MAX, convert_argument, marshal_arguments


def _convert(kind: ArgKind, value: object):
    return convert_argument(kind, value, operation="op", parameter="p")


def test_unsigned_and_enum_values_must_fit_32_bits() -> None:
    assert _convert(ArgKind.UINT, UINT32_MAX) == UINT32_MAX
    assert _convert(ArgKind.ENUM, 0x8C1A) == 0x8C1A
    with pytest.raises(ArgumentError):
        _convert(ArgKind.UINT, -1)
    with pytest.raises(ArgumentError):
        _convert(ArgKind.BITFIELD, UINT32_MAX + 1)


def test_signed_values_must_fit_int32() -> None:
    assert _convert(ArgKind.INT, -5) == -5
    assert _convert(ArgKind.INT, INT32_MAX) == INT32_MAX
    with pytest.raises(ArgumentError):
        _convert(ArgKind.INT, INT32_MAX + 1)
    with pytest.raises(ArgumentError):
        _convert(ArgKind.INT, 1.5)


def test_floats_must_be_finite_float32() -> None:
    assert _convert(ArgKind.FLOAT, 1) == 1.0
    assert _convert(ArgKind.FLOAT, 0.25) == 0.25
    for bad in (math.inf, math.nan, 1e39):
        with pytest.raises(ArgumentError):
            _convert(ArgKind.FLOAT, bad)
    with pytest.raises(ArgumentError):
        _convert(ArgKind.FLOAT, "1.0")


def test_boolean_becomes_zero_or_one() -> None:
    assert _convert(ArgKind.BOOLEAN, True) == 1
    assert _convert(ArgKind.BOOLEAN, 0) == 0
    with pytest.raises(ArgumentError):
        _convert(ArgKind.BOOLEAN, "yes")


def test_text_is_encoded_and_rejects_embedded_nul() -> None:
    assert _convert(ArgKind.TEXT, "tint") == b"tint"
    assert _convert(ArgKind.TEXT, b"raw") == b"raw"
    with pytest.raises(ArgumentError):
        _convert(ArgKind.TEXT, "ti\x00nt")
    with pytest.raises(ArgumentError):
        _convert(ArgKind.TEXT, 12)


def test_handles_must_match_expected_kind() -> None:
    assert _convert(ArgKind.SHADER, ShaderHandle(4)) == 4
    assert _convert(ArgKind.BUFFER, BufferHandle(0)) == 0
    with pytest.raises(ArgumentError):
        _convert(ArgKind.SHADER, ProgramHandle(4))
    with pytest.raises(ArgumentError):
        _convert(ArgKind.TEXTURE, 4)


def test_addresses_reject_null_while_offsets_allow_it() -> None:
    assert _convert(ArgKind.ADDRESS, 0x1000) == 0x1000
    assert _convert(ArgKind.OFFSET, 0) is None
    assert _convert(ArgKind.OFFSET, 16) == 16
    with pytest.raises(NullPointerError):
        _convert(ArgKind.ADDRESS, 0)


def test_marshal_arguments_checks_arity() -> None:
    descriptor = get_descriptor("glBindTexture")
    assert marshal_arguments(descriptor, (0x8C1A, TextureHandle(2))) == (0x8C1A, 2)
    with pytest.raises(ArgumentError, match="takes 2 arguments"):
        marshal_arguments(descriptor, (0x8C1A,))


def test_marshal_arguments_reports_parameter_name() -> None:
    with pytest.raises(ArgumentError) as excinfo:
        marshal_arguments(get_descriptor("glViewport"), (0, 0, -1, 10))
    assert excinfo.value.operation == "glViewport"
    assert excinfo.value.parameter == "width"
