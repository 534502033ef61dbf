"""Host-to-native argument validation and conversion."""

from __future__ import annotations

import ctypes
import math
import numbers
from collections.abc import Sequence

from glbridge.api.errors import ArgumentError
from glbridge.api.handles import (
    BufferHandle,
    GLHandle,
    ProgramHandle,
    ShaderHandle,
    TextureHandle,
    VertexArrayHandle,
)
from glbridge.native.descriptors import ArgKind, CallDescriptor
from glbridge.runtime.pointers import decode_address

UINT32_MAX = 0xFFFFFFFF
INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
SSIZE_MAX = (1 << (8 * ctypes.sizeof(ctypes.c_ssize_t) - 1)) - 1
FLOAT32_MAX = 3.4028234663852886e38

_HANDLE_TYPES: dict[ArgKind, type[GLHandle]] = {
    ArgKind.SHADER: ShaderHandle,
    ArgKind.PROGRAM: ProgramHandle,
    ArgKind.TEXTURE: TextureHandle,
    ArgKind.BUFFER: BufferHandle,
    ArgKind.VERTEX_ARRAY: VertexArrayHandle,
}

MarshaledValue = int | float | bytes | None


def _integer(value: object, *, operation: str, parameter: str, low: int, high: int) -> int:
    if not isinstance(value, numbers.Integral):
        raise ArgumentError(
            f"{operation}: {parameter} must be an integer, got {type(value).__name__}",
            operation=operation,
            parameter=parameter,
        )
    number = int(value)
    if number < low or number > high:
        raise ArgumentError(
            f"{operation}: {parameter}={number} does not fit in [{low}, {high}]",
            operation=operation,
            parameter=parameter,
        )
    return number


def _float(value: object, *, operation: str, parameter: str) -> float:
    if not isinstance(value, numbers.Real):
        raise ArgumentError(
            f"{operation}: {parameter} must be a real number, got {type(value).__name__}",
            operation=operation,
            parameter=parameter,
        )
    number = float(value)
    if not math.isfinite(number) or abs(number) > FLOAT32_MAX:
        raise ArgumentError(
            f"{operation}: {parameter}={number!r} is not a finite float32 value",
            operation=operation,
            parameter=parameter,
        )
    return number


def _text(value: object, *, operation: str, parameter: str) -> bytes:
    if isinstance(value, str):
        encoded = value.encode("utf-8")
    elif isinstance(value, bytes | bytearray):
        encoded = bytes(value)
    else:
        raise ArgumentError(
            f"{operation}: {parameter} must be str or bytes, got {type(value).__name__}",
            operation=operation,
            parameter=parameter,
        )
    if b"\x00" in encoded:
        raise ArgumentError(
            f"{operation}: {parameter} contains an embedded null character",
            operation=operation,
            parameter=parameter,
        )
    return encoded


def _handle(value: object, kind: ArgKind, *, operation: str, parameter: str) -> int:
    expected = _HANDLE_TYPES[kind]
    if not isinstance(value, expected):
        raise ArgumentError(
            f"{operation}: {parameter} must be a {expected.__name__}, got {type(value).__name__}",
            operation=operation,
            parameter=parameter,
        )
    return _integer(value.value, operation=operation, parameter=parameter, low=0, high=UINT32_MAX)


def convert_argument(kind: ArgKind, value: object, *, operation: str, parameter: str) -> MarshaledValue:
    """Convert one host value to the form its native parameter expects."""
    if kind in (ArgKind.UINT, ArgKind.ENUM, ArgKind.BITFIELD):
        return _integer(value, operation=operation, parameter=parameter, low=0, high=UINT32_MAX)
    if kind is ArgKind.INT:
        return _integer(value, operation=operation, parameter=parameter, low=INT32_MIN, high=INT32_MAX)
    if kind is ArgKind.SIZE:
        return _integer(value, operation=operation, parameter=parameter, low=0, high=SSIZE_MAX)
    if kind is ArgKind.FLOAT:
        return _float(value, operation=operation, parameter=parameter)
    if kind is ArgKind.BOOLEAN:
        if not isinstance(value, numbers.Integral):
            raise ArgumentError(
                f"{operation}: {parameter} must be a bool, got {type(value).__name__}",
                operation=operation,
                parameter=parameter,
            )
        return 1 if value else 0
    if kind is ArgKind.ADDRESS:
        return decode_address(value, operation=operation, parameter=parameter)
    if kind is ArgKind.OFFSET:
        return decode_address(value, operation=operation, parameter=parameter, nullable=True)
    if kind is ArgKind.TEXT:
        return _text(value, operation=operation, parameter=parameter)
    return _handle(value, kind, operation=operation, parameter=parameter)


def marshal_arguments(descriptor: CallDescriptor, args: Sequence[object]) -> tuple[MarshaledValue, ...]:
    """Validate arity and convert every argument; nothing is called on failure."""
    if len(args) != descriptor.arity:
        raise ArgumentError(
            f"{descriptor.name} takes {descriptor.arity} arguments ({len(args)} given)",
            operation=descriptor.name,
        )
    return tuple(
        convert_argument(param.kind, value, operation=descriptor.name, parameter=param.name)
        for param, value in zip(descriptor.params, args, strict=True)
    )
