"""Integer-encoded memory addresses crossing the native boundary."""

from __future__ import annotations

import ctypes
import numbers

import numpy as np

from glbridge.api.errors import ArgumentError, NullPointerError

POINTER_MAX = (1 << (8 * ctypes.sizeof(ctypes.c_void_p))) - 1


def decode_address(
    value: object,
    *,
    operation: str = "",
    parameter: str = "address",
    nullable: bool = False,
) -> int | None:
    """Decode a host integer into a raw address.

    Returns ``None`` for a null pointer when ``nullable`` is set. The size
    of the referenced region is never verified.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ArgumentError(
            f"{operation}: {parameter} must be an integer address, got {type(value).__name__}",
            operation=operation,
            parameter=parameter,
        )
    address = int(value)
    if address < 0 or address > POINTER_MAX:
        raise ArgumentError(
            f"{operation}: {parameter} {address:#x} is outside the pointer range",
            operation=operation,
            parameter=parameter,
        )
    if address == 0:
        if nullable:
            return None
        raise NullPointerError(
            f"{operation}: {parameter} is not a valid data pointer",
            operation=operation,
            parameter=parameter,
        )
    return address


def address_of(buffer: object) -> int:
    """Return the integer address of a numpy array, ctypes object, or bytearray."""
    if isinstance(buffer, np.ndarray):
        if not buffer.flags.c_contiguous:
            raise ArgumentError("address_of requires a C-contiguous array", parameter="buffer")
        return int(buffer.ctypes.data)
    if isinstance(buffer, (ctypes._SimpleCData, ctypes.Array, ctypes.Structure, ctypes.Union)):
        return ctypes.addressof(buffer)
    if isinstance(buffer, bytearray):
        if not buffer:
            raise ArgumentError("address_of requires a non-empty bytearray", parameter="buffer")
        return ctypes.addressof((ctypes.c_char * len(buffer)).from_buffer(buffer))
    raise ArgumentError(
        f"address_of cannot take the address of {type(buffer).__name__}",
        parameter="buffer",
    )


def extract_channel(
    source: np.ndarray,
    destination: np.ndarray,
    *,
    channels: int = 4,
    channel: int = 0,
) -> None:
    """Copy one interleaved channel of ``source`` into the planar ``destination``."""
    if not 0 <= channel < channels:
        raise ArgumentError(f"channel {channel} outside [0, {channels})", parameter="channel")
    if source.size != destination.size * channels:
        raise ArgumentError(
            f"source holds {source.size} bytes, expected {destination.size * channels}",
            parameter="source",
        )
    np.copyto(destination, source[channel::channels])
