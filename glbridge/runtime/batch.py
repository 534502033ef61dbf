"""Batched resource-handle generation."""

from __future__ import annotations

import ctypes
import numbers
from collections.abc import Callable
from typing import TypeVar

from glbridge.api.errors import ArgumentError, CapacityError
from glbridge.api.handles import GLHandle

MAX_BATCH = 256

THandle = TypeVar("THandle", bound=GLHandle)


def validate_batch_size(n: object, *, operation: str) -> int:
    """Return ``n`` as a request size in [0, MAX_BATCH]."""
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        raise ArgumentError(
            f"{operation}: n must be an integer, got {type(n).__name__}",
            operation=operation,
            parameter="n",
        )
    count = int(n)
    if count < 0:
        raise ArgumentError(
            f"{operation}: n must be non-negative, got {count}", operation=operation, parameter="n"
        )
    if count > MAX_BATCH:
        raise CapacityError(
            f"{operation}: generating more than {MAX_BATCH} names in a single call is not supported",
            operation=operation,
            requested=count,
            limit=MAX_BATCH,
        )
    return count


def generate_handles(
    generate: Callable[[int, int], object],
    n: object,
    handle_type: type[THandle],
    *,
    operation: str,
) -> THandle | tuple[THandle, ...]:
    """Allocate ``n`` names through ``generate(count, staging_address)``.

    A single name is returned as a scalar handle, more than one as a tuple in
    allocation order, and ``n == 0`` as an empty tuple without calling the
    driver.
    """
    count = validate_batch_size(n, operation=operation)
    if count == 0:
        return ()
    staging = (ctypes.c_uint * count)()
    generate(count, ctypes.addressof(staging))
    handles = tuple(handle_type(int(name)) for name in staging)
    if count == 1:
        return handles[0]
    return handles
