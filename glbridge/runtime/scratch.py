"""Scratch regions the layer allocates and frees around native calls."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import numpy as np

from glbridge.api.errors import AllocationError, ArgumentError


class ScratchArena:
    """Hands out byte regions that are released on every exit path."""

    def __init__(self, *, limit_bytes: int = 0) -> None:
        self._limit_bytes = max(0, int(limit_bytes))
        self._live_regions = 0
        self._allocations = 0
        self._peak_bytes = 0

    @property
    def live_regions(self) -> int:
        return self._live_regions

    @property
    def allocations(self) -> int:
        return self._allocations

    @property
    def peak_bytes(self) -> int:
        return self._peak_bytes

    @contextmanager
    def region(self, nbytes: int, *, zeroed: bool = False) -> Iterator[np.ndarray]:
        """Yield a contiguous uint8 region of ``nbytes`` bytes."""
        size = int(nbytes)
        if size < 0:
            raise ArgumentError(f"scratch size must be non-negative, got {size}", parameter="nbytes")
        if self._limit_bytes and size > self._limit_bytes:
            raise AllocationError(
                f"scratch region of {size} bytes exceeds the {self._limit_bytes} byte limit",
                requested_bytes=size,
            )
        try:
            block = np.zeros(size, dtype=np.uint8) if zeroed else np.empty(size, dtype=np.uint8)
        except MemoryError as exc:
            raise AllocationError(
                f"unable to allocate a {size} byte scratch region",
                requested_bytes=size,
            ) from exc
        self._allocations += 1
        self._live_regions += 1
        self._peak_bytes = max(self._peak_bytes, size)
        try:
            yield block
        finally:
            self._live_regions -= 1
            del block
