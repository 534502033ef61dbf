from __future__ import annotations

import ctypes

import pytest

from glbridge.api.errors import AllocationError
from glbridge.runtime.info_log import LOG_MARGIN, retrieve_info_log
from glbridge.runtime.scratch import ScratchArena


def test_returns_exactly_the_fetched_length() -> None:
    arena = ScratchArena()
    seen: list[int] = []

    def fetch(max_length: int, length_address: int, buffer_address: int) -> None:
        seen.append(max_length)
        ctypes.memmove(buffer_address, b"bad\x00", 4)
        ctypes.c_int.from_address(length_address).value = 3

    assert retrieve_info_log(query_length=lambda: 4, fetch=fetch, arena=arena) == b"bad"
    assert seen == [4]
    assert arena.live_regions == 0
    assert arena.peak_bytes == 4 + LOG_MARGIN


def test_empty_log_fetches_once_with_zero_length() -> None:
    calls: list[int] = []

    def fetch(max_length: int, length_address: int, buffer_address: int) -> None:
        calls.append(max_length)

    assert retrieve_info_log(query_length=lambda: 0, fetch=fetch, arena=ScratchArena()) == b""
    assert calls == [0]


def test_allocation_failure_skips_fetch() -> None:
    calls: list[int] = []
    with pytest.raises(AllocationError):
        retrieve_info_log(
            query_length=lambda: 100,
            fetch=lambda *args: calls.append(1),
            arena=ScratchArena(limit_bytes=50),
        )
    assert calls == []


def test_scratch_released_when_fetch_raises() -> None:
    arena = ScratchArena()

    def fetch(max_length: int, length_address: int, buffer_address: int) -> None:
        raise RuntimeError("driver failure")

    with pytest.raises(RuntimeError):
        retrieve_info_log(query_length=lambda: 10, fetch=fetch, arena=arena)
    assert arena.live_regions == 0
