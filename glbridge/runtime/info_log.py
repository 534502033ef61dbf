"""Two-phase retrieval of compile and link diagnostics."""

from __future__ import annotations

import ctypes
from collections.abc import Callable

from glbridge.runtime.scratch import ScratchArena

LOG_MARGIN = 10


def retrieve_info_log(
    *,
    query_length: Callable[[], int],
    fetch: Callable[[int, int, int], object],
    arena: ScratchArena,
) -> bytes:
    """Query the log length, fetch the text once, and return the fetched bytes.

    ``fetch(max_length, length_address, buffer_address)`` receives the
    length reported by ``query_length``; the result holds exactly the byte
    count the fetch wrote back. Allocation failure raises before the fetch.
    """
    reported = max(0, int(query_length()))
    with arena.region(reported + LOG_MARGIN, zeroed=True) as buffer:
        written = ctypes.c_int(0)
        fetch(reported, ctypes.addressof(written), int(buffer.ctypes.data))
        length = min(max(0, int(written.value)), int(buffer.size))
        return buffer[:length].tobytes()
