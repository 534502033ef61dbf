from __future__ import annotations

import dataclasses

import pytest

from glbridge.api.handles import BufferHandle, ProgramHandle, ShaderHandle, TextureHandle, VertexArrayHandle


def test_handles_of_different_kinds_never_compare_equal() -> None:
    assert ShaderHandle(3) == ShaderHandle(3)
    assert ShaderHandle(3) != ProgramHandle(3)
    assert TextureHandle(3) != BufferHandle(3)


def test_handle_int_bool_and_repr() -> None:
    handle = VertexArrayHandle(7)
    assert int(handle) == 7
    assert bool(handle) is True
    assert bool(BufferHandle(0)) is False
    assert repr(handle) == "VertexArrayHandle(7)"
    assert TextureHandle.kind == "texture"


def test_handles_are_frozen_and_hashable() -> None:
    handle = TextureHandle(1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        handle.value = 2  # type: ignore[misc]
    assert len({TextureHandle(1), TextureHandle(1), TextureHandle(2)}) == 2
