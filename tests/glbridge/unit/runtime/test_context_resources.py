from __future__ import annotations

import pytest

from glbridge.api.errors import ArgumentError, CapacityError, DriverStateError
from glbridge.api.handles import BufferHandle, TextureHandle, VertexArrayHandle
from glbridge.native import constants as gl
from glbridge.native.simulated import SimulatedDriver
from glbridge.runtime.context import GLContext


@pytest.mark.parametrize("n", [2, 17, 255, 256])
def test_batch_generation_returns_distinct_ordered_handles(ctx: GLContext, n: int) -> None:
    handles = ctx.gen_textures(n)
    assert isinstance(handles, tuple)
    assert len(handles) == n
    values = [handle.value for handle in handles]
    assert all(value != 0 for value in values)
    assert len(set(values)) == n
    assert values == sorted(values)
    assert all(isinstance(handle, TextureHandle) for handle in handles)


def test_every_batch_size_up_to_limit_yields_distinct_names(ctx: GLContext) -> None:
    seen: set[int] = set()
    for n in range(1, 257):
        result = ctx.gen_buffers(n)
        handles = (result,) if n == 1 else result
        assert len(handles) == n
        values = {handle.value for handle in handles}
        assert 0 not in values
        assert len(values) == n
        assert not values & seen
        seen |= values


def test_single_generation_is_scalar(ctx: GLContext) -> None:
    assert isinstance(ctx.gen_vertex_arrays(1), VertexArrayHandle)
    assert isinstance(ctx.gen_buffers(1), BufferHandle)


def test_zero_and_over_capacity_issue_no_native_call(ctx: GLContext, driver: SimulatedDriver) -> None:
    assert ctx.gen_textures(0) == ()
    with pytest.raises(CapacityError):
        ctx.gen_textures(257)
    with pytest.raises(ArgumentError):
        ctx.gen_buffers(-1)
    assert driver.calls == []


def test_delete_texture_and_buffer(ctx: GLContext, driver: SimulatedDriver) -> None:
    texture = ctx.gen_textures(1)
    buffer = ctx.gen_buffers(1)
    ctx.delete_texture(texture)
    ctx.delete_buffer(buffer)
    with pytest.raises(DriverStateError):
        ctx.bind_texture(gl.GL_TEXTURE_2D_ARRAY, texture)
    deletes = [call for call in driver.calls if call.name == "glDeleteTextures"]
    assert deletes[0].args[0] == 1


def test_delete_rejects_wrong_handle_kind(ctx: GLContext, driver: SimulatedDriver) -> None:
    buffer = ctx.gen_buffers(1)
    driver.reset_calls()
    with pytest.raises(ArgumentError):
        ctx.delete_texture(buffer)
    assert driver.calls == []


def test_deleting_zero_name_is_ignored(ctx: GLContext) -> None:
    ctx.delete_texture(TextureHandle(0))
    ctx.delete_buffer(BufferHandle(0))
