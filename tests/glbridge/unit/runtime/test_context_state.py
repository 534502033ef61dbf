from __future__ import annotations

import pytest

from glbridge.api.errors import ArgumentError, DriverStateError, DriverUnknownError
from glbridge.native import constants as gl
from glbridge.native.simulated import SimulatedDriver
from glbridge.runtime.context import GLContext


def test_frame_state_reaches_driver(ctx: GLContext, driver: SimulatedDriver) -> None:
    ctx.viewport(0, 0, 800, 600)
    ctx.clear_color(0.0, 0.5, 1.0, 1.0)
    ctx.clear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
    ctx.enable(gl.GL_BLEND)
    ctx.blend_func(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)
    ctx.disable(gl.GL_DEPTH_TEST)
    assert driver.viewport_rect == (0, 0, 800, 600)
    assert driver.clear_color_value == (0.0, 0.5, 1.0, 1.0)
    assert driver.clear_calls == 1
    assert driver.enabled_caps == {gl.GL_BLEND}
    assert driver.blend_factors == (gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)


def test_viewport_rejects_negative_sizes_before_native_call(ctx: GLContext, driver: SimulatedDriver) -> None:
    with pytest.raises(ArgumentError):
        ctx.viewport(0, 0, -1, 10)
    assert driver.calls == []


def test_clear_runs_as_blocking_call(ctx: GLContext, driver: SimulatedDriver) -> None:
    ctx.clear(gl.GL_COLOR_BUFFER_BIT)
    ctx.enable(gl.GL_BLEND)
    blocking = {call.name: call.blocking for call in driver.calls if call.name != "glGetError"}
    assert blocking == {"glClear": True, "glEnable": False}


def test_get_integer_and_pixel_store(ctx: GLContext) -> None:
    assert ctx.get_integer(gl.GL_UNPACK_ALIGNMENT) == 4
    ctx.pixel_store_i(gl.GL_UNPACK_ALIGNMENT, 1)
    assert ctx.get_integer(gl.GL_UNPACK_ALIGNMENT) == 1
    assert ctx.get_integer(gl.GL_MAJOR_VERSION) == 4
    ctx.viewport(5, 6, 7, 8)
    assert ctx.get_integer(gl.GL_VIEWPORT) == 5


def test_pixel_store_invalid_alignment_raises(ctx: GLContext) -> None:
    with pytest.raises(DriverStateError):
        ctx.pixel_store_i(gl.GL_UNPACK_ALIGNMENT, 3)


def test_get_string_decodes_text(ctx: GLContext) -> None:
    assert ctx.get_string(gl.GL_VERSION).startswith("4.5")
    assert ctx.get_string(gl.GL_VENDOR) == "glbridge"


def test_get_string_null_checks_error_even_when_disabled(ctx: GLContext, driver: SimulatedDriver) -> None:
    ctx.enable_automatic_error_checking(False)
    with pytest.raises(DriverStateError) as excinfo:
        ctx.get_string(gl.GL_EXTENSIONS)
    assert excinfo.value.code == gl.GL_INVALID_ENUM
    assert driver.get_error_calls == 1


class NullStringDriver(SimulatedDriver):
    def bind(self, descriptor):
        if descriptor.name == "glGetString":
            return lambda name: None
        return super().bind(descriptor)


def test_get_string_null_without_error_is_unknown() -> None:
    ctx = GLContext(NullStringDriver())
    ctx.bootstrap()
    with pytest.raises(DriverUnknownError):
        ctx.get_string(gl.GL_VENDOR)


def test_active_texture_selects_unit(ctx: GLContext) -> None:
    ctx.active_texture(gl.GL_TEXTURE3)
    assert ctx.get_integer(gl.GL_ACTIVE_TEXTURE) == gl.GL_TEXTURE3
    with pytest.raises(DriverStateError):
        ctx.active_texture(gl.GL_TEXTURE0 + 64)
