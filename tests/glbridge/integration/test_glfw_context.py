from __future__ import annotations

import numpy as np
import pytest

from glbridge.api.context import create_gl_context
from glbridge.api.errors import CapabilityMissingError
from glbridge.native import constants as gl
from glbridge.runtime.config import BridgeConfig
from glbridge.runtime.pointers import address_of

glfw = pytest.importorskip("glfw")


@pytest.fixture
def glfw_window():
    if not glfw.init():
        pytest.skip("GLFW could not initialize (no display)")
    glfw.window_hint(glfw.VISIBLE, glfw.FALSE)
    glfw.window_hint(glfw.CONTEXT_VERSION_MAJOR, 3)
    glfw.window_hint(glfw.CONTEXT_VERSION_MINOR, 3)
    glfw.window_hint(glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE)
    glfw.window_hint(glfw.OPENGL_FORWARD_COMPAT, glfw.TRUE)
    window = glfw.create_window(64, 64, "glbridge", None, None)
    if not window:
        glfw.terminate()
        pytest.skip("no OpenGL 3.3 core context available")
    glfw.make_context_current(window)
    yield window
    glfw.destroy_window(window)
    glfw.terminate()


def test_real_context_round_trips_texture_buffer(glfw_window) -> None:
    try:
        ctx = create_gl_context(config=BridgeConfig(loader="glfw"))
    except CapabilityMissingError as exc:
        pytest.skip(f"driver lacks {exc.capability}")

    assert ctx.get_string(gl.GL_VERSION)
    pattern = np.arange(64, dtype=np.uint8)
    buffer = ctx.gen_buffers(1)
    texture = ctx.gen_textures(1)
    ctx.named_buffer_data(buffer, pattern.nbytes, address_of(pattern), gl.GL_STATIC_DRAW)
    ctx.bind_texture(gl.GL_TEXTURE_BUFFER, texture)
    ctx.tex_buffer(gl.GL_TEXTURE_BUFFER, gl.GL_RGBA8, buffer)
    ctx.check_error()
    ctx.delete_texture(texture)
    ctx.delete_buffer(buffer)
