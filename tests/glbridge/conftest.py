from __future__ import annotations

import pytest

from glbridge.native.constants import GL_FRAGMENT_SHADER, GL_VERTEX_SHADER
from glbridge.native.simulated import SimulatedDriver
from glbridge.runtime.config import BridgeConfig
from glbridge.runtime.context import GLContext

VERTEX_SOURCE = """#version 330 core
layout(location = 0) in vec2 position;
in vec2 uv;
uniform vec4 tint;
uniform vec2 offset;
void main() { gl_Position = vec4(position + offset, 0.0, 1.0); }
"""

FRAGMENT_SOURCE = """#version 330 core
uniform vec3 colors[4];
uniform int layer;
out vec4 color;
void main() { color = vec4(colors[layer], 1.0); }
"""


@pytest.fixture
def driver() -> SimulatedDriver:
    return SimulatedDriver()


@pytest.fixture
def ctx(driver: SimulatedDriver) -> GLContext:
    context = GLContext(driver, config=BridgeConfig())
    context.bootstrap()
    driver.reset_calls()
    return context


@pytest.fixture
def linked_program(ctx: GLContext):
    vertex = ctx.create_shader(GL_VERTEX_SHADER)
    ctx.shader_source(vertex, VERTEX_SOURCE)
    ctx.compile_shader(vertex)
    fragment = ctx.create_shader(GL_FRAGMENT_SHADER)
    ctx.shader_source(fragment, FRAGMENT_SOURCE)
    ctx.compile_shader(fragment)
    program = ctx.create_program()
    ctx.attach_shader(program, vertex)
    ctx.attach_shader(program, fragment)
    ctx.link_program(program)
    return program
