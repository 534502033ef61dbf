from __future__ import annotations

import ctypes

import numpy as np
import pytest

from glbridge.native import constants as gl
from glbridge.native.descriptors import get_descriptor
from glbridge.native.simulated import SimulatedDriver


def _fn(driver: SimulatedDriver, name: str):
    function = driver.bind(get_descriptor(name))
    assert function is not None
    return function


def _gen(driver: SimulatedDriver, name: str) -> int:
    staging = ctypes.c_uint(0)
    _fn(driver, name)(1, ctypes.addressof(staging))
    return staging.value


def test_missing_entry_points_and_extensions_do_not_bind() -> None:
    driver = SimulatedDriver(missing_entry_points={"glDrawArrays"}, missing_extensions={gl.ARB_COPY_IMAGE})
    assert driver.bind(get_descriptor("glDrawArrays")) is None
    assert driver.bind(get_descriptor("glCopyImageSubData")) is None
    assert driver.extension_supported(gl.ARB_COPY_IMAGE) is False
    assert driver.extension_supported(gl.ARB_TEXTURE_STORAGE) is True


def test_error_register_keeps_first_error_until_queried() -> None:
    driver = SimulatedDriver()
    _fn(driver, "glEnable")(0x1234)
    _fn(driver, "glViewport")(0, 0, -1, 1)
    get_error = _fn(driver, "glGetError")
    assert get_error() == gl.GL_INVALID_ENUM
    assert get_error() == gl.GL_NO_ERROR
    assert driver.get_error_calls == 2


def test_failed_creation_returns_zero_name() -> None:
    driver = SimulatedDriver()
    assert _fn(driver, "glCreateShader")(0x1234) == 0
    assert driver.pending_error == gl.GL_INVALID_ENUM


def test_names_come_from_one_counter() -> None:
    driver = SimulatedDriver()
    texture = _gen(driver, "glGenTextures")
    buffer = _gen(driver, "glGenBuffers")
    program = _fn(driver, "glCreateProgram")()
    assert (texture, buffer, program) == (1, 2, 3)


def test_unpack_alignment_pads_rows() -> None:
    driver = SimulatedDriver()
    texture = _gen(driver, "glGenTextures")
    _fn(driver, "glBindTexture")(gl.GL_TEXTURE_2D_ARRAY, texture)
    _fn(driver, "glTexStorage3D")(gl.GL_TEXTURE_2D_ARRAY, 1, gl.GL_R8, 3, 2, 1)
    # two rows of three bytes, each padded to four
    padded = np.array([1, 2, 3, 0, 4, 5, 6], dtype=np.uint8)
    _fn(driver, "glTexSubImage3D")(
        gl.GL_TEXTURE_2D_ARRAY, 0, 0, 0, 0, 3, 2, 1, gl.GL_RED, gl.GL_UNSIGNED_BYTE, padded.ctypes.data
    )
    assert driver.pending_error == gl.GL_NO_ERROR
    assert driver.texture_level(texture)[0, :, :, 0].tolist() == [[1, 2, 3], [4, 5, 6]]


def test_compile_log_reports_error_directives() -> None:
    driver = SimulatedDriver()
    shader = _fn(driver, "glCreateShader")(gl.GL_FRAGMENT_SHADER)
    strings = (ctypes.c_char_p * 1)(b"#version 330 core\n#error missing output\n")
    _fn(driver, "glShaderSource")(shader, 1, ctypes.addressof(strings), None)
    _fn(driver, "glCompileShader")(shader)

    status = ctypes.c_int(-1)
    length = ctypes.c_int(0)
    _fn(driver, "glGetShaderiv")(shader, gl.GL_COMPILE_STATUS, ctypes.addressof(status))
    _fn(driver, "glGetShaderiv")(shader, gl.GL_INFO_LOG_LENGTH, ctypes.addressof(length))
    log = "0:2(1): error: missing output\n"
    assert status.value == 0
    assert length.value == len(log) + 1


def test_deleting_current_program_is_deferred() -> None:
    driver = SimulatedDriver()
    vertex = _fn(driver, "glCreateShader")(gl.GL_VERTEX_SHADER)
    fragment = _fn(driver, "glCreateShader")(gl.GL_FRAGMENT_SHADER)
    for shader, text in ((vertex, b"void main() {}"), (fragment, b"void main() {}")):
        strings = (ctypes.c_char_p * 1)(text)
        _fn(driver, "glShaderSource")(shader, 1, ctypes.addressof(strings), None)
        _fn(driver, "glCompileShader")(shader)
    program = _fn(driver, "glCreateProgram")()
    _fn(driver, "glAttachShader")(program, vertex)
    _fn(driver, "glAttachShader")(program, fragment)
    _fn(driver, "glLinkProgram")(program)
    _fn(driver, "glUseProgram")(program)

    _fn(driver, "glDeleteProgram")(program)
    assert driver.program_exists(program)
    _fn(driver, "glUseProgram")(0)
    assert not driver.program_exists(program)
    assert driver.pending_error == gl.GL_NO_ERROR


def test_load_error_is_raised_and_counted() -> None:
    driver = SimulatedDriver(load_error=OSError("no display"))
    with pytest.raises(OSError, match="no display"):
        driver.load()
    assert driver.load_calls == 1


def test_call_journal_keeps_most_recent_entries() -> None:
    driver = SimulatedDriver(journal_limit=3)
    viewport = _fn(driver, "glViewport")
    for width in range(1, 6):
        viewport(0, 0, width, 1)
    assert [call.args for call in driver.calls] == [(0, 0, 3, 1), (0, 0, 4, 1), (0, 0, 5, 1)]
    assert driver.viewport_rect == (0, 0, 5, 1)


def test_call_journal_without_limit_keeps_everything() -> None:
    driver = SimulatedDriver(journal_limit=None)
    viewport = _fn(driver, "glViewport")
    for width in range(1, 6):
        viewport(0, 0, width, 1)
    assert len(driver.calls) == 5
