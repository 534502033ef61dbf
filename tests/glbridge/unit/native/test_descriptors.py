from __future__ import annotations

import ctypes

import pytest

from glbridge.native.constants import ARB_COPY_IMAGE
from glbridge.native.descriptors import DESCRIPTORS, ArgKind, get_descriptor
from glbridge.native.simulated import SimulatedDriver


def test_every_descriptor_has_a_simulated_handler() -> None:
    driver = SimulatedDriver()
    for descriptor in DESCRIPTORS.values():
        assert driver.bind(descriptor) is not None, descriptor.name


def test_only_copy_image_is_extension_gated() -> None:
    gated = {name for name, descriptor in DESCRIPTORS.items() if descriptor.extension is not None}
    assert gated == {"glCopyImageSubData"}
    assert DESCRIPTORS["glCopyImageSubData"].extension == ARB_COPY_IMAGE


def test_blocking_descriptors_cover_transfers_and_draws() -> None:
    blocking = {name for name, descriptor in DESCRIPTORS.items() if descriptor.blocking}
    assert blocking == {
        "glClear",
        "glTexStorage3D",
        "glTexSubImage3D",
        "glGetTexImage",
        "glNamedBufferData",
        "glBufferData",
        "glCopyImageSubData",
        "glDrawArrays",
        "glDrawArraysInstanced",
        "glMultiDrawArrays",
    }


def test_native_types_follow_parameter_kinds() -> None:
    descriptor = get_descriptor("glVertexAttribPointer")
    assert descriptor.arity == 6
    assert [param.kind for param in descriptor.params][-2:] == [ArgKind.UINT, ArgKind.OFFSET]
    assert descriptor.argtypes == (
        ctypes.c_uint,
        ctypes.c_int,
        ctypes.c_uint,
        ctypes.c_ubyte,
        ctypes.c_int,
        ctypes.c_void_p,
    )
    assert get_descriptor("glGetString").restype is ctypes.c_char_p
    assert get_descriptor("glCreateProgram").arity == 0


def test_unknown_entry_point_is_key_error() -> None:
    with pytest.raises(KeyError, match="glFrobnicate"):
        get_descriptor("glFrobnicate")
