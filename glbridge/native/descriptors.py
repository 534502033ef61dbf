"""Native call descriptors for every GL entry point the layer binds."""

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from enum import Enum
from typing import Any

from glbridge.native.constants import ARB_COPY_IMAGE


class ArgKind(Enum):
    """Host-side shape an argument must have before it crosses the boundary."""

    UINT = "uint"
    INT = "int"
    ENUM = "enum"
    BITFIELD = "bitfield"
    FLOAT = "float"
    BOOLEAN = "boolean"
    SIZE = "size"
    ADDRESS = "address"
    OFFSET = "offset"
    TEXT = "text"
    SHADER = "shader"
    PROGRAM = "program"
    TEXTURE = "texture"
    BUFFER = "buffer"
    VERTEX_ARRAY = "vertex_array"


_DEFAULT_CTYPES: dict[ArgKind, Any] = {
    ArgKind.UINT: ctypes.c_uint,
    ArgKind.INT: ctypes.c_int,
    ArgKind.ENUM: ctypes.c_uint,
    ArgKind.BITFIELD: ctypes.c_uint,
    ArgKind.FLOAT: ctypes.c_float,
    ArgKind.BOOLEAN: ctypes.c_ubyte,
    ArgKind.SIZE: ctypes.c_ssize_t,
    ArgKind.ADDRESS: ctypes.c_void_p,
    ArgKind.OFFSET: ctypes.c_void_p,
    ArgKind.TEXT: ctypes.c_char_p,
    ArgKind.SHADER: ctypes.c_uint,
    ArgKind.PROGRAM: ctypes.c_uint,
    ArgKind.TEXTURE: ctypes.c_uint,
    ArgKind.BUFFER: ctypes.c_uint,
    ArgKind.VERTEX_ARRAY: ctypes.c_uint,
}


@dataclass(frozen=True, slots=True)
class Param:
    name: str
    kind: ArgKind
    ctype: Any = None

    @property
    def native_type(self) -> Any:
        return self.ctype if self.ctype is not None else _DEFAULT_CTYPES[self.kind]


@dataclass(frozen=True, slots=True)
class CallDescriptor:
    """Expected arguments, result, and execution mode of one native entry point."""

    name: str
    params: tuple[Param, ...]
    restype: Any = None
    blocking: bool = False
    extension: str | None = None

    @property
    def arity(self) -> int:
        return len(self.params)

    @property
    def argtypes(self) -> tuple[Any, ...]:
        return tuple(param.native_type for param in self.params)


def _p(name: str, kind: ArgKind, ctype: Any = None) -> Param:
    return Param(name=name, kind=kind, ctype=ctype)


def _fn(
    name: str,
    *params: Param,
    restype: Any = None,
    blocking: bool = False,
    extension: str | None = None,
) -> CallDescriptor:
    return CallDescriptor(
        name=name,
        params=tuple(params),
        restype=restype,
        blocking=blocking,
        extension=extension,
    )


_K = ArgKind
_int = ctypes.c_int

_TABLE: tuple[CallDescriptor, ...] = (
    _fn("glGetError", restype=ctypes.c_uint),
    # frame/state
    _fn(
        "glViewport",
        _p("x", _K.UINT, _int),
        _p("y", _K.UINT, _int),
        _p("width", _K.UINT, _int),
        _p("height", _K.UINT, _int),
    ),
    _fn(
        "glClearColor",
        _p("red", _K.FLOAT),
        _p("green", _K.FLOAT),
        _p("blue", _K.FLOAT),
        _p("alpha", _K.FLOAT),
    ),
    _fn("glClear", _p("mask", _K.BITFIELD), blocking=True),
    _fn("glEnable", _p("cap", _K.ENUM)),
    _fn("glDisable", _p("cap", _K.ENUM)),
    _fn("glBlendFunc", _p("sfactor", _K.ENUM), _p("dfactor", _K.ENUM)),
    _fn("glPixelStorei", _p("pname", _K.ENUM), _p("param", _K.INT)),
    _fn("glGetIntegerv", _p("pname", _K.ENUM), _p("data", _K.ADDRESS)),
    _fn("glGetString", _p("name", _K.ENUM), restype=ctypes.c_char_p),
    _fn("glActiveTexture", _p("texture", _K.ENUM)),
    # resource lifecycle
    _fn("glGenVertexArrays", _p("n", _K.INT), _p("arrays", _K.ADDRESS)),
    _fn("glGenTextures", _p("n", _K.INT), _p("textures", _K.ADDRESS)),
    _fn("glGenBuffers", _p("n", _K.INT), _p("buffers", _K.ADDRESS)),
    _fn("glDeleteTextures", _p("n", _K.INT), _p("textures", _K.ADDRESS)),
    _fn("glDeleteBuffers", _p("n", _K.INT), _p("buffers", _K.ADDRESS)),
    _fn("glDeleteProgram", _p("program", _K.PROGRAM)),
    _fn("glDeleteShader", _p("shader", _K.SHADER)),
    # shader pipeline
    _fn("glCreateShader", _p("type", _K.ENUM), restype=ctypes.c_uint),
    _fn(
        "glShaderSource",
        _p("shader", _K.SHADER),
        _p("count", _K.INT),
        _p("string", _K.ADDRESS),
        _p("length", _K.OFFSET),
    ),
    _fn("glCompileShader", _p("shader", _K.SHADER)),
    _fn("glGetShaderiv", _p("shader", _K.SHADER), _p("pname", _K.ENUM), _p("params", _K.ADDRESS)),
    _fn(
        "glGetShaderInfoLog",
        _p("shader", _K.SHADER),
        _p("max_length", _K.INT),
        _p("length", _K.ADDRESS),
        _p("info_log", _K.ADDRESS),
    ),
    _fn("glCreateProgram", restype=ctypes.c_uint),
    _fn("glAttachShader", _p("program", _K.PROGRAM), _p("shader", _K.SHADER)),
    _fn("glLinkProgram", _p("program", _K.PROGRAM)),
    _fn("glGetProgramiv", _p("program", _K.PROGRAM), _p("pname", _K.ENUM), _p("params", _K.ADDRESS)),
    _fn(
        "glGetProgramInfoLog",
        _p("program", _K.PROGRAM),
        _p("max_length", _K.INT),
        _p("length", _K.ADDRESS),
        _p("info_log", _K.ADDRESS),
    ),
    _fn("glUseProgram", _p("program", _K.PROGRAM)),
    # uniforms/attributes
    _fn("glGetUniformLocation", _p("program", _K.PROGRAM), _p("name", _K.TEXT), restype=ctypes.c_int),
    _fn("glGetAttribLocation", _p("program", _K.PROGRAM), _p("name", _K.TEXT), restype=ctypes.c_int),
    _fn("glUniform2ui", _p("location", _K.INT), _p("v0", _K.UINT), _p("v1", _K.UINT)),
    _fn("glUniform1i", _p("location", _K.INT), _p("v0", _K.INT)),
    _fn("glUniform2f", _p("location", _K.INT), _p("v0", _K.FLOAT), _p("v1", _K.FLOAT)),
    _fn(
        "glUniform4f",
        _p("location", _K.INT),
        _p("v0", _K.FLOAT),
        _p("v1", _K.FLOAT),
        _p("v2", _K.FLOAT),
        _p("v3", _K.FLOAT),
    ),
    _fn("glUniform3fv", _p("location", _K.INT), _p("count", _K.UINT, _int), _p("value", _K.ADDRESS)),
    _fn("glEnableVertexAttribArray", _p("index", _K.UINT)),
    _fn(
        "glVertexAttribPointer",
        _p("index", _K.UINT),
        _p("size", _K.INT),
        _p("type", _K.ENUM),
        _p("normalized", _K.BOOLEAN),
        _p("stride", _K.UINT, _int),
        _p("pointer", _K.OFFSET),
    ),
    # textures/buffers
    _fn("glBindTexture", _p("target", _K.ENUM), _p("texture", _K.TEXTURE)),
    _fn("glBindBuffer", _p("target", _K.ENUM), _p("buffer", _K.BUFFER)),
    _fn("glBindVertexArray", _p("array", _K.VERTEX_ARRAY)),
    _fn(
        "glTexStorage3D",
        _p("target", _K.ENUM),
        _p("levels", _K.UINT, _int),
        _p("internalformat", _K.ENUM),
        _p("width", _K.UINT, _int),
        _p("height", _K.UINT, _int),
        _p("depth", _K.UINT, _int),
        blocking=True,
    ),
    _fn(
        "glTexSubImage3D",
        _p("target", _K.ENUM),
        _p("level", _K.INT),
        _p("xoffset", _K.INT),
        _p("yoffset", _K.INT),
        _p("zoffset", _K.INT),
        _p("width", _K.UINT, _int),
        _p("height", _K.UINT, _int),
        _p("depth", _K.UINT, _int),
        _p("format", _K.ENUM),
        _p("type", _K.ENUM),
        _p("pixels", _K.ADDRESS),
        blocking=True,
    ),
    _fn(
        "glGetTexImage",
        _p("target", _K.ENUM),
        _p("level", _K.INT),
        _p("format", _K.ENUM),
        _p("type", _K.ENUM),
        _p("pixels", _K.ADDRESS),
        blocking=True,
    ),
    _fn(
        "glNamedBufferData",
        _p("buffer", _K.BUFFER),
        _p("size", _K.SIZE),
        _p("data", _K.ADDRESS),
        _p("usage", _K.ENUM),
        blocking=True,
    ),
    _fn(
        "glBufferData",
        _p("target", _K.ENUM),
        _p("size", _K.SIZE),
        _p("data", _K.ADDRESS),
        _p("usage", _K.ENUM),
        blocking=True,
    ),
    _fn("glTexBuffer", _p("target", _K.ENUM), _p("internalformat", _K.ENUM), _p("buffer", _K.BUFFER)),
    _fn("glTexParameteri", _p("target", _K.ENUM), _p("pname", _K.ENUM), _p("param", _K.INT)),
    _fn(
        "glCopyImageSubData",
        _p("src_name", _K.TEXTURE),
        _p("src_target", _K.ENUM),
        _p("src_level", _K.INT),
        _p("src_x", _K.INT),
        _p("src_y", _K.INT),
        _p("src_z", _K.INT),
        _p("dst_name", _K.TEXTURE),
        _p("dst_target", _K.ENUM),
        _p("dst_level", _K.INT),
        _p("dst_x", _K.INT),
        _p("dst_y", _K.INT),
        _p("dst_z", _K.INT),
        _p("src_width", _K.UINT, _int),
        _p("src_height", _K.UINT, _int),
        _p("src_depth", _K.UINT, _int),
        blocking=True,
        extension=ARB_COPY_IMAGE,
    ),
    # draw
    _fn("glDrawArrays", _p("mode", _K.ENUM), _p("first", _K.INT), _p("count", _K.UINT, _int), blocking=True),
    _fn(
        "glDrawArraysInstanced",
        _p("mode", _K.ENUM),
        _p("first", _K.INT),
        _p("count", _K.UINT, _int),
        _p("instancecount", _K.UINT, _int),
        blocking=True,
    ),
    _fn(
        "glMultiDrawArrays",
        _p("mode", _K.ENUM),
        _p("first", _K.ADDRESS),
        _p("count", _K.ADDRESS),
        _p("drawcount", _K.UINT, _int),
        blocking=True,
    ),
)

DESCRIPTORS: dict[str, CallDescriptor] = {descriptor.name: descriptor for descriptor in _TABLE}


def get_descriptor(name: str) -> CallDescriptor:
    """Return the descriptor registered for one GL entry point name."""
    try:
        return DESCRIPTORS[name]
    except KeyError:
        raise KeyError(f"unknown GL entry point: {name}") from None
