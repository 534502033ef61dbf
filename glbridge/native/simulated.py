"""In-process OpenGL state model for headless execution and tests."""

from __future__ import annotations

import ctypes
import logging
import re
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import numpy as np

from glbridge.api.driver import NativeCall, NativeResult
from glbridge.native import constants as gl
from glbridge.native.descriptors import CallDescriptor

_LOG = logging.getLogger("glbridge.native.simulated")

DEFAULT_EXTENSIONS: frozenset[str] = frozenset(
    {gl.ARB_TEXTURE_STORAGE, gl.ARB_TEXTURE_BUFFER_OBJECT_RGB32, gl.ARB_COPY_IMAGE}
)

MAX_TEXTURE_UNITS = 16
MAX_VERTEX_ATTRIBS = 16
MAX_TEXTURE_SIZE = 16384
MAX_ARRAY_TEXTURE_LAYERS = 2048
DEFAULT_JOURNAL_LIMIT = 4096

_CAPABILITIES = frozenset(
    {gl.GL_BLEND, gl.GL_DEPTH_TEST, gl.GL_CULL_FACE, gl.GL_SCISSOR_TEST, gl.GL_FRAMEBUFFER_SRGB}
)
_BLEND_FACTORS = frozenset({gl.GL_ZERO, gl.GL_ONE, *range(0x0300, 0x0309)})
_CLEAR_BITS = gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT | gl.GL_STENCIL_BUFFER_BIT
_PRIMITIVES = frozenset(range(gl.GL_POINTS, gl.GL_TRIANGLE_FAN + 1))
_SHADER_TYPES = frozenset({gl.GL_VERTEX_SHADER, gl.GL_FRAGMENT_SHADER})
_TEXTURE_TARGETS = frozenset({gl.GL_TEXTURE_2D, gl.GL_TEXTURE_2D_ARRAY, gl.GL_TEXTURE_BUFFER})
_BUFFER_TARGETS = frozenset({gl.GL_ARRAY_BUFFER, gl.GL_TEXTURE_BUFFER})
_BUFFER_USAGES = frozenset({gl.GL_STREAM_DRAW, gl.GL_STATIC_DRAW, gl.GL_DYNAMIC_DRAW})
_ALIGNMENTS = frozenset({1, 2, 4, 8})
_TEXTURE_PARAMETERS = frozenset(
    {gl.GL_TEXTURE_MIN_FILTER, gl.GL_TEXTURE_MAG_FILTER, gl.GL_TEXTURE_WRAP_S, gl.GL_TEXTURE_WRAP_T}
)
_PIXEL_TYPES = frozenset({gl.GL_BYTE, gl.GL_UNSIGNED_BYTE, gl.GL_INT, gl.GL_UNSIGNED_INT, gl.GL_FLOAT})

# internal format -> (bytes per texel, normalized channel count or 0 for integer formats)
_INTERNAL_FORMATS: dict[int, tuple[int, int]] = {
    gl.GL_RGBA8: (4, 4),
    gl.GL_R8: (1, 1),
    gl.GL_RGB32UI: (12, 0),
}

# (format, type) -> (bytes per pixel, normalized channel count or 0 for integer transfers)
_TRANSFER_FORMATS: dict[tuple[int, int], tuple[int, int]] = {
    (gl.GL_RED, gl.GL_UNSIGNED_BYTE): (1, 1),
    (gl.GL_RGBA, gl.GL_UNSIGNED_BYTE): (4, 4),
    (gl.GL_RGB_INTEGER, gl.GL_UNSIGNED_INT): (12, 0),
}
_TRANSFER_ENUMS = frozenset({fmt for fmt, _ in _TRANSFER_FORMATS} | {gl.GL_RGBA_INTEGER})

_UNIFORM_PATTERN = re.compile(
    r"^\s*uniform\s+(?:(?:highp|mediump|lowp)\s+)?\w+\s+(\w+)\s*(?:\[\s*\d+\s*\])?\s*;",
    re.MULTILINE,
)
_ATTRIBUTE_PATTERN = re.compile(
    r"^\s*(?:layout\s*\(\s*location\s*=\s*(\d+)\s*\)\s*)?(?:in|attribute)\s+\w+\s+(\w+)\s*;",
    re.MULTILINE,
)


class SimulatedGLError(Exception):
    """Internal signal carrying the error code a handler records."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


@dataclass(frozen=True, slots=True)
class SimulatedCall:
    name: str
    args: tuple[NativeResult, ...]
    blocking: bool


@dataclass(slots=True)
class DrawRecord:
    mode: int
    first: int
    count: int
    instances: int
    program: int


@dataclass(slots=True)
class _Shader:
    shader_type: int
    source: str = ""
    compiled: bool = False
    log: str = ""
    delete_pending: bool = False


@dataclass(slots=True)
class _Program:
    shaders: list[int] = field(default_factory=list)
    linked: bool = False
    log: str = ""
    uniforms: dict[str, int] = field(default_factory=dict)
    attributes: dict[str, int] = field(default_factory=dict)
    uniform_values: dict[int, tuple[float | int, ...]] = field(default_factory=dict)
    delete_pending: bool = False


@dataclass(slots=True)
class _Texture:
    target: int | None = None
    internal_format: int | None = None
    levels: list[np.ndarray] = field(default_factory=list)
    parameters: dict[int, int] = field(default_factory=dict)
    buffer: int = 0
    buffer_format: int | None = None


@dataclass(slots=True)
class _Buffer:
    data: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint8))
    usage: int | None = None


def _read(address: int, size: int) -> bytes:
    return ctypes.string_at(address, size) if size > 0 else b""


def _write_ints(address: int, values: Iterable[int], ctype: type = ctypes.c_int) -> None:
    items = list(values)
    if items:
        (ctype * len(items)).from_address(address)[:] = items


def _read_ints(address: int, count: int, ctype: type = ctypes.c_int) -> list[int]:
    if count <= 0:
        return []
    return list((ctype * count).from_address(address))


def _row_stride(row_bytes: int, alignment: int) -> int:
    return -(-row_bytes // alignment) * alignment


class SimulatedDriver:
    """Pure-Python GL 4.x core model exposing the same bind surface as a native driver.

    Handlers receive already-marshaled arguments and read or write caller
    memory through raw addresses, so pointer handling is exercised exactly
    as with a native driver. Bound calls and draws are journaled in ``calls``
    and ``draws``, keeping the most recent ``journal_limit`` entries (all of
    them when the limit is None).
    Textures bound to ``GL_TEXTURE_BUFFER`` can be downloaded with
    ``glGetTexImage``; the texels come from the attached buffer store.
    """

    def __init__(
        self,
        *,
        extensions: Iterable[str] | None = None,
        missing_extensions: Iterable[str] = (),
        missing_entry_points: Iterable[str] = (),
        builtin_extensions: bool = False,
        version: tuple[int, int] = (4, 5),
        load_error: Exception | None = None,
        vendor: str = "glbridge",
        renderer: str = "glbridge simulated driver",
        journal_limit: int | None = DEFAULT_JOURNAL_LIMIT,
    ) -> None:
        available = set(DEFAULT_EXTENSIONS if extensions is None else extensions)
        self._extensions = frozenset(available - set(missing_extensions))
        self._missing_entry_points = frozenset(missing_entry_points)
        self._builtin = bool(builtin_extensions)
        self._version = (int(version[0]), int(version[1]))
        self._load_error = load_error
        self._strings = {
            gl.GL_VENDOR: vendor,
            gl.GL_RENDERER: renderer,
            gl.GL_VERSION: f"{self._version[0]}.{self._version[1]}.0 glbridge-simulated",
            gl.GL_SHADING_LANGUAGE_VERSION: f"{self._version[0]}.{self._version[1]}0",
        }
        self._calls: deque[SimulatedCall] = deque(maxlen=journal_limit)
        self._draws: deque[DrawRecord] = deque(maxlen=journal_limit)
        self.load_calls = 0
        self.get_error_calls = 0
        self.clear_calls = 0
        self._error = gl.GL_NO_ERROR
        self._names = 0
        self._shaders: dict[int, _Shader] = {}
        self._programs: dict[int, _Program] = {}
        self._textures: dict[int, _Texture] = {}
        self._buffers: dict[int, _Buffer] = {}
        self._vertex_arrays: set[int] = set()
        self._texture_bindings: dict[tuple[int, int], int] = {}
        self._buffer_bindings: dict[int, int] = {}
        self._vertex_array = 0
        self._program = 0
        self._active_unit = 0
        self._enabled_attribs: set[tuple[int, int]] = set()
        self._attrib_pointers: dict[tuple[int, int], tuple[int, int, int, int, int | None]] = {}
        self._pixel_store = {gl.GL_UNPACK_ALIGNMENT: 4, gl.GL_PACK_ALIGNMENT: 4}
        self.viewport_rect = (0, 0, 0, 0)
        self.clear_color_value = (0.0, 0.0, 0.0, 0.0)
        self.blend_factors = (gl.GL_ONE, gl.GL_ZERO)
        self.enabled_caps: set[int] = set()
        self._handlers: dict[str, Callable[..., NativeResult]] = {
            "glGetError": self._get_error,
            "glViewport": self._viewport,
            "glClearColor": self._clear_color,
            "glClear": self._clear,
            "glEnable": self._enable,
            "glDisable": self._disable,
            "glBlendFunc": self._blend_func,
            "glPixelStorei": self._pixel_store_i,
            "glGetIntegerv": self._get_integer_v,
            "glGetString": self._get_string,
            "glActiveTexture": self._active_texture,
            "glGenVertexArrays": self._gen_vertex_arrays,
            "glGenTextures": self._gen_textures,
            "glGenBuffers": self._gen_buffers,
            "glDeleteTextures": self._delete_textures,
            "glDeleteBuffers": self._delete_buffers,
            "glDeleteProgram": self._delete_program,
            "glDeleteShader": self._delete_shader,
            "glCreateShader": self._create_shader,
            "glShaderSource": self._shader_source,
            "glCompileShader": self._compile_shader,
            "glGetShaderiv": self._get_shader_iv,
            "glGetShaderInfoLog": self._get_shader_info_log,
            "glCreateProgram": self._create_program,
            "glAttachShader": self._attach_shader,
            "glLinkProgram": self._link_program,
            "glGetProgramiv": self._get_program_iv,
            "glGetProgramInfoLog": self._get_program_info_log,
            "glUseProgram": self._use_program,
            "glGetUniformLocation": self._get_uniform_location,
            "glGetAttribLocation": self._get_attrib_location,
            "glUniform2ui": self._uniform,
            "glUniform1i": self._uniform,
            "glUniform2f": self._uniform,
            "glUniform4f": self._uniform,
            "glUniform3fv": self._uniform_3fv,
            "glEnableVertexAttribArray": self._enable_vertex_attrib_array,
            "glVertexAttribPointer": self._vertex_attrib_pointer,
            "glBindTexture": self._bind_texture,
            "glBindBuffer": self._bind_buffer,
            "glBindVertexArray": self._bind_vertex_array,
            "glTexStorage3D": self._tex_storage_3d,
            "glTexSubImage3D": self._tex_sub_image_3d,
            "glGetTexImage": self._get_tex_image,
            "glNamedBufferData": self._named_buffer_data,
            "glBufferData": self._buffer_data,
            "glTexBuffer": self._tex_buffer,
            "glTexParameteri": self._tex_parameter_i,
            "glCopyImageSubData": self._copy_image_sub_data,
            "glDrawArrays": self._draw_arrays,
            "glDrawArraysInstanced": self._draw_arrays_instanced,
            "glMultiDrawArrays": self._multi_draw_arrays,
        }

    # driver surface

    @property
    def builtin_extensions(self) -> bool:
        return self._builtin

    @property
    def version(self) -> tuple[int, int]:
        return self._version

    def load(self) -> None:
        self.load_calls += 1
        if self._load_error is not None:
            raise self._load_error
        _LOG.debug("gl_simulated_driver_loaded version=%d.%d", *self._version)

    def extension_supported(self, name: str) -> bool:
        return name in self._extensions

    def bind(self, descriptor: CallDescriptor) -> NativeCall | None:
        handler = self._handlers.get(descriptor.name)
        if handler is None or descriptor.name in self._missing_entry_points:
            return None
        if descriptor.extension is not None and descriptor.extension not in self._extensions:
            return None
        name = descriptor.name
        blocking = descriptor.blocking

        def call(*args: NativeResult) -> NativeResult:
            self._calls.append(SimulatedCall(name=name, args=tuple(args), blocking=blocking))
            try:
                return handler(*args)
            except SimulatedGLError as exc:
                self.inject_error(exc.code)
                return _FAILED_RESULTS.get(name)

        return call

    # inspection helpers

    def inject_error(self, code: int) -> None:
        """Record ``code`` unless an earlier error is still pending."""
        if self._error == gl.GL_NO_ERROR:
            self._error = int(code)

    @property
    def pending_error(self) -> int:
        return self._error

    def call_names(self, *, include_error_queries: bool = False) -> list[str]:
        return [
            call.name for call in self.calls if include_error_queries or call.name != "glGetError"
        ]

    @property
    def calls(self) -> list[SimulatedCall]:
        """Most recent bound calls, oldest first."""
        return list(self._calls)

    @property
    def draws(self) -> list[DrawRecord]:
        return list(self._draws)

    def reset_calls(self) -> None:
        self._calls.clear()
        self.get_error_calls = 0

    def texture_level(self, texture: int, level: int = 0) -> np.ndarray:
        """Return a copy of one texture level as a (depth, height, width, bytes) array."""
        return self._textures[int(texture)].levels[level].copy()

    def buffer_contents(self, buffer: int) -> bytes:
        return self._buffers[int(buffer)].data.tobytes()

    def uniform_value(self, program: int, location: int) -> tuple[float | int, ...] | None:
        return self._programs[int(program)].uniform_values.get(int(location))

    def shader_exists(self, shader: int) -> bool:
        return int(shader) in self._shaders

    def program_exists(self, program: int) -> bool:
        return int(program) in self._programs

    def texture_parameter(self, texture: int, pname: int) -> int | None:
        return self._textures[int(texture)].parameters.get(int(pname))

    @property
    def current_program(self) -> int:
        return self._program

    @property
    def pixel_store(self) -> dict[int, int]:
        return dict(self._pixel_store)

    # frame/state

    def _get_error(self) -> int:
        self.get_error_calls += 1
        code, self._error = self._error, gl.GL_NO_ERROR
        return code

    def _viewport(self, x: int, y: int, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        self.viewport_rect = (x, y, width, height)

    def _clear_color(self, red: float, green: float, blue: float, alpha: float) -> None:
        self.clear_color_value = tuple(min(1.0, max(0.0, float(v))) for v in (red, green, blue, alpha))

    def _clear(self, mask: int) -> None:
        if mask & ~_CLEAR_BITS:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        self.clear_calls += 1

    def _enable(self, cap: int) -> None:
        if cap not in _CAPABILITIES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        self.enabled_caps.add(cap)

    def _disable(self, cap: int) -> None:
        if cap not in _CAPABILITIES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        self.enabled_caps.discard(cap)

    def _blend_func(self, sfactor: int, dfactor: int) -> None:
        if sfactor not in _BLEND_FACTORS or dfactor not in _BLEND_FACTORS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        self.blend_factors = (sfactor, dfactor)

    def _pixel_store_i(self, pname: int, param: int) -> None:
        if pname not in self._pixel_store:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if param not in _ALIGNMENTS:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        self._pixel_store[pname] = param

    def _get_integer_v(self, pname: int, data: int) -> None:
        if pname == gl.GL_VIEWPORT:
            _write_ints(data, self.viewport_rect)
            return
        values = {
            gl.GL_UNPACK_ALIGNMENT: self._pixel_store[gl.GL_UNPACK_ALIGNMENT],
            gl.GL_PACK_ALIGNMENT: self._pixel_store[gl.GL_PACK_ALIGNMENT],
            gl.GL_MAX_TEXTURE_SIZE: MAX_TEXTURE_SIZE,
            gl.GL_MAJOR_VERSION: self._version[0],
            gl.GL_MINOR_VERSION: self._version[1],
            gl.GL_NUM_EXTENSIONS: len(self._extensions),
            gl.GL_ACTIVE_TEXTURE: gl.GL_TEXTURE0 + self._active_unit,
            gl.GL_MAX_VERTEX_ATTRIBS: MAX_VERTEX_ATTRIBS,
            gl.GL_MAX_ARRAY_TEXTURE_LAYERS: MAX_ARRAY_TEXTURE_LAYERS,
            gl.GL_TEXTURE_BINDING_2D_ARRAY: self._bound_texture_name(gl.GL_TEXTURE_2D_ARRAY),
            gl.GL_CURRENT_PROGRAM: self._program,
        }
        if pname not in values:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        _write_ints(data, (values[pname],))

    def _get_string(self, name: int) -> bytes | None:
        text = self._strings.get(name)
        if text is None:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        return text.encode("ascii")

    def _active_texture(self, texture: int) -> None:
        unit = texture - gl.GL_TEXTURE0
        if not 0 <= unit < MAX_TEXTURE_UNITS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        self._active_unit = unit

    # resource lifecycle

    def _allocate_names(self, n: int, address: int) -> list[int]:
        if n < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        names = [self._next_name() for _ in range(n)]
        _write_ints(address, names, ctypes.c_uint)
        return names

    def _next_name(self) -> int:
        self._names += 1
        return self._names

    def _gen_vertex_arrays(self, n: int, arrays: int) -> None:
        self._vertex_arrays.update(self._allocate_names(n, arrays))

    def _gen_textures(self, n: int, textures: int) -> None:
        for name in self._allocate_names(n, textures):
            self._textures[name] = _Texture()

    def _gen_buffers(self, n: int, buffers: int) -> None:
        for name in self._allocate_names(n, buffers):
            self._buffers[name] = _Buffer()

    def _delete_textures(self, n: int, textures: int) -> None:
        if n < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        for name in _read_ints(textures, n, ctypes.c_uint):
            if self._textures.pop(name, None) is None:
                continue
            for key, bound in list(self._texture_bindings.items()):
                if bound == name:
                    del self._texture_bindings[key]

    def _delete_buffers(self, n: int, buffers: int) -> None:
        if n < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        for name in _read_ints(buffers, n, ctypes.c_uint):
            if self._buffers.pop(name, None) is None:
                continue
            for target, bound in list(self._buffer_bindings.items()):
                if bound == name:
                    del self._buffer_bindings[target]

    def _delete_program(self, program: int) -> None:
        if program == 0:
            return
        record = self._program_record(program)
        if program == self._program:
            record.delete_pending = True
            return
        self._drop_program(program)

    def _delete_shader(self, shader: int) -> None:
        if shader == 0:
            return
        record = self._shader_record(shader)
        if any(shader in program.shaders for program in self._programs.values()):
            record.delete_pending = True
            return
        del self._shaders[shader]

    def _drop_program(self, program: int) -> None:
        record = self._programs.pop(program)
        for shader in record.shaders:
            attached = self._shaders.get(shader)
            if attached is not None and attached.delete_pending:
                if not any(shader in other.shaders for other in self._programs.values()):
                    del self._shaders[shader]

    # shader pipeline

    def _shader_record(self, shader: int) -> _Shader:
        record = self._shaders.get(shader)
        if record is None:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION if shader in self._programs else gl.GL_INVALID_VALUE)
        return record

    def _program_record(self, program: int) -> _Program:
        record = self._programs.get(program)
        if record is None:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION if program in self._shaders else gl.GL_INVALID_VALUE)
        return record

    def _create_shader(self, shader_type: int) -> int:
        if shader_type not in _SHADER_TYPES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        name = self._next_name()
        self._shaders[name] = _Shader(shader_type=shader_type)
        return name

    def _shader_source(self, shader: int, count: int, string: int, length: int | None) -> None:
        record = self._shader_record(shader)
        if count < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        pointers = list((ctypes.c_void_p * count).from_address(string)) if count else []
        lengths = _read_ints(length, count) if length is not None else [-1] * count
        parts: list[bytes] = []
        for pointer, size in zip(pointers, lengths, strict=True):
            if not pointer:
                continue
            parts.append(ctypes.string_at(pointer) if size < 0 else ctypes.string_at(pointer, size))
        record.source = b"".join(parts).decode("utf-8", errors="replace")
        record.compiled = False

    def _compile_shader(self, shader: int) -> None:
        record = self._shader_record(shader)
        diagnostics: list[str] = []
        if not record.source.strip():
            diagnostics.append("0:0(0): error: shader source is empty")
        for lineno, line in enumerate(record.source.splitlines(), start=1):
            stripped = line.strip()
            if stripped.startswith("#error"):
                message = stripped[len("#error") :].strip() or "#error directive"
                diagnostics.append(f"0:{lineno}(1): error: {message}")
        record.compiled = not diagnostics
        record.log = "".join(f"{entry}\n" for entry in diagnostics)

    def _get_shader_iv(self, shader: int, pname: int, params: int) -> None:
        record = self._shader_record(shader)
        values = {
            gl.GL_SHADER_TYPE: record.shader_type,
            gl.GL_COMPILE_STATUS: int(record.compiled),
            gl.GL_DELETE_STATUS: int(record.delete_pending),
            gl.GL_INFO_LOG_LENGTH: _log_length(record.log),
            gl.GL_SHADER_SOURCE_LENGTH: _log_length(record.source),
        }
        if pname not in values:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        _write_ints(params, (values[pname],))

    def _get_shader_info_log(self, shader: int, max_length: int, length: int, info_log: int) -> None:
        _write_log(self._shader_record(shader).log, max_length, length, info_log)

    def _create_program(self) -> int:
        name = self._next_name()
        self._programs[name] = _Program()
        return name

    def _attach_shader(self, program: int, shader: int) -> None:
        record = self._program_record(program)
        self._shader_record(shader)
        if shader in record.shaders:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        record.shaders.append(shader)

    def _link_program(self, program: int) -> None:
        record = self._program_record(program)
        shaders = [self._shaders[name] for name in record.shaders if name in self._shaders]
        diagnostics: list[str] = []
        for shader_type, label in ((gl.GL_VERTEX_SHADER, "vertex"), (gl.GL_FRAGMENT_SHADER, "fragment")):
            if not any(shader.shader_type == shader_type for shader in shaders):
                diagnostics.append(f"error: program lacks a {label} shader")
        if any(not shader.compiled for shader in shaders):
            diagnostics.append("error: linking with uncompiled/unspecialized shader")
        record.linked = not diagnostics
        record.log = "".join(f"{entry}\n" for entry in diagnostics)
        record.uniforms = {}
        record.attributes = {}
        record.uniform_values = {}
        if not record.linked:
            return
        for shader in shaders:
            for match in _UNIFORM_PATTERN.finditer(shader.source):
                record.uniforms.setdefault(match.group(1), len(record.uniforms))
        explicit: dict[str, int] = {}
        implicit: list[str] = []
        for shader in shaders:
            if shader.shader_type != gl.GL_VERTEX_SHADER:
                continue
            for match in _ATTRIBUTE_PATTERN.finditer(shader.source):
                if match.group(1) is not None:
                    explicit[match.group(2)] = int(match.group(1))
                elif match.group(2) not in implicit:
                    implicit.append(match.group(2))
        record.attributes.update(explicit)
        taken = set(explicit.values())
        slot = 0
        for name in implicit:
            if name in record.attributes:
                continue
            while slot in taken:
                slot += 1
            record.attributes[name] = slot
            taken.add(slot)

    def _get_program_iv(self, program: int, pname: int, params: int) -> None:
        record = self._program_record(program)
        values = {
            gl.GL_LINK_STATUS: int(record.linked),
            gl.GL_DELETE_STATUS: int(record.delete_pending),
            gl.GL_INFO_LOG_LENGTH: _log_length(record.log),
            gl.GL_ATTACHED_SHADERS: len(record.shaders),
        }
        if pname not in values:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        _write_ints(params, (values[pname],))

    def _get_program_info_log(self, program: int, max_length: int, length: int, info_log: int) -> None:
        _write_log(self._program_record(program).log, max_length, length, info_log)

    def _use_program(self, program: int) -> None:
        if program != 0 and not self._program_record(program).linked:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        previous, self._program = self._program, program
        record = self._programs.get(previous)
        if previous != program and record is not None and record.delete_pending:
            self._drop_program(previous)

    # uniforms/attributes

    def _get_uniform_location(self, program: int, name: bytes) -> int:
        record = self._program_record(program)
        if not record.linked:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        return record.uniforms.get(name.decode("utf-8", errors="replace"), -1)

    def _get_attrib_location(self, program: int, name: bytes) -> int:
        record = self._program_record(program)
        if not record.linked:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        return record.attributes.get(name.decode("utf-8", errors="replace"), -1)

    def _current_program_record(self) -> _Program:
        record = self._programs.get(self._program)
        if record is None:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        return record

    def _uniform(self, location: int, *values: float | int) -> None:
        record = self._current_program_record()
        if location == -1:
            return
        if location not in record.uniforms.values():
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        record.uniform_values[location] = tuple(values)

    def _uniform_3fv(self, location: int, count: int, value: int) -> None:
        record = self._current_program_record()
        if count < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if location == -1:
            return
        if location not in record.uniforms.values():
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        floats = np.frombuffer(_read(value, 12 * count), dtype=np.float32)
        record.uniform_values[location] = tuple(float(v) for v in floats)

    def _enable_vertex_attrib_array(self, index: int) -> None:
        if index >= MAX_VERTEX_ATTRIBS:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if not self._vertex_array:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        self._enabled_attribs.add((self._vertex_array, index))

    def _vertex_attrib_pointer(
        self,
        index: int,
        size: int,
        attrib_type: int,
        normalized: int,
        stride: int,
        pointer: int | None,
    ) -> None:
        if index >= MAX_VERTEX_ATTRIBS or not 1 <= size <= 4 or stride < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if attrib_type not in _PIXEL_TYPES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if not self._vertex_array or not self._buffer_bindings.get(gl.GL_ARRAY_BUFFER):
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        self._attrib_pointers[(self._vertex_array, index)] = (size, attrib_type, normalized, stride, pointer)

    # textures/buffers

    def _bound_texture_name(self, target: int) -> int:
        return self._texture_bindings.get((self._active_unit, target), 0)

    def _bound_texture(self, target: int) -> _Texture:
        name = self._bound_texture_name(target)
        if not name:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        return self._textures[name]

    def _bind_texture(self, target: int, texture: int) -> None:
        if target not in _TEXTURE_TARGETS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if texture == 0:
            self._texture_bindings.pop((self._active_unit, target), None)
            return
        record = self._textures.get(texture)
        if record is None:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if record.target is not None and record.target != target:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        record.target = target
        self._texture_bindings[(self._active_unit, target)] = texture

    def _bind_buffer(self, target: int, buffer: int) -> None:
        if target not in _BUFFER_TARGETS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if buffer == 0:
            self._buffer_bindings.pop(target, None)
            return
        if buffer not in self._buffers:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        self._buffer_bindings[target] = buffer

    def _bind_vertex_array(self, array: int) -> None:
        if array != 0 and array not in self._vertex_arrays:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        self._vertex_array = array

    def _tex_storage_3d(
        self, target: int, levels: int, internalformat: int, width: int, height: int, depth: int
    ) -> None:
        if target != gl.GL_TEXTURE_2D_ARRAY:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if internalformat not in _INTERNAL_FORMATS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        record = self._bound_texture(target)
        if record.levels:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        if levels < 1 or width < 1 or height < 1 or depth < 1:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if max(width, height) > MAX_TEXTURE_SIZE or depth > MAX_ARRAY_TEXTURE_LAYERS:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if levels > max(width, height).bit_length():
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        texel_bytes = _INTERNAL_FORMATS[internalformat][0]
        record.internal_format = internalformat
        record.levels = [
            np.zeros((depth, max(1, height >> level), max(1, width >> level), texel_bytes), dtype=np.uint8)
            for level in range(levels)
        ]

    def _transfer_format(self, internal_format: int, fmt: int, pixel_type: int) -> tuple[int, int]:
        if fmt not in _TRANSFER_ENUMS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if pixel_type not in _PIXEL_TYPES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        transfer = _TRANSFER_FORMATS.get((fmt, pixel_type))
        if transfer is None:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        storage_channels = _INTERNAL_FORMATS[internal_format][1]
        if (storage_channels == 0) != (transfer[1] == 0):
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        return transfer

    def _tex_sub_image_3d(
        self,
        target: int,
        level: int,
        xoffset: int,
        yoffset: int,
        zoffset: int,
        width: int,
        height: int,
        depth: int,
        fmt: int,
        pixel_type: int,
        pixels: int,
    ) -> None:
        if target != gl.GL_TEXTURE_2D_ARRAY:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        record = self._bound_texture(target)
        if not record.levels or record.internal_format is None:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        if not 0 <= level < len(record.levels):
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        storage = record.levels[level]
        layers, rows, cols, _ = storage.shape
        if (
            min(xoffset, yoffset, zoffset, width, height, depth) < 0
            or xoffset + width > cols
            or yoffset + height > rows
            or zoffset + depth > layers
        ):
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        pixel_bytes, channels = self._transfer_format(record.internal_format, fmt, pixel_type)
        if width == 0 or height == 0 or depth == 0:
            return
        data = _unpack_rows(
            pixels,
            row_bytes=width * pixel_bytes,
            rows=height * depth,
            alignment=self._pixel_store[gl.GL_UNPACK_ALIGNMENT],
        ).reshape(depth, height, width, pixel_bytes)
        region = storage[zoffset : zoffset + depth, yoffset : yoffset + height, xoffset : xoffset + width]
        region[...] = _convert_texels(data, channels, _INTERNAL_FORMATS[record.internal_format][1])

    def _get_tex_image(self, target: int, level: int, fmt: int, pixel_type: int, pixels: int) -> None:
        if target not in _TEXTURE_TARGETS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        record = self._bound_texture(target)
        if target == gl.GL_TEXTURE_BUFFER:
            internal_format = record.buffer_format
            source = self._buffer_texels(record)
            levels = 1
        else:
            internal_format = record.internal_format
            source = record.levels[level] if 0 <= level < len(record.levels) else None
            levels = len(record.levels)
        if internal_format is None or not levels:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        if source is None or level != 0 and target == gl.GL_TEXTURE_BUFFER:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        pixel_bytes, channels = self._transfer_format(internal_format, fmt, pixel_type)
        converted = _convert_texels(source, _INTERNAL_FORMATS[internal_format][1], channels)
        layers, rows, cols, _ = source.shape
        _pack_rows(
            pixels,
            np.ascontiguousarray(converted).reshape(layers * rows, cols * pixel_bytes),
            alignment=self._pixel_store[gl.GL_PACK_ALIGNMENT],
        )

    def _buffer_texels(self, record: _Texture) -> np.ndarray:
        if not record.buffer or record.buffer_format is None or record.buffer not in self._buffers:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        texel_bytes = _INTERNAL_FORMATS[record.buffer_format][0]
        data = self._buffers[record.buffer].data
        count = data.size // texel_bytes
        return data[: count * texel_bytes].reshape(1, 1, count, texel_bytes)

    def _store_buffer(self, record: _Buffer, size: int, data: int, usage: int) -> None:
        if usage not in _BUFFER_USAGES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if size < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        record.data = np.frombuffer(_read(data, size), dtype=np.uint8).copy()
        record.usage = usage

    def _named_buffer_data(self, buffer: int, size: int, data: int, usage: int) -> None:
        record = self._buffers.get(buffer)
        if record is None:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        self._store_buffer(record, size, data, usage)

    def _buffer_data(self, target: int, size: int, data: int, usage: int) -> None:
        if target not in _BUFFER_TARGETS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        name = self._buffer_bindings.get(target, 0)
        if not name:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        self._store_buffer(self._buffers[name], size, data, usage)

    def _tex_buffer(self, target: int, internalformat: int, buffer: int) -> None:
        if target != gl.GL_TEXTURE_BUFFER or internalformat not in _INTERNAL_FORMATS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        record = self._bound_texture(target)
        if buffer != 0 and buffer not in self._buffers:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        record.buffer = buffer
        record.buffer_format = internalformat if buffer else None

    def _tex_parameter_i(self, target: int, pname: int, param: int) -> None:
        if target not in _TEXTURE_TARGETS or pname not in _TEXTURE_PARAMETERS:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        self._bound_texture(target).parameters[pname] = param

    def _copy_image_sub_data(
        self,
        src_name: int,
        src_target: int,
        src_level: int,
        src_x: int,
        src_y: int,
        src_z: int,
        dst_name: int,
        dst_target: int,
        dst_level: int,
        dst_x: int,
        dst_y: int,
        dst_z: int,
        width: int,
        height: int,
        depth: int,
    ) -> None:
        source = self._copy_endpoint(src_name, src_target, src_level)
        destination = self._copy_endpoint(dst_name, dst_target, dst_level)
        if source.shape[3] != destination.shape[3]:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)
        for image, (x, y, z) in ((source, (src_x, src_y, src_z)), (destination, (dst_x, dst_y, dst_z))):
            layers, rows, cols, _ = image.shape
            outside = x + width > cols or y + height > rows or z + depth > layers
            if min(x, y, z, width, height, depth) < 0 or outside:
                raise SimulatedGLError(gl.GL_INVALID_VALUE)
        block = source[src_z : src_z + depth, src_y : src_y + height, src_x : src_x + width].copy()
        destination[dst_z : dst_z + depth, dst_y : dst_y + height, dst_x : dst_x + width] = block

    def _copy_endpoint(self, name: int, target: int, level: int) -> np.ndarray:
        if target not in _TEXTURE_TARGETS or target == gl.GL_TEXTURE_BUFFER:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        record = self._textures.get(name)
        if record is None or record.target != target or not record.levels:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if not 0 <= level < len(record.levels):
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        return record.levels[level]

    # draw

    def _check_draw(self, mode: int, first: int, count: int) -> None:
        if mode not in _PRIMITIVES:
            raise SimulatedGLError(gl.GL_INVALID_ENUM)
        if first < 0 or count < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        if not self._program or not self._vertex_array:
            raise SimulatedGLError(gl.GL_INVALID_OPERATION)

    def _draw_arrays(self, mode: int, first: int, count: int) -> None:
        self._check_draw(mode, first, count)
        self._draws.append(DrawRecord(mode, first, count, 1, self._program))

    def _draw_arrays_instanced(self, mode: int, first: int, count: int, instancecount: int) -> None:
        self._check_draw(mode, first, count)
        if instancecount < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        self._draws.append(DrawRecord(mode, first, count, instancecount, self._program))

    def _multi_draw_arrays(self, mode: int, first: int, count: int, drawcount: int) -> None:
        if drawcount < 0:
            raise SimulatedGLError(gl.GL_INVALID_VALUE)
        firsts = _read_ints(first, drawcount)
        counts = _read_ints(count, drawcount)
        for start, size in zip(firsts, counts, strict=True):
            self._check_draw(mode, start, size)
        for start, size in zip(firsts, counts, strict=True):
            self._draws.append(DrawRecord(mode, start, size, 1, self._program))


_FAILED_RESULTS: dict[str, NativeResult] = {
    "glCreateShader": 0,
    "glCreateProgram": 0,
    "glGetString": None,
    "glGetUniformLocation": -1,
    "glGetAttribLocation": -1,
}


def _log_length(text: str) -> int:
    encoded = text.encode("utf-8")
    return len(encoded) + 1 if encoded else 0


def _write_log(text: str, max_length: int, length: int, info_log: int) -> None:
    if max_length < 0:
        raise SimulatedGLError(gl.GL_INVALID_VALUE)
    encoded = text.encode("utf-8")
    written = min(max_length - 1, len(encoded)) if max_length > 0 else 0
    if max_length > 0:
        ctypes.memmove(info_log, encoded[:written] + b"\x00", written + 1)
    _write_ints(length, (written,))


def _unpack_rows(address: int, *, row_bytes: int, rows: int, alignment: int) -> np.ndarray:
    stride = _row_stride(row_bytes, alignment)
    total = stride * (rows - 1) + row_bytes
    padded = np.zeros(stride * rows, dtype=np.uint8)
    padded[:total] = np.frombuffer(_read(address, total), dtype=np.uint8)
    return np.ascontiguousarray(padded.reshape(rows, stride)[:, :row_bytes])


def _pack_rows(address: int, data: np.ndarray, *, alignment: int) -> None:
    rows, row_bytes = data.shape
    stride = _row_stride(row_bytes, alignment)
    for row in range(rows):
        line = np.ascontiguousarray(data[row])
        ctypes.memmove(address + row * stride, line.ctypes.data, row_bytes)


def _convert_texels(data: np.ndarray, source_channels: int, target_channels: int) -> np.ndarray:
    """Convert normalized texels between single-channel and RGBA layouts."""
    if source_channels == target_channels or source_channels == 0 or target_channels == 0:
        return data
    if target_channels == 1:
        return data[..., :1]
    expanded = np.zeros(data.shape[:-1] + (4,), dtype=np.uint8)
    expanded[..., 0] = data[..., 0]
    expanded[..., 3] = 255
    return expanded
