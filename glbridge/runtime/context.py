"""GL context session: the public operation surface of the binding layer."""

from __future__ import annotations

import ctypes
import functools
import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, NoReturn, TypeVar

from glbridge.api.driver import GLDriver, NativeCall, NativeResult
from glbridge.api.errors import (
    ArgumentError,
    BootstrapError,
    CapabilityMissingError,
    DriverErrorKind,
    DriverUnknownError,
)
from glbridge.api.handles import (
    BufferHandle,
    ProgramHandle,
    ShaderHandle,
    TextureHandle,
    VertexArrayHandle,
)
from glbridge.native.constants import (
    GL_INFO_LOG_LENGTH,
    GL_RED,
    GL_RGBA,
    GL_TEXTURE_2D_ARRAY,
    GL_TEXTURE_BUFFER,
    GL_UNPACK_ALIGNMENT,
    GL_UNSIGNED_BYTE,
    GL_VERSION,
)
from glbridge.native.descriptors import ArgKind, CallDescriptor, get_descriptor
from glbridge.runtime.batch import generate_handles
from glbridge.runtime.bootstrap import BootstrapReport, run_capability_bootstrap
from glbridge.runtime.config import BridgeConfig
from glbridge.runtime.error_translation import ErrorChecker
from glbridge.runtime.info_log import retrieve_info_log
from glbridge.runtime.marshal import MarshaledValue, convert_argument, marshal_arguments
from glbridge.runtime.pointers import extract_channel
from glbridge.runtime.scratch import ScratchArena

_LOG = logging.getLogger("glbridge.context")

NAMED_BUFFER_MIN_VERSION = (4, 5)
_INTEGER_STAGING = 16
_VERSION_PATTERN = re.compile(rb"(\d+)\.(\d+)")

_Method = TypeVar("_Method", bound=Callable[..., Any])


def _arity_checked(method: _Method) -> _Method:
    """Report a wrong argument count or keyword as ``ArgumentError``."""
    signature = inspect.signature(method)
    name = method.__name__

    @functools.wraps(method)
    def wrapper(self: GLContext, *args: Any, **kwargs: Any) -> Any:
        try:
            signature.bind(self, *args, **kwargs)
        except TypeError as exc:
            raise ArgumentError(f"{name}: {exc}", operation=name) from exc
        return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _check_operation_arity(cls: type[GLContext]) -> type[GLContext]:
    for name in cls.OPERATIONS:
        setattr(cls, name, _arity_checked(getattr(cls, name)))
    return cls


@dataclass(frozen=True, slots=True)
class PreparedCall:
    """Native call whose arguments were fully validated and converted."""

    descriptor: CallDescriptor
    function: NativeCall
    args: tuple[MarshaledValue, ...]


@_check_operation_arity
class GLContext:
    """Binds one driver context and exposes the curated GL operation set.

    Every operation validates its argument count and converts its arguments
    before the native call, then queries the driver error register when
    automatic checking is enabled. ``bootstrap()`` must succeed before any
    other operation runs.
    """

    OPERATIONS: ClassVar[tuple[str, ...]] = (
        "bootstrap",
        "enable_automatic_error_checking",
        "check_error",
        "viewport",
        "clear_color",
        "clear",
        "enable",
        "disable",
        "blend_func",
        "pixel_store_i",
        "get_integer",
        "get_string",
        "active_texture",
        "gen_vertex_arrays",
        "gen_textures",
        "gen_buffers",
        "delete_texture",
        "delete_buffer",
        "delete_program",
        "delete_shader",
        "create_shader",
        "shader_source",
        "compile_shader",
        "get_shader_iv",
        "get_shader_info_log",
        "create_program",
        "attach_shader",
        "link_program",
        "get_program_iv",
        "get_program_info_log",
        "use_program",
        "get_uniform_location",
        "get_attrib_location",
        "uniform_2ui",
        "uniform_1i",
        "uniform_2f",
        "uniform_4f",
        "uniform_3fv",
        "enable_vertex_attrib_array",
        "vertex_attrib_pointer",
        "bind_texture",
        "bind_buffer",
        "bind_vertex_array",
        "tex_storage_3d",
        "tex_sub_image_3d",
        "get_tex_image",
        "named_buffer_data",
        "tex_buffer",
        "tex_parameter_i",
        "copy_image_sub_data",
        "copy_texture_channel",
        "draw_arrays",
        "draw_arrays_instanced",
        "multi_draw_arrays",
    )

    def __init__(
        self,
        driver: GLDriver,
        *,
        config: BridgeConfig | None = None,
        arena: ScratchArena | None = None,
    ) -> None:
        self._driver = driver
        self._config = config or BridgeConfig()
        self._arena = arena or ScratchArena(limit_bytes=self._config.scratch_limit_bytes)
        self._functions: dict[str, NativeCall | None] = {}
        self._checker = ErrorChecker(self._query_error, enabled=self._config.error_checking)
        self._bootstrap_report: BootstrapReport | None = None
        self._bootstrap_error: Exception | None = None
        self._gl_version: tuple[int, int] | None = None

    @property
    def driver(self) -> GLDriver:
        return self._driver

    @property
    def arena(self) -> ScratchArena:
        return self._arena

    @property
    def error_checking(self) -> bool:
        return self._checker.enabled

    @property
    def bootstrap_report(self) -> BootstrapReport | None:
        return self._bootstrap_report

    # diagnostics/control

    def bootstrap(self) -> BootstrapReport:
        """Initialize the extension loader and verify required capabilities once."""
        if self._bootstrap_report is not None:
            return self._bootstrap_report
        if self._bootstrap_error is not None:
            raise self._bootstrap_error
        try:
            self._bootstrap_report = run_capability_bootstrap(self._driver)
        except (BootstrapError, CapabilityMissingError) as exc:
            self._bootstrap_error = exc
            raise
        return self._bootstrap_report

    def enable_automatic_error_checking(self, enabled: bool) -> None:
        self._checker.enabled = bool(enabled)
        _LOG.debug("gl_error_checking enabled=%s", self._checker.enabled)

    def check_error(self) -> None:
        """Raise the pending driver error; a no-op while checking is disabled."""
        self._require_bootstrap()
        self._checker.after_call("check_error")

    # frame/state

    def viewport(self, x: int, y: int, width: int, height: int) -> None:
        self._call("glViewport", x, y, width, height)

    def clear_color(self, red: float, green: float, blue: float, alpha: float) -> None:
        self._call("glClearColor", red, green, blue, alpha)

    def clear(self, mask: int) -> None:
        self._call("glClear", mask)

    def enable(self, cap: int) -> None:
        self._call("glEnable", cap)

    def disable(self, cap: int) -> None:
        self._call("glDisable", cap)

    def blend_func(self, sfactor: int, dfactor: int) -> None:
        self._call("glBlendFunc", sfactor, dfactor)

    def pixel_store_i(self, pname: int, param: int) -> None:
        self._call("glPixelStorei", pname, param)

    def get_integer(self, pname: int) -> int:
        """Return the first integer of the queried state value."""
        staging = (ctypes.c_int * _INTEGER_STAGING)()
        self._call("glGetIntegerv", pname, ctypes.addressof(staging))
        return int(staging[0])

    def get_string(self, name: int) -> str:
        result = self._call("glGetString", name)
        if not isinstance(result, bytes):
            self._raise_null_result("glGetString")
        return result.decode("utf-8", errors="replace")

    def active_texture(self, unit: int) -> None:
        self._call("glActiveTexture", unit)

    # resource lifecycle

    def gen_vertex_arrays(self, n: int) -> VertexArrayHandle | tuple[VertexArrayHandle, ...]:
        return self._generate("glGenVertexArrays", n, VertexArrayHandle)

    def gen_textures(self, n: int) -> TextureHandle | tuple[TextureHandle, ...]:
        return self._generate("glGenTextures", n, TextureHandle)

    def gen_buffers(self, n: int) -> BufferHandle | tuple[BufferHandle, ...]:
        return self._generate("glGenBuffers", n, BufferHandle)

    def delete_texture(self, texture: TextureHandle) -> None:
        self._delete_one("glDeleteTextures", ArgKind.TEXTURE, texture)

    def delete_buffer(self, buffer: BufferHandle) -> None:
        self._delete_one("glDeleteBuffers", ArgKind.BUFFER, buffer)

    def delete_program(self, program: ProgramHandle) -> None:
        self._call("glDeleteProgram", program)

    def delete_shader(self, shader: ShaderHandle) -> None:
        self._call("glDeleteShader", shader)

    # shader pipeline

    def create_shader(self, shader_type: int) -> ShaderHandle:
        return ShaderHandle(int(self._call("glCreateShader", shader_type) or 0))

    def shader_source(self, shader: ShaderHandle, source: str | bytes) -> None:
        self._require_bootstrap()
        text = convert_argument(ArgKind.TEXT, source, operation="glShaderSource", parameter="string")
        strings = (ctypes.c_char_p * 1)(text)
        self._call("glShaderSource", shader, 1, ctypes.addressof(strings), 0)

    def compile_shader(self, shader: ShaderHandle) -> None:
        self._call("glCompileShader", shader)

    def get_shader_iv(self, shader: ShaderHandle, pname: int) -> int:
        return self._get_iv("glGetShaderiv", shader, pname)

    def get_shader_info_log(self, shader: ShaderHandle) -> str:
        return self._info_log("glGetShaderiv", "glGetShaderInfoLog", shader).decode("utf-8", errors="replace")

    def create_program(self) -> ProgramHandle:
        result = self._call("glCreateProgram")
        if not isinstance(result, int) or not result:
            self._raise_null_result("glCreateProgram")
        return ProgramHandle(int(result))

    def attach_shader(self, program: ProgramHandle, shader: ShaderHandle) -> None:
        self._call("glAttachShader", program, shader)

    def link_program(self, program: ProgramHandle) -> None:
        self._call("glLinkProgram", program)

    def get_program_iv(self, program: ProgramHandle, pname: int) -> int:
        return self._get_iv("glGetProgramiv", program, pname)

    def get_program_info_log(self, program: ProgramHandle) -> str:
        return self._info_log("glGetProgramiv", "glGetProgramInfoLog", program).decode("utf-8", errors="replace")

    def use_program(self, program: ProgramHandle) -> None:
        self._call("glUseProgram", program)

    # uniforms/attributes

    def get_uniform_location(self, program: ProgramHandle, name: str | bytes) -> int:
        return int(self._call("glGetUniformLocation", program, name))

    def get_attrib_location(self, program: ProgramHandle, name: str | bytes) -> int:
        return int(self._call("glGetAttribLocation", program, name))

    def uniform_2ui(self, location: int, v0: int, v1: int) -> None:
        self._call("glUniform2ui", location, v0, v1)

    def uniform_1i(self, location: int, v0: int) -> None:
        self._call("glUniform1i", location, v0)

    def uniform_2f(self, location: int, v0: float, v1: float) -> None:
        self._call("glUniform2f", location, v0, v1)

    def uniform_4f(self, location: int, v0: float, v1: float, v2: float, v3: float) -> None:
        self._call("glUniform4f", location, v0, v1, v2, v3)

    def uniform_3fv(self, location: int, count: int, address: int) -> None:
        self._call("glUniform3fv", location, count, address)

    def enable_vertex_attrib_array(self, index: int) -> None:
        self._call("glEnableVertexAttribArray", index)

    def vertex_attrib_pointer(
        self,
        index: int,
        size: int,
        attrib_type: int,
        normalized: bool,
        stride: int,
        offset: int,
    ) -> None:
        self._call("glVertexAttribPointer", index, size, attrib_type, normalized, stride, offset)

    # textures/buffers

    def bind_texture(self, target: int, texture: TextureHandle) -> None:
        self._call("glBindTexture", target, texture)

    def bind_buffer(self, target: int, buffer: BufferHandle) -> None:
        self._call("glBindBuffer", target, buffer)

    def bind_vertex_array(self, array: VertexArrayHandle) -> None:
        self._call("glBindVertexArray", array)

    def tex_storage_3d(
        self,
        target: int,
        levels: int,
        internal_format: int,
        width: int,
        height: int,
        depth: int,
    ) -> None:
        self._call("glTexStorage3D", target, levels, internal_format, width, height, depth)

    def tex_sub_image_3d(
        self,
        target: int,
        level: int,
        x: int,
        y: int,
        z: int,
        width: int,
        height: int,
        depth: int,
        fmt: int,
        pixel_type: int,
        address: int,
    ) -> None:
        self._call("glTexSubImage3D", target, level, x, y, z, width, height, depth, fmt, pixel_type, address)

    def get_tex_image(self, target: int, level: int, fmt: int, pixel_type: int, address: int) -> None:
        self._call("glGetTexImage", target, level, fmt, pixel_type, address)

    def named_buffer_data(self, buffer: BufferHandle, size: int, address: int, usage: int) -> None:
        """Upload ``size`` bytes at ``address`` into ``buffer``.

        Uses ``glNamedBufferData`` on GL 4.5 drivers reached through a loader;
        otherwise binds the buffer to ``GL_TEXTURE_BUFFER`` for ``glBufferData``
        and unbinds it afterwards.
        """
        self._require_bootstrap()
        fallback = (
            self._prepare("glBindBuffer", GL_TEXTURE_BUFFER, buffer),
            self._prepare("glBufferData", GL_TEXTURE_BUFFER, size, address, usage),
            self._prepare("glBindBuffer", GL_TEXTURE_BUFFER, BufferHandle(0)),
        )
        if self._named_buffer_data_available():
            self._run(self._prepare("glNamedBufferData", buffer, size, address, usage))
            return
        for step in fallback:
            self._run(step)

    def tex_buffer(self, target: int, internal_format: int, buffer: BufferHandle) -> None:
        self._call("glTexBuffer", target, internal_format, buffer)

    def tex_parameter_i(self, target: int, pname: int, param: int) -> None:
        self._call("glTexParameteri", target, pname, param)

    def copy_image_sub_data(
        self,
        src: TextureHandle,
        src_target: int,
        src_level: int,
        src_x: int,
        src_y: int,
        src_z: int,
        dst: TextureHandle,
        dst_target: int,
        dst_level: int,
        dst_x: int,
        dst_y: int,
        dst_z: int,
        width: int,
        height: int,
        depth: int,
    ) -> None:
        """Copy a texel region between textures; needs ``GL_ARB_copy_image``."""
        self._require_bootstrap()
        descriptor = get_descriptor("glCopyImageSubData")
        if not self._extension_available(descriptor):
            raise CapabilityMissingError(str(descriptor.extension))
        self._call(
            "glCopyImageSubData",
            src,
            src_target,
            src_level,
            src_x,
            src_y,
            src_z,
            dst,
            dst_target,
            dst_level,
            dst_x,
            dst_y,
            dst_z,
            width,
            height,
            depth,
        )

    def copy_texture_channel(
        self,
        src: TextureHandle,
        dst: TextureHandle,
        width: int,
        height: int,
        layers: int,
    ) -> None:
        """Copy the red channel of an RGBA array texture into a single-channel one.

        Level 0 of ``src`` is downloaded into the first four fifths of one
        scratch region, every fourth byte is gathered into the last fifth, and
        that plane is uploaded to ``dst`` with an unpack alignment of 1. The
        scratch region is released on every exit path.
        """
        self._require_bootstrap()
        operation = "copy_texture_channel"
        for name, handle in (("src", src), ("dst", dst)):
            convert_argument(ArgKind.TEXTURE, handle, operation=operation, parameter=name)
        dims = [
            convert_argument(ArgKind.UINT, value, operation=operation, parameter=name)
            for name, value in (("width", width), ("height", height), ("layers", layers))
        ]
        texels = int(dims[0]) * int(dims[1]) * int(dims[2])
        if texels == 0:
            return
        with self._arena.region(5 * texels) as scratch:
            base = int(scratch.ctypes.data)
            steps = (
                self._prepare("glBindTexture", GL_TEXTURE_2D_ARRAY, src),
                self._prepare("glGetTexImage", GL_TEXTURE_2D_ARRAY, 0, GL_RGBA, GL_UNSIGNED_BYTE, base),
                self._prepare("glBindTexture", GL_TEXTURE_2D_ARRAY, dst),
                self._prepare("glPixelStorei", GL_UNPACK_ALIGNMENT, 1),
            )
            upload = self._prepare(
                "glTexSubImage3D",
                GL_TEXTURE_2D_ARRAY,
                0,
                0,
                0,
                0,
                width,
                height,
                layers,
                GL_RED,
                GL_UNSIGNED_BYTE,
                base + 4 * texels,
            )
            for step in steps:
                self._run(step)
            extract_channel(scratch[: 4 * texels], scratch[4 * texels :])
            self._run(upload)

    # draw

    def draw_arrays(self, mode: int, first: int, count: int) -> None:
        self._call("glDrawArrays", mode, first, count)

    def draw_arrays_instanced(self, mode: int, first: int, count: int, instance_count: int) -> None:
        self._call("glDrawArraysInstanced", mode, first, count, instance_count)

    def multi_draw_arrays(self, mode: int, firsts_address: int, counts_address: int, draw_count: int) -> None:
        self._call("glMultiDrawArrays", mode, firsts_address, counts_address, draw_count)

    # name dispatch

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run a registered operation by name."""
        if name not in self.OPERATIONS:
            raise ArgumentError(f"unknown operation: {name}", operation=name)
        return getattr(self, name)(*args, **kwargs)

    # internals

    def _require_bootstrap(self) -> None:
        if self._bootstrap_report is not None:
            return
        if self._bootstrap_error is not None:
            raise BootstrapError(
                f"OpenGL bootstrap failed: {self._bootstrap_error}",
                details={"cause": type(self._bootstrap_error).__name__},
            ) from self._bootstrap_error
        raise BootstrapError("GLContext.bootstrap() must succeed before any other operation")

    def _lookup(self, descriptor: CallDescriptor) -> NativeCall | None:
        if descriptor.name not in self._functions:
            self._functions[descriptor.name] = self._driver.bind(descriptor)
        return self._functions[descriptor.name]

    def _function(self, descriptor: CallDescriptor) -> NativeCall:
        function = self._lookup(descriptor)
        if function is None:
            if descriptor.extension is not None:
                raise CapabilityMissingError(descriptor.extension)
            raise CapabilityMissingError(
                descriptor.name,
                f"The OpenGL driver on this system does not expose {descriptor.name}",
            )
        return function

    def _prepare(self, name: str, *args: object) -> PreparedCall:
        descriptor = get_descriptor(name)
        native_args = marshal_arguments(descriptor, args)
        return PreparedCall(descriptor=descriptor, function=self._function(descriptor), args=native_args)

    def _run(self, prepared: PreparedCall) -> NativeResult:
        result = prepared.function(*prepared.args)
        self._checker.after_call(prepared.descriptor.name)
        return result

    def _call(self, name: str, *args: object) -> NativeResult:
        self._require_bootstrap()
        return self._run(self._prepare(name, *args))

    def _query_error(self) -> int:
        return int(self._function(get_descriptor("glGetError"))() or 0)

    def _raise_null_result(self, operation: str) -> NoReturn:
        self._checker.check_now(operation)
        raise DriverUnknownError(
            f"{operation}: the driver returned no result without reporting an error",
            kind=DriverErrorKind.UNKNOWN,
            code=0,
            operation=operation,
        )

    def _generate(self, name: str, n: int, handle_type: type[Any]) -> Any:
        self._require_bootstrap()
        return generate_handles(
            lambda count, address: self._call(name, count, address),
            n,
            handle_type,
            operation=name,
        )

    def _delete_one(self, name: str, kind: ArgKind, handle: object) -> None:
        self._require_bootstrap()
        value = convert_argument(kind, handle, operation=name, parameter="handle")
        staging = ctypes.c_uint(int(value or 0))
        self._call(name, 1, ctypes.addressof(staging))

    def _get_iv(self, name: str, handle: object, pname: int) -> int:
        staging = ctypes.c_int(0)
        self._call(name, handle, pname, ctypes.addressof(staging))
        return int(staging.value)

    def _info_log(self, query: str, fetch: str, handle: object) -> bytes:
        self._require_bootstrap()
        return retrieve_info_log(
            query_length=lambda: self._get_iv(query, handle, GL_INFO_LOG_LENGTH),
            fetch=lambda max_length, length, buffer: self._call(fetch, handle, max_length, length, buffer),
            arena=self._arena,
        )

    def _extension_available(self, descriptor: CallDescriptor) -> bool:
        if descriptor.extension is None:
            return self._lookup(descriptor) is not None
        if self._lookup(descriptor) is None:
            return False
        return self._driver.builtin_extensions or self._driver.extension_supported(descriptor.extension)

    def _gl_version_tuple(self) -> tuple[int, int]:
        """Parse the context version from ``GL_VERSION``; (0, 0) when unreadable.

        Runs outside automatic checking. A NULL result drains the register
        when checking is enabled, so nothing pending leaks into the next call.
        """
        if self._gl_version is None:
            raw = self._prepare("glGetString", GL_VERSION)
            text = raw.function(*raw.args)
            match = _VERSION_PATTERN.search(text) if isinstance(text, bytes) else None
            if match is None:
                if self._checker.enabled:
                    self._query_error()
                self._gl_version = (0, 0)
            else:
                self._gl_version = (int(match.group(1)), int(match.group(2)))
            _LOG.debug("gl_version major=%d minor=%d", *self._gl_version)
        return self._gl_version

    def _named_buffer_data_available(self) -> bool:
        if self._driver.builtin_extensions:
            return False
        if self._gl_version_tuple() < NAMED_BUFFER_MIN_VERSION:
            return False
        available = self._lookup(get_descriptor("glNamedBufferData")) is not None
        if not available:
            _LOG.debug("gl_named_buffer_data_unavailable fallback=glBufferData")
        return available
