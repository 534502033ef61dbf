"""Typed wrappers for driver-owned resource names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, slots=True)
class GLHandle:
    """Opaque driver-issued name; value 0 is the driver's "no object" name."""

    kind: ClassVar[str] = "object"

    value: int

    def __int__(self) -> int:
        return int(self.value)

    def __bool__(self) -> bool:
        return self.value != 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.value})"


@dataclass(frozen=True, slots=True, repr=False)
class ShaderHandle(GLHandle):
    kind: ClassVar[str] = "shader"


@dataclass(frozen=True, slots=True, repr=False)
class ProgramHandle(GLHandle):
    kind: ClassVar[str] = "program"


@dataclass(frozen=True, slots=True, repr=False)
class TextureHandle(GLHandle):
    kind: ClassVar[str] = "texture"


@dataclass(frozen=True, slots=True, repr=False)
class BufferHandle(GLHandle):
    kind: ClassVar[str] = "buffer"


@dataclass(frozen=True, slots=True, repr=False)
class VertexArrayHandle(GLHandle):
    kind: ClassVar[str] = "vertex array"
