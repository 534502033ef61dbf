"""OpenGL binding and marshaling layer."""

from glbridge.api.context import create_gl_context
from glbridge.api.driver import create_driver

__all__ = ["create_driver", "create_gl_context"]
