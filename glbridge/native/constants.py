"""OpenGL enum values used by the binding layer and its callers."""

from __future__ import annotations

GL_FALSE = 0
GL_TRUE = 1
GL_ZERO = 0
GL_ONE = 1

# error register
GL_NO_ERROR = 0
GL_INVALID_ENUM = 0x0500
GL_INVALID_VALUE = 0x0501
GL_INVALID_OPERATION = 0x0502
GL_STACK_OVERFLOW = 0x0503
GL_STACK_UNDERFLOW = 0x0504
GL_OUT_OF_MEMORY = 0x0505
GL_INVALID_FRAMEBUFFER_OPERATION = 0x0506

# strings
GL_VENDOR = 0x1F00
GL_RENDERER = 0x1F01
GL_VERSION = 0x1F02
GL_EXTENSIONS = 0x1F03
GL_SHADING_LANGUAGE_VERSION = 0x8B8C

# primitives
GL_POINTS = 0x0000
GL_LINES = 0x0001
GL_LINE_LOOP = 0x0002
GL_LINE_STRIP = 0x0003
GL_TRIANGLES = 0x0004
GL_TRIANGLE_STRIP = 0x0005
GL_TRIANGLE_FAN = 0x0006

# clear mask
GL_DEPTH_BUFFER_BIT = 0x00000100
GL_STENCIL_BUFFER_BIT = 0x00000400
GL_COLOR_BUFFER_BIT = 0x00004000

# capabilities
GL_CULL_FACE = 0x0B44
GL_DEPTH_TEST = 0x0B71
GL_BLEND = 0x0BE2
GL_SCISSOR_TEST = 0x0C11
GL_FRAMEBUFFER_SRGB = 0x8DB9

# blending
GL_SRC_ALPHA = 0x0302
GL_ONE_MINUS_SRC_ALPHA = 0x0303

# shaders and programs
GL_FRAGMENT_SHADER = 0x8B30
GL_VERTEX_SHADER = 0x8B31
GL_SHADER_TYPE = 0x8B4F
GL_DELETE_STATUS = 0x8B80
GL_COMPILE_STATUS = 0x8B81
GL_LINK_STATUS = 0x8B82
GL_INFO_LOG_LENGTH = 0x8B84
GL_ATTACHED_SHADERS = 0x8B85
GL_SHADER_SOURCE_LENGTH = 0x8B88
GL_CURRENT_PROGRAM = 0x8B8D

# integer state
GL_VIEWPORT = 0x0BA2
GL_UNPACK_ALIGNMENT = 0x0CF5
GL_PACK_ALIGNMENT = 0x0D05
GL_MAX_TEXTURE_SIZE = 0x0D33
GL_MAJOR_VERSION = 0x821B
GL_MINOR_VERSION = 0x821C
GL_NUM_EXTENSIONS = 0x821D
GL_ACTIVE_TEXTURE = 0x84E0
GL_MAX_VERTEX_ATTRIBS = 0x8869
GL_MAX_ARRAY_TEXTURE_LAYERS = 0x88FF
GL_TEXTURE_BINDING_2D_ARRAY = 0x8C1D

# texture units
GL_TEXTURE0 = 0x84C0
GL_TEXTURE1 = 0x84C1
GL_TEXTURE2 = 0x84C2
GL_TEXTURE3 = 0x84C3
GL_TEXTURE4 = 0x84C4
GL_TEXTURE5 = 0x84C5
GL_TEXTURE6 = 0x84C6
GL_TEXTURE7 = 0x84C7
GL_TEXTURE8 = 0x84C8

# texture targets and parameters
GL_TEXTURE_2D = 0x0DE1
GL_TEXTURE_2D_ARRAY = 0x8C1A
GL_TEXTURE_BUFFER = 0x8C2A
GL_TEXTURE_MAG_FILTER = 0x2800
GL_TEXTURE_MIN_FILTER = 0x2801
GL_TEXTURE_WRAP_S = 0x2802
GL_TEXTURE_WRAP_T = 0x2803
GL_NEAREST = 0x2600
GL_LINEAR = 0x2601
GL_CLAMP_TO_EDGE = 0x812F

# pixel formats and types
GL_BYTE = 0x1400
GL_UNSIGNED_BYTE = 0x1401
GL_INT = 0x1404
GL_UNSIGNED_INT = 0x1405
GL_FLOAT = 0x1406
GL_RED = 0x1903
GL_RGBA = 0x1908
GL_RGBA8 = 0x8058
GL_R8 = 0x8229
GL_RGB32UI = 0x8D71
GL_RGB_INTEGER = 0x8D98
GL_RGBA_INTEGER = 0x8D99

# buffers
GL_ARRAY_BUFFER = 0x8892
GL_STREAM_DRAW = 0x88E0
GL_STATIC_DRAW = 0x88E4
GL_DYNAMIC_DRAW = 0x88E8

# extensions
ARB_TEXTURE_STORAGE = "GL_ARB_texture_storage"
ARB_TEXTURE_BUFFER_OBJECT_RGB32 = "GL_ARB_texture_buffer_object_rgb32"
ARB_COPY_IMAGE = "GL_ARB_copy_image"
