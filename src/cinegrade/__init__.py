"""
cinegrade - Cinematic color grading for still images

Real-time color grading of a single photograph with a fixed per-pixel
transform, a catalog of named looks and a device-side renderer.

Features:
- ParameterSet: seventeen grading controls with neutral defaults
- PresetCatalog: built-in looks grouped by category (classic, prequel, royy)
- GradeSession: tracks the active preset and tags manual edits as "Custom"
- Reference transform on the CPU (Numba) for ground truth and batch use
- RenderEngine: the same transform as a tensor program on CUDA, MPS or CPU
- PNG snapshots of the graded frame

Example - Session and engine:
    >>> from cinegrade import GradeSession, RenderEngine, Surface, decode_image, prepare_source
    >>>
    >>> pixels = prepare_source(decode_image("beach.jpg"))
    >>> session = GradeSession().apply_preset("apple_cinematic")
    >>> session.update_field("exposure", 0.5)
    >>> session.label
    'Custom'
    >>>
    >>> with RenderEngine.create(Surface.for_image(pixels)) as engine:
    ...     engine.load_image(pixels)
    ...     engine.render(session.params, time=0.0)
    ...     png = engine.export_snapshot()

Example - Reference transform:
    >>> from cinegrade import ParameterSet, render_frame
    >>>
    >>> graded = render_frame(pixels, ParameterSet(saturation=0.0))
"""

__version__ = "0.1.0"

# Reference transform
from cinegrade.color import grade_pixel, hsl_to_rgb, render_frame, rgb_to_hsl

# Device rendering
from cinegrade.engine import (
    DeviceContext,
    EngineConfig,
    EngineState,
    RenderEngine,
    Surface,
)

# Errors
from cinegrade.errors import (
    ContextLostError,
    EmptyFrameError,
    EngineStateError,
    GradeError,
    InitializationError,
    PresetNotFoundError,
    UnsupportedInputError,
)

# Image I/O
from cinegrade.imaging import (
    decode_image,
    encode_png,
    fit_to_working_resolution,
    prepare_source,
    snapshot_filename,
)

# Parameters and presets
from cinegrade.params import ParameterSet, pack_uniforms
from cinegrade.presets import DEFAULT_CATALOG, Preset, PresetCatalog, PresetCategory
from cinegrade.protocols import DrawingSurface
from cinegrade.session import CustomBinding, GradeSession, PresetBinding

__all__ = [
    "__version__",
    # Parameters
    "ParameterSet",
    "pack_uniforms",
    # Presets
    "DEFAULT_CATALOG",
    "Preset",
    "PresetCatalog",
    "PresetCategory",
    # Session
    "GradeSession",
    "PresetBinding",
    "CustomBinding",
    # Reference transform
    "grade_pixel",
    "render_frame",
    "rgb_to_hsl",
    "hsl_to_rgb",
    # Engine
    "DeviceContext",
    "DrawingSurface",
    "EngineConfig",
    "EngineState",
    "RenderEngine",
    "Surface",
    # Imaging
    "decode_image",
    "encode_png",
    "fit_to_working_resolution",
    "prepare_source",
    "snapshot_filename",
    # Errors
    "GradeError",
    "InitializationError",
    "ContextLostError",
    "EmptyFrameError",
    "UnsupportedInputError",
    "EngineStateError",
    "PresetNotFoundError",
]
