"""
Device-side rendering.

Draws graded frames of a loaded image through a compiled tensor program on
CUDA, MPS or CPU.

Example:
    >>> from cinegrade.engine import EngineConfig, RenderEngine, Surface
    >>>
    >>> surface = Surface(1400, 900)
    >>> with RenderEngine.create(surface, EngineConfig(device="cpu")) as engine:
    ...     engine.load_image(pixels)
    ...     engine.render(params, time=0.0)
    ...     frame = engine.read_pixels()
"""

from cinegrade.engine.config import EngineConfig
from cinegrade.engine.device import DeviceContext
from cinegrade.engine.engine import EngineState, RenderEngine
from cinegrade.engine.program import GradeProgram
from cinegrade.engine.surface import Surface

__all__ = [
    "DeviceContext",
    "EngineConfig",
    "EngineState",
    "GradeProgram",
    "RenderEngine",
    "Surface",
]
