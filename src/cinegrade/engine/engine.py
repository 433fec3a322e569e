"""
RenderEngine: device-side grade renderer.

Owns one rendering device, one compiled grade program, one full-screen quad
and one resident source texture. Every ``render`` call re-runs the whole
grade over the surface; nothing about a previous frame is reused except the
rasterized coordinates and sampled texels for an unchanged surface size.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Self

import numpy as np
import torch

from cinegrade.constants import QUAD_POSITIONS, QUAD_TEXCOORDS
from cinegrade.engine.config import EngineConfig
from cinegrade.engine.device import DeviceContext
from cinegrade.engine.program import GradeProgram, rasterize_uv, sample_texture
from cinegrade.errors import (
    ContextLostError,
    EmptyFrameError,
    EngineStateError,
    InitializationError,
    UnsupportedInputError,
)
from cinegrade.imaging import encode_png, to_rgba_float
from cinegrade.params import ParameterSet
from cinegrade.protocols import DrawingSurface
from cinegrade.validators import validate_type

logger = logging.getLogger(__name__)


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DISPOSED = "disposed"


class RenderEngine:
    """
    Renders graded frames of a loaded image onto a drawing surface.

    Example:
        >>> surface = Surface(640, 360)
        >>> with RenderEngine.create(surface, EngineConfig(device="cpu")) as engine:
        ...     engine.load_image(pixels)
        ...     engine.render(params, time=0.0)
        ...     png = engine.export_snapshot()
    """

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self._state = EngineState.UNINITIALIZED
        self._surface: DrawingSurface | None = None
        self._device: torch.device | None = None
        self._program: GradeProgram | None = None
        self._quad_positions: torch.Tensor | None = None
        self._quad_texcoords: torch.Tensor | None = None
        self._texture: torch.Tensor | None = None
        self._uv: torch.Tensor | None = None
        self._texels: torch.Tensor | None = None
        self._framebuffer: torch.Tensor | None = None
        self._frame_count = 0

    @classmethod
    def create(cls, surface: DrawingSurface, config: EngineConfig | None = None) -> RenderEngine:
        """Construct and initialize an engine in one step."""
        engine = cls(config)
        engine.initialize(surface)
        return engine

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def device(self) -> torch.device | None:
        return self._device

    @property
    def surface(self) -> DrawingSurface | None:
        return self._surface

    @property
    def has_image(self) -> bool:
        return self._texture is not None

    @property
    def frame_count(self) -> int:
        """Number of successful renders since initialization."""
        return self._frame_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @validate_type(DrawingSurface, "surface")
    def initialize(self, surface: DrawingSurface) -> Self:
        """
        Acquire the device and build the grade program.

        Args:
            surface: Target whose width/height define the rendered frame size

        Returns:
            Self for chaining

        Raises:
            InitializationError: If the device is unavailable or the program fails to build
            EngineStateError: If the engine is already initialized or disposed
        """
        if self._state is not EngineState.UNINITIALIZED:
            raise EngineStateError(f"Cannot initialize an engine in state {self._state.value!r}")

        try:
            device = DeviceContext.resolve(self.config.device)
            program = GradeProgram(device)
            if self.config.self_test:
                program.self_test()
            # Triangle strip covering clip space
            positions = torch.tensor(QUAD_POSITIONS, dtype=torch.float32, device=device)
            texcoords = torch.tensor(QUAD_TEXCOORDS, dtype=torch.float32, device=device)
        except InitializationError:
            logger.error("[RenderEngine] Initialization failed (device=%s)", self.config.device)
            raise
        except RuntimeError as exc:
            logger.error("[RenderEngine] Initialization failed (device=%s)", self.config.device)
            raise InitializationError(
                f"Could not set up rendering device {self.config.device!r}: {exc}"
            ) from exc

        self._surface = surface
        self._device = device
        self._program = program
        self._quad_positions = positions
        self._quad_texcoords = texcoords
        self._state = EngineState.READY

        logger.info(
            "[RenderEngine] Initialized on %s (surface %dx%d)", device, surface.width, surface.height
        )
        return self

    def dispose(self) -> None:
        """Release every device resource. Safe to call more than once."""
        if self._state is EngineState.DISPOSED:
            return

        device = self._device
        self._program = None
        self._quad_positions = None
        self._quad_texcoords = None
        self._texture = None
        self._uv = None
        self._texels = None
        self._framebuffer = None
        self._surface = None
        self._device = None
        self._state = EngineState.DISPOSED

        if device is not None:
            DeviceContext.empty_cache(device)
        logger.info("[RenderEngine] Disposed")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"RenderEngine(state={self._state.value}, device={self._device})"

    # ------------------------------------------------------------------
    # Image and frames
    # ------------------------------------------------------------------

    def load_image(self, pixel_source) -> bool:
        """
        Upload a decoded image into the texture slot.

        Args:
            pixel_source: RGBA/RGB pixel grid [H, W, 3|4] (uint8, uint16 or float)
                or a PIL image

        Returns:
            True if the texture was replaced, False if the input was rejected
            (the previous texture stays loaded)
        """
        self._require_ready("load_image")

        try:
            rgba = to_rgba_float(pixel_source)
        except UnsupportedInputError as exc:
            logger.warning("[RenderEngine] Rejected image: %s", exc)
            return False

        self._release_texture()
        try:
            texture = DeviceContext.to_device(rgba, self._device)
            self._texture = texture.permute(2, 0, 1).unsqueeze(0).contiguous()
        except RuntimeError as exc:
            raise ContextLostError(f"Texture upload failed on {self._device}: {exc}") from exc

        logger.info("[RenderEngine] Loaded %dx%d texture", rgba.shape[1], rgba.shape[0])
        return True

    @validate_type(ParameterSet, "params")
    @validate_type((int, float, np.floating, np.integer), "time", param_index=2)
    def render(self, params: ParameterSet, time: float = 0.0) -> None:
        """
        Draw one graded frame at the surface's current size.

        Args:
            params: Grade parameters for this frame
            time: Time in milliseconds (only affects grain)

        Raises:
            ContextLostError: If the device fails while executing the pass
        """
        self._require_ready("render")
        if self._texture is None:
            logger.warning("[RenderEngine] render() called before an image was loaded; skipping")
            return

        width, height = int(self._surface.width), int(self._surface.height)
        try:
            uv, texels = self._frame_inputs(width, height)
            self._program.bind(params)
            frame = self._program.shade(texels, uv, float(time))
            DeviceContext.synchronize(self._device)
        except RuntimeError as exc:
            raise ContextLostError(f"Render pass failed on {self._device}: {exc}") from exc

        self._framebuffer = frame
        self._frame_count += 1
        logger.debug("[RenderEngine] Frame %d rendered at %dx%d", self._frame_count, width, height)

    def read_pixels(self) -> np.ndarray:
        """
        Download the most recent frame.

        Returns:
            RGBA uint8 pixel grid [H, W, 4], row 0 at the top

        Raises:
            EmptyFrameError: If nothing has been rendered yet
        """
        self._require_ready("read_pixels")
        if self._framebuffer is None:
            raise EmptyFrameError("No frame has been rendered yet")
        quantized = torch.round(self._framebuffer * 255.0).clamp(0, 255).to(torch.uint8)
        return DeviceContext.to_cpu(quantized)

    def export_snapshot(self) -> bytes:
        """
        Encode the most recent frame as PNG.

        Raises:
            EmptyFrameError: If nothing has been rendered yet
        """
        self._require_ready("export_snapshot")
        png = encode_png(self.read_pixels())
        logger.info("[RenderEngine] Exported snapshot (%d bytes)", len(png))
        return png

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_ready(self, operation: str) -> None:
        if self._state is EngineState.UNINITIALIZED:
            raise EngineStateError(f"{operation}() requires initialize() first")
        if self._state is EngineState.DISPOSED:
            raise EngineStateError(f"{operation}() called on a disposed engine")

    def _release_texture(self) -> None:
        had_texture = self._texture is not None
        self._texture = None
        self._texels = None
        if had_texture and self.config.release_cache_on_load:
            DeviceContext.empty_cache(self._device)

    def _frame_inputs(self, width: int, height: int) -> tuple[torch.Tensor, torch.Tensor]:
        # Coordinates and texels only depend on the surface size and the texture
        if self._uv is None or self._uv.shape[:2] != (height, width):
            self._uv = rasterize_uv(self._quad_positions, self._quad_texcoords, width, height)
            self._texels = None
        if self._texels is None:
            self._texels = sample_texture(self._texture, self._uv)
        return self._uv, self._texels


__all__ = ["EngineState", "RenderEngine"]
