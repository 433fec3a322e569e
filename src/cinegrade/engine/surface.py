"""In-memory drawing surface."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from cinegrade.validators import validate_positive


@dataclass
class Surface:
    """
    Render target of a fixed pixel size.

    Example:
        >>> surface = Surface(640, 360)
        >>> surface.resize(1280, 720)
    """

    width: int
    height: int

    def __post_init__(self):
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be int, got {type(value).__name__}")
            if value <= 0:
                raise ValueError(f"{name}={value} must be positive (> 0).")

    @validate_positive("width", param_index=1)
    @validate_positive("height", param_index=2)
    def resize(self, width: int, height: int) -> None:
        """Change the target size; takes effect at the next render."""
        self.width = int(width)
        self.height = int(height)

    @classmethod
    def for_image(cls, pixels: np.ndarray) -> Surface:
        """Surface matching a pixel grid [H, W, C]."""
        return cls(width=int(pixels.shape[1]), height=int(pixels.shape[0]))
