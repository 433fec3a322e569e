"""
ColorGradeTransform: CPU reference API for the per-pixel grade.

Wraps the Numba kernels with array handling. ``render_frame`` is a pure
function of (image, params, time), which keeps the algorithm unit-testable
independently of the device pass in ``cinegrade.engine``.

Example:
    >>> from cinegrade import DEFAULT_CATALOG
    >>> from cinegrade.color import render_frame
    >>> params = DEFAULT_CATALOG.get("apple_cinematic").params
    >>> graded = render_frame(image, params, time=0.0)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from cinegrade.color.kernels import (
    grade_image_numba,
    grade_pixel_numba,
    hsl_to_rgb_numba,
    rgb_to_hsl_numba,
)
from cinegrade.imaging import to_rgba_float
from cinegrade.params import ParameterSet, pack_uniforms

logger = logging.getLogger(__name__)


def grade_pixel(
    rgb: Sequence[float],
    params: ParameterSet,
    uv: Sequence[float] = (0.5, 0.5),
    time: float = 0.0,
) -> tuple[float, float, float]:
    """
    Grade a single color.

    Args:
        rgb: Source color (r, g, b) in [0, 1]
        params: Grading parameters
        uv: Normalized screen coordinate (defaults to the image center)
        time: Time in milliseconds (feeds the grain hash only)

    Returns:
        Graded (r, g, b) in [0, 1]

    Example:
        >>> grade_pixel((0.25, 0.25, 0.25), ParameterSet(exposure=1.0))
        (0.5, 0.5, 0.5)
    """
    r, g, b = (float(c) for c in rgb)
    u, v = (float(c) for c in uv)
    graded = grade_pixel_numba(r, g, b, u, v, float(time), pack_uniforms(params))
    return float(graded[0]), float(graded[1]), float(graded[2])


def render_frame(
    image: np.ndarray,
    params: ParameterSet,
    time: float = 0.0,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """
    Grade a whole image at its own resolution.

    Args:
        image: RGBA or RGB pixel grid [H, W, C], uint8 or float in [0, 1]
        params: Grading parameters
        time: Time in milliseconds
        out: Optional float32 output buffer [H, W, 4]

    Returns:
        Graded RGBA image [H, W, 4] as float32 in [0, 1], alpha unchanged

    Raises:
        UnsupportedInputError: If image is not a supported pixel grid
    """
    source = to_rgba_float(image).astype(np.float64)
    height, width = source.shape[:2]

    if out is None:
        out = np.empty((height, width, 4), dtype=np.float32)
    elif out.shape != (height, width, 4):
        raise ValueError(f"Output buffer must have shape {(height, width, 4)}, got {out.shape}")

    grade_image_numba(source, pack_uniforms(params), float(time), out)
    logger.debug("[render_frame] Graded %dx%d image", width, height)
    return out


def rgb_to_hsl(colors: np.ndarray) -> np.ndarray:
    """
    Convert RGB colors [..., 3] to HSL [..., 3] (all components in [0, 1]).

    Example:
        >>> rgb_to_hsl(np.array([1.0, 0.0, 0.0]))
        array([0. , 1. , 0.5])
    """
    colors = np.asarray(colors, dtype=np.float64)
    flat = np.ascontiguousarray(colors.reshape(-1, 3))
    out = np.empty_like(flat)
    rgb_to_hsl_numba(flat, out)
    return out.reshape(colors.shape)


def hsl_to_rgb(colors: np.ndarray) -> np.ndarray:
    """Convert HSL colors [..., 3] back to RGB [..., 3]."""
    colors = np.asarray(colors, dtype=np.float64)
    flat = np.ascontiguousarray(colors.reshape(-1, 3))
    out = np.empty_like(flat)
    hsl_to_rgb_numba(flat, out)
    return out.reshape(colors.shape)
