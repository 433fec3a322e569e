"""
Numba-compiled kernels for the color grade transform.

CPU reference implementation of the per-pixel grade. The device program in
``cinegrade.engine.program`` executes the same steps on tensors; these
kernels are the ground truth it is tested against.

Kernels run with strict IEEE semantics (no fastmath): the clamps rely on
NaN comparing false so that degenerate parameters resolve to black.
"""

import numpy as np
from numba import njit, prange

from cinegrade.constants import (
    FLASH_BLUE_BOOST,
    FLASH_DESATURATION,
    FLASH_EDGE_HIGH,
    FLASH_EDGE_LOW,
    FLASH_RED_CUT,
    GAMMA_FLOOR,
    GRAIN_AMPLITUDE,
    GRAIN_TIME_SCALE,
    HASH_DOT_X,
    HASH_DOT_Y,
    HASH_SCALE,
    HIGHLIGHT_ZONE_PIVOT,
    HIGHLIGHT_ZONE_SLOPE,
    HSL_EPSILON,
    LUMA_B,
    LUMA_G,
    LUMA_R,
    SHADOW_ZONE_SLOPE,
    TEMPERATURE_SCALE,
    TINT_SCALE,
    U_BACKGROUND_CRUSH,
    U_CONTRAST,
    U_EXPOSURE,
    U_FLASH_STRENGTH,
    U_FLASH_THRESHOLD,
    U_GAIN,
    U_GAMMA,
    U_GRAIN,
    U_HIGHLIGHT_STRENGTH,
    U_HIGHLIGHT_TINT,
    U_LIFT,
    U_SATURATION,
    U_SHADOW_STRENGTH,
    U_SHADOW_TINT,
    U_TEMPERATURE,
    U_TINT,
    U_VIGNETTE,
    VIGNETTE_SCALE,
)

# ============================================================================
# Scalar Helpers
# ============================================================================


@njit(cache=True, nogil=True)
def clamp01(x: float) -> float:
    """Clamp to [0, 1]; NaN maps to 0."""
    if x > 1.0:
        return 1.0
    if x > 0.0:
        return x
    return 0.0


@njit(cache=True, nogil=True)
def smoothstep(edge0: float, edge1: float, x: float) -> float:
    """Cubic Hermite step between two edges; a collapsed range is a hard step at edge0."""
    if not edge1 - edge0 > 0.0:
        return 1.0 if x >= edge0 else 0.0
    t = clamp01((x - edge0) / (edge1 - edge0))
    return t * t * (3.0 - 2.0 * t)


@njit(cache=True, nogil=True)
def hash2(x: float, y: float) -> float:
    """Deterministic pseudo-random value in [0, 1) from a 2D input."""
    n = np.sin(x * HASH_DOT_X + y * HASH_DOT_Y) * HASH_SCALE
    return n - np.floor(n)


@njit(cache=True, nogil=True)
def luma(r: float, g: float, b: float) -> float:
    """Rec. 709 luma."""
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


@njit(cache=True, nogil=True)
def rgb_to_hsl_scalar(r: float, g: float, b: float) -> tuple:
    """
    Convert one RGB color to HSL (all components normalized to [0, 1]).

    Hue is taken from the first channel equal to the maximum, in r, g, b order.
    """
    max_c = max(r, max(g, b))
    min_c = min(r, min(g, b))
    light = (max_c + min_c) / 2.0
    if max_c == min_c:
        return 0.0, 0.0, light

    d = max_c - min_c
    if light > 0.5:
        den = 2.0 - max_c - min_c
    else:
        den = max_c + min_c
    if den < HSL_EPSILON:
        den = HSL_EPSILON
    s = d / den

    if max_c == r:
        h = (g - b) / d + (6.0 if g < b else 0.0)
    elif max_c == g:
        h = (b - r) / d + 2.0
    else:
        h = (r - g) / d + 4.0
    return h / 6.0, s, light


@njit(cache=True, nogil=True)
def hue_to_rgb(p: float, q: float, t: float) -> float:
    """One channel of the HSL -> RGB conversion."""
    if t < 0.0:
        t += 1.0
    if t > 1.0:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 1.0 / 2.0:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


@njit(cache=True, nogil=True)
def hsl_to_rgb_scalar(h: float, s: float, light: float) -> tuple:
    """Convert one HSL color back to RGB."""
    if s == 0.0:
        return light, light, light
    if light < 0.5:
        q = light * (1.0 + s)
    else:
        q = light + s - light * s
    p = 2.0 * light - q
    return (
        hue_to_rgb(p, q, h + 1.0 / 3.0),
        hue_to_rgb(p, q, h),
        hue_to_rgb(p, q, h - 1.0 / 3.0),
    )


# ============================================================================
# Per-Pixel Grade
# ============================================================================


@njit(cache=True, nogil=True)
def grade_pixel_numba(
    r: float,
    g: float,
    b: float,
    u: float,
    v: float,
    time: float,
    uniforms: np.ndarray,
) -> tuple:
    """
    Grade a single color.

    Args:
        r, g, b: Source color in [0, 1]
        u, v: Normalized screen coordinate in [0, 1]
        time: Time in milliseconds (only feeds the grain hash)
        uniforms: Packed parameters [UNIFORM_COUNT] (see pack_uniforms)

    Returns:
        Graded (r, g, b) in [0, 1]
    """
    # 1. Flash/crush
    flash = uniforms[U_FLASH_STRENGTH]
    if flash > 0.0:
        threshold = uniforms[U_FLASH_THRESHOLD]
        mask = smoothstep(threshold - FLASH_EDGE_LOW, threshold + FLASH_EDGE_HIGH, luma(r, g, b))
        crush = 1.0 - uniforms[U_BACKGROUND_CRUSH] * (1.0 - mask)
        r *= crush
        g *= crush
        b *= crush
        r *= 1.0 - FLASH_RED_CUT * flash
        b *= 1.0 + FLASH_BLUE_BOOST * flash
        h, s, light = rgb_to_hsl_scalar(r, g, b)
        r, g, b = hsl_to_rgb_scalar(h, s * (1.0 - FLASH_DESATURATION * flash), light)

    # 2. Exposure
    scale = 2.0 ** uniforms[U_EXPOSURE]
    r *= scale
    g *= scale
    b *= scale

    # 3. White balance
    r += uniforms[U_TEMPERATURE] * TEMPERATURE_SCALE
    b -= uniforms[U_TEMPERATURE] * TEMPERATURE_SCALE
    g += uniforms[U_TINT] * TINT_SCALE

    # 4. Contrast around mid-gray
    contrast = uniforms[U_CONTRAST]
    r = clamp01((r - 0.5) * contrast + 0.5)
    g = clamp01((g - 0.5) * contrast + 0.5)
    b = clamp01((b - 0.5) * contrast + 0.5)

    # 5. Lift / gamma / gain
    r = clamp01(
        max(r * uniforms[U_GAIN] + uniforms[U_LIFT], 0.0)
        ** (1.0 / max(uniforms[U_GAMMA], GAMMA_FLOOR))
    )
    g = clamp01(
        max(g * uniforms[U_GAIN + 1] + uniforms[U_LIFT + 1], 0.0)
        ** (1.0 / max(uniforms[U_GAMMA + 1], GAMMA_FLOOR))
    )
    b = clamp01(
        max(b * uniforms[U_GAIN + 2] + uniforms[U_LIFT + 2], 0.0)
        ** (1.0 / max(uniforms[U_GAMMA + 2], GAMMA_FLOOR))
    )

    # 6. Zone tinting (both zones keyed on the post-LGG luma)
    y = luma(r, g, b)
    shadow_mix = clamp01(1.0 - SHADOW_ZONE_SLOPE * y) * uniforms[U_SHADOW_STRENGTH]
    r += (uniforms[U_SHADOW_TINT] - r) * shadow_mix
    g += (uniforms[U_SHADOW_TINT + 1] - g) * shadow_mix
    b += (uniforms[U_SHADOW_TINT + 2] - b) * shadow_mix
    highlight_mix = (
        clamp01((y - HIGHLIGHT_ZONE_PIVOT) * HIGHLIGHT_ZONE_SLOPE) * uniforms[U_HIGHLIGHT_STRENGTH]
    )
    r += (uniforms[U_HIGHLIGHT_TINT] - r) * highlight_mix
    g += (uniforms[U_HIGHLIGHT_TINT + 1] - g) * highlight_mix
    b += (uniforms[U_HIGHLIGHT_TINT + 2] - b) * highlight_mix

    # 7. Saturation
    h, s, light = rgb_to_hsl_scalar(r, g, b)
    r, g, b = hsl_to_rgb_scalar(h, clamp01(s * uniforms[U_SATURATION]), light)

    # 8. Vignette
    du = u - 0.5
    dv = v - 0.5
    factor = clamp01(1.0 - (du * du + dv * dv) * uniforms[U_VIGNETTE] * VIGNETTE_SCALE)
    r *= factor
    g *= factor
    b *= factor

    # 9. Grain
    grain = uniforms[U_GRAIN]
    if grain > 0.0:
        noise = (hash2(u + time * GRAIN_TIME_SCALE, v) * 2.0 - 1.0) * grain * GRAIN_AMPLITUDE
        r += noise
        g += noise
        b += noise

    # 10. Final clamp
    return clamp01(r), clamp01(g), clamp01(b)


# ============================================================================
# Image Kernels
# ============================================================================


@njit(parallel=True, cache=True, nogil=True)
def grade_image_numba(
    image: np.ndarray,
    uniforms: np.ndarray,
    time: float,
    out: np.ndarray,
) -> None:
    """
    Grade a full RGBA image, one pixel at a time.

    Coordinates are taken at pixel centers with row 0 at the top
    (uv = ((x + 0.5) / W, (y + 0.5) / H)). Alpha is copied unchanged.

    Args:
        image: Source RGBA [H, W, 4] in [0, 1]
        uniforms: Packed parameters [UNIFORM_COUNT]
        time: Time in milliseconds
        out: Output buffer [H, W, 4]
    """
    height = image.shape[0]
    width = image.shape[1]

    for y in prange(height):
        v = (y + 0.5) / height
        for x in range(width):
            u = (x + 0.5) / width
            r, g, b = grade_pixel_numba(
                image[y, x, 0], image[y, x, 1], image[y, x, 2], u, v, time, uniforms
            )
            out[y, x, 0] = r
            out[y, x, 1] = g
            out[y, x, 2] = b
            out[y, x, 3] = image[y, x, 3]


@njit(parallel=True, cache=True, nogil=True)
def rgb_to_hsl_numba(colors: np.ndarray, out: np.ndarray) -> None:
    """
    Convert RGB colors to HSL.

    Args:
        colors: RGB colors [N, 3]
        out: Output buffer [N, 3] (h, s, l)
    """
    N = colors.shape[0]

    for i in prange(N):
        h, s, light = rgb_to_hsl_scalar(colors[i, 0], colors[i, 1], colors[i, 2])
        out[i, 0] = h
        out[i, 1] = s
        out[i, 2] = light


@njit(parallel=True, cache=True, nogil=True)
def hsl_to_rgb_numba(colors: np.ndarray, out: np.ndarray) -> None:
    """
    Convert HSL colors to RGB.

    Args:
        colors: HSL colors [N, 3]
        out: Output buffer [N, 3] (r, g, b)
    """
    N = colors.shape[0]

    for i in prange(N):
        r, g, b = hsl_to_rgb_scalar(colors[i, 0], colors[i, 1], colors[i, 2])
        out[i, 0] = r
        out[i, 1] = g
        out[i, 2] = b
