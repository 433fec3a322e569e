"""
Device program for the color grade transform.

Tensor implementation of the per-pixel grade. Each frame is drawn as a
full-screen quad: the quad's texture coordinates are rasterized at pixel
centers, the source texture is sampled bilinearly at those coordinates and
the grade runs on every sampled texel at once.

The uniform buffer and its per-parameter views are allocated when the
program is built; binding a ParameterSet only refills the buffer.
"""

from __future__ import annotations

import logging

import numpy as np
import torch
import torch.nn.functional as F

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
    U_FLASH_STRENGTH,
    U_GRAIN,
    UNIFORM_COUNT,
    UNIFORM_LAYOUT,
    VIGNETTE_SCALE,
)
from cinegrade.errors import InitializationError
from cinegrade.params import ParameterSet, pack_uniforms

logger = logging.getLogger(__name__)

_LUMA = (LUMA_R, LUMA_G, LUMA_B)

# ============================================================================
# Tensor Helpers
# ============================================================================


def clamp01(x: torch.Tensor) -> torch.Tensor:
    """Clamp to [0, 1]; NaN maps to 0."""
    return torch.nan_to_num(x, nan=0.0, posinf=1.0, neginf=0.0).clamp(0.0, 1.0)


def luma(rgb: torch.Tensor) -> torch.Tensor:
    """Rec. 709 luma of [..., 3] colors, keeping the channel axis."""
    weights = rgb.new_tensor(_LUMA)
    return (rgb * weights).sum(dim=-1, keepdim=True)


def smoothstep(edge0: torch.Tensor, edge1: torch.Tensor, x: torch.Tensor) -> torch.Tensor:
    """Cubic Hermite step between two edges; a collapsed range is a hard step at edge0."""
    span = edge1 - edge0
    open_range = span > 0.0
    t = clamp01((x - edge0) / torch.where(open_range, span, torch.ones_like(span)))
    step = (x >= edge0).to(x.dtype)
    return torch.where(open_range, t * t * (3.0 - 2.0 * t), step)


def hash2(x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    n = torch.sin(x * HASH_DOT_X + y * HASH_DOT_Y) * HASH_SCALE
    return n - torch.floor(n)


def rgb_to_hsl(rgb: torch.Tensor) -> torch.Tensor:
    """
    Convert [..., 3] RGB to HSL.

    Hue is taken from the first channel equal to the maximum, in r, g, b order.
    """
    r, g, b = rgb.unbind(dim=-1)
    max_c = rgb.amax(dim=-1)
    min_c = rgb.amin(dim=-1)
    light = (max_c + min_c) / 2.0
    d = max_c - min_c
    chromatic = max_c != min_c

    den = torch.where(light > 0.5, 2.0 - max_c - min_c, max_c + min_c).clamp_min(HSL_EPSILON)
    safe_d = torch.where(chromatic, d, torch.ones_like(d))
    s = torch.where(chromatic, d / den, torch.zeros_like(d))

    h_r = (g - b) / safe_d + (g < b).to(rgb.dtype) * 6.0
    h_g = (b - r) / safe_d + 2.0
    h_b = (r - g) / safe_d + 4.0
    h = torch.where(max_c == r, h_r, torch.where(max_c == g, h_g, h_b))
    h = torch.where(chromatic, h / 6.0, torch.zeros_like(h))
    return torch.stack([h, s, light], dim=-1)


def _hue_to_rgb(p: torch.Tensor, q: torch.Tensor, t: torch.Tensor) -> torch.Tensor:
    t = torch.where(t < 0.0, t + 1.0, t)
    t = torch.where(t > 1.0, t - 1.0, t)
    return torch.where(
        t < 1.0 / 6.0,
        p + (q - p) * 6.0 * t,
        torch.where(
            t < 0.5,
            q,
            torch.where(t < 2.0 / 3.0, p + (q - p) * (2.0 / 3.0 - t) * 6.0, p),
        ),
    )


def hsl_to_rgb(hsl: torch.Tensor) -> torch.Tensor:
    """Convert [..., 3] HSL back to RGB."""
    h, s, light = hsl.unbind(dim=-1)
    q = torch.where(light < 0.5, light * (1.0 + s), light + s - light * s)
    p = 2.0 * light - q
    rgb = torch.stack(
        [
            _hue_to_rgb(p, q, h + 1.0 / 3.0),
            _hue_to_rgb(p, q, h),
            _hue_to_rgb(p, q, h - 1.0 / 3.0),
        ],
        dim=-1,
    )
    gray = (s == 0.0).unsqueeze(-1)
    return torch.where(gray, light.unsqueeze(-1).expand_as(rgb), rgb)


# ============================================================================
# Rasterization and Sampling
# ============================================================================


def rasterize_uv(
    positions: torch.Tensor, texcoords: torch.Tensor, width: int, height: int
) -> torch.Tensor:
    """
    Interpolate quad texture coordinates at every pixel center.

    Args:
        positions: Clip-space corners of an axis-aligned full-screen quad [4, 2]
        texcoords: Texture coordinates at those corners [4, 2]
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Texture coordinates [height, width, 2], row 0 at the top of the target
    """
    device = positions.device
    xs = (torch.arange(width, device=device, dtype=torch.float32) + 0.5) / width
    ys = 1.0 - (torch.arange(height, device=device, dtype=torch.float32) + 0.5) / height
    sy, sx = torch.meshgrid(ys, xs, indexing="ij")

    uv = torch.zeros((height, width, 2), device=device, dtype=torch.float32)
    for corner in range(positions.shape[0]):
        wx = sx if positions[corner, 0] > 0 else 1.0 - sx
        wy = sy if positions[corner, 1] > 0 else 1.0 - sy
        uv += (wx * wy).unsqueeze(-1) * texcoords[corner]
    return uv


def sample_texture(texture: torch.Tensor, uv: torch.Tensor) -> torch.Tensor:
    """
    Bilinear, edge-clamped texture lookup.

    Args:
        texture: Texture [1, 4, H, W]
        uv: Texture coordinates [h, w, 2], v = 0 at the top row

    Returns:
        Sampled texels [h, w, 4]
    """
    grid = (uv * 2.0 - 1.0).unsqueeze(0)
    sampled = F.grid_sample(
        texture, grid, mode="bilinear", padding_mode="border", align_corners=False
    )
    return sampled[0].permute(1, 2, 0)


# ============================================================================
# Program
# ============================================================================


class GradeProgram:
    """
    Compiled grade program bound to one device.

    Example:
        >>> program = GradeProgram(torch.device("cpu"))
        >>> program.bind(ParameterSet())
        >>> frame = program.shade(texels, uv, time=0.0)
    """

    __slots__ = (
        "device",
        "_host",
        "_uniforms",
        "_exposure",
        "_contrast",
        "_saturation",
        "_temperature",
        "_tint",
        "_lift",
        "_gamma",
        "_gain",
        "_vignette",
        "_grain",
        "_shadow_tint",
        "_highlight_tint",
        "_shadow_strength",
        "_highlight_strength",
        "_flash_strength",
        "_flash_threshold",
        "_background_crush",
    )

    def __init__(self, device: torch.device):
        self.device = device
        self._host = np.zeros(UNIFORM_COUNT, dtype=np.float32)
        self._uniforms = torch.zeros(UNIFORM_COUNT, dtype=torch.float32, device=device)

        # Resolve every uniform slot to a view once
        offset = 0
        for name, width in UNIFORM_LAYOUT:
            view = self._uniforms[offset] if width == 1 else self._uniforms[offset : offset + width]
            setattr(self, f"_{name}", view)
            offset += width

        logger.debug("[GradeProgram] Built on %s with %d uniform slots", device, offset)

    def bind(self, params: ParameterSet) -> None:
        """Upload a parameter set into the uniform buffer."""
        pack_uniforms(params, out=self._host, dtype=np.float32)
        self._uniforms.copy_(torch.from_numpy(self._host))

    def shade(self, texels: torch.Tensor, uv: torch.Tensor, time: float) -> torch.Tensor:
        """
        Run the grade on sampled texels.

        Args:
            texels: Sampled source RGBA [H, W, 4]
            uv: Texture coordinates [H, W, 2]
            time: Time in milliseconds

        Returns:
            Graded RGBA [H, W, 4]; alpha is passed through
        """
        rgb = texels[..., :3]
        alpha = texels[..., 3:]

        if self._host[U_FLASH_STRENGTH] > 0.0:
            rgb = self._flash(rgb)

        rgb = rgb * torch.exp2(self._exposure)

        temperature = self._temperature * TEMPERATURE_SCALE
        rgb = rgb + torch.stack([temperature, self._tint * TINT_SCALE, -temperature])

        rgb = clamp01((rgb - 0.5) * self._contrast + 0.5)

        lifted = torch.clamp_min(rgb * self._gain + self._lift, 0.0)
        rgb = clamp01(torch.pow(lifted, 1.0 / torch.clamp_min(self._gamma, GAMMA_FLOOR)))

        y = luma(rgb)
        shadow_mix = clamp01(1.0 - SHADOW_ZONE_SLOPE * y) * self._shadow_strength
        rgb = rgb + (self._shadow_tint - rgb) * shadow_mix
        highlight_mix = (
            clamp01((y - HIGHLIGHT_ZONE_PIVOT) * HIGHLIGHT_ZONE_SLOPE) * self._highlight_strength
        )
        rgb = rgb + (self._highlight_tint - rgb) * highlight_mix

        hsl = rgb_to_hsl(rgb)
        hsl = torch.stack(
            [hsl[..., 0], clamp01(hsl[..., 1] * self._saturation), hsl[..., 2]], dim=-1
        )
        rgb = hsl_to_rgb(hsl)

        offset = uv - 0.5
        dist = (offset * offset).sum(dim=-1, keepdim=True)
        rgb = rgb * clamp01(1.0 - dist * self._vignette * VIGNETTE_SCALE)

        if self._host[U_GRAIN] > 0.0:
            noise = hash2(uv[..., 0:1] + time * GRAIN_TIME_SCALE, uv[..., 1:2])
            rgb = rgb + (noise * 2.0 - 1.0) * self._grain * GRAIN_AMPLITUDE

        return torch.cat([clamp01(rgb), alpha], dim=-1)

    def _flash(self, rgb: torch.Tensor) -> torch.Tensor:
        flash = self._flash_strength
        threshold = self._flash_threshold
        mask = smoothstep(threshold - FLASH_EDGE_LOW, threshold + FLASH_EDGE_HIGH, luma(rgb))
        rgb = rgb * (1.0 - self._background_crush * (1.0 - mask))

        bias = torch.stack(
            [1.0 - FLASH_RED_CUT * flash, torch.ones_like(flash), 1.0 + FLASH_BLUE_BOOST * flash]
        )
        hsl = rgb_to_hsl(rgb * bias)
        hsl = torch.stack(
            [hsl[..., 0], hsl[..., 1] * (1.0 - FLASH_DESATURATION * flash), hsl[..., 2]], dim=-1
        )
        return hsl_to_rgb(hsl)

    def self_test(self) -> None:
        """
        Run the program on a mid-gray reference texel with neutral parameters.

        Raises:
            InitializationError: If the texel does not come back unchanged
        """
        texels = torch.full((1, 1, 4), 0.5, dtype=torch.float32, device=self.device)
        uv = torch.full((1, 1, 2), 0.5, dtype=torch.float32, device=self.device)
        try:
            self.bind(ParameterSet())
            shaded = self.shade(texels, uv, 0.0).cpu()
        except RuntimeError as exc:
            raise InitializationError(f"Grade program failed to execute on {self.device}") from exc

        if not torch.allclose(shaded, torch.full_like(shaded, 0.5), atol=1e-4):
            raise InitializationError(
                f"Grade program self-test failed on {self.device}: got {shaded.flatten().tolist()}"
            )


__all__ = [
    "GradeProgram",
    "clamp01",
    "hsl_to_rgb",
    "rasterize_uv",
    "rgb_to_hsl",
    "sample_texture",
]
