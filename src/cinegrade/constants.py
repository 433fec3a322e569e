"""
Constants and default values for cinegrade.

Centralizes magic numbers and configuration defaults for better maintainability.
"""

from __future__ import annotations

# =============================================================================
# Parameter Defaults (the "Original" grade)
# =============================================================================

DEFAULT_EXPOSURE = 0.0  # Stops
DEFAULT_CONTRAST = 1.0  # No contrast change
DEFAULT_SATURATION = 1.0  # No saturation change
DEFAULT_TEMPERATURE = 0.0  # Neutral white balance
DEFAULT_TINT = 0.0  # Neutral green/magenta
DEFAULT_LIFT = (0.0, 0.0, 0.0)  # No shadow offset
DEFAULT_GAMMA = (1.0, 1.0, 1.0)  # Linear midtones
DEFAULT_GAIN = (1.0, 1.0, 1.0)  # No highlight scale
DEFAULT_VIGNETTE = 0.0
DEFAULT_GRAIN = 0.0
DEFAULT_SHADOW_TINT = (0.0, 0.0, 0.0)
DEFAULT_HIGHLIGHT_TINT = (1.0, 1.0, 1.0)
DEFAULT_SHADOW_STRENGTH = 0.0
DEFAULT_HIGHLIGHT_STRENGTH = 0.0
DEFAULT_FLASH_STRENGTH = 0.0  # Flash/crush disabled
DEFAULT_FLASH_THRESHOLD = 0.5
DEFAULT_BACKGROUND_CRUSH = 0.0

# Documented semantic ranges (used for validation reports and UI, never enforced)
PARAMETER_RANGES: dict[str, tuple[float, float]] = {
    "exposure": (-2.0, 2.0),
    "contrast": (0.5, 2.0),
    "saturation": (0.0, 2.0),
    "temperature": (-1.0, 1.0),
    "tint": (-1.0, 1.0),
    "lift": (-0.1, 0.1),
    "gamma": (0.8, 1.2),
    "gain": (0.6, 1.2),
    "vignette": (0.0, 1.0),
    "grain": (0.0, 1.0),
    "shadow_tint": (0.0, 1.0),
    "highlight_tint": (0.0, 1.0),
    "shadow_strength": (0.0, 1.0),
    "highlight_strength": (0.0, 1.0),
    "flash_strength": (0.0, 1.0),
    "flash_threshold": (0.0, 1.0),
    "background_crush": (0.0, 1.0),
}

# Default UI slider ranges for building interfaces
UI_RANGES = {
    "exposure": {"min": -2.0, "max": 2.0, "step": 0.01, "default": DEFAULT_EXPOSURE},
    "contrast": {"min": 0.5, "max": 2.0, "step": 0.01, "default": DEFAULT_CONTRAST},
    "saturation": {"min": 0.0, "max": 2.0, "step": 0.01, "default": DEFAULT_SATURATION},
    "temperature": {"min": -1.0, "max": 1.0, "step": 0.01, "default": DEFAULT_TEMPERATURE},
    "tint": {"min": -1.0, "max": 1.0, "step": 0.01, "default": DEFAULT_TINT},
    "vignette": {"min": 0.0, "max": 1.0, "step": 0.01, "default": DEFAULT_VIGNETTE},
    "grain": {"min": 0.0, "max": 1.0, "step": 0.01, "default": DEFAULT_GRAIN},
    "shadow_strength": {"min": 0.0, "max": 1.0, "step": 0.01, "default": 0.0},
    "highlight_strength": {"min": 0.0, "max": 1.0, "step": 0.01, "default": 0.0},
    "flash_strength": {"min": 0.0, "max": 1.0, "step": 0.01, "default": 0.0},
    "flash_threshold": {"min": 0.0, "max": 1.0, "step": 0.01, "default": 0.5},
    "background_crush": {"min": 0.0, "max": 1.0, "step": 0.01, "default": 0.0},
}

# =============================================================================
# Uniform Layout
# =============================================================================

# (field name, component count) in binding order. Never reorder: kernels index
# the packed buffer through the slot constants below.
UNIFORM_LAYOUT: tuple[tuple[str, int], ...] = (
    ("exposure", 1),
    ("contrast", 1),
    ("saturation", 1),
    ("temperature", 1),
    ("tint", 1),
    ("lift", 3),
    ("gamma", 3),
    ("gain", 3),
    ("vignette", 1),
    ("grain", 1),
    ("shadow_tint", 3),
    ("highlight_tint", 3),
    ("shadow_strength", 1),
    ("highlight_strength", 1),
    ("flash_strength", 1),
    ("flash_threshold", 1),
    ("background_crush", 1),
)

U_EXPOSURE = 0
U_CONTRAST = 1
U_SATURATION = 2
U_TEMPERATURE = 3
U_TINT = 4
U_LIFT = 5  # 5, 6, 7
U_GAMMA = 8  # 8, 9, 10
U_GAIN = 11  # 11, 12, 13
U_VIGNETTE = 14
U_GRAIN = 15
U_SHADOW_TINT = 16  # 16, 17, 18
U_HIGHLIGHT_TINT = 19  # 19, 20, 21
U_SHADOW_STRENGTH = 22
U_HIGHLIGHT_STRENGTH = 23
U_FLASH_STRENGTH = 24
U_FLASH_THRESHOLD = 25
U_BACKGROUND_CRUSH = 26

UNIFORM_COUNT = 27

# =============================================================================
# Transform Constants
# =============================================================================

# Rec. 709 luma weights
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722

# Flash/crush
FLASH_EDGE_LOW = 0.15  # smoothstep lower edge = threshold - 0.15
FLASH_EDGE_HIGH = 0.2  # smoothstep upper edge = threshold + 0.2
FLASH_RED_CUT = 0.08
FLASH_BLUE_BOOST = 0.06
FLASH_DESATURATION = 0.25

# White balance
TEMPERATURE_SCALE = 0.1
TINT_SCALE = 0.05

# Lift/gamma/gain
GAMMA_FLOOR = 0.001

# Zone tinting
SHADOW_ZONE_SLOPE = 3.5
HIGHLIGHT_ZONE_PIVOT = 0.55
HIGHLIGHT_ZONE_SLOPE = 3.0

# Vignette / grain
VIGNETTE_SCALE = 3.0
GRAIN_AMPLITUDE = 0.08
GRAIN_TIME_SCALE = 0.001  # Milliseconds -> hash offset
HASH_DOT_X = 12.9898
HASH_DOT_Y = 78.233
HASH_SCALE = 43758.5453

# HSL saturation denominators are floored at this value
HSL_EPSILON = 1e-7

# =============================================================================
# Imaging Constants
# =============================================================================

# Working resolution cap (keeps per-frame cost predictable)
MAX_WORKING_WIDTH = 1400
MAX_WORKING_HEIGHT = 900

SNAPSHOT_PREFIX = "graded_"
SNAPSHOT_FORMAT = "PNG"

# =============================================================================
# Engine Constants
# =============================================================================

DEFAULT_DEVICE = "auto"  # cuda -> mps -> cpu
VALID_DEVICES = {"auto", "cuda", "mps", "cpu"}

# Full-screen quad as a triangle strip: clip-space positions and texcoords
QUAD_POSITIONS = ((-1.0, -1.0), (1.0, -1.0), (-1.0, 1.0), (1.0, 1.0))
QUAD_TEXCOORDS = ((0.0, 1.0), (1.0, 1.0), (0.0, 0.0), (1.0, 0.0))
