"""
ParameterSet: the numeric record describing one color grade.

A ParameterSet is plain data. It carries no behavior beyond copying,
freezing, (de)serialization and packing into the fixed uniform layout
consumed by the reference kernels and the device program.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import numpy as np

from cinegrade.constants import (
    DEFAULT_BACKGROUND_CRUSH,
    DEFAULT_CONTRAST,
    DEFAULT_EXPOSURE,
    DEFAULT_FLASH_STRENGTH,
    DEFAULT_FLASH_THRESHOLD,
    DEFAULT_GAIN,
    DEFAULT_GAMMA,
    DEFAULT_GRAIN,
    DEFAULT_HIGHLIGHT_STRENGTH,
    DEFAULT_HIGHLIGHT_TINT,
    DEFAULT_LIFT,
    DEFAULT_SATURATION,
    DEFAULT_SHADOW_STRENGTH,
    DEFAULT_SHADOW_TINT,
    DEFAULT_TEMPERATURE,
    DEFAULT_TINT,
    DEFAULT_VIGNETTE,
    PARAMETER_RANGES,
    UNIFORM_COUNT,
    UNIFORM_LAYOUT,
)

Vec3: TypeAlias = tuple[float, float, float]

FIELD_NAMES: tuple[str, ...] = tuple(name for name, _ in UNIFORM_LAYOUT)
VECTOR_FIELDS: frozenset[str] = frozenset(name for name, width in UNIFORM_LAYOUT if width == 3)
SCALAR_FIELDS: frozenset[str] = frozenset(name for name, width in UNIFORM_LAYOUT if width == 1)


def _as_vector(name: str, value: Iterable[float]) -> Vec3:
    """Normalize a 3-component value to a tuple of floats."""
    try:
        components = tuple(float(v) for v in value)
    except TypeError as exc:
        raise TypeError(
            f"{name} must be a sequence of 3 numbers, got {type(value).__name__}"
        ) from exc
    if len(components) != 3:
        raise ValueError(f"{name} must have exactly 3 components (r, g, b), got {len(components)}")
    return components  # type: ignore[return-value]


@dataclass(slots=True)
class ParameterSet:
    """
    Complete set of grading parameters.

    Scalars are floats, color fields are (r, g, b) tuples. Values are never
    clamped or range-checked here; the transform clamps after grading.

    Attributes:
        exposure: Stops, applied as a 2**exposure multiplier
        contrast: Slope around mid-gray (1.0 = no change)
        saturation: HSL saturation multiplier (0.0 = grayscale)
        temperature: Warm (+) / cool (-) red-blue offset
        tint: Green channel offset
        lift: Additive shadow offset per channel
        gamma: Midtone inverse exponent per channel
        gain: Multiplicative highlight scale per channel
        vignette: Radial darkening strength
        grain: Film noise amplitude
        shadow_tint: Target color blended into shadows
        highlight_tint: Target color blended into highlights
        shadow_strength: Shadow tint mix amount
        highlight_strength: Highlight tint mix amount
        flash_strength: Flash/crush amount (0.0 disables the stage)
        flash_threshold: Luma separating subject from background
        background_crush: Darkening of the sub-threshold background

    Example:
        >>> params = ParameterSet(exposure=0.5, gain=(1.05, 1.0, 0.92))
        >>> frozen = params.freeze()
        >>> editable = frozen.copy()
    """

    exposure: float = DEFAULT_EXPOSURE
    contrast: float = DEFAULT_CONTRAST
    saturation: float = DEFAULT_SATURATION
    temperature: float = DEFAULT_TEMPERATURE
    tint: float = DEFAULT_TINT
    lift: Vec3 = DEFAULT_LIFT
    gamma: Vec3 = DEFAULT_GAMMA
    gain: Vec3 = DEFAULT_GAIN
    vignette: float = DEFAULT_VIGNETTE
    grain: float = DEFAULT_GRAIN
    shadow_tint: Vec3 = DEFAULT_SHADOW_TINT
    highlight_tint: Vec3 = DEFAULT_HIGHLIGHT_TINT
    shadow_strength: float = DEFAULT_SHADOW_STRENGTH
    highlight_strength: float = DEFAULT_HIGHLIGHT_STRENGTH
    flash_strength: float = DEFAULT_FLASH_STRENGTH
    flash_threshold: float = DEFAULT_FLASH_THRESHOLD
    background_crush: float = DEFAULT_BACKGROUND_CRUSH
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(
                f"Cannot set '{name}' on a frozen ParameterSet. Use copy() to get an editable set."
            )
        if name in VECTOR_FIELDS:
            value = _as_vector(name, value)
        elif name in SCALAR_FIELDS:
            value = float(value)
        object.__setattr__(self, name, value)

    # ========================================================================
    # Copying
    # ========================================================================

    @property
    def is_frozen(self) -> bool:
        """Check if this set rejects assignment."""
        return self._frozen

    def copy(self) -> ParameterSet:
        """Return an editable value copy (never frozen)."""
        return ParameterSet(**{name: getattr(self, name) for name in FIELD_NAMES})

    def freeze(self) -> ParameterSet:
        """Return a read-only value copy."""
        frozen = self.copy()
        object.__setattr__(frozen, "_frozen", True)
        return frozen

    def __copy__(self) -> ParameterSet:
        return self.copy()

    def __deepcopy__(self, memo) -> ParameterSet:
        # Tuples and floats are immutable, a value copy is already deep
        return self.copy()

    # ========================================================================
    # Serialization
    # ========================================================================

    def to_dict(self) -> dict[str, float | list[float]]:
        """Convert to plain Python types (vectors as lists)."""
        result: dict[str, float | list[float]] = {}
        for name in FIELD_NAMES:
            value = getattr(self, name)
            result[name] = list(value) if name in VECTOR_FIELDS else value
        return result

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> ParameterSet:
        """
        Build a set from a mapping; missing fields take their defaults.

        Raises:
            ValueError: If the mapping contains unknown field names
        """
        unknown = set(values) - set(FIELD_NAMES)
        if unknown:
            raise ValueError(
                f"Unknown parameter fields: {sorted(unknown)}. Valid fields: {list(FIELD_NAMES)}"
            )
        return cls(**dict(values))

    # ========================================================================
    # Inspection
    # ========================================================================

    def is_identity(self) -> bool:
        """
        Check if this set leaves an image unchanged.

        Tint targets, flash threshold and background crush are ignored while
        their strengths are zero, since the transform never reads them then.
        """
        return (
            self.exposure == DEFAULT_EXPOSURE
            and self.contrast == DEFAULT_CONTRAST
            and self.saturation == DEFAULT_SATURATION
            and self.temperature == DEFAULT_TEMPERATURE
            and self.tint == DEFAULT_TINT
            and self.lift == DEFAULT_LIFT
            and self.gamma == DEFAULT_GAMMA
            and self.gain == DEFAULT_GAIN
            and self.vignette == 0.0
            and self.grain == 0.0
            and self.shadow_strength == 0.0
            and self.highlight_strength == 0.0
            and self.flash_strength == 0.0
        )

    def out_of_range_fields(self) -> list[str]:
        """List fields holding a value (or component) outside its documented range."""
        offending = []
        for name in FIELD_NAMES:
            low, high = PARAMETER_RANGES[name]
            value = getattr(self, name)
            components = value if name in VECTOR_FIELDS else (value,)
            if any(not low <= v <= high for v in components):
                offending.append(name)
        return offending


def with_component(vector: Vec3, component: int, value: float) -> Vec3:
    """Return a copy of an (r, g, b) tuple with one channel replaced."""
    channels = list(vector)
    channels[component] = float(value)
    return tuple(channels)  # type: ignore[return-value]


def pack_uniforms(
    params: ParameterSet,
    out: np.ndarray | None = None,
    dtype: type = np.float64,
) -> np.ndarray:
    """
    Write a ParameterSet into the fixed uniform layout.

    Args:
        params: Parameters to pack
        out: Optional preallocated buffer of UNIFORM_COUNT elements (written in place)
        dtype: Buffer dtype when ``out`` is not given

    Returns:
        Flat buffer [UNIFORM_COUNT] with vectors in three consecutive slots

    Example:
        >>> buf = pack_uniforms(ParameterSet(exposure=1.0))
        >>> buf[0]
        1.0
    """
    if out is None:
        out = np.empty(UNIFORM_COUNT, dtype=dtype)
    elif out.shape != (UNIFORM_COUNT,):
        raise ValueError(f"Uniform buffer must have shape ({UNIFORM_COUNT},), got {out.shape}")

    slot = 0
    for name, width in UNIFORM_LAYOUT:
        value = getattr(params, name)
        if width == 1:
            out[slot] = value
        else:
            out[slot : slot + width] = value
        slot += width
    return out
