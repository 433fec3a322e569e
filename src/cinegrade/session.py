"""
GradeSession: the active grade being edited.

Tracks the active ParameterSet and whether it is still bound to a catalog
preset. Any manual edit turns the binding into Custom; it never reverts on
its own, even when an edit happens to restore a preset value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Self, TypeAlias

from cinegrade.params import FIELD_NAMES, VECTOR_FIELDS, ParameterSet, with_component
from cinegrade.presets import DEFAULT_CATALOG, ORIGINAL_PRESET_ID, PresetCatalog
from cinegrade.validators import validate_choices, validate_range, validate_type

logger = logging.getLogger(__name__)

CUSTOM_LABEL = "Custom"


@dataclass(frozen=True)
class PresetBinding:
    """Active parameters are an untouched copy of a catalog preset."""

    preset_id: str


@dataclass(frozen=True)
class CustomBinding:
    """Active parameters were edited after the last preset was applied."""


Binding: TypeAlias = PresetBinding | CustomBinding


class GradeSession:
    """
    Active grade state for one image.

    Example:
        >>> session = GradeSession()
        >>> session.apply_preset("apple_cinematic")
        >>> session.update_field("exposure", 0.5)
        >>> session.binding
        CustomBinding()
        >>> session.update_field("gain", 1.1, component=0)
    """

    __slots__ = ("_catalog", "_params", "_binding")

    def __init__(self, catalog: PresetCatalog | None = None, preset_id: str = ORIGINAL_PRESET_ID):
        """
        Create a session bound to a starting preset.

        Args:
            catalog: Preset catalog (defaults to the built-in catalog)
            preset_id: Preset applied at startup

        Raises:
            PresetNotFoundError: If preset_id is not in the catalog
        """
        self._catalog = catalog if catalog is not None else DEFAULT_CATALOG
        preset = self._catalog.get(preset_id)
        self._params: ParameterSet = preset.params.copy()
        self._binding: Binding = PresetBinding(preset.id)

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def catalog(self) -> PresetCatalog:
        return self._catalog

    @property
    def params(self) -> ParameterSet:
        """The live active parameters."""
        return self._params

    @property
    def binding(self) -> Binding:
        return self._binding

    @property
    def active_preset_id(self) -> str | None:
        """Bound preset id, or None once the grade is custom."""
        if isinstance(self._binding, PresetBinding):
            return self._binding.preset_id
        return None

    @property
    def is_custom(self) -> bool:
        return isinstance(self._binding, CustomBinding)

    @property
    def label(self) -> str:
        """Display name of the bound preset, or "Custom"."""
        if isinstance(self._binding, PresetBinding):
            return self._catalog.get(self._binding.preset_id).name
        return CUSTOM_LABEL

    # ========================================================================
    # Mutations
    # ========================================================================

    @validate_type(str, "preset_id")
    def apply_preset(self, preset_id: str) -> Self:
        """
        Replace the active parameters with a copy of a preset.

        Raises:
            PresetNotFoundError: If preset_id is unknown (state is left untouched)
        """
        preset = self._catalog.get(preset_id)
        self._params = preset.params.copy()
        self._binding = PresetBinding(preset.id)
        logger.info("[GradeSession] Applied preset '%s'", preset.id)
        return self

    @validate_choices(frozenset(FIELD_NAMES), "name")
    @validate_range(0, 2, "component", param_index=3)
    def update_field(self, name: str, value: Any, component: int | None = None) -> Self:
        """
        Set one field, or one channel of a color field, and mark the grade custom.

        Args:
            name: Field name (e.g., "exposure", "lift")
            value: New value; a number, or an (r, g, b) sequence for a whole color field
            component: Channel index (0=r, 1=g, 2=b) when editing a single channel

        Returns:
            Self for method chaining

        Raises:
            ValueError: If name is unknown or component is used on a scalar field
        """
        if component is not None:
            if name not in VECTOR_FIELDS:
                raise ValueError(f"component can only be used with color fields, '{name}' is a scalar")
            value = with_component(getattr(self._params, name), component, value)

        setattr(self._params, name, value)
        self._binding = CustomBinding()
        logger.debug("[GradeSession] %s=%r (custom)", name, getattr(self._params, name))
        return self

    def reset(self) -> Self:
        """Re-apply the Original preset."""
        return self.apply_preset(ORIGINAL_PRESET_ID)

    def snapshot(self) -> ParameterSet:
        """Frozen copy of the active parameters."""
        return self._params.freeze()

    def __repr__(self) -> str:
        return f"GradeSession({self.label})"
