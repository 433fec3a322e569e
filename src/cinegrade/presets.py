"""
Preset catalog: named, immutable grades grouped into categories.

The record table below is the configuration surface of the catalog. New looks
are added by appending records; the transform never changes for a preset.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cinegrade.errors import PresetNotFoundError
from cinegrade.params import ParameterSet

logger = logging.getLogger(__name__)

CATALOG_VERSION = "2"
ORIGINAL_PRESET_ID = "none"


class PresetCategory(str, Enum):
    """Catalog grouping shown as sections by control surfaces."""

    BASE = "base"
    CLASSIC = "classic"
    PREQUEL = "prequel"
    ROYY = "royy"


@dataclass(frozen=True)
class Preset:
    """
    A named, complete grade.

    Attributes:
        id: Unique identifier (e.g., "apple_cinematic")
        name: Display name
        category: Catalog section
        description: One-line summary of the look
        params: Frozen parameters (copy() before editing)
        icon: Display glyph
    """

    id: str
    name: str
    category: PresetCategory
    description: str
    params: ParameterSet = field(hash=False)
    icon: str = "◎"

    def __post_init__(self):
        """Normalize category and freeze parameters."""
        if not self.id:
            raise ValueError("Preset id must be a non-empty string")
        if not isinstance(self.category, PresetCategory):
            object.__setattr__(self, "category", PresetCategory(self.category))
        if not self.params.is_frozen:
            object.__setattr__(self, "params", self.params.freeze())

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Preset:
        """Build a preset from a catalog record (params given as a plain mapping)."""
        params = record["params"]
        if not isinstance(params, ParameterSet):
            params = ParameterSet.from_dict(params)
        return cls(
            id=record["id"],
            name=record["name"],
            category=record["category"],
            description=record.get("description", ""),
            params=params,
            icon=record.get("icon", "◎"),
        )


# =============================================================================
# Catalog Records
# =============================================================================

PRESET_RECORDS: tuple[dict[str, Any], ...] = (
    {
        "id": ORIGINAL_PRESET_ID,
        "name": "Original",
        "category": "base",
        "icon": "◎",
        "description": "No filter applied",
        "params": {},
    },
    {
        "id": "apple_cinematic",
        "name": "Apple Cinematic",
        "category": "classic",
        "icon": "◈",
        "description": "Warm tones · Lifted blacks · Skin-friendly",
        "params": {
            "exposure": 0.15, "contrast": 1.08, "saturation": 0.82,
            "temperature": 0.25, "tint": 0.05,
            "lift": (0.04, 0.02, 0.01), "gamma": (0.96, 0.98, 1.02), "gain": (1.05, 1.0, 0.92),
            "vignette": 0.3, "grain": 0.15,
        },
    },
    {
        "id": "old_money",
        "name": "Old Money",
        "category": "classic",
        "icon": "◇",
        "description": "Muted greens · Warm skin · Film grain",
        "params": {
            "exposure": -0.1, "contrast": 1.05, "saturation": 0.65,
            "temperature": 0.15, "tint": -0.05,
            "lift": (0.03, 0.03, 0.02), "gamma": (1.0, 0.97, 0.94), "gain": (1.02, 0.98, 0.88),
            "vignette": 0.45, "grain": 0.35,
        },
    },
    {
        "id": "moody_cinematic",
        "name": "Moody Cinema",
        "category": "classic",
        "icon": "◉",
        "description": "Deep shadows · Cool tones · Desaturated",
        "params": {
            "exposure": -0.25, "contrast": 1.18, "saturation": 0.72,
            "temperature": -0.3, "tint": 0.0,
            "lift": (0.0, 0.01, 0.03), "gamma": (0.93, 0.95, 1.0), "gain": (0.92, 0.96, 1.08),
            "vignette": 0.6, "grain": 0.2,
        },
    },
    {
        "id": "instagram_warm",
        "name": "IG Warm",
        "category": "classic",
        "icon": "◑",
        "description": "Vibrant · High contrast · Golden hour",
        "params": {
            "exposure": 0.1, "contrast": 1.15, "saturation": 1.25,
            "temperature": 0.4, "tint": 0.1,
            "lift": (0.02, 0.01, -0.01), "gamma": (0.98, 0.98, 1.0), "gain": (1.08, 1.02, 0.88),
            "vignette": 0.2, "grain": 0.05,
        },
    },
    {
        "id": "vintage_film",
        "name": "Vintage Film",
        "category": "classic",
        "icon": "◐",
        "description": "Teal & orange · Film grain · Light leak",
        "params": {
            "exposure": -0.05, "contrast": 1.1, "saturation": 0.9,
            "temperature": 0.2, "tint": -0.1,
            "lift": (0.02, 0.04, 0.05), "gamma": (1.0, 0.96, 0.9), "gain": (1.06, 0.98, 0.85),
            "vignette": 0.5, "grain": 0.5,
        },
    },
    {
        "id": "prequel_teal_orange",
        "name": "Teal & Orange",
        "category": "prequel",
        "icon": "◒",
        "description": "Teal shadows · Orange highlights · Punchy",
        "params": {
            "exposure": 0.05, "contrast": 1.12, "saturation": 1.05,
            "temperature": 0.1, "tint": 0.0,
            "lift": (0.0, 0.01, 0.02), "gamma": (1.0, 1.0, 1.0), "gain": (1.04, 1.0, 0.94),
            "vignette": 0.25, "grain": 0.1,
            "shadow_tint": (0.05, 0.35, 0.4), "highlight_tint": (1.0, 0.62, 0.3),
            "shadow_strength": 0.35, "highlight_strength": 0.25,
        },
    },
    {
        "id": "prequel_dreamy",
        "name": "Dreamy Haze",
        "category": "prequel",
        "icon": "◓",
        "description": "Soft contrast · Lavender shadows · Pink glow",
        "params": {
            "exposure": 0.2, "contrast": 0.9, "saturation": 0.85,
            "temperature": 0.05, "tint": 0.08,
            "lift": (0.06, 0.05, 0.07), "gamma": (1.05, 1.03, 1.0), "gain": (1.0, 0.98, 1.0),
            "vignette": 0.15, "grain": 0.05,
            "shadow_tint": (0.45, 0.35, 0.6), "highlight_tint": (1.0, 0.85, 0.9),
            "shadow_strength": 0.3, "highlight_strength": 0.2,
        },
    },
    {
        "id": "prequel_y2k",
        "name": "Y2K Pop",
        "category": "prequel",
        "icon": "◔",
        "description": "Saturated · Cool magenta · Digital grain",
        "params": {
            "exposure": 0.1, "contrast": 1.2, "saturation": 1.3,
            "temperature": -0.1, "tint": 0.12,
            "lift": (0.02, 0.0, 0.04), "gamma": (0.97, 1.0, 0.95), "gain": (1.05, 0.98, 1.08),
            "vignette": 0.1, "grain": 0.2,
            "shadow_tint": (0.2, 0.1, 0.45), "highlight_tint": (0.95, 0.8, 1.0),
            "shadow_strength": 0.2, "highlight_strength": 0.15,
        },
    },
    {
        "id": "royy_flash",
        "name": "ROYY Flash",
        "category": "royy",
        "icon": "◆",
        "description": "Direct flash · Crushed background · Cool subject",
        "params": {
            "exposure": 0.1, "contrast": 1.15, "saturation": 0.9,
            "temperature": -0.15, "tint": 0.0,
            "lift": (0.0, 0.0, 0.02), "gamma": (1.0, 1.0, 1.02), "gain": (1.02, 1.0, 1.05),
            "vignette": 0.35, "grain": 0.3,
            "flash_strength": 0.8, "flash_threshold": 0.45, "background_crush": 0.6,
        },
    },
    {
        "id": "royy_night",
        "name": "Night Flash",
        "category": "royy",
        "icon": "◍",
        "description": "Black background · Hard flash · Heavy grain",
        "params": {
            "exposure": -0.1, "contrast": 1.25, "saturation": 0.8,
            "temperature": -0.25, "tint": 0.02,
            "lift": (0.0, 0.01, 0.03), "gamma": (0.95, 0.97, 1.0), "gain": (1.0, 1.0, 1.08),
            "vignette": 0.55, "grain": 0.45,
            "shadow_tint": (0.02, 0.05, 0.12), "shadow_strength": 0.25,
            "flash_strength": 1.0, "flash_threshold": 0.4, "background_crush": 0.85,
        },
    },
    {
        "id": "royy_film_flash",
        "name": "Film Flash",
        "category": "royy",
        "icon": "◕",
        "description": "Point-and-shoot flash · Warm film · Soft crush",
        "params": {
            "exposure": 0.05, "contrast": 1.08, "saturation": 0.95,
            "temperature": 0.15, "tint": -0.03,
            "lift": (0.03, 0.02, 0.02), "gamma": (1.0, 0.98, 0.95), "gain": (1.04, 1.0, 0.9),
            "vignette": 0.4, "grain": 0.5,
            "highlight_tint": (1.0, 0.9, 0.75), "highlight_strength": 0.15,
            "flash_strength": 0.5, "flash_threshold": 0.5, "background_crush": 0.4,
        },
    },
)


class PresetCatalog:
    """
    Immutable ordered collection of presets.

    Example:
        >>> catalog = PresetCatalog.from_records(PRESET_RECORDS)
        >>> catalog.get("apple_cinematic").name
        'Apple Cinematic'
        >>> [p.id for p in catalog.by_category("royy")]
        ['royy_flash', 'royy_night', 'royy_film_flash']
    """

    __slots__ = ("_presets", "_index", "version")

    def __init__(self, presets: Iterable[Preset], version: str = CATALOG_VERSION):
        """
        Create a catalog.

        Args:
            presets: Presets in display order
            version: Revision tag of the record table

        Raises:
            ValueError: If two presets share an id
        """
        ordered = tuple(presets)
        index: dict[str, Preset] = {}
        for preset in ordered:
            if preset.id in index:
                raise ValueError(f"Duplicate preset id '{preset.id}'. Each preset must have a unique id.")
            index[preset.id] = preset

        self._presets: tuple[Preset, ...] = ordered
        self._index: dict[str, Preset] = index
        self.version = version

        logger.debug("[PresetCatalog] Loaded %d presets (version %s)", len(ordered), version)

    @classmethod
    def from_records(
        cls, records: Iterable[Mapping[str, Any]], version: str = CATALOG_VERSION
    ) -> PresetCatalog:
        """Build a catalog from plain record mappings."""
        return cls((Preset.from_record(record) for record in records), version=version)

    def extend(self, records: Iterable[Mapping[str, Any]], version: str | None = None) -> PresetCatalog:
        """
        Return a new catalog with additional records appended.

        The current catalog is left untouched.
        """
        added = [Preset.from_record(record) for record in records]
        return PresetCatalog(self._presets + tuple(added), version=version or self.version)

    # ========================================================================
    # Lookup
    # ========================================================================

    def get(self, preset_id: str) -> Preset:
        """
        Look up a preset by id.

        Raises:
            PresetNotFoundError: If the id is not in the catalog
        """
        try:
            return self._index[preset_id]
        except KeyError:
            raise PresetNotFoundError(preset_id, self.ids()) from None

    def ids(self) -> list[str]:
        """Preset ids in catalog order."""
        return [preset.id for preset in self._presets]

    def by_category(self, category: PresetCategory | str) -> list[Preset]:
        """Presets of one category in catalog order."""
        category = PresetCategory(category)
        return [preset for preset in self._presets if preset.category is category]

    def categories(self) -> list[PresetCategory]:
        """Categories in order of first appearance."""
        seen: list[PresetCategory] = []
        for preset in self._presets:
            if preset.category not in seen:
                seen.append(preset.category)
        return seen

    def __contains__(self, preset_id: object) -> bool:
        return preset_id in self._index

    def __iter__(self) -> Iterator[Preset]:
        return iter(self._presets)

    def __len__(self) -> int:
        return len(self._presets)

    def __repr__(self) -> str:
        return f"PresetCatalog({len(self)} presets, version={self.version!r})"


# Built once at import
DEFAULT_CATALOG = PresetCatalog.from_records(PRESET_RECORDS)
