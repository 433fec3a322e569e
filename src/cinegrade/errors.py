"""
Exception taxonomy for cinegrade.

The transform itself never raises: every failure surfaces from the engine
lifecycle, the preset catalog or image decoding.
"""

from __future__ import annotations


class GradeError(Exception):
    """Base class for all cinegrade errors."""


class InitializationError(GradeError):
    """No usable rendering device could be obtained or the program failed to build."""


class ContextLostError(InitializationError):
    """The rendering device reported a fatal error while executing a pass."""


class EmptyFrameError(GradeError):
    """A frame was requested before any successful render."""


class UnsupportedInputError(GradeError, ValueError):
    """Input is not a decodable image or a supported pixel grid."""


class EngineStateError(GradeError, RuntimeError):
    """Operation is not valid in the engine's current lifecycle state."""


class PresetNotFoundError(GradeError, KeyError):
    """Preset identifier is not present in the catalog."""

    def __init__(self, preset_id: str, available: list[str] | None = None):
        self.preset_id = preset_id
        self.available = available or []
        super().__init__(preset_id)

    def __str__(self) -> str:
        if self.available:
            return f"Unknown preset '{self.preset_id}'. Available presets: {self.available}"
        return f"Unknown preset '{self.preset_id}'"
