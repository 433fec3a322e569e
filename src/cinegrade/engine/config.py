"""
Render engine configuration.
"""

from dataclasses import dataclass

from cinegrade.constants import DEFAULT_DEVICE, VALID_DEVICES


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for RenderEngine.

    Attributes:
        device: Rendering device ("auto", "cuda", "mps", "cpu")
        release_cache_on_load: Return cached device memory when a texture is replaced
        self_test: Run the program once on a reference texel when it is built
    """

    device: str = DEFAULT_DEVICE
    release_cache_on_load: bool = True
    self_test: bool = True

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.device not in VALID_DEVICES:
            raise ValueError(
                f"Invalid device: {self.device}. "
                f"Must be one of {sorted(VALID_DEVICES)}"
            )
