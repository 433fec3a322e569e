"""Rendering device selection using PyTorch backends (CUDA, MPS, CPU)."""

from __future__ import annotations

import logging

import numpy as np
import torch

from cinegrade.errors import InitializationError

logger = logging.getLogger(__name__)


class DeviceContext:
    """Device discovery and host/device transfer helpers."""

    @classmethod
    def cuda_available(cls) -> bool:
        return torch.cuda.is_available()

    @classmethod
    def mps_available(cls) -> bool:
        backend = getattr(torch.backends, "mps", None)
        return backend is not None and backend.is_available()

    @classmethod
    def resolve(cls, preference: str = "auto") -> torch.device:
        """
        Pick a rendering device.

        "auto" prefers CUDA, then MPS, then CPU. An explicit device that is
        not available is an initialization failure.

        Raises:
            InitializationError: If the requested device cannot be used
        """
        if preference == "auto":
            if cls.cuda_available():
                device = torch.device("cuda")
            elif cls.mps_available():
                device = torch.device("mps")
            else:
                device = torch.device("cpu")
            logger.info("[DeviceContext] Auto-selected %s", device)
            return device

        if preference == "cuda" and not cls.cuda_available():
            raise InitializationError("CUDA rendering device requested but not available")
        if preference == "mps" and not cls.mps_available():
            raise InitializationError("MPS rendering device requested but not available")
        return torch.device(preference)

    @classmethod
    def to_device(cls, arr: np.ndarray, device: torch.device) -> torch.Tensor:
        """Upload a NumPy array as a float32 tensor."""
        tensor = torch.from_numpy(np.ascontiguousarray(arr)).to(dtype=torch.float32)
        return tensor.to(device)

    @classmethod
    def to_cpu(cls, tensor: torch.Tensor) -> np.ndarray:
        """Download a tensor to a NumPy array."""
        return tensor.detach().cpu().numpy()

    @classmethod
    def synchronize(cls, device: torch.device) -> None:
        """Block until all queued work on the device has completed."""
        if device.type == "cuda":
            torch.cuda.synchronize(device)
        elif device.type == "mps":
            torch.mps.synchronize()

    @classmethod
    def empty_cache(cls, device: torch.device) -> None:
        """Release cached device memory back to the system."""
        if device.type == "cuda":
            torch.cuda.empty_cache()
        elif device.type == "mps":
            torch.mps.empty_cache()


__all__ = ["DeviceContext"]
