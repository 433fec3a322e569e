"""
Protocol definitions for cinegrade interfaces.

Defines the drawing surface the render engine draws into.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class DrawingSurface(Protocol):
    """
    Protocol for render targets.

    A surface exposes its pixel size. The engine reads both at every render,
    so a host may resize the surface between frames.
    """

    width: int
    height: int
