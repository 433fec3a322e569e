"""
Color grading module.

Provides the CPU reference implementation of the per-pixel grade and the
HSL conversions it is built on.
"""

from cinegrade.color.transform import grade_pixel, hsl_to_rgb, render_frame, rgb_to_hsl

__all__ = ["grade_pixel", "render_frame", "rgb_to_hsl", "hsl_to_rgb"]
