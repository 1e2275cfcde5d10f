"""Core rendering module.

Components:
    ray: Ray record and the Taichi scattering helpers
    accumulator: Monte Carlo averaging of jittered samples per pixel
    color: Linear-to-display mapping and hex color parsing
    progressive: Resumable scanline render jobs

The accumulator never touches intersection or shading itself; it drives a
camera and a scene evaluator through two narrow protocols.
"""

from .color import (
    MAGENTA,
    linear_to_gamma,
    map_color,
    map_image,
    parse_hex_color,
    parse_hex_color_strict,
    to_display_channel,
)
from .ray import Ray, stack_rays

# Note: accumulator and progressive are NOT imported here because they depend
# on src.rtwtui.camera, which itself imports the ray module.
#   from src.rtwtui.core.accumulator import SampleAccumulator
#   from src.rtwtui.core.progressive import RenderJob

__all__ = [
    "Ray",
    "stack_rays",
    "MAGENTA",
    "linear_to_gamma",
    "to_display_channel",
    "map_color",
    "map_image",
    "parse_hex_color",
    "parse_hex_color_strict",
]
