"""Linear-to-display color mapping and hex color parsing.

Averaged radiance is linear and unbounded. Before it reaches the terminal or
an image file it is gamma mapped with the gamma 2 convention (a square root),
clamped to [0, 1], and truncated to an 8-bit channel. The same mapping is
used for previews and exports; there is no separate tone-mapping curve.

This module also parses the six-digit hex colors the editing layer uses for
material and sky colors.

Example:
    >>> to_display_channel(1.0)
    255
    >>> map_color((0.25, 0.0, 4.0))
    (127, 0, 255)
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np
import numpy.typing as npt

ColorTuple = tuple[float, float, float]

# Shown for material colors that could not be parsed
MAGENTA: ColorTuple = (1.0, 0.0, 1.0)


def linear_to_gamma(linear: float) -> float:
    """Apply the gamma 2 transform, treating negative input as zero."""
    if linear > 0.0:
        return math.sqrt(linear)
    return 0.0


def to_display_channel(linear: float) -> int:
    """Map one linear channel value to an 8-bit display channel.

    The gamma-mapped value is clamped to [0, 1] before scaling by 255 and
    truncating, so negative noise maps to 0 and bright values saturate at
    255 instead of wrapping.
    """
    gamma = min(max(linear_to_gamma(linear), 0.0), 1.0)
    return int(gamma * 255.0)


def map_color(rgb: Sequence[float]) -> tuple[int, int, int]:
    """Map a linear RGB color to an 8-bit display pixel."""
    return (
        to_display_channel(float(rgb[0])),
        to_display_channel(float(rgb[1])),
        to_display_channel(float(rgb[2])),
    )


def map_image(image: npt.NDArray[np.floating[Any]]) -> npt.NDArray[np.uint8]:
    """Map a linear image to 8-bit display pixels.

    Vectorized form of map_color(); the math is identical per channel.

    Args:
        image: Linear RGB array of shape (H, W, 3).

    Returns:
        Array of shape (H, W, 3) with dtype uint8.
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0)
    gamma = np.sqrt(np.maximum(linear, 0.0))
    gamma = np.clip(gamma, 0.0, 1.0)
    return (gamma * 255.0).astype(np.uint8)


# =============================================================================
# Hex Colors
# =============================================================================


def _hex_channel(text: str, fallback: int) -> int:
    try:
        return int(text, 16)
    except ValueError:
        return fallback


def parse_hex_color(text: str) -> ColorTuple:
    """Parse a six-digit hex color (e.g. "fa4e4e") into linear [0, 1] floats.

    Malformed input is made visible rather than hidden: text that is not six
    characters long yields magenta, and a channel that is not valid hex
    falls back to the matching magenta channel (ff, 00, ff).
    """
    if len(text) != 6:
        return MAGENTA
    r = _hex_channel(text[0:2], 255)
    g = _hex_channel(text[2:4], 0)
    b = _hex_channel(text[4:6], 255)
    return (r / 255.0, g / 255.0, b / 255.0)


def parse_hex_color_strict(text: str) -> ColorTuple:
    """Parse a six-digit hex color, raising on malformed input.

    Raises:
        ValueError: If the text is not exactly six hex digits.
    """
    stripped = text.strip().lstrip("#")
    if len(stripped) != 6:
        raise ValueError(f"Expected six hex digits, got {text!r}")
    try:
        channels = [int(stripped[i : i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        raise ValueError(f"Invalid hex color: {text!r}") from None
    return (channels[0] / 255.0, channels[1] / 255.0, channels[2] / 255.0)
