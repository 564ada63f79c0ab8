"""
Low-level color utilities shared across the color sorting pipeline.

Provides:
    - Packed 24-bit RGB channel extraction (red, green, blue)
    - Squared Euclidean RGB distance for single colors and for whole arrays

Packed colors follow the usual ARGB layout: red in bits 16-23, green in
bits 8-15, blue in bits 0-7. Anything above bit 23 (alpha) is ignored.
"""

from __future__ import annotations

import numpy as np

RED_SHIFT = 16
GREEN_SHIFT = 8
BLUE_SHIFT = 0
CHANNEL_MASK = 0xFF
COLOR_MASK = 0xFFFFFF
FULL_ALPHA = 0xFF000000

# One pixel per 24-bit color: a 4096x4096 image.
FULL_COLOR_COUNT = 1 << 24


def red_of(color: int) -> int:
    return (color >> RED_SHIFT) & CHANNEL_MASK


def green_of(color: int) -> int:
    return (color >> GREEN_SHIFT) & CHANNEL_MASK


def blue_of(color: int) -> int:
    return (color >> BLUE_SHIFT) & CHANNEL_MASK


def split_channels(color: int) -> tuple[int, int, int]:
    """Decode a packed color into its (red, green, blue) triple."""
    return red_of(color), green_of(color), blue_of(color)


def distance(color_a: int, color_b: int) -> int:
    """Squared RGB distance between two packed colors."""
    red_diff = red_of(color_a) - red_of(color_b)
    green_diff = green_of(color_a) - green_of(color_b)
    blue_diff = blue_of(color_a) - blue_of(color_b)
    return red_diff * red_diff + green_diff * green_diff + blue_diff * blue_diff


def distance_from(pixel, candidate_color: int) -> int:
    """
    Squared distance between a pixel's original color and a candidate color.

    Uses the pixel's pre-decoded ``red``/``green``/``blue`` so only the
    candidate has to be unpacked. Anything exposing those three attributes
    works, which is how swaps are evaluated without touching shared state.
    """
    red_diff = ((candidate_color >> RED_SHIFT) & CHANNEL_MASK) - pixel.red
    green_diff = ((candidate_color >> GREEN_SHIFT) & CHANNEL_MASK) - pixel.green
    blue_diff = ((candidate_color >> BLUE_SHIFT) & CHANNEL_MASK) - pixel.blue
    return red_diff * red_diff + green_diff * green_diff + blue_diff * blue_diff


def channels_array(colors) -> np.ndarray:
    """Split packed colors into an (..., 3) int64 array of RGB channels."""
    packed = np.asarray(colors, dtype=np.int64)
    return np.stack(
        [
            (packed >> RED_SHIFT) & CHANNEL_MASK,
            (packed >> GREEN_SHIFT) & CHANNEL_MASK,
            (packed >> BLUE_SHIFT) & CHANNEL_MASK,
        ],
        axis=-1,
    )


def distances(colors_a, colors_b) -> np.ndarray:
    """
    Vectorised squared RGB distance with numpy broadcasting.

    colors_a and colors_b may be:
        - matching shapes of packed colors
        - an array and a scalar (broadcast)
    Returns an int64 array with the broadcasted shape.
    """
    delta = channels_array(colors_a) - channels_array(colors_b)
    return np.sum(delta * delta, axis=-1)
