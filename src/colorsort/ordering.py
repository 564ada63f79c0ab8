"""
Initial ordering that seeds the optimizer.
"""

import numpy as np

from .pixels import PixelCollection


def sort_by_reds(pixels: PixelCollection) -> PixelCollection:
    """
    Sort pixels by the red channel of their original color and re-seed targets.

    After sorting, pixel ``k`` of the new order is assigned the packed color
    ``k``. Since the red channel occupies the top byte of a packed color, this
    already places each pixel in the right red band whenever the input holds
    one pixel per color, and leaves green/blue for the random swap phase.

    Args:
        pixels: Collection to reorder in place

    Returns:
        The same collection, for chaining
    """
    order = np.argsort(pixels.red, kind="stable")
    pixels.reorder(order)
    pixels.assigned_color = np.arange(len(pixels), dtype=np.int64)
    pixels.recompute_distances()
    return pixels
