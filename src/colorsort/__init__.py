"""
Color Sort

Rearranges the pixels of an all-colors image so that each pixel's position
encodes its own color, using a red-channel ordering followed by a parallel
randomized pairwise-swap search that keeps color distortion low.
"""

__version__ = "1.0.0"
__author__ = "Color Sort"

from .config import Config
from .pixels import PixelCollection, PixelRecord
from .color_math import distance, distance_from
from .ordering import sort_by_reds
from .monkey_sort import MonkeySorter, MonkeySortResult, WorkerInterrupted
from .image_io import ImageLoader, ImageWriter, LoadError, WriteError
from .sorter import ColorSorter, sort_image_colors
from . import cli

__all__ = [
    "Config",
    "PixelCollection",
    "PixelRecord",
    "distance",
    "distance_from",
    "sort_by_reds",
    "MonkeySorter",
    "MonkeySortResult",
    "WorkerInterrupted",
    "ImageLoader",
    "ImageWriter",
    "LoadError",
    "WriteError",
    "ColorSorter",
    "sort_image_colors",
    "cli"
]
