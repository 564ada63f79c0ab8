"""
Pixel collection shared by the ordering and optimization phases.

Each source pixel keeps its immutable identity (load position, original color
and the decoded channels of that color) alongside its mutable assignment: the
packed color it is currently told to display and the cached squared distance
between that color and the original one.

The collection is stored column-wise in numpy arrays so that full 4096x4096
inputs (16,777,216 pixels) fit in memory. ``PixelRecord`` is a read-only
snapshot of a single row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from .color_math import (
    BLUE_SHIFT,
    CHANNEL_MASK,
    COLOR_MASK,
    FULL_ALPHA,
    GREEN_SHIFT,
    RED_SHIFT,
    distances,
)


@dataclass(frozen=True)
class PixelRecord:
    """Snapshot of one pixel's identity and current assignment."""
    original_position: int
    original_color: int
    assigned_color: int
    red: int
    green: int
    blue: int
    cached_distance: int


class PixelCollection:
    """All pixels of one image, as parallel columns indexed by current slot."""

    def __init__(self, original_position: np.ndarray, original_color: np.ndarray,
                 assigned_color: np.ndarray):
        """
        Build a collection from raw columns.

        Args:
            original_position: Flat index of every pixel at load time
            original_color: Packed 24-bit source colors
            assigned_color: Packed colors currently assigned to each pixel
        """
        if not (len(original_position) == len(original_color) == len(assigned_color)):
            raise ValueError("Pixel columns must have the same length")

        self.original_position = np.asarray(original_position, dtype=np.int64)
        self.original_color = np.asarray(original_color, dtype=np.int64) & COLOR_MASK
        self.assigned_color = np.asarray(assigned_color, dtype=np.int64).copy()

        # Channels are decoded once and never change
        self.red = (self.original_color >> RED_SHIFT) & CHANNEL_MASK
        self.green = (self.original_color >> GREEN_SHIFT) & CHANNEL_MASK
        self.blue = (self.original_color >> BLUE_SHIFT) & CHANNEL_MASK

        self.cached_distance = np.zeros(len(self.original_color), dtype=np.int64)
        self.recompute_distances()

    @classmethod
    def from_colors(cls, colors) -> "PixelCollection":
        """
        Create one record per source pixel, in load order.

        Every pixel initially claims the color equal to its own position, which
        makes the starting assignment a bijection over ``[0, N)``. Alpha bits
        of the input are ignored.
        """
        packed = np.asarray(colors).astype(np.int64) & COLOR_MASK
        positions = np.arange(len(packed), dtype=np.int64)
        return cls(positions, packed, positions)

    def __len__(self) -> int:
        return len(self.original_color)

    def __getitem__(self, index: int) -> PixelRecord:
        return PixelRecord(
            original_position=int(self.original_position[index]),
            original_color=int(self.original_color[index]),
            assigned_color=int(self.assigned_color[index]),
            red=int(self.red[index]),
            green=int(self.green[index]),
            blue=int(self.blue[index]),
            cached_distance=int(self.cached_distance[index]),
        )

    def __iter__(self) -> Iterator[PixelRecord]:
        for index in range(len(self)):
            yield self[index]

    def distance_from(self, index: int, candidate_color: int) -> int:
        """Squared distance between pixel ``index``'s original color and a candidate."""
        red_diff = ((candidate_color >> RED_SHIFT) & CHANNEL_MASK) - int(self.red[index])
        green_diff = ((candidate_color >> GREEN_SHIFT) & CHANNEL_MASK) - int(self.green[index])
        blue_diff = ((candidate_color >> BLUE_SHIFT) & CHANNEL_MASK) - int(self.blue[index])
        return red_diff * red_diff + green_diff * green_diff + blue_diff * blue_diff

    def recompute_distances(self):
        """Refresh every cached distance from the current assignment."""
        self.cached_distance[:] = distances(self.original_color, self.assigned_color)

    def update_distance(self, index: int):
        self.cached_distance[index] = self.distance_from(index, int(self.assigned_color[index]))

    def swap_assigned(self, first: int, second: int):
        """
        Exchange the assigned colors of two pixels and refresh both caches.

        Callers running concurrently must hold the collection lock.
        """
        first_color = int(self.assigned_color[first])
        self.assigned_color[first] = self.assigned_color[second]
        self.assigned_color[second] = first_color
        self.update_distance(first)
        self.update_distance(second)

    def reorder(self, order: np.ndarray):
        """Permute every column so that slot ``k`` holds the pixel at ``order[k]``."""
        order = np.asarray(order, dtype=np.int64)
        if len(order) != len(self):
            raise ValueError(f"Ordering has {len(order)} entries, expected {len(self)}")
        self.original_position = self.original_position[order]
        self.original_color = self.original_color[order]
        self.assigned_color = self.assigned_color[order]
        self.red = self.red[order]
        self.green = self.green[order]
        self.blue = self.blue[order]
        self.cached_distance = self.cached_distance[order]

    def total_distance(self) -> int:
        """Sum of all cached distances."""
        return int(self.cached_distance.sum(dtype=np.int64))

    def is_bijection(self) -> bool:
        """True when the assigned colors are exactly ``{0, 1, ..., N-1}``."""
        n = len(self)
        if n == 0:
            return True
        assigned = self.assigned_color
        if assigned.min() < 0 or assigned.max() >= n:
            return False
        return bool(np.all(np.bincount(assigned, minlength=n) == 1))

    def is_cache_coherent(self) -> bool:
        """True when every cached distance matches its current assignment."""
        expected = distances(self.original_color, self.assigned_color)
        return bool(np.array_equal(expected, self.cached_distance))

    def materialize(self, colors=None) -> np.ndarray:
        """
        Write assigned colors back to their original positions.

        Args:
            colors: Optional flat ARGB array to fill; a new one is created if omitted

        Returns:
            Flat uint32 ARGB array with alpha forced to 0xFF on every pixel
        """
        if colors is None:
            output = np.zeros(len(self), dtype=np.uint32)
        else:
            output = np.array(colors, dtype=np.uint32, copy=True)
        output[self.original_position] = (
            (self.assigned_color & COLOR_MASK) | FULL_ALPHA
        ).astype(np.uint32)
        return output
