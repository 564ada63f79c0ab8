"""
Image loading and writing for the color sorter.

Images travel through the pipeline as a width, a height and a flat array of
packed 32-bit ARGB values in row-major order.
"""

import os
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from .color_math import FULL_ALPHA


class LoadError(Exception):
    """The input image could not be read or decoded."""


class WriteError(Exception):
    """The output image could not be encoded or written."""


@dataclass
class LoadedImage:
    """Decoded image as a flat ARGB array."""
    width: int
    height: int
    colors: np.ndarray
    format: Optional[str] = None
    mode: Optional[str] = None

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


def pack_argb(rgba: np.ndarray) -> np.ndarray:
    """Pack an (H, W, 4) uint8 RGBA array into a flat uint32 ARGB array."""
    channels = rgba.reshape(-1, 4).astype(np.uint32)
    return ((channels[:, 3] << 24) | (channels[:, 0] << 16) |
            (channels[:, 1] << 8) | channels[:, 2])


def unpack_argb(colors: np.ndarray, width: int, height: int) -> np.ndarray:
    """Unpack a flat ARGB array into an (H, W, 4) uint8 RGBA array."""
    packed = np.asarray(colors, dtype=np.uint32).reshape(height, width)
    return np.stack(
        [
            (packed >> 16) & 0xFF,
            (packed >> 8) & 0xFF,
            packed & 0xFF,
            (packed >> 24) & 0xFF,
        ],
        axis=-1,
    ).astype(np.uint8)


class ImageLoader:
    """Reads image files into flat ARGB arrays."""

    def load(self, image_path: str) -> LoadedImage:
        """
        Load an image file.

        Args:
            image_path: Path to input image

        Returns:
            LoadedImage with width, height and ``width * height`` packed colors

        Raises:
            LoadError: if the file is missing, unreadable or not a decodable image
        """
        print(f"Loading image: {image_path}")

        if not os.path.isfile(image_path):
            raise LoadError(f"Image not found: {image_path}")

        try:
            with Image.open(image_path) as pil_image:
                source_format = pil_image.format
                source_mode = pil_image.mode
                rgba = np.array(pil_image.convert('RGBA'))
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise LoadError(f"Could not decode {image_path}: {exc}") from exc

        height, width = rgba.shape[:2]
        print(f"Image loaded: {width}×{height} pixels ({source_format}, {source_mode})")

        return LoadedImage(
            width=width,
            height=height,
            colors=pack_argb(rgba),
            format=source_format,
            mode=source_mode,
        )


class ImageWriter:
    """Writes flat ARGB arrays to image files."""

    def __init__(self, image_format: str = "PNG"):
        self.image_format = image_format

    def write(self, output_path: str, width: int, height: int, colors: np.ndarray):
        """
        Write an image with every pixel forced fully opaque.

        Raises:
            WriteError: if the array does not match the dimensions or the
                file cannot be created
        """
        colors = np.asarray(colors, dtype=np.uint32)
        if colors.size != width * height:
            raise WriteError(
                f"Expected {width * height:,} colors for {width}×{height}, got {colors.size:,}"
            )

        rgba = unpack_argb(colors | np.uint32(FULL_ALPHA), width, height)

        try:
            out_dir = os.path.dirname(output_path)
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)
            Image.fromarray(rgba).save(output_path, format=self.image_format)
        except (OSError, ValueError, KeyError) as exc:
            raise WriteError(f"Could not write {output_path}: {exc}") from exc

        print(f"Saved image: {output_path}")
