"""
Main color sorter.
Runs load → red ordering → monkey sort → write, reporting distance between phases.
"""

import sys
from typing import Any, Dict, Optional

from .config import Config
from .image_io import ImageLoader, ImageWriter, WriteError
from .monkey_sort import MonkeySorter
from .ordering import sort_by_reds
from .pixels import PixelCollection
from .report import is_non_increasing, measure_distance, write_run_report


class ColorSorter:
    """Rearranges an image so every pixel's position encodes its own color."""

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize sorter with configuration.

        Args:
            config: Run configuration; defaults are used when omitted
        """
        self.config = config or Config()
        self.loader = ImageLoader()
        self.writer = ImageWriter(self.config.output.format.upper())

    def sort_image(self, input_path: str, output_path: str) -> Dict[str, Any]:
        """
        Sort the colors of one image and write the result.

        Args:
            input_path: Path to input image
            output_path: Path of the image to create

        Returns:
            Dimensions, distance reports per phase and optimizer counters

        Raises:
            LoadError: if the input cannot be decoded
            WriteError: if the output or the run report cannot be written
        """
        image = self.loader.load(input_path)

        expected = self.config.output.expected_pixels
        if image.pixel_count != expected:
            print(f"[WARN] Expected {expected:,} pixels (one per color), got {image.pixel_count:,}.",
                  file=sys.stderr)
            print("[WARN] The output will not be balanced; continuing anyway.", file=sys.stderr)

        pixels = PixelCollection.from_colors(image.colors)
        reports = [measure_distance(pixels, "original")]
        print(reports[-1].describe())

        sort_by_reds(pixels)
        reports.append(measure_distance(pixels, "after sorting reds"))
        print(reports[-1].describe())

        optimizer = self.config.optimizer
        sorter = MonkeySorter(
            pixels,
            workers=optimizer.workers,
            iterations=optimizer.iterations,
            seed=optimizer.seed,
            batch_size=optimizer.batch_size,
            verbose=self.config.verbose,
        )
        result = sorter.run()
        reports.append(measure_distance(pixels, 'after "monkey sort"'))
        print(reports[-1].describe())

        output_colors = pixels.materialize(image.colors)
        self.writer.write(output_path, image.width, image.height, output_colors)

        summary = {
            'input': input_path,
            'output': output_path,
            'width': image.width,
            'height': image.height,
            'pixel_count': image.pixel_count,
            'source_format': image.format,
            'source_mode': image.mode,
            'balanced': image.pixel_count == expected,
            'reports': reports,
            'non_increasing': is_non_increasing(reports),
            'optimizer': result.to_dict(),
            'total_attempts': optimizer.total_attempts,
            'config': self.config.to_dict(),
        }

        report_path = self.config.output.report_path
        if report_path:
            try:
                summary['report_path'] = write_run_report(summary, report_path)
            except OSError as exc:
                raise WriteError(f"Could not write run report {report_path}: {exc}") from exc
            print(f"Saved run report: {report_path}")

        summary['monkey_sort'] = result
        return summary


def sort_image_colors(input_path: str, output_path: str, workers: int = 16,
                      iterations: int = 2_000_000, seed: Optional[int] = None,
                      config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Convenience function to sort one image.

    Args:
        input_path: Path to input image
        output_path: Path of the image to create
        workers: Number of monkey sort worker threads
        iterations: Swap attempts per worker
        seed: Optional root seed for the workers' generators
        config: Full configuration; takes precedence over the keyword values

    Returns:
        Sorting results as returned by ``ColorSorter.sort_image``
    """
    if config is None:
        config = Config()
        config.apply_overrides(workers=workers, iterations=iterations, seed=seed)
        config.validate()
    return ColorSorter(config).sort_image(input_path, output_path)
