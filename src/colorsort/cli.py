"""
Command-line interface for the color sorter.
Rearranges an image so that each pixel's position encodes its own color.
"""

import os
import sys
import argparse
import traceback

from .config import Config, SUPPORTED_FORMATS
from .image_io import LoadError, WriteError
from .sorter import ColorSorter


class ArgumentError(Exception):
    """Wrong command-line arguments or an unreadable input file."""

    def __init__(self, message: str, show_usage: bool = False, expected_paths: bool = False):
        super().__init__(message)
        self.show_usage = show_usage
        self.expected_paths = expected_paths


class ColorSortArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def parse_args(self, args=None, namespace=None):
        args, extras = self.parse_known_args(args, namespace)
        if extras:
            paths = [extra for extra in extras if not extra.startswith('-')]
            if paths:
                raise ArgumentError(f"Unexpected extra files: {' '.join(paths)}",
                                    show_usage=True, expected_paths=True)
            self.error(f"unrecognized arguments: {' '.join(extras)}")
        return args

    def error(self, message):
        raise ArgumentError(message, show_usage=True)


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = ColorSortArgumentParser(
        prog="colorsort",
        description="Move every pixel to the position matching its color while keeping "
                    "the color distortion low",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
The input should contain one pixel per 24-bit color (4096x4096 pixels).
Other sizes are processed but give an unbalanced result.

Examples:
  # Sort with the default 16 workers
  python -m colorsort.cli allrgb.png sorted.png

  # Shorter run with a fixed seed and a JSON report
  python -m colorsort.cli allrgb.png sorted.png --iterations 100000 --seed 7 --report run.json

  # Settings from a YAML file, overriding the worker count
  python -m colorsort.cli allrgb.png sorted.png --config colorsort.yaml --workers 8
        """
    )

    parser.add_argument("input", nargs="?", help="Input image file")
    parser.add_argument("output", nargs="?", help="Output image file")

    # Optimizer settings
    parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Number of monkey sort worker threads (default: 16)"
    )
    parser.add_argument(
        "--iterations", "-n",
        type=int,
        help="Swap attempts per worker (default: 2,000,000)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Root seed for the workers' random generators"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Random index pairs drawn per generator call (default: 4096)"
    )

    # Output settings
    parser.add_argument(
        "--format",
        type=str.upper,
        choices=SUPPORTED_FORMATS,
        help="Output image format (default: PNG)"
    )
    parser.add_argument(
        "--report",
        dest="report_path",
        help="Write a JSON summary of the run to this path"
    )
    parser.add_argument(
        "--config", "-c",
        help="YAML configuration file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print tracebacks for failures"
    )

    return parser


def validate_arguments(args: argparse.Namespace):
    """Check that the input is readable and the config file exists."""
    if not args.input or not args.output:
        raise ArgumentError("Missing input or output file", show_usage=True, expected_paths=True)

    if not os.path.isfile(args.input) or not os.access(args.input, os.R_OK):
        raise ArgumentError(f"Cannot read input file: {args.input}")

    if args.config and not os.path.isfile(args.config):
        raise ArgumentError(f"Config file not found: {args.config}")


def build_config(args: argparse.Namespace) -> Config:
    """Merge the optional YAML file with command-line overrides."""
    overrides = {
        'workers': args.workers,
        'iterations': args.iterations,
        'seed': args.seed,
        'batch_size': args.batch_size,
        'format': args.format,
        'report_path': args.report_path,
        'verbose': args.verbose or None,
    }
    if args.config:
        return Config.from_yaml(args.config, **overrides)

    config = Config()
    config.apply_overrides(**overrides)
    config.validate()
    return config


def run_sort(args: argparse.Namespace, config: Config) -> bool:
    """Run the sorter, reporting load/write failures."""
    try:
        print("\n" + "="*60)
        print("COLOR SORT")
        print("="*60)
        print(f"Input: {args.input}")
        print(f"Output: {args.output}")
        print(f"Workers: {config.optimizer.workers}")
        print(f"Iterations per worker: {config.optimizer.iterations:,}")
        print(f"Total attempts: {config.optimizer.total_attempts:,}")
        print("-" * 60)

        results = ColorSorter(config).sort_image(args.input, args.output)

        print("\n" + "="*60)
        print("[OK] SORT COMPLETE")
        print("="*60)
        print(f"Image: {results['width']} x {results['height']} ({results['pixel_count']:,} pixels)")
        optimizer = results['optimizer']
        print(f"Swaps: {optimizer['swaps']:,} of {optimizer['attempts']:,} attempts")
        if optimizer['interrupted_workers']:
            print(f"[WARN] {optimizer['interrupted_workers']} worker(s) stopped early")
        return True

    except (LoadError, WriteError) as e:
        print(f"\n[X] Had trouble reading/writing files: {e}", file=sys.stderr)
        if args.verbose:
            traceback.print_exc()
        return False


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()

    try:
        args = parser.parse_args(argv)
        validate_arguments(args)
    except ArgumentError as e:
        if e.show_usage:
            parser.print_usage(sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        if e.expected_paths:
            print("Expected two files: input file and output file", file=sys.stderr)
        sys.exit(1)

    try:
        config = build_config(args)
    except (ValueError, OSError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    success = run_sort(args, config)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
