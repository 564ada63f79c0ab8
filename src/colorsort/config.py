"""
Configuration management for the color sorter.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional

from .color_math import FULL_COLOR_COUNT

# Lossless formats only; a lossy encoder would change the sorted colors.
SUPPORTED_FORMATS = ("PNG", "BMP", "TIFF")


def _require_int(name: str, value):
    # bool is an int subclass but never a valid count
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class OptimizerConfig:
    """Monkey sort parameters."""
    workers: int = 16
    iterations: int = 2_000_000
    seed: Optional[int] = None
    batch_size: int = 4096

    @property
    def total_attempts(self) -> int:
        """Swap attempts across all workers."""
        return self.workers * self.iterations


@dataclass
class OutputConfig:
    """Output image and report configuration."""
    format: str = "PNG"
    expected_pixels: int = FULL_COLOR_COUNT
    report_path: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""
    config_file: Optional[str] = None
    verbose: bool = False

    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, config_path: str, **overrides) -> "Config":
        """Load configuration from YAML file with optional overrides."""
        if not os.path.exists(config_path):
            # Defaults when the file doesn't exist
            config = cls(config_file=config_path)
            config.apply_overrides(**overrides)
            config.validate()
            return config

        try:
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except UnicodeDecodeError:
                with open(config_path, 'r', encoding='latin-1') as f:
                    data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse config file {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")

        try:
            config = cls(
                config_file=config_path,
                verbose=bool(data.get('verbose', False)),
                optimizer=OptimizerConfig(**(data.get('optimizer') or {})),
                output=OutputConfig(**(data.get('output') or {})),
            )
        except TypeError as exc:
            raise ValueError(f"Invalid config file {config_path}: {exc}") from exc

        config.apply_overrides(**overrides)
        config.validate()
        return config

    def apply_overrides(self, **overrides):
        """Apply CLI overrides; ``None`` means "not given"."""
        for key, value in overrides.items():
            if value is None:
                continue
            if hasattr(self.optimizer, key):
                setattr(self.optimizer, key, value)
            elif hasattr(self.output, key):
                setattr(self.output, key, value)
            elif hasattr(self, key):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def validate(self):
        """Validate configuration parameters."""
        for name in ('workers', 'iterations', 'batch_size'):
            _require_int(f"optimizer.{name}", getattr(self.optimizer, name))
        if self.optimizer.seed is not None:
            _require_int("optimizer.seed", self.optimizer.seed)
        _require_int("output.expected_pixels", self.output.expected_pixels)

        if not isinstance(self.output.format, str):
            raise ValueError(f"output.format must be a string, got {self.output.format!r}")

        if self.output.report_path is not None and not isinstance(self.output.report_path, str):
            raise ValueError(f"output.report_path must be a string, got {self.output.report_path!r}")

        if self.optimizer.workers < 1:
            raise ValueError("Worker count must be at least 1")

        if self.optimizer.iterations < 0:
            raise ValueError("Iteration count must be non-negative")

        if self.optimizer.batch_size < 1:
            raise ValueError("Batch size must be at least 1")

        if self.output.format.upper() not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported output format '{self.output.format}'. "
                f"Available: {', '.join(SUPPORTED_FORMATS)}"
            )

        if self.output.expected_pixels < 1:
            raise ValueError("Expected pixel count must be positive")

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            'verbose': self.verbose,
            'optimizer': {
                'workers': self.optimizer.workers,
                'iterations': self.optimizer.iterations,
                'seed': self.optimizer.seed,
                'batch_size': self.optimizer.batch_size
            },
            'output': {
                'format': self.output.format,
                'expected_pixels': self.output.expected_pixels,
                'report_path': self.output.report_path
            }
        }

    def save_yaml(self, path: Optional[str] = None):
        """Save configuration to YAML file."""
        if path is None:
            path = self.config_file or "colorsort.yaml"

        dir_path = os.path.dirname(path)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)

        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2)
