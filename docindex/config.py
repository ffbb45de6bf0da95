"""
Pipeline configuration
Holds the threshold, input/output locations and task counts for one run
"""

import os
from dataclasses import dataclass
from typing import Optional

from docindex.errors import ConfigError


def env_int(name: str, default: int) -> int:
    """
    Read an integer setting from the environment

    Raises:
        ConfigError: If the variable is set but isn't an integer
    """
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


# Configuration from environment
DEFAULT_NUM_MAP_TASKS = env_int('DOCINDEX_NUM_MAP_TASKS', 4)
DEFAULT_NUM_REDUCE_TASKS = env_int('DOCINDEX_NUM_REDUCE_TASKS', 2)
DEFAULT_MAX_WORKERS = env_int('DOCINDEX_MAX_WORKERS', 4)
DEFAULT_WORK_DIR = os.getenv('DOCINDEX_WORK_DIR')
DEFAULT_LOG_LEVEL = os.getenv('DOCINDEX_LOG_LEVEL', 'INFO')


def parse_threshold(value) -> int:
    """
    Convert and validate the minimum record/word length N

    Args:
        value: Threshold as an int or a string (e.g. from the command line)

    Returns:
        The threshold as a positive int

    Raises:
        ConfigError: If the value is missing, not an integer, or not positive
    """
    if value is None or value == '':
        raise ConfigError("Threshold N is required")
    if isinstance(value, bool):
        raise ConfigError(f"Threshold N must be an integer, got {value!r}")
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Threshold N must be an integer, got {value!r}")
    if isinstance(value, float) and value != threshold:
        raise ConfigError(f"Threshold N must be an integer, got {value!r}")
    if threshold <= 0:
        raise ConfigError(f"Threshold N must be positive, got {threshold}")
    return threshold


@dataclass
class PipelineConfig:
    """Parameters for a single index-building run"""
    threshold: int
    input_path: str
    output_path: str
    num_map_tasks: int = DEFAULT_NUM_MAP_TASKS
    num_reduce_tasks: int = DEFAULT_NUM_REDUCE_TASKS
    use_combiner: bool = True
    max_workers: int = DEFAULT_MAX_WORKERS
    work_dir: Optional[str] = DEFAULT_WORK_DIR
    keep_intermediate: bool = False
    metrics_path: Optional[str] = None

    def validate(self) -> 'PipelineConfig':
        """
        Check every field before any work starts

        Returns:
            self, with the threshold normalized to an int

        Raises:
            ConfigError: On the first invalid field
        """
        self.threshold = parse_threshold(self.threshold)
        if not self.input_path:
            raise ConfigError("Input path is required")
        if not self.output_path:
            raise ConfigError("Output path is required")
        for name in ('num_map_tasks', 'num_reduce_tasks', 'max_workers'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        return self

    @classmethod
    def from_env(cls, input_path: str, output_path: str, **overrides) -> 'PipelineConfig':
        """Build a config with the threshold taken from DOCINDEX_THRESHOLD unless overridden"""
        if 'threshold' not in overrides:
            overrides['threshold'] = parse_threshold(os.getenv('DOCINDEX_THRESHOLD'))
        return cls(input_path=input_path, output_path=output_path, **overrides)
