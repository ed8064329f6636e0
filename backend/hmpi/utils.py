"""
utils.py - Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the package: logging configuration, the
saved-artifact directory, and the ingestion-side checks applied to a raw
sample record before it reaches the calculation core.
"""

import os
import logging

from . import config
from .exceptions import InputError
from .records import Sample


def setup_logging(level: str = None) -> None:
    """
    Configure logging for the package.

    Sets up a console handler with timestamp, logger name, level,
    and message. All hmpi.* loggers inherit this configuration.

    Args:
        level: Log level string (DEBUG/INFO/WARNING/ERROR/CRITICAL).
               Defaults to config.LOG_LEVEL.
    """
    level = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    pkg_logger = logging.getLogger("hmpi")
    pkg_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated calls
    if not pkg_logger.handlers:
        pkg_logger.addHandler(handler)


def ensure_saved_dir(path: str = None) -> str:
    """
    Ensure the model artifact directory exists.

    Args:
        path: Directory to create. Defaults to config.SAVED_DIR.

    Returns:
        Absolute path to the directory.
    """
    path = os.path.abspath(path or config.SAVED_DIR)
    os.makedirs(path, exist_ok=True)
    return path


def _check_range(record: Sample, field: str, low: float, high: float) -> None:
    value = getattr(record, field)
    if not low <= value <= high:
        raise InputError(f"Field '{field}' must be within [{low}, {high}], got {value}",
                         field=field)


def validate_sample(record: dict) -> Sample:
    """
    Validate a raw sample record and build a Sample from it.

    Checks, in order: every concentration present and numeric, every
    concentration within [0, MAX_CONCENTRATION_PPM], latitude and
    longitude within their ranges.

    Args:
        record: Raw sample dict (e.g. a JSON request body).

    Returns:
        The validated Sample.

    Raises:
        InputError: On the first failing check.
    """
    if not isinstance(record, dict):
        raise InputError(f"Sample record must be an object, got {type(record).__name__}")

    sample = Sample.from_dict(record)
    for metal in config.METALS:
        _check_range(sample, metal, 0.0, config.MAX_CONCENTRATION_PPM)
    _check_range(sample, "latitude", *config.LATITUDE_RANGE)
    _check_range(sample, "longitude", *config.LONGITUDE_RANGE)
    return sample
