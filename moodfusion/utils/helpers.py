"""
Shared Utilities
=================
Config I/O, logging and small numeric helpers — kept separate from the
classification logic.
"""

import logging
import math
from pathlib import Path
from typing import Optional, Union

import yaml


_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config.yaml"


def load_config(config_path: Optional[str] = None) -> dict:
    """Load YAML config, defaulting to the config file shipped with the package."""
    path = Path(config_path) if config_path else _DEFAULT_CONFIG
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def setup_logging(level: Optional[Union[int, str]] = None) -> logging.Logger:
    """Project-wide logger.

    ``level`` may be a number or a name such as ``"DEBUG"``; without it an
    already configured level is kept (INFO on first use).
    """
    logger = logging.getLogger("moodfusion")
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter(
            "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def normalize_percentages(scores: dict) -> dict:
    """Rescale non-negative scores so they sum to 100.

    An all-zero input is spread evenly across its keys.
    """
    total = sum(scores.values())
    if total <= 0:
        share = 100.0 / len(scores) if scores else 0.0
        return {k: share for k in scores}
    return {k: v / total * 100.0 for k, v in scores.items()}
