"""Shared utilities — config loading, logging, helpers."""

from moodfusion.utils.helpers import load_config, setup_logging, clamp, round_half_up

__all__ = ["load_config", "setup_logging", "clamp", "round_half_up"]
