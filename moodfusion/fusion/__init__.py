"""
Fusion Module — Weighted Multimodal Fusion & Calibration
=========================================================
Combines facial, voice and text observations into one fused state and
applies personal calibration multipliers.
"""

from moodfusion.fusion.confidence import BaselineSamples, Calibrator, derive_calibration_map
from moodfusion.fusion.fusion_engine import FusionEngine

__all__ = ["BaselineSamples", "Calibrator", "derive_calibration_map", "FusionEngine"]
