"""
Temporal Module — Smoothing, Stabilisation & History
=====================================================
  - ModalitySmoother:    per-modality EMA + hysteresis (facial, voice)
  - TemporalStabilizer:  sliding-window guard on the fused label
  - EmotionHistory:      bounded log of fused states with statistics
"""

from moodfusion.temporal.smoothing import ModalitySmoother
from moodfusion.temporal.stabilizer import TemporalStabilizer
from moodfusion.temporal.history import EmotionHistory

__all__ = ["ModalitySmoother", "TemporalStabilizer", "EmotionHistory"]
