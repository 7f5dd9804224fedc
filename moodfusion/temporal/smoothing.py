"""
Modality Smoother — EMA + Hysteresis
=====================================
Frame-level classifiers flicker: a single noisy webcam frame or audio
burst can swing the winning label.  The smoother sits between a
classifier and fusion and does two things:

1. **Exponential moving average** of the per-label breakdown
   (``alpha`` = weight of the newest frame), renormalised to 100.

2. **Hysteresis** on the reported label.  The label only changes when
   all three hold:

     - at least ``dwell_sec`` have passed since the last change,
     - the new leader beats the current label by ``switch_gap`` points
       *or* is above ``absolute_floor`` percent on its own,
     - the new leader beats the runner-up by ``clear_margin`` points.

The first observation is accepted as-is.  State lives on the instance,
so every session (and every modality) gets its own smoother.
"""

from __future__ import annotations

import dataclasses
from typing import Generic, Optional, TypeVar, Union

from moodfusion.core.emotional_state import FacialObservation, VoiceObservation
from moodfusion.utils.helpers import clamp, round_half_up, setup_logging

logger = setup_logging()

L = TypeVar("L")
SmoothableObservation = Union[FacialObservation, VoiceObservation]


class ModalitySmoother(Generic[L]):
    """Per-label EMA with a dwell-time / margin gate on the emitted label."""

    def __init__(
        self,
        alpha: float = 0.35,
        hysteresis: bool = True,
        dwell_sec: float = 4.0,
        switch_gap: float = 8,
        absolute_floor: float = 60,
        clear_margin: float = 6,
        min_confidence: float = 30,
    ):
        self.alpha = alpha
        self.hysteresis = hysteresis
        self.dwell_sec = dwell_sec
        self.switch_gap = switch_gap
        self.absolute_floor = absolute_floor
        self.clear_margin = clear_margin
        self.min_confidence = min_confidence
        self.reset()

    @classmethod
    def from_config(cls, smoothing_cfg: dict) -> "ModalitySmoother":
        return cls(**smoothing_cfg)

    def reset(self) -> None:
        self._ema: Optional[dict[L, float]] = None
        self._label: Optional[L] = None
        self._last_change: float = 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def label(self) -> Optional[L]:
        return self._label

    @property
    def breakdown(self) -> dict[L, float]:
        return dict(self._ema or {})

    def update(self, breakdown: dict[L, float], timestamp: float) -> tuple[L, float, dict[L, float]]:
        """Fold in one frame's breakdown.

        Returns
        -------
        (label, confidence, smoothed_breakdown)
        """
        if self._ema is None:
            ema = dict(breakdown)
        else:
            ema = {}
            for key in list(self._ema) + [k for k in breakdown if k not in self._ema]:
                ema[key] = self.alpha * breakdown.get(key, 0.0) + (1 - self.alpha) * self._ema.get(key, 0.0)

        total = sum(ema.values())
        if total > 0:
            ema = {k: v / total * 100.0 for k, v in ema.items()}
        self._ema = ema

        ranked = sorted(ema, key=ema.get, reverse=True)
        leader = ranked[0]
        if self._label is None or not self.hysteresis:
            if leader != self._label:
                self._last_change = timestamp
            self._label = leader
        elif leader != self._label and self._may_switch(leader, ranked, timestamp):
            logger.debug("Smoother switch %s -> %s", self._label, leader)
            self._label = leader
            self._last_change = timestamp

        confidence = round_half_up(clamp(ema.get(self._label, 0.0), self.min_confidence, 100))
        return self._label, confidence, dict(ema)

    def smooth(self, observation: SmoothableObservation) -> SmoothableObservation:
        """Return a copy of ``observation`` with smoothed label, confidence and breakdown."""
        label, confidence, breakdown = self.update(observation.breakdown, observation.timestamp)
        return dataclasses.replace(observation, label=label, confidence=confidence, breakdown=breakdown)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _may_switch(self, leader: L, ranked: list, timestamp: float) -> bool:
        ema = self._ema
        top = ema[leader]
        second = ema[ranked[1]] if len(ranked) > 1 else 0.0
        dwell_ok = timestamp - self._last_change >= self.dwell_sec
        strong = (top - ema.get(self._label, 0.0)) >= self.switch_gap or top >= self.absolute_floor
        clear = (top - second) >= self.clear_margin
        return dwell_ok and strong and clear
