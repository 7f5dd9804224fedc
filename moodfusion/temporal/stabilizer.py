"""
Temporal Stabilizer — Fused-State Flicker Suppression
======================================================
Sits after fusion and decides whether a newly fused (emotion,
confidence) pair is allowed to replace the one currently shown.

Within a short sliding window (5 s by default):

  - a *similar* emotion (similarity > 0.7, e.g. stressed → anxious) keeps
    the current label and blends the confidences 70/30,
  - a *different* emotion is only accepted when it arrives with high
    confidence (> 80); otherwise the current pair is kept unchanged,
  - an empty window (nothing fused recently) accepts anything.

Time is whatever the caller passes in; the stabilizer never reads a
clock, which keeps it deterministic under test.
"""

from __future__ import annotations

from collections import deque
from typing import Optional

from moodfusion.core.emotions import Emotion, similarity
from moodfusion.core.emotional_state import HistoryEntry
from moodfusion.utils.helpers import load_config, round_half_up, setup_logging

logger = setup_logging()


class TemporalStabilizer:
    """Sliding-window label stabilisation for fused states."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        temporal_cfg = config["temporal"]
        self.window_sec = temporal_cfg["window_sec"]
        self.similarity_threshold = temporal_cfg["similarity_threshold"]
        self.smoothing_factor = temporal_cfg["smoothing_factor"]
        self.jump_confidence = temporal_cfg["jump_confidence"]
        self._window: deque[HistoryEntry] = deque()

    def reset(self) -> None:
        self._window.clear()

    @property
    def window(self) -> list[HistoryEntry]:
        return list(self._window)

    def update(self, emotion: Emotion, confidence: float, timestamp: float) -> tuple[Emotion, int]:
        """Feed one fused pair; returns the pair to emit."""
        self._evict(timestamp)

        if not self._window:
            self._window.append(HistoryEntry(emotion, confidence, timestamp))
            return emotion, int(confidence)

        last = self._window[-1]
        if similarity(last.emotion, emotion) > self.similarity_threshold:
            blended = round_half_up(
                last.confidence * self.smoothing_factor + confidence * (1 - self.smoothing_factor)
            )
            self._window.append(HistoryEntry(last.emotion, blended, timestamp))
            return last.emotion, blended

        if confidence > self.jump_confidence:
            logger.debug("Stabilizer jump %s -> %s (%d%%)", last.emotion.value, emotion.value, confidence)
            self._window.append(HistoryEntry(emotion, confidence, timestamp))
            return emotion, int(confidence)

        return last.emotion, int(last.confidence)

    def _evict(self, now: float) -> None:
        while self._window and now - self._window[0].timestamp >= self.window_sec:
            self._window.popleft()
