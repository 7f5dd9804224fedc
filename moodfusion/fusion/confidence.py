"""
Confidence Calibration — Personal Baseline Multipliers
=======================================================
People differ in how expressive they are.  A subject whose neutral face
already reads as "stressed at 70 %" should not trigger interventions as
readily as one whose baseline sits near 50 %.

During a baseline session the host records (emotion, confidence) samples.
For every emotion the average baseline confidence ``avg`` gives a
multiplier

    multiplier = clamp(50 / avg, 0.6, 1.6)      (1.0 when avg <= 5)

which the fusion engine applies to the confidence of the *primary*
emotion only.  Deriving and persisting the map is the calibration
store's job; the fusion path only ever reads it through ``Calibrator``.

Usage::

    baseline = BaselineSamples()
    baseline.add(Emotion.STRESSED, 72)
    calibrator = Calibrator(derive_calibration_map(baseline.samples))
    calibrator.multiplier(Emotion.STRESSED)   # 0.69...
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Mapping, Optional

from moodfusion.core.emotions import Emotion
from moodfusion.utils.helpers import clamp, load_config, setup_logging

logger = setup_logging()

CalibrationMap = Mapping[Emotion, float]


class Calibrator:
    """Read-side view of the latest calibration map."""

    def __init__(self, calibration_map: Optional[CalibrationMap] = None, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        cal_cfg = config["calibration"]
        self.min_multiplier = cal_cfg["min_multiplier"]
        self.max_multiplier = cal_cfg["max_multiplier"]
        self._map: Optional[dict[Emotion, float]] = None
        self.refresh(calibration_map)

    def refresh(self, calibration_map: Optional[CalibrationMap]) -> None:
        """Swap in a new map (``None`` means calibration is unavailable)."""
        self._map = dict(calibration_map) if calibration_map else None

    @property
    def available(self) -> bool:
        return self._map is not None

    def multiplier(self, emotion: Emotion) -> float:
        if self._map is None or emotion not in self._map:
            return 1.0
        return clamp(float(self._map[emotion]), self.min_multiplier, self.max_multiplier)


class BaselineSamples:
    """Most recent baseline (emotion, confidence) samples, oldest dropped first."""

    def __init__(self, max_samples: Optional[int] = None, config: Optional[dict] = None):
        if max_samples is None:
            if config is None:
                config = load_config()
            max_samples = config["calibration"]["max_baseline_samples"]
        self._samples: deque[tuple[Emotion, float]] = deque(maxlen=max_samples)

    def add(self, emotion: Emotion, confidence: float) -> None:
        self._samples.append((emotion, float(confidence)))

    @property
    def samples(self) -> list[tuple[Emotion, float]]:
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)


def derive_calibration_map(
    samples: Iterable[tuple[Emotion, float]],
    config: Optional[dict] = None,
) -> dict[Emotion, float]:
    """Per-emotion multipliers from baseline samples.

    Emotions never seen during the baseline are omitted (multiplier 1.0
    at read time).
    """
    if config is None:
        config = load_config()

    cal_cfg = config["calibration"]
    reference = cal_cfg["reference_confidence"]
    min_average = cal_cfg["min_average"]

    sums: dict[Emotion, float] = {}
    counts: dict[Emotion, int] = {}
    for emotion, confidence in samples:
        sums[emotion] = sums.get(emotion, 0.0) + confidence
        counts[emotion] = counts.get(emotion, 0) + 1

    calibration = {}
    for emotion, total in sums.items():
        avg = total / counts[emotion]
        multiplier = reference / avg if avg > min_average else 1.0
        calibration[emotion] = clamp(multiplier, cal_cfg["min_multiplier"], cal_cfg["max_multiplier"])

    logger.info("Calibration derived for %d emotions", len(calibration))
    return calibration
