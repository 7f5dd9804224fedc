"""
Facial Classifier — Gaussian Profile Matching
==============================================
Scores the extracted facial statistics against one hand-tuned profile
per facial emotion.  Each profile is a set of independent Gaussians
(mean, std) over a subset of the features:

  happy     → brighter lower third (smile), moderate edges
  sad       → darker lower third, few edges, dim face
  angry     → darker upper third (brow), many edges
  fearful   → brighter upper third (raised brows), high variance
  surprised → brightest upper third, most edges

A profile's score is the geometric mean of its feature likelihoods, so
profiles over a different number of features stay comparable.  Scores
are computed in log space and shifted by the best one before
exponentiating, which keeps tiny likelihoods from underflowing to zero.
"""

from __future__ import annotations

import math
import time
from typing import Optional

from moodfusion.core.emotions import FacialEmotion
from moodfusion.core.emotional_state import FacialObservation
from moodfusion.preprocessing.face_features import FacialFeatureExtractor, FacialFeatures, PixelInput
from moodfusion.utils.helpers import clamp, load_config, normalize_percentages, round_half_up, setup_logging

logger = setup_logging()


# (mean, std) per feature
PROFILES: dict[FacialEmotion, dict[str, tuple[float, float]]] = {
    FacialEmotion.NEUTRAL: {
        "lower_middle_ratio": (1.0, 0.12),
        "upper_middle_ratio": (1.0, 0.12),
        "edge_density": (0.13, 0.06),
        "avg_brightness": (0.45, 0.15),
        "color_variance": (0.12, 0.08),
    },
    FacialEmotion.HAPPY: {
        "lower_middle_ratio": (1.15, 0.25),
        "edge_density": (0.15, 0.08),
        "avg_brightness": (0.5, 0.15),
        "color_variance": (0.15, 0.1),
    },
    FacialEmotion.SAD: {
        "lower_middle_ratio": (0.85, 0.2),
        "edge_density": (0.08, 0.05),
        "avg_brightness": (0.35, 0.12),
        "color_variance": (0.1, 0.08),
    },
    FacialEmotion.ANGRY: {
        "upper_middle_ratio": (0.85, 0.2),
        "edge_density": (0.22, 0.08),
        "avg_brightness": (0.42, 0.15),
        "color_variance": (0.18, 0.1),
    },
    FacialEmotion.FEARFUL: {
        "upper_middle_ratio": (1.1, 0.2),
        "edge_density": (0.18, 0.08),
        "avg_brightness": (0.48, 0.15),
        "color_variance": (0.22, 0.1),
    },
    FacialEmotion.DISGUSTED: {
        "upper_middle_ratio": (1.05, 0.2),
        "edge_density": (0.2, 0.08),
        "avg_brightness": (0.4, 0.15),
        "color_variance": (0.16, 0.1),
    },
    FacialEmotion.SURPRISED: {
        "upper_middle_ratio": (1.2, 0.25),
        "edge_density": (0.25, 0.1),
        "avg_brightness": (0.52, 0.15),
        "color_variance": (0.25, 0.12),
    },
}


class FacialClassifier:
    """Classify a frame into a ``FacialEmotion`` with a percentage breakdown."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        self.extractor = FacialFeatureExtractor(config)
        self.min_confidence = config["face"]["min_confidence"]
        logger.info("Facial classifier ready (%d profiles)", len(PROFILES))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, features: FacialFeatures) -> dict[FacialEmotion, float]:
        """Percentage per facial emotion (sums to 100)."""
        values = features.as_dict()
        log_scores = {}
        for emotion in FacialEmotion:
            profile = PROFILES[emotion]
            logs = [self._log_gaussian(values[name], mean, std) for name, (mean, std) in profile.items()]
            log_scores[emotion] = sum(logs) / len(logs)

        best = max(log_scores.values())
        return normalize_percentages({e: math.exp(v - best) for e, v in log_scores.items()})

    def analyze(
        self,
        pixels: PixelInput,
        width: Optional[int] = None,
        height: Optional[int] = None,
        timestamp: Optional[float] = None,
    ) -> Optional[FacialObservation]:
        """Extract features from a frame and classify them.

        Returns
        -------
        FacialObservation, or None when the frame holds no detectable face.
        """
        features = self.extractor.extract(pixels, width, height)
        if features is None:
            return None

        breakdown = self.classify(features)
        label = max(breakdown, key=breakdown.get)
        confidence = round_half_up(clamp(breakdown[label], self.min_confidence, 100))
        logger.debug("Face: %s (%d%%)", label.value, confidence)

        return FacialObservation(
            label=label,
            confidence=confidence,
            timestamp=time.time() if timestamp is None else timestamp,
            breakdown=breakdown,
            face_size=features.face_size,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _log_gaussian(x: float, mean: float, std: float) -> float:
        return -((x - mean) ** 2) / (2 * std ** 2) - math.log(std * math.sqrt(2 * math.pi))
