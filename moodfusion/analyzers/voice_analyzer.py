"""
Voice Classifier — Attention-Weighted Tone Scoring
===================================================
Maps a frame's acoustic features to one of five vocal tones:

    calm · stressed · excited · frustrated · tired

Each feature is squashed into [-1, 1] with ``tanh`` so that no single
measurement dominates, then every tone scores the five embeddings with
its own attention weights:

  | Tone       | Leans on                                           |
  |------------|----------------------------------------------------|
  | calm       | low energy, low pitch, slow speech (base score 50) |
  | stressed   | everything elevated, pitch and energy first        |
  | excited    | positive energy, pitch and tempo only              |
  | frustrated | erratic zero crossings combined with pitch         |
  | tired      | negative energy, pitch and tempo only              |

Scores become probabilities through a softmax with temperature 50; the
maximum score is subtracted first so large scores cannot overflow.

Silent frames (energy below ``voice.silence_energy``) are not
classified at all: the caller keeps its previous voice observation.
"""

from __future__ import annotations

import math
import time
from typing import Optional

from moodfusion.core.emotions import SpeakingRate, VoiceTone
from moodfusion.core.emotional_state import VoiceObservation
from moodfusion.preprocessing.acoustic_features import AcousticFeatures
from moodfusion.utils.helpers import clamp, load_config, round_half_up, setup_logging

logger = setup_logging()


# energy, pitch, spectral, zcr, rate
ATTENTION_WEIGHTS: dict[VoiceTone, tuple[float, float, float, float, float]] = {
    VoiceTone.CALM: (0.3, 0.2, 0.2, 0.1, 0.2),
    VoiceTone.STRESSED: (0.25, 0.25, 0.2, 0.15, 0.15),
    VoiceTone.EXCITED: (0.35, 0.3, 0.2, 0.05, 0.1),
    VoiceTone.FRUSTRATED: (0.2, 0.15, 0.15, 0.35, 0.15),
    VoiceTone.TIRED: (0.4, 0.25, 0.2, 0.05, 0.1),
}

_RATE_EMBEDDING = {SpeakingRate.SLOW: -1.0, SpeakingRate.NORMAL: 0.0, SpeakingRate.FAST: 1.0}


class VoiceClassifier:
    """Classify acoustic features into a ``VoiceTone`` with a percentage breakdown."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        voice_cfg = config["voice"]
        self.silence_energy = voice_cfg["silence_energy"]
        self.temperature = voice_cfg["softmax_temperature"]
        self.min_confidence = voice_cfg["min_confidence"]
        logger.info("Voice classifier ready (softmax T=%s)", self.temperature)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, features: AcousticFeatures) -> dict[VoiceTone, float]:
        """Percentage per tone (sums to 100)."""
        scores = self.score(features)
        best = max(scores.values())
        exps = {tone: math.exp((s - best) / self.temperature) for tone, s in scores.items()}
        total = sum(exps.values())
        return {tone: v / total * 100.0 for tone, v in exps.items()}

    def analyze(self, features: Optional[AcousticFeatures], timestamp: Optional[float] = None) -> Optional[VoiceObservation]:
        """Classify one frame; returns None for missing or silent frames."""
        if features is None:
            return None
        if features.energy < self.silence_energy:
            logger.debug("Silent frame (energy=%.4f); no voice observation.", features.energy)
            return None

        breakdown = self.classify(features)
        tone = max(breakdown, key=breakdown.get)
        confidence = round_half_up(clamp(breakdown[tone], self.min_confidence, 100))
        intensity = round_half_up(min(features.energy * 200, 100))
        logger.debug("Voice: %s (%d%%, intensity %d)", tone.value, confidence, intensity)

        return VoiceObservation(
            label=tone,
            confidence=confidence,
            intensity=intensity,
            timestamp=time.time() if timestamp is None else timestamp,
            pitch=features.pitch,
            energy=features.energy,
            speaking_rate=features.speaking_rate,
            breakdown=breakdown,
        )

    def score(self, features: AcousticFeatures) -> dict[VoiceTone, float]:
        """Raw (pre-softmax) score per tone."""
        e, p, s, z, r = self.embed(features)
        scores = {}
        for tone in VoiceTone:
            we, wp, ws, wz, wr = ATTENTION_WEIGHTS[tone]
            if tone is VoiceTone.CALM:
                scores[tone] = 50 - e * 100 * we - p * 80 * wp - s * 70 * ws - z * 50 * wz - r * 60 * wr
            elif tone is VoiceTone.STRESSED:
                scores[tone] = e * 120 * we + p * 100 * wp + s * 80 * ws + z * 90 * wz + r * 70 * wr
            elif tone is VoiceTone.EXCITED:
                scores[tone] = (max(0.0, e) * 150 * we + max(0.0, p) * 130 * wp
                                + max(0.0, s) * 100 * ws + max(0.0, r) * 80 * wr)
            elif tone is VoiceTone.FRUSTRATED:
                scores[tone] = abs(p) * z * 100 * wz + abs(e - 0.3) * 80 * we + z * 120 * wz
            else:
                scores[tone] = (max(0.0, -e) * 140 * we + max(0.0, -p) * 110 * wp
                                + max(0.0, -s) * 90 * ws + max(0.0, -r) * 70 * wr)
        return scores

    @staticmethod
    def embed(features: AcousticFeatures) -> tuple[float, float, float, float, float]:
        """Squash features into [-1, 1]: energy, pitch, spectral, zcr, rate."""
        return (
            math.tanh(features.energy * 10),
            math.tanh((features.pitch - 150) / 100),
            math.tanh(features.spectral_centroid * 10),
            math.tanh(features.zero_crossing_rate * 100),
            _RATE_EMBEDDING[features.speaking_rate],
        )
