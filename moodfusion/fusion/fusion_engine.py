"""
Fusion Engine — Weighted Late Fusion of Modality Observations
==============================================================
Combines whatever modalities are currently available into one
``FusedEmotionState``.

  1. Each observation's label is mapped into the canonical ``Emotion``
     space (text uses its detailed label, falling back to sentiment).
  2. It contributes ``strength / 100 × weight`` to that emotion, with
     weights facial 0.40, voice 0.35, text 0.25.
  3. The strongest emotion wins; confidence is the summed evidence
     (``100 × Σ``, clamped to 1-100), optionally scaled by the personal
     calibration multiplier of the winning emotion.
  4. Uncertainty is ``100 × (1 - max normalised probability)``: high when
     the modalities disagree.

Interventions are recommended when a trigger emotion (stressed, anxious,
sad, frustrated, fatigued) wins with confidence >= 80 and uncertainty <=
60, or when two or more modalities agree on a trigger emotion and the
confidence clears the same bar.

Missing modalities simply contribute nothing; with none at all the
engine returns ``None``.  ``fuse`` is a pure function of its arguments.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Optional

from moodfusion.core.emotions import (
    FACIAL_TO_EMOTION,
    INTERVENTION_FOR,
    SENTIMENT_TO_EMOTION,
    TEXT_TO_EMOTION,
    VOICE_TO_EMOTION,
    Emotion,
    InterventionType,
    Modality,
    should_intervene,
)
from moodfusion.core.emotional_state import (
    FacialObservation,
    FusedEmotionState,
    ModalityObservation,
    TextObservation,
    VoiceObservation,
)
from moodfusion.fusion.confidence import Calibrator
from moodfusion.utils.helpers import clamp, load_config, round_half_up, setup_logging

logger = setup_logging()


class FusionEngine:
    """Late fusion of per-modality observations into a ``FusedEmotionState``."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        fusion_cfg = config["fusion"]
        self.weights = {Modality(name): float(w) for name, w in fusion_cfg["weights"].items()}
        self.intervention_threshold = fusion_cfg["intervention_threshold"]
        self.max_uncertainty = fusion_cfg["max_uncertainty"]
        logger.info(
            "Fusion engine ready (weights: %s)",
            ", ".join(f"{m.value}={w:.2f}" for m, w in self.weights.items()),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fuse(
        self,
        facial: Optional[FacialObservation] = None,
        voice: Optional[VoiceObservation] = None,
        text: Optional[TextObservation] = None,
        calibration: Optional[Calibrator] = None,
        timestamp: Optional[float] = None,
    ) -> Optional[FusedEmotionState]:
        """Fuse the available observations.

        Returns
        -------
        FusedEmotionState, or None when every modality is absent.
        """
        present = [
            (modality, obs)
            for modality, obs in ((Modality.FACIAL, facial), (Modality.VOICE, voice), (Modality.TEXT, text))
            if obs is not None
        ]
        if not present:
            return None

        vector = {emotion: 0.0 for emotion in Emotion}
        voted = []
        for modality, obs in present:
            emotion = self.canonical_emotion(obs)
            vector[emotion] += max(0.0, obs.strength) / 100.0 * self.weights[modality]
            voted.append(emotion)

        votes = Counter(voted)
        total = sum(vector.values())
        if total > 0:
            probabilities = {e: v / total for e, v in vector.items()}
        else:
            probabilities = {e: votes.get(e, 0) / len(voted) for e in Emotion}

        candidates = list(dict.fromkeys(voted))
        primary = max(candidates, key=lambda e: (vector[e], probabilities[e]))

        multiplier = calibration.multiplier(primary) if calibration is not None else 1.0
        confidence = int(clamp(round_half_up(total * 100), 1, 100))
        confidence = int(clamp(round_half_up(confidence * multiplier), 1, 100))
        uncertainty = int(clamp(round_half_up(100 * (1 - max(probabilities.values()))), 0, 100))

        agreed, count = votes.most_common(1)[0]
        agreed_emotion = agreed if count >= 2 else None
        needed, kind = self.decide_intervention(primary, confidence, uncertainty, agreed_emotion)

        return FusedEmotionState(
            primary_emotion=primary,
            confidence=confidence,
            uncertainty=uncertainty,
            emotion_vector=vector,
            probabilities=probabilities,
            timestamp=time.time() if timestamp is None else timestamp,
            modalities=dict(present),
            agreed_emotion=agreed_emotion,
            intervention_needed=needed,
            intervention_type=kind,
            calibration_multiplier=multiplier,
        )

    def decide_intervention(
        self,
        emotion: Emotion,
        confidence: float,
        uncertainty: float,
        agreed_emotion: Optional[Emotion] = None,
    ) -> tuple[bool, Optional[InterventionType]]:
        """Whether (and which) intervention the state calls for."""
        if should_intervene(emotion, confidence, self.intervention_threshold) and uncertainty <= self.max_uncertainty:
            return True, INTERVENTION_FOR[emotion]
        if agreed_emotion is not None and should_intervene(agreed_emotion, confidence, self.intervention_threshold):
            return True, INTERVENTION_FOR[agreed_emotion]
        return False, None

    @staticmethod
    def canonical_emotion(observation: ModalityObservation) -> Emotion:
        if isinstance(observation, FacialObservation):
            return FACIAL_TO_EMOTION[observation.label]
        if isinstance(observation, VoiceObservation):
            return VOICE_TO_EMOTION[observation.label]
        if observation.label is not None:
            return TEXT_TO_EMOTION[observation.label]
        return SENTIMENT_TO_EMOTION[observation.sentiment]
