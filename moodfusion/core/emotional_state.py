"""
Emotional State Data Model
===========================
Per-modality observations and the fused emotional state.

Observations are produced by the classifiers, one per modality, and are
consumed by the fusion engine.  ``FusedEmotionState`` is the result of a
fusion tick: it is never mutated, a later tick simply supersedes it.

Keeping the data model separate from logic makes it easy to serialise to
JSON, log, or hand to the persistence collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import ClassVar, Optional, Union
import json

from moodfusion.core.emotions import (
    Emotion,
    FacialEmotion,
    InterventionType,
    Modality,
    Sentiment,
    SpeakingRate,
    TEXT_TO_SENTIMENT,
    TextEmotion,
    VoiceTone,
)


def _plain(value):
    """Recursively turn enums into their values so the result is JSON-ready."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {_plain(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class FacialObservation:
    label: FacialEmotion
    confidence: float                               # 0-100
    timestamp: float
    breakdown: dict[FacialEmotion, float] = field(default_factory=dict)
    face_size: float = 0.0                          # fraction of frame covered

    modality: ClassVar[Modality] = Modality.FACIAL

    @property
    def strength(self) -> float:
        return self.confidence

    def to_dict(self) -> dict:
        return _plain({"modality": self.modality, **asdict(self)})


@dataclass(frozen=True)
class VoiceObservation:
    label: VoiceTone
    confidence: float                               # 0-100, winning tone probability
    intensity: float                                # 0-100, energy based
    timestamp: float
    pitch: float = 0.0                              # Hz
    energy: float = 0.0                             # RMS, 0-1
    speaking_rate: SpeakingRate = SpeakingRate.NORMAL
    breakdown: dict[VoiceTone, float] = field(default_factory=dict)

    modality: ClassVar[Modality] = Modality.VOICE

    @property
    def strength(self) -> float:
        # Fusion weighs vocal arousal, not classifier certainty.
        return self.intensity

    def to_dict(self) -> dict:
        return _plain({"modality": self.modality, **asdict(self)})


@dataclass(frozen=True)
class TextObservation:
    label: Optional[TextEmotion]
    sentiment: Sentiment
    confidence: float                               # 0-100
    timestamp: float
    intensity: float = 0.0
    breakdown: dict[TextEmotion, float] = field(default_factory=dict)
    keywords: tuple[str, ...] = ()
    context: str = ""

    modality: ClassVar[Modality] = Modality.TEXT

    @property
    def strength(self) -> float:
        return self.confidence

    def to_dict(self) -> dict:
        return _plain({"modality": self.modality, **asdict(self)})


ModalityObservation = Union[FacialObservation, VoiceObservation, TextObservation]


@dataclass(frozen=True)
class FusedEmotionState:
    """One fusion tick's view of the subject's emotional state."""

    primary_emotion: Emotion
    confidence: int                                 # 1-100
    uncertainty: int                                # 0-100, 100 * (1 - max probability)
    emotion_vector: dict[Emotion, float]            # raw weighted evidence, all emotions
    probabilities: dict[Emotion, float]             # normalised, sums to 1
    timestamp: float

    modalities: dict[Modality, ModalityObservation] = field(default_factory=dict)
    agreed_emotion: Optional[Emotion] = None        # set when >= 2 modalities agree
    intervention_needed: bool = False
    intervention_type: Optional[InterventionType] = None
    calibration_multiplier: float = 1.0

    @property
    def modalities_used(self) -> list[Modality]:
        return list(self.modalities)

    def to_dict(self) -> dict:
        """Serialise to a plain dict (for JSON export, persistence)."""
        d = {
            "primary_emotion": self.primary_emotion,
            "confidence": self.confidence,
            "uncertainty": self.uncertainty,
            "emotion_vector": dict(self.emotion_vector),
            "probabilities": dict(self.probabilities),
            "timestamp": self.timestamp,
            "modalities": {m: obs.to_dict() for m, obs in self.modalities.items()},
            "agreed_emotion": self.agreed_emotion,
            "intervention_needed": self.intervention_needed,
            "intervention_type": self.intervention_type,
            "calibration_multiplier": self.calibration_multiplier,
        }
        return _plain(d)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class HistoryEntry:
    emotion: Emotion
    confidence: float
    timestamp: float

    def to_dict(self) -> dict:
        return _plain(asdict(self))


@dataclass(frozen=True)
class TextClassification:
    """Result of scoring a piece of text, before it becomes an observation."""

    emotion: TextEmotion
    confidence: int                                 # 0-100
    breakdown: dict[TextEmotion, float]             # sums to 100
    intensity: int = 0
    context: str = ""                               # "empty", "emphatic", "balanced", "contrast", "direct"

    @property
    def sentiment(self) -> Sentiment:
        return TEXT_TO_SENTIMENT[self.emotion]
