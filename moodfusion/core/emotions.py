"""
Emotion Taxonomies & Lookup Tables
===================================
Closed label sets for every modality plus the tables that translate them
into the canonical ``Emotion`` space used by fusion.

Every lookup table is checked against its source enum at import time, so
adding a label without mapping it fails loudly instead of silently
dropping observations.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Emotion(str, Enum):
    """Canonical fused emotion space."""
    CALM = "calm"
    STRESSED = "stressed"
    ANXIOUS = "anxious"
    SAD = "sad"
    HAPPY = "happy"
    ENERGIZED = "energized"
    FRUSTRATED = "frustrated"
    FATIGUED = "fatigued"
    NEUTRAL = "neutral"


class FacialEmotion(str, Enum):
    NEUTRAL = "neutral"
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    FEARFUL = "fearful"
    DISGUSTED = "disgusted"
    SURPRISED = "surprised"


class VoiceTone(str, Enum):
    CALM = "calm"
    STRESSED = "stressed"
    EXCITED = "excited"
    FRUSTRATED = "frustrated"
    TIRED = "tired"


class TextEmotion(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    CALM = "calm"
    STRESSED = "stressed"
    FATIGUED = "fatigued"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class SpeakingRate(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class InterventionType(str, Enum):
    BREATHING = "breathing"
    GROUNDING = "grounding"
    GRATITUDE = "gratitude"
    BREAK = "break"
    MOVEMENT = "movement"
    COGNITIVE = "cognitive"
    SOCIAL = "social"


class Modality(str, Enum):
    FACIAL = "facial"
    VOICE = "voice"
    TEXT = "text"


# ----------------------------------------------------------------------
# Modality -> canonical emotion
# ----------------------------------------------------------------------

FACIAL_TO_EMOTION: dict[FacialEmotion, Emotion] = {
    FacialEmotion.NEUTRAL: Emotion.CALM,
    FacialEmotion.HAPPY: Emotion.HAPPY,
    FacialEmotion.SAD: Emotion.SAD,
    FacialEmotion.ANGRY: Emotion.FRUSTRATED,
    FacialEmotion.FEARFUL: Emotion.ANXIOUS,
    FacialEmotion.DISGUSTED: Emotion.STRESSED,
    FacialEmotion.SURPRISED: Emotion.ENERGIZED,
}

VOICE_TO_EMOTION: dict[VoiceTone, Emotion] = {
    VoiceTone.CALM: Emotion.CALM,
    VoiceTone.STRESSED: Emotion.STRESSED,
    VoiceTone.EXCITED: Emotion.ENERGIZED,
    VoiceTone.FRUSTRATED: Emotion.FRUSTRATED,
    VoiceTone.TIRED: Emotion.FATIGUED,
}

TEXT_TO_EMOTION: dict[TextEmotion, Emotion] = {
    TextEmotion.HAPPY: Emotion.HAPPY,
    TextEmotion.SAD: Emotion.SAD,
    TextEmotion.ANGRY: Emotion.FRUSTRATED,
    TextEmotion.ANXIOUS: Emotion.ANXIOUS,
    TextEmotion.EXCITED: Emotion.ENERGIZED,
    TextEmotion.CALM: Emotion.CALM,
    TextEmotion.STRESSED: Emotion.STRESSED,
    TextEmotion.FATIGUED: Emotion.FATIGUED,
}

SENTIMENT_TO_EMOTION: dict[Sentiment, Emotion] = {
    Sentiment.POSITIVE: Emotion.HAPPY,
    Sentiment.NEUTRAL: Emotion.CALM,
    Sentiment.NEGATIVE: Emotion.SAD,
}

TEXT_TO_SENTIMENT: dict[TextEmotion, Sentiment] = {
    TextEmotion.HAPPY: Sentiment.POSITIVE,
    TextEmotion.EXCITED: Sentiment.POSITIVE,
    TextEmotion.CALM: Sentiment.NEUTRAL,
    TextEmotion.SAD: Sentiment.NEGATIVE,
    TextEmotion.ANGRY: Sentiment.NEGATIVE,
    TextEmotion.ANXIOUS: Sentiment.NEGATIVE,
    TextEmotion.STRESSED: Sentiment.NEGATIVE,
    TextEmotion.FATIGUED: Sentiment.NEGATIVE,
}

# ----------------------------------------------------------------------
# Interventions
# ----------------------------------------------------------------------

INTERVENTION_FOR: dict[Emotion, Optional[InterventionType]] = {
    Emotion.CALM: None,
    Emotion.STRESSED: InterventionType.BREATHING,
    Emotion.ANXIOUS: InterventionType.GROUNDING,
    Emotion.SAD: InterventionType.GRATITUDE,
    Emotion.HAPPY: None,
    Emotion.ENERGIZED: None,
    Emotion.FRUSTRATED: InterventionType.BREAK,
    Emotion.FATIGUED: InterventionType.MOVEMENT,
    Emotion.NEUTRAL: None,
}

INTERVENTION_TRIGGERS = frozenset(e for e, kind in INTERVENTION_FOR.items() if kind is not None)


def should_intervene(emotion: Emotion, confidence: float, threshold: float = 80) -> bool:
    """True when ``emotion`` is an intervention trigger held with enough confidence."""
    return confidence >= threshold and emotion in INTERVENTION_TRIGGERS


# ----------------------------------------------------------------------
# Similarity (used by the temporal stabilizer)
# ----------------------------------------------------------------------

DEFAULT_SIMILARITY = 0.2

_SIMILARITY: dict[frozenset, float] = {
    frozenset((Emotion.CALM, Emotion.HAPPY)): 0.8,
    frozenset((Emotion.STRESSED, Emotion.ANXIOUS)): 0.9,
    frozenset((Emotion.STRESSED, Emotion.FRUSTRATED)): 0.85,
    frozenset((Emotion.ANXIOUS, Emotion.FRUSTRATED)): 0.75,
    frozenset((Emotion.SAD, Emotion.FATIGUED)): 0.7,
    frozenset((Emotion.HAPPY, Emotion.ENERGIZED)): 0.85,
}


def similarity(a: Emotion, b: Emotion) -> float:
    """Symmetric similarity in [0, 1]; identical emotions score 1.0."""
    if a == b:
        return 1.0
    return _SIMILARITY.get(frozenset((a, b)), DEFAULT_SIMILARITY)


def _check_exhaustive(table: dict, enum_cls: type) -> None:
    missing = [member.value for member in enum_cls if member not in table]
    if missing:
        raise RuntimeError(f"{enum_cls.__name__} labels without a mapping: {missing}")


for _table, _enum in (
    (FACIAL_TO_EMOTION, FacialEmotion),
    (VOICE_TO_EMOTION, VoiceTone),
    (TEXT_TO_EMOTION, TextEmotion),
    (SENTIMENT_TO_EMOTION, Sentiment),
    (TEXT_TO_SENTIMENT, TextEmotion),
    (INTERVENTION_FOR, Emotion),
):
    _check_exhaustive(_table, _enum)
