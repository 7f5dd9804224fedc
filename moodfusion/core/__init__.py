"""
Core — Taxonomies, Data Model, Session & Scheduling
====================================================
``FusionSession`` and ``FusionScheduler`` live in ``core.session`` and
``core.scheduler``; import them from there.
"""

from moodfusion.core.emotions import (
    Emotion,
    FacialEmotion,
    InterventionType,
    Modality,
    Sentiment,
    SpeakingRate,
    TextEmotion,
    VoiceTone,
)
from moodfusion.core.emotional_state import (
    FacialObservation,
    FusedEmotionState,
    HistoryEntry,
    TextObservation,
    VoiceObservation,
)

__all__ = [
    "Emotion", "FacialEmotion", "InterventionType", "Modality", "Sentiment",
    "SpeakingRate", "TextEmotion", "VoiceTone",
    "FacialObservation", "FusedEmotionState", "HistoryEntry",
    "TextObservation", "VoiceObservation",
]
