"""
Analyzers — Per-Modality Emotion Classification
================================================
Each classifier handles one input modality:
  - FacialClassifier:  Gaussian profiles over skin-region statistics
  - VoiceClassifier:   attention-weighted scoring of acoustic features
  - TextClassifier:    clause-aware or token-attention lexicon scoring
"""

from moodfusion.analyzers.face_analyzer import FacialClassifier
from moodfusion.analyzers.voice_analyzer import VoiceClassifier
from moodfusion.analyzers.text_analyzer import TextClassifier

__all__ = ["FacialClassifier", "VoiceClassifier", "TextClassifier"]
