"""
Preprocessing — Feature Extraction & Input Cleaning
=====================================================
  - FacialFeatureExtractor:  skin-region statistics from pixel buffers
  - AcousticFeatureExtractor: energy / pitch / spectrum from audio frames
  - TextPreprocessor:        cleaning, last sentence, keywords
"""

from moodfusion.preprocessing.face_features import FacialFeatureExtractor, FacialFeatures
from moodfusion.preprocessing.acoustic_features import AcousticFeatureExtractor, AcousticFeatures
from moodfusion.preprocessing.text_preprocessor import TextPreprocessor

__all__ = [
    "FacialFeatureExtractor", "FacialFeatures",
    "AcousticFeatureExtractor", "AcousticFeatures",
    "TextPreprocessor",
]
