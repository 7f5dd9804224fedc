"""
moodfusion — Multimodal Emotional State Detection
===================================================
Rule-based facial, voice and text classifiers whose observations are
fused into one confidence-scored, temporally stable emotional state.
"""

__version__ = "0.1.0"
