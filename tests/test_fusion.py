"""
Unit Tests for Fusion and Calibration
======================================
Tests cover:
  - FusionEngine weighting, normalisation, uncertainty and interventions
  - Modality-agreement rule
  - Calibrator clamping and baseline-derived multipliers
  - Lookup-table coverage of the emotion taxonomies
"""

import json
import sys
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from moodfusion.core.emotions import (
    Emotion,
    FacialEmotion,
    InterventionType,
    Sentiment,
    TextEmotion,
    VoiceTone,
)
from moodfusion.core.emotional_state import FacialObservation, TextObservation, VoiceObservation


def facial(label, confidence, ts=0.0):
    return FacialObservation(label=label, confidence=confidence, timestamp=ts)


def voice(label, intensity, ts=0.0):
    return VoiceObservation(label=label, confidence=70, intensity=intensity, timestamp=ts)


def text(label, confidence, ts=0.0, sentiment=Sentiment.NEUTRAL):
    return TextObservation(label=label, sentiment=sentiment, confidence=confidence, timestamp=ts)


class TestFusionEngine(unittest.TestCase):

    def setUp(self):
        from moodfusion.fusion.fusion_engine import FusionEngine
        self.engine = FusionEngine()

    def test_nothing_to_fuse(self):
        self.assertIsNone(self.engine.fuse())

    def test_facial_and_text_agree(self):
        state = self.engine.fuse(
            facial=facial(FacialEmotion.HAPPY, 90),
            text=text(TextEmotion.HAPPY, 85),
            timestamp=10.0,
        )
        self.assertEqual(state.primary_emotion, Emotion.HAPPY)
        self.assertEqual(state.confidence, 57)
        self.assertEqual(state.uncertainty, 0)
        self.assertEqual(state.agreed_emotion, Emotion.HAPPY)
        self.assertFalse(state.intervention_needed)
        self.assertEqual(state.timestamp, 10.0)

    def test_voice_only_stays_below_intervention(self):
        state = self.engine.fuse(voice=voice(VoiceTone.STRESSED, 90))
        self.assertEqual(state.primary_emotion, Emotion.STRESSED)
        self.assertIn(state.confidence, (31, 32))
        self.assertFalse(state.intervention_needed)
        self.assertIsNone(state.intervention_type)

    def test_vector_invariants(self):
        state = self.engine.fuse(
            facial=facial(FacialEmotion.ANGRY, 80),
            voice=voice(VoiceTone.TIRED, 40),
            text=text(TextEmotion.ANXIOUS, 60),
        )
        self.assertEqual(set(state.emotion_vector), set(Emotion))
        self.assertTrue(all(v >= 0 for v in state.emotion_vector.values()))
        self.assertAlmostEqual(sum(state.probabilities.values()), 1.0, places=9)
        self.assertIn(state.primary_emotion, state.emotion_vector)
        self.assertEqual(state.primary_emotion, Emotion.FRUSTRATED)

    def test_unanimous_trigger_intervenes(self):
        state = self.engine.fuse(
            facial=facial(FacialEmotion.DISGUSTED, 100),
            voice=voice(VoiceTone.STRESSED, 100),
            text=text(TextEmotion.STRESSED, 95),
        )
        self.assertEqual(state.primary_emotion, Emotion.STRESSED)
        self.assertEqual(state.confidence, 99)
        self.assertTrue(state.intervention_needed)
        self.assertEqual(state.intervention_type, InterventionType.BREATHING)

    def test_disagreement_blocks_intervention(self):
        state = self.engine.fuse(
            facial=facial(FacialEmotion.ANGRY, 80),
            voice=voice(VoiceTone.STRESSED, 100),
            text=text(TextEmotion.SAD, 100),
        )
        self.assertEqual(state.primary_emotion, Emotion.STRESSED)
        self.assertGreaterEqual(state.confidence, 80)
        self.assertGreater(state.uncertainty, 60)
        self.assertIsNone(state.agreed_emotion)
        self.assertFalse(state.intervention_needed)

    def test_modality_agreement_triggers_on_its_own(self):
        from moodfusion.fusion.confidence import Calibrator
        calibrator = Calibrator({Emotion.HAPPY: 1.2})
        state = self.engine.fuse(
            facial=facial(FacialEmotion.HAPPY, 100),
            voice=voice(VoiceTone.TIRED, 60),
            text=text(TextEmotion.FATIGUED, 60),
            calibration=calibrator,
        )
        self.assertEqual(state.primary_emotion, Emotion.HAPPY)
        self.assertEqual(state.confidence, 91)
        self.assertEqual(state.agreed_emotion, Emotion.FATIGUED)
        self.assertTrue(state.intervention_needed)
        self.assertEqual(state.intervention_type, InterventionType.MOVEMENT)

    def test_text_falls_back_to_sentiment(self):
        state = self.engine.fuse(text=text(None, 80, sentiment=Sentiment.NEGATIVE))
        self.assertEqual(state.primary_emotion, Emotion.SAD)

    def test_calibration_scales_primary_only(self):
        from moodfusion.fusion.confidence import Calibrator
        obs = text(TextEmotion.STRESSED, 100)
        self.assertEqual(self.engine.fuse(text=obs).confidence, 25)
        boosted = self.engine.fuse(text=obs, calibration=Calibrator({Emotion.STRESSED: 1.6}))
        self.assertEqual(boosted.confidence, 40)
        self.assertEqual(boosted.calibration_multiplier, 1.6)
        untouched = self.engine.fuse(text=obs, calibration=Calibrator({Emotion.CALM: 1.6}))
        self.assertEqual(untouched.confidence, 25)

    def test_deterministic(self):
        kwargs = dict(
            facial=facial(FacialEmotion.SAD, 77),
            voice=voice(VoiceTone.CALM, 33),
            text=text(TextEmotion.HAPPY, 64),
            timestamp=5.0,
        )
        self.assertEqual(self.engine.fuse(**kwargs).to_dict(), self.engine.fuse(**kwargs).to_dict())

    def test_json_export(self):
        state = self.engine.fuse(facial=facial(FacialEmotion.SURPRISED, 70), timestamp=1.0)
        data = json.loads(state.to_json())
        self.assertEqual(data["primary_emotion"], "energized")
        self.assertEqual(data["modalities"]["facial"]["label"], "surprised")
        self.assertIn("calm", data["probabilities"])


class TestCalibration(unittest.TestCase):

    def test_multiplier_clamped(self):
        from moodfusion.fusion.confidence import Calibrator
        calibrator = Calibrator({Emotion.STRESSED: 3.0, Emotion.CALM: 0.1})
        self.assertEqual(calibrator.multiplier(Emotion.STRESSED), 1.6)
        self.assertEqual(calibrator.multiplier(Emotion.CALM), 0.6)
        self.assertEqual(calibrator.multiplier(Emotion.SAD), 1.0)

    def test_unavailable_is_neutral(self):
        from moodfusion.fusion.confidence import Calibrator
        calibrator = Calibrator(None)
        self.assertFalse(calibrator.available)
        self.assertEqual(calibrator.multiplier(Emotion.STRESSED), 1.0)

    def test_derive_calibration_map(self):
        from moodfusion.fusion.confidence import derive_calibration_map
        calibration = derive_calibration_map([
            (Emotion.STRESSED, 72), (Emotion.STRESSED, 78),
            (Emotion.CALM, 3),
            (Emotion.HAPPY, 20),
        ])
        self.assertAlmostEqual(calibration[Emotion.STRESSED], 50 / 75)
        self.assertEqual(calibration[Emotion.CALM], 1.0)
        self.assertEqual(calibration[Emotion.HAPPY], 1.6)
        self.assertNotIn(Emotion.SAD, calibration)

    def test_baseline_keeps_latest(self):
        from moodfusion.fusion.confidence import BaselineSamples
        baseline = BaselineSamples(max_samples=2)
        for confidence in (10, 20, 30):
            baseline.add(Emotion.CALM, confidence)
        self.assertEqual(baseline.samples, [(Emotion.CALM, 20.0), (Emotion.CALM, 30.0)])

    def test_baseline_size_from_config(self):
        import copy
        from moodfusion.fusion.confidence import BaselineSamples
        from moodfusion.utils.helpers import load_config
        config = copy.deepcopy(load_config())
        config["calibration"]["max_baseline_samples"] = 3
        baseline = BaselineSamples(config=config)
        for confidence in range(5):
            baseline.add(Emotion.SAD, confidence)
        self.assertEqual(len(baseline), 3)


class TestTaxonomy(unittest.TestCase):

    def test_similarity_is_symmetric(self):
        from moodfusion.core.emotions import similarity
        self.assertEqual(similarity(Emotion.ANXIOUS, Emotion.STRESSED), 0.9)
        self.assertEqual(similarity(Emotion.STRESSED, Emotion.ANXIOUS), 0.9)
        self.assertEqual(similarity(Emotion.SAD, Emotion.SAD), 1.0)
        self.assertEqual(similarity(Emotion.HAPPY, Emotion.SAD), 0.2)

    def test_should_intervene(self):
        from moodfusion.core.emotions import should_intervene
        self.assertTrue(should_intervene(Emotion.ANXIOUS, 80))
        self.assertFalse(should_intervene(Emotion.ANXIOUS, 79))
        self.assertFalse(should_intervene(Emotion.HAPPY, 100))


if __name__ == "__main__":
    unittest.main()
