"""
Unit Tests for FusionSession and FusionScheduler
=================================================
Tests cover:
  - Capture -> smoothing -> fusion -> stabilizer flow of one session
  - Modality lifecycle (clear, reset) and session isolation
  - Periodic capture loops, text debouncing and error tolerance
"""

import asyncio
import copy
import sys
import threading
import unittest
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

SILENT_SPECTRUM = bytes(1024)
SILENT_WAVE = bytes([128]) * 2048
LOUD_SPECTRUM = bytes([200] * 64 + [40] * 960)
LOUD_WAVE = bytes([228, 28] * 1024)


def _skin_image(size: int = 64) -> np.ndarray:
    img = np.zeros((size, size, 3), dtype=np.uint8)
    img[..., 0], img[..., 1], img[..., 2] = 200, 150, 120
    return img


class TestFusionSession(unittest.TestCase):

    def setUp(self):
        from moodfusion.core.session import FusionSession
        self.session = FusionSession()

    def test_tick_without_observations(self):
        self.assertIsNone(self.session.tick(timestamp=0.0))
        self.assertIsNone(self.session.state)
        self.assertEqual(len(self.session.history), 0)

    def test_text_only_state(self):
        from moodfusion.core.emotions import Emotion, Modality, TextEmotion
        obs = self.session.submit_text("I am not happy", timestamp=0.0)
        self.assertEqual(obs.label, TextEmotion.SAD)

        state = self.session.tick(timestamp=0.0)
        self.assertEqual(state.primary_emotion, Emotion.SAD)
        self.assertIn(state.confidence, (21, 22))
        self.assertEqual(state.modalities_used, [Modality.TEXT])
        self.assertIs(self.session.state, state)
        self.assertEqual(len(self.session.history), 1)

    def test_empty_text_keeps_previous(self):
        from moodfusion.core.emotions import Modality, TextEmotion
        self.session.submit_text("I am not happy", timestamp=0.0)
        self.assertIsNone(self.session.submit_text("   ", timestamp=1.0))
        self.assertEqual(self.session.observation(Modality.TEXT).label, TextEmotion.SAD)

    def test_silent_audio_yields_nothing(self):
        self.assertIsNone(self.session.submit_audio_frame(SILENT_SPECTRUM, SILENT_WAVE, timestamp=0.0))
        self.assertIsNone(self.session.tick(timestamp=0.0))

    def test_loud_audio_frame(self):
        from moodfusion.core.emotions import Modality
        obs = self.session.submit_audio_frame(LOUD_SPECTRUM, LOUD_WAVE, timestamp=0.0)
        self.assertIsNotNone(obs)
        self.assertGreater(obs.intensity, 50)
        self.assertIs(self.session.observation(Modality.VOICE), obs)

    def test_facial_frame(self):
        from moodfusion.core.emotions import Emotion, FacialEmotion
        obs = self.session.submit_facial_frame(_skin_image(), timestamp=0.0)
        self.assertEqual(obs.label, FacialEmotion.NEUTRAL)
        self.assertEqual(self.session.tick(timestamp=0.0).primary_emotion, Emotion.CALM)

    def test_stabilizer_holds_weak_jump(self):
        from moodfusion.core.emotions import Emotion
        self.session.submit_text("I absolutely love this", timestamp=0.0)
        first = self.session.tick(timestamp=0.0)
        self.assertEqual(first.primary_emotion, Emotion.HAPPY)

        self.session.submit_text("I am not happy", timestamp=1.0)
        second = self.session.tick(timestamp=1.0)
        self.assertEqual(second.primary_emotion, Emotion.HAPPY)
        self.assertEqual(second.confidence, first.confidence)

    def test_clear_modality(self):
        from moodfusion.core.emotions import Modality
        self.session.submit_text("I am not happy", timestamp=0.0)
        self.session.clear_modality(Modality.TEXT)
        self.assertIsNone(self.session.observation(Modality.TEXT))
        self.assertIsNone(self.session.tick(timestamp=1.0))

    def test_reset(self):
        self.session.submit_text("I am not happy", timestamp=0.0)
        self.session.tick(timestamp=0.0)
        self.session.reset()
        self.assertIsNone(self.session.state)
        self.assertEqual(self.session.snapshot(), {})
        self.assertEqual(len(self.session.history), 0)

    def test_submit_dispatch(self):
        from moodfusion.core.emotions import Modality
        obs = self.session.submit("text", text="I am so tired", timestamp=0.0)
        self.assertIs(self.session.observation(Modality.TEXT), obs)
        with self.assertRaises(ValueError):
            self.session.submit("smell", text="x")

    def test_calibration_applies_to_primary(self):
        from moodfusion.core.emotions import Emotion
        self.session.set_calibration({Emotion.SAD: 1.6})
        self.session.submit_text("I am not happy", timestamp=0.0)
        state = self.session.tick(timestamp=0.0)
        self.assertEqual(state.calibration_multiplier, 1.6)
        self.assertGreaterEqual(state.confidence, 34)

    def test_unreadable_files_yield_nothing(self):
        import tempfile
        with tempfile.TemporaryDirectory() as tmp:
            image = Path(tmp) / "frame.png"
            audio = Path(tmp) / "clip.wav"
            image.write_bytes(b"")
            audio.write_bytes(b"")
            self.assertIsNone(self.session.submit_facial_frame(str(image), timestamp=0.0))
            self.assertIsNone(self.session.submit_audio_file(str(audio), timestamp=0.0))
        self.assertEqual(self.session.snapshot(), {})

    def test_log_level_from_config(self):
        import logging
        from moodfusion.core.session import FusionSession
        from moodfusion.utils.helpers import load_config, setup_logging
        config = copy.deepcopy(load_config())
        config["logging"]["level"] = "DEBUG"
        self.addCleanup(setup_logging, self.session.config["logging"]["level"])
        FusionSession(config)
        self.assertEqual(logging.getLogger("moodfusion").level, logging.DEBUG)

    def test_sessions_are_independent(self):
        from moodfusion.core.session import FusionSession
        other = FusionSession()
        self.session.submit_text("I am not happy", timestamp=0.0)
        self.assertEqual(other.snapshot(), {})
        self.assertIsNone(other.tick(timestamp=0.0))

    def test_concurrent_capture(self):
        from moodfusion.core.emotions import Modality
        errors = []

        def run(fn, *args):
            try:
                for i in range(5):
                    fn(*args, timestamp=float(i))
            except Exception as exc:  # surfaced below
                errors.append(exc)

        threads = [
            threading.Thread(target=run, args=(self.session.submit_facial_frame, _skin_image())),
            threading.Thread(target=run, args=(self.session.submit_audio_frame, LOUD_SPECTRUM, LOUD_WAVE)),
            threading.Thread(target=run, args=(self.session.submit_text, "I feel calm")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(set(self.session.snapshot()), set(Modality))
        self.assertIsNotNone(self.session.tick(timestamp=5.0))


class TestFusionScheduler(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        from moodfusion.core.session import FusionSession
        from moodfusion.core.scheduler import FusionScheduler
        from moodfusion.utils.helpers import load_config

        config = copy.deepcopy(load_config())
        config["scheduler"].update({
            "facial_interval_sec": 0.02,
            "voice_interval_sec": 0.02,
            "fusion_interval_sec": 10.0,
            "text_debounce_sec": 0.05,
            "fuse_on_update": True,
        })
        self.session = FusionSession(config)
        self.states = []
        self.scheduler = FusionScheduler(self.session, on_state=self.states.append, config=config)

    async def asyncTearDown(self):
        await self.scheduler.stop()

    async def test_voice_source_feeds_session(self):
        from moodfusion.core.emotions import Modality
        self.scheduler.add_source(
            Modality.VOICE,
            lambda: {"frequency_data": LOUD_SPECTRUM, "time_domain_data": LOUD_WAVE},
        )
        await self.scheduler.start()
        self.assertTrue(self.scheduler.is_running)
        await asyncio.sleep(0.2)
        await self.scheduler.stop()

        self.assertFalse(self.scheduler.is_running)
        self.assertIsNotNone(self.session.observation(Modality.VOICE))
        self.assertGreaterEqual(self.scheduler.stats["captures"], 1)
        self.assertGreaterEqual(len(self.states), 1)

    async def test_text_is_debounced(self):
        from moodfusion.core.emotions import Modality, TextEmotion
        for partial in ("I", "I am", "I am not", "I am not happy"):
            self.scheduler.text_input(partial)
        await asyncio.sleep(0.3)

        self.assertEqual(self.session.observation(Modality.TEXT).label, TextEmotion.SAD)
        self.assertEqual(len(self.states), 1)

    async def test_failing_capture_keeps_running(self):
        from moodfusion.core.emotions import Modality

        def broken():
            raise RuntimeError("camera unplugged")

        self.scheduler.add_source(Modality.FACIAL, broken)
        await self.scheduler.start()
        await asyncio.sleep(0.1)

        self.assertTrue(self.scheduler.is_running)
        self.assertGreaterEqual(self.scheduler.stats["capture_errors"], 2)
        self.assertIsNone(self.session.observation(Modality.FACIAL))

    async def test_async_capture_and_stop_modality(self):
        from moodfusion.core.emotions import Modality

        async def grab():
            return {"pixels": _skin_image()}

        self.scheduler.add_source(Modality.FACIAL, grab)
        await self.scheduler.start()
        await asyncio.sleep(0.1)
        self.assertIsNotNone(self.session.observation(Modality.FACIAL))

        await self.scheduler.stop_modality(Modality.FACIAL)
        self.assertIsNone(self.session.observation(Modality.FACIAL))
        self.assertTrue(self.scheduler.is_running)

    async def test_failing_callback_keeps_fusing(self):
        from moodfusion.core.scheduler import FusionScheduler
        config = copy.deepcopy(self.session.config)
        config["scheduler"]["fusion_interval_sec"] = 0.05
        calls = []

        def flaky(state):
            calls.append(state)
            if len(calls) == 1:
                raise RuntimeError("subscriber went away")

        self.scheduler = FusionScheduler(self.session, on_state=flaky, config=config)
        self.session.submit_text("I am not happy")
        await self.scheduler.start()
        await asyncio.sleep(0.5)

        self.assertGreater(len(calls), 2)
        self.assertEqual(self.scheduler.stats["fusion_errors"], 1)
        self.assertTrue(self.scheduler.is_running)

    async def test_failing_text_analysis_is_contained(self):
        from moodfusion.core.scheduler import FusionScheduler
        calls = []

        def flaky(state):
            calls.append(state)
            if len(calls) == 1:
                raise RuntimeError("subscriber went away")

        self.scheduler = FusionScheduler(self.session, on_state=flaky, config=self.session.config)
        self.scheduler.text_input("I am not happy")
        await asyncio.sleep(0.2)
        self.scheduler.text_input("I feel calm")
        await asyncio.sleep(0.2)

        self.assertEqual(len(calls), 2)

    def test_text_source_rejected(self):
        from moodfusion.core.emotions import Modality
        with self.assertRaises(ValueError):
            self.scheduler.add_source(Modality.TEXT, lambda: None)


if __name__ == "__main__":
    unittest.main()
