"""
Fusion Session — Owned Modality Buffers & Fusion Tick
======================================================
One ``FusionSession`` per monitored subject.  It owns everything that
carries state between frames:

  - the latest observation per modality (three slots, each behind its
    own lock: one writer per slot, any number of readers),
  - the facial and voice smoothers (EMA + hysteresis),
  - the temporal stabilizer, the calibration view and the history.

Capture code (or ``FusionScheduler``) pushes raw frames in through the
``submit_*`` methods; ``tick()`` fuses the current snapshot.  A frame
that yields no observation (silence, no face, empty text) leaves the
previous observation in place; call ``clear_modality()`` when a capture
stream stops.

Usage::

    session = FusionSession()
    session.submit_text("I am not happy", timestamp=now)
    state = session.tick(timestamp=now)
"""

from __future__ import annotations

import dataclasses
import threading
import time
from typing import Optional

import numpy as np

from moodfusion.analyzers.face_analyzer import FacialClassifier
from moodfusion.analyzers.text_analyzer import TextClassifier
from moodfusion.analyzers.voice_analyzer import VoiceClassifier
from moodfusion.core.emotions import Modality
from moodfusion.core.emotional_state import (
    FacialObservation,
    FusedEmotionState,
    HistoryEntry,
    ModalityObservation,
    TextObservation,
    VoiceObservation,
)
from moodfusion.fusion.confidence import CalibrationMap, Calibrator
from moodfusion.fusion.fusion_engine import FusionEngine
from moodfusion.preprocessing.acoustic_features import AcousticFeatureExtractor, ByteFrame
from moodfusion.preprocessing.face_features import PixelInput
from moodfusion.temporal.history import EmotionHistory
from moodfusion.temporal.smoothing import ModalitySmoother
from moodfusion.temporal.stabilizer import TemporalStabilizer
from moodfusion.utils.helpers import load_config, setup_logging

logger = setup_logging()


class _ModalitySlot:
    """Latest observation for one modality plus its optional smoother."""

    def __init__(self, smoother: Optional[ModalitySmoother] = None):
        self.lock = threading.Lock()
        self.smoother = smoother
        self.value: Optional[ModalityObservation] = None


class FusionSession:
    """Per-subject owner of modality state, smoothing and fusion."""

    def __init__(
        self,
        config: Optional[dict] = None,
        calibration_map: Optional[CalibrationMap] = None,
        text_strategy: Optional[str] = None,
    ):
        if config is None:
            config = load_config()
        self.config = config
        setup_logging(config["logging"]["level"])

        self.facial_classifier = FacialClassifier(config)
        self.acoustic_extractor = AcousticFeatureExtractor(config)
        self.voice_classifier = VoiceClassifier(config)
        self.text_classifier = TextClassifier(config, strategy=text_strategy)

        self.engine = FusionEngine(config)
        self.stabilizer = TemporalStabilizer(config)
        self.calibrator = Calibrator(calibration_map, config)
        self.history = EmotionHistory(config["temporal"]["history_max_entries"])

        smoothing_cfg = config["smoothing"]
        self._slots = {
            Modality.FACIAL: _ModalitySlot(ModalitySmoother.from_config(smoothing_cfg["facial"])),
            Modality.VOICE: _ModalitySlot(ModalitySmoother.from_config(smoothing_cfg["voice"])),
            Modality.TEXT: _ModalitySlot(),
        }
        self._tick_lock = threading.Lock()
        self._state: Optional[FusedEmotionState] = None
        logger.info("Fusion session ready")

    # ------------------------------------------------------------------
    # Capture side
    # ------------------------------------------------------------------

    def submit_facial_frame(
        self,
        pixels: PixelInput,
        width: Optional[int] = None,
        height: Optional[int] = None,
        timestamp: Optional[float] = None,
    ) -> Optional[FacialObservation]:
        obs = self.facial_classifier.analyze(pixels, width, height, timestamp=_now(timestamp))
        return self._store(Modality.FACIAL, obs)

    def submit_audio_frame(
        self,
        frequency_data: ByteFrame,
        time_domain_data: Optional[ByteFrame] = None,
        sample_rate: Optional[int] = None,
        timestamp: Optional[float] = None,
    ) -> Optional[VoiceObservation]:
        features = self.acoustic_extractor.from_analyser_frames(frequency_data, time_domain_data, sample_rate)
        obs = self.voice_classifier.analyze(features, timestamp=_now(timestamp))
        return self._store(Modality.VOICE, obs)

    def submit_waveform(
        self,
        samples: np.ndarray,
        sample_rate: int,
        timestamp: Optional[float] = None,
    ) -> Optional[VoiceObservation]:
        features = self.acoustic_extractor.from_waveform(samples, sample_rate)
        obs = self.voice_classifier.analyze(features, timestamp=_now(timestamp))
        return self._store(Modality.VOICE, obs)

    def submit_audio_file(self, audio_path: str, timestamp: Optional[float] = None) -> Optional[VoiceObservation]:
        features = self.acoustic_extractor.load(audio_path)
        obs = self.voice_classifier.analyze(features, timestamp=_now(timestamp))
        return self._store(Modality.VOICE, obs)

    def submit_text(self, text: str, timestamp: Optional[float] = None) -> Optional[TextObservation]:
        obs = self.text_classifier.analyze(text, timestamp=_now(timestamp))
        return self._store(Modality.TEXT, obs)

    def submit(self, modality: Modality, **payload) -> Optional[ModalityObservation]:
        """Dispatch a capture payload to the matching ``submit_*`` method."""
        modality = Modality(modality)
        if modality is Modality.FACIAL:
            return self.submit_facial_frame(**payload)
        if modality is Modality.VOICE:
            if "samples" in payload:
                return self.submit_waveform(**payload)
            return self.submit_audio_frame(**payload)
        return self.submit_text(**payload)

    def clear_modality(self, modality: Modality) -> None:
        """Forget a modality (its capture stream stopped)."""
        slot = self._slots[Modality(modality)]
        with slot.lock:
            slot.value = None
            if slot.smoother is not None:
                slot.smoother.reset()
        logger.info("Modality cleared: %s", Modality(modality).value)

    def set_calibration(self, calibration_map: Optional[CalibrationMap]) -> None:
        self.calibrator.refresh(calibration_map)

    # ------------------------------------------------------------------
    # Fusion side
    # ------------------------------------------------------------------

    def observation(self, modality: Modality) -> Optional[ModalityObservation]:
        slot = self._slots[Modality(modality)]
        with slot.lock:
            return slot.value

    def snapshot(self) -> dict[Modality, ModalityObservation]:
        """Current observation per modality (absent modalities omitted)."""
        snap = {}
        for modality in Modality:
            obs = self.observation(modality)
            if obs is not None:
                snap[modality] = obs
        return snap

    def tick(self, timestamp: Optional[float] = None) -> Optional[FusedEmotionState]:
        """Fuse the current snapshot into a stabilised state.

        Returns None (and keeps the previous state) when no modality has
        produced an observation.
        """
        ts = _now(timestamp)
        snap = self.snapshot()

        with self._tick_lock:
            fused = self.engine.fuse(
                facial=snap.get(Modality.FACIAL),
                voice=snap.get(Modality.VOICE),
                text=snap.get(Modality.TEXT),
                calibration=self.calibrator,
                timestamp=ts,
            )
            if fused is None:
                logger.debug("Fusion tick with no modalities; state unchanged.")
                return None

            emotion, confidence = self.stabilizer.update(fused.primary_emotion, fused.confidence, ts)
            if emotion != fused.primary_emotion or confidence != fused.confidence:
                needed, kind = self.engine.decide_intervention(
                    emotion, confidence, fused.uncertainty, fused.agreed_emotion
                )
                fused = dataclasses.replace(
                    fused,
                    primary_emotion=emotion,
                    confidence=confidence,
                    intervention_needed=needed,
                    intervention_type=kind,
                )

            self.history.append(HistoryEntry(fused.primary_emotion, fused.confidence, ts))
            self._state = fused

        if fused.intervention_needed:
            logger.info(
                "Intervention suggested: %s (%s at %d%%)",
                fused.intervention_type.value,
                fused.primary_emotion.value,
                fused.confidence,
            )
        return fused

    @property
    def state(self) -> Optional[FusedEmotionState]:
        return self._state

    def statistics(self) -> dict:
        return self.history.statistics()

    def reset(self) -> None:
        """Drop every observation and all temporal state."""
        for modality in Modality:
            self.clear_modality(modality)
        with self._tick_lock:
            self.stabilizer.reset()
            self.history.clear()
            self._state = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _store(self, modality: Modality, obs: Optional[ModalityObservation]) -> Optional[ModalityObservation]:
        if obs is None:
            return None
        slot = self._slots[modality]
        with slot.lock:
            if slot.smoother is not None:
                obs = slot.smoother.smooth(obs)
            slot.value = obs
        return obs


def _now(timestamp: Optional[float]) -> float:
    return time.time() if timestamp is None else timestamp
