"""
Acoustic Feature Extractor — Frame-Level Voice Statistics
==========================================================
Reduces one audio frame to five interpretable measurements:

  | Feature           | How                                             |
  |-------------------|-------------------------------------------------|
  | energy            | RMS of the time-domain samples (0-1)            |
  | pitch             | strongest spectral bin inside 80-400 Hz, in Hz  |
  | spectral_centroid | magnitude-weighted mean bin / number of bins    |
  | zero_crossing_rate| share of adjacent samples that change sign      |
  | speaking_rate     | slow / normal / fast from energy x (1 + zcr)    |

Two input shapes are supported:

  - **Analyser frames** as delivered by a browser ``AnalyserNode``:
    byte magnitudes (0-255) for the spectrum and byte samples centred
    at 128 for the waveform.
  - **Float waveforms** (or audio files), analysed with ``librosa``'s
    STFT so the same features come out of recorded clips.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import librosa
import numpy as np

from moodfusion.core.emotions import SpeakingRate
from moodfusion.utils.helpers import clamp, load_config, setup_logging

logger = setup_logging()

ByteFrame = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[int]]


@dataclass(frozen=True)
class AcousticFeatures:
    """Per-frame voice measurements.

    ``spectral_centroid`` is the magnitude-weighted mean bin divided by the
    number of bins, a 0-1 fraction of the spectrum rather than Hz, so it
    does not depend on sample rate or FFT size.
    """

    energy: float                                   # RMS, 0-1
    pitch: float                                    # Hz
    spectral_centroid: float                        # 0-1 fraction of the bin count
    zero_crossing_rate: float                       # 0-1
    speaking_rate: SpeakingRate


class AcousticFeatureExtractor:
    """Compute ``AcousticFeatures`` from analyser frames, waveforms or files."""

    def __init__(self, config: Optional[dict] = None):
        if config is None:
            config = load_config()

        voice_cfg = config["voice"]
        self.sr = voice_cfg["sample_rate"]
        self.n_fft = voice_cfg["n_fft"]
        self.max_duration = voice_cfg["max_duration_sec"]
        self.pitch_band = tuple(voice_cfg["pitch_band_hz"])
        self.pitch_clamp = tuple(voice_cfg["pitch_clamp_hz"])
        self.slow_below = voice_cfg["speaking_rate"]["slow_below"]
        self.fast_from = voice_cfg["speaking_rate"]["fast_from"]
        logger.info("Acoustic feature extractor ready (sr=%d, n_fft=%d)", self.sr, self.n_fft)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def from_analyser_frames(
        self,
        frequency_data: ByteFrame,
        time_domain_data: Optional[ByteFrame] = None,
        sample_rate: Optional[int] = None,
    ) -> Optional[AcousticFeatures]:
        """Features from one pair of byte-scale analyser frames.

        Parameters
        ----------
        frequency_data : bytes-like or array
            Spectrum magnitudes, 0-255, one value per bin up to Nyquist.
        time_domain_data : bytes-like or array, optional
            Waveform samples, 0-255 centred at 128.  Without it energy and
            zero-crossing rate are approximated from the spectrum.
        sample_rate : int, optional
            Capture rate; defaults to ``voice.sample_rate``.

        Returns
        -------
        AcousticFeatures, or None for empty frames.
        """
        freq = self._as_float_array(frequency_data)
        samples = self._as_float_array(time_domain_data) if time_domain_data is not None else None
        if freq.size == 0:
            logger.debug("Empty spectrum frame; skipping.")
            return None

        if samples is not None and samples.size > 0:
            centred = (samples - 128.0) / 128.0
            energy = math.sqrt(float(np.mean(centred ** 2)))
            zcr = self._zero_crossing_rate(centred)
        else:
            energy = math.sqrt(float(np.mean((freq / 255.0) ** 2))) * 0.7
            zcr = self._zero_crossing_rate(freq - 128.0)

        nyquist = (sample_rate or self.sr) / 2.0
        bin_hz = nyquist / freq.size
        return self._build(freq, bin_hz, energy, zcr)

    def from_waveform(self, y: np.ndarray, sr: int) -> Optional[AcousticFeatures]:
        """Features from a float waveform in [-1, 1] (mono)."""
        y = np.asarray(y, dtype=np.float32)
        if y.ndim > 1:
            y = librosa.to_mono(y)
        if y.size == 0:
            return None
        y = np.clip(y, -1.0, 1.0)

        magnitudes = np.abs(librosa.stft(y, n_fft=self.n_fft)).mean(axis=1)
        freqs = librosa.fft_frequencies(sr=sr, n_fft=self.n_fft)
        energy = float(np.sqrt(np.mean(y.astype(np.float64) ** 2)))
        zcr = self._zero_crossing_rate(y)
        return self._build(magnitudes, float(freqs[1]), energy, zcr)

    def load(self, audio_path: str) -> Optional[AcousticFeatures]:
        """Load an audio file (any format librosa reads) and extract features.

        Unreadable, empty or undecodable files give None.
        """
        try:
            y, sr = librosa.load(audio_path, sr=None, mono=True)
        except Exception as e:
            logger.debug("Could not decode audio %s (%s)", audio_path, e)
            return None

        max_samples = int(sr * self.max_duration)
        if len(y) > max_samples:
            logger.warning("Audio truncated to %d seconds", self.max_duration)
            y = y[:max_samples]

        return self.from_waveform(y, sr)

    def speaking_rate_for(self, energy: float, zcr: float) -> SpeakingRate:
        activity = energy * (1 + zcr)
        if activity < self.slow_below:
            return SpeakingRate.SLOW
        if activity < self.fast_from:
            return SpeakingRate.NORMAL
        return SpeakingRate.FAST

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build(self, magnitudes: np.ndarray, bin_hz: float, energy: float, zcr: float) -> AcousticFeatures:
        return AcousticFeatures(
            energy=min(energy, 1.0),
            pitch=self._dominant_pitch(magnitudes, bin_hz),
            spectral_centroid=self._spectral_centroid(magnitudes),
            zero_crossing_rate=zcr,
            speaking_rate=self.speaking_rate_for(energy, zcr),
        )

    def _dominant_pitch(self, magnitudes: np.ndarray, bin_hz: float) -> float:
        lo = max(1, int(math.floor(self.pitch_band[0] / bin_hz)))
        hi = min(magnitudes.size, int(math.floor(self.pitch_band[1] / bin_hz)))
        pitch = 0.0
        if hi > lo:
            band = magnitudes[lo:hi]
            if band.max() > 0:
                pitch = (lo + int(np.argmax(band))) * bin_hz
        return clamp(pitch, self.pitch_clamp[0], self.pitch_clamp[1])

    @staticmethod
    def _spectral_centroid(magnitudes: np.ndarray) -> float:
        total = float(magnitudes.sum())
        if total <= 0:
            return 0.0
        bins = np.arange(magnitudes.size)
        return float((bins * magnitudes).sum()) / total / magnitudes.size

    @staticmethod
    def _zero_crossing_rate(centred: np.ndarray) -> float:
        if centred.size == 0:
            return 0.0
        crossings = np.count_nonzero(centred[1:] * centred[:-1] < 0)
        return crossings / float(centred.size)

    @staticmethod
    def _as_float_array(data: ByteFrame) -> np.ndarray:
        if isinstance(data, (bytes, bytearray, memoryview)):
            return np.frombuffer(data, dtype=np.uint8).astype(np.float64)
        return np.asarray(data, dtype=np.float64).ravel()
