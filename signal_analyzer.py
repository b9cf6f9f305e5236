# -*- coding: utf-8 -*-
########################
# signal_analyzer.py
########################
# Purpose:
# - Single-frame loudness and fundamental frequency estimation.
# - RMS loudness gate, autocorrelation peak search, parabolic refinement.
#
# Design notes:
# - No Qt usage. numpy only. Stateless apart from configuration.
# - Rejection is a value, not an exception: pitch_hz is None.
# - Gates run in a fixed order and each one short-circuits:
#   1) loudness below gate_threshold_db (frequency search is skipped entirely)
#   2) no positive autocorrelation peak in the lag window
#   3) normalized peak strength below purity_threshold
#   4) refined frequency outside [min_frequency_hz, max_frequency_hz]
#
########################
# Interfaces:
# Public dataclasses:
# - AudioFrame(samples: np.ndarray, sample_rate: float)
# - AnalysisResult(loudness_db: float, pitch_hz: Optional[float])
#
# Public classes:
# - class SignalAnalyzer
#   - __init__(config: AnalyzerConfig)
#   - lag_window(sample_rate: float, frame_size: int) -> tuple[int, int]
#   - analyze(frame: AudioFrame) -> AnalysisResult
#
# Public functions:
# - rms_loudness_db(samples: np.ndarray) -> float
# - autocorrelation(samples: np.ndarray, max_lag: int) -> np.ndarray
# - find_peak_lag(correlation: np.ndarray, min_period: int, max_period: int) -> Optional[int]
# - parabolic_interpolation(correlation: np.ndarray, index: int) -> float
#
# Inputs:
# - AudioFrame from the microphone ring buffer (normalized float samples).
#
# Outputs:
# - AnalysisResult consumed by PitchTracker.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional, Tuple

import numpy as np

from config import AnalyzerConfig


@dataclass(frozen=True)
class AudioFrame:
    samples: np.ndarray
    sample_rate: float


@dataclass(frozen=True)
class AnalysisResult:
    loudness_db: float
    pitch_hz: Optional[float]


def rms_loudness_db(samples: np.ndarray) -> float:
    """RMS level in dBFS. Silence (rms == 0) is -inf."""
    values = np.asarray(samples, dtype=np.float64)
    if values.size == 0:
        return float("-inf")
    rms = float(np.sqrt(np.mean(values * values)))
    if rms <= 0.0:
        return float("-inf")
    return 20.0 * math.log10(rms)


def autocorrelation(samples: np.ndarray, max_lag: int) -> np.ndarray:
    """Unnormalized autocorrelation c[k] = sum_i x[i] * x[i + k] for k in [0, max_lag].

    Computed through a zero padded FFT, so the result equals the direct sum
    over the valid overlap (no circular wrap).
    """
    values = np.asarray(samples, dtype=np.float64)
    size = int(values.size)
    if size == 0:
        return np.zeros(0, dtype=np.float64)
    padded_size = 1 << int(math.ceil(math.log2(2 * size)))
    spectrum = np.fft.rfft(values, n=padded_size)
    correlation = np.fft.irfft(spectrum * np.conj(spectrum), n=padded_size)
    last_lag = max(0, min(int(max_lag), size - 1))
    return correlation[: last_lag + 1]


def find_peak_lag(correlation: np.ndarray, min_period: int, max_period: int) -> Optional[int]:
    """Index of the largest positive value in correlation[min_period:max_period].

    Returns None when no lag in the window is positive. The window never
    starts below lag 1, so the peak always has a left neighbour.
    """
    start = max(1, int(min_period))
    stop = min(int(max_period), int(correlation.size) - 1)
    if stop <= start:
        return None
    window = correlation[start:stop]
    offset = int(np.argmax(window))
    if float(window[offset]) <= 0.0:
        return None
    return start + offset


def parabolic_interpolation(correlation: np.ndarray, index: int) -> float:
    y0 = float(correlation[index - 1])
    y1 = float(correlation[index])
    y2 = float(correlation[index + 1])
    curvature = (y0 + y2) / 2.0 - y1
    slope = (y2 - y0) / 2.0
    if curvature == 0.0:
        return float(index)
    return float(index) - slope / (2.0 * curvature)


class SignalAnalyzer:
    def __init__(self, config: Optional[AnalyzerConfig] = None) -> None:
        self._config = config or AnalyzerConfig()

    @property
    def config(self) -> AnalyzerConfig:
        return self._config

    def lag_window(self, sample_rate: float, frame_size: int) -> Tuple[int, int]:
        min_period = int(math.floor(float(sample_rate) / float(self._config.max_frequency_hz)))
        max_period = int(math.ceil(float(sample_rate) / float(self._config.min_frequency_hz)))
        # Keep one lag of headroom for the right parabolic neighbour.
        max_period = min(max_period, int(frame_size) - 2)
        return min_period, max_period

    def analyze(self, frame: AudioFrame) -> AnalysisResult:
        samples = np.asarray(frame.samples, dtype=np.float64)
        loudness_db = rms_loudness_db(samples)

        if not loudness_db > float(self._config.gate_threshold_db):
            return AnalysisResult(loudness_db=loudness_db, pitch_hz=None)

        return AnalysisResult(loudness_db=loudness_db, pitch_hz=self._estimate_pitch(samples, float(frame.sample_rate)))

    def _estimate_pitch(self, samples: np.ndarray, sample_rate: float) -> Optional[float]:
        min_period, max_period = self.lag_window(sample_rate, int(samples.size))
        if max_period <= min_period:
            return None

        correlation = autocorrelation(samples, max_period)
        zero_lag = float(correlation[0])
        if zero_lag <= 0.0:
            return None

        peak_lag = find_peak_lag(correlation, min_period, max_period)
        if peak_lag is None:
            return None

        strength = float(correlation[peak_lag]) / zero_lag
        if strength < float(self._config.purity_threshold):
            return None

        refined_lag = parabolic_interpolation(correlation, peak_lag)
        if refined_lag <= 0.0:
            return None

        frequency_hz = sample_rate / refined_lag
        if frequency_hz < float(self._config.min_frequency_hz) or frequency_hz > float(self._config.max_frequency_hz):
            return None
        return float(frequency_hz)


def _run_unit_tests() -> None:
    analyzer = SignalAnalyzer(AnalyzerConfig())
    sample_rate = 44100.0
    t = np.arange(2048, dtype=np.float64) / sample_rate

    tone = 0.5 * np.sin(2.0 * np.pi * 220.0 * t)
    result = analyzer.analyze(AudioFrame(samples=tone, sample_rate=sample_rate))
    assert result.pitch_hz is not None
    assert abs(result.pitch_hz - 220.0) < 1.0

    quiet = 0.001 * np.sin(2.0 * np.pi * 220.0 * t)
    assert analyzer.analyze(AudioFrame(samples=quiet, sample_rate=sample_rate)).pitch_hz is None

    silence = np.zeros(2048)
    silent_result = analyzer.analyze(AudioFrame(samples=silence, sample_rate=sample_rate))
    assert silent_result.pitch_hz is None
    assert silent_result.loudness_db == float("-inf")

    correlation = np.array([1.0, 0.5, 0.5, 0.5])
    assert parabolic_interpolation(correlation, 2) == 2.0

    near_top = 0.5 * np.sin(2.0 * np.pi * 264.0 * np.arange(2048, dtype=np.float64) / 48000.0)
    top_result = analyzer.analyze(AudioFrame(samples=near_top, sample_rate=48000.0))
    assert top_result.pitch_hz is not None and abs(top_result.pitch_hz - 264.0) < 1.0


if __name__ == "__main__":
    _run_unit_tests()
    print("signal_analyzer.py: ok")
