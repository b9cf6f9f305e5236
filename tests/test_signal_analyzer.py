from __future__ import annotations

import numpy as np
import pytest

from config import AnalyzerConfig
from signal_analyzer import (
    AudioFrame,
    SignalAnalyzer,
    autocorrelation,
    find_peak_lag,
    parabolic_interpolation,
    rms_loudness_db,
)

from conftest import SAMPLE_RATE, silent_frame, tone_frame


@pytest.mark.parametrize("frequency_hz", [146.83, 174.61, 196.0, 220.0, 246.94, 261.63])
def test_pure_tone_within_one_hz(analyzer: SignalAnalyzer, frequency_hz: float) -> None:
    result = analyzer.analyze(tone_frame(frequency_hz))
    assert result.pitch_hz is not None
    assert abs(result.pitch_hz - frequency_hz) <= 1.0


def test_silence_is_minus_infinity_and_rejected(analyzer: SignalAnalyzer) -> None:
    result = analyzer.analyze(silent_frame())
    assert result.loudness_db == float("-inf")
    assert result.pitch_hz is None


def test_gate_applies_before_frequency_search() -> None:
    analyzer = SignalAnalyzer(AnalyzerConfig(gate_threshold_db=-25.0))
    # 0.05 amplitude sine is about -29 dBFS: a clean, in-band tone below the gate.
    quiet = tone_frame(220.0, amplitude=0.05)
    result = analyzer.analyze(quiet)
    assert result.loudness_db < -25.0
    assert result.pitch_hz is None

    louder = SignalAnalyzer(AnalyzerConfig(gate_threshold_db=-40.0)).analyze(quiet)
    assert louder.pitch_hz is not None


def test_loudness_exactly_at_gate_is_rejected() -> None:
    frame = tone_frame(220.0)
    loudness = rms_loudness_db(frame.samples)
    assert loudness == pytest.approx(-9.03, abs=0.2)
    analyzer = SignalAnalyzer(AnalyzerConfig(gate_threshold_db=loudness))
    assert analyzer.analyze(frame).pitch_hz is None


def test_white_noise_is_rejected(analyzer: SignalAnalyzer) -> None:
    rng = np.random.default_rng(1234)
    noise = AudioFrame(samples=rng.uniform(-0.5, 0.5, size=2048), sample_rate=SAMPLE_RATE)
    assert analyzer.analyze(noise).pitch_hz is None


def test_tone_below_band_is_rejected(analyzer: SignalAnalyzer) -> None:
    assert analyzer.analyze(tone_frame(90.0)).pitch_hz is None


def test_tone_above_band_is_rejected() -> None:
    analyzer = SignalAnalyzer(AnalyzerConfig(max_frequency_hz=200.0))
    assert analyzer.analyze(tone_frame(220.0)).pitch_hz is None


def test_lag_window_is_capped_by_frame_size(analyzer: SignalAnalyzer) -> None:
    assert analyzer.lag_window(44_100.0, 2048) == (166, 338)
    assert analyzer.lag_window(44_100.0, 300) == (166, 298)


def test_autocorrelation_matches_direct_sum() -> None:
    rng = np.random.default_rng(7)
    values = rng.normal(size=64)
    correlation = autocorrelation(values, 10)
    expected = [float(np.dot(values[: 64 - lag], values[lag:])) for lag in range(11)]
    assert np.allclose(correlation, expected)


def test_find_peak_lag_accepts_window_start_and_rejects_non_positive_peaks() -> None:
    # A maximum on the first lag of the window is still a peak: c[start - 1] exists.
    assert find_peak_lag(np.array([4.0, 3.0, 2.0, 1.0, 0.0]), 1, 4) == 1
    # Lag 0 is never searched, even when the window asks for it.
    assert find_peak_lag(np.array([9.0, 5.0, 3.0, 2.0]), 0, 3) == 1
    assert find_peak_lag(np.array([4.0, -1.0, -2.0, -1.5, -3.0]), 1, 4) is None
    assert find_peak_lag(np.array([4.0, 0.0, 1.0, 3.0, 1.0, 0.0]), 1, 5) == 3


def test_parabolic_interpolation_moves_toward_larger_neighbour() -> None:
    assert parabolic_interpolation(np.array([0.0, 1.0, 2.0, 1.0]), 2) == 2.0
    shifted = parabolic_interpolation(np.array([0.0, 1.0, 2.0, 1.5]), 2)
    assert 2.0 < shifted < 2.5
    assert parabolic_interpolation(np.array([1.0, 1.0, 1.0]), 1) == 1.0


def test_band_config_must_be_ordered() -> None:
    with pytest.raises(ValueError):
        AnalyzerConfig(min_frequency_hz=300.0, max_frequency_hz=200.0)


@pytest.mark.parametrize("sample_rate", [44_100.0, 48_000.0])
def test_every_tone_across_the_band_is_detected(analyzer: SignalAnalyzer, sample_rate: float) -> None:
    misses = []
    for frequency_hz in np.arange(132.0, 263.5, 0.5):
        result = analyzer.analyze(tone_frame(float(frequency_hz), sample_rate=sample_rate))
        if result.pitch_hz is None or abs(result.pitch_hz - frequency_hz) > 1.0:
            misses.append((float(frequency_hz), result.pitch_hz))
    assert misses == []


@pytest.mark.parametrize(("sample_rate", "frequency_hz"), [(48_000.0, 264.0), (48_000.0, 263.81)])
def test_tone_peaking_on_the_shortest_lag_is_detected(
    analyzer: SignalAnalyzer, sample_rate: float, frequency_hz: float
) -> None:
    min_period, _ = analyzer.lag_window(sample_rate, 2048)
    assert sample_rate / frequency_hz < min_period + 1
    result = analyzer.analyze(tone_frame(frequency_hz, sample_rate=sample_rate))
    assert result.pitch_hz is not None
    assert abs(result.pitch_hz - frequency_hz) <= 1.0
