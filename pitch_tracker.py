# -*- coding: utf-8 -*-
########################
# pitch_tracker.py
########################
# Purpose:
# - Turns one analysis frame per tick into one published pitch observation.
# - Rolling-median smoothing over the most recent raw detections.
#
# Design notes:
# - No Qt usage. The tick is driven externally (one call per display frame).
# - PitchHistory is owned exclusively by the tracker.
#   - Raw detections are pushed FIFO, capacity history_size (5 by default).
#   - Any tick without a detection clears the history.
# - Published value: median of a sorted copy (index len // 2), rounded half-up to integer Hz.
# - Every tick publishes exactly one observation, even if unchanged.
# - start() acquires the input stream (AudioInputError propagates, no retry).
#   stop() closes it, clears history and publishes a final "no pitch" observation.
#
########################
# Interfaces:
# Public dataclasses:
# - PitchObservation(pitch_hz: Optional[int], loudness_db: float, raw_pitch_hz: Optional[float])
#
# Public classes:
# - class PitchHistory
#   - __init__(capacity: int = 5)
#   - push(pitch_hz: float) -> None
#   - clear() -> None
#   - median() -> Optional[float]
#   - values() -> list[float]
# - class PitchTracker
#   - __init__(analyzer: SignalAnalyzer, *, audio_input: Optional[AudioInput] = None, history_size: int = 5,
#              on_observation: Optional[Callable[[PitchObservation], None]] = None)
#   - is_listening -> bool
#   - latest_observation -> PitchObservation
#   - process_frame(frame: AudioFrame) -> PitchObservation
#   - tick() -> PitchObservation
#   - start() -> None
#   - stop() -> PitchObservation
#
# Inputs:
# - AudioFrame values from AudioInput.read_frame().
#
# Outputs:
# - PitchObservation pushed to on_observation and returned to the session driver.
#
########################

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
import math
from typing import Callable, Deque, List, Optional

from audio_input import AudioInput
from signal_analyzer import AudioFrame, SignalAnalyzer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitchObservation:
    pitch_hz: Optional[int]
    loudness_db: float = float("-inf")
    raw_pitch_hz: Optional[float] = None

    @property
    def has_pitch(self) -> bool:
        return self.pitch_hz is not None


NO_PITCH = PitchObservation(pitch_hz=None)


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


class PitchHistory:
    def __init__(self, capacity: int = 5) -> None:
        if int(capacity) <= 0:
            raise ValueError("capacity must be positive")
        self._values: Deque[float] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return int(self._values.maxlen or 0)

    def __len__(self) -> int:
        return len(self._values)

    def push(self, pitch_hz: float) -> None:
        self._values.append(float(pitch_hz))

    def clear(self) -> None:
        self._values.clear()

    def values(self) -> List[float]:
        return list(self._values)

    def median(self) -> Optional[float]:
        if not self._values:
            return None
        ordered = sorted(self._values)
        return ordered[len(ordered) // 2]


class PitchTracker:
    def __init__(
        self,
        analyzer: SignalAnalyzer,
        *,
        audio_input: Optional[AudioInput] = None,
        history_size: int = 5,
        on_observation: Optional[Callable[[PitchObservation], None]] = None,
    ) -> None:
        self._analyzer = analyzer
        self._audio_input = audio_input
        self._history = PitchHistory(history_size)
        self._on_observation = on_observation
        self._is_listening = False
        self._latest = NO_PITCH

    @property
    def history(self) -> PitchHistory:
        return self._history

    @property
    def is_listening(self) -> bool:
        return self._is_listening

    @property
    def latest_observation(self) -> PitchObservation:
        return self._latest

    def process_frame(self, frame: AudioFrame) -> PitchObservation:
        result = self._analyzer.analyze(frame)
        if result.pitch_hz is None:
            self._history.clear()
            observation = PitchObservation(pitch_hz=None, loudness_db=result.loudness_db)
        else:
            self._history.push(result.pitch_hz)
            median = self._history.median()
            assert median is not None
            observation = PitchObservation(
                pitch_hz=round_half_up(median),
                loudness_db=result.loudness_db,
                raw_pitch_hz=result.pitch_hz,
            )
        self._publish(observation)
        return observation

    def tick(self) -> PitchObservation:
        """Analyze the current input window. Without a frame this publishes "no pitch"."""
        frame = self._audio_input.read_frame() if (self._is_listening and self._audio_input is not None) else None
        if frame is None:
            self._history.clear()
            self._publish(NO_PITCH)
            return NO_PITCH
        return self.process_frame(frame)

    def start(self) -> None:
        if self._is_listening:
            return
        if self._audio_input is not None:
            self._audio_input.open()
        self._history.clear()
        self._is_listening = True
        logger.info("Pitch tracking started")

    def stop(self) -> PitchObservation:
        was_listening = self._is_listening
        self._is_listening = False
        if self._audio_input is not None:
            self._audio_input.close()
        self._history.clear()
        self._publish(NO_PITCH)
        if was_listening:
            logger.info("Pitch tracking stopped")
        return NO_PITCH

    def _publish(self, observation: PitchObservation) -> None:
        self._latest = observation
        if self._on_observation is not None:
            self._on_observation(observation)


def _run_unit_tests() -> None:
    history = PitchHistory(5)
    for value in (200.0, 210.0, 190.0, 400.0, 205.0, 207.0):
        history.push(value)
    assert len(history) == 5
    assert history.values() == [210.0, 190.0, 400.0, 205.0, 207.0]
    assert history.median() == 207.0

    assert round_half_up(220.5) == 221
    assert round_half_up(219.49) == 219

    import numpy as np
    from config import AnalyzerConfig

    tracker = PitchTracker(SignalAnalyzer(AnalyzerConfig()))
    sample_rate = 44100.0
    t = np.arange(2048, dtype=np.float64) / sample_rate
    tone = AudioFrame(samples=0.5 * np.sin(2.0 * np.pi * 196.0 * t), sample_rate=sample_rate)
    observation = tracker.process_frame(tone)
    assert observation.pitch_hz is not None and abs(observation.pitch_hz - 196) <= 1

    silence = AudioFrame(samples=np.zeros(2048), sample_rate=sample_rate)
    assert tracker.process_frame(silence).pitch_hz is None
    assert len(tracker.history) == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("pitch_tracker.py: ok")
