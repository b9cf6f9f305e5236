"""Shared fixtures and audio fakes for the PitchPerfect test suite."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pytest

from audio_input import AudioInputError
from config import AnalyzerConfig, GameConfig
from melody_sequencer import MelodySequencer
from game_simulation import GameSimulation
from signal_analyzer import AudioFrame, SignalAnalyzer


SAMPLE_RATE = 44_100.0
FRAME_SIZE = 2048


def tone_frame(
    frequency_hz: float,
    *,
    amplitude: float = 0.5,
    sample_rate: float = SAMPLE_RATE,
    frame_size: int = FRAME_SIZE,
) -> AudioFrame:
    t = np.arange(frame_size, dtype=np.float64) / sample_rate
    return AudioFrame(samples=amplitude * np.sin(2.0 * np.pi * frequency_hz * t), sample_rate=sample_rate)


def silent_frame(frame_size: int = FRAME_SIZE) -> AudioFrame:
    return AudioFrame(samples=np.zeros(frame_size), sample_rate=SAMPLE_RATE)


class ScriptedInput:
    """AudioInput fake that plays back a tone at a settable frequency."""

    def __init__(self, *, fail_with: Optional[str] = None) -> None:
        self.sample_rate = SAMPLE_RATE
        self.is_open = False
        self.frequency_hz: Optional[float] = None
        self.open_calls = 0
        self.close_calls = 0
        self._fail_with = fail_with

    def open(self) -> None:
        self.open_calls += 1
        if self._fail_with is not None:
            raise AudioInputError(self._fail_with)
        self.is_open = True

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False

    def read_frame(self) -> Optional[AudioFrame]:
        if not self.is_open:
            return None
        if self.frequency_hz is None:
            return silent_frame()
        return tone_frame(self.frequency_hz)


class RecordingOutput:
    """AudioOutput fake that records playback calls instead of making sound."""

    def __init__(self, *, broken_lanes: Tuple[str, ...] = (), running: bool = True) -> None:
        self.is_running = running
        self.broken_lanes = set(broken_lanes)
        self.decoded: List[Path] = []
        self.started: List[Tuple[int, int]] = []
        self.stop_calls = 0

    def decode(self, path: Path) -> Tuple[np.ndarray, int]:
        from note_player import NoteAssetError

        self.decoded.append(path)
        if path.stem in self.broken_lanes:
            raise NoteAssetError(f"cannot decode {path}")
        return np.ones(4 * 8000, dtype=np.float32), 8000

    def start(self, buffer: np.ndarray, sample_rate: int) -> None:
        self.started.append((int(buffer.shape[0]), int(sample_rate)))

    def stop(self) -> None:
        self.stop_calls += 1

    def resume(self) -> None:
        self.is_running = True

    def suspend(self) -> None:
        self.is_running = False


@pytest.fixture
def analyzer() -> SignalAnalyzer:
    return SignalAnalyzer(AnalyzerConfig())


@pytest.fixture
def game_config() -> GameConfig:
    return GameConfig()


@pytest.fixture
def sequencer() -> MelodySequencer:
    return MelodySequencer()


@pytest.fixture
def simulation(game_config: GameConfig, sequencer: MelodySequencer) -> GameSimulation:
    return GameSimulation(game_config, sequencer)
