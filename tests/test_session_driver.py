from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from config import GameConfig
from game_simulation import GameSimulation
from gameplay_models import SessionState
from lanes import LANES, lane_by_name
from melody_sequencer import MelodySequencer
from note_player import NotePlayer
from pitch_tracker import PitchTracker
from session_driver import SessionDriver
from signal_analyzer import SignalAnalyzer

from conftest import RecordingOutput, ScriptedInput


class TrackingPlayer(NotePlayer):
    def __init__(self, output: RecordingOutput) -> None:
        super().__init__(output, clock=lambda: 0.0)
        self.played: List[str] = []

    def play(self, lane_name: str) -> bool:
        self.played.append(lane_name)
        return super().play(lane_name)


@pytest.fixture
def microphone() -> ScriptedInput:
    return ScriptedInput()


@pytest.fixture
def driver(analyzer: SignalAnalyzer, simulation: GameSimulation, microphone: ScriptedInput) -> SessionDriver:
    return SessionDriver(PitchTracker(analyzer, audio_input=microphone), simulation)


def test_tick_is_inert_until_listening(driver: SessionDriver, simulation: GameSimulation) -> None:
    assert driver.tick() is False
    assert driver.tick() is False
    assert simulation.state == SessionState.IDLE
    assert driver.last_result is None


def test_listening_starts_the_session(driver: SessionDriver, simulation: GameSimulation) -> None:
    assert driver.begin_listening() is None
    assert driver.is_listening
    assert driver.tick() is True
    assert simulation.state == SessionState.RUNNING
    assert driver.last_result is not None and driver.last_result.keep_running


def test_begin_listening_twice_opens_once(driver: SessionDriver, microphone: ScriptedInput) -> None:
    driver.begin_listening()
    driver.begin_listening()
    assert microphone.open_calls == 1


def test_acquisition_failure_is_reported_once_without_retry(
    analyzer: SignalAnalyzer, simulation: GameSimulation
) -> None:
    microphone = ScriptedInput(fail_with="permission denied")
    driver = SessionDriver(PitchTracker(analyzer, audio_input=microphone), simulation)

    message = driver.begin_listening()

    assert message is not None and "permission denied" in message
    assert driver.last_error == message
    assert not driver.is_listening
    for _ in range(10):
        assert driver.tick() is False
    assert microphone.open_calls == 1
    assert simulation.state == SessionState.IDLE


def test_observed_pitch_drives_the_entity(
    driver: SessionDriver, simulation: GameSimulation, microphone: ScriptedInput
) -> None:
    driver.begin_listening()
    microphone.frequency_hz = 220.0
    driver.tick()
    assert driver.latest_observation.has_pitch
    assert simulation.entity.y + simulation.entity.height / 2.0 == lane_by_name("La3").line_y
    assert not simulation.entity.gravity_enabled


def test_silence_leaves_gravity_in_charge(
    driver: SessionDriver, simulation: GameSimulation, microphone: ScriptedInput
) -> None:
    driver.begin_listening()
    driver.tick()
    driver.tick()
    assert not driver.latest_observation.has_pitch
    assert simulation.entity.gravity_enabled
    assert simulation.entity.y > 250.0


def test_reset_only_honoured_in_terminal_states(
    analyzer: SignalAnalyzer, microphone: ScriptedInput
) -> None:
    sequencer = MelodySequencer()
    simulation = GameSimulation(GameConfig(), sequencer)
    driver = SessionDriver(PitchTracker(analyzer, audio_input=microphone), simulation)

    assert driver.request_reset() is False
    driver.begin_listening()
    driver.tick()
    assert driver.request_reset() is False

    # Hold the top lane: the first obstacle's gap sits on Do3.
    microphone.frequency_hz = 261.63
    while driver.tick() and simulation.state == SessionState.RUNNING:
        pass
    assert simulation.state == SessionState.FAILED
    assert sequencer.song_cursor == 1

    assert driver.request_reset() is True
    driver.tick()
    assert simulation.state == SessionState.IDLE
    assert simulation.score == 0
    assert simulation.obstacles == []
    driver.tick()
    assert simulation.state == SessionState.RUNNING


def test_stop_listening_resets_the_session(
    driver: SessionDriver, simulation: GameSimulation, microphone: ScriptedInput
) -> None:
    driver.begin_listening()
    for _ in range(5):
        driver.tick()
    assert simulation.obstacles

    driver.stop_listening()

    assert not driver.is_listening
    assert microphone.close_calls == 1
    assert simulation.state == SessionState.IDLE
    assert simulation.obstacles == []
    assert not driver.latest_observation.has_pitch
    assert driver.tick() is False


def test_triggers_reach_the_note_player(
    analyzer: SignalAnalyzer, simulation: GameSimulation, microphone: ScriptedInput, tmp_path: Path
) -> None:
    output = RecordingOutput(running=False)
    player = TrackingPlayer(output)
    player.load_assets(LANES, str(tmp_path))
    driver = SessionDriver(PitchTracker(analyzer, audio_input=microphone), simulation, player)

    driver.begin_listening()
    assert output.is_running
    # The first obstacle spawns at x = 1197 and reaches the trigger line after
    # about 51 ticks at speed 3.
    for _ in range(60):
        driver.tick()

    assert player.played == ["Do3"]
    assert output.started == [(20_000, 8000)]


def test_failure_stops_the_sounding_note(
    analyzer: SignalAnalyzer, simulation: GameSimulation, microphone: ScriptedInput, tmp_path: Path
) -> None:
    output = RecordingOutput()
    player = TrackingPlayer(output)
    player.load_assets(LANES, str(tmp_path))
    driver = SessionDriver(PitchTracker(analyzer, audio_input=microphone), simulation, player)

    driver.begin_listening()
    microphone.frequency_hz = 261.63
    while simulation.state == SessionState.RUNNING or simulation.state == SessionState.IDLE:
        driver.tick()

    assert simulation.state == SessionState.FAILED
    assert player.played == ["Do3"]
    assert output.stop_calls == 1
    assert not player.is_playing


def test_nudge_moves_the_entity(driver: SessionDriver, simulation: GameSimulation) -> None:
    driver.begin_listening()
    driver.tick()
    before = simulation.entity.y
    driver.nudge(-1)
    driver.tick()
    # Up 5 pixels, then one more tick of gravity (velocity 1.0).
    assert simulation.entity.y == pytest.approx(before - 5.0 + 1.0)
