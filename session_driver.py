# -*- coding: utf-8 -*-
########################
# session_driver.py
########################
# Purpose:
# - One tick of the whole pipeline: pitch analysis, simulation step, note playback.
# - Owns the user control boundary: begin listening, stop listening, reset, nudge.
#
# Design notes:
# - No Qt usage. A frame scheduler (GameClock) calls tick() once per display frame
#   and re-arms only while tick() returns True.
# - Ordering within a tick: the pitch observation is computed and submitted before
#   the simulation steps; note triggers are resolved before NotePlayer is invoked.
# - Listening derives the session: while listening, an IDLE session is started on
#   the next tick. Stopping listening resets the session.
# - Acquisition failures are reported once as a message. There is no retry.
#
########################
# Interfaces:
# Public classes:
# - class SessionDriver
#   - __init__(pitch_tracker: PitchTracker, simulation: GameSimulation, note_player: Optional[NotePlayer] = None)
#   - is_listening -> bool
#   - last_error -> Optional[str]
#   - latest_observation -> PitchObservation
#   - begin_listening() -> Optional[str]
#   - stop_listening() -> None
#   - request_reset() -> bool
#   - nudge(direction: int) -> None
#   - tick() -> bool
#   - snapshot() -> GameSnapshot
#
########################

from __future__ import annotations

import logging
from typing import Optional

from audio_input import AudioInputError
from game_simulation import GameSimulation
from gameplay_models import GameSnapshot, SessionState, TickResult
from note_player import NotePlayer
from pitch_tracker import PitchObservation, PitchTracker


logger = logging.getLogger(__name__)


class SessionDriver:
    def __init__(
        self,
        pitch_tracker: PitchTracker,
        simulation: GameSimulation,
        note_player: Optional[NotePlayer] = None,
    ) -> None:
        self._pitch_tracker = pitch_tracker
        self._simulation = simulation
        self._note_player = note_player
        self._last_error: Optional[str] = None
        self._last_result: Optional[TickResult] = None

    @property
    def simulation(self) -> GameSimulation:
        return self._simulation

    @property
    def is_listening(self) -> bool:
        return self._pitch_tracker.is_listening

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def latest_observation(self) -> PitchObservation:
        return self._pitch_tracker.latest_observation

    @property
    def last_result(self) -> Optional[TickResult]:
        return self._last_result

    def begin_listening(self) -> Optional[str]:
        """Start the microphone and the session. Returns an error message on failure."""
        if self.is_listening:
            return None
        try:
            self._pitch_tracker.start()
        except AudioInputError as exception:
            message = f"Could not start listening: {exception}"
            logger.warning("Listening failed: %s", exception)
            self._last_error = message
            return message

        self._last_error = None
        if self._note_player is not None:
            self._note_player.resume()
        self._simulation.request_start()
        return None

    def stop_listening(self) -> None:
        if not self.is_listening:
            return
        self._pitch_tracker.stop()
        self._simulation.submit_pitch(None)
        if self._note_player is not None:
            self._note_player.suspend()
        self._simulation.reset()

    def request_reset(self) -> bool:
        if not self.is_listening or not self._simulation.state.is_terminal:
            return False
        self._simulation.request_reset()
        return True

    def nudge(self, direction: int) -> None:
        self._simulation.request_nudge(direction)

    def tick(self) -> bool:
        """Run one frame. Returns True while the frame loop should keep running."""
        if not self.is_listening:
            return False

        observation = self._pitch_tracker.tick()
        self._simulation.submit_pitch(observation.pitch_hz)

        if self._simulation.state == SessionState.IDLE:
            self._simulation.request_start()

        result = self._simulation.step()
        self._last_result = result

        if self._note_player is not None:
            for lane_name in result.note_triggers:
                self._note_player.play(lane_name)
            if result.stop_audio:
                self._note_player.stop()

        return True

    def snapshot(self) -> GameSnapshot:
        return self._simulation.snapshot()


def _run_unit_tests() -> None:
    from config import AnalyzerConfig, GameConfig
    from melody_sequencer import MelodySequencer
    from signal_analyzer import SignalAnalyzer

    class DeniedInput:
        is_open = False
        sample_rate = 44100.0

        def open(self) -> None:
            raise AudioInputError("permission denied")

        def close(self) -> None:
            pass

        def read_frame(self):
            return None

    simulation = GameSimulation(GameConfig(), MelodySequencer())
    tracker = PitchTracker(SignalAnalyzer(AnalyzerConfig()), audio_input=DeniedInput())
    driver = SessionDriver(tracker, simulation)

    assert driver.tick() is False
    message = driver.begin_listening()
    assert message is not None and "permission denied" in message
    assert not driver.is_listening
    assert simulation.state == SessionState.IDLE

    driver = SessionDriver(PitchTracker(SignalAnalyzer(AnalyzerConfig())), simulation)
    assert driver.begin_listening() is None
    assert driver.tick() is True
    assert simulation.state == SessionState.RUNNING
    assert driver.request_reset() is False

    driver.stop_listening()
    assert simulation.state == SessionState.IDLE
    assert driver.tick() is False


if __name__ == "__main__":
    _run_unit_tests()
    print("session_driver.py: ok")
