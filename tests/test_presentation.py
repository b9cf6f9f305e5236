from __future__ import annotations

import dataclasses

import pytest

from gameplay_models import SessionState
from game_simulation import GameSimulation
from lanes import lane_by_name
from pitch_tracker import NO_PITCH, PitchObservation
from presentation import (
    MAX_TILT_RADIANS,
    entity_tilt_radians,
    listener_readout,
    pitch_indicator,
    playfield_scale,
    score_hud_text,
    status_overlay_lines,
)


SONG_NAMES = ("Kuža pazi", "Marko skače", "Čuk se je oženil")


def test_tilt_follows_velocity_and_is_clamped() -> None:
    assert entity_tilt_radians(4.0, True) == pytest.approx(0.2)
    assert entity_tilt_radians(40.0, True) == MAX_TILT_RADIANS
    assert entity_tilt_radians(-40.0, True) == -MAX_TILT_RADIANS
    assert entity_tilt_radians(40.0, False) == 0.0


def test_playfield_scale_letterboxes() -> None:
    assert playfield_scale(1200.0, 600.0, 1200.0, 600.0) == (1.0, 0.0, 0.0)
    scale, offset_x, offset_y = playfield_scale(600.0, 600.0, 1200.0, 600.0)
    assert scale == 0.5
    assert offset_x == 0.0
    assert offset_y == 150.0


def test_overlay_prompts_to_listen_when_not_listening(simulation: GameSimulation) -> None:
    lines = status_overlay_lines(simulation.snapshot(), False, SONG_NAMES)
    assert lines[-1] == "Press Space to start listening."


def test_overlay_is_empty_while_playing(simulation: GameSimulation) -> None:
    assert status_overlay_lines(simulation.snapshot(), True, SONG_NAMES) == []
    assert status_overlay_lines(None, True, SONG_NAMES) == []


def test_game_over_overlay(simulation: GameSimulation) -> None:
    snapshot = dataclasses.replace(simulation.snapshot(), state=SessionState.FAILED, score=12)
    assert status_overlay_lines(snapshot, True, SONG_NAMES) == ["Game Over!", "Score: 12", "Press R to restart"]


def test_completed_overlay_lists_the_songs(simulation: GameSimulation) -> None:
    snapshot = dataclasses.replace(simulation.snapshot(), state=SessionState.COMPLETED, score=94)
    lines = status_overlay_lines(snapshot, True, SONG_NAMES)
    assert lines[0] == "Congratulations!"
    assert [line.strip() for line in lines[2:5]] == list(SONG_NAMES)
    assert "Final score: 94" in lines
    assert lines[-1] == "Press R to restart"


def test_score_hud_includes_the_current_song(simulation: GameSimulation) -> None:
    assert score_hud_text(simulation.snapshot()) == "Score: 0"
    simulation.request_start()
    simulation.step()
    assert score_hud_text(simulation.snapshot()).endswith("Do3-Do4 Scale")


def test_pitch_indicator_uses_lane_colour() -> None:
    assert pitch_indicator(None) is None
    indicator = pitch_indicator(196.0)
    assert indicator is not None
    assert indicator.y == lane_by_name("Sol3").line_y
    assert indicator.color == lane_by_name("Sol3").color
    assert indicator.label == "196 Hz"


def test_listener_readout_with_pitch() -> None:
    observation = PitchObservation(pitch_hz=220, loudness_db=-12.4, raw_pitch_hz=219.8)
    readout = listener_readout(observation, is_listening=True, gate_threshold_db=-25.0, last_error=None)
    assert readout.status == "Listening"
    assert readout.loudness == "-12 dB (above gate)"
    assert readout.frequency == "220 Hz"
    assert readout.note_name == "La3"
    assert readout.vocal_range == "Tenor"
    assert readout.error == ""


def test_listener_readout_without_signal() -> None:
    readout = listener_readout(NO_PITCH, is_listening=False, gate_threshold_db=-25.0, last_error="denied")
    assert readout.status == "Not listening"
    assert readout.loudness == "- dB"
    assert (readout.frequency, readout.note_name, readout.vocal_range) == ("-", "-", "-")
    assert readout.error == "denied"

    quiet = PitchObservation(pitch_hz=None, loudness_db=-40.0)
    assert listener_readout(quiet, is_listening=True, gate_threshold_db=-25.0, last_error=None).loudness == (
        "-40 dB (below gate)"
    )
