# -*- coding: utf-8 -*-
########################
# presentation.py
########################
# Purpose:
# - Qt free presentation helpers shared by the overlay widget and the listener panel.
# - Turns snapshots and pitch observations into text lines, colours and geometry.
#
# Design notes:
# - No Qt usage so the rules can be tested without a display.
# - Playfield coordinates are scaled uniformly into the widget by playfield_scale().
#
########################
# Interfaces:
# Public dataclasses:
# - PitchIndicator(y: float, color: str, label: str)
# - ListenerReadout(status: str, loudness: str, frequency: str, note_name: str, vocal_range: str, error: str)
#
# Public functions:
# - entity_tilt_radians(velocity: float, gravity_enabled: bool) -> float
# - playfield_scale(widget_width: float, widget_height: float, playfield_width: float,
#                   playfield_height: float) -> tuple[float, float, float]
# - status_overlay_lines(snapshot: Optional[GameSnapshot], is_listening: bool,
#                        story_song_names: Sequence[str]) -> list[str]
# - score_hud_text(snapshot: GameSnapshot) -> str
# - pitch_indicator(pitch_hz: Optional[float]) -> Optional[PitchIndicator]
# - listener_readout(observation: PitchObservation, *, is_listening: bool, gate_threshold_db: float,
#                    last_error: Optional[str]) -> ListenerReadout
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Optional, Sequence, Tuple

from gameplay_models import GameSnapshot, SessionState
from lanes import frequency_to_y, nearest_lane, note_name_for_frequency, vocal_range_for_frequency
from pitch_tracker import PitchObservation


MAX_TILT_RADIANS = 0.5
TILT_PER_VELOCITY = 0.05


@dataclass(frozen=True)
class PitchIndicator:
    y: float
    color: str
    label: str


@dataclass(frozen=True)
class ListenerReadout:
    status: str
    loudness: str
    frequency: str
    note_name: str
    vocal_range: str
    error: str


def entity_tilt_radians(velocity: float, gravity_enabled: bool) -> float:
    if not gravity_enabled:
        return 0.0
    return max(-MAX_TILT_RADIANS, min(MAX_TILT_RADIANS, float(velocity) * TILT_PER_VELOCITY))


def playfield_scale(
    widget_width: float,
    widget_height: float,
    playfield_width: float,
    playfield_height: float,
) -> Tuple[float, float, float]:
    """Return (scale, offset_x, offset_y) that letterboxes the playfield into the widget."""
    if playfield_width <= 0.0 or playfield_height <= 0.0:
        return 1.0, 0.0, 0.0
    scale = min(float(widget_width) / float(playfield_width), float(widget_height) / float(playfield_height))
    scale = max(0.0, scale)
    offset_x = (float(widget_width) - float(playfield_width) * scale) / 2.0
    offset_y = (float(widget_height) - float(playfield_height) * scale) / 2.0
    return scale, offset_x, offset_y


def status_overlay_lines(
    snapshot: Optional[GameSnapshot],
    is_listening: bool,
    story_song_names: Sequence[str],
) -> List[str]:
    if not is_listening:
        return [
            "PitchPerfect",
            "Sing the notes to fly through the gaps.",
            "Press Space to start listening.",
        ]
    if snapshot is None:
        return []
    if snapshot.state == SessionState.FAILED:
        return ["Game Over!", f"Score: {snapshot.score}", "Press R to restart"]
    if snapshot.state == SessionState.COMPLETED:
        lines = ["Congratulations!", "You sang:"]
        lines.extend(f"  {name}" for name in story_song_names)
        lines.append(f"Final score: {snapshot.score}")
        lines.append("Press R to restart")
        return lines
    return []


def score_hud_text(snapshot: GameSnapshot) -> str:
    if snapshot.song_name:
        return f"Score: {snapshot.score}    {snapshot.song_name}"
    return f"Score: {snapshot.score}"


def pitch_indicator(pitch_hz: Optional[float]) -> Optional[PitchIndicator]:
    if pitch_hz is None:
        return None
    lane = nearest_lane(float(pitch_hz))
    return PitchIndicator(
        y=frequency_to_y(float(pitch_hz)),
        color=lane.color,
        label=f"{float(pitch_hz):.0f} Hz",
    )


def listener_readout(
    observation: PitchObservation,
    *,
    is_listening: bool,
    gate_threshold_db: float,
    last_error: Optional[str],
) -> ListenerReadout:
    if math.isfinite(observation.loudness_db):
        marker = "above gate" if observation.loudness_db > gate_threshold_db else "below gate"
        loudness = f"{round(observation.loudness_db)} dB ({marker})"
    else:
        loudness = "- dB"

    if observation.pitch_hz is not None:
        frequency = f"{observation.pitch_hz} Hz"
        note_name = note_name_for_frequency(observation.pitch_hz)
        vocal_range = vocal_range_for_frequency(observation.pitch_hz)
    else:
        frequency = "-"
        note_name = "-"
        vocal_range = "-"

    return ListenerReadout(
        status="Listening" if is_listening else "Not listening",
        loudness=loudness,
        frequency=frequency,
        note_name=note_name,
        vocal_range=vocal_range,
        error=str(last_error or ""),
    )
