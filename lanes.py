# -*- coding: utf-8 -*-
########################
# lanes.py
########################
# Purpose:
# - The eight fixed pitch lanes (one diatonic octave, Do3 to Do4).
# - Frequency to lane mapping and frequency to note-name helpers.
#
# Design notes:
# - No Qt usage. Immutable data defined at import time.
# - Lane order is ascending pitch. Index 0 is Do3, index 7 is Do4.
# - nearest_lane is total: every frequency maps to exactly one lane.
#   Ties go to the earlier lane in the table.
#
########################
# Interfaces:
# Public dataclasses:
# - Lane(index: int, name: str, solfege: str, frequency_hz: float, color: str, line_y: float)
#   - gap_top(gap_height: float) -> float
#   - gap_bottom(gap_height: float) -> float
#
# Public constants:
# - LANES: tuple[Lane, ...]
#
# Public functions:
# - nearest_lane(frequency_hz: float, lanes: Sequence[Lane] = LANES) -> Lane
# - lane_by_name(name: str) -> Lane
# - frequency_to_y(frequency_hz: float, lanes: Sequence[Lane] = LANES) -> float
# - note_name_for_frequency(frequency_hz: float) -> str
# - vocal_range_for_frequency(frequency_hz: float) -> str
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Dict, Sequence


@dataclass(frozen=True)
class Lane:
    index: int
    name: str
    solfege: str
    frequency_hz: float
    color: str
    line_y: float

    def gap_top(self, gap_height: float) -> float:
        return float(self.line_y) - float(gap_height) / 2.0

    def gap_bottom(self, gap_height: float) -> float:
        return float(self.line_y) + float(gap_height) / 2.0


LANES = (
    Lane(index=0, name="Do3", solfege="Do", frequency_hz=130.81, color="#E74C3C", line_y=466.0),
    Lane(index=1, name="Re3", solfege="Re", frequency_hz=146.83, color="#9B59B6", line_y=413.0),
    Lane(index=2, name="Mi3", solfege="Mi", frequency_hz=164.81, color="#D4A5A5", line_y=360.0),
    Lane(index=3, name="Fa3", solfege="Fa", frequency_hz=174.61, color="#FFEEAD", line_y=307.0),
    Lane(index=4, name="Sol3", solfege="Sol", frequency_hz=196.00, color="#96CEB4", line_y=254.0),
    Lane(index=5, name="La3", solfege="La", frequency_hz=220.00, color="#45B7D1", line_y=201.0),
    Lane(index=6, name="Si3", solfege="Si", frequency_hz=246.94, color="#4ECDC4", line_y=148.0),
    Lane(index=7, name="Do4", solfege="Do", frequency_hz=261.63, color="#FF6B6B", line_y=95.0),
)

_LANES_BY_NAME: Dict[str, Lane] = {lane.name: lane for lane in LANES}

_CHROMATIC_SOLFEGE = ("Do", "Do#", "Re", "Re#", "Mi", "Fa", "Fa#", "Sol", "Sol#", "La", "La#", "Si")
_REFERENCE_DO3_HZ = 130.81


def nearest_lane(frequency_hz: float, lanes: Sequence[Lane] = LANES) -> Lane:
    if not lanes:
        raise ValueError("lanes must not be empty")
    target = float(frequency_hz)
    best_lane = lanes[0]
    best_distance = abs(best_lane.frequency_hz - target)
    for lane in lanes[1:]:
        distance = abs(lane.frequency_hz - target)
        # Strict comparison keeps the earlier lane on ties.
        if distance < best_distance:
            best_lane = lane
            best_distance = distance
    return best_lane


def lane_by_name(name: str) -> Lane:
    try:
        return _LANES_BY_NAME[str(name)]
    except KeyError:
        raise KeyError(f"Unknown lane: {name!r}") from None


def frequency_to_y(frequency_hz: float, lanes: Sequence[Lane] = LANES) -> float:
    """Vertical position for a pitch indicator.

    Exact lane frequencies land on the lane line. Anything else is linearly
    interpolated between the lowest and highest lane lines (and extrapolated
    outside them).
    """
    target = float(frequency_hz)
    for lane in lanes:
        if lane.frequency_hz == target:
            return float(lane.line_y)

    low_lane = min(lanes, key=lambda item: item.frequency_hz)
    high_lane = max(lanes, key=lambda item: item.frequency_hz)
    span_hz = high_lane.frequency_hz - low_lane.frequency_hz
    normalized = (target - low_lane.frequency_hz) / span_hz
    return float(low_lane.line_y - normalized * (low_lane.line_y - high_lane.line_y))


def note_name_for_frequency(frequency_hz: float) -> str:
    """Chromatic solfege name with octave, counted from Do3 = 130.81 Hz."""
    if frequency_hz <= 0.0:
        raise ValueError("frequency_hz must be positive")
    semitones = int(round(12.0 * math.log2(float(frequency_hz) / _REFERENCE_DO3_HZ)))
    octave = 3 + semitones // 12
    return f"{_CHROMATIC_SOLFEGE[semitones % 12]}{octave}"


def vocal_range_for_frequency(frequency_hz: float) -> str:
    value = float(frequency_hz)
    if value < 160.0:
        return "Bass"
    if value < 240.0:
        return "Tenor"
    if value < 340.0:
        return "Alto"
    return "Soprano"


def _run_unit_tests() -> None:
    assert [lane.name for lane in LANES] == ["Do3", "Re3", "Mi3", "Fa3", "Sol3", "La3", "Si3", "Do4"]
    for lane in LANES:
        assert nearest_lane(lane.frequency_hz) is lane

    assert nearest_lane(20.0).name == "Do3"
    assert nearest_lane(5000.0).name == "Do4"

    low = Lane(index=0, name="low", solfege="Do", frequency_hz=100.0, color="#000000", line_y=10.0)
    high = Lane(index=1, name="high", solfege="Re", frequency_hz=200.0, color="#FFFFFF", line_y=0.0)
    assert nearest_lane(150.0, (low, high)) is low
    assert nearest_lane(150.0, (high, low)) is high

    assert frequency_to_y(220.0) == 201.0
    assert note_name_for_frequency(220.0) == "La3"
    assert note_name_for_frequency(246.94) == "Si3"
    assert note_name_for_frequency(261.63) == "Do4"
    assert vocal_range_for_frequency(150.0) == "Bass"


if __name__ == "__main__":
    _run_unit_tests()
    print("lanes.py: ok")
