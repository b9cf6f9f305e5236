# -*- coding: utf-8 -*-
########################
# melody_sequencer.py
########################
# Purpose:
# - Owns the melody catalogue: a warm-up scale followed by three story songs.
# - Resolves a 0-based obstacle index into (lane, syllable, song name, speed multiplier).
#
# Design notes:
# - No Qt usage. Catalogue data is immutable after import.
# - A session plays: warm-up scale, then the three story songs rotated so the
#   song at the song cursor comes first.
# - Speed multipliers are positional: warm-up 1.0, then one multiplier per story song slot.
# - get_next returns SEQUENCE_EXHAUSTED once index >= catalogue length.
# - advance_song_cursor rotates the story songs for the next session (round robin).
#
########################
# Interfaces:
# Public dataclasses:
# - SongNote(lane_name: str, syllable: str)
# - Song(name: str, notes: tuple[SongNote, ...])
# - ObstacleDescriptor(index: int, lane: Lane, syllable: str, song_name: str, speed_multiplier: float)
#
# Public constants:
# - WARM_UP_SCALE, KUZA_PAZI, MARKO_SKACE, CUK_SE_JE_OZENIL, STORY_SONGS
# - SEQUENCE_EXHAUSTED
#
# Public classes:
# - class MelodySequencer
#   - __init__(*, warm_up: Song = WARM_UP_SCALE, songs: Sequence[Song] = STORY_SONGS,
#              speed_multipliers: Sequence[float] = (1.2, 1.4, 1.6))
#   - song_cursor -> int
#   - session_songs() -> list[Song]
#   - catalogue_length() -> int
#   - get_next(index: int) -> ObstacleDescriptor | SequenceExhausted
#   - advance_song_cursor() -> None
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import lanes


@dataclass(frozen=True)
class SongNote:
    lane_name: str
    syllable: str


@dataclass(frozen=True)
class Song:
    name: str
    notes: Tuple[SongNote, ...]

    def __len__(self) -> int:
        return len(self.notes)


@dataclass(frozen=True)
class ObstacleDescriptor:
    index: int
    lane: lanes.Lane
    syllable: str
    song_name: str
    speed_multiplier: float


class SequenceExhausted:
    """Marker returned once every obstacle of the session has been handed out."""

    _instance = None

    def __new__(cls) -> "SequenceExhausted":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SEQUENCE_EXHAUSTED"


SEQUENCE_EXHAUSTED = SequenceExhausted()


def build_song(name: str, melody: str, lyrics: str) -> Song:
    """Pair a whitespace separated melody (lane names) with its syllables.

    Lyrics longer than the melody are cut to the melody length. An underscore
    inside a syllable stands for a space.
    """
    lane_names = melody.split()
    syllables = [syllable.replace("_", " ") for syllable in lyrics.split()]
    if len(syllables) < len(lane_names):
        raise ValueError(f"{name}: {len(lane_names)} notes but only {len(syllables)} syllables")
    for lane_name in lane_names:
        lanes.lane_by_name(lane_name)
    return Song(
        name=name,
        notes=tuple(SongNote(lane_name=lane_name, syllable=syllable) for lane_name, syllable in zip(lane_names, syllables)),
    )


WARM_UP_SCALE = build_song(
    "Do3-Do4 Scale",
    "Do3 Re3 Mi3 Fa3 Sol3 La3 Si3 Do4",
    "Do Re Mi Fa Sol La Si Do",
)

KUZA_PAZI = build_song(
    "Kuža pazi",
    """
    Fa3 Fa3 Fa3 Fa3  Sol3 Sol3 Sol3 Sol3  La3 La3 Sol3 Sol3  Fa3 Fa3 Fa3
    Fa3 Fa3 Fa3 Fa3  Sol3 Sol3 Sol3 Sol3  La3 La3 Sol3 Sol3  Fa3 Fa3 Fa3
    """,
    """
    Ku ža pa zi z_rep kom mi ga vsta ne če že ta čko da
    hi šo ču va, je zno la ja, če ni ko gar ni do ma.
    """,
)

MARKO_SKACE = build_song(
    "Marko skače",
    """
    Mi3 Sol3 Sol3 Sol3  Mi3 Sol3 Sol3 Sol3  Mi3 Mi3 Re3 Re3  Do3 Do3
    Do3 Re3 Mi3 Sol3  Sol3 Sol3 Mi3 Mi3  Re3 Re3 Do3 Do3
    """,
    """
    Ma rko ska če, Ma rko ska če po ze le ni tra ti.
    Aj, aj, aj, aj, aj, po ze le ni tra ti,
    Aj, aj, aj, aj, aj, po ze le ni tra ti.
    """,
)

CUK_SE_JE_OZENIL = build_song(
    "Čuk se je oženil",
    """
    Mi3 Fa3 Sol3 La3  Si3 Si3 Do4 Do4  Si3 Do4 Do4 Si3  La3 La3 La3 La3
    Sol3 Sol3 Fa3 Fa3  Si3 La3 La3 La3 La3  Sol3 Sol3 Fa3 Fa3  Mi3
    """,
    """
    Čuk se je o že nil, tra la la,
    tra la la, so va ga je vze la,
    hop sa sa, so va ga je vze la, hop sa sa.
    """,
)

STORY_SONGS: Tuple[Song, ...] = (KUZA_PAZI, MARKO_SKACE, CUK_SE_JE_OZENIL)

DescriptorOrExhausted = Union[ObstacleDescriptor, SequenceExhausted]


class MelodySequencer:
    def __init__(
        self,
        *,
        warm_up: Song = WARM_UP_SCALE,
        songs: Sequence[Song] = STORY_SONGS,
        speed_multipliers: Sequence[float] = (1.2, 1.4, 1.6),
    ) -> None:
        if len(speed_multipliers) != len(songs):
            raise ValueError("one speed multiplier is required per story song")
        self._warm_up = warm_up
        self._songs: Tuple[Song, ...] = tuple(songs)
        self._speed_multipliers: Tuple[float, ...] = tuple(float(value) for value in speed_multipliers)
        self._song_cursor = 0

    @property
    def song_cursor(self) -> int:
        return self._song_cursor

    @property
    def story_songs(self) -> Tuple[Song, ...]:
        return self._songs

    def session_songs(self) -> List[Song]:
        cursor = self._song_cursor
        rotated = list(self._songs[cursor:]) + list(self._songs[:cursor])
        return [self._warm_up] + rotated

    def catalogue_length(self) -> int:
        return len(self._warm_up) + sum(len(song) for song in self._songs)

    def get_next(self, index: int) -> DescriptorOrExhausted:
        if index < 0:
            raise ValueError("index must be non-negative")

        multipliers = (1.0,) + self._speed_multipliers
        remaining = int(index)
        for position, song in enumerate(self.session_songs()):
            if remaining < len(song):
                note = song.notes[remaining]
                return ObstacleDescriptor(
                    index=int(index),
                    lane=lanes.lane_by_name(note.lane_name),
                    syllable=note.syllable,
                    song_name=song.name,
                    speed_multiplier=multipliers[position],
                )
            remaining -= len(song)
        return SEQUENCE_EXHAUSTED

    def advance_song_cursor(self) -> None:
        if self._songs:
            self._song_cursor = (self._song_cursor + 1) % len(self._songs)


def _run_unit_tests() -> None:
    assert len(WARM_UP_SCALE) == 8
    assert [len(song) for song in STORY_SONGS] == [30, 26, 30]

    sequencer = MelodySequencer()
    assert sequencer.catalogue_length() == 94

    first = sequencer.get_next(0)
    assert isinstance(first, ObstacleDescriptor)
    assert first.lane.name == "Do3" and first.speed_multiplier == 1.0

    ninth = sequencer.get_next(8)
    assert isinstance(ninth, ObstacleDescriptor)
    assert ninth.song_name == "Kuža pazi" and ninth.speed_multiplier == 1.2

    assert sequencer.get_next(94) is SEQUENCE_EXHAUSTED

    sequencer.advance_song_cursor()
    rotated = sequencer.get_next(8)
    assert isinstance(rotated, ObstacleDescriptor)
    assert rotated.song_name == "Marko skače" and rotated.speed_multiplier == 1.2


if __name__ == "__main__":
    _run_unit_tests()
    print("melody_sequencer.py: ok")
