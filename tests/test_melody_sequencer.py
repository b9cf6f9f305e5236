from __future__ import annotations

import pytest

from lanes import LANES
from melody_sequencer import (
    CUK_SE_JE_OZENIL,
    KUZA_PAZI,
    MARKO_SKACE,
    SEQUENCE_EXHAUSTED,
    STORY_SONGS,
    WARM_UP_SCALE,
    MelodySequencer,
    ObstacleDescriptor,
    SequenceExhausted,
    build_song,
)


def test_catalogue_sizes() -> None:
    assert len(WARM_UP_SCALE) == 8
    assert (len(KUZA_PAZI), len(MARKO_SKACE), len(CUK_SE_JE_OZENIL)) == (30, 26, 30)
    assert MelodySequencer().catalogue_length() == 94


def test_warm_up_walks_the_lanes_in_ascending_order(sequencer: MelodySequencer) -> None:
    descriptors = [sequencer.get_next(index) for index in range(8)]
    assert all(isinstance(descriptor, ObstacleDescriptor) for descriptor in descriptors)
    assert [descriptor.lane for descriptor in descriptors] == list(LANES)
    assert [descriptor.syllable for descriptor in descriptors] == ["Do", "Re", "Mi", "Fa", "Sol", "La", "Si", "Do"]
    assert {descriptor.speed_multiplier for descriptor in descriptors} == {1.0}


def test_segments_resolve_by_prefix_length(sequencer: MelodySequencer) -> None:
    boundaries = {
        7: ("Do3-Do4 Scale", 1.0),
        8: ("Kuža pazi", 1.2),
        37: ("Kuža pazi", 1.2),
        38: ("Marko skače", 1.4),
        63: ("Marko skače", 1.4),
        64: ("Čuk se je oženil", 1.6),
        93: ("Čuk se je oženil", 1.6),
    }
    for index, (song_name, multiplier) in boundaries.items():
        descriptor = sequencer.get_next(index)
        assert isinstance(descriptor, ObstacleDescriptor)
        assert descriptor.index == index
        assert descriptor.song_name == song_name
        assert descriptor.speed_multiplier == multiplier


def test_exhaustion_at_catalogue_length(sequencer: MelodySequencer) -> None:
    assert sequencer.get_next(94) is SEQUENCE_EXHAUSTED
    assert sequencer.get_next(500) is SEQUENCE_EXHAUSTED
    assert SequenceExhausted() is SEQUENCE_EXHAUSTED


def test_negative_index_is_an_error(sequencer: MelodySequencer) -> None:
    with pytest.raises(ValueError):
        sequencer.get_next(-1)


def test_song_cursor_rotates_story_songs_round_robin(sequencer: MelodySequencer) -> None:
    assert [song.name for song in sequencer.session_songs()] == [
        "Do3-Do4 Scale",
        "Kuža pazi",
        "Marko skače",
        "Čuk se je oženil",
    ]

    sequencer.advance_song_cursor()
    assert sequencer.song_cursor == 1
    first_song_note = sequencer.get_next(8)
    assert isinstance(first_song_note, ObstacleDescriptor)
    assert first_song_note.song_name == "Marko skače"
    assert first_song_note.speed_multiplier == 1.2
    assert sequencer.get_next(0).song_name == "Do3-Do4 Scale"  # type: ignore[union-attr]

    sequencer.advance_song_cursor()
    sequencer.advance_song_cursor()
    assert sequencer.song_cursor == 0


def test_catalogue_length_is_independent_of_cursor(sequencer: MelodySequencer) -> None:
    sequencer.advance_song_cursor()
    assert sequencer.catalogue_length() == 94
    assert sequencer.get_next(93) is not SEQUENCE_EXHAUSTED
    assert sequencer.get_next(94) is SEQUENCE_EXHAUSTED


def test_story_songs_only_use_known_lanes() -> None:
    lane_names = {lane.name for lane in LANES}
    for song in STORY_SONGS:
        assert {note.lane_name for note in song.notes} <= lane_names


def test_build_song_truncates_lyrics_and_expands_underscores() -> None:
    song = build_song("demo", "Do3 Re3", "z_rep one two three")
    assert [note.syllable for note in song.notes] == ["z rep", "one"]


def test_build_song_rejects_short_lyrics_and_unknown_lanes() -> None:
    with pytest.raises(ValueError):
        build_song("demo", "Do3 Re3 Mi3", "one two")
    with pytest.raises(KeyError):
        build_song("demo", "Do3 Xx9", "one two")


def test_multiplier_count_must_match_songs() -> None:
    with pytest.raises(ValueError):
        MelodySequencer(speed_multipliers=(1.2, 1.4))
