from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from config import NotePlayerConfig
from lanes import LANES
from note_player import NoteAssetError, NotePlayer, SoundDeviceOutput, build_playback_buffer

from conftest import RecordingOutput


def test_envelope_holds_gain_then_fades_to_silence() -> None:
    data = np.ones(100, dtype=np.float32)
    buffer = build_playback_buffer(data, 20, gain=0.1, fade_start_seconds=1.5, stop_seconds=2.5)

    assert buffer.shape == (50,)
    assert buffer[:30] == pytest.approx(np.full(30, 0.1))
    assert buffer[40] == pytest.approx(0.05)
    assert np.all(np.diff(buffer[30:]) < 0.0)
    assert float(buffer[-1]) < 0.01


def test_short_clip_is_not_padded() -> None:
    buffer = build_playback_buffer(np.ones(10, dtype=np.float32), 20, gain=0.5, fade_start_seconds=1.5, stop_seconds=2.5)
    assert buffer.shape == (10,)
    assert buffer == pytest.approx(np.full(10, 0.5))


def test_envelope_applies_to_every_channel() -> None:
    stereo = np.ones((100, 2), dtype=np.float32)
    buffer = build_playback_buffer(stereo, 20, gain=0.1, fade_start_seconds=1.5, stop_seconds=2.5)
    assert buffer.shape == (50, 2)
    assert np.array_equal(buffer[:, 0], buffer[:, 1])


def test_load_assets_reports_failures_per_lane(tmp_path: Path) -> None:
    output = RecordingOutput(broken_lanes=("Mi3",))
    player = NotePlayer(output, NotePlayerConfig())

    loaded = player.load_assets(LANES, str(tmp_path))

    assert loaded["Mi3"] is False
    assert sum(loaded.values()) == 7
    assert "Mi3" not in player.loaded_lanes()
    assert output.decoded[0] == tmp_path / "Do3.wav"


def test_failed_lane_is_a_silent_no_op(tmp_path: Path) -> None:
    output = RecordingOutput(broken_lanes=("Mi3",))
    player = NotePlayer(output)
    player.load_assets(LANES, str(tmp_path))

    assert player.play("Mi3") is False
    assert output.started == []
    assert not player.is_playing


def test_play_uses_shaped_buffer(tmp_path: Path) -> None:
    output = RecordingOutput()
    player = NotePlayer(output)
    player.load_assets(LANES, str(tmp_path))

    assert player.play("Sol3") is True
    # 4 s of 8 kHz audio truncated at 2.5 s.
    assert output.started == [(20_000, 8000)]
    assert player.current_lane == "Sol3"


def test_new_note_cuts_the_previous_one(tmp_path: Path) -> None:
    output = RecordingOutput()
    player = NotePlayer(output)
    player.load_assets(LANES, str(tmp_path))

    player.play("Do3")
    assert output.stop_calls == 0
    player.play("Re3")
    assert output.stop_calls == 1
    assert player.current_lane == "Re3"


def test_stop_is_idempotent(tmp_path: Path) -> None:
    output = RecordingOutput()
    player = NotePlayer(output)
    player.load_assets(LANES, str(tmp_path))

    player.stop()
    assert output.stop_calls == 0
    player.play("La3")
    player.stop()
    player.stop()
    assert output.stop_calls == 1
    assert not player.is_playing


def test_play_skipped_while_output_suspended(tmp_path: Path) -> None:
    output = RecordingOutput(running=False)
    player = NotePlayer(output)
    player.load_assets(LANES, str(tmp_path))

    assert player.play("Do4") is False
    player.resume()
    assert player.play("Do4") is True
    player.suspend()
    assert not output.is_running
    assert not player.is_playing


def test_output_failure_on_start_is_logged_not_raised(tmp_path: Path) -> None:
    class FailingOutput(RecordingOutput):
        def start(self, buffer: np.ndarray, sample_rate: int) -> None:
            raise RuntimeError("device lost")

    player = NotePlayer(FailingOutput())
    player.load_assets(LANES, str(tmp_path))
    assert player.play("Fa3") is False
    assert not player.is_playing


def test_missing_file_is_a_note_asset_error(tmp_path: Path) -> None:
    pytest.importorskip("soundfile")
    with pytest.raises(NoteAssetError):
        SoundDeviceOutput().decode(tmp_path / "missing.wav")


class ManualClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_clip_that_runs_out_is_no_longer_playing(tmp_path: Path) -> None:
    clock = ManualClock()
    output = RecordingOutput()
    player = NotePlayer(output, clock=clock)
    player.load_assets(LANES, str(tmp_path))

    player.play("Do3")
    clock.now += 2.4
    assert player.is_playing
    assert player.current_lane == "Do3"

    clock.now += 0.2
    assert not player.is_playing
    assert player.current_lane is None

    # Nothing is sounding, so stopping leaves the output alone.
    player.stop()
    assert output.stop_calls == 0
    player.play("Re3")
    assert output.stop_calls == 0
    assert player.current_lane == "Re3"
