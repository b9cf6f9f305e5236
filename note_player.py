# -*- coding: utf-8 -*-
########################
# note_player.py
########################
# Purpose:
# - Plays the reference note for a lane when an obstacle reaches the trigger line.
# - At most one clip sounds at a time. A new note cuts the previous one.
#
# Design notes:
# - No Qt usage.
# - Assets are decoded once at load time (soundfile) and keyed by lane name.
#   A lane whose asset failed to load is a permanent no-op for the session.
# - The playback envelope is baked into the buffer before it is handed to the
#   output: fixed gain, linear fade to silence from fade_start to stop, and a
#   hard cut at stop. No timers are needed to end a clip.
# - The current clip reference expires once its baked duration has elapsed, so
#   is_playing only reports a clip that is still sounding.
# - stop() is idempotent. Output failures on start or stop are logged and swallowed.
# - play() is skipped (debug log, returns False) when the asset is missing or the
#   output is not running.
#
########################
# Interfaces:
# Public exceptions:
# - NoteAssetError(RuntimeError)
#
# Public protocols:
# - AudioOutput: is_running, decode(path) -> (np.ndarray, int), start(buffer, sample_rate), stop(),
#                resume(), suspend()
#
# Public functions:
# - build_playback_buffer(data: np.ndarray, sample_rate: int, *, gain: float, fade_start_seconds: float,
#                         stop_seconds: float) -> np.ndarray
#
# Public classes:
# - class SoundDeviceOutput(AudioOutput)
# - class NotePlayer
#   - __init__(output: AudioOutput, config: NotePlayerConfig, *, clock: Callable[[], float] = time.monotonic)
#   - load_assets(lanes: Sequence[Lane], notes_dir: Optional[str] = None) -> dict[str, bool]
#   - loaded_lanes() -> list[str]
#   - is_playing -> bool, current_lane -> Optional[str]
#   - play(lane_name: str) -> bool
#   - stop() -> None
#   - resume() -> None, suspend() -> None
#
# Inputs:
# - Lane names from TickResult.note_triggers.
# - <notes_dir>/<lane>.wav assets.
#
# Outputs:
# - Audio on the default output device.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from config import NotePlayerConfig
from lanes import Lane
import paths


logger = logging.getLogger(__name__)


class NoteAssetError(RuntimeError):
    pass


@runtime_checkable
class AudioOutput(Protocol):
    @property
    def is_running(self) -> bool: ...

    def decode(self, path: Path) -> Tuple[np.ndarray, int]: ...

    def start(self, buffer: np.ndarray, sample_rate: int) -> None: ...

    def stop(self) -> None: ...

    def resume(self) -> None: ...

    def suspend(self) -> None: ...


@dataclass(frozen=True)
class DecodedClip:
    data: np.ndarray
    sample_rate: int

    @property
    def duration_seconds(self) -> float:
        return float(self.data.shape[0]) / float(self.sample_rate)


def build_playback_buffer(
    data: np.ndarray,
    sample_rate: int,
    *,
    gain: float,
    fade_start_seconds: float,
    stop_seconds: float,
) -> np.ndarray:
    """Apply gain, a linear fade-out and the hard stop to a decoded clip.

    The gain is held until fade_start_seconds, ramps linearly to zero at
    stop_seconds, and nothing after stop_seconds is kept. Works for mono
    (frames,) and multi-channel (frames, channels) data.
    """
    samples = np.asarray(data, dtype=np.float32)
    stop_frame = int(round(float(stop_seconds) * int(sample_rate)))
    fade_frame = int(round(float(fade_start_seconds) * int(sample_rate)))
    samples = samples[:stop_frame]

    frame_count = samples.shape[0]
    envelope = np.full(frame_count, float(gain), dtype=np.float32)
    if stop_frame > fade_frame:
        frame_index = np.arange(frame_count, dtype=np.float32)
        ramp = float(gain) * (stop_frame - frame_index) / float(stop_frame - fade_frame)
        envelope = np.where(frame_index >= fade_frame, ramp, envelope).astype(np.float32)

    if samples.ndim > 1:
        envelope = envelope[:, np.newaxis]
    return samples * envelope


def _import_sounddevice() -> Any:
    import sounddevice

    return sounddevice


class SoundDeviceOutput:
    """Default output device via sounddevice. Decoding via soundfile."""

    def __init__(self) -> None:
        self._sd: Any = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def decode(self, path: Path) -> Tuple[np.ndarray, int]:
        try:
            import soundfile

            data, sample_rate = soundfile.read(str(path), dtype="float32", always_2d=False)
        except (ImportError, RuntimeError, OSError) as exception:
            raise NoteAssetError(f"Cannot decode {path}: {exception}") from exception
        if data.size == 0:
            raise NoteAssetError(f"Empty audio asset: {path}")
        return data, int(sample_rate)

    def start(self, buffer: np.ndarray, sample_rate: int) -> None:
        if self._sd is None:
            return
        self._sd.play(buffer, samplerate=int(sample_rate), blocking=False)

    def stop(self) -> None:
        if self._sd is None:
            return
        self._sd.stop()

    def resume(self) -> None:
        if self._is_running:
            return
        try:
            self._sd = _import_sounddevice()
        except (ImportError, OSError) as exception:
            logger.warning("Audio output unavailable: %s", exception)
            self._sd = None
            return
        self._is_running = True

    def suspend(self) -> None:
        self._is_running = False


class NotePlayer:
    def __init__(
        self,
        output: AudioOutput,
        config: Optional[NotePlayerConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._output = output
        self._config = config or NotePlayerConfig()
        self._clock = clock
        self._buffers: Dict[str, DecodedClip] = {}
        self._current_lane: Optional[str] = None
        self._current_ends_at = 0.0

    @property
    def is_playing(self) -> bool:
        return self.current_lane is not None

    @property
    def current_lane(self) -> Optional[str]:
        """Lane of the clip still sounding. Cleared once the clip has run out."""
        if self._current_lane is not None and self._clock() >= self._current_ends_at:
            self._current_lane = None
        return self._current_lane

    def loaded_lanes(self) -> List[str]:
        return sorted(self._buffers)

    def load_assets(self, lanes: Sequence[Lane], notes_dir: Optional[str] = None) -> Dict[str, bool]:
        """Decode every lane's note once. Returns lane name -> loaded."""
        directory = notes_dir if notes_dir is not None else self._config.notes_dir
        results: Dict[str, bool] = {}
        for lane in lanes:
            asset_path = paths.note_asset_path(lane.name, directory)
            try:
                data, sample_rate = self._output.decode(asset_path)
            except NoteAssetError as exception:
                logger.warning("Note asset for %s failed to load: %s", lane.name, exception)
                results[lane.name] = False
                continue

            self._buffers[lane.name] = DecodedClip(
                data=build_playback_buffer(
                    data,
                    sample_rate,
                    gain=self._config.gain,
                    fade_start_seconds=self._config.fade_start_seconds,
                    stop_seconds=self._config.stop_seconds,
                ),
                sample_rate=int(sample_rate),
            )
            results[lane.name] = True
            logger.info("Loaded note %s from %s", lane.name, asset_path)
        return results

    def play(self, lane_name: str) -> bool:
        clip = self._buffers.get(lane_name)
        if clip is None:
            logger.debug("No note asset for %s, skipping", lane_name)
            return False
        if not self._output.is_running:
            logger.debug("Audio output not running, skipping %s", lane_name)
            return False

        self.stop()
        try:
            self._output.start(clip.data, clip.sample_rate)
        except Exception as exception:
            logger.warning("Playback of %s failed: %s", lane_name, exception)
            return False
        self._current_lane = lane_name
        self._current_ends_at = self._clock() + clip.duration_seconds
        return True

    def stop(self) -> None:
        if self.current_lane is None:
            return
        self._current_lane = None
        try:
            self._output.stop()
        except Exception as exception:
            logger.warning("Stopping playback failed: %s", exception)

    def resume(self) -> None:
        self._output.resume()

    def suspend(self) -> None:
        self.stop()
        self._output.suspend()


def _run_unit_tests() -> None:
    sample_rate = 10
    data = np.ones(40, dtype=np.float32)
    buffer = build_playback_buffer(data, sample_rate, gain=0.1, fade_start_seconds=1.5, stop_seconds=2.5)
    assert buffer.shape == (25,)
    assert abs(float(buffer[0]) - 0.1) < 1e-6
    assert abs(float(buffer[14]) - 0.1) < 1e-6
    assert abs(float(buffer[20]) - 0.05) < 1e-6
    assert float(buffer[-1]) < 0.1 / 5

    class SilentOutput:
        is_running = True

        def __init__(self) -> None:
            self.started: List[int] = []
            self.stops = 0

        def decode(self, path: Path) -> Tuple[np.ndarray, int]:
            if path.stem == "Do4":
                raise NoteAssetError("corrupt")
            return np.ones(100, dtype=np.float32), 10

        def start(self, buffer: np.ndarray, sample_rate: int) -> None:
            self.started.append(int(buffer.shape[0]))

        def stop(self) -> None:
            self.stops += 1

        def resume(self) -> None:
            pass

        def suspend(self) -> None:
            pass

    from lanes import LANES

    output = SilentOutput()
    player = NotePlayer(output, NotePlayerConfig())
    loaded = player.load_assets(LANES, "/nonexistent")
    assert loaded["Do4"] is False and loaded["Do3"] is True

    player.stop()
    assert output.stops == 0
    assert player.play("Do3") is True and output.started == [25]
    assert player.play("Re3") is True and output.stops == 1
    assert player.play("Do4") is False
    player.stop()
    player.stop()
    assert output.stops == 2 and not player.is_playing


if __name__ == "__main__":
    _run_unit_tests()
    print("note_player.py: ok")
