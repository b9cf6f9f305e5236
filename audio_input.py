# -*- coding: utf-8 -*-
########################
# audio_input.py
########################
# Purpose:
# - Microphone input boundary.
# - Opens a live sounddevice input stream and exposes the most recent fixed-size
#   window of normalized float samples, like an analyser node's time-domain view.
#
# Design notes:
# - No Qt usage.
# - sounddevice is imported when the stream is opened, so hosts without PortAudio
#   can still import this module. A missing backend is an acquisition failure.
# - The PortAudio callback thread only writes into the ring buffer under a lock.
#   read_frame() copies the buffer out on the caller's thread.
# - Open failures raise AudioInputError once. There is no automatic retry.
# - Echo cancellation, noise suppression and automatic gain are host audio
#   settings (OS voice processing); PortAudio does not expose them per stream.
#
########################
# Interfaces:
# Public exceptions:
# - AudioInputError(RuntimeError)
#
# Public protocols:
# - AudioInput: is_open, sample_rate, open(), close(), read_frame()
#
# Public classes:
# - class SampleRingBuffer(capacity: int)
#   - write(block: np.ndarray) -> None
#   - snapshot() -> np.ndarray
#   - clear() -> None
# - class MicrophoneInput(AudioInput)
#   - __init__(*, frame_size: int, device: Optional[int | str] = None, sample_rate: Optional[int] = None)
#
# Public functions:
# - describe_input_devices() -> str
#
# Inputs:
# - Live audio from the default (or configured) input device.
#
# Outputs:
# - AudioFrame values consumed by PitchTracker.
#
########################

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol, Union, runtime_checkable

import numpy as np

from signal_analyzer import AudioFrame


logger = logging.getLogger(__name__)


class AudioInputError(RuntimeError):
    pass


@runtime_checkable
class AudioInput(Protocol):
    @property
    def is_open(self) -> bool: ...

    @property
    def sample_rate(self) -> float: ...

    def open(self) -> None: ...

    def close(self) -> None: ...

    def read_frame(self) -> Optional[AudioFrame]: ...


class SampleRingBuffer:
    """Fixed-capacity mono sample window, oldest sample first on snapshot."""

    def __init__(self, capacity: int) -> None:
        if int(capacity) <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = int(capacity)
        self._data = np.zeros(self._capacity, dtype=np.float32)
        self._write_index = 0
        self._filled = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def filled(self) -> int:
        with self._lock:
            return self._filled

    def write(self, block: np.ndarray) -> None:
        values = np.asarray(block, dtype=np.float32).reshape(-1)
        if values.size == 0:
            return
        if values.size >= self._capacity:
            values = values[-self._capacity :]

        with self._lock:
            count = int(values.size)
            first = min(count, self._capacity - self._write_index)
            self._data[self._write_index : self._write_index + first] = values[:first]
            remaining = count - first
            if remaining:
                self._data[:remaining] = values[first:]
            self._write_index = (self._write_index + count) % self._capacity
            self._filled = min(self._capacity, self._filled + count)

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return np.concatenate((self._data[self._write_index :], self._data[: self._write_index]))

    def clear(self) -> None:
        with self._lock:
            self._data.fill(0.0)
            self._write_index = 0
            self._filled = 0


def _import_sounddevice() -> Any:
    try:
        import sounddevice
    except (ImportError, OSError) as exception:
        raise AudioInputError(f"Audio backend unavailable: {exception}") from exception
    return sounddevice


class MicrophoneInput:
    def __init__(
        self,
        *,
        frame_size: int,
        device: Optional[Union[int, str]] = None,
        sample_rate: Optional[int] = None,
    ) -> None:
        self._frame_size = int(frame_size)
        self._device = device
        self._requested_sample_rate = sample_rate
        self._ring = SampleRingBuffer(self._frame_size)
        self._stream: Any = None
        self._sample_rate: float = float(sample_rate or 0.0)

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def sample_rate(self) -> float:
        return float(self._sample_rate)

    def open(self) -> None:
        if self._stream is not None:
            return

        sd = _import_sounddevice()
        self._ring.clear()

        def callback(indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
            if status:
                logger.debug("Input stream status: %s", status)
            self._ring.write(indata[:, 0])

        try:
            stream = sd.InputStream(
                samplerate=self._requested_sample_rate,
                channels=1,
                device=self._device,
                dtype="float32",
                callback=callback,
                latency="low",
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exception:
            logger.warning("Microphone unavailable (device=%r): %s", self._device, exception)
            raise AudioInputError(f"Microphone unavailable: {exception}") from exception

        self._stream = stream
        self._sample_rate = float(stream.samplerate)
        logger.info("Microphone opened: device=%r sample_rate=%.0f", self._device, self._sample_rate)

    def close(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as exception:
            logger.warning("Closing the input stream failed: %s", exception)
        self._ring.clear()
        logger.info("Microphone closed")

    def read_frame(self) -> Optional[AudioFrame]:
        if self._stream is None:
            return None
        return AudioFrame(samples=self._ring.snapshot(), sample_rate=self.sample_rate)


def describe_input_devices() -> str:
    sd = _import_sounddevice()
    return str(sd.query_devices())


def _run_unit_tests() -> None:
    ring = SampleRingBuffer(4)
    ring.write(np.array([1.0, 2.0, 3.0]))
    assert list(ring.snapshot()) == [0.0, 1.0, 2.0, 3.0]
    ring.write(np.array([4.0, 5.0]))
    assert list(ring.snapshot()) == [2.0, 3.0, 4.0, 5.0]
    ring.write(np.arange(10, dtype=np.float32))
    assert list(ring.snapshot()) == [6.0, 7.0, 8.0, 9.0]

    microphone = MicrophoneInput(frame_size=16)
    assert microphone.read_frame() is None


if __name__ == "__main__":
    _run_unit_tests()
    print("audio_input.py: ok")
