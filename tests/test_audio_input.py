from __future__ import annotations

import numpy as np
import pytest

from audio_input import AudioInput, MicrophoneInput, SampleRingBuffer

from conftest import ScriptedInput


def test_ring_buffer_keeps_the_latest_window_in_order() -> None:
    ring = SampleRingBuffer(4)
    ring.write(np.array([1.0, 2.0, 3.0]))
    assert ring.filled == 3
    assert list(ring.snapshot()) == [0.0, 1.0, 2.0, 3.0]

    ring.write(np.array([4.0, 5.0]))
    assert ring.filled == 4
    assert list(ring.snapshot()) == [2.0, 3.0, 4.0, 5.0]


def test_oversized_block_keeps_only_its_tail() -> None:
    ring = SampleRingBuffer(4)
    ring.write(np.arange(10, dtype=np.float32))
    assert list(ring.snapshot()) == [6.0, 7.0, 8.0, 9.0]


def test_clear_and_empty_writes() -> None:
    ring = SampleRingBuffer(3)
    ring.write(np.array([], dtype=np.float32))
    assert ring.filled == 0
    ring.write(np.array([1.0, 1.0]))
    ring.clear()
    assert ring.filled == 0
    assert list(ring.snapshot()) == [0.0, 0.0, 0.0]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SampleRingBuffer(0)


def test_closed_microphone_yields_no_frames() -> None:
    microphone = MicrophoneInput(frame_size=32)
    assert not microphone.is_open
    assert microphone.read_frame() is None
    microphone.close()
    assert not microphone.is_open


def test_fakes_satisfy_the_input_protocol() -> None:
    assert isinstance(ScriptedInput(), AudioInput)
    assert isinstance(MicrophoneInput(frame_size=32), AudioInput)
