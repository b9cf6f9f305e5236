# -*- coding: utf-8 -*-
########################
# game_clock.py
########################
# Purpose:
# - Per-frame scheduler for the gameplay loop.
# - Calls a tick callback once per frame and re-arms itself only when the tick
#   asks to continue.
#
# Design notes:
# - Single shot QTimer re-armed after each tick, so ticks never overlap and an
#   in-flight tick always runs to completion.
# - stop() cancels the next scheduled tick. It never interrupts a running one.
# - The tick callback returns True to continue and False to halt.
#
########################
# Interfaces:
# Public dataclasses:
# - ClockSnapshot(frame_index: int, elapsed_seconds: float, is_running: bool)
#
# Public classes:
# - class GameClock(PyQt6.QtCore.QObject)
#   - Signals:
#     - ticked(ClockSnapshot)
#     - halted()
#   - Methods:
#     - start() -> None
#     - stop() -> None
#     - is_running() -> bool
#     - frame_interval_ms() -> int
#     - snapshot() -> ClockSnapshot
#
# Inputs:
# - tick_callback: Callable[[], bool], normally SessionDriver.tick.
#
# Outputs:
# - ticked after every tick for UI subscribers, halted when the loop stops on its own.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal


@dataclass(frozen=True)
class ClockSnapshot:
    frame_index: int
    elapsed_seconds: float
    is_running: bool


class GameClock(QObject):
    ticked = pyqtSignal(object)
    halted = pyqtSignal()

    def __init__(
        self,
        tick_callback: Callable[[], bool],
        frame_interval_ms: int = 16,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._tick_callback = tick_callback
        self._frame_interval_ms = max(1, int(frame_interval_ms))
        self._frame_index = 0
        self._started_at: Optional[float] = None
        self._is_running = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    def frame_interval_ms(self) -> int:
        return int(self._frame_interval_ms)

    def is_running(self) -> bool:
        return bool(self._is_running)

    def start(self) -> None:
        if self._is_running:
            return
        self._is_running = True
        self._frame_index = 0
        self._started_at = time.monotonic()
        self._timer.start(self._frame_interval_ms)

    def stop(self) -> None:
        self._is_running = False
        self._timer.stop()

    def snapshot(self) -> ClockSnapshot:
        elapsed_seconds = 0.0
        if self._started_at is not None:
            elapsed_seconds = max(0.0, time.monotonic() - self._started_at)
        return ClockSnapshot(
            frame_index=int(self._frame_index),
            elapsed_seconds=float(elapsed_seconds),
            is_running=bool(self._is_running),
        )

    def _on_timeout(self) -> None:
        if not self._is_running:
            return

        keep_running = bool(self._tick_callback())
        self._frame_index += 1
        self.ticked.emit(self.snapshot())

        if keep_running and self._is_running:
            self._timer.start(self._frame_interval_ms)
            return

        was_running = self._is_running
        self._is_running = False
        if was_running:
            self.halted.emit()
