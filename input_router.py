# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for gameplay controls.
# - Translates QKeyEvent into ControlIntent values and emits a Qt signal.
#
# Design notes:
# - This must be the only keyboard control source. No duplicate key mapping elsewhere.
# - Nudges repeat while a key is held (auto repeat is accepted).
# - Reset and listen ignore auto repeat and duplicate presses while held.
# - The router never touches game state. Intents are queued by the controller and
#   applied at the start of the next simulation tick.
#
########################
# Interfaces:
# Public enums:
# - ControlIntent: NUDGE_UP, NUDGE_DOWN, RESET, LISTEN
#
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - intentTriggered(ControlIntent)
#   - Methods:
#     - handle_key_press(event: QKeyEvent) -> bool
#     - handle_key_release(event: QKeyEvent) -> bool
#     - clear_pressed_keys() -> None
#     - intent_for_key(key_code: int) -> Optional[ControlIntent]
#
# Inputs:
# - Raw QKeyEvent from the Qt event loop.
#
# Outputs:
# - ControlIntent values consumed by the gameplay controller.
#
########################

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Set

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent


class ControlIntent(str, Enum):
    NUDGE_UP = "NUDGE_UP"
    NUDGE_DOWN = "NUDGE_DOWN"
    RESET = "RESET"
    LISTEN = "LISTEN"

    @property
    def repeats(self) -> bool:
        return self in (ControlIntent.NUDGE_UP, ControlIntent.NUDGE_DOWN)


def _build_default_key_map() -> Dict[int, ControlIntent]:
    """
    Accepted keys:
      - Up / W: nudge up
      - Down / S: nudge down
      - R: reset after Game Over or Congratulations
      - Space: begin listening
    """
    key_map: Dict[int, ControlIntent] = {}

    def bind(key_constant: int, intent: ControlIntent) -> None:
        key_map[int(key_constant)] = intent

    bind(Qt.Key.Key_Up, ControlIntent.NUDGE_UP)
    bind(Qt.Key.Key_W, ControlIntent.NUDGE_UP)
    bind(Qt.Key.Key_Down, ControlIntent.NUDGE_DOWN)
    bind(Qt.Key.Key_S, ControlIntent.NUDGE_DOWN)
    bind(Qt.Key.Key_R, ControlIntent.RESET)
    bind(Qt.Key.Key_Space, ControlIntent.LISTEN)

    return key_map


class InputRouter(QObject):
    intentTriggered = pyqtSignal(object)

    def __init__(
        self,
        parent: Optional[QObject] = None,
        key_map: Optional[Dict[int, ControlIntent]] = None,
    ) -> None:
        super().__init__(parent)
        self._key_map: Dict[int, ControlIntent] = dict(key_map) if key_map is not None else _build_default_key_map()
        self._pressed_keys: Set[int] = set()

    def intent_for_key(self, key_code: int) -> Optional[ControlIntent]:
        return self._key_map.get(int(key_code))

    def handle_key_press(self, event: QKeyEvent) -> bool:
        """Returns True if this router consumed the event."""
        key_code = int(event.key())
        intent = self._key_map.get(key_code)
        if intent is None:
            return False

        if not intent.repeats:
            if event.isAutoRepeat() or key_code in self._pressed_keys:
                return True
            self._pressed_keys.add(key_code)

        self.intentTriggered.emit(intent)
        return True

    def handle_key_release(self, event: QKeyEvent) -> bool:
        key_code = int(event.key())
        if key_code not in self._key_map:
            return False
        if not event.isAutoRepeat():
            self._pressed_keys.discard(key_code)
        return True

    def clear_pressed_keys(self) -> None:
        """Called on focus loss or window deactivation."""
        self._pressed_keys.clear()

    @property
    def key_map(self) -> Dict[int, ControlIntent]:
        return dict(self._key_map)


def _run_unit_tests() -> None:
    router = InputRouter()

    assert router.intent_for_key(int(Qt.Key.Key_W)) == ControlIntent.NUDGE_UP
    assert router.intent_for_key(int(Qt.Key.Key_Up)) == ControlIntent.NUDGE_UP
    assert router.intent_for_key(int(Qt.Key.Key_S)) == ControlIntent.NUDGE_DOWN
    assert router.intent_for_key(int(Qt.Key.Key_R)) == ControlIntent.RESET
    assert router.intent_for_key(int(Qt.Key.Key_Space)) == ControlIntent.LISTEN
    assert router.intent_for_key(int(Qt.Key.Key_A)) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("input_router.py: ok")
