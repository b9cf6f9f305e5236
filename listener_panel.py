"""\
listener_panel.py

Onscreen microphone controls and live pitch read-outs.

The panel only emits requests. GameplayController decides what they mean and
pushes read-outs back through set_readout.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from presentation import ListenerReadout


class ListenerPanelWidget(QFrame):
    requestListen = pyqtSignal()
    requestStop = pyqtSignal()
    requestReset = pyqtSignal()

    def __init__(self, *, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.setObjectName("listenerPanel")
        self.setStyleSheet(
            "QFrame#listenerPanel {"
            "  background: rgba(5, 3, 19, 210);"
            "  border: 2px solid rgba(172, 228, 252, 120);"
            "  border-radius: 14px;"
            "}"
            "QLabel { color: rgba(243, 240, 252, 230); }"
        )

        self._button_listen = QPushButton("Start listening", self)
        self._button_stop = QPushButton("Stop listening", self)
        self._button_reset = QPushButton("Restart", self)
        self._button_stop.setEnabled(False)

        self._status_value = QLabel("Not listening", self)
        self._loudness_value = QLabel("-", self)
        self._frequency_value = QLabel("-", self)
        self._note_value = QLabel("-", self)
        self._range_value = QLabel("-", self)

        self._error_label = QLabel("", self)
        self._error_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self._error_label.setWordWrap(True)
        self._error_label.setStyleSheet("color: rgba(255, 120, 120, 230);")
        self._error_label.setMinimumWidth(0)
        self._error_label.setMaximumWidth(720)

        root_layout = QVBoxLayout(self)
        root_layout.setContentsMargins(12, 10, 12, 10)
        root_layout.setSpacing(8)

        buttons_row = QHBoxLayout()
        buttons_row.setSpacing(8)
        buttons_row.addWidget(self._button_listen)
        buttons_row.addWidget(self._button_stop)
        buttons_row.addWidget(self._button_reset)
        buttons_row.addStretch(1)

        readouts = QGridLayout()
        readouts.setHorizontalSpacing(16)
        for column, (caption, value_label) in enumerate(
            (
                ("Status", self._status_value),
                ("Loudness", self._loudness_value),
                ("Frequency", self._frequency_value),
                ("Note", self._note_value),
                ("Range", self._range_value),
            )
        ):
            readouts.addWidget(QLabel(caption, self), 0, column)
            readouts.addWidget(value_label, 1, column)

        root_layout.addLayout(buttons_row)
        root_layout.addLayout(readouts)
        root_layout.addWidget(self._error_label, 0)

        self._button_listen.clicked.connect(self.requestListen.emit)
        self._button_stop.clicked.connect(self.requestStop.emit)
        self._button_reset.clicked.connect(self.requestReset.emit)

    def set_readout(self, readout: ListenerReadout) -> None:
        is_listening = readout.status == "Listening"
        self._button_listen.setEnabled(not is_listening)
        self._button_stop.setEnabled(is_listening)

        self._status_value.setText(readout.status)
        self._loudness_value.setText(readout.loudness)
        self._frequency_value.setText(readout.frequency)
        self._note_value.setText(readout.note_name)
        self._range_value.setText(readout.vocal_range)
        self._error_label.setText(readout.error)
        self._error_label.setVisible(bool(readout.error))
