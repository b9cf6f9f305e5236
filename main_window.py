# -*- coding: utf-8 -*-
########################
# main_window.py
########################
# Purpose:
# - Primary Qt window and UI host.
# - Owns its menus and local window behaviors, and hosts the gameplay overlay and the
#   listener panel.
#
# Design notes:
# - MainWindow does not decide gameplay. GameplayController is installed as an event
#   filter by the entrypoint and owns all control keys.
# - MainWindow only handles window keys: F11 toggles fullscreen, Escape leaves it.
#
########################
# Interfaces:
# Public classes:
# - class MainWindow(PyQt6.QtWidgets.QMainWindow)
#   - UI hosting:
#     - set_gameplay_overlay_widget(widget: Optional[QWidget]) -> None
#     - set_listener_panel_widget(widget: Optional[QWidget]) -> None
#     - set_listener_panel_visible(is_visible: bool) -> None
#   - Menu actions:
#     - on_action_fullscreen_toggle(), on_action_preferences(), on_action_exit()
#
# Signals:
# - closing()
#
# Inputs:
# - QKeyEvent and menu actions.
#
# Outputs:
# - Manages Qt widgets.
#
########################
# Unit Tests:
# - Keep as manual UI smoke:
#   - python pitchperfect.py
# - Prefer gameplay_harness --run-tests for behaviors, since MainWindow should stay thin.
########################

from __future__ import annotations

from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt, QUrl, pyqtSignal
from PyQt6.QtGui import QAction, QDesktopServices, QKeyEvent, QKeySequence
from PyQt6.QtWidgets import QMainWindow, QSizePolicy, QVBoxLayout, QWidget


THEME_BACKGROUND = "#050313"


class MainWindow(QMainWindow):
    closing = pyqtSignal()

    def __init__(self, *, config_path: Optional[Path] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("PitchPerfect")
        self.setStyleSheet(f"QMainWindow {{ background: {THEME_BACKGROUND}; }}")

        self._config_path = config_path

        central_widget = QWidget(self)
        self._root_layout = QVBoxLayout(central_widget)
        self._root_layout.setContentsMargins(8, 8, 8, 8)
        self._root_layout.setSpacing(8)
        self.setCentralWidget(central_widget)

        self._gameplay_overlay_widget: Optional[QWidget] = None
        self._listener_panel_widget: Optional[QWidget] = None

        self._build_menus()

    # -----------------
    # UI hosting
    # -----------------

    def set_gameplay_overlay_widget(self, widget: Optional[QWidget]) -> None:
        if self._gameplay_overlay_widget is not None:
            self._root_layout.removeWidget(self._gameplay_overlay_widget)
            self._gameplay_overlay_widget.setParent(None)
        self._gameplay_overlay_widget = widget
        if widget is not None:
            widget.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
            self._root_layout.insertWidget(0, widget, 1)

    def set_listener_panel_widget(self, widget: Optional[QWidget]) -> None:
        if self._listener_panel_widget is not None:
            self._root_layout.removeWidget(self._listener_panel_widget)
            self._listener_panel_widget.setParent(None)
        self._listener_panel_widget = widget
        if widget is not None:
            self._root_layout.addWidget(widget, 0)

    def set_listener_panel_visible(self, is_visible: bool) -> None:
        if self._listener_panel_widget is not None:
            self._listener_panel_widget.setVisible(bool(is_visible))

    # -----------------
    # Menu actions
    # -----------------

    def on_action_fullscreen_toggle(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()

    def on_action_preferences(self) -> None:
        if self._config_path is None:
            return
        QDesktopServices.openUrl(QUrl.fromLocalFile(str(self._config_path)))

    def on_action_exit(self) -> None:
        self.close()

    # -----------------
    # Internal wiring
    # -----------------

    def _build_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        preferences_action = QAction("&Preferences", self)
        preferences_action.triggered.connect(self.on_action_preferences)
        file_menu.addAction(preferences_action)

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.on_action_exit)
        file_menu.addAction(exit_action)

        view_menu = self.menuBar().addMenu("&View")
        fullscreen_action = QAction("&Full Screen", self)
        fullscreen_action.triggered.connect(self.on_action_fullscreen_toggle)
        view_menu.addAction(fullscreen_action)

    def keyPressEvent(self, event: Optional[QKeyEvent]) -> None:
        if event is None:
            return

        if event.key() == Qt.Key.Key_Escape:
            if self.isFullScreen():
                self.showNormal()
                event.accept()
                return

        if event.key() == Qt.Key.Key_F11:
            self.on_action_fullscreen_toggle()
            event.accept()
            return

        super().keyPressEvent(event)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.closing.emit()
        super().closeEvent(event)
