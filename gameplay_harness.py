# -*- coding: utf-8 -*-
########################
# gameplay_harness.py
########################
# Purpose:
# - Gameplay pipeline wiring and a standalone harness window for local testing.
# - Integrates MicrophoneInput + PitchTracker + GameSimulation + NotePlayer + SessionDriver
#   + GameClock + InputRouter + GameplayOverlayWidget + ListenerPanelWidget.
#
# Design notes:
# - GameplayController is reused by MainWindow, so the harness and the app share the
#   same event filter, frame loop and control handlers.
# - GameClock drives SessionDriver.tick once per frame and stops when tick() halts.
# - All keyboard and button input becomes queued intents on the simulation.
#   Nothing here mutates game state directly.
# - build_pipeline() is Qt free so the chunk tests can run headless.
#
########################
# Interfaces:
# Public dataclasses:
# - Pipeline(analyzer, audio_input, pitch_tracker, sequencer, simulation, note_player, driver)
#
# Public classes:
# - class GameplayController(PyQt6.QtCore.QObject)
#   - begin_listening() -> None
#   - stop_listening() -> None
#   - request_reset() -> None
#   - refresh_views() -> None
# - class GameplayHarnessWindow(PyQt6.QtWidgets.QMainWindow)
#
# Public functions:
# - build_pipeline(config: AppConfig, *, audio_input: Optional[AudioInput] = None,
#                  audio_output: Optional[AudioOutput] = None) -> Pipeline
# - main() -> int
#
# Inputs:
# - Microphone audio, keyboard control keys, listener panel buttons.
#
# Outputs:
# - Visible gameplay overlay, listener read-outs and note playback.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import argparse
import logging
from typing import Any, Optional

from audio_input import AudioInput, MicrophoneInput
from config import AppConfig
from game_simulation import GameSimulation
from lanes import LANES
from melody_sequencer import MelodySequencer
from note_player import AudioOutput, NotePlayer, SoundDeviceOutput
from pitch_tracker import PitchTracker
from session_driver import SessionDriver
from signal_analyzer import SignalAnalyzer


logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    analyzer: SignalAnalyzer
    audio_input: Optional[AudioInput]
    pitch_tracker: PitchTracker
    sequencer: MelodySequencer
    simulation: GameSimulation
    note_player: NotePlayer
    driver: SessionDriver


def build_pipeline(
    config: AppConfig,
    *,
    audio_input: Optional[AudioInput] = None,
    audio_output: Optional[AudioOutput] = None,
    load_assets: bool = True,
) -> Pipeline:
    analyzer = SignalAnalyzer(config.analyzer)
    if audio_input is None:
        audio_input = MicrophoneInput(
            frame_size=config.analyzer.frame_size,
            device=config.microphone.device,
            sample_rate=config.microphone.sample_rate,
        )
    pitch_tracker = PitchTracker(
        analyzer,
        audio_input=audio_input,
        history_size=config.tracker.history_size,
    )
    sequencer = MelodySequencer(speed_multipliers=config.game.song_speed_multipliers)
    simulation = GameSimulation(config.game, sequencer)

    note_player = NotePlayer(audio_output if audio_output is not None else SoundDeviceOutput(), config.note_player)
    if load_assets:
        results = note_player.load_assets(LANES, config.note_player.notes_dir)
        missing = sorted(name for name, loaded in results.items() if not loaded)
        if missing:
            logger.warning("Notes without audio: %s", ", ".join(missing))

    driver = SessionDriver(pitch_tracker, simulation, note_player)
    return Pipeline(
        analyzer=analyzer,
        audio_input=audio_input,
        pitch_tracker=pitch_tracker,
        sequencer=sequencer,
        simulation=simulation,
        note_player=note_player,
        driver=driver,
    )


class GameplayController:  # QObject subclass, defined lazily inside Qt import block
    pass


def _create_controller_class():
    from PyQt6.QtCore import QEvent, QObject, pyqtSignal
    from PyQt6.QtGui import QKeyEvent

    import game_clock
    import input_router
    import listener_panel
    import overlay_renderer
    import presentation

    class _GameplayController(QObject):
        """Reusable gameplay pipeline controller shared by the harness and MainWindow."""

        listeningChanged = pyqtSignal(bool)

        def __init__(
            self,
            *,
            config: AppConfig,
            overlay_widget: overlay_renderer.GameplayOverlayWidget,
            panel: Optional[listener_panel.ListenerPanelWidget] = None,
            pipeline: Optional[Pipeline] = None,
            parent: Optional[QObject] = None,
        ) -> None:
            super().__init__(parent)
            self._config = config
            self._pipeline = pipeline if pipeline is not None else build_pipeline(config)
            self._driver = self._pipeline.driver

            self._overlay = overlay_widget
            self._overlay.set_story_song_names([song.name for song in self._pipeline.sequencer.story_songs])

            self._clock = game_clock.GameClock(self._driver.tick, config.window.frame_interval_ms, parent=self)
            self._clock.ticked.connect(self._on_clock_ticked)
            self._clock.halted.connect(self.refresh_views)

            self._router = input_router.InputRouter(parent=self)
            self._router.intentTriggered.connect(self._on_intent)

            self._panel: Optional[listener_panel.ListenerPanelWidget] = None
            if panel is not None:
                self.attach_panel(panel)

            self.refresh_views()

        @property
        def pipeline(self) -> Pipeline:
            return self._pipeline

        @property
        def driver(self) -> SessionDriver:
            return self._driver

        def attach_panel(self, panel: listener_panel.ListenerPanelWidget) -> None:
            self._panel = panel
            panel.requestListen.connect(self.begin_listening)
            panel.requestStop.connect(self.stop_listening)
            panel.requestReset.connect(self.request_reset)
            self.refresh_views()

        # -----------------
        # Event filter (shared)
        # -----------------

        def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
            if event.type() == QEvent.Type.KeyPress and isinstance(event, QKeyEvent):
                if self._router.handle_key_press(event):
                    return True
            if event.type() == QEvent.Type.KeyRelease and isinstance(event, QKeyEvent):
                if self._router.handle_key_release(event):
                    return True
            if event.type() in (QEvent.Type.WindowDeactivate, QEvent.Type.FocusOut):
                self._router.clear_pressed_keys()
            return super().eventFilter(watched, event)

        # -----------------
        # Core operations
        # -----------------

        def begin_listening(self) -> None:
            if self._driver.is_listening:
                return
            message = self._driver.begin_listening()
            if message is None:
                self._clock.start()
                self.listeningChanged.emit(True)
            self.refresh_views()

        def stop_listening(self) -> None:
            if not self._driver.is_listening:
                return
            self._clock.stop()
            self._driver.stop_listening()
            self.listeningChanged.emit(False)
            self.refresh_views()

        def request_reset(self) -> None:
            self._driver.request_reset()

        def shutdown(self) -> None:
            self.stop_listening()

        def refresh_views(self) -> None:
            observation = self._driver.latest_observation
            self._overlay.set_listening(self._driver.is_listening)
            self._overlay.set_observation(observation)
            self._overlay.set_snapshot(self._driver.snapshot())
            if self._panel is not None:
                self._panel.set_readout(
                    presentation.listener_readout(
                        observation,
                        is_listening=self._driver.is_listening,
                        gate_threshold_db=self._config.analyzer.gate_threshold_db,
                        last_error=self._driver.last_error,
                    )
                )

        # -----------------
        # Callbacks
        # -----------------

        def _on_clock_ticked(self, _snapshot: object) -> None:
            self.refresh_views()

        def _on_intent(self, intent: input_router.ControlIntent) -> None:
            if intent == input_router.ControlIntent.NUDGE_UP:
                self._driver.nudge(-1)
            elif intent == input_router.ControlIntent.NUDGE_DOWN:
                self._driver.nudge(1)
            elif intent == input_router.ControlIntent.RESET:
                self.request_reset()
            elif intent == input_router.ControlIntent.LISTEN:
                self.begin_listening()

    return _GameplayController


GameplayController = _create_controller_class()


class GameplayHarnessWindow:
    pass


def _create_window_class():
    from PyQt6.QtWidgets import QMainWindow, QVBoxLayout, QWidget

    import listener_panel
    import overlay_renderer

    class _GameplayHarnessWindow(QMainWindow):
        def __init__(self, *, config: AppConfig) -> None:
            super().__init__()
            self.setWindowTitle("PitchPerfect Gameplay Harness")

            root_widget = QWidget(self)
            root_layout = QVBoxLayout(root_widget)

            self._overlay = overlay_renderer.GameplayOverlayWidget(parent=root_widget)
            self._panel = listener_panel.ListenerPanelWidget(parent=root_widget)
            root_layout.addWidget(self._overlay, stretch=1)
            root_layout.addWidget(self._panel)
            self.setCentralWidget(root_widget)

            self._controller = GameplayController(
                config=config,
                overlay_widget=self._overlay,
                panel=self._panel,
                parent=self,
            )
            self.installEventFilter(self._controller)

        @property
        def controller(self) -> Any:
            return self._controller

        def closeEvent(self, event) -> None:  # type: ignore[override]
            self._controller.shutdown()
            super().closeEvent(event)

    return _GameplayHarnessWindow


GameplayHarnessWindow = _create_window_class()


def _run_chunk_tests() -> None:
    import numpy as np

    from config import AppConfig
    from gameplay_models import SessionState
    from lanes import lane_by_name
    from signal_analyzer import AudioFrame

    class ToneInput:
        """Scripted microphone: a pure tone at the current frequency, or silence."""

        def __init__(self, sample_rate: float = 44100.0, frame_size: int = 2048) -> None:
            self.sample_rate = sample_rate
            self.frame_size = frame_size
            self.frequency_hz: Optional[float] = None
            self.is_open = False

        def open(self) -> None:
            self.is_open = True

        def close(self) -> None:
            self.is_open = False

        def read_frame(self) -> Optional[AudioFrame]:
            if not self.is_open:
                return None
            if self.frequency_hz is None:
                return AudioFrame(samples=np.zeros(self.frame_size), sample_rate=self.sample_rate)
            t = np.arange(self.frame_size, dtype=np.float64) / self.sample_rate
            return AudioFrame(
                samples=0.5 * np.sin(2.0 * np.pi * self.frequency_hz * t),
                sample_rate=self.sample_rate,
            )

    class NullOutput:
        is_running = False

        def decode(self, path):
            raise NotImplementedError

        def start(self, buffer, sample_rate) -> None:
            pass

        def stop(self) -> None:
            pass

        def resume(self) -> None:
            pass

        def suspend(self) -> None:
            pass

    tone_input = ToneInput()
    pipeline = build_pipeline(AppConfig(), audio_input=tone_input, audio_output=NullOutput(), load_assets=False)
    driver = pipeline.driver
    simulation = pipeline.simulation

    assert driver.tick() is False
    assert driver.begin_listening() is None
    assert driver.tick() is True
    assert simulation.state == SessionState.RUNNING

    # Sing the warm-up scale slightly sharp so Do3 clears the low band edge.
    for _ in range(6000):
        upcoming = [obstacle for obstacle in simulation.obstacles if not obstacle.passed]
        if upcoming:
            tone_input.frequency_hz = upcoming[0].lane.frequency_hz + 1.0
        driver.tick()
        if simulation.score >= 8 or simulation.state != SessionState.RUNNING:
            break
    assert simulation.state == SessionState.RUNNING
    assert simulation.score == 8
    assert driver.latest_observation.has_pitch

    # Holding the top lane runs the entity into the first song obstacle.
    tone_input.frequency_hz = lane_by_name("Do4").frequency_hz
    for _ in range(6000):
        driver.tick()
        if simulation.state != SessionState.RUNNING:
            break
    assert simulation.state == SessionState.FAILED
    assert pipeline.sequencer.song_cursor == 1

    assert driver.request_reset() is True
    driver.tick()
    assert simulation.state == SessionState.IDLE
    driver.tick()
    assert simulation.state == SessionState.RUNNING

    driver.stop_listening()
    assert simulation.state == SessionState.IDLE
    assert driver.tick() is False


def _run_gui() -> int:
    from PyQt6.QtWidgets import QApplication
    import sys

    from config import load_config

    config, _config_path = load_config()
    app = QApplication(sys.argv)
    window = GameplayHarnessWindow(config=config)
    window.resize(1240, 820)
    window.show()
    return int(app.exec())


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--run-tests",
        action="store_true",
        help="Run pure pipeline tests (no Qt window, no sound device).",
    )
    return parser


def main() -> int:
    args = build_argument_parser().parse_args()
    if args.run_tests:
        _run_chunk_tests()
        print("Chunk tests passed.")
        return 0
    return _run_gui()


if __name__ == "__main__":
    raise SystemExit(main())
