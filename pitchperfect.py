"""
pitchperfect.py

Real entrypoint that launches the full application.

Integration
- Parses the command line and configures logging
- Loads config and paths
- Creates QApplication
- Builds the gameplay pipeline and instantiates the controller and main window
- Starts the Qt event loop

Listening starts from the panel button or the Space key. Nothing touches the
microphone before that.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import AppConfig, load_config


logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(description="PitchPerfect: steer by singing")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to a JSON config file.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    argument_parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default WARNING).",
    )
    argument_parser.add_argument("--list-devices", action="store_true", help="Print audio devices and exit.")
    argument_parser.add_argument("--input-device", default=None, help="Input device index or name.")
    return argument_parser


def _apply_overrides(app_config: AppConfig, parsed_args: argparse.Namespace) -> AppConfig:
    updates = {}
    if parsed_args.input_device is not None:
        updates["microphone"] = app_config.microphone.model_validate(
            {**app_config.microphone.model_dump(), "device": parsed_args.input_device}
        )
    if parsed_args.fullscreen:
        updates["window"] = app_config.window.model_copy(update={"fullscreen": True})
    if not updates:
        return app_config
    return app_config.model_copy(update=updates)


def main(argv: Optional[List[str]] = None) -> int:
    parsed_args = build_argument_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, parsed_args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_args.list_devices:
        from audio_input import AudioInputError, describe_input_devices

        try:
            print(describe_input_devices())
        except AudioInputError as exception:
            print(str(exception), file=sys.stderr)
            return 1
        return 0

    try:
        app_config, config_path = load_config(parsed_args.config)
    except (OSError, ValueError) as exception:
        print(str(exception), file=sys.stderr)
        return 2
    app_config = _apply_overrides(app_config, parsed_args)
    logger.info("Using config %s", config_path)

    from PyQt6.QtWidgets import QApplication

    from gameplay_harness import GameplayController
    from listener_panel import ListenerPanelWidget
    from main_window import MainWindow
    from overlay_renderer import GameplayOverlayWidget

    qt_application = QApplication(sys.argv)

    main_window = MainWindow(config_path=config_path)
    overlay_widget = GameplayOverlayWidget(parent=main_window)
    listener_panel = ListenerPanelWidget(parent=main_window)
    main_window.set_gameplay_overlay_widget(overlay_widget)
    main_window.set_listener_panel_widget(listener_panel)

    controller = GameplayController(
        config=app_config,
        overlay_widget=overlay_widget,
        panel=listener_panel,
        parent=main_window,
    )
    main_window.installEventFilter(controller)
    overlay_widget.installEventFilter(controller)
    main_window.closing.connect(controller.shutdown)

    main_window.resize(1280, 820)
    main_window.show()
    if app_config.window.fullscreen:
        main_window.showFullScreen()

    overlay_widget.setFocus()
    return int(qt_application.exec())


if __name__ == "__main__":
    raise SystemExit(main())
