# -*- coding: utf-8 -*-
########################
# paths.py
########################
# Purpose:
# - Central filesystem path helpers for the app.
# - Defines where note clips and sprite images live relative to the project root.
#
# Design notes:
# - Keep path derivation consistent across modules.
# - No Qt usage. Return pathlib.Path only.
#
########################
# Interfaces:
# Public functions:
# - app_root_dir() -> pathlib.Path
# - assets_dir() -> pathlib.Path
# - notes_dir(override: Optional[str] = None) -> pathlib.Path
# - images_dir() -> pathlib.Path
# - note_asset_path(lane_name: str, override: Optional[str] = None) -> pathlib.Path
#
# Inputs:
# - The location of this module, or an explicit notes directory from configuration.
#
# Outputs:
# - Paths used by note_player.py and overlay_renderer.py.
#
########################

from __future__ import annotations

from pathlib import Path
from typing import Optional


def app_root_dir() -> Path:
    """Return the application root directory (the directory holding this module)."""
    return Path(__file__).resolve().parent


def assets_dir() -> Path:
    """Return the bundled assets root directory (not created automatically)."""
    return app_root_dir() / "assets"


def notes_dir(override: Optional[str] = None) -> Path:
    """Return the directory holding one <lane name>.wav clip per lane."""
    if override:
        return Path(override).expanduser()
    return assets_dir() / "notes"


def images_dir() -> Path:
    return assets_dir() / "images"


def note_asset_path(lane_name: str, override: Optional[str] = None) -> Path:
    return notes_dir(override) / f"{lane_name}.wav"
