"""
config.py

Typed configuration loading and validation for PitchPerfect.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included for every field)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

The game is fully playable on defaults, so a missing config file is not an
error: defaults are used and the first candidate path is reported.

Config file location
- If PITCHPERFECT_CONFIG_PATH is set, that file is used.
- Otherwise PitchPerfect searches these paths in order and uses the first one that exists:
  1) ./pitchperfect_config.json (current working directory)
  2) <user config dir>/PitchPerfect/pitchperfect_config.json
  3) <user config dir>/PitchPerfect/config.json

Example config file (pitchperfect_config.json)
{
  "analyzer": {
    "gate_threshold_db": -25.0,
    "purity_threshold": 0.2
  },
  "microphone": {
    "device": null,
    "sample_rate": 48000
  },
  "game": {
    "initial_speed": 3.0,
    "obstacle_spacing": 1000
  },
  "note_player": {
    "notes_dir": "/path/to/notes"
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class AnalyzerConfig(BaseModel):
    frame_size: int = Field(default=2048, ge=64, description="Samples per analysis frame.")
    gate_threshold_db: float = Field(default=-25.0, le=0.0, description="Minimum RMS loudness in dBFS.")
    min_frequency_hz: float = Field(default=130.81, gt=0.0, description="Lowest accepted pitch (Do3).")
    max_frequency_hz: float = Field(default=265.0, gt=0.0, description="Highest accepted pitch, just above Do4.")
    purity_threshold: float = Field(default=0.2, ge=0.0, le=1.0, description="Minimum normalized autocorrelation peak.")

    @model_validator(mode="after")
    def validate_band(self) -> "AnalyzerConfig":
        if self.min_frequency_hz >= self.max_frequency_hz:
            raise ValueError("min_frequency_hz must be lower than max_frequency_hz")
        return self


class TrackerConfig(BaseModel):
    history_size: int = Field(default=5, ge=1, description="Raw detections kept for the rolling median.")


class MicrophoneConfig(BaseModel):
    device: Optional[Union[int, str]] = Field(default=None, description="sounddevice input device index or name.")
    sample_rate: Optional[int] = Field(default=None, ge=8000, description="None uses the device default rate.")

    @field_validator("device")
    @classmethod
    def normalize_device(cls, value: Optional[Union[int, str]]) -> Optional[Union[int, str]]:
        if isinstance(value, str):
            trimmed = value.strip()
            if not trimmed:
                return None
            if trimmed.isdigit():
                return int(trimmed)
            return trimmed
        return value


class GameConfig(BaseModel):
    playfield_width: float = Field(default=1200.0, gt=0.0)
    playfield_height: float = Field(default=600.0, gt=0.0)
    entity_x: float = Field(default=100.0, ge=0.0)
    entity_start_y: float = Field(default=250.0, ge=0.0)
    entity_width: float = Field(default=80.0, gt=0.0)
    entity_height: float = Field(default=80.0, gt=0.0)
    obstacle_width: float = Field(default=60.0, gt=0.0)
    gap_height: float = Field(default=100.0, gt=0.0)
    gravity: float = Field(default=0.5, ge=0.0, description="Velocity added per tick while gravity is enabled.")
    nudge_step: float = Field(default=5.0, ge=0.0, description="Pixels moved per keyboard nudge.")
    initial_speed: float = Field(default=3.0, gt=0.0, description="Scroll speed in pixels per tick.")
    obstacle_spacing: float = Field(default=1000.0, gt=0.0)
    ground_height: float = Field(default=2.0, ge=0.0)
    safe_ground_margin: float = Field(default=3.0, ge=0.0)
    note_trigger_fraction: float = Field(default=0.87, gt=0.0, le=1.0)
    song_speed_multipliers: List[float] = Field(default_factory=lambda: [1.2, 1.4, 1.6])

    @field_validator("song_speed_multipliers")
    @classmethod
    def validate_multipliers(cls, value: List[float]) -> List[float]:
        if len(value) != 3:
            raise ValueError("song_speed_multipliers must list exactly three values")
        if any(float(item) <= 0.0 for item in value):
            raise ValueError("song_speed_multipliers must be positive")
        return [float(item) for item in value]


class NotePlayerConfig(BaseModel):
    gain: float = Field(default=0.1, ge=0.0, le=1.0)
    fade_start_seconds: float = Field(default=1.5, ge=0.0)
    stop_seconds: float = Field(default=2.5, gt=0.0)
    notes_dir: Optional[str] = Field(default=None, description="Directory holding <lane>.wav files.")

    @model_validator(mode="after")
    def validate_fade(self) -> "NotePlayerConfig":
        if self.fade_start_seconds > self.stop_seconds:
            raise ValueError("fade_start_seconds must not be later than stop_seconds")
        return self


class WindowConfig(BaseModel):
    frame_interval_ms: int = Field(default=16, ge=1, le=1000)
    fullscreen: bool = Field(default=False)


class AppConfig(BaseModel):
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    microphone: MicrophoneConfig = Field(default_factory=MicrophoneConfig)
    game: GameConfig = Field(default_factory=GameConfig)
    note_player: NotePlayerConfig = Field(default_factory=NotePlayerConfig)
    window: WindowConfig = Field(default_factory=WindowConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("PitchPerfect", "PitchPerfect"))
    return [
        Path.cwd() / "pitchperfect_config.json",
        config_directory / "pitchperfect_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Tuple[Path, bool]:
    """Return (path, exists). An explicit env path must exist."""
    explicit_path_text = os.environ.get("PITCHPERFECT_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text), True

    candidates = _default_config_candidates()
    for candidate_path in candidates:
        if candidate_path.exists():
            return candidate_path, True

    return candidates[0], False


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - PITCHPERFECT_GATE_DB
    - PITCHPERFECT_INPUT_DEVICE
    - PITCHPERFECT_SAMPLE_RATE
    - PITCHPERFECT_NOTES_DIR
    - PITCHPERFECT_INITIAL_SPEED
    - PITCHPERFECT_FULLSCREEN
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    analyzer_section = ensure_nested(updated_config, "analyzer")
    microphone_section = ensure_nested(updated_config, "microphone")
    game_section = ensure_nested(updated_config, "game")
    note_player_section = ensure_nested(updated_config, "note_player")
    window_section = ensure_nested(updated_config, "window")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            return

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            return

    def override_bool(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip().lower()
        if not value_text:
            return
        truthy = {"1", "true", "yes", "on"}
        falsy = {"0", "false", "no", "off"}
        if value_text in truthy:
            target_dict[key_name] = True
        elif value_text in falsy:
            target_dict[key_name] = False

    override_float("PITCHPERFECT_GATE_DB", analyzer_section, "gate_threshold_db")
    override_string("PITCHPERFECT_INPUT_DEVICE", microphone_section, "device")
    override_int("PITCHPERFECT_SAMPLE_RATE", microphone_section, "sample_rate")
    override_float("PITCHPERFECT_INITIAL_SPEED", game_section, "initial_speed")
    override_string("PITCHPERFECT_NOTES_DIR", note_player_section, "notes_dir")
    override_bool("PITCHPERFECT_FULLSCREEN", window_section, "fullscreen")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Path]:
    if config_path is not None:
        resolved_path, exists = Path(config_path), True
    else:
        resolved_path, exists = _resolve_config_path()

    json_dict = _read_json_file_utf8(resolved_path) if exists else {}
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        raise ValueError(f"Config validation failed for {resolved_path}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Path]:
    return load_config()


def to_pretty_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path),
        "config": json.loads(to_pretty_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
