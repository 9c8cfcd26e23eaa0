"""
config.py

Typed configuration loading and validation for Tapfall.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- Run with defaults when no config file exists
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If TAPFALL_CONFIG_PATH is set, that file is used (and must exist).
- Otherwise Tapfall searches these paths in order and uses the first one that exists:
  1) ./tapfall_config.json (current working directory)
  2) <user config dir>/Tapfall/Tapfall/tapfall_config.json
  If none exists the built-in defaults are used.

Example config file (tapfall_config.json)
{
  "track": {
    "tempo_bpm": 105.0,
    "seed": 1234
  },
  "playfield": {
    "lane_count": 5,
    "lane_spacing_ratio": 0.16,
    "judgement_ratio": 0.8,
    "travel_duration_seconds": 1.5,
    "note_radius_pixels": 20.0,
    "frame_interval_ms": 16
  },
  "judge": {
    "tap_tolerance_seconds": 0.2
  },
  "session": {
    "wait_for_song_loaded": false
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator


class TrackConfig(BaseModel):
    tempo_bpm: float = Field(default=105.0, gt=0.0, description="Fixed tempo of the track in beats per minute.")
    seed: Optional[int] = Field(default=None, description="Lane seed. Omit for a fresh random beatmap per session.")


class PlayfieldConfig(BaseModel):
    lane_count: int = Field(default=5, ge=1, le=5, description="Number of vertical lanes. The keyboard map binds five.")
    lane_spacing_ratio: float = Field(default=0.16, gt=0.0, le=1.0, description="Lane width as a fraction of screen width.")
    judgement_ratio: float = Field(
        default=0.8,
        gt=0.0,
        lt=1.0,
        description="Judgement line height as a fraction of screen height. Also sets where notes are at their tap time.",
    )
    travel_duration_seconds: float = Field(default=1.5, gt=0.0, description="Seconds a note is on screen.")
    note_radius_pixels: float = Field(default=20.0, gt=0.0)
    frame_interval_ms: int = Field(default=16, ge=0, le=1000, description="Delay before re-arming the next frame.")


class JudgeConfig(BaseModel):
    tap_tolerance_seconds: float = Field(
        default=0.2,
        ge=0.0,
        description="Maximum distance between a tap and a note's tap time for the tap to claim it.",
    )


class SessionConfig(BaseModel):
    wait_for_song_loaded: bool = Field(
        default=False,
        description="Defer starting the track clock until the audio subsystem reports the song is loaded.",
    )


class AppConfig(BaseModel):
    track: TrackConfig = Field(default_factory=TrackConfig)
    playfield: PlayfieldConfig = Field(default_factory=PlayfieldConfig)
    judge: JudgeConfig = Field(default_factory=JudgeConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)

    @field_validator("playfield")
    @classmethod
    def validate_lanes_fit_screen(cls, value: PlayfieldConfig) -> PlayfieldConfig:
        if value.lane_count * value.lane_spacing_ratio > 1.0 + 1e-9:
            raise ValueError("lane_count * lane_spacing_ratio must not exceed 1.0")
        return value


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("Tapfall", "Tapfall"))
    return [
        Path.cwd() / "tapfall_config.json",
        config_directory / "tapfall_config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("TAPFALL_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


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
    - TAPFALL_TEMPO_BPM
    - TAPFALL_SEED
    - TAPFALL_LANE_COUNT
    - TAPFALL_JUDGEMENT_RATIO
    - TAPFALL_TRAVEL_SECONDS
    - TAPFALL_TAP_TOLERANCE_SECONDS
    - TAPFALL_WAIT_FOR_SONG_LOADED
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            return section
        section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    track_section = ensure_nested(updated_config, "track")
    playfield_section = ensure_nested(updated_config, "playfield")
    judge_section = ensure_nested(updated_config, "judge")
    session_section = ensure_nested(updated_config, "session")

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

    override_float("TAPFALL_TEMPO_BPM", track_section, "tempo_bpm")
    override_int("TAPFALL_SEED", track_section, "seed")

    override_int("TAPFALL_LANE_COUNT", playfield_section, "lane_count")
    override_float("TAPFALL_JUDGEMENT_RATIO", playfield_section, "judgement_ratio")
    override_float("TAPFALL_TRAVEL_SECONDS", playfield_section, "travel_duration_seconds")

    override_float("TAPFALL_TAP_TOLERANCE_SECONDS", judge_section, "tap_tolerance_seconds")

    override_bool("TAPFALL_WAIT_FOR_SONG_LOADED", session_section, "wait_for_song_loaded")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict: Dict[str, Any] = {}
    if resolved_path is not None:
        json_dict = _read_json_file_utf8(resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source = str(resolved_path) if resolved_path is not None else "defaults and environment"
        raise ValueError(f"Config validation failed for {source}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
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
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
