from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AWSSSH_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/awsssh/config.yaml")


@dataclass(slots=True, frozen=True)
class Settings:
    ssh_user: str = "ec2-user"
    session_name: str = "asw_ssh"
    picker_height: str = "40%"
    keep_window_open: bool = True


DEFAULT_SETTINGS = Settings()


def settings_path(environ: Mapping[str, str]) -> Path:
    configured = environ.get(CONFIG_ENV_VAR)
    if configured:
        return Path(configured).expanduser()
    home = environ.get("HOME")
    if home:
        return Path(home) / ".config" / "awsssh" / "config.yaml"
    return DEFAULT_CONFIG_PATH.expanduser()


def load_settings(config_path: str | Path | None = None) -> Settings:
    path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH.expanduser()
    if not path.is_file():
        return DEFAULT_SETTINGS

    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Could not parse settings file {path}: {error}") from error
    logger.debug("Loaded settings from %s", path)

    return Settings(
        ssh_user=_coerce_text(_safe_mapping_get(loaded, "ssh_user"), DEFAULT_SETTINGS.ssh_user),
        session_name=_coerce_text(_safe_mapping_get(loaded, "session_name"), DEFAULT_SETTINGS.session_name),
        picker_height=_coerce_text(_safe_mapping_get(loaded, "picker_height"), DEFAULT_SETTINGS.picker_height),
        keep_window_open=_coerce_bool(
            _safe_mapping_get(loaded, "keep_window_open"),
            DEFAULT_SETTINGS.keep_window_open,
        ),
    )


def _coerce_text(value: Any, fallback: str) -> str:
    if value is None:
        return fallback
    text = str(value).strip()
    return text or fallback


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    return fallback


def _safe_mapping_get(mapping: Any, key: str, fallback: Any = None) -> Any:
    try:
        return mapping[key]
    except (KeyError, TypeError):
        return fallback
