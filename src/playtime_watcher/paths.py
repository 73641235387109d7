"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "PlaytimeWatcher"
APP_AUTHOR = "PlaytimeWatcher"


def get_config_dir() -> Path:
    """Return the directory holding the config file and the API key file."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    return Path(dirs.user_config_path)


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


def get_api_key_path() -> Path:
    return get_config_dir() / "api_key"
