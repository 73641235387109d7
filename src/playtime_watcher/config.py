"""Configuration models and helpers for the playtime watcher."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Optional, Sequence

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .models import Account, validate_account_id
from .paths import get_api_key_path

API_KEY_ENV_VAR = "STEAM_API_KEY"
DEFAULT_BASE_URL = "https://api.steampowered.com"

AccountEntry = tuple[str, Optional[str]]


@dataclass(slots=True)
class WatcherSettings:
    """Runtime configuration shared by every account watcher."""

    min_interval: timedelta = timedelta(seconds=60)
    max_interval: timedelta = timedelta(seconds=120)
    request_timeout: timedelta = timedelta(seconds=20)
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_intervals(
        cls,
        min_seconds: float,
        max_seconds: float,
        timeout_seconds: float | None = None,
        base_url: str | None = None,
    ) -> "WatcherSettings":
        if min_seconds <= 0 or max_seconds <= 0:
            raise ConfigurationError("Polling intervals must be positive.")
        if min_seconds > max_seconds:
            raise ConfigurationError(
                f"Minimum interval ({min_seconds}s) exceeds maximum interval ({max_seconds}s)."
            )
        timeout = timeout_seconds if timeout_seconds is not None else 20.0
        if timeout <= 0:
            raise ConfigurationError("Request timeout must be positive.")
        return cls(
            min_interval=timedelta(seconds=min_seconds),
            max_interval=timedelta(seconds=max_seconds),
            request_timeout=timedelta(seconds=timeout),
            base_url=(base_url or DEFAULT_BASE_URL).rstrip("/"),
        )


class AccountConfig(BaseModel):
    id: str
    alias: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class WatchConfig(BaseModel):
    """Contents of the JSON config file."""

    api_key_file: Optional[Path] = None
    min_interval_seconds: float = Field(default=60.0, gt=0)
    max_interval_seconds: float = Field(default=120.0, gt=0)
    accounts: list[AccountConfig] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def account_entries(self) -> list[AccountEntry]:
        return [(entry.id.strip(), _clean_alias(entry.alias)) for entry in self.accounts]


def load_config_file(path: Path) -> WatchConfig:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {exc}") from exc
    try:
        return WatchConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Config file {path} is invalid:\n{exc}") from exc


def parse_user_ids(value: str) -> list[AccountEntry]:
    """Parse ``"id[:alias],id[:alias]"`` as given on the command line."""
    entries: list[AccountEntry] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        remote_id, _, alias = item.partition(":")
        entries.append((remote_id.strip(), _clean_alias(alias)))
    if not entries:
        raise ConfigurationError("--user-ids did not contain any account id.")
    return entries


def build_accounts(entries: Iterable[AccountEntry], api_key: str) -> list[Account]:
    """Validate every id up front so a bad entry stops startup as a whole."""
    entries = list(entries)
    seen: set[str] = set()
    for remote_id, _ in entries:
        validate_account_id(remote_id)
        if remote_id in seen:
            raise ConfigurationError(f"Account id {remote_id} is listed more than once.")
        seen.add(remote_id)
    return [
        Account(remote_id=remote_id, api_key=api_key, display_label=alias)
        for remote_id, alias in entries
    ]


def resolve_api_key(candidates: Sequence[Optional[Path]] = ()) -> str:
    """Find the API key.

    Explicit key files win, then ``STEAM_API_KEY`` (``.env`` is honoured),
    then the ``api_key`` file in the user config directory.
    """
    for path in candidates:
        if path is not None:
            return _read_key_file(path)

    load_dotenv(find_dotenv(usecwd=True))
    from_env = os.getenv(API_KEY_ENV_VAR, "").strip()
    if from_env:
        return from_env

    default_path = get_api_key_path()
    if default_path.exists():
        return _read_key_file(default_path)

    raise ConfigurationError(
        f"No API key found. Pass --api-key, set {API_KEY_ENV_VAR}, "
        f"or write the key to {default_path}."
    )


def _read_key_file(path: Path) -> str:
    try:
        key = path.expanduser().read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read API key file {path}: {exc}") from exc
    if not key:
        raise ConfigurationError(f"API key file {path} is empty.")
    return key


def _clean_alias(alias: Optional[str]) -> Optional[str]:
    if alias is None:
        return None
    alias = alias.strip()
    return alias or None
