"""Thin client for the two Steam Web API endpoints the watcher needs."""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import requests
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from .config import WatcherSettings
from .errors import MalformedResponseError, TransportError
from .models import Snapshot, Title

logger = logging.getLogger(__name__)

RECENT_GAMES_PATH = "/IPlayerService/GetRecentlyPlayedGames/v0001/"
PLAYER_SUMMARIES_PATH = "/ISteamUser/GetPlayerSummaries/v0002/"

_BODY_PREVIEW_CHARS = 300


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RecentGame(_Payload):
    appid: StrictInt = Field(ge=0)
    name: StrictStr
    playtime_forever: StrictInt = Field(ge=0)


class RecentGamesResponse(_Payload):
    # The upstream drops "games" entirely when nothing was played recently.
    games: list[RecentGame] = Field(default_factory=list)


class RecentGamesEnvelope(_Payload):
    response: RecentGamesResponse


class Player(_Payload):
    personaname: StrictStr


class PlayerSummariesResponse(_Payload):
    players: list[Player]


class PlayerSummariesEnvelope(_Payload):
    response: PlayerSummariesResponse


EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)


class SteamClient:
    """Issues read-only requests; retries belong to the caller."""

    def __init__(
        self,
        api_key: str,
        settings: Optional[WatcherSettings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self.settings = settings or WatcherSettings()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "playtime-watcher/0.1",
            }
        )

    def fetch_profile(self, remote_id: str) -> str:
        """Return the persona name of ``remote_id``."""
        envelope = self._get(
            PLAYER_SUMMARIES_PATH,
            {"steamids": remote_id},
            PlayerSummariesEnvelope,
        )
        players = envelope.response.players
        if not players:
            raise MalformedResponseError(
                f"response.players is empty for account {remote_id[:5]}..."
            )
        return players[0].personaname

    def fetch_recent_titles(self, remote_id: str) -> Snapshot:
        """Return the recently played titles of ``remote_id`` as a snapshot."""
        envelope = self._get(
            RECENT_GAMES_PATH,
            {"steamid": remote_id},
            RecentGamesEnvelope,
        )
        titles = [
            Title(
                id=game.appid,
                name=game.name,
                total_playtime_minutes=game.playtime_forever,
            )
            for game in envelope.response.games
        ]
        try:
            return Snapshot(titles)
        except ValueError as exc:
            raise MalformedResponseError(f"response.games: {exc}") from exc

    def close(self) -> None:
        self.session.close()

    def _get(
        self,
        path: str,
        params: dict[str, str],
        model: type[EnvelopeT],
    ) -> EnvelopeT:
        url = f"{self.settings.base_url}{path}"
        query = {"key": self._api_key, "format": "json", **params}
        timeout = self.settings.request_timeout.total_seconds()
        logger.debug("GET %s params=%s", path, sorted(params))
        try:
            response = self.session.get(url, params=query, timeout=timeout)
        except requests.RequestException as exc:
            raise TransportError(f"GET {path} failed: {exc}") from exc

        if not response.ok:
            body = response.text
            raise MalformedResponseError(
                f"GET {path} returned HTTP {response.status_code}: {_preview(body)!r}",
                body=body,
            )

        try:
            data: Any = response.json()
        except ValueError as exc:
            body = response.text
            raise MalformedResponseError(
                f"GET {path} returned a non-JSON body: {_preview(body)!r}",
                body=body,
            ) from exc

        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"GET {path} returned unexpected JSON: {describe_validation_error(exc)}",
                body=response.text,
            ) from exc


def describe_validation_error(exc: ValidationError) -> str:
    """Summarise a validation error as ``path: missing`` / ``path: wrong type`` items."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        if error["type"] == "missing":
            problems.append(f"{location}: missing")
        elif error["type"].endswith("_type"):
            problems.append(f"{location}: wrong type ({error['msg']})")
        else:
            problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


def _preview(body: str) -> str:
    body = body.strip()
    if len(body) <= _BODY_PREVIEW_CHARS:
        return body
    return body[:_BODY_PREVIEW_CHARS] + "..."
