from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Union

import pytest
import requests

from playtime_watcher.config import WatcherSettings
from playtime_watcher.models import Account, Snapshot, Title

ACCOUNT_A = "76561198000000001"
ACCOUNT_B = "76561198000000002"
API_KEY = "test-key"


def snapshot(*entries: tuple[int, str, int]) -> Snapshot:
    return Snapshot(Title(id=i, name=n, total_playtime_minutes=m) for i, n, m in entries)


def make_response(
    payload: Any = None,
    *,
    status: int = 200,
    text: Optional[str] = None,
    url: str = "https://api.example.test/",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.url = url
    response.encoding = "utf-8"
    body = text if text is not None else json.dumps(payload)
    response._content = body.encode("utf-8")
    return response


class FakeSession:
    """Stands in for ``requests.Session``; replays queued responses or errors."""

    def __init__(self, replies: Iterable[Union[requests.Response, Exception]] = ()) -> None:
        self.headers: dict[str, str] = {}
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, params: Optional[dict] = None, timeout: Optional[float] = None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


class ScriptedClient:
    """Library client returning queued snapshots or raising queued errors."""

    def __init__(
        self,
        results: Iterable[Union[Snapshot, Exception]] = (),
        persona: str = "Persona",
    ) -> None:
        self.results = list(results)
        self.persona = persona
        self.profile_calls = 0
        self.title_calls = 0
        self.closed = False

    def fetch_profile(self, remote_id: str) -> str:
        self.profile_calls += 1
        return self.persona

    def fetch_recent_titles(self, remote_id: str) -> Snapshot:
        self.title_calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> WatcherSettings:
    return WatcherSettings.from_intervals(
        min_seconds=0.01, max_seconds=0.02, base_url="https://api.example.test"
    )


@pytest.fixture
def account() -> Account:
    return Account(remote_id=ACCOUNT_A, api_key=API_KEY, display_label="alice")
