"""Exception hierarchy shared by the watcher components."""

from __future__ import annotations

from typing import Optional


class PlaytimeWatcherError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PlaytimeWatcherError):
    """Credentials, account ids or settings are missing or malformed."""


class TransportError(PlaytimeWatcherError):
    """The request failed before any HTTP response arrived (connection, timeout)."""


class MalformedResponseError(PlaytimeWatcherError):
    """The upstream answered, but not with the JSON shape we expect."""

    def __init__(self, message: str, *, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.body = body


class DeltaUnderflowError(PlaytimeWatcherError):
    """Cumulative playtime went down between two polls."""

    def __init__(self, title_id: int, previous_minutes: int, current_minutes: int) -> None:
        super().__init__(
            f"Playtime for title {title_id} decreased from {previous_minutes} "
            f"to {current_minutes} min."
        )
        self.title_id = title_id
        self.previous_minutes = previous_minutes
        self.current_minutes = current_minutes
