"""Domain models for polled library state and detected activity."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Optional

from .errors import ConfigurationError

ACCOUNT_ID_LENGTH = 17


@dataclass(frozen=True, slots=True)
class Title:
    """One game entry as reported by a single poll.

    Two titles compare equal when they share ``id`` and playtime; the display
    name is carried along but ignored for comparisons.
    """

    id: int
    name: str = field(compare=False)
    total_playtime_minutes: int

    def __post_init__(self) -> None:
        if self.total_playtime_minutes < 0:
            raise ValueError(
                f"total_playtime_minutes must be >= 0, got {self.total_playtime_minutes}"
            )


class Snapshot(Mapping[int, Title]):
    """Immutable ``title id -> Title`` mapping for one account at one poll."""

    __slots__ = ("_titles",)

    def __init__(self, titles: Iterable[Title] = ()) -> None:
        index: dict[int, Title] = {}
        for title in titles:
            if title.id in index:
                raise ValueError(f"duplicate title id {title.id} in snapshot")
            index[title.id] = title
        self._titles = MappingProxyType(index)

    def __getitem__(self, title_id: int) -> Title:
        return self._titles[title_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._titles)

    def __len__(self) -> int:
        return len(self._titles)

    def __repr__(self) -> str:
        return f"Snapshot({list(self._titles.values())!r})"

    def titles(self) -> list[Title]:
        return list(self._titles.values())


@dataclass(frozen=True, slots=True)
class Account:
    """A watched account. ``display_label`` overrides the remote persona name."""

    remote_id: str
    api_key: str = field(repr=False)
    display_label: Optional[str] = None

    def __post_init__(self) -> None:
        validate_account_id(self.remote_id)
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key is empty.")

    @property
    def masked_id(self) -> str:
        return f"{self.remote_id[:5]}..."


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """Playtime observed for one title between two consecutive polls."""

    account_label: str
    title_name: str
    total_playtime_minutes: int
    session_minutes: Optional[int] = None
    detected_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def is_first_session(self) -> bool:
        return self.session_minutes is None


def validate_account_id(remote_id: str) -> str:
    """Return ``remote_id`` unchanged or raise ``ConfigurationError``."""
    if len(remote_id) != ACCOUNT_ID_LENGTH:
        raise ConfigurationError(
            f"Account id {remote_id!r} must be exactly {ACCOUNT_ID_LENGTH} characters, "
            f"got {len(remote_id)}."
        )
    if not (remote_id.isascii() and remote_id.isdigit()):
        raise ConfigurationError(f"Account id {remote_id!r} must contain only digits.")
    return remote_id
