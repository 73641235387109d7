"""Compare consecutive snapshots and turn differences into activity events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .errors import DeltaUnderflowError
from .models import ActivityEvent, Snapshot, Title


@dataclass(frozen=True, slots=True)
class TitleChange:
    """A title whose playtime differs from (or is missing in) the previous poll."""

    title: Title
    previous_minutes: Optional[int]

    @property
    def session_minutes(self) -> Optional[int]:
        if self.previous_minutes is None:
            return None
        current = self.title.total_playtime_minutes
        if current < self.previous_minutes:
            raise DeltaUnderflowError(self.title.id, self.previous_minutes, current)
        return current - self.previous_minutes


def detect_changes(previous: Optional[Snapshot], current: Snapshot) -> list[TitleChange]:
    """Return changed titles in the order they appear in ``current``.

    With no previous snapshot there is nothing to compare against, so the
    result is empty and the caller is expected to treat ``current`` as the
    initial cache.
    """
    if previous is None:
        return []

    changes: list[TitleChange] = []
    for title in current.values():
        cached = previous.get(title.id)
        if cached is None:
            changes.append(TitleChange(title, None))
        elif cached.total_playtime_minutes != title.total_playtime_minutes:
            changes.append(TitleChange(title, cached.total_playtime_minutes))
    return changes


def build_event(
    account_label: str,
    change: TitleChange,
    detected_at: Optional[datetime] = None,
) -> ActivityEvent:
    """Build the event for one change; raises ``DeltaUnderflowError`` on a reset counter."""
    return ActivityEvent(
        account_label=account_label,
        title_name=change.title.name,
        total_playtime_minutes=change.title.total_playtime_minutes,
        session_minutes=change.session_minutes,
        detected_at=detected_at or datetime.now(),
    )
