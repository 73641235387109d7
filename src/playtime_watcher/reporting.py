"""Rendering and delivery of detected activity."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Iterable, Optional

from .models import ActivityEvent

EventSink = Callable[[ActivityEvent], None]

logger = logging.getLogger("playtime_watcher.activity")


def format_event(event: ActivityEvent) -> str:
    prefix = f"Detected activity for {event.account_label}. Game: {event.title_name}."
    if event.session_minutes is None:
        return f"{prefix} First session in two weeks. Total: {event.total_playtime_minutes} min."
    return (
        f"{prefix} Session: {event.session_minutes} min. "
        f"Total: {event.total_playtime_minutes} min."
    )


def log_event(event: ActivityEvent) -> None:
    """Default sink: one INFO line per event."""
    logger.info(format_event(event))


class ActivityFeed:
    """Bounded, thread-safe buffer of the most recent events."""

    def __init__(self, max_events: int = 500) -> None:
        self._events: deque[ActivityEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def __call__(self, event: ActivityEvent) -> None:
        with self._lock:
            self._events.append(event)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def recent(self, limit: Optional[int] = None) -> list[ActivityEvent]:
        """Return up to ``limit`` events, newest first."""
        with self._lock:
            items = list(self._events)
        items.reverse()
        return items if limit is None else items[:limit]


def fan_out(sinks: Iterable[EventSink]) -> EventSink:
    targets = tuple(sinks)

    def _dispatch(event: ActivityEvent) -> None:
        for sink in targets:
            sink(event)

    return _dispatch
