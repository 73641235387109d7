"""Per-account polling loop."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from .config import WatcherSettings
from .detection import build_event, detect_changes
from .errors import DeltaUnderflowError, MalformedResponseError, TransportError
from .models import Account, ActivityEvent, Snapshot
from .reporting import EventSink

logger = logging.getLogger(__name__)


class LibraryClient(Protocol):
    def fetch_profile(self, remote_id: str) -> str: ...

    def fetch_recent_titles(self, remote_id: str) -> Snapshot: ...

    def close(self) -> None: ...


@dataclass(slots=True)
class WatcherState:
    snapshot: Optional[Snapshot] = None
    label: Optional[str] = None
    successful_polls: int = 0
    failed_polls: int = 0
    last_success: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def phase(self) -> str:
        return "uninitialized" if self.snapshot is None else "steady"


class AccountWatcher:
    """Polls one account at a jittered interval and reports playtime changes."""

    def __init__(
        self,
        account: Account,
        client: LibraryClient,
        settings: WatcherSettings,
        sink: EventSink,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.account = account
        self.settings = settings
        self._client = client
        self._sink = sink
        self._rng = rng or random.Random()
        self._state = WatcherState(label=account.display_label)
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._state.snapshot

    @property
    def label(self) -> str:
        return self._state.label or self.account.masked_id

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run cycles until ``stop_event`` is set; the wait doubles as the cancel check."""
        logger.info("Watching account %s.", self.label)
        try:
            self._run_loop(stop_event)
        finally:
            self._shutdown()

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            if stop_event.wait(self.next_delay()):
                break
            try:
                self.run_cycle()
            except Exception:
                self._record_failure("unexpected error")
                logger.exception("Unexpected error while polling %s.", self.label)

    def _shutdown(self) -> None:
        try:
            self._client.close()
        finally:
            logger.info("Stopped watching account %s.", self.label)

    def next_delay(self) -> float:
        low = self.settings.min_interval.total_seconds()
        high = self.settings.max_interval.total_seconds()
        return self._rng.uniform(low, high)

    def run_cycle(self) -> list[ActivityEvent]:
        """Poll once. Transient failures are logged and leave the cache untouched."""
        try:
            self._ensure_label()
            current = self._client.fetch_recent_titles(self.account.remote_id)
        except TransportError as exc:
            self._record_failure(str(exc))
            logger.warning("Failed to fetch data for %s: %s. Retrying.", self.label, exc)
            return []
        except MalformedResponseError as exc:
            self._record_failure(str(exc))
            logger.error("Unexpected response for %s: %s", self.label, exc)
            return []

        events = self._process(current)
        for event in events:
            self._sink(event)
        return events

    def status(self) -> dict[str, Any]:
        with self._lock:
            state = self._state
            return {
                "account": self.account.masked_id,
                "label": self.label,
                "phase": state.phase,
                "titles": len(state.snapshot) if state.snapshot is not None else None,
                "successful_polls": state.successful_polls,
                "failed_polls": state.failed_polls,
                "last_success": state.last_success.isoformat() if state.last_success else None,
                "last_error": state.last_error,
            }

    def _ensure_label(self) -> None:
        if self._state.label is None:
            persona = self._client.fetch_profile(self.account.remote_id)
            with self._lock:
                self._state.label = persona
            logger.info(
                "Account %s resolved to %s.", self.account.masked_id, self._state.label
            )

    def _process(self, current: Snapshot) -> list[ActivityEvent]:
        previous = self._state.snapshot
        now = datetime.now()
        events: list[ActivityEvent] = []
        if previous is None:
            logger.debug("Cached %d titles for %s.", len(current), self.label)
        for change in detect_changes(previous, current):
            try:
                events.append(build_event(self.label, change, detected_at=now))
            except DeltaUnderflowError as exc:
                logger.error(
                    "Skipping %s for %s: %s", change.title.name, self.label, exc
                )
        with self._lock:
            self._state.snapshot = current
            self._state.successful_polls += 1
            self._state.last_success = now
            self._state.last_error = None
        return events

    def _record_failure(self, message: str) -> None:
        with self._lock:
            self._state.failed_polls += 1
            self._state.last_error = message
