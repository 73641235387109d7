"""Run one watcher thread per account."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Sequence

from .client import SteamClient
from .config import AccountEntry, WatcherSettings, build_accounts
from .models import Account
from .reporting import EventSink, log_event
from .watcher import AccountWatcher, LibraryClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, WatcherSettings], LibraryClient]


class WatcherSupervisor:
    """Manage account watchers in background threads."""

    def __init__(
        self,
        settings: WatcherSettings,
        sink: EventSink = log_event,
        client_factory: ClientFactory = SteamClient,
    ) -> None:
        self.settings = settings
        self._sink = sink
        self._client_factory = client_factory
        self._lock = threading.Lock()
        self._watchers: list[AccountWatcher] = []
        self._threads: list[threading.Thread] = []
        self._stop_event: Optional[threading.Event] = None

    def run(
        self,
        api_key: str,
        entries: Sequence[AccountEntry],
        stop_event: Optional[threading.Event] = None,
    ) -> bool:
        """Validate every account, start the watchers and block until they exit.

        Returns ``False`` without blocking when there is nothing to watch.
        """
        accounts = build_accounts(entries, api_key)
        if not self.start(accounts, stop_event):
            return False
        self.join()
        return True

    def start(
        self,
        accounts: Sequence[Account],
        stop_event: Optional[threading.Event] = None,
    ) -> bool:
        if not accounts:
            logger.warning("No accounts configured; nothing to watch.")
            return False
        with self._lock:
            if any(thread.is_alive() for thread in self._threads):
                return True
            stop_event = stop_event or threading.Event()
            watchers = [
                AccountWatcher(
                    account=account,
                    client=self._client_factory(account.api_key, self.settings),
                    settings=self.settings,
                    sink=self._sink,
                )
                for account in accounts
            ]
            threads = [
                threading.Thread(
                    target=watcher.run_until_stopped,
                    args=(stop_event,),
                    name=f"watcher-{watcher.account.masked_id}",
                    daemon=True,
                )
                for watcher in watchers
            ]
            self._watchers = watchers
            self._threads = threads
            self._stop_event = stop_event
            for thread in threads:
                thread.start()
        logger.info("Started %d account watcher(s).", len(threads))
        return True

    def join(self, poll_seconds: float = 1.0) -> None:
        """Block until every watcher thread has exited."""
        for thread in list(self._threads):
            while thread.is_alive():
                thread.join(timeout=poll_seconds)

    def stop(self, timeout: float = 10.0) -> None:
        with self._lock:
            stop_event = self._stop_event
            threads = list(self._threads)
        if stop_event is None:
            return
        stop_event.set()
        for thread in threads:
            thread.join(timeout=timeout)
        logger.info("Account watchers stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return any(thread.is_alive() for thread in self._threads)

    def status(self) -> list[dict[str, Any]]:
        with self._lock:
            watchers = list(self._watchers)
        return [watcher.status() for watcher in watchers]
