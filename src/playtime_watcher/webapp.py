"""FastAPI application exposing watcher status and recent activity."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Sequence

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .client import SteamClient
from .config import AccountEntry, WatcherSettings, build_accounts
from .models import ActivityEvent
from .reporting import ActivityFeed, fan_out, format_event, log_event
from .supervisor import ClientFactory, WatcherSupervisor

logger = logging.getLogger(__name__)


def create_app(
    *,
    api_key: str,
    entries: Sequence[AccountEntry],
    settings: Optional[WatcherSettings] = None,
    feed: Optional[ActivityFeed] = None,
    client_factory: ClientFactory = SteamClient,
) -> FastAPI:
    """Instantiate the FastAPI application.

    Accounts are validated here so a bad id fails before the server binds.
    """
    resolved_settings = settings or WatcherSettings()
    resolved_feed = feed if feed is not None else ActivityFeed()
    accounts = build_accounts(entries, api_key)
    supervisor = WatcherSupervisor(
        resolved_settings,
        sink=fan_out([log_event, resolved_feed]),
        client_factory=client_factory,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        supervisor.start(accounts)
        logger.info("Status API serving %d account(s).", len(accounts))
        try:
            yield
        finally:
            supervisor.stop()

    app = FastAPI(title="Playtime Watcher", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.state.supervisor = supervisor
    app.state.feed = resolved_feed

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        runner: WatcherSupervisor = request.app.state.supervisor
        return {
            "running": runner.is_running(),
            "min_interval_seconds": resolved_settings.min_interval.total_seconds(),
            "max_interval_seconds": resolved_settings.max_interval.total_seconds(),
            "accounts": runner.status(),
        }

    @app.get("/api/events")
    def events(
        request: Request,
        limit: int = Query(
            default=50,
            ge=1,
            le=500,
            description="Maximum number of events to return, newest first.",
        ),
    ) -> Dict[str, Any]:
        recent = request.app.state.feed.recent(limit)
        return {"events": [_event_to_payload(event) for event in recent]}

    return app


def _event_to_payload(event: ActivityEvent) -> Dict[str, Any]:
    return {
        "account": event.account_label,
        "title": event.title_name,
        "total_minutes": event.total_playtime_minutes,
        "session_minutes": event.session_minutes,
        "first_session": event.is_first_session,
        "detected_at": event.detected_at.isoformat(),
        "message": format_event(event),
    }
