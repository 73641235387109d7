"""Helpers to launch the local status API."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import uvicorn

from .config import AccountEntry, WatcherSettings
from .webapp import create_app


def run_dashboard(
    *,
    api_key: str,
    entries: Sequence[AccountEntry],
    host: str = "127.0.0.1",
    port: int = 8766,
    settings: Optional[WatcherSettings] = None,
    log_level: str = "info",
) -> None:
    """Start the FastAPI status API; watchers run for the lifetime of the server."""
    app = create_app(
        api_key=api_key,
        entries=entries,
        settings=settings or WatcherSettings(),
    )

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level, log_config=None)
