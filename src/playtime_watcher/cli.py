"""Command-line interface for the playtime watcher."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import NoReturn, Optional

import typer

from .config import (
    AccountEntry,
    WatchConfig,
    WatcherSettings,
    build_accounts,
    load_config_file,
    parse_user_ids,
    resolve_api_key,
)
from .errors import ConfigurationError, PlaytimeWatcherError
from .paths import get_config_path

app = typer.Typer(help="Report Steam playtime activity for a set of accounts.")
logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

ApiKeyOption = typer.Option(
    None,
    "--api-key",
    "--key",
    "-k",
    path_type=Path,
    help="Path to a file containing a Steam API key.",
)
ConfigOption = typer.Option(
    None,
    "--config",
    "--config-file",
    "-c",
    path_type=Path,
    help="Path to the JSON config file.",
)
UserIdsOption = typer.Option(
    None,
    "--user-ids",
    "--users",
    help="Comma-separated account ids, each optionally followed by ':alias'.",
)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    if not verbose:
        logging.getLogger("urllib3").setLevel(logging.WARNING)


@app.command()
def watch(
    api_key_path: Optional[Path] = ApiKeyOption,
    config_path: Optional[Path] = ConfigOption,
    user_ids: Optional[str] = UserIdsOption,
    min_interval: Optional[float] = typer.Option(
        None, "--min-interval", min=1.0, help="Shortest pause between polls, in seconds."
    ),
    max_interval: Optional[float] = typer.Option(
        None, "--max-interval", min=1.0, help="Longest pause between polls, in seconds."
    ),
) -> None:
    """Poll every account until interrupted."""
    from .supervisor import WatcherSupervisor

    try:
        api_key, entries, settings = _load_inputs(
            api_key_path, config_path, user_ids, min_interval, max_interval
        )
        build_accounts(entries, api_key)
    except ConfigurationError as exc:
        _fail(exc)

    supervisor = WatcherSupervisor(settings)
    stop_event = threading.Event()
    try:
        started = supervisor.run(api_key, entries, stop_event)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping watchers.")
        supervisor.stop()
        return
    if not started:
        raise typer.Exit(code=1)


@app.command()
def whois(
    api_key_path: Optional[Path] = ApiKeyOption,
    config_path: Optional[Path] = ConfigOption,
    user_ids: Optional[str] = UserIdsOption,
) -> None:
    """Print the display name of every configured account."""
    from .client import SteamClient

    try:
        api_key, entries, settings = _load_inputs(api_key_path, config_path, user_ids)
        accounts = build_accounts(entries, api_key)
    except ConfigurationError as exc:
        _fail(exc)

    client = SteamClient(api_key, settings)
    failures = 0
    try:
        for account in accounts:
            try:
                persona = client.fetch_profile(account.remote_id)
            except PlaytimeWatcherError as exc:
                failures += 1
                logger.error("Lookup failed for %s: %s", account.masked_id, exc)
                continue
            alias = f" (alias: {account.display_label})" if account.display_label else ""
            typer.echo(f"{account.remote_id}  {persona}{alias}")
    finally:
        client.close()
    if failures:
        raise typer.Exit(code=1)


@app.command()
def web(
    api_key_path: Optional[Path] = ApiKeyOption,
    config_path: Optional[Path] = ConfigOption,
    user_ids: Optional[str] = UserIdsOption,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the status API."),
    port: int = typer.Option(
        8766, "--port", min=1, max=65535, help="TCP port for the status API."
    ),
) -> None:
    """Serve the status API while the watchers run in the background."""
    from .server_runner import run_dashboard

    try:
        api_key, entries, settings = _load_inputs(api_key_path, config_path, user_ids)
        build_accounts(entries, api_key)
    except ConfigurationError as exc:
        _fail(exc)

    run_dashboard(
        api_key=api_key,
        entries=entries,
        host=host,
        port=port,
        settings=settings,
    )


def _load_inputs(
    api_key_path: Optional[Path],
    config_path: Optional[Path],
    user_ids: Optional[str],
    min_interval: Optional[float] = None,
    max_interval: Optional[float] = None,
) -> tuple[str, list[AccountEntry], WatcherSettings]:
    if user_ids is not None and config_path is not None:
        raise ConfigurationError("--user-ids cannot be combined with --config.")

    config: Optional[WatchConfig] = None
    key_file: Optional[Path] = None
    if user_ids is not None:
        entries = parse_user_ids(user_ids)
    else:
        path = config_path or get_config_path()
        if config_path is None and not path.exists():
            raise ConfigurationError(
                f"No accounts given. Pass --user-ids or --config, or create {path}."
            )
        config = load_config_file(path)
        entries = config.account_entries()
        if config.api_key_file is not None:
            key_file = config.api_key_file.expanduser()
            if not key_file.is_absolute():
                key_file = path.parent / key_file

    api_key = resolve_api_key([api_key_path, key_file])

    low = min_interval if min_interval is not None else (
        config.min_interval_seconds if config else 60.0
    )
    high = max_interval if max_interval is not None else (
        config.max_interval_seconds if config else 120.0
    )
    settings = WatcherSettings.from_intervals(min_seconds=low, max_seconds=high)
    return api_key, entries, settings


def _fail(exc: ConfigurationError) -> NoReturn:
    typer.echo(f"Configuration error: {exc}", err=True)
    raise typer.Exit(code=2)
