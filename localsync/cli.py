"""Click-based CLI for localsync."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.logging import RichHandler
from sqlalchemy.exc import SQLAlchemyError

from localsync import __version__
from localsync.config import (
    ConflictPolicy,
    LocalsyncSettings,
    RemoteConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
)
from localsync.manager import RepositoryManager
from localsync.output import Console, create_console
from localsync.storage import SQLStore, ensure_schema
from localsync.sync import SyncResult


def _load_settings() -> LocalsyncSettings:
    """Load the settings file, falling back to defaults when there is none."""
    try:
        return load_config()
    except FileNotFoundError:
        return LocalsyncSettings()


def _setup(ctx: click.Context, verbose: bool = False) -> tuple[LocalsyncSettings, Console]:
    settings = _load_settings()
    database = ctx.obj.get("database") if ctx.obj else None
    if database:
        settings = settings.model_copy(update={"database_url": database})

    console = create_console(verbose=verbose or settings.output.verbose, colored=settings.output.colored)
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console.rich, show_path=False)],
        force=True,
    )
    return settings, console


def _open_store(url: str) -> SQLStore:
    """Open the local database, creating the schema if it is missing."""
    prefix = "sqlite:///"
    if url.startswith(prefix) and url != "sqlite:///:memory:":
        Path(url[len(prefix):]).expanduser().parent.mkdir(parents=True, exist_ok=True)
    store = SQLStore(url)
    ensure_schema(store)
    return store


def _open_manager(settings: LocalsyncSettings, console: Console) -> RepositoryManager:
    manager = RepositoryManager(timeout=settings.request_timeout, page_size=settings.page_size)
    try:
        manager.initialize(_open_store(settings.database_url))
    except SQLAlchemyError as e:
        console.print_error(f"Cannot open database {settings.database_url}: {e}")
        sys.exit(1)
    return manager


@click.group()
@click.version_option(version=__version__, prog_name="localsync")
@click.option("--database", envvar="LOCALSYNC_DATABASE", help="Database URL (overrides the settings file)")
@click.pass_context
def cli(ctx: click.Context, database: Optional[str]) -> None:
    """localsync - local-first data store with remote sync.

    \b
    Records live in a local SQL database and are mirrored to a
    REST service when remote sync is enabled.
    """
    ctx.ensure_object(dict)
    ctx.obj["database"] = database


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the settings file and the database schema."""
    config_path, created = ensure_config_exists()
    settings, console = _setup(ctx)

    if created:
        console.print_success(f"Created settings file: {config_path}")
    else:
        console.print_info(f"Using settings file: {config_path}")

    try:
        _open_store(settings.database_url).close()
    except SQLAlchemyError as e:
        console.print_error(f"Cannot create schema in {settings.database_url}: {e}")
        sys.exit(1)

    console.print_success(f"Database ready: {settings.database_url}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show record counts, unsynced changes and the remote configuration."""
    settings, console = _setup(ctx)
    manager = _open_manager(settings, console)
    try:
        console.print_status(manager.status())
        console.print()
        console.print_remote_config(manager.get_remote_config())
    except SQLAlchemyError as e:
        console.print_error(f"Database error: {e}")
        sys.exit(1)
    finally:
        manager.close()


@cli.command()
@click.option("--entity", "-e", help="Only sync this entity type (e.g. users, todos)")
@click.option(
    "--resolve",
    type=click.Choice([policy.value for policy in ConflictPolicy]),
    help="Resolve conflicts after the pass (newest = last write wins)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def sync(ctx: click.Context, entity: Optional[str], resolve: Optional[str], verbose: bool) -> None:
    """Push local changes to the remote service and pull remote changes.

    Conflicts (both sides changed since the last sync) are reported and
    left untouched unless --resolve is given.
    """
    settings, console = _setup(ctx, verbose)
    manager = _open_manager(settings, console)

    try:
        if entity:
            try:
                results: dict[str, SyncResult] = {entity: manager.sync(entity)}
            except KeyError:
                console.print_error(f"Unknown entity type '{entity}'. Known: {', '.join(manager.names)}")
                sys.exit(1)
        else:
            results = manager.sync_all()

        console.print_sync_results(results)

        if resolve:
            conflicts = [conflict for result in results.values() for conflict in result.conflicts]
            if conflicts:
                console.print()
                console.print_info(f"Resolving {len(conflicts)} conflict(s) with policy '{resolve}'")
            for conflict in conflicts:
                try:
                    resolution = manager.resolve_conflict(conflict, resolve)
                except Exception as e:
                    console.print_error(f"{conflict.table}/{conflict.id}: {e}")
                    continue
                console.print_conflict_resolution(conflict, resolution)
    finally:
        manager.close()

    if not all(result.success for result in results.values()):
        sys.exit(1)


@cli.group()
def config() -> None:
    """Manage the remote service configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the stored remote configuration."""
    settings, console = _setup(ctx)
    manager = _open_manager(settings, console)
    try:
        console.print_info(f"Settings file: {get_config_path()}")
        console.print_info(f"Database:      {settings.database_url}")
        console.print()
        console.print_remote_config(manager.get_remote_config())
    finally:
        manager.close()


@config.command("set")
@click.option("--enable/--disable", "enabled", default=None, help="Turn the remote service on or off")
@click.option("--base-url", help="Base URL of the REST service")
@click.option("--api-key", help="API key sent as Bearer token (empty string clears it)")
@click.option("--interval", type=click.IntRange(min=0), help="Seconds between automatic syncs")
@click.option("--content-sync/--no-content-sync", default=None, help="Toggle entity sync")
@click.option("--dynamic-feed/--no-dynamic-feed", default=None, help="Toggle the dynamic feed feature")
@click.option("--notifications/--no-notifications", default=None, help="Toggle remote notifications")
@click.pass_context
def config_set(
    ctx: click.Context,
    enabled: Optional[bool],
    base_url: Optional[str],
    api_key: Optional[str],
    interval: Optional[int],
    content_sync: Optional[bool],
    dynamic_feed: Optional[bool],
    notifications: Optional[bool],
) -> None:
    """Update the remote service configuration."""
    settings, console = _setup(ctx)
    manager = _open_manager(settings, console)

    try:
        current = manager.get_remote_config() or RemoteConfig()

        updates: dict = {}
        if enabled is not None:
            updates["enabled"] = enabled
        if base_url is not None:
            updates["base_url"] = base_url.rstrip("/")
        if api_key is not None:
            updates["api_key"] = api_key or None
        if interval is not None:
            updates["sync_interval"] = interval

        feature_updates = {
            key: value
            for key, value in (
                ("content_sync", content_sync),
                ("dynamic_feed", dynamic_feed),
                ("notifications", notifications),
            )
            if value is not None
        }
        if feature_updates:
            updates["features"] = current.features.model_copy(update=feature_updates)

        if not updates:
            console.print_warning("Nothing to change")
            console.print_remote_config(current)
            return

        new_config = current.model_copy(update=updates)
        if new_config.enabled and not new_config.base_url:
            console.print_error("A base URL is required to enable the remote service (--base-url)")
            sys.exit(1)

        manager.set_remote_config(new_config)
        console.print_success("Remote configuration updated")
        console.print_remote_config(new_config)
    finally:
        manager.close()
