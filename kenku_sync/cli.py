"""
CLI commands for kenku-sync.

Provides the `kenku-sync` command-line interface: watch, backfill, purge
and view.
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from config.loader import ConfigurationLoader, ConfigurationError
from core.models.config import DirectoryLayout, SyncSettings
from core.models.remote import RemoteSnapshot
from core.remote.client import KenkuRemoteClient, RemoteSyncError
from core.sync.reconciliation import ReconciliationController, SyncMode
from kenku_sync import __version__

console = Console()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str) -> None:
    """Set up root logging for a CLI run"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT, force=True)


@click.group()
@click.version_option(version=__version__, prog_name="kenku-sync")
@click.option(
    '--config', 'config_file',
    type=click.Path(dir_okay=False),
    help='JSON settings file'
)
@click.option(
    '--host',
    help='Kenku remote host (default: 127.0.0.1)'
)
@click.option(
    '--port',
    type=int,
    help='Kenku remote port (default: 3333)'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Log level (default: INFO)'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Shortcut for --log-level DEBUG'
)
@click.pass_context
def main(ctx, config_file: Optional[str], host: Optional[str], port: Optional[int],
         log_level: Optional[str], verbose: bool):
    """
    Kenku Sync.

    Keep Kenku FM playlists and soundboards in sync with a directory tree
    laid out as ROOT/Playlists/<playlist>/<track> and
    ROOT/Soundboards/<soundboard>/<sound>.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config_file
    ctx.obj['overrides'] = {
        'remote.host': host,
        'remote.port': port,
        'logging.level': 'DEBUG' if verbose else log_level,
    }


def _load_settings(ctx, overrides: Optional[Dict[str, Any]] = None) -> SyncSettings:
    """Load settings or exit with a configuration error"""
    merged = dict(ctx.obj.get('overrides', {}))
    merged.update(overrides or {})

    try:
        settings = ConfigurationLoader().load_settings(ctx.obj.get('config_file'), merged)
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)

    configure_logging(settings.logging.level)
    return settings


def _require_layout(settings: SyncSettings) -> DirectoryLayout:
    try:
        return ConfigurationLoader().require_layout(settings)
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


def _create_client(settings: SyncSettings) -> KenkuRemoteClient:
    return KenkuRemoteClient(settings.remote)


def _watch_options(func):
    """Options shared by watch and backfill"""
    func = click.option(
        '--max-in-flight',
        type=click.IntRange(min=1),
        help='Cap on concurrent remote calls (default: unbounded)'
    )(func)
    func = click.option(
        '--interval',
        type=click.FloatRange(min=0, min_open=True),
        help='Seconds between queue ticks (default: 0.5)'
    )(func)
    func = click.option(
        '--soundboards-dir',
        help='Soundboards directory under the root (default: Soundboards)'
    )(func)
    func = click.option(
        '--playlists-dir',
        help='Playlists directory under the root (default: Playlists)'
    )(func)
    func = click.option(
        '--root-dir', '-r',
        help='Root directory containing the playlists and soundboards directories'
    )(func)
    return func


@main.command()
@_watch_options
@click.pass_context
def watch(ctx, root_dir, playlists_dir, soundboards_dir, interval, max_in_flight):
    """Sync changes made from now on; existing files are left alone."""
    _run_watching_mode(ctx, SyncMode.WATCH, root_dir, playlists_dir, soundboards_dir,
                       interval, max_in_flight)


@main.command()
@_watch_options
@click.pass_context
def backfill(ctx, root_dir, playlists_dir, soundboards_dir, interval, max_in_flight):
    """Re-send every existing playlist and soundboard, then keep watching."""
    _run_watching_mode(ctx, SyncMode.BACKFILL, root_dir, playlists_dir, soundboards_dir,
                       interval, max_in_flight)


def _run_watching_mode(ctx, mode: SyncMode, root_dir, playlists_dir, soundboards_dir,
                       interval, max_in_flight) -> None:
    settings = _load_settings(ctx, {
        'directories.root': root_dir,
        'directories.playlists': playlists_dir,
        'directories.soundboards': soundboards_dir,
        'queue.interval_seconds': interval,
        'queue.max_in_flight': max_in_flight,
    })
    layout = _require_layout(settings)

    console.print(f"[blue]📂 Watching {layout.root} ({mode.value} mode)[/blue]")
    console.print(f"[blue]🎛️  Kenku remote: {settings.remote.base_url}[/blue]")

    try:
        asyncio.run(_run_watching(settings, layout, mode))
    except KeyboardInterrupt:
        console.print("\n[yellow]🔌 Stopped[/yellow]")
    except Exception as e:
        console.print(f"[red]❌ {mode.value} failed: {e}[/red]")
        sys.exit(1)


async def _run_watching(settings: SyncSettings, layout: DirectoryLayout, mode: SyncMode) -> None:
    client = _create_client(settings)
    controller = ReconciliationController(
        client,
        removal_delay=settings.reconciliation.removal_delay_seconds,
        queue_settings=settings.queue
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, controller.request_stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform
            pass

    try:
        await controller.run(mode, layout)
    finally:
        client.close()


@main.command()
@click.option(
    '--delay',
    type=click.FloatRange(min=0),
    help='Seconds to pause after each removal (default: 0.5)'
)
@click.option(
    '--yes', '-y',
    is_flag=True,
    help='Do not ask for confirmation'
)
@click.pass_context
def purge(ctx, delay: Optional[float], yes: bool):
    """Delete every playlist and soundboard from Kenku FM."""
    settings = _load_settings(ctx, {'reconciliation.removal_delay_seconds': delay})

    if not yes and not click.confirm(
        f'Are you sure you want to remove all playlists and soundboards from {settings.remote.base_url}?'
    ):
        raise click.Abort()

    console.print("[blue]🗑️  Purging Kenku playlists and soundboards...[/blue]")
    try:
        report = asyncio.run(_run_purge(settings))
    except RemoteSyncError as e:
        console.print(f"[red]❌ Purge failed: {e}[/red]")
        sys.exit(1)

    console.print(
        f"[green]✅ Removed {report.playlists_removed} playlists and "
        f"{report.soundboards_removed} soundboards[/green]"
    )
    if report.failures:
        console.print(f"[yellow]⚠️  {len(report.failures)} removals failed[/yellow]")
        for url in report.failures:
            console.print(f"   {url}")


async def _run_purge(settings: SyncSettings):
    client = _create_client(settings)
    try:
        controller = ReconciliationController(
            client,
            removal_delay=settings.reconciliation.removal_delay_seconds
        )
        return await controller.run(SyncMode.PURGE)
    finally:
        client.close()


@main.command()
@click.option(
    '--json', 'as_json',
    is_flag=True,
    help='Print the raw listing as JSON'
)
@click.pass_context
def view(ctx, as_json: bool):
    """List the playlists and soundboards currently in Kenku FM."""
    settings = _load_settings(ctx)

    try:
        snapshot = asyncio.run(_run_view(settings))
    except RemoteSyncError as e:
        console.print(f"[red]❌ Failed to read from {settings.remote.base_url}: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(snapshot.to_dict(), indent=2))
        return

    _print_snapshot(snapshot)


async def _run_view(settings: SyncSettings) -> RemoteSnapshot:
    client = _create_client(settings)
    try:
        return await ReconciliationController(client).run(SyncMode.VIEW)
    finally:
        client.close()


def _print_snapshot(snapshot: RemoteSnapshot) -> None:
    playlist_table = Table(title="Playlists")
    playlist_table.add_column("Title", style="cyan")
    playlist_table.add_column("URL")
    for playlist in snapshot.playlists.playlists:
        playlist_table.add_row(playlist.title or "", playlist.url)

    soundboard_table = Table(title="Soundboards")
    soundboard_table.add_column("Title", style="cyan")
    soundboard_table.add_column("URL")
    for soundboard in snapshot.soundboards.soundboards:
        soundboard_table.add_row(soundboard.title or "", soundboard.url)

    console.print(playlist_table)
    console.print(soundboard_table)
    console.print(
        f"[dim]{len(snapshot.playlists.tracks)} tracks, "
        f"{len(snapshot.soundboards.sounds)} sounds[/dim]"
    )


if __name__ == "__main__":
    main()
