"""
sync-rsync CLI Main Entry Point.

Exposes the sync commands for a workspace: batch syncs and comparisons,
single-site and single-file syncs, output inspection and a long-running
watch mode. Ctrl-C during a sync kills the running sync.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import signal
import sys
from collections.abc import Awaitable, Callable
from datetime import timedelta
from pathlib import Path

import click
import humanize
from rich.console import Console
from rich.table import Table

from syncrsync import __version__
from syncrsync.core.config import SyncRsyncConfig, load_config
from syncrsync.core.errors import ConfigError
from syncrsync.core.logging import setup_logging
from syncrsync.core.models import Config, WorkspaceContext
from syncrsync.core.output import ConsoleNotifier, OutputChannel
from syncrsync.core.resolver import SiteRegistry
from syncrsync.core.session import SessionState, StatusIndicator
from syncrsync.core.settings import load_raw_settings
from syncrsync.sync.controller import Picker, SyncController
from syncrsync.sync.debounce import Debouncer
from syncrsync.sync.watcher import WatchSubscription

console = Console()
err_console = Console(stderr=True)

Command = Callable[[SyncController], Awaitable[bool]]


def render_status(indicator: StatusIndicator) -> None:
    color = indicator.color or "white"
    err_console.print(f"[{color}]{indicator.text}[/{color}]")


def prompt_site(keys: list[str]) -> str | None:
    """Interactive site picker. Returns None when nothing was chosen."""
    if not keys:
        err_console.print("[yellow]No sites configured[/yellow]")
        return None

    for key in keys:
        err_console.print(f"  [cyan]{key}[/cyan]")

    try:
        return click.prompt("Site", type=click.Choice(keys), show_choices=False)
    except click.Abort:
        return None


def preselected(key: str | None) -> Picker:
    """A picker answering with a choice made before the event loop started.

    Prompting happens outside the loop so Ctrl-C at the prompt aborts
    normally instead of being taken as a kill request.
    """

    async def _pick(keys: list[str]) -> str | None:
        return key

    return _pick


def get_settings_path(ctx: click.Context) -> Path:
    settings = ctx.obj.get("settings")
    if settings is not None:
        return settings
    app_config: SyncRsyncConfig = ctx.obj["config"]
    return app_config.get_settings_file(ctx.obj["workspace"])


def require_config(controller: SyncController) -> Config:
    """The active configuration, or exit when settings did not resolve."""
    if controller.config is None:
        err_console.print("[red]Error: no valid configuration[/red]")
        sys.exit(1)
    return controller.config


def require_registry(controller: SyncController) -> SiteRegistry:
    if controller.registry is None:
        err_console.print("[red]Error: no valid configuration[/red]")
        sys.exit(1)
    return controller.registry


def get_controller(ctx: click.Context) -> SyncController:
    """Get or create the controller from context."""
    if "controller" in ctx.obj:
        return ctx.obj["controller"]

    app_config: SyncRsyncConfig = ctx.obj["config"]
    setup_logging(app_config.logging)

    output = OutputChannel(app_config.get_output_file(), console=console)
    if not ctx.obj.get("quiet"):
        output.show()

    indicator = StatusIndicator()
    if not ctx.obj.get("quiet"):
        indicator.add_listener(render_status)

    controller = SyncController(
        WorkspaceContext(str(ctx.obj["workspace"])),
        output,
        ConsoleNotifier(err_console),
        indicator=indicator,
        debounce_seconds=app_config.debounce_seconds,
    )

    try:
        raw = load_raw_settings(get_settings_path(ctx))
    except ConfigError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if controller.reload(raw) is None:
        sys.exit(1)

    ctx.obj["controller"] = controller
    ctx.call_on_close(controller.close)
    return controller


def _install_kill_handler(controller: SyncController) -> None:
    def _kill() -> None:
        if controller.kill_sync():
            err_console.print("\n[yellow]Killing sync...[/yellow]")
        else:
            raise KeyboardInterrupt

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, _kill)


async def _run(controller: SyncController, command: Command) -> bool:
    _install_kill_handler(controller)
    return await command(controller)


def run_command(ctx: click.Context, command: Command) -> None:
    """Run a controller command and exit non-zero on failure."""
    controller = get_controller(ctx)
    success = asyncio.run(_run(controller, command))

    run = controller.session.current_run
    if run is not None and run.duration_seconds is not None and not ctx.obj.get("quiet"):
        took = humanize.naturaldelta(timedelta(seconds=run.duration_seconds))
        state = controller.session.state.name.lower()
        err_console.print(f"[dim]Sync {state} in {took}[/dim]")

    if controller.session.state == SessionState.CANCELLED:
        sys.exit(130)
    if not success:
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="sync-rsync")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Workspace root the settings are resolved against",
)
@click.option(
    "--settings",
    "-s",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file (default: <workspace>/sync-rsync.json)",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to application configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Do not echo process output")
@click.pass_context
def cli(
    ctx: click.Context,
    workspace: Path,
    settings: Path | None,
    config: Path | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """
    sync-rsync - Keep workspace folders in sync with remote sites.

    Sites are read from the workspace settings file; each command runs the
    sync executable for every applicable site.
    """
    ctx.ensure_object(dict)

    app_config = SyncRsyncConfig.load(config) if config else load_config()
    if verbose:
        app_config.logging.level = "DEBUG"

    ctx.obj["config"] = app_config
    ctx.obj["workspace"] = workspace.resolve()
    ctx.obj["settings"] = settings
    ctx.obj["quiet"] = quiet


@cli.command("up")
@click.pass_context
def sync_up(ctx: click.Context) -> None:
    """Sync every site from local to remote."""
    run_command(ctx, lambda c: c.sync_up())


@cli.command("down")
@click.pass_context
def sync_down(ctx: click.Context) -> None:
    """Sync every site from remote to local."""
    run_command(ctx, lambda c: c.sync_down())


@cli.command("compare-up")
@click.pass_context
def compare_up(ctx: click.Context) -> None:
    """Dry-run an upload for every site."""
    run_command(ctx, lambda c: c.compare_up())


@cli.command("compare-down")
@click.pass_context
def compare_down(ctx: click.Context) -> None:
    """Dry-run a download for every site."""
    run_command(ctx, lambda c: c.compare_down())


def pick_site(ctx: click.Context, site: str | None) -> None:
    controller = get_controller(ctx)
    registry = require_registry(controller)
    if site is None:
        site = prompt_site(registry.keys())
    controller.picker = preselected(site)


@cli.command("up-single")
@click.option("--site", help="Site key (prompted for when omitted)")
@click.pass_context
def sync_up_single(ctx: click.Context, site: str | None) -> None:
    """Pick one site and sync it from local to remote."""
    pick_site(ctx, site)
    run_command(ctx, lambda c: c.sync_up_single())


@cli.command("down-single")
@click.option("--site", help="Site key (prompted for when omitted)")
@click.pass_context
def sync_down_single(ctx: click.Context, site: str | None) -> None:
    """Pick one site and sync it from remote to local."""
    pick_site(ctx, site)
    run_command(ctx, lambda c: c.sync_down_single())


@cli.command("up-file")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
def sync_up_file(ctx: click.Context, file: Path) -> None:
    """Upload a single file to every site containing it."""
    path = str(file.resolve())
    run_command(ctx, lambda c: c.sync_up_file(path))


@cli.command("down-file")
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
def sync_down_file(ctx: click.Context, file: Path) -> None:
    """Download a single file from every site containing it."""
    path = str(file.resolve())
    run_command(ctx, lambda c: c.sync_down_file(path))


@cli.command("show-output")
@click.option("--lines", "-n", type=int, default=50, show_default=True, help="Lines to show")
@click.pass_context
def show_output(ctx: click.Context, lines: int) -> None:
    """Show the most recent sync output."""
    app_config: SyncRsyncConfig = ctx.obj["config"]
    output_file = app_config.get_output_file()
    if not output_file.exists():
        console.print("[dim]No output yet[/dim]")
        return

    content = output_file.read_text(encoding="utf-8", errors="replace").splitlines()
    for line in content[-lines:]:
        console.print(line, markup=False, highlight=False)


@cli.command("sites")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_context
def list_sites(ctx: click.Context, json_output: bool) -> None:
    """List resolved sites."""
    controller = get_controller(ctx)
    config = require_config(controller)

    if json_output:
        data = [
            {
                "key": site.key,
                "name": site.name,
                "local": site.local_path,
                "translated_local": site.translated_local_path,
                "remote": site.remote_path,
                "up_only": site.up_only,
                "down_only": site.down_only,
                "executable": site.executable,
            }
            for site in config.sites
        ]
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title="Sites")
    table.add_column("Key", style="cyan")
    table.add_column("Local", style="white")
    table.add_column("Remote", style="green")
    table.add_column("Restriction", style="yellow")
    table.add_column("Executable", style="magenta")

    for site in config.sites:
        restriction = ", ".join(
            label for label, on in (("up only", site.up_only), ("down only", site.down_only)) if on
        )
        table.add_row(
            site.key,
            site.translated_local_path or "",
            site.remote_path or "",
            restriction,
            site.executable,
        )

    console.print(table)


@cli.command("watch")
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Watch the workspace and sync on changes until interrupted.

    Uploads run when files matching watchGlobs change, and on file writes
    when onSave or onSaveIndividual is set. Edits to the settings file are
    picked up without restarting.
    """
    controller = get_controller(ctx)
    settings_path = get_settings_path(ctx).resolve()
    workspace: Path = ctx.obj["workspace"]

    try:
        asyncio.run(_watch(controller, workspace, settings_path))
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Stopped watching[/yellow]")


async def _watch(controller: SyncController, workspace: Path, settings_path: Path) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    def _interrupt() -> None:
        if not controller.kill_sync():
            stop.set()

    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, _interrupt)

    async def _reload() -> None:
        try:
            raw = load_raw_settings(settings_path)
        except ConfigError as e:
            controller.notifier.error(f"Sync-Rsync: {e}")
            return
        controller.reload(raw)

    reload_settings = Debouncer(_reload, controller.debounced_sync_up.wait)

    def _on_change(path: str) -> None:
        changed = Path(path)
        if changed.resolve() == settings_path:
            reload_settings()
        elif changed.is_file():
            controller.on_file_saved(path)

    controller.start_watching()
    changes = WatchSubscription(
        workspace, ["**/*"], _on_change, loop, settle_seconds=controller.debounced_sync_up.wait
    )
    changes.start()
    err_console.print(f"[green]Watching {workspace}[/green] (Ctrl-C to stop)")

    try:
        await stop.wait()
    finally:
        changes.close()
        reload_settings.cancel()
        await controller.drain()


def main() -> None:
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
