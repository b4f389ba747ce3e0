#!/usr/bin/env python3
"""
Command line front end for the quicklaunch search core.

Usage:
    ql search "query"           - Run one search across every source
    ql type dow down downl      - Simulate keystrokes, show what survives
    ql plugins [query]          - List or filter registered plugins
    ql status                   - Show cache and source health after a search
    ql config init PATH         - Write a default configuration file
"""

import asyncio
from pathlib import Path
from typing import Optional, Sequence

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from ..daemon.config import Config
from ..daemon.error_handling import ConfigError
from ..daemon.main import LauncherService, setup_logging
from ..daemon.models import DirectPathResult, MemoItem, Source
from ..daemon.plugins import PluginRegistry

console = Console()

SOURCE_TITLES = {
    Source.MEMOS: "Notes",
    Source.FOLDERS: "Folders",
    Source.APPLICATIONS: "Applications",
    Source.FILE_HISTORY: "Recent Files",
    Source.PLUGINS: "Plugins",
}


def load_config(config_path: Optional[str]) -> Config:
    if config_path:
        return Config.load(Path(config_path))
    try:
        return Config.load()
    except FileNotFoundError:
        return Config.default()


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool):
    """quicklaunch - launcher search from the terminal."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    setup_logging(config, level="DEBUG" if verbose else "WARNING")
    ctx.obj = config


@cli.command()
@click.argument("query")
@click.option("--memo", "-m", multiple=True, help="Add a note to search")
@click.option("--history", "-H", multiple=True, type=click.Path(), help="Add a recently opened file")
@click.pass_obj
def search(config: Config, query: str, memo: Sequence[str], history: Sequence[str]):
    """Search every source for QUERY."""
    service = asyncio.run(run_queries(config, [query], memo, history))
    display_results(service)


@cli.command(name="type")
@click.argument("queries", nargs=-1, required=True)
@click.option("--memo", "-m", multiple=True, help="Add a note to search")
@click.option("--history", "-H", multiple=True, type=click.Path(), help="Add a recently opened file")
@click.pass_obj
def type_queries(config: Config, queries: Sequence[str], memo: Sequence[str], history: Sequence[str]):
    """Issue QUERIES back to back, as if typed, without waiting in between."""
    service = asyncio.run(run_queries(config, list(queries), memo, history))
    stats = service.controller.statistics()
    console.print(
        f"[dim]{stats['queries']} queries, {stats['committed']} commits, "
        f"{stats['discarded']} stale results discarded[/dim]"
    )
    display_results(service)


async def run_queries(
    config: Config,
    queries: Sequence[str],
    memos: Sequence[str] = (),
    history: Sequence[str] = ()
) -> LauncherService:
    service = LauncherService(config)
    for i, text in enumerate(memos):
        service.backends.memos.add(MemoItem(id=f"cli-{i}", title=text))
    for path in history:
        service.backends.history.record_open(path)

    async with service:
        for text in queries:
            service.controller.set_query(text)
        await service.controller.wait_idle()
    return service


def display_results(service: LauncherService) -> None:
    controller = service.controller
    console.print(f"Query: [bold]{controller.current_query}[/bold]")

    intent = controller.search_intent
    if intent is not None:
        # A search prefix replaces every other result
        console.print(f"[magenta]{intent.display_name}[/magenta]")
        console.print(f"[dim]{intent.url}[/dim]")
        return

    direct: DirectPathResult = controller.direct_path_result
    if direct.present:
        console.print(f"[green]Path exists:[/green] {direct.record.path}")

    detected = False
    for url in controller.results(Source.DETECTED_URLS):
        detected = True
        console.print(f"[blue]Open link:[/blue] {url}")
    for email in controller.results(Source.DETECTED_EMAILS):
        detected = True
        console.print(f"[blue]Send mail:[/blue] {email}")
    if controller.results(Source.DETECTED_JSON) is not None:
        detected = True
        console.print("[blue]Valid JSON:[/blue] open with json_formatter")

    shown = False
    for source, title in SOURCE_TITLES.items():
        results = controller.results(source)
        if not results:
            continue
        shown = True
        table = Table(title=title)
        table.add_column("Name", style="cyan")
        table.add_column("Detail", no_wrap=False)
        for item in results:
            table.add_row(*_describe(source, item))
        console.print(table)

    if not shown and not detected and not direct.present:
        console.print("[yellow]No results found[/yellow]")


def _describe(source: Source, item) -> Sequence[str]:
    if source is Source.MEMOS:
        return item.title, item.content[:80]
    if source is Source.FOLDERS:
        return item.display_name, item.path
    if source is Source.APPLICATIONS:
        return item.name, item.description or item.path
    if source is Source.FILE_HISTORY:
        icon = f" [dim]({item.icon})[/dim]" if item.icon else ""
        return item.name, f"{item.path}{icon}"
    return item.name, item.description or item.id


@cli.command()
@click.argument("query", required=False, default="")
def plugins(query: str):
    """List plugins, or those matching QUERY."""
    registry = PluginRegistry()
    found = registry.search(query) if query else list(registry)

    if not found:
        console.print("[yellow]No plugins match[/yellow]")
        return

    table = Table(title="Plugins")
    table.add_column("ID", style="magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for plugin in found:
        table.add_row(plugin.id, plugin.name, plugin.description or "")
    console.print(table)


@cli.command()
@click.argument("query", required=False, default="")
@click.pass_obj
def status(config: Config, query: str):
    """Show cache and source health, optionally after searching QUERY."""
    service = asyncio.run(run_queries(config, [query] if query else []))
    data = service.status()["search"]

    table = Table(title="Caches")
    table.add_column("Cache", style="cyan")
    table.add_column("Loaded")
    table.add_column("Items", justify="right")
    table.add_column("Fetches", justify="right")
    for name, snapshot in data["caches"].items():
        table.add_row(
            name,
            "[green]yes[/green]" if snapshot["loaded"] else "[dim]no[/dim]",
            str(snapshot["size"]),
            str(snapshot["fetches"])
        )
    console.print(table)

    for name, health in data["source_health"].items():
        color = {"healthy": "green", "degraded": "yellow", "failing": "red"}[health["state"]]
        console.print(f"{name}: [{color}]{health['state']}[/{color}] ({health['error_count']} errors)")


@cli.group()
def config():
    """Manage configuration files."""
    pass


@config.command(name="init")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: str, force: bool):
    """Write a default configuration to PATH."""
    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force)")
    Config.default().save(target)
    logger.debug(f"Wrote default config to {target}")
    console.print(f"[green]✓[/green] Wrote {target}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
