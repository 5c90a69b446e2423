"""ABOUTME: CLI entry point for dexsearch commands.
ABOUTME: Provides list, show, types, generations, and search commands via Typer."""

import asyncio
from collections.abc import Sequence
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from dexsearch.catalog.client import CatalogClient
from dexsearch.catalog.formatting import (
    STAT_LABELS,
    capitalize,
    dex_number,
    format_height,
    format_weight,
    gender_ratio,
)
from dexsearch.catalog.pagination import ELLIPSIS, visible_pages
from dexsearch.config import CatalogConfig, load_catalog_config
from dexsearch.errors import NotFoundError, UpstreamUnavailableError
from dexsearch.logs import init_logging
from dexsearch.models import CreatureDetail, CreatureSummary, FilterCriteria
from dexsearch.search.fallback import build_fallback_provider
from dexsearch.search.session import SearchSession, SessionState
from dexsearch.settings import settings

app = typer.Typer(
    name="dexsearch",
    help="Browse, filter, and search the creature catalog.",
    no_args_is_help=True,
)

console = Console()

# Options shared by all commands, set by the app callback
state: dict[str, str | None] = {"config_path": None}


@app.callback()
def main(
    config_path: str | None = typer.Option(None, "--config", "-c", help="Path to a catalog.yml override file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log search and request details"),
) -> None:
    """Initialize logging before any command runs."""
    if settings.logging_config_path.exists():
        init_logging(settings.logging_config_path, level="DEBUG" if verbose else None)
    state["config_path"] = config_path


def _config() -> CatalogConfig:
    path = state["config_path"]
    if path is not None:
        return load_catalog_config(Path(path))
    if settings.catalog_config_path.exists():
        return load_catalog_config()
    return CatalogConfig.from_settings()


def _print_creatures(creatures: Sequence[CreatureSummary], title: str) -> None:
    table = Table(title=title)
    table.add_column("No.", justify="right")
    table.add_column("Name")
    table.add_column("Types")
    table.add_column("Generation")
    table.add_column("Evolves from")
    for creature in creatures:
        table.add_row(
            dex_number(creature.id),
            capitalize(creature.display_name),
            ", ".join(category.display_name for category in creature.categories),
            creature.generation,
            capitalize(creature.evolves_from_name) if creature.evolves_from_name else "-",
        )
    console.print(table)


def _print_detail(creature: CreatureDetail, max_stat: int) -> None:
    flags = []
    if creature.is_legendary:
        flags.append("[yellow]Legendary[/]")
    if creature.is_mythical:
        flags.append("[magenta]Mythical[/]")
    console.print(f"[bold]{capitalize(creature.display_name)}[/] {dex_number(creature.id)} {' '.join(flags)}")
    if creature.species.genus:
        console.print(creature.species.genus)
    console.print(f"[italic]{creature.flavor_text}[/]")
    console.print(f"Types: {', '.join(category.display_name for category in creature.categories)}")
    console.print(f"{creature.generation} | Height {format_height(creature.height)} | Weight {format_weight(creature.weight)}")
    console.print(f"Gender: {gender_ratio(creature.species.gender_rate)}")

    abilities = ", ".join(
        f"{capitalize(ability.display_name)}{' (Hidden)' if ability.is_hidden else ''}"
        for ability in creature.abilities
    )
    console.print(f"Abilities: {abilities}")

    stats = Table(title="Base Stats")
    stats.add_column("Stat")
    stats.add_column("Value", justify="right")
    stats.add_column("")
    for stat in creature.stats:
        bar = "#" * round(stat.base_stat / max_stat * 20)
        stats.add_row(STAT_LABELS.get(stat.name, stat.name), str(stat.base_stat), bar)
    stats.add_row("Total", str(creature.total_stats), "")
    console.print(stats)

    if len(creature.evolution_chain) > 1:
        steps = []
        for node in creature.evolution_chain:
            label = capitalize(node.display_name)
            if node.id == creature.id:
                label = f"[bold]{label}[/]"
            condition = f"Lv. {node.min_level}" if node.min_level else (capitalize(node.item) if node.item else "")
            steps.append(f"{label} ({condition})" if condition else label)
        console.print("Evolution: " + " -> ".join(steps))

    console.print(f"Moves: {len(creature.moves)}")


def _page_links(page: int, total: int) -> str:
    return " ".join("..." if p == ELLIPSIS else (f"[{p}]" if p == page else str(p)) for p in visible_pages(page, total))


@app.command("list")
def list_command(
    page: str = typer.Option("1", "--page", "-p", help="Page number (1-based)"),
    search: str | None = typer.Option(None, "--search", "-s", help="Name search"),
    type_slug: str | None = typer.Option(None, "--type", "-t", help="Category slug, e.g. fire"),
    generation: str | None = typer.Option(None, "--generation", "-g", help="Generation slug, e.g. generation-i"),
    language: str | None = typer.Option(None, "--language", "-l", help="Locale tag, e.g. es"),
) -> None:
    """List one page of creatures matching the filters."""
    criteria = FilterCriteria.build(page=page, search=search, type=type_slug, generation=generation, language=language)

    async def run() -> None:
        async with CatalogClient(_config()) as client:
            result = await client.list_creatures(criteria)
        _print_creatures(result.creatures, f"{result.total} found")
        if result.total_pages > 1:
            console.print(f"Page {result.page} of {result.total_pages}: {_page_links(result.page, result.total_pages)}")

    try:
        asyncio.run(run())
    except UpstreamUnavailableError as e:
        console.print(f"[red]Could not reach the catalog, try again:[/] {e}")
        raise typer.Exit(1) from None


@app.command()
def show(
    creature_id: str = typer.Argument(..., help="Creature id"),
    language: str | None = typer.Option(None, "--language", "-l", help="Locale tag, e.g. es"),
) -> None:
    """Show the full detail of one creature."""
    config = _config()

    async def run() -> CreatureDetail:
        async with CatalogClient(config) as client:
            return await client.get_creature_detail(creature_id, language)

    try:
        detail = asyncio.run(run())
    except NotFoundError as e:
        console.print(f"[red]Not found:[/] {e}")
        raise typer.Exit(1) from None
    except UpstreamUnavailableError as e:
        console.print(f"[red]Could not reach the catalog, try again:[/] {e}")
        raise typer.Exit(1) from None

    _print_detail(detail, config.max_stat)


@app.command()
def types(
    language: str | None = typer.Option(None, "--language", "-l", help="Locale tag, e.g. es"),
) -> None:
    """List category filter options."""

    async def run() -> None:
        async with CatalogClient(_config()) as client:
            options = await client.get_types(language)
        for option in options:
            console.print(f"{option.slug}: {option.name}")

    try:
        asyncio.run(run())
    except UpstreamUnavailableError as e:
        console.print(f"[red]Could not reach the catalog, try again:[/] {e}")
        raise typer.Exit(1) from None


@app.command()
def generations(
    language: str | None = typer.Option(None, "--language", "-l", help="Locale tag, e.g. es"),
) -> None:
    """List generation filter options."""

    async def run() -> None:
        async with CatalogClient(_config()) as client:
            options = await client.get_generations(language)
        for option in options:
            console.print(f"{option.slug}: {option.name}")

    try:
        asyncio.run(run())
    except UpstreamUnavailableError as e:
        console.print(f"[red]Could not reach the catalog, try again:[/] {e}")
        raise typer.Exit(1) from None


@app.command()
def search(
    text: str = typer.Argument(..., help="Free-text search; falls back to AI search when nothing matches"),
    type_slug: str | None = typer.Option(None, "--type", "-t", help="Category slug"),
    generation: str | None = typer.Option(None, "--generation", "-g", help="Generation slug"),
    language: str | None = typer.Option(None, "--language", "-l", help="Locale tag"),
) -> None:
    """Run one search session: filtered query first, semantic fallback when eligible."""
    config = _config()
    criteria = FilterCriteria.build(type=type_slug, generation=generation, language=language)

    async def run() -> SearchSession:
        async with CatalogClient(config) as client:
            session = SearchSession(client, build_fallback_provider(config), config, criteria=criteria)
            session.input_changed(text)
            await session.wait_idle()
            await session.close()
            return session

    session = asyncio.run(run())

    if session.state is SessionState.FAILED:
        console.print(f"[red]Could not reach the catalog, try again:[/] {session.error}")
        raise typer.Exit(1)

    if session.state is SessionState.AI_FALLBACK_SETTLED:
        if not session.fallback_results:
            console.print("No matches.")
            return
        _print_creatures(session.fallback_results, "AI suggestions")
        return

    result = session.result
    if result is None or result.is_empty:
        console.print("No matches.")
        return
    _print_creatures(result.creatures, f"{result.total} found")


if __name__ == "__main__":
    app()
