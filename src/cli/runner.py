# src/cli/runner.py

"""Headless CLI search runner around the async aggregator."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.product import Product
from src.models.query_context import QueryContext
from src.services.aggregator import FeedAggregator, load_feeds
from src.storage.preference_store import PreferenceStore

logger = logging.getLogger("feedrank.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def resolve_sources(
    source_csv: str | None,
) -> list[dict[str, str]]:
    """Map a comma-separated list of source IDs to their config dicts.

    Returns all sources when *source_csv* is ``None``; the registry
    order is kept either way, since it decides merge precedence.
    Raises ``SystemExit`` on unknown IDs.
    """
    if source_csv is None:
        return Settings.AVAILABLE_SOURCES

    available = {s["id"] for s in Settings.AVAILABLE_SOURCES}
    requested = {s.strip() for s in source_csv.split(",") if s.strip()}
    unknown = sorted(requested - available)
    if unknown:
        _err.print(f"[red]Unknown source(s): {', '.join(unknown)}[/red]")
        _err.print(f"[dim]Available: {', '.join(sorted(available))}[/dim]")
        raise SystemExit(1)

    return [s for s in Settings.AVAILABLE_SOURCES if s["id"] in requested]


def _print_table(products: list[Product]) -> None:
    """Render a Rich table of ranked products to stdout."""
    table = Table(
        title="Ranked Results",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Brand")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Rating", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Source", style="magenta")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, p in enumerate(products, 1):
        table.add_row(
            str(idx),
            (p.name or "")[:50],
            p.brand or "—",
            f"{p.price:,.2f}" if p.price is not None else "N/A",
            f"{p.rating:.1f}" if p.rating is not None else "—",
            f"{p.score:.2f}" if p.score is not None else "—",
            p.source,
            p.url or "",
        )

    Console().print(table)


async def cli_search(
    context: QueryContext,
    source_csv: str | None,
    output_format: str,
    page: int = 1,
) -> int:
    """Run one ranked search and return an exit code.

    0 when live products were printed; 1 when nothing matched or every
    feed failed (any stale or sample rows are still printed).
    """
    sources = resolve_sources(source_csv)
    aggregator = FeedAggregator(feeds=load_feeds(sources))

    source_labels = ", ".join(s["label"] for s in sources)
    _err.print(
        f"[bold]Searching:[/bold] {context.query or '(everything)'}  "
        f"[dim]sources={source_labels} sort={context.sort}[/dim]"
    )

    result = await aggregator.search(context, page)

    for message in result.error_messages:
        _err.print(f"[red]Error: {message}[/red]")
    if result.advisory is not None:
        _err.print(f"[yellow]All feeds failed: {result.advisory}[/yellow]")
    if result.stale:
        _err.print("[yellow]Showing stale cached results.[/yellow]")
    if result.sample:
        _err.print("[yellow]Showing the sample catalog, not live data.[/yellow]")

    if not result.products:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    detail = (
        f" ({result.deduplicated_count} deduped)"
        if result.deduplicated_count
        else ""
    )
    _err.print(f"[green]✓ {len(result.products)} products{detail}[/green]")

    if output_format == "table":
        _print_table(result.products)
    else:
        json.dump(
            [p.to_dict() for p in result.products],
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    # Sample or stale rows are shown, but the search itself failed
    return 1 if result.advisory is not None else 0


def build_context(
    query: str,
    user_id: str | None,
    overrides: dict[str, object],
    save: bool = False,
) -> QueryContext:
    """Merge stored preferences for *user_id* with command-line overrides.

    With ``save`` the merged filter fields are written back so the next
    run starts from them.
    """
    store = PreferenceStore() if user_id else None
    prefs = store.load_prefs(user_id) if store and user_id else {}

    context = QueryContext.from_preferences(prefs, query=query, **overrides)

    if save and store and user_id:
        store.save_prefs(
            user_id,
            {
                **prefs,
                "gender": context.gender or "",
                "palette": context.palette or "",
                "body": context.body or "",
                "materials": list(context.materials),
            },
        )
    return context


def cli_favorites(user_id: str, toggle_key: str | None = None) -> int:
    """Toggle *toggle_key* (when given) and print the user's favorites.

    Favorites are dedup keys (product id, else url), written to stdout
    as a JSON array.
    """
    store = PreferenceStore()
    if toggle_key:
        added = store.toggle_favorite(user_id, toggle_key)
        _err.print(
            f"[green]{'Added' if added else 'Removed'} favorite:[/green] "
            f"{toggle_key}"
        )

    favorites = store.load_favorites(user_id)
    json.dump(favorites, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


def run_server(host: str, port: int) -> int:
    """Serve the HTTP API until interrupted."""
    import uvicorn

    from src.api.app import create_app

    _err.print(f"[bold]Serving feedrank on http://{host}:{port}[/bold]")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")
    return 0
