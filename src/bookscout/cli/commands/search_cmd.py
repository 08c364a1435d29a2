# ABOUTME: The `bookscout search` command for finding candidate records in external catalogs.
# ABOUTME: Runs the concurrent acquisition pipeline and prints ranked results in a Rich table.

import asyncio
from dataclasses import replace

import click
import httpx
from rich.console import Console
from rich.table import Table

from bookscout.acquisition.config import SearchSettings
from bookscout.acquisition.http import create_http_client
from bookscout.acquisition.relevance import DEFAULT_THRESHOLD
from bookscout.acquisition.service import BookSearchService, create_search_service
from bookscout.acquisition.types import CanonicalRecord
from bookscout.cli.options import api_key_option, limit_option

console = Console()

_DESCRIPTION_PREVIEW = 80


def _create_service(settings: SearchSettings, client: httpx.AsyncClient) -> BookSearchService:
    """Create the default search service (Google Books + Open Library)."""
    return create_search_service(settings, client)


async def _run_search(
    settings: SearchSettings,
    title: str,
    author: str,
    isbn: str | None,
    limit: int,
    deadline: float | None,
) -> tuple[list[CanonicalRecord], bool]:
    """Run one search, cancelling it if the deadline passes.

    Returns the results and whether the search was cancelled.
    """
    cancel_event = asyncio.Event()
    handle = None
    if deadline is not None:
        handle = asyncio.get_running_loop().call_later(deadline, cancel_event.set)

    try:
        async with create_http_client(
            timeout=settings.request_timeout, user_agent=settings.user_agent
        ) as client:
            service = _create_service(settings, client)
            results = await service.search_books(
                title, author, isbn=isbn, limit=limit, cancel_event=cancel_event
            )
    finally:
        if handle is not None:
            handle.cancel()

    return results, cancel_event.is_set()


def _preview(text: str | None) -> str:
    if not text:
        return "[dim]none[/dim]"
    flat = " ".join(text.split())
    if len(flat) <= _DESCRIPTION_PREVIEW:
        return flat
    return flat[: _DESCRIPTION_PREVIEW - 1] + "…"


def _render(results: list[CanonicalRecord], show_descriptions: bool) -> Table:
    table = Table()
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Year", width=4)
    table.add_column("Publisher")
    table.add_column("ISBN")
    table.add_column("Source", style="dim")
    if show_descriptions:
        table.add_column("Description")

    for i, record in enumerate(results, start=1):
        row = [
            str(i),
            record.title,
            record.authors,
            str(record.published_date.year) if record.published_date else "[dim]unknown[/dim]",
            record.publisher or "[dim]unknown[/dim]",
            record.isbn or "[dim]unknown[/dim]",
            record.provenance.value,
        ]
        if show_descriptions:
            row.append(_preview(record.description))
        table.add_row(*row)
    return table


@click.command("search")
@click.argument("title", required=False, default="")
@click.option("-a", "--author", default="", help="Author name to search for.")
@click.option("-i", "--isbn", default=None, help="ISBN for an exact lookup.")
@limit_option
@click.option(
    "-t",
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=DEFAULT_THRESHOLD,
    show_default=True,
    help="Relevance cutoff; lower is stricter.",
)
@click.option(
    "--enrich/--no-enrich",
    default=True,
    help="Fetch missing descriptions from Open Library (default: --enrich).",
)
@click.option(
    "-d",
    "--descriptions",
    is_flag=True,
    default=False,
    help="Show a description preview column.",
)
@click.option(
    "--deadline",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="Cancel the search after this many seconds.",
)
@api_key_option
def search(
    title: str,
    author: str,
    isbn: str | None,
    limit: int,
    threshold: float,
    enrich: bool,
    descriptions: bool,
    deadline: float | None,
    api_key: str | None,
) -> None:
    """Search Google Books and Open Library for books to import."""
    if not (title.strip() or author.strip() or (isbn or "").strip()):
        raise click.UsageError("Provide a TITLE, --author, or --isbn.")

    try:
        settings = SearchSettings.from_env()
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    settings = replace(
        settings,
        google_books_api_key=api_key or settings.google_books_api_key,
        relevance_threshold=threshold,
        enrich_descriptions=enrich,
    )

    try:
        results, cancelled = asyncio.run(
            _run_search(settings, title, author, isbn, limit, deadline)
        )
    except KeyboardInterrupt:
        console.print("[yellow]Search cancelled.[/yellow]")
        raise SystemExit(130) from None

    if cancelled:
        console.print("[yellow]Search cancelled (deadline reached).[/yellow]")
        return

    if not results:
        console.print("[yellow]No matching books found.[/yellow] Try different search terms.")
        return

    console.print(_render(results, descriptions))
    console.print(f"\n[dim]{len(results)} result(s)[/dim]")
