"""Command-line interface using Click + Rich."""

import asyncio
import json
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from bookscout.config import load_config
from bookscout.search import BookSearchEngine

console = Console()


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )
    # Keep transport chatter out of the debug view.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@click.group()
def main():
    """BookScout — find books across Google Books, Open Library, Douban and the Internet Archive."""


@main.command()
@click.argument("query")
@click.option(
    "--max-results",
    "-n",
    default=None,
    type=int,
    help="Max books to return (defaults to config).",
)
@click.option(
    "--language",
    "-l",
    type=click.Choice(["zh", "en", "any"], case_sensitive=False),
    default=None,
    help="Preferred book language (defaults to config).",
)
@click.option(
    "--sources",
    default="",
    help="Comma-separated list of sources to use (e.g. 'google,douban').",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Show provider calls and scores.")
def search(
    query: str,
    max_results: int | None,
    language: str | None,
    sources: str,
    as_json: bool,
    verbose: bool,
):
    """Search for books across all sources."""
    _setup_logging(verbose)
    config = load_config()
    if max_results is None:
        max_results = config.max_results
    if language is None:
        language = config.language

    adapters = None
    if sources:
        from bookscout.adapters.registry import get_all_adapters

        wanted = {s.strip().lower() for s in sources.split(",") if s.strip()}
        all_adapters = get_all_adapters(config)
        adapters = [
            a for a in all_adapters if a.source.value in wanted or a.name.lower() in wanted
        ]
        known = {a.source.value for a in adapters} | {a.name.lower() for a in adapters}
        missing = wanted - known
        if missing:
            console.print(
                f"[yellow]Unknown sources ignored:[/yellow] {', '.join(sorted(missing))}"
            )
        if not adapters:
            console.print("[red]No valid sources selected.[/red]")
            return

    engine = BookSearchEngine(adapters=adapters, config=config)
    if as_json:
        report = asyncio.run(engine.search_with_report(query, max_results, language))
    else:
        with console.status("Searching..."):
            report = asyncio.run(engine.search_with_report(query, max_results, language))

    if as_json:
        click.echo(json.dumps([b.to_dict() for b in report.books], ensure_ascii=False, indent=2))
        return

    for name, err in sorted(report.errors.items()):
        console.print(f"[red]{name} failed:[/red] {err}")

    if not report.books:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table(title=f"Results for: {query}", show_lines=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title", style="white", max_width=40)
    table.add_column("Author", style="dim", max_width=30)
    table.add_column("Source", style="cyan")
    table.add_column("Year", style="yellow")
    table.add_column("Rating", style="green", justify="right")
    table.add_column("URL", style="blue", max_width=50)

    for i, b in enumerate(report.books, 1):
        rating = f"{b.average_rating:.1f}" if b.average_rating else "-"
        table.add_row(
            str(i),
            b.title,
            ", ".join(b.authors),
            b.source.value,
            (b.published_date or "-")[:4],
            rating,
            b.info_link or "",
        )

    console.print(table)
    console.print(
        f"[dim]{report.candidates} candidates, {report.unique} unique, "
        f"{report.elapsed:.2f}s{' (cached)' if report.cache_hit else ''}[/dim]"
    )


@main.command()
def sources():
    """List all registered book sources."""
    from bookscout.adapters.registry import get_all_adapters

    adapters = get_all_adapters(load_config())

    async def _check_availability():
        checks = [adapter.is_available() for adapter in adapters]
        return await asyncio.gather(*checks)

    availability = asyncio.run(_check_availability())

    table = Table(title="Registered Sources")
    table.add_column("Source", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("URL", style="blue")
    table.add_column("Available", style="green")

    for adapter, available in zip(adapters, availability, strict=False):
        table.add_row(
            adapter.source.value, adapter.name, adapter.base_url, "yes" if available else "no"
        )

    console.print(table)


@main.command()
@click.option("--force", is_flag=True, help="Overwrite existing config file.")
def init(force: bool):
    """Create a default config file in the user config directory."""
    from bookscout.config import write_default_config

    path = write_default_config(force=force)
    console.print(f"[green]Config written to:[/green] {path}")


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind the web API.")
@click.option("--port", default=8000, type=int, help="Port for the web API.")
def web(host: str, port: int):
    """Run the JSON web API (requires the web extra)."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Web API requires extra dependencies.[/red] "
            "Install with: pip install bookscout[web]"
        )
        return

    uvicorn.run("bookscout.web:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
