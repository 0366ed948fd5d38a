"""CLI application using Typer for querying OpenSearch services."""

import asyncio
import json
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config.settings import settings
from ..core.errors import OpenSearchError
from ..core.models import SearchResult
from ..search.service import Service, discover
from ..utils.logging import get_logger

app = typer.Typer(
    name="osclient",
    help="OpenSearch client - discover services and run searches",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def parse_parameters(pairs: List[str]) -> Dict[str, str]:
    """Turn ``key=value`` arguments into a parameter mapping."""
    parameters: Dict[str, str] = {}
    for pair in pairs:
        key, separator, value = pair.partition("=")
        if not separator or not key:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}")
        parameters[key] = value
    return parameters


def _record_table(result: SearchResult, title: str) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("BBox")
    for i, record in enumerate(result.records, 1):
        bbox = ",".join(f"{v:g}" for v in record.bbox) if record.bbox else ""
        table.add_row(str(i), escape(record.id or ""), escape(str(record.properties.get("title") or "")), bbox)
    return table


@app.command()
def describe(
    url: str = typer.Argument(..., help="URL of the OpenSearch description document"),
) -> None:
    """Show the metadata and search URLs of a service."""
    try:
        service = asyncio.run(_describe(url))
    except OpenSearchError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    description = service.description
    console.print(f"[bold blue]{description.short_name or url}[/bold blue]")
    if description.description:
        console.print(description.description)

    table = Table(title="Search URLs")
    table.add_column("Type", style="cyan")
    table.add_column("Method")
    table.add_column("Relations")
    table.add_column("Parameters", style="green")
    for search_url in description.urls:
        parameters = ", ".join(f"{p.name}={p.to_template_value()}" for p in search_url.parameters)
        table.add_row(search_url.type, search_url.method, " ".join(search_url.relations), parameters)
    console.print(table)


async def _describe(url: str) -> Service:
    service = await discover(url)
    await service.close()
    return service


@app.command()
def search(
    url: str = typer.Argument(..., help="URL of the OpenSearch description document"),
    parameter: List[str] = typer.Option([], "--parameter", "-p", help="Search parameter as key=value"),
    type: Optional[str] = typer.Option(None, "--type", "-t", help="Response MIME type"),
    method: Optional[str] = typer.Option(None, "--method", "-m", help="HTTP method (GET or POST)"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of records"),
    page_size: Optional[int] = typer.Option(
        settings.preferred_items_per_page, "--page-size", help="Preferred records per page"
    ),
    progressive: bool = typer.Option(False, "--progressive/--no-progressive", help="Print pages as they arrive"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Search a service and print the records found."""
    parameters = parse_parameters(parameter)
    try:
        result = asyncio.run(
            _search(url, parameters, type, method, limit, page_size, progressive and not as_json)
        )
    except OpenSearchError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result.model_dump(mode="json")))
        return
    if not progressive:
        console.print(_record_table(result, "Search Results"))
    console.print(
        f"[bold green]{len(result.records)} records[/bold green] "
        f"(total: {result.total_results if result.total_results is not None else 'unknown'})"
    )


async def _search(
    url: str,
    parameters: Dict[str, Any],
    type: Optional[str],
    method: Optional[str],
    limit: Optional[int],
    page_size: Optional[int],
    progressive: bool,
) -> SearchResult:
    async with await discover(url) as service:
        paginator = service.get_paginator(parameters, type, method, preferred_items_per_page=page_size)
        if not progressive:
            if limit:
                return await paginator.fetch_first_records(limit)
            return await paginator.fetch_all_records()

        paged = paginator.search_first_records(limit)
        page_number = 0
        async for page in paged:
            page_number += 1
            console.print(_record_table(page, f"Page {page_number}"))
        return await paged.result()


if __name__ == "__main__":
    app()
