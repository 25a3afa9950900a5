"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.catalog_loader import load_catalog
from adapters.http_client import build_async_client
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import CatalogError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return response.status_code < 400, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


async def _check_catalog(settings: AppSettings) -> tuple[bool, str]:
    try:
        badges = await load_catalog(settings)
    except CatalogError as exc:
        return False, str(exc)
    return bool(badges), f"{len(badges)} quest badges"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="quest-badges Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Horizon", "OK", settings.horizon_url)
    if settings.catalog_path:
        table.add_row("Catalog source", "OK", f"file: {settings.catalog_path}")
    else:
        table.add_row("Catalog source", "OK", settings.catalog_url)
    table.add_row(
        "Claimable search",
        "OK",
        f"{settings.claimable_search_max_pages} pages, {settings.claimable_search_max_concurrency} concurrent",
    )

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings.horizon_url, settings))
    table.add_row("Horizon connectivity", "OK" if ok_http else "FAIL", detail_http)

    ok_catalog, detail_catalog = asyncio.run(_check_catalog(settings))
    table.add_row("Badge catalog", "OK" if ok_catalog else "FAIL", detail_catalog)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] point `SQB_HORIZON_URL` at a reachable Horizon instance."
        )


@app.command(name="set")
def set_value(
    key: str = typer.Argument(..., help="Setting name, e.g. horizon_url."),
    value: str = typer.Argument(..., help="New value."),
) -> None:
    """Store a setting in the user config .env."""

    name = key.strip().lower().removeprefix("sqb_")
    if name not in AppSettings.model_fields:
        raise typer.BadParameter(f"unknown setting {key!r}")

    env_path = write_user_env_vars({f"SQB_{name.upper()}": value})
    _console.print(f"[green]Saved {name} to:[/green] {env_path}")
