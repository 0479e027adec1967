"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.catalog_client import CharacterCatalogClient
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.domain.errors import CatalogError
from core.domain.theme import Theme

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_catalog(settings: AppSettings) -> tuple[bool, str]:
    client = CharacterCatalogClient(settings)
    try:
        results = await client.fetch_page(1)
    except CatalogError as exc:
        return False, str(exc)
    return True, f"{results.total_count} characters, {results.page_count} pages"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="character-browser doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("HTTP timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    table.add_row("Debounce", "OK", f"{settings.debounce_seconds * 1000:.0f} ms")
    table.add_row("Theme", "OK", settings.theme.label())
    env_file = get_user_env_file()
    table.add_row("User config", "OK" if env_file.exists() else "OPTIONAL", str(env_file))

    # Connectivity (best-effort)
    ok_api, detail_api = asyncio.run(_check_catalog(settings))
    table.add_row("Catalog API", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] listings will show no characters until the catalog API is reachable."
        )
        raise typer.Exit(code=1)


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    defaults = AppSettings()

    base_url = typer.prompt("Catalog API base URL", default=defaults.api_base_url, show_default=True).strip()
    theme_raw = typer.prompt("Theme (light/dark)", default=defaults.theme.value, show_default=True).strip().lower()

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base URL must start with http:// or https://")
    try:
        theme = Theme(theme_raw)
    except ValueError:
        raise typer.BadParameter("theme must be 'light' or 'dark'") from None

    env_path = write_user_env_vars(
        {
            "CHARBROWSER_API_BASE_URL": base_url,
            "CHARBROWSER_THEME": theme.value,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
