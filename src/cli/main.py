"""Command line entry point.

Commands:
- `list`: one page of characters for the given filters.
- `show`: a single character by id.
- `browse`: interactive session driven by the query controller; the URL it
  prints can be passed back with `--url` to resume the same view.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.catalog_client import CharacterCatalogClient
from adapters.http_client import build_async_client
from adapters.json_exporter import export_page_json
from adapters.memory_location import MemoryLocation
from cli import doctor
from cli.log_config import configure_logging
from cli.ui_components import build_character_panel, print_banner, render_state
from core.config import AppSettings
from core.domain.errors import CatalogError, ServiceError
from core.domain.models import ControllerState, FilterState, Gender, ResultPage, Status
from core.domain.theme import Theme
from core.services.catalog_session import open_session, prefetch_page
from core.services.query_controller import ControllerHooks, QueryStateController
from core.services.url_state import build_url

app = typer.Typer(no_args_is_help=True, help="Browse the Rick and Morty character catalog.")
app.add_typer(doctor.app, name="doctor")

_console = Console()

BROWSE_HELP = """\
Commands (separate several with ';' to apply them as one edit):
  status <alive|dead|unknown|all>   gender <male|female|genderless|unknown|all>
  name <text>   name               (search / clear search)
  page <n>   next   prev   clear   (clear resets every filter)
  url   help   quit"""

_CLEAR_WORDS = {"", "all", "any", "none"}


@dataclass
class CliContext:
    settings: AppSettings
    theme: Theme


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
    theme: Theme | None = typer.Option(None, "--theme", help="Color theme (default from config)."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = CliContext(settings=settings, theme=theme or settings.theme)


def _filters_or_exit(**values: object) -> FilterState:
    try:
        return FilterState(**values)
    except ValidationError as exc:
        messages = "; ".join(str(err["msg"]) for err in exc.errors())
        raise typer.BadParameter(messages) from None


async def _fetch_list(settings: AppSettings, filters: FilterState) -> tuple[ResultPage, bool]:
    async with build_async_client(settings) as http:
        client = CharacterCatalogClient(settings, http_client=http)
        return await prefetch_page(client, filters)


@app.command(name="list")
def list_characters(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", "-p", min=1),
    status: str = typer.Option("", "--status", "-s", help="alive, dead or unknown."),
    gender: str = typer.Option("", "--gender", "-g", help="male, female, genderless or unknown."),
    name: str = typer.Option("", "--name", "-n", help="Search by name."),
    json_path: Path | None = typer.Option(None, "--json", help="Also export the page as JSON."),
    url: str | None = typer.Option(None, "--url", help="Base page URL for the shareable link."),
) -> None:
    """List one page of characters."""

    cli: CliContext = ctx.obj
    filters = _filters_or_exit(status=status, gender=gender, name=name, page=page)

    results, failed = asyncio.run(_fetch_list(cli.settings, filters))
    render_state(_console, ControllerState(filters=filters, results=results), cli.theme)

    link = build_url(url or cli.settings.base_url, filters)
    _console.print(f"[dim]URL:[/dim] {link}", soft_wrap=True)

    if json_path is not None:
        out = export_page_json(results=results, filters=filters, output_path=json_path, url=link)
        _console.print(f"[green]JSON exported:[/green] {out}")

    if failed:
        raise typer.Exit(code=1)


async def _fetch_character(settings: AppSettings, character_id: int):
    async with build_async_client(settings) as http:
        client = CharacterCatalogClient(settings, http_client=http)
        return await client.fetch_character(character_id)


@app.command()
def show(
    ctx: typer.Context,
    character_id: int = typer.Argument(..., min=1, help="Character id."),
) -> None:
    """Show a single character."""

    cli: CliContext = ctx.obj
    try:
        character = asyncio.run(_fetch_character(cli.settings, character_id))
    except ServiceError as exc:
        if exc.status_code == 404:
            _console.print(f"[red]Character {character_id} not found.[/red]")
        else:
            _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None
    except CatalogError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from None

    _console.print(build_character_panel(character, cli.theme))


def _choice_arg(parse, arg: str) -> str:
    if arg.lower() in _CLEAR_WORDS:
        return ""
    return parse(arg).value


def _parse_command(controller: QueryStateController, raw: str) -> tuple[str | None, list]:
    """Validate one command and return its action plus the pending edits."""

    verb, _, arg = raw.strip().partition(" ")
    verb = verb.lower()
    arg = arg.strip()

    if not verb:
        return None, []
    if verb in ("quit", "exit", "q"):
        return "quit", []
    if verb in ("url", "help"):
        return verb, []
    if verb == "status":
        value = _choice_arg(Status.parse, arg)
        return None, [lambda: controller.set_status(value)]
    if verb == "gender":
        value = _choice_arg(Gender.parse, arg)
        return None, [lambda: controller.set_gender(value)]
    if verb in ("name", "search"):
        return None, [lambda: controller.set_name(arg)]
    if verb == "page":
        try:
            number = int(arg)
        except ValueError:
            raise ValueError(f"page expects a number, got {arg!r}") from None
        return None, [lambda: controller.set_page(number)]
    if verb == "next":
        return None, [lambda: controller.set_page(controller.filters.page + 1)]
    if verb == "prev":
        return None, [lambda: controller.set_page(controller.filters.page - 1)]
    if verb == "clear":
        return None, [
            lambda: controller.set_status(""),
            lambda: controller.set_gender(""),
            lambda: controller.set_name(""),
        ]
    raise ValueError(f"unknown command {verb!r} (try 'help')")


def dispatch_command(controller: QueryStateController, line: str) -> str | None:
    """Apply every `;`-separated command of `line` to the controller.

    The whole line is validated before any edit is applied: a bad command
    leaves the controller untouched. Edits are then applied synchronously, so
    a line lands inside one debounce window and produces a single request.
    Returns "quit", "url" or "help" when the line asks for one of those, else
    None. Raises ValueError on bad input.
    """

    action: str | None = None
    edits: list = []
    for raw in line.split(";"):
        verb_action, verb_edits = _parse_command(controller, raw)
        if verb_action == "quit":
            return "quit"
        if verb_action is not None:
            action = verb_action
        edits.extend(verb_edits)

    for apply in edits:
        apply()
    return action


async def _browse(settings: AppSettings, theme: Theme, href: str) -> str:
    location = MemoryLocation(href)

    def on_failed(filters: FilterState, exc: Exception) -> None:
        _console.print(f"[yellow]Request failed ({exc}); showing no results.[/yellow]")

    async with build_async_client(settings) as http:
        client = CharacterCatalogClient(settings, http_client=http)
        session = await open_session(
            client=client,
            location=location,
            settings=settings,
            hooks=ControllerHooks(fetch_failed=on_failed),
        )
        print_banner(_console, theme)
        render_state(_console, session.state, theme)
        _console.print(f"[dim]URL:[/dim] {session.href}", soft_wrap=True)

        try:
            while True:
                line = await asyncio.to_thread(_console.input, "[bold]> [/bold]")
                try:
                    action = dispatch_command(session.controller, line)
                except ValueError as exc:
                    _console.print(f"[yellow]{exc}[/yellow]")
                    continue

                if action == "quit":
                    break
                if action == "help":
                    _console.print(BROWSE_HELP)

                if session.controller.is_loading:
                    state = await session.controller.wait_idle()
                    render_state(_console, state, theme)
                if action in ("url", None):
                    _console.print(f"[dim]URL:[/dim] {session.href}", soft_wrap=True)
        finally:
            session.close()
    return location.href


@app.command()
def browse(
    ctx: typer.Context,
    url: str | None = typer.Option(None, "--url", help="Resume from a previously printed URL."),
) -> None:
    """Interactive browsing with debounced search and URL sync."""

    cli: CliContext = ctx.obj
    _console.print(BROWSE_HELP, style="dim")
    try:
        final_href = asyncio.run(_browse(cli.settings, cli.theme, url or cli.settings.base_url))
    except (EOFError, KeyboardInterrupt):
        raise typer.Exit() from None
    _console.print(f"[dim]Last URL:[/dim] {final_href}", soft_wrap=True)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
