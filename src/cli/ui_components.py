"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- El tema llega como parámetro; aquí nada lee estado global.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Character, ControllerState, FilterState, ResultPage
from core.domain.theme import Theme

_PALETTES: dict[Theme, dict[str, str]] = {
    Theme.DARK: {
        "accent": "bright_cyan",
        "border": "cyan",
        "name": "bold white",
        "muted": "grey62",
    },
    Theme.LIGHT: {
        "accent": "blue",
        "border": "blue",
        "name": "bold black",
        "muted": "grey35",
    },
}


def palette(theme: Theme) -> dict[str, str]:
    return _PALETTES[theme]


def status_style(status: str) -> str:
    """Badge color: Alive green, Dead red, anything else yellow."""

    value = status.strip().lower()
    if value == "alive":
        return "bold green"
    if value == "dead":
        return "bold red"
    return "bold yellow"


def print_banner(console: Console, theme: Theme = Theme.DARK) -> None:
    """Imprime el banner de bienvenida."""

    colors = palette(theme)
    title = Text("Rick and Morty Characters", style=f"bold {colors['accent']}")
    subtitle = Text("Filter by status, gender or name • shareable URLs", style=colors["muted"])
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style=colors["border"], padding=(1, 4)))


def describe_filters(filters: FilterState) -> str:
    parts = [f"page {filters.page}"]
    if not filters.status.is_empty:
        parts.append(f"status={filters.status.value}")
    if not filters.gender.is_empty:
        parts.append(f"gender={filters.gender.value}")
    if filters.search_name:
        parts.append(f"name~{filters.search_name!r}")
    return ", ".join(parts)


def build_characters_table(
    results: ResultPage,
    filters: FilterState,
    theme: Theme = Theme.DARK,
) -> Table:
    """Table of one result page, one row per character id."""

    colors = palette(theme)
    caption = f"{results.total_count} characters • page {filters.page} of {results.page_count}"
    table = Table(
        title=f"Characters ({describe_filters(filters)})",
        caption=caption,
        border_style=colors["border"],
    )
    table.add_column("ID", style=colors["muted"], justify="right", no_wrap=True)
    table.add_column("Name", style=colors["name"])
    table.add_column("Status", no_wrap=True)
    table.add_column("Species", style=colors["accent"])
    table.add_column("Gender")

    for character in results.items:
        table.add_row(
            str(character.id),
            character.name,
            Text(character.status, style=status_style(character.status)),
            character.species,
            character.gender,
        )
    return table


def render_state(console: Console, state: ControllerState, theme: Theme = Theme.DARK) -> None:
    if state.is_loading:
        console.print(Text("Loading characters…", style=palette(theme)["muted"]))
        return
    if not state.results.items:
        console.print(Text("No characters found", style="bold"), justify="center")
        return
    console.print(build_characters_table(state.results, state.filters, theme))


def build_character_panel(character: Character, theme: Theme = Theme.DARK) -> Panel:
    colors = palette(theme)
    body = Text()
    body.append("Status: ", style="bold")
    body.append(character.status + "\n", style=status_style(character.status))
    body.append("Species: ", style="bold")
    body.append(character.species + (f" ({character.type})" if character.type else "") + "\n")
    body.append("Gender: ", style="bold")
    body.append(character.gender + "\n")
    body.append("Origin: ", style="bold")
    body.append((character.origin.name or "unknown") + "\n")
    body.append("Last known location: ", style="bold")
    body.append((character.location.name or "unknown") + "\n")
    body.append(f"Episodes: {len(character.episode)}\n", style=colors["muted"])
    if character.image_url:
        body.append(character.image_url, style=f"link {character.image_url}")

    title = Text(f"#{character.id} {character.name}", style=colors["name"])
    return Panel(body, title=title, border_style=colors["border"])
