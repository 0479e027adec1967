"""In-process `Location`.

A terminal has no address bar: the session keeps its URL here and the CLI
prints it as a shareable link. `history` records every shallow replacement.
"""

from __future__ import annotations

from core.interfaces.navigation import Location


class MemoryLocation(Location):
    def __init__(self, href: str) -> None:
        self._href = href
        self.history: list[str] = [href]

    @property
    def href(self) -> str:
        return self._href

    def replace(self, href: str) -> None:
        self._href = href
        self.history.append(href)
