"""Navigable location contract.

The URL is treated as an external key-value store: read once when a session
starts and replaced (shallow navigation, no reload) once per applied result.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Location(Protocol):
    @property
    def href(self) -> str:
        """Current absolute URL, query string included."""

        ...

    def replace(self, href: str) -> None:
        """Swap the current URL without reloading or re-fetching anything."""

        ...
