"""Contrato del servicio de catálogo.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El controlador depende de esta abstracción, así que el adaptador HTTP se
  puede sustituir por un fake en memoria en los tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Character, FilterState, ResultPage


@runtime_checkable
class CatalogClient(Protocol):
    """Contrato mínimo para un catálogo de personajes.

    Reglas de diseño:
    - Ambas llamadas son asíncronas porque hacen I/O de red.
    - Los fallos lanzan `core.domain.errors.NetworkError` o `ServiceError`.
    - Sin reintentos ni caché: mismos argumentos, misma petición.
    """

    async def fetch_page(self, page: int = 1, filters: FilterState | None = None) -> ResultPage:
        """Fetch one page of characters matching `filters` (its `page` is ignored)."""

        ...

    async def fetch_character(self, character_id: int) -> Character:
        """Fetch a single character by id."""

        ...
