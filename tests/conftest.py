from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlencode

import pytest

from adapters.catalog_client import build_query_params
from core.config import AppSettings
from core.domain.models import Character, FilterState, ResultPage


RICK: dict[str, Any] = {
    "id": 1,
    "name": "Rick Sanchez",
    "status": "Alive",
    "species": "Human",
    "type": "",
    "gender": "Male",
    "origin": {"name": "Earth (C-137)", "url": "https://rickandmortyapi.com/api/location/1"},
    "location": {"name": "Citadel of Ricks", "url": "https://rickandmortyapi.com/api/location/3"},
    "image": "https://rickandmortyapi.com/api/character/avatar/1.jpeg",
    "episode": [
        "https://rickandmortyapi.com/api/episode/1",
        "https://rickandmortyapi.com/api/episode/2",
    ],
    "url": "https://rickandmortyapi.com/api/character/1",
    "created": "2017-11-04T18:48:46.250Z",
}

MORTY: dict[str, Any] = {
    **RICK,
    "id": 2,
    "name": "Morty Smith",
    "image": "https://rickandmortyapi.com/api/character/avatar/2.jpeg",
    "url": "https://rickandmortyapi.com/api/character/2",
}


def list_payload(*characters: dict[str, Any], pages: int = 1, count: int | None = None) -> dict[str, Any]:
    return {
        "info": {
            "count": len(characters) if count is None else count,
            "pages": pages,
            "next": None,
            "prev": None,
        },
        "results": list(characters),
    }


def page_of(label: str, *, page_count: int = 10) -> ResultPage:
    """One-item page whose character name identifies the request that produced it."""

    return ResultPage(
        items=(Character(id=abs(hash(label)) % 10_000, name=label),),
        page_count=page_count,
        total_count=page_count * 20,
    )


class FakeCatalogClient:
    """In-memory catalog. With `gated=True` every call waits for the test to release it."""

    def __init__(self, *, page_count: int = 10, gated: bool = False) -> None:
        self.page_count = page_count
        self.gated = gated
        self.calls: list[dict[str, str]] = []
        self.gates: list[asyncio.Event] = []
        self.fail_with: Exception | None = None

    async def fetch_page(self, page: int = 1, filters: FilterState | None = None) -> ResultPage:
        params = build_query_params(page, filters)
        self.calls.append(params)
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return page_of(urlencode(params), page_count=self.page_count)

    async def fetch_character(self, character_id: int) -> Character:
        return Character.model_validate({**RICK, "id": character_id})

    async def wait_for_calls(self, count: int, timeout: float = 2.0) -> None:
        async def _poll() -> None:
            while len(self.calls) < count:
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        api_base_url="https://catalog.test/api",
        debounce_seconds=0.05,
    )
