"""Catalog client: Rick and Morty character API.

- List query: `GET /character?page=&status=&gender=&name=`.
- Detail query: `GET /character/<id>`.

Empty filters are never sent: the service would treat `name=` as "no filter"
anyway, but omitting the key keeps request URLs canonical.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import CatalogError, NetworkError, ServiceError
from core.domain.models import ApiResponse, Character, FilterState, ResultPage
from core.interfaces.catalog import CatalogClient

logger = logging.getLogger(__name__)


def build_query_params(page: int, filters: FilterState | None = None) -> dict[str, str]:
    """Outgoing query parameters for a list request.

    `page` always travels; status/gender/name only when they constrain the result.
    """

    params = {"page": str(page)}
    if filters is not None:
        params.update(filters.query_params(include_page=False))
    return params


def _error_detail(resp: httpx.Response) -> str | None:
    # The service answers `{"error": "There is nothing here"}` on misses.
    try:
        data = resp.json()
    except ValueError:
        text = resp.text.strip()
        return text[:200] or None
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return None


class CharacterCatalogClient(CatalogClient):
    """Stateless client for the character catalog.

    A shared `httpx.AsyncClient` can be injected (interactive sessions, tests);
    without one, a short-lived client is opened per request.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._http = http_client

    @property
    def base_url(self) -> str:
        return self._settings.api_base_url.rstrip("/")

    async def fetch_page(self, page: int = 1, filters: FilterState | None = None) -> ResultPage:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")

        url = f"{self.base_url}/character"
        params = build_query_params(page, filters)
        try:
            payload, status_code = await self._get_json(url, params=params)
            try:
                response = ApiResponse.model_validate(payload)
            except ValidationError as exc:
                raise ServiceError(status_code, "malformed character list payload") from exc
        except CatalogError as exc:
            logger.warning("Error fetching characters (params=%s): %s", params, exc)
            raise
        return ResultPage.from_response(response)

    async def fetch_character(self, character_id: int) -> Character:
        url = f"{self.base_url}/character/{int(character_id)}"
        try:
            payload, status_code = await self._get_json(url)
            try:
                return Character.model_validate(payload)
            except ValidationError as exc:
                raise ServiceError(status_code, "malformed character payload") from exc
        except CatalogError as exc:
            logger.warning("Error fetching character with id %s: %s", character_id, exc)
            raise

    async def _get_json(self, url: str, *, params: dict[str, str] | None = None) -> tuple[Any, int]:
        try:
            if self._http is not None:
                resp = await self._http.get(url, params=params)
            else:
                async with build_async_client(self._settings) as client:
                    resp = await client.get(url, params=params)
        except httpx.TransportError as exc:
            raise NetworkError(f"request to {url} failed: {exc!r}") from exc

        if not resp.is_success:
            raise ServiceError(resp.status_code, _error_detail(resp))

        try:
            return resp.json(), resp.status_code
        except ValueError as exc:
            raise ServiceError(resp.status_code, "response body is not JSON") from exc
