"""Catalog browsing session.

This module wires the pieces a front-end needs: the URL is read once into the
seed filters, the first page is pre-fetched for those filters, and the query
controller is created with a hook that writes every applied state back to the
URL. Entry points (CLI, tests) get a ready controller and never deal with
hydration order themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core.config import AppSettings
from core.domain.errors import CatalogError
from core.domain.models import ControllerState, FilterState, ResultPage
from core.interfaces.catalog import CatalogClient
from core.interfaces.navigation import Location
from core.services.query_controller import ControllerHooks, QueryStateController
from core.services.url_state import UrlProjection

logger = logging.getLogger(__name__)


@dataclass
class CatalogSession:
    """A hydrated controller plus the URL it keeps in sync."""

    controller: QueryStateController
    projection: UrlProjection
    seed: FilterState
    prefetch_failed: bool = False
    urls: list[str] = field(default_factory=list)

    @property
    def state(self) -> ControllerState:
        return self.controller.state

    @property
    def href(self) -> str:
        return self.projection.href

    def close(self) -> None:
        self.controller.dispose()


async def prefetch_page(client: CatalogClient, filters: FilterState) -> tuple[ResultPage, bool]:
    """Fetch the seed page before the controller exists.

    Returns `(results, failed)`. A failure yields an empty page instead of an
    exception, so the first render always has something to show.
    """

    try:
        return await client.fetch_page(filters.page, filters), False
    except CatalogError as exc:
        logger.error("Error fetching initial data for %s: %s", filters.query_params(), exc)
        return ResultPage.empty(), True


async def open_session(
    *,
    client: CatalogClient,
    location: Location,
    settings: AppSettings | None = None,
    hooks: ControllerHooks | None = None,
    debounce_seconds: float | None = None,
) -> CatalogSession:
    settings = settings or AppSettings()
    hooks = hooks or ControllerHooks()
    projection = UrlProjection(location)

    seed = projection.hydrate()
    seed_results, failed = await prefetch_page(client, seed)

    urls: list[str] = []

    def on_applied(filters: FilterState) -> None:
        urls.append(projection.write(filters))
        if hooks.applied:
            hooks.applied(filters)

    controller = QueryStateController(
        client,
        debounce_seconds=settings.debounce_seconds if debounce_seconds is None else debounce_seconds,
        hooks=ControllerHooks(
            state_changed=hooks.state_changed,
            applied=on_applied,
            fetch_failed=hooks.fetch_failed,
        ),
    )
    controller.initialize(seed, seed_results)

    return CatalogSession(
        controller=controller,
        projection=projection,
        seed=seed,
        prefetch_failed=failed,
        urls=urls,
    )
