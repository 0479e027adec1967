"""Query state controller.

Owns the current filters/page, debounces edits, issues fetches through a
`CatalogClient` and decides which response may update the visible results.

Every issued fetch carries an integer token. A response is applied only when
its token is still the controller's current one; an edit that lands while a
fetch is in flight bumps the token, so the older response is discarded
whatever order the network delivers it in.

Cycle: idle -> pending_edit (timer armed) -> fetching (token assigned) ->
applied | stale-discarded | failed -> idle.

All methods must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from core.domain.errors import CatalogError
from core.domain.models import (
    ControllerState,
    CyclePhase,
    FilterState,
    Gender,
    ResultPage,
    Status,
)
from core.interfaces.catalog import CatalogClient

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3


@dataclass
class ControllerHooks:
    """Optional callbacks for the view layer (render, URL write-back, errors)."""

    state_changed: Callable[[ControllerState], None] | None = None
    applied: Callable[[FilterState], None] | None = None
    fetch_failed: Callable[[FilterState, Exception], None] | None = None


class QueryStateController:
    def __init__(
        self,
        client: CatalogClient,
        *,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        hooks: ControllerHooks | None = None,
    ) -> None:
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        self._client = client
        self._debounce = debounce_seconds
        self._hooks = hooks or ControllerHooks()

        self._filters = FilterState()
        self._results = ResultPage.empty()
        self._loading = False
        self._token = 0
        self._phase = CyclePhase.IDLE

        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._disposed = False

    async def __aenter__(self) -> "QueryStateController":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.dispose()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def state(self) -> ControllerState:
        return ControllerState(
            filters=self._filters,
            results=self._results,
            is_loading=self._loading,
            last_request_token=self._token,
            phase=self._phase,
        )

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def results(self) -> ResultPage:
        return self._results

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def wait_idle(self) -> ControllerState:
        """Wait until the newest cycle is applied or failed (or the controller is disposed)."""

        await self._idle.wait()
        return self.state

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def initialize(self, seed: FilterState, seed_results: ResultPage | None = None) -> None:
        """Install pre-fetched state without issuing a request."""

        if self._disposed:
            raise RuntimeError("controller has been disposed")
        self._cancel_timer()
        # Anything still in flight belongs to the previous state.
        self._token += 1
        self._filters = seed
        self._results = seed_results if seed_results is not None else ResultPage.empty()
        self._loading = False
        self._phase = CyclePhase.IDLE
        self._idle.set()
        self._emit()

    def set_status(self, value: Status | str | None) -> None:
        self._edit(status=value, page=1)

    def set_gender(self, value: Gender | str | None) -> None:
        self._edit(gender=value, page=1)

    def set_name(self, value: str | None) -> None:
        self._edit(name=value or "", page=1)

    def set_page(self, value: int) -> None:
        """Move to another page, clamped to the known page range."""

        page_count = self._results.page_count
        if page_count > 0:
            page = min(max(int(value), 1), page_count)
        else:
            page = 1
        self._edit(page=page)

    def dispose(self) -> None:
        """Stop the timer and make every in-flight response stale. Idempotent."""

        if self._disposed:
            return
        self._disposed = True
        self._cancel_timer()
        self._token += 1
        self._phase = CyclePhase.IDLE
        self._idle.set()
        if self._tasks:
            logger.debug("disposed with %d request(s) in flight", len(self._tasks))

    def _edit(self, **changes: Any) -> None:
        if self._disposed:
            logger.debug("ignoring edit after dispose: %s", changes)
            return

        updated = self._filters.edit(**changes)
        if updated == self._filters and self._phase is CyclePhase.IDLE:
            return

        if self._phase is CyclePhase.FETCHING:
            self._token += 1
            logger.debug("edit superseded in-flight request; token now %d", self._token)

        self._filters = updated
        self._loading = True
        self._phase = CyclePhase.PENDING_EDIT
        self._idle.clear()
        self._arm_timer()
        self._emit()

    # ------------------------------------------------------------------
    # Debounce + fetch
    # ------------------------------------------------------------------
    def _arm_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._fire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        if self._disposed:
            return

        self._token += 1
        token = self._token
        filters = self._filters
        self._phase = CyclePhase.FETCHING

        task = asyncio.get_running_loop().create_task(self._run_fetch(token, filters))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("issued request %d for %s", token, filters.query_params())
        self._emit()

    async def _run_fetch(self, token: int, filters: FilterState) -> None:
        try:
            results = await self._client.fetch_page(filters.page, filters)
        except Exception as exc:
            self._fetch_failed(token, filters, exc)
        else:
            self._fetch_done(token, filters, results)

    def _is_current(self, token: int) -> bool:
        return not self._disposed and token == self._token

    def _fetch_done(self, token: int, filters: FilterState, results: ResultPage) -> None:
        if not self._is_current(token):
            logger.debug("discarding stale response %d (current %d)", token, self._token)
            return

        self._results = results
        self._loading = False
        self._phase = CyclePhase.IDLE
        self._idle.set()
        self._emit()
        if self._hooks.applied:
            self._hooks.applied(filters)

    def _fetch_failed(self, token: int, filters: FilterState, exc: Exception) -> None:
        if not self._is_current(token):
            logger.debug("discarding stale failure %d: %s", token, exc)
            return

        if isinstance(exc, CatalogError):
            logger.error("Error fetching characters for %s: %s", filters.query_params(), exc)
        else:
            logger.error("Unexpected error fetching characters for %s", filters.query_params(), exc_info=exc)

        self._results = ResultPage.empty()
        self._loading = False
        self._phase = CyclePhase.IDLE
        self._idle.set()
        self._emit()
        if self._hooks.fetch_failed:
            self._hooks.fetch_failed(filters, exc)

    def _emit(self) -> None:
        if self._hooks.state_changed:
            self._hooks.state_changed(self.state)
