from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import FakeCatalogClient, page_of
from core.domain.errors import NetworkError, ServiceError
from core.domain.models import ControllerState, CyclePhase, FilterState, ResultPage, Status
from core.services.query_controller import ControllerHooks, QueryStateController

DEBOUNCE = 0.05


def _controller(client: FakeCatalogClient, **hooks) -> tuple[QueryStateController, list[ControllerState]]:
    states: list[ControllerState] = []
    controller = QueryStateController(
        client,
        debounce_seconds=DEBOUNCE,
        hooks=ControllerHooks(state_changed=states.append, **hooks),
    )
    return controller, states


def test_initialize_installs_seed_without_fetching() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, states = _controller(client)
        seed = FilterState(status="alive", page=2)
        seed_results = page_of("seed")

        controller.initialize(seed, seed_results)
        await asyncio.sleep(DEBOUNCE * 3)

        assert client.calls == []
        assert controller.filters == seed
        assert controller.results == seed_results
        assert controller.is_loading is False
        assert states[-1].phase is CyclePhase.IDLE

    asyncio.run(scenario())


def test_rapid_name_edits_issue_one_fetch_with_last_value() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        for _ in range(3):
            controller.set_name("rick")
            await asyncio.sleep(0.01)
        state = await controller.wait_idle()

        assert client.calls == [{"page": "1", "name": "rick"}]
        assert state.is_loading is False
        assert state.results.items[0].name == "page=1&name=rick"

    asyncio.run(scenario())


def test_typing_collapses_intermediate_values() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        for prefix in ("r", "ri", "ric", "rick"):
            controller.set_name(prefix)
            await asyncio.sleep(0.005)
        await controller.wait_idle()

        assert client.calls == [{"page": "1", "name": "rick"}]

    asyncio.run(scenario())


def test_long_name_is_searched_unchanged() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))
        long_name = "r" * 300

        controller.set_name(long_name)
        state = await controller.wait_idle()

        assert client.calls == [{"page": "1", "name": long_name}]
        assert state.filters.name == long_name
        assert state.is_loading is False

    asyncio.run(scenario())


def test_loading_flag_is_raised_synchronously_on_first_edit() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, states = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_status("alive")

        assert controller.is_loading is True
        assert states[-1].phase is CyclePhase.PENDING_EDIT
        assert states[-1].filters.status is Status.ALIVE

        state = await controller.wait_idle()
        assert state.is_loading is False

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "edit, expected",
    [
        (lambda c: c.set_status("dead"), {"page": "1", "status": "dead", "name": "morty"}),
        (lambda c: c.set_gender("female"), {"page": "1", "gender": "female", "name": "morty"}),
        (lambda c: c.set_name("summer"), {"page": "1", "name": "summer"}),
    ],
)
def test_filter_edits_reset_page(edit, expected) -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(name="morty", page=4), page_of("seed"))

        edit(controller)
        await controller.wait_idle()

        assert client.calls == [expected]

    asyncio.run(scenario())


def test_set_page_keeps_other_filters() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(status="dead", gender="male", name="morty"), page_of("seed"))

        controller.set_page(3)
        await controller.wait_idle()

        assert client.calls == [{"page": "3", "status": "dead", "gender": "male", "name": "morty"}]

    asyncio.run(scenario())


def test_last_setter_governs_page() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_status("alive")
        controller.set_page(3)
        await controller.wait_idle()

        controller.set_page(5)
        controller.set_gender("female")
        await controller.wait_idle()

        assert client.calls == [
            {"page": "3", "status": "alive"},
            {"page": "1", "status": "alive", "gender": "female"},
        ]

    asyncio.run(scenario())


def test_set_page_is_clamped_to_known_page_count() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient(page_count=4)
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed", page_count=4))

        controller.set_page(99)
        assert controller.filters.page == 4
        controller.set_page(-3)
        assert controller.filters.page == 1
        await controller.wait_idle()

        assert client.calls == [{"page": "1"}]

    asyncio.run(scenario())


def test_set_page_without_page_count_stays_on_first_page() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), ResultPage.empty())

        controller.set_page(7)
        await asyncio.sleep(DEBOUNCE * 3)

        assert controller.filters.page == 1
        assert controller.is_loading is False
        assert client.calls == []

    asyncio.run(scenario())


def test_unchanged_edit_while_idle_is_ignored() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, states = _controller(client)
        controller.initialize(FilterState(status="alive"), page_of("seed"))
        emitted = len(states)

        controller.set_status("ALIVE")
        await asyncio.sleep(DEBOUNCE * 3)

        assert client.calls == []
        assert len(states) == emitted

    asyncio.run(scenario())


def test_newer_response_wins_even_when_older_arrives_last() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient(gated=True)
        applied: list[FilterState] = []
        controller, states = _controller(client, applied=applied.append)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_name("a")
        await client.wait_for_calls(1)
        controller.set_name("ab")
        await client.wait_for_calls(2)

        # B answers first, then A.
        client.gates[1].set()
        state = await controller.wait_idle()
        assert state.results.items[0].name == "page=1&name=ab"

        client.gates[0].set()
        await asyncio.sleep(DEBOUNCE)

        assert controller.results.items[0].name == "page=1&name=ab"
        assert controller.is_loading is False
        assert [f.name for f in applied] == ["ab"]
        assert all(s.results.items[0].name != "page=1&name=a" for s in states if s.results.items)

    asyncio.run(scenario())


def test_older_response_arriving_first_is_not_shown() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient(gated=True)
        controller, states = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_status("alive")
        await client.wait_for_calls(1)
        controller.set_status("dead")

        client.gates[0].set()
        await asyncio.sleep(0.01)
        # Stale answer discarded; the new cycle is still pending.
        assert controller.results.items[0].name == "seed"
        assert controller.is_loading is True

        await client.wait_for_calls(2)
        client.gates[1].set()
        state = await controller.wait_idle()
        assert state.results.items[0].name == "page=1&status=dead"
        assert state.last_request_token > states[0].last_request_token

    asyncio.run(scenario())


@pytest.mark.parametrize("error", [ServiceError(404, "There is nothing here"), NetworkError("offline")])
def test_failed_fetch_yields_empty_results(error, caplog) -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        client.fail_with = error
        failures: list[tuple[FilterState, Exception]] = []
        controller, _ = _controller(client, fetch_failed=lambda f, e: failures.append((f, e)))
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_name("zzz")
        state = await controller.wait_idle()

        assert state.results.item_count == 0
        assert state.results.total_count == 0
        assert state.is_loading is False
        assert state.phase is CyclePhase.IDLE
        assert failures == [(FilterState(name="zzz"), error)]

    with caplog.at_level(logging.ERROR, logger="core.services.query_controller"):
        asyncio.run(scenario())

    assert any("Error fetching characters" in r.getMessage() for r in caplog.records)
    assert any("zzz" in r.getMessage() for r in caplog.records)


def test_unexpected_exception_is_contained() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        client.fail_with = KeyError("boom")
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_gender("male")
        state = await controller.wait_idle()

        assert state.results.item_count == 0
        assert state.is_loading is False

    asyncio.run(scenario())


def test_next_edit_after_failure_starts_fresh_cycle() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        client.fail_with = NetworkError("offline")
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_name("rick")
        await controller.wait_idle()
        client.fail_with = None
        controller.set_name("rick sanchez")
        state = await controller.wait_idle()

        assert len(client.calls) == 2
        assert state.results.items[0].name == "page=1&name=rick+sanchez"

    asyncio.run(scenario())


def test_dispose_cancels_pending_timer() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_name("rick")
        controller.dispose()
        await asyncio.sleep(DEBOUNCE * 3)

        assert client.calls == []
        assert controller.disposed is True

    asyncio.run(scenario())


def test_dispose_during_fetch_never_mutates_state() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient(gated=True)
        applied: list[FilterState] = []
        controller, states = _controller(client, applied=applied.append)
        seed_results = page_of("seed")
        controller.initialize(FilterState(), seed_results)

        controller.set_name("rick")
        await client.wait_for_calls(1)
        emitted = len(states)

        controller.dispose()
        client.gates[0].set()
        await asyncio.sleep(DEBOUNCE)

        assert len(states) == emitted
        assert applied == []
        assert controller.results == seed_results

        controller.set_status("dead")
        await asyncio.sleep(DEBOUNCE * 3)
        assert len(client.calls) == 1
        assert len(states) == emitted

    asyncio.run(scenario())


def test_wait_idle_returns_after_dispose() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient(gated=True)
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        controller.set_name("rick")
        asyncio.get_running_loop().call_later(0.01, controller.dispose)
        await asyncio.wait_for(controller.wait_idle(), 1.0)

    asyncio.run(scenario())


def test_invalid_filter_value_raises_without_changing_state() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        controller, _ = _controller(client)
        controller.initialize(FilterState(), page_of("seed"))

        with pytest.raises(ValueError):
            controller.set_status("zombie")

        assert controller.filters == FilterState()
        assert controller.is_loading is False

    asyncio.run(scenario())


def test_context_manager_disposes() -> None:
    async def scenario() -> None:
        client = FakeCatalogClient()
        async with QueryStateController(client, debounce_seconds=DEBOUNCE) as controller:
            controller.set_name("rick")
        await asyncio.sleep(DEBOUNCE * 3)

        assert controller.disposed is True
        assert client.calls == []

    asyncio.run(scenario())
