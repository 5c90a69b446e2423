"""ABOUTME: Tests for the incremental search session state machine.
ABOUTME: Uses in-memory fakes gated by asyncio events to control completion order."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from dexsearch.catalog.pagination import total_pages
from dexsearch.config import CatalogConfig
from dexsearch.errors import FallbackFailedError, UpstreamUnavailableError
from dexsearch.models import CreatureSummary, FilterCriteria, PaginatedResult
from dexsearch.search.fallback import FallbackRequest
from dexsearch.search.session import SearchSession, SessionState

pytestmark = pytest.mark.asyncio


def _creature(creature_id: int) -> CreatureSummary:
    return CreatureSummary(
        id=creature_id,
        name=f"creature-{creature_id}",
        categories=(),
        generation="Generation I",
        evolution_family_ids=(),
        height=1,
        weight=1,
        flavor_text="",
        evolves_from_name=None,
        is_legendary=False,
        is_mythical=False,
        sprite=f"https://img.test/artwork/{creature_id}.png",
    )


class FakeCatalog:
    """Answers list queries from a search-text lookup; unknown text yields an empty page."""

    def __init__(self, by_search: dict[str, list[int]] | None = None) -> None:
        self.by_search = by_search or {}
        self.queries: list[FilterCriteria] = []
        self.id_lookups: list[list[int]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.started = asyncio.Event()
        self.error: Exception | None = None
        self.lookup_error: Exception | None = None

    async def list_creatures(self, criteria: FilterCriteria) -> PaginatedResult:
        self.queries.append(criteria)
        self.started.set()
        gate = self.gates.get(criteria.search or "")
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        creatures = tuple(_creature(i) for i in self.by_search.get(criteria.search or "", []))
        return PaginatedResult(
            creatures=creatures,
            total=len(creatures),
            page=criteria.page,
            page_size=15,
            total_pages=total_pages(len(creatures), 15),
        )

    async def get_creatures_by_ids(self, creature_ids: list[int], language: str | None = None) -> list[CreatureSummary]:
        self.id_lookups.append(list(creature_ids))
        if self.lookup_error is not None:
            raise self.lookup_error
        return [_creature(i) for i in sorted(set(creature_ids))]


class FakeProvider:
    """Semantic provider returning fixed ids per query, optionally gated or failing."""

    def __init__(self, ids: dict[str, list[Any]] | None = None, error: Exception | None = None) -> None:
        self.ids = ids or {}
        self.error = error
        self.requests: list[FallbackRequest] = []
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    async def find_ids(self, request: FallbackRequest) -> list[Any]:
        self.requests.append(request)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.ids.get(request.query, [])


async def _until(predicate: Callable[[], bool]) -> None:
    for _ in range(100):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


async def _typed(session: SearchSession, text: str) -> None:
    session.input_changed(text)
    await session.wait_idle()


class TestDebounce:
    """Only the last keystroke of a burst is committed."""

    async def test_burst_commits_last_text(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog({"pika": [25]})
        session = SearchSession(catalog, None, config)

        for text in ("p", "pi", "pik", "pika"):
            session.input_changed(text)
        assert session.state is SessionState.DEBOUNCING
        await session.wait_idle()

        assert [query.search for query in catalog.queries] == ["pika"]
        assert session.committed_text == "pika"
        assert session.state is SessionState.SETTLED_WITH_RESULTS
        assert [c.id for c in session.visible_results] == [25]

    async def test_unchanged_text_does_not_requery(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog({"pika": [25]})
        session = SearchSession(catalog, None, config)
        await _typed(session, "pika")

        session.input_changed("pikac")
        session.input_changed("pika")
        await session.wait_idle()

        assert len(catalog.queries) == 1
        assert session.state is SessionState.SETTLED_WITH_RESULTS

    async def test_new_text_resets_page(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog()
        session = SearchSession(catalog, None, config, criteria=FilterCriteria(page=4, type="fire"))
        await _typed(session, "char")
        assert catalog.queries[-1] == FilterCriteria(page=1, search="char", type="fire")

    async def test_state_changes_are_reported(self, config: CatalogConfig) -> None:
        seen: list[SessionState] = []
        session = SearchSession(FakeCatalog({"pika": [25]}), None, config, on_change=lambda s: seen.append(s.state))
        await _typed(session, "pika")
        assert seen == [SessionState.DEBOUNCING, SessionState.QUERYING, SessionState.SETTLED_WITH_RESULTS]


class TestFiltersAndPaging:
    """Tests for filter and page events."""

    async def test_filter_change_resets_page(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog()
        session = SearchSession(catalog, None, config, criteria=FilterCriteria(page=3, search="a"))
        session.set_filters(type="water", generation="")
        await session.wait_idle()
        assert catalog.queries[-1] == FilterCriteria(page=1, search="a", type="water")

    async def test_unknown_filter(self, config: CatalogConfig) -> None:
        session = SearchSession(FakeCatalog(), None, config)
        with pytest.raises(KeyError):
            session.set_filters(color="red")

    async def test_set_page_normalizes(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog()
        session = SearchSession(catalog, None, config)
        session.set_page("-2")
        await session.wait_idle()
        assert catalog.queries[-1].page == 1

    async def test_list_params(self, config: CatalogConfig) -> None:
        session = SearchSession(FakeCatalog({"pika": [25]}), None, config)
        session.set_filters(language="es")
        await _typed(session, " pika ")
        assert session.list_params().to_query_string() == "search=pika&language=es"


class TestFallback:
    """Tests for semantic fallback eligibility, memoization, and degradation."""

    async def test_single_character_not_eligible(self, config: CatalogConfig) -> None:
        provider = FakeProvider({"x": [1]})
        session = SearchSession(FakeCatalog(), provider, config)
        await _typed(session, " x ")
        assert session.state is SessionState.SETTLED_EMPTY
        assert provider.requests == []

    async def test_runs_when_list_is_empty(self, config: CatalogConfig) -> None:
        provider = FakeProvider({"fire dog": [58, 59]})
        session = SearchSession(FakeCatalog(), provider, config)
        await _typed(session, "fire dog")

        assert session.state is SessionState.AI_FALLBACK_SETTLED
        assert provider.requests == [FallbackRequest(query="fire dog", language="en")]
        assert [c.id for c in session.visible_results] == [58, 59]

    async def test_not_run_when_list_has_results(self, config: CatalogConfig) -> None:
        provider = FakeProvider({"pika": [25]})
        session = SearchSession(FakeCatalog({"pika": [25]}), provider, config)
        await _typed(session, "pika")
        assert provider.requests == []

    @pytest.mark.parametrize("filters", [{"type": "fire"}, {"generation": "generation-ii"}])
    async def test_structured_filter_blocks(self, config: CatalogConfig, filters: dict[str, str]) -> None:
        provider = FakeProvider({"fire dog": [58]})
        session = SearchSession(FakeCatalog(), provider, config)
        session.set_filters(**filters)
        await _typed(session, "fire dog")
        assert session.state is SessionState.SETTLED_EMPTY
        assert provider.requests == []

    async def test_passes_language(self, config: CatalogConfig) -> None:
        provider = FakeProvider()
        session = SearchSession(FakeCatalog(), provider, config, criteria=FilterCriteria(language="es"))
        await _typed(session, "perro de fuego")
        assert provider.requests[0].language == "es"

    async def test_memoized_per_text(self, config: CatalogConfig) -> None:
        provider = FakeProvider({"fire dog": [58]})
        catalog = FakeCatalog()
        session = SearchSession(catalog, provider, config)
        await _typed(session, "fire dog")

        session.refresh()
        await session.wait_idle()

        assert len(catalog.queries) == 2
        assert len(provider.requests) == 1
        assert session.state is SessionState.AI_FALLBACK_SETTLED
        assert [c.id for c in session.fallback_results] == [58]

        await _typed(session, "water dog")
        await _typed(session, "fire dog")
        assert [r.query for r in provider.requests] == ["fire dog", "water dog", "fire dog"]

    async def test_results_sorted_ids_keep_relevance(self, config: CatalogConfig) -> None:
        provider = FakeProvider({"legend": [151, 4, 25, 4, 0]})
        catalog = FakeCatalog()
        session = SearchSession(catalog, provider, config)
        await _typed(session, "legend")

        assert session.fallback_ids == (151, 4, 25)
        assert [c.id for c in session.fallback_results] == [4, 25, 151]
        assert catalog.id_lookups == [[151, 4, 25]]

    @pytest.mark.parametrize("provider", [None, FakeProvider(error=FallbackFailedError("boom"))])
    async def test_failure_degrades_to_empty(self, config: CatalogConfig, provider: FakeProvider | None) -> None:
        session = SearchSession(FakeCatalog(), provider, config)
        await _typed(session, "fire dog")
        assert session.state is SessionState.AI_FALLBACK_SETTLED
        assert session.fallback_results == ()
        assert session.visible_results == ()
        assert session.error is None

    async def test_sends_committed_text_unstripped(self, config: CatalogConfig) -> None:
        provider = FakeProvider()
        catalog = FakeCatalog()
        session = SearchSession(catalog, provider, config)
        await _typed(session, "  fire dog ")

        assert catalog.queries[-1].search == "fire dog"
        assert [r.query for r in provider.requests] == ["  fire dog "]

    async def test_unexpected_lookup_error_degrades_to_empty(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog()
        catalog.lookup_error = AttributeError("'list' object has no attribute 'get'")
        session = SearchSession(catalog, FakeProvider({"fire dog": [58]}), config)

        await _typed(session, "fire dog")

        assert session.state is SessionState.AI_FALLBACK_SETTLED
        assert session.fallback_ids == ()
        assert session.fallback_results == ()
        assert session.error is None
        assert not session.is_busy

    async def test_superseded_fallback_is_discarded(self, config: CatalogConfig) -> None:
        provider = FakeProvider({"fire dog": [58]})
        provider.gate = asyncio.Event()
        session = SearchSession(FakeCatalog({"pikachu": [25]}), provider, config)

        session.input_changed("fire dog")
        await provider.started.wait()
        assert session.state is SessionState.AI_FALLBACK_PENDING

        session.input_changed("pikachu")
        await _until(lambda: session.criteria.search == "pikachu")
        provider.gate.set()
        await session.wait_idle()

        assert session.state is SessionState.SETTLED_WITH_RESULTS
        assert session.fallback_results == ()
        assert [c.id for c in session.visible_results] == [25]


class TestQueryLifecycle:
    """Tests for stale queries, upstream failures, and closing."""

    async def test_stale_query_is_discarded(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog({"pik": [25, 26], "pikachu": [25]})
        catalog.gates["pik"] = asyncio.Event()
        session = SearchSession(catalog, None, config)

        session.input_changed("pik")
        await catalog.started.wait()
        await _typed(session, "pikachu")
        catalog.gates["pik"].set()
        await session.wait_idle()

        assert session.result is not None
        assert [c.id for c in session.result.creatures] == [25]
        assert session.committed_text == "pikachu"

    async def test_upstream_failure(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog({"pika": [25]})
        catalog.error = UpstreamUnavailableError("provider down")
        session = SearchSession(catalog, FakeProvider(), config)

        await _typed(session, "pika")
        assert session.state is SessionState.FAILED
        assert isinstance(session.error, UpstreamUnavailableError)

        catalog.error = None
        session.refresh()
        await session.wait_idle()
        assert session.state is SessionState.SETTLED_WITH_RESULTS
        assert session.error is None

    async def test_unexpected_query_error_fails(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog()
        catalog.error = KeyError("pokemon_aggregate")
        session = SearchSession(catalog, FakeProvider(), config)

        await _typed(session, "pika")

        assert session.state is SessionState.FAILED
        assert isinstance(session.error, UpstreamUnavailableError)
        assert "pokemon_aggregate" in str(session.error)
        assert not session.is_busy

    async def test_close_cancels_in_flight_work(self, config: CatalogConfig) -> None:
        catalog = FakeCatalog({"pika": [25]})
        catalog.gates["pika"] = asyncio.Event()
        session = SearchSession(catalog, None, config)

        session.input_changed("pika")
        await catalog.started.wait()
        await session.close()

        assert not session.is_busy
        assert session.result is None
        assert session.state is SessionState.QUERYING
        with pytest.raises(RuntimeError):
            session.input_changed("pikachu")
