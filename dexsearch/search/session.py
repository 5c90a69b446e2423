"""ABOUTME: Incremental search session: debounced input, filtered queries, and semantic fallback.
ABOUTME: Only the latest committed search may mutate state; superseded requests are cancelled."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from enum import Enum
from typing import Protocol

from dexsearch.catalog.params import ListParams
from dexsearch.config import CatalogConfig
from dexsearch.errors import DexSearchError, FallbackUnconfiguredError, UpstreamUnavailableError
from dexsearch.models import CreatureSummary, FilterCriteria, PaginatedResult
from dexsearch.search.fallback import FallbackProvider, resolve_fallback_ids

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of a search session."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    QUERYING = "querying"
    SETTLED_EMPTY = "settled_empty"
    SETTLED_WITH_RESULTS = "settled_with_results"
    AI_FALLBACK_PENDING = "ai_fallback_pending"
    AI_FALLBACK_SETTLED = "ai_fallback_settled"
    FAILED = "failed"


class CatalogReader(Protocol):
    """The parts of the catalog client a session needs."""

    async def list_creatures(self, criteria: FilterCriteria) -> PaginatedResult: ...

    async def get_creatures_by_ids(
        self, creature_ids: list[int], language: str | None = None
    ) -> list[CreatureSummary]: ...


class SearchSession:
    """Search state for one search box.

    Every keystroke restarts the debounce timer; only the committed text triggers
    a deterministic list query. When that query settles empty, the search text
    has at least `fallback_min_query_length` characters, and no category or
    generation filter is active, the semantic fallback runs once per committed
    text. Fallback failures degrade to an empty result and never surface as errors.

    Attributes:
        raw_text: Text as typed, before debouncing.
        committed_text: Last debounced text that triggered a query.
        criteria: Filters of the latest deterministic query.
        result: Last settled deterministic page, None before the first query.
        fallback_ids: Candidate ids from the fallback provider, in relevance order.
        fallback_results: Fallback entities in ascending id order.
        error: Upstream failure of the latest deterministic query (state FAILED).
    """

    def __init__(
        self,
        catalog: CatalogReader,
        fallback: FallbackProvider | None,
        config: CatalogConfig,
        criteria: FilterCriteria | None = None,
        on_change: Callable[["SearchSession"], None] | None = None,
    ) -> None:
        self.catalog = catalog
        self.fallback = fallback
        self.config = config
        self.on_change = on_change

        self.criteria = criteria if criteria is not None else FilterCriteria()
        self.raw_text = self.criteria.search or ""
        self.committed_text = self.criteria.search or ""
        self.state = SessionState.IDLE
        self._resume_state = SessionState.IDLE
        self.result: PaginatedResult | None = None
        self.fallback_ids: tuple[int, ...] = ()
        self.fallback_results: tuple[CreatureSummary, ...] = ()
        self.error: DexSearchError | None = None

        self._generation = 0
        self._closed = False
        self._debounce_task: asyncio.Task[None] | None = None
        self._query_task: asyncio.Task[None] | None = None
        self._fallback_task: asyncio.Task[None] | None = None
        self._fallback_key: tuple[str, str | None] | None = None
        self._fallback_memo: tuple[tuple[int, ...], tuple[CreatureSummary, ...]] = ((), ())

    # --- Derived state ---

    @property
    def fallback_eligible(self) -> bool:
        """True when the settled deterministic query qualifies for semantic fallback."""
        if self.result is None or self.result.total != 0:
            return False
        if len(self.committed_text.strip()) < self.config.fallback_min_query_length:
            return False
        return not self.criteria.has_structured_filter

    @property
    def visible_results(self) -> tuple[CreatureSummary, ...]:
        """Entities to display: fallback results once settled, else the deterministic page."""
        if self.state is SessionState.AI_FALLBACK_SETTLED and self.fallback_results:
            return self.fallback_results
        if self.result is None:
            return ()
        return self.result.creatures

    @property
    def is_busy(self) -> bool:
        return any(task is not None and not task.done() for task in self._tasks())

    def list_params(self) -> ListParams:
        """Addressable parameters for the current list view."""
        return ListParams(
            page=self.criteria.page,
            search=self.committed_text.strip() or None,
            type=self.criteria.type,
            generation=self.criteria.generation,
            language=self.criteria.language,
        )

    # --- Events ---

    def input_changed(self, text: str) -> None:
        """Record a keystroke and restart the debounce timer."""
        self._ensure_open()
        self.raw_text = text
        self._cancel(self._debounce_task)
        self._debounce_task = asyncio.create_task(self._debounce(text))
        self._set_state(SessionState.DEBOUNCING)

    def set_filters(self, **updates: str | None) -> None:
        """Change category, generation, or language filters and query immediately.

        Any filter change resets to the first page. Pass None or "" to clear a filter.
        """
        self._ensure_open()
        unknown = set(updates) - {"type", "generation", "language"}
        if unknown:
            raise KeyError(f"Unknown filter(s): {', '.join(sorted(unknown))}")
        cleaned = {key: (value.strip() or None) if value else None for key, value in updates.items()}
        self._start_query(replace(self.criteria, page=1, **cleaned))

    def set_page(self, page: object) -> None:
        """Navigate to another page of the current query."""
        self._ensure_open()
        self._start_query(self.criteria.with_page(page))

    def refresh(self) -> None:
        """Re-run the current deterministic query (e.g., retry after FAILED)."""
        self._ensure_open()
        self._start_query(self.criteria)

    async def wait_idle(self) -> None:
        """Wait until no debounce timer, query, or fallback is pending."""
        while True:
            pending = [task for task in self._tasks() if task is not None and not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel everything in flight. The session cannot be used afterwards."""
        self._closed = True
        self._generation += 1
        pending = [task for task in self._tasks() if task is not None and not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    # --- Internals ---

    def _tasks(self) -> tuple[asyncio.Task[None] | None, ...]:
        return (self._debounce_task, self._query_task, self._fallback_task)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Search session is closed")

    def _set_state(self, state: SessionState) -> None:
        if state is not self.state:
            logger.debug("Search session %s -> %s", self.state.value, state.value)
        self.state = state
        if state is not SessionState.DEBOUNCING:
            self._resume_state = state
        if self.on_change is not None:
            self.on_change(self)

    @staticmethod
    def _cancel(task: asyncio.Task[None] | None) -> None:
        if task is not None and not task.done():
            task.cancel()

    async def _debounce(self, text: str) -> None:
        await asyncio.sleep(self.config.debounce_seconds)
        self._commit(text)

    def _commit(self, text: str) -> None:
        """Commit debounced text; unchanged text does not re-query."""
        query_running = self._query_task is not None and not self._query_task.done()
        if text == self.committed_text and (self.result is not None or query_running):
            self._set_state(self._resume_state)
            return

        self.committed_text = text
        if self._fallback_key is not None and self._fallback_key[0] != text:
            self._fallback_key = None
            self._fallback_memo = ((), ())
        self._start_query(replace(self.criteria, page=1, search=text.strip() or None))

    def _current_fallback_key(self) -> tuple[str, str | None]:
        return (self.committed_text, self.criteria.language)

    def _start_query(self, criteria: FilterCriteria) -> None:
        self._generation += 1
        self._cancel(self._query_task)
        self._cancel(self._fallback_task)
        self.criteria = criteria
        self.error = None
        self.fallback_ids = ()
        self.fallback_results = ()
        self._query_task = asyncio.create_task(self._run_query(self._generation, criteria))
        self._set_state(SessionState.QUERYING)

    async def _run_query(self, generation: int, criteria: FilterCriteria) -> None:
        try:
            result = await self.catalog.list_creatures(criteria)
        except Exception as e:
            if generation != self._generation:
                return
            if isinstance(e, DexSearchError):
                logger.debug("List query failed: %s", e)
                self.error = e
            else:
                logger.exception("Unexpected list query failure for %r", criteria.search)
                self.error = UpstreamUnavailableError(f"Unexpected list response: {e!r}")
            self._set_state(SessionState.FAILED)
            return

        if generation != self._generation:
            logger.debug("Discarding stale list result for %r", criteria.search)
            return

        self.result = result
        self._set_state(SessionState.SETTLED_EMPTY if result.total == 0 else SessionState.SETTLED_WITH_RESULTS)

        if self.fallback_eligible:
            self._start_fallback(generation)

    def _start_fallback(self, generation: int) -> None:
        key = self._current_fallback_key()
        if self._fallback_key == key:
            # Already resolved for this text; reuse without calling the provider again
            self.fallback_ids, self.fallback_results = self._fallback_memo
            self._set_state(SessionState.AI_FALLBACK_SETTLED)
            return

        self._cancel(self._fallback_task)
        self._fallback_task = asyncio.create_task(self._run_fallback(generation, key))
        self._set_state(SessionState.AI_FALLBACK_PENDING)

    async def _run_fallback(self, generation: int, key: tuple[str, str | None]) -> None:
        text, language = key
        ids: list[int] = []
        creatures: list[CreatureSummary] = []
        try:
            if self.fallback is None:
                raise FallbackUnconfiguredError("AI search is not configured")
            ids = await resolve_fallback_ids(
                self.fallback,
                {"query": text, "language": language or self.config.default_language},
                self.config,
            )
            if ids:
                creatures = await self.catalog.get_creatures_by_ids(ids, language)
        except DexSearchError as e:
            logger.warning("AI fallback unavailable for %r: %s", text, e)
            ids, creatures = [], []
        except Exception:
            logger.warning("AI fallback failed unexpectedly for %r", text, exc_info=True)
            ids, creatures = [], []

        if generation != self._generation:
            logger.debug("Discarding stale fallback result for %r", text)
            return

        self.fallback_ids = tuple(ids)
        self.fallback_results = tuple(sorted(creatures, key=lambda creature: creature.id))
        self._fallback_key = key
        self._fallback_memo = (self.fallback_ids, self.fallback_results)
        if self.fallback_results:
            logger.info("AI fallback found %d result(s) for %r", len(self.fallback_results), text)
        self._set_state(SessionState.AI_FALLBACK_SETTLED)
