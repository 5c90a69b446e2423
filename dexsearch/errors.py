"""ABOUTME: Error taxonomy for catalog queries and semantic fallback search.
ABOUTME: Separates retryable upstream failures, missing entities, and degraded fallback."""


class DexSearchError(Exception):
    """Base class for all errors raised by dexsearch."""


class UpstreamUnavailableError(DexSearchError):
    """A provider could not be reached or answered with a failure status.

    Deterministic queries propagate this to the caller, which shows a retryable failure state.
    """


class NotFoundError(DexSearchError):
    """The requested creature id does not exist upstream."""

    def __init__(self, creature_id: int | str) -> None:
        super().__init__(f"Creature {creature_id} not found")
        self.creature_id = creature_id


class FallbackUnconfiguredError(DexSearchError):
    """The semantic search provider is absent or misconfigured."""


class FallbackFailedError(DexSearchError):
    """The semantic search provider was reached but did not produce usable ids."""


class InvalidQueryError(DexSearchError):
    """A semantic search request payload is malformed (client error)."""
