"""ABOUTME: Search orchestration: debounced session and semantic fallback providers.
ABOUTME: Fallback runs only when deterministic filtering finds nothing."""

from dexsearch.search.fallback import (
    FallbackRequest,
    HttpFallbackProvider,
    OpenAIFallbackProvider,
    build_fallback_provider,
    handle_fallback_request,
    parse_fallback_request,
    resolve_fallback_ids,
    sanitize_candidate_ids,
)
from dexsearch.search.session import SearchSession, SessionState

__all__ = [
    "FallbackRequest",
    "HttpFallbackProvider",
    "OpenAIFallbackProvider",
    "SearchSession",
    "SessionState",
    "build_fallback_provider",
    "handle_fallback_request",
    "parse_fallback_request",
    "resolve_fallback_ids",
    "sanitize_candidate_ids",
]
