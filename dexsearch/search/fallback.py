"""ABOUTME: Semantic (natural-language to id) fallback search providers and request contract.
ABOUTME: Validates requests, sanitizes candidate ids, and signals unconfigured providers explicitly."""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, StrictStr, ValidationError, field_validator

from dexsearch.config import CatalogConfig
from dexsearch.errors import FallbackFailedError, FallbackUnconfiguredError, InvalidQueryError

logger = logging.getLogger(__name__)

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_SERVER_ERROR = 500
HTTP_SERVICE_UNAVAILABLE = 503

_SYSTEM_PROMPT = """You are a Pokémon expert assistant. The user will describe Pokémon they're looking for.
Your task is to return the IDs of Pokémon that match the description.

Rules:
- Only return valid Pokémon IDs (1-{max_id} for main series Pokémon)
- Return between 1 and {limit} Pokémon IDs maximum
- Order results by relevance to the query
- Consider Pokémon names, types, characteristics, lore, appearance, and abilities
- If the query is in {language}, consider localized names

Examples:
- "fire starters" → [4, 155, 255, 390, 498, 653, 725, 813, 909]
- "pink round pokémon" → [39, 113, 174, 440]
- "legendary birds" → [144, 145, 146]"""

_RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "pokemon_ids",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "ids": {
                    "type": "array",
                    "items": {"type": "number"},
                    "description": "Array of Pokémon IDs matching the search query",
                },
            },
            "required": ["ids"],
            "additionalProperties": False,
        },
    },
}

_LANGUAGE_NAMES = {"en": "English", "es": "Spanish"}


class FallbackRequest(BaseModel):
    """A semantic search request: free text plus the active language."""

    query: StrictStr
    language: str = "en"

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value


def parse_fallback_request(payload: object) -> FallbackRequest:
    """Validate a raw request payload before any network call.

    Raises:
        InvalidQueryError: If the payload is not a mapping or the query is missing,
            not a string, or blank.
    """
    if isinstance(payload, FallbackRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidQueryError("Invalid query")
    data = dict(payload)
    if data.get("language") is None:
        data.pop("language", None)
    try:
        return FallbackRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidQueryError("Invalid query") from e


def sanitize_candidate_ids(raw: Iterable[Any], max_id: int, limit: int) -> list[int]:
    """Keep valid, unique ids in their original (relevance) order, truncated to `limit`.

    Examples:
        >>> sanitize_candidate_ids([25, 0, "4", 25, 9999, 6.0, True], max_id=1025, limit=15)
        [25, 6]
    """
    ids: list[int] = []
    seen: set[int] = set()
    for value in raw:
        if isinstance(value, bool):
            continue
        if isinstance(value, float):
            if not value.is_integer():
                continue
            value = int(value)
        if not isinstance(value, int):
            continue
        if not 1 <= value <= max_id or value in seen:
            continue
        seen.add(value)
        ids.append(value)
        if len(ids) >= limit:
            break
    return ids


class FallbackProvider(Protocol):
    """Anything that resolves a semantic query to candidate ids."""

    async def find_ids(self, request: FallbackRequest) -> list[Any]: ...


class OpenAIFallbackProvider:
    """Resolves queries with an OpenAI chat completion constrained to a JSON id list."""

    def __init__(self, config: CatalogConfig, client: AsyncOpenAI | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.config.openai_api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.config.openai_api_key:
                raise FallbackUnconfiguredError("AI search is not configured")
            self._client = AsyncOpenAI(api_key=self.config.openai_api_key)
        return self._client

    async def find_ids(self, request: FallbackRequest) -> list[Any]:
        """Ask the model for candidate ids.

        Raises:
            FallbackUnconfiguredError: If no API key is configured.
            FallbackFailedError: If the call fails or returns unparsable content.
        """
        client = self._get_client()
        prompt = _SYSTEM_PROMPT.format(
            max_id=self.config.max_species_id,
            limit=self.config.fallback_max_results,
            language=_LANGUAGE_NAMES.get(request.language, request.language),
        )
        try:
            completion = await client.chat.completions.create(
                model=self.config.openai_model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": request.query},
                ],
                response_format=_RESPONSE_FORMAT,
                temperature=0.3,
                max_tokens=200,
            )
        except OpenAIError as e:
            raise FallbackFailedError(f"AI search failed: {e}") from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            return []

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise FallbackFailedError("AI search returned invalid JSON") from e

        ids = parsed.get("ids") if isinstance(parsed, dict) else None
        if not isinstance(ids, list):
            raise FallbackFailedError("AI search response has no id list")
        return ids


class HttpFallbackProvider:
    """Calls a remote semantic search endpoint that speaks the {query, language} -> {ids} contract."""

    def __init__(self, url: str, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        self.url = url
        self._client = client
        self._timeout = timeout

    async def find_ids(self, request: FallbackRequest) -> list[Any]:
        """POST the request and return the raw id list.

        Raises:
            FallbackUnconfiguredError: On HTTP 503.
            InvalidQueryError: On HTTP 400.
            FallbackFailedError: On any other failure.
        """
        should_close_client = self._client is None
        client = self._client or httpx.AsyncClient(follow_redirects=True, timeout=self._timeout)

        try:
            response = await client.post(self.url, json=request.model_dump())
        except httpx.HTTPError as e:
            raise FallbackFailedError(f"AI search request failed: {e}") from e
        finally:
            if should_close_client:
                await client.aclose()

        if response.status_code == HTTP_SERVICE_UNAVAILABLE:
            raise FallbackUnconfiguredError("AI search is not configured")
        if response.status_code == HTTP_BAD_REQUEST:
            raise InvalidQueryError("Invalid query")
        if response.is_error:
            raise FallbackFailedError(f"AI search failed with status {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise FallbackFailedError("AI search returned invalid JSON") from e

        ids = body.get("ids") if isinstance(body, dict) else None
        return ids if isinstance(ids, list) else []


def build_fallback_provider(config: CatalogConfig) -> FallbackProvider:
    """Remote endpoint when one is configured, otherwise OpenAI directly."""
    if config.fallback_url:
        return HttpFallbackProvider(config.fallback_url, timeout=config.http_timeout)
    return OpenAIFallbackProvider(config)


async def resolve_fallback_ids(provider: FallbackProvider, payload: object, config: CatalogConfig) -> list[int]:
    """Validate, query the provider, and sanitize the ids.

    Raises:
        InvalidQueryError: If the payload is malformed (before any network call).
        FallbackUnconfiguredError: If the provider is not configured.
        FallbackFailedError: If the provider fails.
    """
    request = parse_fallback_request(payload)
    raw_ids = await provider.find_ids(request)
    return sanitize_candidate_ids(raw_ids, config.max_species_id, config.fallback_max_results)


@dataclass
class FallbackResponse:
    """Status-coded reply of the semantic search endpoint."""

    status_code: int
    ids: list[int] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"ids": self.ids}
        if self.error:
            body["error"] = self.error
        return body


async def handle_fallback_request(
    provider: FallbackProvider, payload: object, config: CatalogConfig
) -> FallbackResponse:
    """Serve one semantic search request with explicit signals for each failure kind.

    503 when unconfigured, 400 for a malformed payload, 500 when the provider
    fails, otherwise 200 with the sanitized ids.
    """
    if not getattr(provider, "is_configured", True):
        return FallbackResponse(HTTP_SERVICE_UNAVAILABLE, error="AI search is not configured")

    try:
        ids = await resolve_fallback_ids(provider, payload, config)
    except InvalidQueryError:
        return FallbackResponse(HTTP_BAD_REQUEST, error="Invalid query")
    except FallbackUnconfiguredError:
        return FallbackResponse(HTTP_SERVICE_UNAVAILABLE, error="AI search is not configured")
    except FallbackFailedError:
        logger.exception("AI search error")
        return FallbackResponse(HTTP_SERVER_ERROR, error="AI search failed")

    return FallbackResponse(HTTP_OK, ids=ids)
