"""ABOUTME: Async client for the list (graph-query) and detail (REST) providers.
ABOUTME: Translates transport failures into UpstreamUnavailableError and missing ids into NotFoundError."""

import logging
from typing import Any

import httpx

from dexsearch.catalog import queries
from dexsearch.catalog.evolution import chain_species_names, species_id_from_url
from dexsearch.catalog.normalize import (
    LocalizedNames,
    map_detail,
    map_generation_options,
    map_list_response,
    map_single_row,
    map_type_options,
)
from dexsearch.catalog.pagination import page_window, total_pages
from dexsearch.catalog.predicates import build_where_clause, id_condition, ids_condition
from dexsearch.config import CatalogConfig
from dexsearch.errors import NotFoundError, UpstreamUnavailableError
from dexsearch.models import (
    CatalogOption,
    CreatureDetail,
    CreatureSummary,
    FilterCriteria,
    PaginatedResult,
)

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


class CatalogClient:
    """Reads the creature catalog from both upstream providers.

    Use as an async context manager, or call `aclose()` when done. An injected
    httpx client is never closed by this class.
    """

    def __init__(self, config: CatalogConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.config = config if config is not None else CatalogConfig.from_settings()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True, timeout=self.config.http_timeout)
        return self._client

    def _language(self, language: str | None) -> str:
        return language or self.config.default_language

    def _sprite_for(self, creature_id: int) -> str:
        return self.config.sprite_url(creature_id)

    async def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """POST a graph-query document and return its "data" object.

        Raises:
            UpstreamUnavailableError: On transport failure, error status, or a GraphQL errors payload.
        """
        try:
            response = await self._http().post(
                self.config.graphql_url,
                json={"query": query, "variables": variables},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"GraphQL request failed: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailableError(f"GraphQL response is not valid JSON: {e}") from e

        if payload.get("errors"):
            messages = "; ".join(str(error.get("message", error)) for error in payload["errors"])
            raise UpstreamUnavailableError(f"GraphQL request failed: {messages}")

        return payload.get("data") or {}

    async def _rest(self, url: str) -> dict[str, Any] | None:
        """GET a REST document. Returns None on 404.

        Raises:
            UpstreamUnavailableError: On transport failure or any other error status.
        """
        logger.debug("GET %s", url)
        try:
            response = await self._http().get(url)
            if response.status_code == HTTP_NOT_FOUND:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"REST request failed: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailableError(f"REST response is not valid JSON: {url}") from e

    async def _rest_required(self, url: str) -> dict[str, Any]:
        document = await self._rest(url)
        if document is None:
            raise UpstreamUnavailableError(f"REST document missing: {url}")
        return document

    async def list_creatures(self, criteria: FilterCriteria) -> PaginatedResult:
        """Fetch one page of creatures matching `criteria`, ordered by id.

        Args:
            criteria: Filter criteria; pages past the end yield an empty page.

        Returns:
            PaginatedResult with total count and derived page count.
        """
        window = page_window(criteria.page, self.config.page_size)
        where = build_where_clause(criteria)
        logger.debug("List query page=%d where=%s", criteria.page, where)

        data = await self._graphql(
            queries.POKEMON_LIST_QUERY,
            {
                "limit": window.limit,
                "offset": window.offset,
                "where": where,
                "lang": self._language(criteria.language),
            },
        )
        creatures, total = map_list_response(data, self._sprite_for)

        return PaginatedResult(
            creatures=tuple(creatures),
            total=total,
            page=criteria.page,
            page_size=self.config.page_size,
            total_pages=total_pages(total, self.config.page_size),
        )

    async def get_types(self, language: str | None = None) -> list[CatalogOption]:
        """Categories that have at least one member, ordered by slug."""
        data = await self._graphql(queries.TYPES_QUERY, {"lang": self._language(language)})
        return map_type_options(data)

    async def get_generations(self, language: str | None = None) -> list[CatalogOption]:
        """Generations ordered by id."""
        data = await self._graphql(queries.GENERATIONS_QUERY, {"lang": self._language(language)})
        return map_generation_options(data)

    async def get_creature(self, creature_id: int, language: str | None = None) -> CreatureSummary:
        """Fetch a single creature in list shape.

        Raises:
            NotFoundError: If no creature has this id.
        """
        data = await self._graphql(
            queries.POKEMON_LIST_QUERY,
            {"limit": 1, "offset": 0, "where": id_condition(creature_id), "lang": self._language(language)},
        )
        return map_single_row(data, creature_id, self._sprite_for)

    async def get_creatures_by_ids(self, creature_ids: list[int], language: str | None = None) -> list[CreatureSummary]:
        """Batch fetch creatures by id, returned in ascending id order.

        Unknown ids are silently absent from the result.
        """
        unique_ids = sorted(set(creature_ids))
        if not unique_ids:
            return []

        data = await self._graphql(
            queries.POKEMON_LIST_QUERY,
            {
                "limit": len(unique_ids),
                "offset": 0,
                "where": ids_condition(unique_ids),
                "lang": self._language(language),
            },
        )
        creatures, _ = map_list_response(data, self._sprite_for)
        return sorted(creatures, key=lambda creature: creature.id)

    async def _localized_names(self, pokemon: dict[str, Any], chain: dict[str, Any], language: str) -> LocalizedNames:
        data = await self._graphql(
            queries.LOCALIZED_NAMES_QUERY,
            {
                "types": [row["type"]["name"] for row in pokemon.get("types") or []],
                "abilities": [row["ability"]["name"] for row in pokemon.get("abilities") or []],
                "moves": [row["move"]["name"] for row in pokemon.get("moves") or []],
                "species": chain_species_names(chain),
                "lang": language,
            },
        )
        return LocalizedNames.from_response(data)

    async def get_creature_detail(self, creature_id: int | str, language: str | None = None) -> CreatureDetail:
        """Fetch the full detail entity, including its flattened evolution chain.

        Localized names for categories, abilities, moves, and chain species are
        requested only when a language is given.

        Raises:
            NotFoundError: If the id is not numeric or unknown upstream.
            UpstreamUnavailableError: If either provider fails.
        """
        try:
            numeric_id = int(creature_id)
        except (TypeError, ValueError):
            raise NotFoundError(creature_id) from None
        if numeric_id < 1:
            raise NotFoundError(creature_id)

        base = self.config.rest_base_url.rstrip("/")
        pokemon = await self._rest(f"{base}/pokemon/{numeric_id}")
        if pokemon is None:
            raise NotFoundError(numeric_id)

        species_id = species_id_from_url(pokemon["species"]["url"])
        species = await self._rest_required(f"{base}/pokemon-species/{species_id}")
        chain_document = await self._rest_required(species["evolution_chain"]["url"])
        chain = chain_document["chain"]

        names = await self._localized_names(pokemon, chain, language) if language else None

        return map_detail(
            pokemon,
            species,
            chain,
            creature_id=numeric_id,
            language=self._language(language),
            default_language=self.config.default_language,
            names=names,
            sprite_for=self._sprite_for,
        )
