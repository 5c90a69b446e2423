"""ABOUTME: Catalog access layer: predicate compiler, normalizer, evolution flattener, pagination.
ABOUTME: The async CatalogClient ties them to the list and detail providers."""

from dexsearch.catalog.client import CatalogClient
from dexsearch.catalog.evolution import flatten_evolution_chain
from dexsearch.catalog.normalize import (
    format_generation_label,
    localized_name,
    map_detail,
    map_list_row,
    sanitize_flavor_text,
    sprite_url,
)
from dexsearch.catalog.pagination import normalize_page, page_window, total_pages, visible_pages
from dexsearch.catalog.predicates import build_where_clause

__all__ = [
    "CatalogClient",
    "build_where_clause",
    "flatten_evolution_chain",
    "format_generation_label",
    "localized_name",
    "map_detail",
    "map_list_row",
    "normalize_page",
    "page_window",
    "sanitize_flavor_text",
    "sprite_url",
    "total_pages",
    "visible_pages",
]
