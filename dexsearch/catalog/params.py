# ABOUTME: Addressable list-view query parameters and the opaque "return-to" token.
# ABOUTME: Builds list, page, detail, and back URLs that survive navigation into a detail view.

from collections.abc import Mapping
from dataclasses import dataclass, replace
from urllib.parse import parse_qsl, quote, urlencode

from dexsearch.catalog.pagination import normalize_page
from dexsearch.models import FilterCriteria

ALL = "__all__"
"""Select-box sentinel meaning "no filter"."""

_FILTER_KEYS = ("search", "type", "generation", "language")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value or value == ALL:
        return None
    return value


@dataclass(frozen=True)
class ListParams:
    """List-view state as it appears in the address bar."""

    page: int = 1
    search: str | None = None
    type: str | None = None
    generation: str | None = None
    language: str | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str] | str) -> "ListParams":
        """Parse query parameters from a mapping or a raw query string.

        Examples:
            >>> ListParams.from_query("page=abc&type=fire")
            ListParams(page=1, search=None, type='fire', generation=None, language=None)
        """
        if isinstance(query, str):
            query = dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))
        return cls(
            page=normalize_page(query.get("page", 1)),
            search=_clean(query.get("search")),
            type=_clean(query.get("type")),
            generation=_clean(query.get("generation")),
            language=_clean(query.get("language")),
        )

    def to_criteria(self) -> FilterCriteria:
        return FilterCriteria.build(
            page=self.page,
            search=self.search,
            type=self.type,
            generation=self.generation,
            language=self.language,
        )

    def to_query_string(self) -> str:
        """Serialize to a query string, omitting page 1 and empty values."""
        pairs: list[tuple[str, str]] = []
        if self.page > 1:
            pairs.append(("page", str(self.page)))
        for key in _FILTER_KEYS:
            value = getattr(self, key)
            if value:
                pairs.append((key, value))
        return urlencode(pairs)

    def with_updates(self, **updates: str | None) -> "ListParams":
        """Apply filter changes; any change resets to the first page.

        A value of None, "", or ALL removes the filter.

        Raises:
            KeyError: If an update names an unknown parameter.
        """
        unknown = set(updates) - set(_FILTER_KEYS)
        if unknown:
            raise KeyError(f"Unknown list parameter(s): {', '.join(sorted(unknown))}")
        cleaned = {key: _clean(value) for key, value in updates.items()}
        return replace(self, page=1, **cleaned)

    def with_page(self, page: object) -> "ListParams":
        return replace(self, page=normalize_page(page))


def list_href(params: ListParams) -> str:
    """URL of the list view for `params`."""
    query = params.to_query_string()
    return f"/?{query}" if query else "/"


def page_href(params: ListParams, page: int) -> str:
    """URL of another page of the same list; page 1 drops the page parameter."""
    return list_href(params.with_page(page))


def detail_href(creature_id: int, return_to: str | None = None, language: str | None = None) -> str:
    """URL of a creature's detail view carrying the return-to token and language."""
    pairs: list[tuple[str, str]] = []
    if return_to:
        pairs.append(("from", return_to))
    if language:
        pairs.append(("language", language))
    query = urlencode(pairs, quote_via=quote)
    return f"/creature/{creature_id}?{query}" if query else f"/creature/{creature_id}"


def return_to_token(params: ListParams) -> str | None:
    """Opaque token preserving the list view's parameters, None for the bare list."""
    return params.to_query_string() or None


def back_href(return_to: str | None) -> str:
    """URL back to the list view a detail view was opened from.

    `return_to` is the already-decoded `from` parameter, itself an encoded query
    string, so it is used verbatim.
    """
    if not return_to:
        return "/"
    return f"/?{return_to}"
