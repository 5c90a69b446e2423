"""ABOUTME: Tests for addressable list parameters and the return-to token.
ABOUTME: Verifies parsing, filter navigation, and detail/back URL construction."""

from urllib.parse import parse_qsl, urlsplit

import pytest

from dexsearch.catalog.params import (
    ALL,
    ListParams,
    back_href,
    detail_href,
    list_href,
    page_href,
    return_to_token,
)


class TestListParamsFromQuery:
    """Tests for ListParams.from_query."""

    def test_from_mapping(self) -> None:
        params = ListParams.from_query({"page": "3", "search": "char", "type": "fire"})
        assert params == ListParams(page=3, search="char", type="fire")

    def test_from_query_string(self) -> None:
        params = ListParams.from_query("?generation=generation-ii&language=es")
        assert params.generation == "generation-ii"
        assert params.language == "es"
        assert params.page == 1

    @pytest.mark.parametrize("page", ["0", "-3", "abc"])
    def test_invalid_page(self, page: str) -> None:
        assert ListParams.from_query({"page": page}).page == 1

    def test_all_sentinel_and_blank_removed(self) -> None:
        params = ListParams.from_query({"type": ALL, "search": "  "})
        assert params.type is None
        assert params.search is None

    def test_to_criteria(self) -> None:
        criteria = ListParams(page=2, search="eevee", language="es").to_criteria()
        assert criteria.page == 2
        assert criteria.search == "eevee"
        assert criteria.language == "es"


class TestNavigation:
    """Tests for filter updates and URL building."""

    def test_filter_change_resets_page(self) -> None:
        params = ListParams(page=4, search="saur").with_updates(type="grass")
        assert params.page == 1
        assert params.type == "grass"
        assert params.search == "saur"

    def test_all_removes_filter(self) -> None:
        params = ListParams(type="fire").with_updates(type=ALL)
        assert params.type is None

    def test_unknown_update_rejected(self) -> None:
        with pytest.raises(KeyError):
            ListParams().with_updates(color="red")

    def test_list_href(self) -> None:
        assert list_href(ListParams()) == "/"
        assert list_href(ListParams(page=2, type="fire")) == "/?page=2&type=fire"

    def test_page_href_drops_first_page(self) -> None:
        params = ListParams(page=3, search="pika")
        assert page_href(params, 1) == "/?search=pika"
        assert page_href(params, 4) == "/?page=4&search=pika"


class TestReturnTo:
    """Tests for the return-to token round trip through a detail view."""

    def test_bare_list_has_no_token(self) -> None:
        assert return_to_token(ListParams()) is None
        assert back_href(None) == "/"

    def test_detail_href_without_token(self) -> None:
        assert detail_href(25) == "/creature/25"

    def test_detail_and_back_preserve_list_state(self) -> None:
        params = ListParams(page=2, type="electric", language="es")
        token = return_to_token(params)
        href = detail_href(25, token, params.language)

        assert href.startswith("/creature/25?from=")
        assert href.endswith("&language=es")
        assert back_href(token) == "/?page=2&type=electric&language=es"
        assert ListParams.from_query(back_href(token)[1:]) == params

    @pytest.mark.parametrize("search", ["a&b", "100%25x", "x=y", "mr. mime?"])
    def test_reserved_characters_survive_detail_round_trip(self, search: str) -> None:
        params = ListParams(page=3, search=search)
        href = detail_href(122, return_to_token(params))

        # The router decodes the detail URL's query string exactly once
        decoded_from = dict(parse_qsl(urlsplit(href).query))["from"]

        assert ListParams.from_query(urlsplit(back_href(decoded_from)).query) == params
