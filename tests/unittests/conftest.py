"""Contains configurations for the test run."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from dexsearch.config import CatalogConfig


@pytest.fixture(scope="session")
def resources_folder() -> Path:
    """Returns the path to the test resources folder."""
    return Path(__file__).parents[1] / "resources"


@pytest.fixture(scope="session")
def load_json(resources_folder: Path) -> Callable[[str], Any]:
    """Returns a loader for JSON payloads in the resources folder."""

    def _load(name: str) -> Any:
        return json.loads((resources_folder / name).read_text(encoding="utf-8"))

    return _load


@pytest.fixture
def config() -> CatalogConfig:
    """Catalog config pointing at fake providers, with no debounce delay."""
    return CatalogConfig(
        graphql_url="https://graphql.test/v1",
        rest_base_url="https://rest.test/api/v2",
        sprite_url_template="https://img.test/artwork/{id}.png",
        page_size=15,
        debounce_ms=0,
    )
