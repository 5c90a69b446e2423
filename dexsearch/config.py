"""ABOUTME: Explicit configuration passed into catalog and search components.
ABOUTME: Handles building CatalogConfig from settings and loading catalog.yml overrides."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from dexsearch.settings import Settings, settings


class CatalogConfig(BaseModel):
    """Configuration shared by the upstream client, pagination, and search session."""

    model_config = {"frozen": True}

    graphql_url: str
    rest_base_url: str
    sprite_url_template: str
    page_size: int = Field(default=15, ge=1)
    debounce_ms: int = Field(default=350, ge=0)
    fallback_max_results: int = Field(default=15, ge=1)
    fallback_min_query_length: int = Field(default=2, ge=1)
    max_species_id: int = Field(default=1025, ge=1)
    max_stat: int = Field(default=255, ge=1)
    default_language: str = "en"
    http_timeout: float = Field(default=30.0, gt=0)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    fallback_url: str | None = None

    @classmethod
    def from_settings(cls, source: Settings | None = None, **overrides: object) -> "CatalogConfig":
        """Build a config from project settings, applying keyword overrides on top.

        Args:
            source: Settings instance. Defaults to the module-level settings.
            **overrides: Field values that replace the settings defaults.

        Returns:
            Validated CatalogConfig.
        """
        if source is None:
            source = settings

        values: dict[str, object] = {
            "graphql_url": source.GRAPHQL_URL,
            "rest_base_url": source.REST_BASE_URL,
            "sprite_url_template": source.SPRITE_URL_TEMPLATE,
            "page_size": source.PAGE_SIZE,
            "debounce_ms": source.SEARCH_DEBOUNCE_MS,
            "fallback_max_results": source.FALLBACK_MAX_RESULTS,
            "fallback_min_query_length": source.FALLBACK_MIN_QUERY_LENGTH,
            "max_species_id": source.MAX_SPECIES_ID,
            "max_stat": source.MAX_STAT,
            "default_language": source.DEFAULT_LANGUAGE,
            "http_timeout": source.HTTP_TIMEOUT,
            "openai_api_key": source.OPENAI_API_KEY,
            "openai_model": source.OPENAI_MODEL,
            "fallback_url": source.FALLBACK_URL,
        }
        values.update(overrides)
        return cls.model_validate(values)

    @property
    def debounce_seconds(self) -> float:
        """Debounce delay in seconds."""
        return self.debounce_ms / 1000

    def sprite_url(self, creature_id: int) -> str:
        """Derive the artwork URL for a creature id."""
        return self.sprite_url_template.format(id=creature_id)


def load_catalog_config(config_path: Path | None = None) -> CatalogConfig:
    """Load catalog configuration from a YAML file layered over settings.

    Args:
        config_path: Path to the config file. Defaults to settings.catalog_config_path.

    Returns:
        Parsed CatalogConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config file is invalid.
    """
    if config_path is None:
        config_path = settings.catalog_config_path

    if not config_path.exists():
        raise FileNotFoundError(f"Catalog config not found: {config_path}")

    with config_path.open() as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Catalog config must be a mapping: {config_path}")

    return CatalogConfig.from_settings(**raw_config)
