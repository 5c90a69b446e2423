"""ABOUTME: Configuration logic and default settings for the project.
ABOUTME: Provides provider URLs, paging/search constants, and config file paths."""

from pathlib import Path

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexsearch import __version__


def _get_project_root() -> Path:
    """Find project root by looking for pyproject.toml."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Contains settings for this project."""

    model_config = SettingsConfigDict(env_prefix="DEXSEARCH_", extra="ignore", populate_by_name=True)

    VERSION: str = __version__
    """Project version."""

    PROJECT_ROOT: Path = _get_project_root()
    """Root directory of the project."""

    GRAPHQL_URL: str = "https://graphql.pokeapi.co/v1beta2"
    """Graph-query endpoint used for list, search, and option lookups."""

    REST_BASE_URL: str = "https://pokeapi.co/api/v2"
    """Nested-document endpoint used for the detail view."""

    SPRITE_URL_TEMPLATE: str = (
        "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/other/official-artwork/{id}.png"
    )
    """Artwork URL derived from a creature id when the payload has none."""

    PAGE_SIZE: int = 15
    SEARCH_DEBOUNCE_MS: int = 350
    FALLBACK_MAX_RESULTS: int = 15
    FALLBACK_MIN_QUERY_LENGTH: int = 2
    MAX_SPECIES_ID: int = 1025
    MAX_STAT: int = 255
    DEFAULT_LANGUAGE: str = "en"
    HTTP_TIMEOUT: float = 30.0

    OPENAI_API_KEY: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DEXSEARCH_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    """API key for the semantic fallback provider. Fallback is unconfigured without it."""

    OPENAI_MODEL: str = "gpt-4o-mini"

    FALLBACK_URL: str | None = None
    """Optional remote semantic search endpoint, used instead of calling OpenAI directly."""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def project_root(self) -> Path:
        """Root directory of the project (alias for PROJECT_ROOT)."""
        return self.PROJECT_ROOT

    @computed_field  # type: ignore[prop-decorator]
    @property
    def configs_dir(self) -> Path:
        """Directory containing configuration files."""
        return self.PROJECT_ROOT / "configs"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def catalog_config_path(self) -> Path:
        """Path to the catalog.yml configuration file."""
        return self.configs_dir / "catalog.yml"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def logging_config_path(self) -> Path:
        """Path to the logging.yml configuration file."""
        return self.configs_dir / "logging.yml"


settings = Settings()
