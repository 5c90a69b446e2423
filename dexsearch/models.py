"""ABOUTME: Canonical domain model shared by both upstream response shapes.
ABOUTME: Contains FilterCriteria, CreatureSummary, CreatureDetail, EvolutionNode, and paging results."""

from dataclasses import dataclass, replace

from dexsearch.catalog.pagination import normalize_page

# Fixed stat taxonomy, in display order
STAT_NAMES: tuple[str, ...] = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


def _clean_optional(value: str | None) -> str | None:
    """Treat empty or whitespace-only strings as absent."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class FilterCriteria:
    """User filter intent for the creature list.

    Attributes:
        page: 1-based page number, always >= 1.
        search: Free-text name search, None when absent.
        type: Category slug (e.g., "fire"), None when absent.
        generation: Generation slug (e.g., "generation-i"), None when absent.
        language: Locale tag used for localized names (e.g., "es"), None for default.
    """

    page: int = 1
    search: str | None = None
    type: str | None = None
    generation: str | None = None
    language: str | None = None

    @classmethod
    def build(
        cls,
        page: object = 1,
        search: str | None = None,
        type: str | None = None,  # noqa: A002
        generation: str | None = None,
        language: str | None = None,
    ) -> "FilterCriteria":
        """Create normalized criteria: page clamped to >= 1, blank strings dropped."""
        return cls(
            page=normalize_page(page),
            search=_clean_optional(search),
            type=_clean_optional(type),
            generation=_clean_optional(generation),
            language=_clean_optional(language),
        )

    @property
    def has_structured_filter(self) -> bool:
        """True when a category or generation filter is active."""
        return bool(self.type) or bool(self.generation)

    def with_page(self, page: object) -> "FilterCriteria":
        """Return a copy pointing at another page."""
        return replace(self, page=normalize_page(page))


@dataclass(frozen=True)
class CategorySlot:
    """A typed category (e.g., "fire") at its slot position."""

    slot: int
    name: str
    localized_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.localized_name or self.name


@dataclass(frozen=True)
class StatEntry:
    """One entry of the six-stat block."""

    name: str
    base_stat: int


@dataclass(frozen=True)
class AbilityEntry:
    """An ability at its slot, with the hidden flag."""

    name: str
    slot: int
    is_hidden: bool
    localized_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.localized_name or self.name


@dataclass(frozen=True)
class MoveEntry:
    """A learnable move."""

    name: str
    localized_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.localized_name or self.name


@dataclass(frozen=True)
class Cries:
    """Sound-cue references."""

    latest: str | None = None
    legacy: str | None = None


@dataclass(frozen=True)
class SpriteSet:
    """Sprite variants for the detail view."""

    official_artwork: str
    front_default: str | None = None
    front_shiny: str | None = None
    official_artwork_shiny: str | None = None


@dataclass(frozen=True)
class SpeciesInfo:
    """Species-level metadata for the detail view.

    Attributes:
        genus: Localized genus (e.g., "Seed Pokémon"), empty when unknown.
        flavor_text: Sanitized description text.
        generation: Display label (e.g., "Generation I").
        habitat: Habitat slug, None when unknown.
        growth_rate: Growth rate slug.
        capture_rate: Capture rate (0-255).
        base_happiness: Base happiness, None when unknown.
        gender_rate: Female eighths, -1 for genderless.
        egg_groups: Egg group slugs.
        is_legendary: Legendary flag.
        is_mythical: Mythical flag.
        localized_name: Localized species name, None when unavailable.
    """

    genus: str
    flavor_text: str
    generation: str
    habitat: str | None
    growth_rate: str
    capture_rate: int
    base_happiness: int | None
    gender_rate: int
    egg_groups: tuple[str, ...] = ()
    is_legendary: bool = False
    is_mythical: bool = False
    localized_name: str | None = None


@dataclass(frozen=True)
class EvolutionNode:
    """A node of a flattened evolution chain.

    Transition metadata (min_level, trigger, item) describes the evolution INTO
    this node. The root node always has all three set to None.
    """

    id: int
    name: str
    sprite: str
    min_level: int | None = None
    trigger: str | None = None
    item: str | None = None
    localized_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.localized_name or self.name


@dataclass(frozen=True)
class CreatureSummary:
    """Canonical list-view entity built from one list-query row."""

    id: int
    name: str
    categories: tuple[CategorySlot, ...]
    generation: str
    evolution_family_ids: tuple[int, ...]
    height: int
    weight: int
    flavor_text: str
    evolves_from_name: str | None
    is_legendary: bool
    is_mythical: bool
    sprite: str
    localized_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.localized_name or self.name


@dataclass(frozen=True)
class CreatureDetail:
    """Canonical detail-view entity built from the nested-document shape."""

    id: int
    name: str
    height: int
    weight: int
    base_experience: int | None
    categories: tuple[CategorySlot, ...]
    stats: tuple[StatEntry, ...]
    abilities: tuple[AbilityEntry, ...]
    moves: tuple[MoveEntry, ...]
    cries: Cries
    sprites: SpriteSet
    species: SpeciesInfo
    evolution_chain: tuple[EvolutionNode, ...]
    evolves_from_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.species.localized_name or self.name

    @property
    def generation(self) -> str:
        return self.species.generation

    @property
    def flavor_text(self) -> str:
        return self.species.flavor_text

    @property
    def is_legendary(self) -> bool:
        return self.species.is_legendary

    @property
    def is_mythical(self) -> bool:
        return self.species.is_mythical

    @property
    def sprite(self) -> str:
        return self.sprites.official_artwork

    @property
    def evolution_family_ids(self) -> tuple[int, ...]:
        """Ids of the other members of this creature's evolution chain, ascending."""
        return tuple(sorted(node.id for node in self.evolution_chain if node.id != self.id))

    @property
    def total_stats(self) -> int:
        return sum(stat.base_stat for stat in self.stats)

    def to_summary(self) -> CreatureSummary:
        """Project the detail entity onto the list-view shape."""
        return CreatureSummary(
            id=self.id,
            name=self.name,
            categories=self.categories,
            generation=self.generation,
            evolution_family_ids=self.evolution_family_ids,
            height=self.height,
            weight=self.weight,
            flavor_text=self.flavor_text,
            evolves_from_name=self.evolves_from_name,
            is_legendary=self.is_legendary,
            is_mythical=self.is_mythical,
            sprite=self.sprite,
            localized_name=self.species.localized_name,
        )


@dataclass(frozen=True)
class CatalogOption:
    """A selectable filter value (category or generation) with its display name."""

    slug: str
    name: str


@dataclass(frozen=True)
class PaginatedResult:
    """One page of list results plus paging totals."""

    creatures: tuple[CreatureSummary, ...]
    total: int
    page: int
    page_size: int
    total_pages: int

    @property
    def is_empty(self) -> bool:
        return not self.creatures

