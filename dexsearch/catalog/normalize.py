"""ABOUTME: Maps both upstream response shapes onto the canonical domain model.
ABOUTME: Handles localized-name fallback, flavor text cleanup, predecessor and generation labels."""

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from dexsearch.catalog.evolution import flatten_evolution_chain, species_id_from_url
from dexsearch.errors import NotFoundError
from dexsearch.models import (
    STAT_NAMES,
    AbilityEntry,
    CatalogOption,
    CategorySlot,
    CreatureDetail,
    CreatureSummary,
    Cries,
    MoveEntry,
    SpeciesInfo,
    SpriteSet,
    StatEntry,
)
from dexsearch.settings import settings

# Form-feed, newline, and carriage return as embedded in upstream flavor text
_FLAVOR_CONTROL_CHARS = re.compile(r"[\f\n\r]")
_GENERATION_PREFIX = "generation-"

SpriteResolver = Callable[[int], str]


def sprite_url(creature_id: int, template: str | None = None) -> str:
    """Derive the official artwork URL for a creature id.

    Pure function of the id, usable without network access.

    Examples:
        >>> sprite_url(25, "https://img.example/{id}.png")
        'https://img.example/25.png'
    """
    if template is None:
        template = settings.SPRITE_URL_TEMPLATE
    return template.format(id=creature_id)


def localized_name(
    entries: Iterable[Mapping[str, Any]] | None,
    fallback: str,
    language: str | None = None,
    key: str = "name",
) -> str:
    """Pick a localized name, falling back to the unlocalized slug.

    Args:
        entries: Per-locale entries. Graph-query rows are already filtered to one
            language; REST rows carry a nested {"language": {"name": ...}}.
        fallback: Unlocalized slug used when no entry matches.
        language: When given, entries are filtered to this locale first.
        key: Field holding the localized text.

    Returns:
        The first matching entry's text, or `fallback`. Never empty unless
        `fallback` is.
    """
    for entry in entries or ():
        if language is not None and (entry.get("language") or {}).get("name") != language:
            continue
        value = entry.get(key)
        if value:
            return value
    return fallback


def sanitize_flavor_text(text: str | None) -> str:
    """Replace embedded form-feed/newline/carriage-return characters with spaces.

    Examples:
        >>> sanitize_flavor_text("A strange seed was\\fplanted on its\\nback at birth.")
        'A strange seed was planted on its back at birth.'
    """
    if not text:
        return ""
    return _FLAVOR_CONTROL_CHARS.sub(" ", text)


def format_generation_label(raw: str | None) -> str:
    """Render a raw generation identifier for display.

    Examples:
        >>> format_generation_label("generation-iv")
        'Generation IV'
        >>> format_generation_label(None)
        'Unknown'
    """
    if not raw:
        return "Unknown"
    if raw.startswith(_GENERATION_PREFIX):
        return f"Generation {raw[len(_GENERATION_PREFIX) :].upper()}"
    return raw


def resolve_predecessor_name(
    predecessor_id: int | None,
    family: Sequence[Mapping[str, Any]],
) -> str | None:
    """Look up the "evolves from" name inside the creature's own family list.

    Returns None when the id is absent or the family list does not contain it.
    """
    if not predecessor_id:
        return None
    for member in family:
        if member.get("id") == predecessor_id:
            return member.get("name")
    return None


def _categories(
    rows: Iterable[Mapping[str, Any]],
    type_names: Mapping[str, list[dict[str, Any]]] | None,
) -> tuple[CategorySlot, ...]:
    """Slot-ordered unique categories.

    Graph-query rows carry localized names inline under "typenames"; REST rows
    get them from `type_names`.
    """
    seen: set[str] = set()
    categories: list[CategorySlot] = []
    for row in sorted(rows, key=lambda r: r.get("slot", 0)):
        type_data = row.get("type") or {}
        name = type_data.get("name")
        if not name or name in seen:
            continue
        seen.add(name)
        entries = type_data.get("typenames")
        if entries is None and type_names is not None:
            entries = type_names.get(name)
        categories.append(CategorySlot(slot=row.get("slot", 0), name=name, localized_name=localized_name(entries, name)))
    return tuple(categories)


# --- List (graph-query) shape ---


def map_list_row(row: Mapping[str, Any], sprite_for: SpriteResolver | None = None) -> CreatureSummary:
    """Map one graph-query list row to a CreatureSummary.

    Args:
        row: A "pokemon" row from the list query.
        sprite_for: Sprite URL resolver. Defaults to the settings template.

    Returns:
        Immutable CreatureSummary.
    """
    if sprite_for is None:
        sprite_for = sprite_url

    creature_id = row["id"]
    species = row.get("pokemonspecy") or {}
    family = (species.get("evolutionchain") or {}).get("pokemonspecies") or []
    family_ids = tuple(member["id"] for member in family if member["id"] != creature_id)

    generation = species.get("generation") or {}
    generation_label = localized_name(generation.get("generationnames"), format_generation_label(generation.get("name")))

    flavor_entries = species.get("pokemonspeciesflavortexts") or []
    flavor_text = sanitize_flavor_text(flavor_entries[0].get("flavor_text") if flavor_entries else "")

    return CreatureSummary(
        id=creature_id,
        name=row["name"],
        categories=_categories(row.get("pokemontypes") or [], None),
        generation=generation_label,
        evolution_family_ids=family_ids,
        height=row.get("height") or 0,
        weight=row.get("weight") or 0,
        flavor_text=flavor_text,
        evolves_from_name=resolve_predecessor_name(species.get("evolves_from_species_id"), family),
        is_legendary=bool(species.get("is_legendary")),
        is_mythical=bool(species.get("is_mythical")),
        sprite=sprite_for(creature_id),
        localized_name=localized_name(species.get("pokemonspeciesnames"), row["name"]),
    )


def map_list_response(
    data: Mapping[str, Any], sprite_for: SpriteResolver | None = None
) -> tuple[list[CreatureSummary], int]:
    """Map the list query's "data" object to summaries and the total count."""
    creatures = [map_list_row(row, sprite_for) for row in data.get("pokemon") or []]
    aggregate = (data.get("pokemon_aggregate") or {}).get("aggregate") or {}
    return creatures, int(aggregate.get("count") or 0)


def map_single_row(
    data: Mapping[str, Any], creature_id: int, sprite_for: SpriteResolver | None = None
) -> CreatureSummary:
    """Map a single-entity list response, raising NotFoundError when it has no row."""
    rows = data.get("pokemon") or []
    if not rows:
        raise NotFoundError(creature_id)
    return map_list_row(rows[0], sprite_for)


def map_type_options(data: Mapping[str, Any]) -> list[CatalogOption]:
    """Category options with localized names, falling back to the slug."""
    return [
        CatalogOption(slug=row["name"], name=localized_name(row.get("typenames"), row["name"]))
        for row in data.get("type") or []
    ]


def map_generation_options(data: Mapping[str, Any]) -> list[CatalogOption]:
    """Generation options with localized names, falling back to the derived label."""
    return [
        CatalogOption(
            slug=row["name"],
            name=localized_name(row.get("generationnames"), format_generation_label(row["name"])),
        )
        for row in data.get("generation") or []
    ]


# --- Detail (nested-document) shape ---


@dataclass
class LocalizedNames:
    """Per-slug locale entries for the localizable fields of a detail entity.

    Each field maps a slug to its (already language-filtered) entry list. Every
    field falls back to its own slug independently.
    """

    types: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    abilities: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    moves: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    species: dict[str, list[dict[str, Any]]] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "LocalizedNames":
        """Build the lookup from the localized-names query "data" object."""

        def _index(rows_key: str, names_key: str) -> dict[str, list[dict[str, Any]]]:
            return {row["name"]: list(row.get(names_key) or []) for row in data.get(rows_key) or []}

        return cls(
            types=_index("type", "typenames"),
            abilities=_index("ability", "abilitynames"),
            moves=_index("move", "movenames"),
            species=_index("pokemonspecies", "pokemonspeciesnames"),
        )

    def species_names(self) -> dict[str, str]:
        """Species slug -> localized name, only for species that have one."""
        return {slug: localized_name(entries, slug) for slug, entries in self.species.items() if entries}


def _ordered_stats(rows: Iterable[Mapping[str, Any]]) -> tuple[StatEntry, ...]:
    by_name = {row["stat"]["name"]: int(row["base_stat"]) for row in rows}
    return tuple(StatEntry(name=name, base_stat=by_name[name]) for name in STAT_NAMES if name in by_name)


def _first_for_language(
    entries: Iterable[Mapping[str, Any]], key: str, languages: Sequence[str]
) -> str | None:
    entries = list(entries)
    for language in languages:
        for entry in entries:
            if (entry.get("language") or {}).get("name") == language and entry.get(key):
                return entry[key]
    return None


def _species_name(species: Mapping[str, Any], slug: str, names: LocalizedNames, language: str) -> str:
    """Localized species name from the names query, else from the species document."""
    entries = names.species.get(slug)
    if entries:
        return localized_name(entries, slug)
    return localized_name(species.get("names"), slug, language=language)


def map_detail(
    pokemon: Mapping[str, Any] | None,
    species: Mapping[str, Any],
    chain: Mapping[str, Any],
    *,
    creature_id: int | str | None = None,
    language: str = "en",
    default_language: str = "en",
    names: LocalizedNames | None = None,
    sprite_for: SpriteResolver | None = None,
) -> CreatureDetail:
    """Map the three nested-document payloads to a CreatureDetail.

    Args:
        pokemon: The creature document, None when the provider had no such id.
        species: The species document.
        chain: The evolution chain's root node ("chain" of the chain document).
        creature_id: Requested id, used for the NotFoundError message.
        language: Requested locale for genus, flavor text, and localized names.
        default_language: Locale used for flavor text and genus when `language` has none.
        names: Localized names for categories, abilities, moves, and species.
        sprite_for: Sprite URL resolver. Defaults to the settings template.

    Returns:
        Immutable CreatureDetail.

    Raises:
        NotFoundError: If `pokemon` is None.
    """
    if pokemon is None:
        raise NotFoundError(creature_id if creature_id is not None else "unknown")

    if sprite_for is None:
        sprite_for = sprite_url
    if names is None:
        names = LocalizedNames()

    creature_id = pokemon["id"]
    locale_order = [language] if language == default_language else [language, default_language]

    abilities = tuple(
        AbilityEntry(
            name=row["ability"]["name"],
            slot=row.get("slot", 0),
            is_hidden=bool(row.get("is_hidden")),
            localized_name=localized_name(names.abilities.get(row["ability"]["name"]), row["ability"]["name"]),
        )
        for row in sorted(pokemon.get("abilities") or [], key=lambda r: r.get("slot", 0))
    )
    moves = tuple(
        MoveEntry(
            name=row["move"]["name"],
            localized_name=localized_name(names.moves.get(row["move"]["name"]), row["move"]["name"]),
        )
        for row in pokemon.get("moves") or []
    )

    raw_sprites = pokemon.get("sprites") or {}
    artwork = (raw_sprites.get("other") or {}).get("official-artwork") or {}
    sprites = SpriteSet(
        official_artwork=artwork.get("front_default") or sprite_for(creature_id),
        front_default=raw_sprites.get("front_default"),
        front_shiny=raw_sprites.get("front_shiny"),
        official_artwork_shiny=artwork.get("front_shiny"),
    )

    raw_cries = pokemon.get("cries") or {}
    cries = Cries(latest=raw_cries.get("latest"), legacy=raw_cries.get("legacy"))

    species_slug = species.get("name") or pokemon["name"]
    species_info = SpeciesInfo(
        genus=_first_for_language(species.get("genera") or [], "genus", locale_order) or "",
        flavor_text=sanitize_flavor_text(
            _first_for_language(species.get("flavor_text_entries") or [], "flavor_text", locale_order)
        ),
        generation=format_generation_label((species.get("generation") or {}).get("name")),
        habitat=(species.get("habitat") or {}).get("name"),
        growth_rate=(species.get("growth_rate") or {}).get("name", ""),
        capture_rate=int(species.get("capture_rate") or 0),
        base_happiness=species.get("base_happiness"),
        gender_rate=int(species.get("gender_rate", -1)),
        egg_groups=tuple(group["name"] for group in species.get("egg_groups") or []),
        is_legendary=bool(species.get("is_legendary")),
        is_mythical=bool(species.get("is_mythical")),
        localized_name=_species_name(species, species_slug, names, language),
    )

    evolution_chain = tuple(flatten_evolution_chain(chain, sprite_for, names.species_names()))

    predecessor = species.get("evolves_from_species")
    predecessor_id = species_id_from_url(predecessor["url"]) if predecessor and predecessor.get("url") else None
    family = [{"id": node.id, "name": node.name} for node in evolution_chain]

    return CreatureDetail(
        id=creature_id,
        name=pokemon["name"],
        height=pokemon.get("height") or 0,
        weight=pokemon.get("weight") or 0,
        base_experience=pokemon.get("base_experience"),
        categories=_categories(pokemon.get("types") or [], names.types),
        stats=_ordered_stats(pokemon.get("stats") or []),
        abilities=abilities,
        moves=moves,
        cries=cries,
        sprites=sprites,
        species=species_info,
        evolution_chain=evolution_chain,
        evolves_from_name=resolve_predecessor_name(predecessor_id, family),
    )
