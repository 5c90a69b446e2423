# ABOUTME: Compiles FilterCriteria into a graph-query boolean predicate (where clause).
# ABOUTME: Each active filter adds one conjunct; search matches name or evolution family.

from typing import Any

from dexsearch.models import FilterCriteria

Predicate = dict[str, Any]


def _ilike_pattern(text: str) -> str:
    """Wrap text in wildcards for a case-insensitive substring match."""
    return f"%{text}%"


def search_condition(search: str) -> Predicate:
    """Name substring match OR any evolution-family member name matches.

    Searching for a pre-evolution surfaces its evolved forms through family membership.
    """
    pattern = _ilike_pattern(search)
    return {
        "_or": [
            {"name": {"_ilike": pattern}},
            {
                "pokemonspecy": {
                    "evolutionchain": {
                        "pokemonspecies": {"name": {"_ilike": pattern}},
                    },
                },
            },
        ],
    }


def type_condition(type_slug: str) -> Predicate:
    """Category membership equality."""
    return {"pokemontypes": {"type": {"name": {"_eq": type_slug}}}}


def generation_condition(generation_slug: str) -> Predicate:
    """Generation identifier equality."""
    return {"pokemonspecy": {"generation": {"name": {"_eq": generation_slug}}}}


def id_condition(creature_id: int) -> Predicate:
    """Single creature by primary key."""
    return {"id": {"_eq": creature_id}}


def ids_condition(creature_ids: list[int]) -> Predicate:
    """Batch of creatures by primary key."""
    return {"id": {"_in": list(creature_ids)}}


def build_conditions(criteria: FilterCriteria) -> list[Predicate]:
    """Top-level conjuncts for the active fields of `criteria`.

    Empty or whitespace-only strings count as absent.
    """
    conditions: list[Predicate] = []

    search = (criteria.search or "").strip()
    if search:
        conditions.append(search_condition(search))

    type_slug = (criteria.type or "").strip()
    if type_slug:
        conditions.append(type_condition(type_slug))

    generation_slug = (criteria.generation or "").strip()
    if generation_slug:
        conditions.append(generation_condition(generation_slug))

    return conditions


def build_where_clause(criteria: FilterCriteria) -> Predicate:
    """Compile filter criteria into the list provider's `where` argument.

    Args:
        criteria: Flat filter criteria. Page and language do not contribute.

    Returns:
        {} when no filter is active (matches everything), the single condition
        when one is active, otherwise {"_and": [...]} with one conjunct per field.

    Examples:
        >>> build_where_clause(FilterCriteria())
        {}
        >>> build_where_clause(FilterCriteria(type="fire"))
        {'pokemontypes': {'type': {'name': {'_eq': 'fire'}}}}
    """
    conditions = build_conditions(criteria)
    if not conditions:
        return {}
    if len(conditions) == 1:
        return conditions[0]
    return {"_and": conditions}


def top_level_conjuncts(predicate: Predicate) -> list[Predicate]:
    """Split a compiled predicate back into its top-level conjuncts."""
    if not predicate:
        return []
    if set(predicate) == {"_and"}:
        return list(predicate["_and"])
    return [predicate]
