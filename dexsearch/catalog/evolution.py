"""ABOUTME: Flattens the recursive evolution tree of the detail provider into an ordered list.
ABOUTME: Folds each edge's transition condition into the node it leads into."""

from collections.abc import Callable, Mapping
from typing import Any

from dexsearch.models import EvolutionNode


def species_id_from_url(url: str) -> int:
    """Extract the numeric id from a resource URL.

    Examples:
        >>> species_id_from_url("https://pokeapi.co/api/v2/pokemon-species/133/")
        133
    """
    segments = [segment for segment in url.split("/") if segment]
    return int(segments[-1])


def _node_species_id(node: Mapping[str, Any]) -> int:
    return species_id_from_url(node["species"]["url"])


def _first_transition(node: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """Only the first candidate condition on an edge is significant."""
    details = node.get("evolution_details") or []
    return details[0] if details else None


def _named(value: Mapping[str, Any] | None) -> str | None:
    if not value:
        return None
    return value.get("name")


def _build_node(
    node: Mapping[str, Any],
    sprite_for: Callable[[int], str],
    localized_names: Mapping[str, str] | None,
    is_root: bool,
) -> EvolutionNode:
    species_id = _node_species_id(node)
    name = node["species"]["name"]
    localized = localized_names.get(name) if localized_names else None

    transition = None if is_root else _first_transition(node)
    if transition is None:
        return EvolutionNode(id=species_id, name=name, sprite=sprite_for(species_id), localized_name=localized)

    return EvolutionNode(
        id=species_id,
        name=name,
        sprite=sprite_for(species_id),
        min_level=transition.get("min_level"),
        trigger=_named(transition.get("trigger")),
        item=_named(transition.get("item")) or _named(transition.get("held_item")),
        localized_name=localized,
    )


def flatten_evolution_chain(
    chain: Mapping[str, Any],
    sprite_for: Callable[[int], str],
    localized_names: Mapping[str, str] | None = None,
) -> list[EvolutionNode]:
    """Walk an evolution tree in pre-order.

    The root comes first, then each child subtree in full before the next
    sibling. Siblings are visited by ascending species id.

    Args:
        chain: Root node with "species", "evolution_details", and "evolves_to" keys.
        sprite_for: Maps a species id to its sprite URL.
        localized_names: Optional species slug -> localized name lookup.

    Returns:
        Ordered nodes, always at least one. The root's transition metadata is None.
    """
    nodes: list[EvolutionNode] = []
    stack: list[tuple[Mapping[str, Any], bool]] = [(chain, True)]

    while stack:
        node, is_root = stack.pop()
        nodes.append(_build_node(node, sprite_for, localized_names, is_root))

        children = sorted(node.get("evolves_to") or [], key=_node_species_id)
        # Reverse so the lowest id is popped first
        stack.extend((child, False) for child in reversed(children))

    return nodes


def chain_species_names(chain: Mapping[str, Any]) -> list[str]:
    """All species slugs in an evolution tree, in pre-order."""
    names: list[str] = []
    stack: list[Mapping[str, Any]] = [chain]
    while stack:
        node = stack.pop()
        names.append(node["species"]["name"])
        stack.extend(reversed(sorted(node.get("evolves_to") or [], key=_node_species_id)))
    return names
