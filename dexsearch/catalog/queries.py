# ABOUTME: Graph-query documents for the list/search provider.
# ABOUTME: Locale-dependent sub-selections are filtered by the $lang variable.

POKEMON_LIST_QUERY = """
query getPokemonList($limit: Int!, $offset: Int!, $where: pokemon_bool_exp, $lang: String!) {
  pokemon(limit: $limit, offset: $offset, order_by: {id: asc}, where: $where) {
    id
    name
    height
    weight
    pokemontypes(order_by: {slot: asc}) {
      slot
      type {
        name
        typenames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
      }
    }
    pokemonspecy {
      is_legendary
      is_mythical
      evolves_from_species_id
      pokemonspeciesnames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
      pokemonspeciesflavortexts(where: {language: {name: {_eq: $lang}}}, limit: 1) { flavor_text }
      generation {
        name
        generationnames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
      }
      evolutionchain {
        pokemonspecies(order_by: {id: asc}) { id name }
      }
    }
  }
  pokemon_aggregate(where: $where) {
    aggregate { count }
  }
}
"""

TYPES_QUERY = """
query getTypes($lang: String!) {
  type(order_by: {name: asc}, where: {pokemontypes_aggregate: {count: {predicate: {_gt: 0}}}}) {
    name
    typenames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
  }
}
"""

GENERATIONS_QUERY = """
query getGenerations($lang: String!) {
  generation(order_by: {id: asc}) {
    name
    generationnames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
  }
}
"""

LOCALIZED_NAMES_QUERY = """
query getLocalizedNames(
  $types: [String!]!,
  $abilities: [String!]!,
  $moves: [String!]!,
  $species: [String!]!,
  $lang: String!
) {
  type(where: {name: {_in: $types}}) {
    name
    typenames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
  }
  ability(where: {name: {_in: $abilities}}) {
    name
    abilitynames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
  }
  move(where: {name: {_in: $moves}}) {
    name
    movenames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
  }
  pokemonspecies(where: {name: {_in: $species}}) {
    name
    pokemonspeciesnames(where: {language: {name: {_eq: $lang}}}, limit: 1) { name }
  }
}
"""
