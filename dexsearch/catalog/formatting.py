# ABOUTME: Display helpers for creature attributes.
# ABOUTME: Formats slugs, height/weight units, gender ratios, stat labels, and dex numbers.

STAT_LABELS: dict[str, str] = {
    "hp": "HP",
    "attack": "Attack",
    "defense": "Defense",
    "special-attack": "Sp. Atk",
    "special-defense": "Sp. Def",
    "speed": "Speed",
}


def capitalize(slug: str) -> str:
    """Title-case a hyphenated slug.

    Examples:
        >>> capitalize("special-attack")
        'Special Attack'
    """
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def format_height(decimetres: int) -> str:
    """Height in metres with one decimal."""
    return f"{decimetres / 10:.1f} m"


def format_weight(hectograms: int) -> str:
    """Weight in kilograms with one decimal."""
    return f"{hectograms / 10:.1f} kg"


def gender_ratio(rate: int, genderless_label: str = "Genderless") -> str:
    """Male/female split from the female-eighths rate; -1 means genderless.

    Examples:
        >>> gender_ratio(1)
        '88% ♂ / 12% ♀'
    """
    if rate == -1:
        return genderless_label
    female = rate / 8 * 100
    male = 100 - female
    return f"{male:.0f}% ♂ / {female:.0f}% ♀"


def dex_number(creature_id: int) -> str:
    """Zero-padded catalog number, e.g. #0025."""
    return f"#{creature_id:04d}"


def stat_percent(base_stat: int, max_stat: int) -> float:
    """Share of the maximum stat value, capped at 100."""
    return min(100.0, base_stat / max_stat * 100)
