"""Free-text search over reconciled menu sections."""

from collections.abc import Iterable, Mapping

from dining_fuel.domain.menu import MenuItem, MenuMealSection, MenuSearchResult
from dining_fuel.services.normalizer import normalize_whitespace

# Canonical label -> spellings used for the same venue across feeds.
DEFAULT_LOCATION_ALIASES: dict[str, tuple[str, ...]] = {
    "Jonathan Edwards College": (
        "JE",
        "Jonathan Edwards",
        "Jonathan Edwards Dining Hall",
        "JE Dining Hall",
    ),
    "Commons": ("Commons Dining Hall", "Schwarzman Center Commons"),
}


def build_alias_index(
    aliases: Mapping[str, Iterable[str]],
) -> dict[str, str]:
    """Map every normalized spelling (canonical included) to its canonical label."""
    index: dict[str, str] = {}
    for canonical, spellings in aliases.items():
        index[_location_key(canonical)] = canonical
        for spelling in spellings:
            index[_location_key(spelling)] = canonical
    return index


def search(
    sections: Iterable[MenuMealSection],
    query: str,
    aliases: Mapping[str, Iterable[str]] | None = None,
) -> list[MenuSearchResult]:
    """Return matching items, deduplicated across aliases and sorted."""
    needle = normalize_whitespace(query or "").lower()
    if not needle:
        return []
    alias_index = build_alias_index(
        DEFAULT_LOCATION_ALIASES if aliases is None else aliases
    )

    results: dict[tuple[str, str, str, str], MenuSearchResult] = {}
    for section in sections:
        for location in section.locations:
            raw_key = _location_key(location.location)
            canonical = alias_index.get(raw_key, location.location)
            location_key = _location_key(canonical)
            for meal in location.meals:
                for item in meal.items:
                    haystack = _haystack(
                        item, (location.location, canonical), meal.meal_type, section
                    )
                    if not any(needle in field for field in haystack):
                        continue
                    dedup_key = (
                        location_key,
                        meal.meal_type.lower(),
                        item.name.lower(),
                        (item.description or "").lower(),
                    )
                    results.setdefault(
                        dedup_key,
                        MenuSearchResult(
                            location=canonical,
                            location_key=location_key,
                            meal_type=meal.meal_type,
                            section_type=section.type,
                            section_label=section.label,
                            item=item,
                        ),
                    )

    return sorted(
        results.values(),
        key=lambda result: (
            result.location.lower(),
            result.meal_type.lower(),
            result.item.name.lower(),
        ),
    )


def _haystack(
    item: MenuItem,
    locations: tuple[str, ...],
    meal_type: str,
    section: MenuMealSection,
) -> list[str]:
    fields = [
        item.name,
        item.description or "",
        *locations,
        meal_type,
        section.label,
        section.type,
    ]
    for fact in item.nutrition_facts:
        fields.append(fact.name)
        fields.append(fact.display or "")
    return [field.lower() for field in fields if field]


def _location_key(name: str) -> str:
    return normalize_whitespace(name).lower()
