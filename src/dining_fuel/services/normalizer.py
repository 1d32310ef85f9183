"""Menu item normalization, nutrition fact extraction and deduplication."""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import replace

from dining_fuel.domain.menu import MenuItem, MenuLocation, MenuMeal, NutritionFact

PREFERRED_FACT_ORDER = ("calorie", "protein", "carbohydrate", "fat", "fiber", "sugar")
FEATURED_FACT_LIMIT = 4
DESCRIPTION_SEPARATOR = " · "

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")
_NON_LETTER = re.compile(r"[^A-Za-z]+")

_FACT_SOURCE_KEYS = (
    "nutrition",
    "nutrition_facts",
    "nutritionFacts",
    "nutrients",
    "nutrient_list",
    "nutrientInfo",
    "nutrition_info",
    "analysis",
    "full_nutrition",
    "additional_nutrition",
)
_CALORIE_KEYS = ("calories", "calorie", "kcal")
_NAME_KEYS = ("name", "label", "title")
_UNIT_KEYS = ("unit", "units", "uom", "measureUnit", "measure")
_DISPLAY_KEYS = (
    "display",
    "display_value",
    "displayValue",
    "text",
    "value",
    "amount",
    "quantity",
    "measure",
)
_AMOUNT_KEYS = ("amount", "value", "quantity", "number", "mass", "grams", "milligrams")
_PERCENT_KEYS = (
    "percentDailyValue",
    "percent_dv",
    "percentDV",
    "dailyValuePercent",
    "daily_value_percent",
    "percent",
    "pct",
    "dv",
)

_MEAL_TYPE_KEYWORDS = (
    ("breakfast", ("breakfast", "brunch")),
    ("lunch", ("lunch", "midday")),
    ("dinner", ("dinner", "supper", "evening")),
    ("snack", ("snack", "late", "grab")),
)
DEFAULT_MEAL_TYPE = "lunch"


def to_number(value: object) -> float | None:
    """Parse a number from a numeric or loosely formatted string value."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value.strip())
        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            return None
        return float(match.group())
    return None


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace and non-breaking spaces."""
    return " ".join(text.split())


def item_key(name: str) -> str:
    """Return the dedup key for an item name."""
    return normalize_whitespace(name).lower()


def normalize_fact_name(name: str) -> str:
    """Normalize a fact label: separators to spaces, word starts upper-cased."""
    cleaned = normalize_whitespace(re.sub(r"[_-]+", " ", name))
    return re.sub(r"(^|\s)([a-z])", lambda m: m.group(1) + m.group(2).upper(), cleaned)


def normalize_meal_type(label: str) -> str:
    """Map a free-form meal label onto breakfast, lunch, dinner or snack."""
    lower = label.lower()
    for meal_type, keywords in _MEAL_TYPE_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return meal_type
    return DEFAULT_MEAL_TYPE


def parse_nutrition_entry(
    entry: object, fallback_name: str | None = None
) -> NutritionFact | None:
    """Parse one raw nutrition entry into a fact, if it carries a value."""
    if entry is None or isinstance(entry, bool):
        return None
    if isinstance(entry, NutritionFact):
        return entry
    if isinstance(entry, str | int | float):
        display = str(entry).strip()
        name = (fallback_name or "").strip()
        if not display or not name:
            return None
        return NutritionFact(
            name=normalize_fact_name(name),
            amount=to_number(entry),
            display=display,
        )
    if not isinstance(entry, Mapping):
        return None

    raw_name = _first_text(entry, _NAME_KEYS) or (fallback_name or "").strip()
    if not raw_name:
        return None

    unit = _first_text(entry, _UNIT_KEYS)
    amount = _first_number(entry, _AMOUNT_KEYS)
    display = _first_text(entry, _DISPLAY_KEYS)
    if display is None and amount is not None:
        display = f"{format_amount(amount)} {unit}" if unit else format_amount(amount)
    if display is None and amount is None:
        return None

    return NutritionFact(
        name=normalize_fact_name(raw_name),
        amount=amount,
        unit=unit,
        percent_daily_value=_first_number(entry, _PERCENT_KEYS),
        display=display,
    )


def merge_nutrition_facts(
    existing: Iterable[NutritionFact], incoming: Iterable[NutritionFact]
) -> tuple[NutritionFact, ...]:
    """Merge facts by normalized name; later facts only fill missing fields."""
    merged: dict[str, NutritionFact] = {}
    for fact in [*existing, *incoming]:
        name = normalize_fact_name(fact.name)
        key = name.lower()
        if not key:
            continue
        current = merged.get(key)
        if current is None:
            merged[key] = replace(fact, name=name)
            continue
        merged[key] = replace(
            current,
            display=current.display or fact.display,
            amount=current.amount if current.amount is not None else fact.amount,
            unit=current.unit or fact.unit,
            percent_daily_value=(
                current.percent_daily_value
                if current.percent_daily_value is not None
                else fact.percent_daily_value
            ),
        )
    return tuple(merged.values())


def extract_nutrition_facts(record: Mapping[str, object]) -> tuple[NutritionFact, ...]:
    """Collect facts from every known nutrition container of a raw food record."""
    facts: list[NutritionFact] = []
    sources: list[object] = [record.get(key) for key in _FACT_SOURCE_KEYS]
    attributes = record.get("attributes")
    if isinstance(attributes, Mapping):
        sources.extend([attributes.get("nutrition"), attributes.get("nutrients")])
    for source in sources:
        _collect_facts(source, None, facts)
    return merge_nutrition_facts((), facts)


def _collect_facts(
    source: object, fallback_name: str | None, facts: list[NutritionFact]
) -> None:
    if source is None:
        return
    if isinstance(source, list | tuple):
        for entry in source:
            _collect_facts(entry, fallback_name, facts)
        return
    if (
        isinstance(source, Mapping)
        and _first_text(source, _NAME_KEYS) is None
        and not any(key in source for key in (*_AMOUNT_KEYS, *_DISPLAY_KEYS))
    ):
        # name -> value mapping such as {"protein": "12 g", "fat": {...}}
        for key, value in source.items():
            if isinstance(value, Mapping | str | int | float):
                _collect_facts(value, str(key), facts)
        return
    fact = parse_nutrition_entry(source, fallback_name)
    if fact is not None:
        facts.append(fact)


def find_fact(facts: Iterable[NutritionFact], keyword: str) -> NutritionFact | None:
    """Return the first fact whose name contains the keyword."""
    for fact in facts:
        if keyword in fact.name.lower():
            return fact
    return None


def fact_value(fact: NutritionFact | None) -> float | None:
    """Numeric value of a fact, preferring amount over display."""
    if fact is None:
        return None
    if fact.amount is not None:
        return to_number(fact.amount)
    return to_number(fact.display)


def resolve_calories(
    raw: Mapping[str, object] | MenuItem,
    facts: Iterable[NutritionFact] = (),
    text_calories: float | None = None,
) -> float | None:
    """Resolve calories: explicit field, then calorie fact, then text token."""
    if isinstance(raw, MenuItem):
        candidates: list[object] = [raw.calories]
        facts = raw.nutrition_facts
    else:
        candidates = _calorie_candidates(raw)
    for candidate in candidates:
        parsed = to_number(candidate)
        if parsed is not None:
            return parsed
    from_fact = fact_value(find_fact(facts, "calorie"))
    if from_fact is not None:
        return from_fact
    return text_calories


def resolve_protein(item: MenuItem) -> float | None:
    """Protein grams from the item's protein fact."""
    return fact_value(find_fact(item.nutrition_facts, "protein"))


def _calorie_candidates(raw: Mapping[str, object]) -> list[object]:
    candidates = [raw.get(key) for key in _CALORIE_KEYS]
    nutrition = raw.get("nutrition")
    if isinstance(nutrition, Mapping):
        candidates.extend(nutrition.get(key) for key in _CALORIE_KEYS)
    attributes = raw.get("attributes")
    if isinstance(attributes, Mapping):
        candidates.extend(attributes.get(key) for key in _CALORIE_KEYS)
        attr_nutrition = attributes.get("nutrition")
        if isinstance(attr_nutrition, Mapping):
            candidates.extend(attr_nutrition.get(key) for key in _CALORIE_KEYS)
    return candidates


def normalize_item(
    raw: Mapping[str, object] | MenuItem, text_calories: float | None = None
) -> MenuItem:
    """Produce a canonical menu item from a raw JSON record or an existing item."""
    if isinstance(raw, MenuItem):
        facts = merge_nutrition_facts((), raw.nutrition_facts)
        return replace(
            raw,
            name=normalize_whitespace(raw.name),
            description=_clean_description(raw.description),
            calories=resolve_calories(
                {"calories": raw.calories}, facts, text_calories
            ),
            nutrition_facts=facts,
        )

    facts = extract_nutrition_facts(raw)
    return MenuItem(
        name=normalize_whitespace(str(raw.get("name") or "")),
        description=_clean_description(raw.get("description")),
        calories=resolve_calories(raw, facts, text_calories),
        nutrition_facts=facts,
    )


def merge_descriptions(existing: str | None, incoming: str | None) -> str | None:
    """Concatenate distinct descriptions, skipping exact substrings."""
    if not incoming:
        return existing
    if not existing:
        return incoming
    if incoming in existing:
        return existing
    if existing in incoming:
        return incoming
    return f"{existing}{DESCRIPTION_SEPARATOR}{incoming}"


def upsert_menu_item(bucket: dict[str, MenuItem], item: MenuItem) -> MenuItem:
    """Insert or merge an item into an insertion-ordered bucket keyed by name."""
    key = item_key(item.name)
    existing = bucket.get(key)
    if existing is None:
        bucket[key] = item
        return item
    merged = replace(
        existing,
        description=merge_descriptions(existing.description, item.description),
        calories=existing.calories if existing.calories is not None else item.calories,
        nutrition_facts=merge_nutrition_facts(
            existing.nutrition_facts, item.nutrition_facts
        ),
    )
    bucket[key] = merged
    return merged


def dedupe_items(items: Iterable[MenuItem]) -> tuple[MenuItem, ...]:
    """Deduplicate items preserving first-seen order."""
    bucket: dict[str, MenuItem] = {}
    for item in items:
        if item.name:
            upsert_menu_item(bucket, item)
    return tuple(bucket.values())


def featured_nutrition_facts(
    facts: Iterable[NutritionFact], limit: int = FEATURED_FACT_LIMIT
) -> list[NutritionFact]:
    """Pick preferred facts first, then the remainder, bounded by limit."""
    all_facts = list(facts)
    prioritized: list[NutritionFact] = []
    for keyword in PREFERRED_FACT_ORDER:
        match = find_fact(all_facts, keyword)
        if match is not None and not any(match is fact for fact in prioritized):
            prioritized.append(match)
    remainder = [
        fact for fact in all_facts if not any(fact is chosen for chosen in prioritized)
    ]
    return [*prioritized, *remainder][:limit]


def format_nutrition_fact_value(fact: NutritionFact) -> str | None:
    """Render a fact value for display, or None when there is nothing to show."""
    if fact.amount is not None:
        return f"{format_amount(fact.amount)}{fact.unit or ''}"
    display = (fact.display or "").strip()
    if not display:
        return None
    parsed = to_number(display)
    if parsed is not None:
        unit = fact.unit or _NON_LETTER.sub("", display)
        return f"{format_amount(parsed)}{unit}"
    return display


def normalize_locations(raw_menu: Iterable[object]) -> tuple[MenuLocation, ...]:
    """Normalize a raw `[{location, meals: [{mealType, items}]}]` payload."""
    locations: list[MenuLocation] = []
    for raw_location in raw_menu:
        if isinstance(raw_location, MenuLocation):
            raw_location = _location_as_mapping(raw_location)
        if not isinstance(raw_location, Mapping):
            continue
        name = normalize_whitespace(str(raw_location.get("location") or ""))
        meals: list[MenuMeal] = []
        raw_meals = raw_location.get("meals")
        for raw_meal in raw_meals if isinstance(raw_meals, list | tuple) else []:
            if not isinstance(raw_meal, Mapping):
                continue
            raw_items = raw_meal.get("items")
            if not isinstance(raw_items, list | tuple):
                raw_items = []
            items = dedupe_items(
                normalize_item(raw_item)
                for raw_item in raw_items
                if isinstance(raw_item, Mapping | MenuItem)
            )
            if items:
                meal_type = raw_meal.get("mealType", raw_meal.get("meal_type"))
                meals.append(
                    MenuMeal(
                        meal_type=normalize_whitespace(str(meal_type or "All Day")),
                        items=items,
                    )
                )
        if name and meals:
            locations.append(MenuLocation(location=name, meals=tuple(meals)))
    return tuple(locations)


def count_items(locations: Iterable[MenuLocation]) -> int:
    """Total number of items across locations."""
    return sum(len(meal.items) for location in locations for meal in location.meals)


def _location_as_mapping(location: MenuLocation) -> dict[str, object]:
    return {
        "location": location.location,
        "meals": [
            {"mealType": meal.meal_type, "items": list(meal.items)}
            for meal in location.meals
        ],
    }


def _clean_description(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = normalize_whitespace(value)
    return cleaned or None


def _first_text(record: Mapping[str, object], keys: Iterable[str]) -> str | None:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_number(record: Mapping[str, object], keys: Iterable[str]) -> float | None:
    for key in keys:
        parsed = to_number(record.get(key))
        if parsed is not None:
            return parsed
    return None


def format_amount(value: float) -> str:
    rounded = math.floor(value * 100 + 0.5) / 100
    return f"{rounded:.2f}".rstrip("0").rstrip(".")
