"""Heuristic parser that recovers menu structure from dining-hall HTML."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from bs4 import BeautifulSoup, Tag

from dining_fuel.domain.menu import DateContext, MenuItem, MenuLocation, MenuMeal
from dining_fuel.services.extraction import (
    annotation_text,
    extract_item_details,
    has_bullet_separators,
    split_segments,
)
from dining_fuel.services.normalizer import (
    item_key,
    merge_descriptions,
    normalize_item,
    normalize_whitespace,
    upsert_menu_item,
)

DEFAULT_LOCATION_KEYWORDS = (
    "college",
    "hall",
    "dining",
    "commons",
    "grill",
    "kitchen",
    "buttery",
    "library",
)
DEFAULT_MEAL_KEYWORDS = (
    "breakfast",
    "brunch",
    "lunch",
    "dinner",
    "supper",
    "snack",
    "grab",
    "late night",
    "special",
)
DEFAULT_LOCATION = "General"
DEFAULT_MEAL = "All Day"
MAX_MARKER_WORDS = 8
MAX_KEYWORD_PHRASE_WORDS = 3

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_WALKED_TAGS = (*_HEADING_TAGS, "strong", "b", "li", "p")
_TEXT_CONTAINERS = ("li", "p")
_FILLER_WORDS = frozenset(
    {"menu", "menus", "hours", "station", "stations", "items", "specials", "today"}
    | {"the", "and", "at", "s"}
)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParserKeywords:
    """Keyword lists that mark location and meal headings."""

    location_keywords: tuple[str, ...] = DEFAULT_LOCATION_KEYWORDS
    meal_keywords: tuple[str, ...] = DEFAULT_MEAL_KEYWORDS

    @property
    def location_pattern(self) -> re.Pattern[str]:
        return _keyword_pattern(self.location_keywords)

    @property
    def meal_pattern(self) -> re.Pattern[str]:
        return _keyword_pattern(self.meal_keywords)


def build_date_context(day: date) -> DateContext:
    """Render the long and medium US English forms of a date."""
    medium = f"{day:%B} {day.day}, {day.year}"
    return DateContext(day=day, long=f"{day:%A}, {medium}", medium=medium)


def parse_menu_html(
    html: str,
    date_context: DateContext | None = None,
    keywords: ParserKeywords | None = None,
) -> list[MenuLocation]:
    """Parse menu markup into locations, meals and deduplicated items.

    Output is deterministic for identical input: buckets keep insertion
    order while parsing and meals and locations are sorted on the way out.
    """
    resolved_keywords = keywords or ParserKeywords()
    location_pattern = resolved_keywords.location_pattern
    meal_pattern = resolved_keywords.meal_pattern

    soup = BeautifulSoup(html or "", "html.parser")
    for line_break in soup.find_all("br"):
        line_break.replace_with("\n")
    container = _working_container(soup, date_context)

    buckets: dict[str, dict[str, dict[str, MenuItem]]] = {}
    current_location = DEFAULT_LOCATION
    current_meal = DEFAULT_MEAL
    last_key: str | None = None

    for node in container.find_all(_WALKED_TAGS):
        if _nested_in_text_container(node, container):
            continue
        raw_text = node.get_text(" ")
        text = normalize_whitespace(raw_text)
        if not text:
            continue
        is_list_item = node.name == "li"
        is_bulleted = node.name == "p" and has_bullet_separators(raw_text)

        if not is_list_item and not is_bulleted:
            if _is_marker(text, location_pattern):
                current_location = text.strip(" :")
                last_key = None
                continue
        if not is_bulleted:
            meal_match = _meal_marker(
                text, meal_pattern, location_pattern, is_list_item
            )
            if meal_match:
                current_meal = meal_match.title()
                last_key = None
                continue
        if not (is_list_item or is_bulleted):
            continue

        bucket = buckets.setdefault(current_location, {}).setdefault(current_meal, {})
        for segment in split_segments(raw_text):
            note = annotation_text(segment)
            if note is not None:
                if last_key is not None and last_key in bucket:
                    previous = bucket[last_key]
                    bucket[last_key] = MenuItem(
                        name=previous.name,
                        description=merge_descriptions(previous.description, note),
                        calories=previous.calories,
                        nutrition_facts=previous.nutrition_facts,
                    )
                continue
            details = extract_item_details(segment)
            if details is None or _is_keyword_phrase(
                details.name, location_pattern, meal_pattern
            ):
                continue
            item = normalize_item(
                MenuItem(
                    name=details.name,
                    description=details.description,
                    nutrition_facts=details.nutrition_facts,
                ),
                text_calories=details.calories,
            )
            upsert_menu_item(bucket, item)
            last_key = item_key(item.name)

    locations = _build_locations(buckets)
    _logger.debug(
        "Parsed menu HTML: locations=%s items=%s",
        len(locations),
        sum(len(meal.items) for loc in locations for meal in loc.meals),
    )
    return locations


def _working_container(soup: BeautifulSoup, date_context: DateContext | None) -> Tag:
    fallback = soup.body or soup
    if date_context is None:
        return fallback
    needles = (date_context.long.lower(), date_context.medium.lower())
    for heading in soup.find_all(_HEADING_TAGS):
        heading_text = normalize_whitespace(heading.get_text(" ")).lower()
        if not any(needle in heading_text for needle in needles):
            continue
        for ancestor in heading.parents:
            if isinstance(ancestor, Tag) and ancestor.find("li") is not None:
                return ancestor
        return fallback
    return fallback


def _nested_in_text_container(node: Tag, container: Tag) -> bool:
    for parent in node.parents:
        if parent is container:
            return False
        if parent.name in _TEXT_CONTAINERS:
            return True
    return False


def _is_marker(text: str, pattern: re.Pattern[str]) -> bool:
    return len(text.split()) <= MAX_MARKER_WORDS and bool(pattern.search(text))


def _meal_marker(
    text: str,
    meal_pattern: re.Pattern[str],
    location_pattern: re.Pattern[str],
    is_list_item: bool,
) -> str | None:
    if len(text.split()) > MAX_MARKER_WORDS:
        return None
    if is_list_item and not _is_keyword_phrase(text, location_pattern, meal_pattern):
        return None
    match = meal_pattern.search(text)
    if not match:
        return None
    return normalize_whitespace(match.group(0)).lower()


def _is_keyword_phrase(
    name: str, location_pattern: re.Pattern[str], meal_pattern: re.Pattern[str]
) -> bool:
    """Short text made only of marker keywords and filler words."""
    if len(name.split()) > MAX_KEYWORD_PHRASE_WORDS:
        return False
    if not (location_pattern.search(name) or meal_pattern.search(name)):
        return False
    remainder = meal_pattern.sub(" ", location_pattern.sub(" ", name))
    return all(
        word in _FILLER_WORDS for word in re.findall(r"[a-z]+", remainder.lower())
    )


def _build_locations(
    buckets: dict[str, dict[str, dict[str, MenuItem]]],
) -> list[MenuLocation]:
    locations: list[MenuLocation] = []
    for location_name, meals in buckets.items():
        menu_meals = [
            MenuMeal(meal_type=meal_type, items=tuple(items.values()))
            for meal_type, items in meals.items()
            if items
        ]
        if not menu_meals:
            continue
        menu_meals.sort(key=lambda meal: meal.meal_type.lower())
        locations.append(MenuLocation(location=location_name, meals=tuple(menu_meals)))
    locations.sort(key=lambda location: location.location.lower())
    return locations


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern[str]:
    alternatives = sorted(
        (
            re.escape(keyword.strip()).replace(r"\ ", r"\s+")
            for keyword in keywords
            if keyword.strip()
        ),
        key=len,
        reverse=True,
    )
    if not alternatives:
        return re.compile(r"(?!)")
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)
