"""Text rules for recovering dish details from free-form menu markup.

Each rule is a pure function over the working text. ``extract_item_details``
composes them in a fixed order: calories, macros, trailing parenthetical,
then the dash/colon split. Names that legitimately contain hyphens, such as
"Stir-Fry", survive because the split only fires on spaced dashes or colons.
"""

import re
from dataclasses import dataclass

from dining_fuel.domain.menu import NutritionFact
from dining_fuel.services.normalizer import (
    DESCRIPTION_SEPARATOR,
    format_amount,
    normalize_whitespace,
)

BULLET_GLYPHS = "•·●▪◦‣|;"
_SEGMENT_SPLIT = re.compile(rf"\s*[{re.escape(BULLET_GLYPHS)}]\s*")
_BULLET_PREFIX = re.compile(r"^\s*(?:[-–—*]+|\d{1,2}[.)])\s+")
_DASH_BULLET_LINE = re.compile(r"(?:^|\n)\s*[-–—*]\s+\S")

_CALORIE_TRAILING = re.compile(
    r"(?<![\d.])(\d{2,4})\s*(?:kcals?|cals?|calories)\b\.?", re.IGNORECASE
)
_CALORIE_LEADING = re.compile(
    r"\b(?:calories|kcals?|cals?)\s*[:=]?\s*(\d{2,4})(?![\d.])", re.IGNORECASE
)

_MACRO_LABELS = (
    ("Protein", ("protein", "prot", "pro")),
    ("Carbs", ("carbohydrates", "carbohydrate", "carbs", "carb", "cho")),
    ("Fat", ("fats", "fat")),
    ("Fiber", ("fiber", "fibre")),
    ("Sugar", ("sugars", "sugar")),
)
_MACRO_ALIASES = {
    alias: label for label, aliases in _MACRO_LABELS for alias in aliases
}
_MACRO_PATTERN = re.compile(
    r"(?<![\d.])(\d{1,3}(?:\.\d+)?)\s*g\s*(?:of\s+)?("
    + "|".join(sorted(_MACRO_ALIASES, key=len, reverse=True))
    + r")\b\.?",
    re.IGNORECASE,
)

_TRAILING_PARENTHETICAL = re.compile(r"\s*\(([^()]*)\)\s*$")
_NAME_PROSE_SPLIT = re.compile(r"^(?P<name>.+?)(?::\s+|\s+[-–—]+\s+)(?P<prose>.+)$")
MAX_SHORT_NAME_WORDS = 6

_SKIP_PATTERN = re.compile(
    r"^(?:calories?|kcals?|nutrition(?:al)? facts?|allergens?)$", re.IGNORECASE
)
_EDGE_PUNCTUATION = " \t-–—:;,.*•|/"
_CONTAINS_PREFIX = re.compile(r"contains\b")


@dataclass(frozen=True)
class CalorieStrip:
    """Result of removing a calorie annotation."""

    text: str
    calories: float | None
    residual: str | None = None


@dataclass(frozen=True)
class MacroStrip:
    """Result of removing macro annotations."""

    text: str
    facts: tuple[NutritionFact, ...]
    summary: str | None


@dataclass(frozen=True)
class ItemDetails:
    """Dish fields recovered from one text segment."""

    name: str
    description: str | None
    calories: float | None
    nutrition_facts: tuple[NutritionFact, ...]


def has_bullet_separators(text: str) -> bool:
    """Whether paragraph text looks like a list of several entries."""
    if any(glyph in text for glyph in BULLET_GLYPHS):
        return True
    return len(_DASH_BULLET_LINE.findall(text)) > 1


def split_segments(text: str) -> list[str]:
    """Split candidate text into individual entry segments."""
    segments: list[str] = []
    for line in text.splitlines():
        for part in _SEGMENT_SPLIT.split(line):
            cleaned = normalize_whitespace(_BULLET_PREFIX.sub("", part))
            if cleaned:
                segments.append(cleaned)
    return segments


def strip_calories(text: str) -> CalorieStrip:
    """Remove the first calorie annotation and return its value."""
    match = _CALORIE_TRAILING.search(text)
    if match:
        before = clean_fragment(text[: match.start()])
        after = clean_fragment(text[match.end() :])
        if before and after:
            return CalorieStrip(before, float(match.group(1)), residual=after)
        return CalorieStrip(before or after, float(match.group(1)))
    match = _CALORIE_LEADING.search(text)
    if match:
        remaining = text[: match.start()] + " " + text[match.end() :]
        return CalorieStrip(normalize_whitespace(remaining), float(match.group(1)))
    return CalorieStrip(text, None)


def strip_macros(text: str) -> MacroStrip:
    """Remove gram macro annotations, summarizing them as facts and text."""
    found: dict[str, float] = {}
    for match in _MACRO_PATTERN.finditer(text):
        label = _MACRO_ALIASES[match.group(2).lower()]
        found.setdefault(label, float(match.group(1)))
    if not found:
        return MacroStrip(text, (), None)
    remaining = normalize_whitespace(_MACRO_PATTERN.sub(" ", text))
    facts = tuple(
        NutritionFact(
            name=label,
            amount=amount,
            unit="g",
            display=f"{format_amount(amount)} g",
        )
        for label, amount in found.items()
    )
    return MacroStrip(remaining, facts, summarize_macros(facts))


def merge_macro_facts(
    *groups: tuple[NutritionFact, ...],
) -> tuple[NutritionFact, ...]:
    """Combine macro facts; the first amount seen for a label wins."""
    merged: dict[str, NutritionFact] = {}
    for facts in groups:
        for fact in facts:
            merged.setdefault(fact.name, fact)
    return tuple(merged.values())


def summarize_macros(facts: tuple[NutritionFact, ...]) -> str | None:
    """Render macro facts as "Protein 30g / Fat 12g"."""
    if not facts:
        return None
    return " / ".join(
        f"{fact.name} {format_amount(fact.amount or 0)}g" for fact in facts
    )


def strip_parenthetical(text: str) -> tuple[str, str | None]:
    """Move a trailing parenthetical into the description."""
    match = _TRAILING_PARENTHETICAL.search(text)
    if not match:
        return text, None
    contents = clean_fragment(match.group(1))
    return text[: match.start()], contents or None


def split_name_prose(text: str) -> tuple[str, str | None]:
    """Split "Short Name - trailing prose" into name and description."""
    match = _NAME_PROSE_SPLIT.match(text)
    if not match:
        return text, None
    name = clean_fragment(match.group("name"))
    prose = clean_fragment(match.group("prose"))
    if not name or not prose or len(name.split()) > MAX_SHORT_NAME_WORDS:
        return text, None
    return name, prose


def clean_fragment(text: str) -> str:
    """Collapse whitespace and trim separator punctuation from both ends."""
    return normalize_whitespace(text).strip(_EDGE_PUNCTUATION).strip()


def is_skip_label(text: str) -> bool:
    """Bare nutrition/allergen labels that never name a dish."""
    return bool(_SKIP_PATTERN.match(clean_fragment(text)))


def annotation_text(text: str) -> str | None:
    """Return allergen or "contains" notes that annotate the previous dish.

    Only the text ahead of a trailing parenthetical decides, so
    "Peanut Noodles (allergens: peanuts)" is still a dish.
    """
    cleaned = clean_fragment(text)
    head, _ = strip_parenthetical(cleaned)
    lower = (clean_fragment(head) or cleaned).lower()
    if _CONTAINS_PREFIX.match(lower) or "allergen" in lower:
        if _SKIP_PATTERN.match(cleaned):
            return None
        return cleaned
    return None


def extract_item_details(segment: str) -> ItemDetails | None:
    """Recover a dish from one segment, or None when nothing usable remains."""
    working = clean_fragment(segment)
    if not working or is_skip_label(working) or annotation_text(working):
        return None

    descriptions: list[str] = []
    calorie_strip = strip_calories(working)
    # Macros may sit on either side of the calorie token.
    macro_strip = strip_macros(calorie_strip.text)
    working = macro_strip.text
    residual_strip = strip_macros(calorie_strip.residual or "")
    residual = clean_fragment(residual_strip.text)
    if residual:
        descriptions.append(residual)
    facts = merge_macro_facts(macro_strip.facts, residual_strip.facts)
    summary = summarize_macros(facts)

    working, parenthetical = strip_parenthetical(working)
    if parenthetical:
        descriptions.insert(0, parenthetical)

    name, prose = split_name_prose(clean_fragment(working))
    if prose:
        descriptions.insert(0, prose)
    if summary:
        descriptions.append(summary)

    name = clean_fragment(name)
    if not name or is_skip_label(name):
        return None
    return ItemDetails(
        name=name,
        description=DESCRIPTION_SEPARATOR.join(descriptions) or None,
        calories=calorie_strip.calories,
        nutrition_facts=facts,
    )
