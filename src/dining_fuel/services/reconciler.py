"""Per-slot reconciliation of live, parsed and fallback menu sources."""

import logging
from collections.abc import Callable, Iterable, Mapping

from dining_fuel.domain.menu import (
    DateContext,
    MenuLocation,
    MenuMealSection,
    ProviderResponse,
    SlotFailure,
)
from dining_fuel.services.html_parser import ParserKeywords, parse_menu_html
from dining_fuel.services.normalizer import (
    count_items,
    normalize_locations,
    normalize_meal_type,
)

DEFAULT_SLOTS = ("breakfast", "lunch", "dinner")
SOURCE_LIVE = "live"
SOURCE_FALLBACK = "fallback"
SOURCE_MIXED = "mixed"

_logger = logging.getLogger(__name__)

FallbackProvider = Callable[[str], Iterable[MenuLocation]]


def slot_label(slot: str) -> str:
    """Human-readable label for a slot key."""
    return slot.replace("_", " ").replace("-", " ").title()


def reconcile_slot(
    slot: str,
    response: ProviderResponse | SlotFailure,
    date_context: DateContext | None = None,
    keywords: ParserKeywords | None = None,
    fallback: Iterable[MenuLocation] | None = None,
) -> MenuMealSection:
    """Turn one slot's provider response into a normalized section."""
    label = slot_label(slot)
    if isinstance(response, SlotFailure):
        return MenuMealSection(
            type=slot, label=label, locations=(), source=None, error=response.message
        )

    source = SOURCE_FALLBACK if response.source == SOURCE_FALLBACK else SOURCE_LIVE
    locations: tuple[MenuLocation, ...] = ()
    if response.menu:
        locations = _for_slot(normalize_locations(response.menu), slot)
    if not count_items(locations) and response.html:
        parsed = parse_menu_html(response.html, date_context, keywords)
        locations = _for_slot(normalize_locations(parsed), slot)

    if count_items(locations):
        return MenuMealSection(
            type=slot,
            label=label,
            locations=locations,
            source=source,
            error=response.error if source == SOURCE_FALLBACK else None,
        )

    sample: tuple[MenuLocation, ...] = ()
    if response.fallback_menu:
        sample = normalize_locations(response.fallback_menu)
    elif fallback is not None:
        sample = normalize_locations(fallback)
    if count_items(sample):
        reason = response.error or f"No {slot} items found in live data."
        _logger.info("Using fallback menu: slot=%s reason=%s", slot, reason)
        return MenuMealSection(
            type=slot,
            label=label,
            locations=sample,
            source=SOURCE_FALLBACK,
            error=f"{reason} Showing sample menu.",
        )

    if response.error:
        _logger.warning(
            "Empty menu slot: slot=%s provider_error=%s", slot, response.error
        )
    return MenuMealSection(
        type=slot,
        label=label,
        locations=(),
        source=None,
        error=f"No {slot} items found.",
    )


def reconcile(
    responses: Mapping[str, ProviderResponse | SlotFailure],
    date_context: DateContext | None = None,
    keywords: ParserKeywords | None = None,
    fallback_provider: FallbackProvider | None = None,
) -> list[MenuMealSection]:
    """Reconcile every slot independently, preserving slot order."""
    sections: list[MenuMealSection] = []
    for slot, response in responses.items():
        fallback = fallback_provider(slot) if fallback_provider else None
        sections.append(
            reconcile_slot(slot, response, date_context, keywords, fallback)
        )
    return sections


def aggregate_source(sections: Iterable[MenuMealSection]) -> str | None:
    """Shared source of the successful slots, `mixed` on disagreement."""
    sources = {section.source for section in sections if section.source}
    if not sources:
        return None
    if len(sources) == 1:
        return next(iter(sources))
    return SOURCE_MIXED


def aggregate_error(sections: Iterable[MenuMealSection]) -> str | None:
    """Join per-slot errors, each prefixed with its slot label."""
    messages = [
        f"{section.label}: {section.error}" for section in sections if section.error
    ]
    return " ".join(messages) or None


def _for_slot(
    locations: tuple[MenuLocation, ...], slot: str
) -> tuple[MenuLocation, ...]:
    """Keep meals matching the slot; keep everything when none match."""
    filtered: list[MenuLocation] = []
    for location in locations:
        meals = tuple(
            meal
            for meal in location.meals
            if normalize_meal_type(meal.meal_type) == slot
        )
        if meals:
            filtered.append(MenuLocation(location=location.location, meals=meals))
    return tuple(filtered) if filtered else locations
