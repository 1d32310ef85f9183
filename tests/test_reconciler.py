"""Tests for per-slot source reconciliation."""

import logging

from dining_fuel.domain.menu import (
    MenuMealSection,
    MenuSnapshot,
    ProviderResponse,
    SlotFailure,
)
from dining_fuel.services.fallback import fallback_menu
from dining_fuel.services.normalizer import count_items
from dining_fuel.services.reconciler import (
    aggregate_error,
    aggregate_source,
    reconcile,
    reconcile_slot,
)
from tests.conftest import MENU_DAY, live_menu


def _section(
    slot: str, source: str | None, error: str | None = None
) -> MenuMealSection:
    return MenuMealSection(
        type=slot, label=slot.title(), locations=(), source=source, error=error
    )


def test_live_json_is_normalized_directly() -> None:
    response = ProviderResponse(
        source="live",
        format="json",
        menu=live_menu("Commons", "Lunch", {"name": " Pho ", "calories": "410"}),
    )

    section = reconcile_slot("lunch", response)

    assert section.source == "live"
    assert section.error is None
    assert section.label == "Lunch"
    item = section.locations[0].meals[0].items[0]
    assert (item.name, item.calories) == ("Pho", 410.0)


def test_html_is_parsed_when_no_structured_menu() -> None:
    response = ProviderResponse(
        source="live",
        html="<h2>Commons</h2><h3>Dinner</h3><ul><li>Ramen 480 cal</li></ul>",
    )

    section = reconcile_slot("dinner", response)

    assert section.source == "live"
    assert section.locations[0].location == "Commons"
    assert section.locations[0].meals[0].items[0].calories == 480.0


def test_slot_keeps_only_matching_meals() -> None:
    response = ProviderResponse(
        source="live",
        menu=[
            {
                "location": "Commons",
                "meals": [
                    {"mealType": "Breakfast", "items": [{"name": "Waffles"}]},
                    {"mealType": "Lunch", "items": [{"name": "Burger"}]},
                ],
            }
        ],
    )

    section = reconcile_slot("lunch", response)

    assert [meal.meal_type for meal in section.locations[0].meals] == ["Lunch"]


def test_slot_keeps_everything_when_no_meal_matches() -> None:
    response = ProviderResponse(
        source="live",
        menu=live_menu("Commons", "Specials", {"name": "Paella"}),
    )

    section = reconcile_slot("dinner", response)

    assert section.locations[0].meals[0].items[0].name == "Paella"


def test_empty_live_data_substitutes_fallback() -> None:
    response = ProviderResponse(source="live", menu=[])

    section = reconcile_slot("dinner", response, fallback=fallback_menu("dinner"))

    assert section.source == "fallback"
    assert count_items(section.locations) == 3
    assert section.error == "No dinner items found in live data. Showing sample menu."


def test_provider_fallback_menu_is_preferred() -> None:
    response = ProviderResponse(
        source="fallback",
        menu=[],
        error="No menu found for jonathan-edwards-college lunch on 2025-03-03.",
        fallback_menu=live_menu("Commons", "Lunch", {"name": "Provider Sample"}),
    )

    section = reconcile_slot("lunch", response, fallback=fallback_menu("lunch"))

    assert section.source == "fallback"
    assert section.locations[0].meals[0].items[0].name == "Provider Sample"
    assert section.error == (
        "No menu found for jonathan-edwards-college lunch on 2025-03-03. "
        "Showing sample menu."
    )


def test_empty_slot_without_fallback_reports_error(caplog) -> None:
    logger = logging.getLogger("dining_fuel.services.reconciler")
    logger.addHandler(caplog.handler)
    try:
        plain = reconcile_slot("breakfast", ProviderResponse(source="live", menu=[]))
        with_reason = reconcile_slot(
            "breakfast", ProviderResponse(source="live", menu=[], error="HTTP 503")
        )
    finally:
        logger.removeHandler(caplog.handler)

    assert plain.source is None
    assert plain.locations == ()
    assert plain.error == "No breakfast items found."
    assert with_reason.error == "No breakfast items found."
    assert "provider_error=HTTP 503" in caplog.text


def test_transport_failure_reports_message() -> None:
    section = reconcile_slot(
        "lunch", SlotFailure("Timed out after 15s"), fallback=fallback_menu("lunch")
    )

    assert section.source is None
    assert section.locations == ()
    assert section.error == "Timed out after 15s"


def test_reconcile_preserves_slot_order() -> None:
    sections = reconcile(
        {
            "breakfast": ProviderResponse(
                source="live", menu=live_menu("JE", "Breakfast", {"name": "Toast"})
            ),
            "lunch": SlotFailure("boom"),
            "dinner": ProviderResponse(source="live", menu=[]),
        },
        fallback_provider=fallback_menu,
    )

    assert [section.type for section in sections] == ["breakfast", "lunch", "dinner"]
    assert [section.source for section in sections] == ["live", None, "fallback"]


def test_aggregate_source() -> None:
    assert aggregate_source([_section("breakfast", "live")]) == "live"
    assert (
        aggregate_source(
            [
                _section("breakfast", "live"),
                _section("lunch", "fallback"),
                _section("dinner", "live"),
            ]
        )
        == "mixed"
    )
    assert aggregate_source([_section("lunch", None, "boom")]) is None


def test_aggregate_error_prefixes_labels() -> None:
    sections = [
        _section("breakfast", None, "Timed out after 15s"),
        _section("lunch", "live"),
        _section("dinner", None, "No dinner items found."),
    ]

    assert aggregate_error(sections) == (
        "Breakfast: Timed out after 15s Dinner: No dinner items found."
    )
    assert aggregate_error([_section("lunch", "live")]) is None


def test_snapshot_status_unavailable_when_nothing_succeeded() -> None:
    sections = (_section("lunch", None, "boom"),)
    snapshot = MenuSnapshot(
        day=MENU_DAY,
        sections=sections,
        source=aggregate_source(sections),
        error=aggregate_error(sections),
    )

    assert snapshot.status == "unavailable"
