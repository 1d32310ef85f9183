"""Tests for the menu service."""

import asyncio
from datetime import UTC, datetime, timedelta

import httpx

from dining_fuel.adapters.nutrislice_client import HttpxNutrisliceClient
from dining_fuel.domain.menu import ProviderResponse
from dining_fuel.services.cache import InMemoryCache
from dining_fuel.services.menus import MenuService
from tests.conftest import MENU_DAY, FakeMenuProvider


def test_get_menu_reconciles_all_slots(menu_provider: FakeMenuProvider) -> None:
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    assert [section.type for section in snapshot.sections] == [
        "breakfast",
        "lunch",
        "dinner",
    ]
    assert snapshot.source == "live"
    assert snapshot.status == "live"
    assert snapshot.error is None
    assert sorted(slot for slot, _ in menu_provider.calls) == [
        "breakfast",
        "dinner",
        "lunch",
    ]


def test_get_menu_caches_live_snapshots(menu_provider: FakeMenuProvider) -> None:
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    first = asyncio.run(service.get_menu(MENU_DAY))
    second = asyncio.run(service.get_menu(MENU_DAY))

    assert first is second
    assert len(menu_provider.calls) == 3


def test_cached_menu_expires_after_ttl(menu_provider: FakeMenuProvider) -> None:
    now = datetime(2025, 3, 3, 12, 0, tzinfo=UTC)
    clock_value = {"now": now}
    cache = InMemoryCache(clock=lambda: clock_value["now"])
    service = MenuService(provider=menu_provider, cache=cache, ttl_seconds=60)

    asyncio.run(service.get_menu(MENU_DAY))
    clock_value["now"] = now + timedelta(seconds=61)
    asyncio.run(service.get_menu(MENU_DAY))

    assert len(menu_provider.calls) == 6


def test_slow_slot_times_out_without_blocking_others(
    menu_provider: FakeMenuProvider,
) -> None:
    menu_provider.delays["dinner"] = 0.5
    service = MenuService(
        provider=menu_provider, cache=InMemoryCache(), timeout_seconds=0.05
    )

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    dinner = snapshot.sections[2]
    assert dinner.source is None
    assert dinner.locations == ()
    assert dinner.error == "Timed out after 0.05s"
    assert snapshot.sections[0].source == "live"
    assert snapshot.sections[1].source == "live"
    assert snapshot.source == "live"
    assert snapshot.error == "Dinner: Timed out after 0.05s"


def test_transport_error_is_isolated_and_not_cached(
    menu_provider: FakeMenuProvider,
) -> None:
    menu_provider.responses["lunch"] = httpx.ConnectError("connection refused")
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    snapshot = asyncio.run(service.get_menu(MENU_DAY))
    asyncio.run(service.get_menu(MENU_DAY))

    lunch = snapshot.sections[1]
    assert lunch.source is None
    assert lunch.error == "connection refused"
    assert snapshot.error == "Lunch: connection refused"
    assert len(menu_provider.calls) == 6


def test_empty_slot_uses_sample_menu(menu_provider: FakeMenuProvider) -> None:
    menu_provider.responses["breakfast"] = ProviderResponse(source="live", menu=[])
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    breakfast = snapshot.sections[0]
    assert breakfast.source == "fallback"
    assert breakfast.locations[0].location == "Jonathan Edwards College"
    assert snapshot.source == "mixed"


def test_fallback_can_be_disabled(menu_provider: FakeMenuProvider) -> None:
    menu_provider.responses["breakfast"] = ProviderResponse(source="live", menu=[])
    service = MenuService(
        provider=menu_provider, cache=InMemoryCache(), fallback_enabled=False
    )

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    assert snapshot.sections[0].source is None
    assert snapshot.sections[0].error == "No breakfast items found."
    assert snapshot.source == "live"


def test_all_slots_failing_is_unavailable() -> None:
    provider = FakeMenuProvider(
        responses={
            slot: httpx.ConnectError("offline")
            for slot in ("breakfast", "lunch", "dinner")
        }
    )
    service = MenuService(provider=provider, cache=InMemoryCache())

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    assert snapshot.source is None
    assert snapshot.status == "unavailable"


def test_search_groups_aliases(menu_provider: FakeMenuProvider) -> None:
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    results = asyncio.run(service.search(MENU_DAY, "chicken"))

    assert [result.item.name for result in results] == [
        "Lemon Chicken",
        "Chicken Caesar Salad",
        "Grilled Chicken",
    ]
    assert {result.location for result in results} == {"Jonathan Edwards College"}


def test_blank_search_skips_fetch(menu_provider: FakeMenuProvider) -> None:
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    assert asyncio.run(service.search(MENU_DAY, "   ")) == []
    assert menu_provider.calls == []


def test_malformed_slot_payload_does_not_block_other_slots() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        slot = request.url.path.split("/menu-type/")[1].split("/")[0]
        if slot == "dinner":
            return httpx.Response(
                200, json={"days": [{"date": "2025-03-03", "menu_items": 5}]}
            )
        food = {"name": f"{slot.title()} Special", "calories": 400}
        return httpx.Response(
            200,
            json={"days": [{"date": "2025-03-03", "menu_items": [{"food": food}]}]},
        )

    provider = HttpxNutrisliceClient(
        base_url="https://dining.example.com/menu/api",
        school_slug="jonathan-edwards-college",
        location="Jonathan Edwards College",
        origin="https://dining.example.com",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    service = MenuService(
        provider=provider, cache=InMemoryCache(), fallback_enabled=False
    )

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    breakfast, lunch, dinner = snapshot.sections
    assert breakfast.locations[0].meals[0].items[0].name == "Breakfast Special"
    assert lunch.source == "live"
    assert dinner.source is None
    assert dinner.error == "No dinner items found."
    assert snapshot.status == "live"


def test_payload_mapping_error_is_isolated(menu_provider: FakeMenuProvider) -> None:
    menu_provider.responses["dinner"] = TypeError("'int' object is not iterable")
    service = MenuService(provider=menu_provider, cache=InMemoryCache())

    snapshot = asyncio.run(service.get_menu(MENU_DAY))

    assert [section.source for section in snapshot.sections] == [
        "live",
        "live",
        None,
    ]
    assert snapshot.sections[2].error == "'int' object is not iterable"
