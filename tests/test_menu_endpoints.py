"""Tests for menu endpoints."""

from fastapi.testclient import TestClient

from dining_fuel.api.app import create_app
from tests.conftest import FakeMenuProvider


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_menu_endpoint_returns_sections(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/menu", params={"date": "2025-03-03"})

    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2025-03-03"
    assert data["status"] == "live"
    assert data["error"] is None
    assert [section["type"] for section in data["sections"]] == [
        "breakfast",
        "lunch",
        "dinner",
    ]
    lunch = data["sections"][1]
    assert lunch["label"] == "Lunch"
    assert lunch["source"] == "live"
    chicken = lunch["locations"][0]["meals"][0]["items"][0]
    assert chicken["name"] == "Grilled Chicken"
    assert chicken["calories"] == 300
    assert chicken["featuredFacts"][0]["name"] == "Protein"
    assert chicken["featuredFacts"][0]["value"] == "30g"


def test_menu_endpoint_rejects_bad_date(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/menu", params={"date": "not-a-date"})

    assert response.status_code == 422


def test_menu_search_endpoint(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(
        "/menu/search", params={"date": "2025-03-03", "q": "CHICKEN"}
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert [result["item"]["name"] for result in results] == [
        "Lemon Chicken",
        "Chicken Caesar Salad",
        "Grilled Chicken",
    ]
    assert results[0]["locationKey"] == "jonathan edwards college"
    assert results[0]["sectionLabel"] == "Dinner"


def test_menu_search_endpoint_blank_query(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/menu/search", params={"date": "2025-03-03"})

    assert response.json()["results"] == []


def test_menu_reconcile_endpoint_uses_payloads(
    container, menu_provider: FakeMenuProvider
) -> None:
    client = TestClient(create_app(container))
    payload = {
        "date": "2025-03-03",
        "slots": {
            "lunch": {
                "source": "live",
                "format": "html",
                "html": "<h3>Lunch</h3><ul><li>Falafel Wrap 400 cal</li></ul>",
            },
            "dinner": {
                "source": "fallback",
                "menu": [],
                "error": "No menu found.",
                "fallbackMenu": [
                    {
                        "location": "Commons",
                        "meals": [{"mealType": "Dinner", "items": [{"name": "Stew"}]}],
                    }
                ],
            },
        },
    }

    response = client.post("/menu/reconcile", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "mixed"
    assert data["error"] == "Dinner: No menu found. Showing sample menu."
    lunch, dinner = data["sections"]
    assert lunch["locations"][0]["location"] == "General"
    assert lunch["locations"][0]["meals"][0]["items"][0]["calories"] == 400
    assert dinner["source"] == "fallback"
    assert menu_provider.calls == []
