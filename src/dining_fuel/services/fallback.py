"""Static sample menus served when live data cannot be used."""

from dining_fuel.domain.menu import MenuLocation
from dining_fuel.services.normalizer import normalize_locations

DEFAULT_FALLBACK_LOCATION = "Jonathan Edwards College"

_SAMPLE_ITEMS: dict[str, list[dict[str, object]]] = {
    "breakfast": [
        {
            "name": "Scrambled Eggs",
            "calories": 180,
            "nutritionFacts": [
                {"name": "Calories", "amount": 180, "unit": "kcal"},
                {"name": "Protein", "amount": 12, "unit": "g"},
            ],
        },
        {
            "name": "Steel Cut Oatmeal",
            "description": "Brown sugar and raisins on the side",
            "calories": 150,
            "nutritionFacts": [{"name": "Protein", "amount": 5, "unit": "g"}],
        },
        {
            "name": "Yogurt Parfait",
            "calories": 220,
            "nutritionFacts": [{"name": "Protein", "amount": 9, "unit": "g"}],
        },
    ],
    "lunch": [
        {
            "name": "Grilled Chicken Breast",
            "calories": 230,
            "nutritionFacts": [
                {"name": "Protein", "amount": 43, "unit": "g"},
                {"name": "Total Fat", "amount": 5, "unit": "g"},
            ],
        },
        {
            "name": "Brown Rice",
            "calories": 215,
            "nutritionFacts": [{"name": "Protein", "amount": 5, "unit": "g"}],
        },
        {
            "name": "Garden Salad",
            "description": "Mixed greens, cucumber, tomato",
            "calories": 60,
            "nutritionFacts": [{"name": "Protein", "amount": 2, "unit": "g"}],
        },
    ],
    "dinner": [
        {
            "name": "Baked Salmon",
            "calories": 350,
            "nutritionFacts": [{"name": "Protein", "amount": 34, "unit": "g"}],
        },
        {
            "name": "Roasted Sweet Potatoes",
            "calories": 180,
            "nutritionFacts": [{"name": "Protein", "amount": 3, "unit": "g"}],
        },
        {
            "name": "Steamed Broccoli",
            "calories": 55,
            "nutritionFacts": [{"name": "Protein", "amount": 4, "unit": "g"}],
        },
    ],
}


def fallback_menu(
    slot: str, location: str = DEFAULT_FALLBACK_LOCATION
) -> list[MenuLocation]:
    """Return the sample menu for a slot, or an empty list for unknown slots."""
    items = _SAMPLE_ITEMS.get(slot.lower())
    if not items:
        return []
    return list(
        normalize_locations(
            [
                {
                    "location": location,
                    "meals": [{"mealType": slot.title(), "items": items}],
                }
            ]
        )
    )
