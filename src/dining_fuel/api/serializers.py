"""JSON payload builders for API responses (camelCase keys)."""

from dining_fuel.domain.menu import (
    MenuItem,
    MenuLocation,
    MenuMealSection,
    MenuSearchResult,
    MenuSnapshot,
    NutritionFact,
)
from dining_fuel.domain.plate import MealLog, MealLogDraft, PlateItem, PlateSummary
from dining_fuel.services.normalizer import (
    featured_nutrition_facts,
    format_nutrition_fact_value,
)
from dining_fuel.services.plate import round2, round_half_up


def fact_payload(fact: NutritionFact) -> dict[str, object]:
    return {
        "name": fact.name,
        "amount": fact.amount,
        "unit": fact.unit,
        "percentDailyValue": fact.percent_daily_value,
        "display": fact.display,
        "value": format_nutrition_fact_value(fact),
    }


def item_payload(item: MenuItem) -> dict[str, object]:
    return {
        "name": item.name,
        "description": item.description,
        "calories": item.calories,
        "nutritionFacts": [fact_payload(fact) for fact in item.nutrition_facts],
        "featuredFacts": [
            fact_payload(fact)
            for fact in featured_nutrition_facts(item.nutrition_facts)
        ],
    }


def location_payload(location: MenuLocation) -> dict[str, object]:
    return {
        "location": location.location,
        "meals": [
            {
                "mealType": meal.meal_type,
                "items": [item_payload(item) for item in meal.items],
            }
            for meal in location.meals
        ],
    }


def section_payload(section: MenuMealSection) -> dict[str, object]:
    return {
        "type": section.type,
        "label": section.label,
        "source": section.source,
        "error": section.error,
        "locations": [location_payload(location) for location in section.locations],
    }


def snapshot_payload(snapshot: MenuSnapshot) -> dict[str, object]:
    """Full reconciled menu for a date."""
    return {
        "date": snapshot.day.isoformat(),
        "status": snapshot.status,
        "source": snapshot.source,
        "error": snapshot.error,
        "sections": [section_payload(section) for section in snapshot.sections],
    }


def search_result_payload(result: MenuSearchResult) -> dict[str, object]:
    return {
        "location": result.location,
        "locationKey": result.location_key,
        "mealType": result.meal_type,
        "sectionType": result.section_type,
        "sectionLabel": result.section_label,
        "item": item_payload(result.item),
    }


def plate_item_payload(plate_item: PlateItem) -> dict[str, object]:
    return {
        "id": plate_item.id,
        "mealType": plate_item.meal_type,
        "location": plate_item.location,
        "portion": plate_item.portion,
        "baseCalories": plate_item.base_calories,
        "baseProteinG": plate_item.base_protein_g,
        "calories": round_half_up(plate_item.base_calories * plate_item.portion),
        "proteinG": round2(plate_item.base_protein_g * plate_item.portion),
        "item": item_payload(plate_item.item),
    }


def summary_payload(summary: PlateSummary) -> dict[str, object]:
    return {
        "totalCalories": summary.total_calories,
        "totalProtein": summary.total_protein,
        "dominantMealType": summary.dominant_meal_type,
        "notes": summary.notes,
        "nutritionFacts": [fact_payload(fact) for fact in summary.nutrition_facts],
    }


def plate_payload(
    plate_items: list[PlateItem], summary: PlateSummary
) -> dict[str, object]:
    """Staged items plus their summary."""
    return {
        "items": [plate_item_payload(plate_item) for plate_item in plate_items],
        "summary": summary_payload(summary),
    }


def draft_payload(draft: MealLogDraft) -> dict[str, object]:
    return {
        "mealType": draft.meal_type,
        "calories": draft.calories,
        "proteinG": draft.protein_g,
        "notes": draft.notes,
        "dateTime": draft.date_time.isoformat(),
        "nutritionFacts": [fact_payload(fact) for fact in draft.nutrition_facts],
    }


def meal_log_payload(meal_log: MealLog) -> dict[str, object]:
    return {
        "id": meal_log.id,
        "athleteId": meal_log.athlete_id,
        "mealType": meal_log.meal_type,
        "calories": meal_log.calories,
        "proteinG": meal_log.protein_g,
        "notes": meal_log.notes,
        "dateTime": meal_log.date_time.isoformat(),
        "nutritionFacts": [fact_payload(fact) for fact in meal_log.nutrition_facts],
        "completed": meal_log.completed,
    }
