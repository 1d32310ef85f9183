"""Supabase repository for athlete meal logs."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from dining_fuel.domain.menu import NutritionFact
from dining_fuel.domain.plate import MealLog, MealLogDraft
from dining_fuel.services.meal_logs import MealLogRepository

_COLUMNS = (
    "id, athlete_id, meal_type, calories, protein_g, notes, logged_at, "
    "nutrition_facts, completed"
)


@dataclass
class SupabaseMealLogRepository(MealLogRepository):
    """Supabase implementation for meal logs."""

    client: Client

    def create_meal_log(self, athlete_id: str, draft: MealLogDraft) -> MealLog:
        """Insert a completed meal log row and return it."""
        response = (
            self.client.table("meal_logs")
            .insert(
                {
                    "athlete_id": athlete_id,
                    "meal_type": draft.meal_type,
                    "calories": draft.calories,
                    "protein_g": draft.protein_g,
                    "notes": draft.notes,
                    "logged_at": draft.date_time.isoformat(),
                    "nutrition_facts": [
                        _fact_payload(fact) for fact in draft.nutrition_facts
                    ],
                    "completed": True,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal log")
        return _parse_row(response.data[0])

    def list_meal_logs(self, athlete_id: str, limit: int) -> list[MealLog]:
        """Return the most recent meal logs for an athlete."""
        response = (
            self.client.table("meal_logs")
            .select(_COLUMNS)
            .eq("athlete_id", athlete_id)
            .order("logged_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _fact_payload(fact: NutritionFact) -> dict[str, object]:
    return {
        "name": fact.name,
        "amount": fact.amount,
        "unit": fact.unit,
        "percentDailyValue": fact.percent_daily_value,
        "display": fact.display,
    }


def _parse_fact(raw: dict[str, object]) -> NutritionFact:
    amount = raw.get("amount")
    percent = raw.get("percentDailyValue")
    return NutritionFact(
        name=str(raw.get("name", "")),
        amount=float(amount) if amount is not None else None,
        unit=raw.get("unit"),
        percent_daily_value=float(percent) if percent is not None else None,
        display=raw.get("display"),
    )


def _parse_row(row: dict[str, object]) -> MealLog:
    return MealLog(
        id=str(row["id"]),
        athlete_id=str(row["athlete_id"]),
        meal_type=str(row.get("meal_type", "")),
        calories=int(row.get("calories") or 0),
        protein_g=float(row.get("protein_g") or 0.0),
        notes=str(row.get("notes") or ""),
        date_time=datetime.fromisoformat(str(row["logged_at"])),
        nutrition_facts=tuple(
            _parse_fact(fact) for fact in row.get("nutrition_facts") or []
        ),
        completed=bool(row.get("completed", True)),
    )
