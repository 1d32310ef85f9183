"""Domain models for plate building and meal logging."""

from dataclasses import dataclass
from datetime import datetime

from dining_fuel.domain.menu import MenuItem, NutritionFact


@dataclass(frozen=True)
class PlateItem:
    """Menu item staged on the in-progress plate."""

    id: str
    meal_type: str
    location: str
    item: MenuItem
    base_calories: float
    base_protein_g: float
    portion: float


@dataclass(frozen=True)
class PlateSummary:
    """Aggregate totals derived from plate items."""

    total_calories: int
    total_protein: float
    dominant_meal_type: str | None
    notes: str
    nutrition_facts: tuple[NutritionFact, ...]


@dataclass(frozen=True)
class MealLogDraft:
    """Meal log ready to be committed by the persistence layer."""

    meal_type: str
    calories: int
    protein_g: float
    notes: str
    date_time: datetime
    nutrition_facts: tuple[NutritionFact, ...]


@dataclass(frozen=True)
class MealLog:
    """Persisted meal log entry."""

    id: str
    athlete_id: str
    meal_type: str
    calories: int
    protein_g: float
    notes: str
    date_time: datetime
    nutrition_facts: tuple[NutritionFact, ...]
    completed: bool
