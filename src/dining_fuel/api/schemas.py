"""Pydantic request models for the dining API."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from dining_fuel.domain.menu import MenuItem, NutritionFact


class NutritionFactPayload(BaseModel):
    """Nutrition fact as sent by clients."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    amount: float | None = None
    unit: str | None = None
    percent_daily_value: float | None = Field(default=None, alias="percentDailyValue")
    display: str | None = None

    def to_domain(self) -> NutritionFact:
        return NutritionFact(
            name=self.name,
            amount=self.amount,
            unit=self.unit,
            percent_daily_value=self.percent_daily_value,
            display=self.display,
        )


class MenuItemPayload(BaseModel):
    """Menu item as returned by the menu endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    description: str | None = None
    calories: float | None = None
    nutrition_facts: list[NutritionFactPayload] = Field(
        default_factory=list, alias="nutritionFacts"
    )

    def to_domain(self) -> MenuItem:
        return MenuItem(
            name=self.name,
            description=self.description,
            calories=self.calories,
            nutrition_facts=tuple(fact.to_domain() for fact in self.nutrition_facts),
        )


class AddPlateItemRequest(BaseModel):
    """Stage a menu item on the plate."""

    model_config = ConfigDict(populate_by_name=True)

    item: MenuItemPayload
    meal_type: str = Field(alias="mealType")
    location: str
    portion: float = 1


class CheckoutRequest(BaseModel):
    """Check out selected plate items, optionally committing them."""

    model_config = ConfigDict(populate_by_name=True)

    ids: list[str]
    athlete_id: str | None = Field(default=None, alias="athleteId")
    date_time: datetime | None = Field(default=None, alias="dateTime")


class ReconcileRequest(BaseModel):
    """Already-fetched provider payloads keyed by slot."""

    model_config = ConfigDict(populate_by_name=True)

    day: date = Field(alias="date")
    slots: dict[str, dict[str, object]]
