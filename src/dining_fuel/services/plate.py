"""Plate building: portion-scaled totals and checkout into meal log drafts."""

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from dining_fuel.domain.menu import MenuItem, NutritionFact
from dining_fuel.domain.plate import MealLogDraft, PlateItem, PlateSummary
from dining_fuel.services.normalizer import (
    format_amount,
    normalize_fact_name,
    normalize_meal_type,
    resolve_calories,
    resolve_protein,
)

NOTES_SEPARATOR = "; "


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class PlateError(ValueError):
    """Raised for invalid plate operations."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    """Round to two decimal places with halves rounded up."""
    return math.floor(value * 100 + 0.5) / 100


def create_plate_item(
    item: MenuItem, meal_type: str, location: str, portion: float = 1
) -> PlateItem:
    """Stage a menu item, capturing base calories and protein at add time."""
    if not math.isfinite(portion) or portion <= 0:
        raise PlateError(f"Portion must be a positive number, got {portion}")
    calories = resolve_calories(item)
    protein = resolve_protein(item)
    return PlateItem(
        id=uuid4().hex,
        meal_type=normalize_meal_type(meal_type),
        location=location,
        item=item,
        base_calories=calories if calories is not None else 0.0,
        base_protein_g=protein if protein is not None else 0.0,
        portion=portion,
    )


def summarize(plate_items: Iterable[PlateItem]) -> PlateSummary:
    """Compute plate totals; a pure function of the items."""
    items = list(plate_items)
    total_calories = sum(entry.base_calories * entry.portion for entry in items)
    total_protein = sum(entry.base_protein_g * entry.portion for entry in items)
    return PlateSummary(
        total_calories=round_half_up(total_calories),
        total_protein=round2(total_protein),
        dominant_meal_type=_dominant_meal_type(items),
        notes=NOTES_SEPARATOR.join(_note(entry) for entry in items),
        nutrition_facts=_scaled_facts(items),
    )


def build_checkout_draft(
    plate_items: Iterable[PlateItem],
    ids: Iterable[str],
    date_time: datetime,
) -> MealLogDraft:
    """Draft a meal log from exactly the selected plate items."""
    selected_ids = set(ids)
    selected = [entry for entry in plate_items if entry.id in selected_ids]
    if not selected:
        raise PlateError("No plate items selected for checkout")
    summary = summarize(selected)
    return MealLogDraft(
        meal_type=summary.dominant_meal_type or selected[0].meal_type,
        calories=summary.total_calories,
        protein_g=summary.total_protein,
        notes=summary.notes,
        date_time=date_time,
        nutrition_facts=summary.nutrition_facts,
    )


@dataclass
class Plate:
    """In-progress selection for a single interactive session."""

    clock: Callable[[], datetime] = _utc_now
    _items: dict[str, PlateItem] = field(default_factory=dict)

    @property
    def items(self) -> list[PlateItem]:
        """Staged items in insertion order."""
        return list(self._items.values())

    def add(
        self, item: MenuItem, meal_type: str, location: str, portion: float = 1
    ) -> PlateItem:
        """Add a menu item to the plate."""
        plate_item = create_plate_item(item, meal_type, location, portion)
        self._items[plate_item.id] = plate_item
        return plate_item

    def remove(self, plate_item_id: str) -> bool:
        """Remove an item; returns False when the id is unknown."""
        return self._items.pop(plate_item_id, None) is not None

    def clear(self) -> None:
        """Remove every staged item."""
        self._items.clear()

    def summary(self) -> PlateSummary:
        """Summary of the current plate."""
        return summarize(self._items.values())

    def checkout(
        self, ids: Iterable[str], date_time: datetime | None = None
    ) -> MealLogDraft:
        """Draft a meal log for the given ids and drop only those items."""
        selected_ids = list(ids)
        draft = build_checkout_draft(
            self._items.values(), selected_ids, date_time or self.clock()
        )
        for plate_item_id in selected_ids:
            self._items.pop(plate_item_id, None)
        return draft


def _dominant_meal_type(items: list[PlateItem]) -> str | None:
    counts: dict[str, int] = {}
    for entry in items:
        counts[entry.meal_type] = counts.get(entry.meal_type, 0) + 1
    if not counts:
        return None
    # max() keeps the first key among ties, i.e. the first inserted meal type
    return max(counts, key=lambda meal_type: counts[meal_type])


def _note(entry: PlateItem) -> str:
    note = entry.item.name
    if entry.item.description:
        note = f"{note} — {entry.item.description}"
    note = f"{note} ({entry.location})"
    if entry.portion != 1:
        note = f"{note} × {format_amount(entry.portion)}"
    return note


def _scaled_facts(items: list[PlateItem]) -> tuple[NutritionFact, ...]:
    """Sum facts by name across items, scaling numeric amounts by portion."""
    totals: dict[str, NutritionFact] = {}
    for entry in items:
        for fact in entry.item.nutrition_facts:
            name = normalize_fact_name(fact.name)
            key = name.lower()
            scaled = fact.amount * entry.portion if fact.amount is not None else None
            current = totals.get(key)
            if current is None:
                totals[key] = NutritionFact(
                    name=name,
                    amount=round2(scaled) if scaled is not None else None,
                    unit=fact.unit,
                    display=_display(scaled, fact.unit, fact.display),
                )
                continue
            if scaled is None or current.amount is None:
                continue
            amount = round2(current.amount + scaled)
            totals[key] = NutritionFact(
                name=current.name,
                amount=amount,
                unit=current.unit or fact.unit,
                display=_display(amount, current.unit or fact.unit, None),
            )
    return tuple(totals.values())


def _display(amount: float | None, unit: str | None, display: str | None) -> str | None:
    if amount is None:
        return display
    return f"{format_amount(amount)} {unit}" if unit else format_amount(amount)
