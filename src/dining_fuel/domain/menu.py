"""Domain models for normalized dining menus."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class NutritionFact:
    """Single nutrition fact extracted from a provider record or menu text."""

    name: str
    amount: float | None = None
    unit: str | None = None
    percent_daily_value: float | None = None
    display: str | None = None


@dataclass(frozen=True)
class MenuItem:
    """Canonical dish entry."""

    name: str
    description: str | None = None
    calories: float | None = None
    nutrition_facts: tuple[NutritionFact, ...] = ()


@dataclass(frozen=True)
class MenuMeal:
    """Items served at a location for one meal label."""

    meal_type: str
    items: tuple[MenuItem, ...]


@dataclass(frozen=True)
class MenuLocation:
    """Dining location with its meals."""

    location: str
    meals: tuple[MenuMeal, ...]


@dataclass(frozen=True)
class MenuMealSection:
    """Reconciled menu for a single meal slot."""

    type: str
    label: str
    locations: tuple[MenuLocation, ...]
    source: str | None
    error: str | None = None


@dataclass(frozen=True)
class ProviderResponse:
    """Provider payload for one slot as delivered by the transport."""

    source: str | None = None
    menu: list[dict[str, object]] | None = None
    html: str | None = None
    format: str | None = None
    fallback_menu: list[dict[str, object]] | None = None
    error: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "ProviderResponse":
        """Build a response from the provider's camelCase JSON shape."""
        menu = payload.get("menu")
        fallback_menu = payload.get("fallbackMenu", payload.get("fallback_menu"))
        html = payload.get("html")
        source = payload.get("source")
        error = payload.get("error")
        response_format = payload.get("format")
        return cls(
            source=source if isinstance(source, str) else None,
            menu=menu if isinstance(menu, list) else None,
            html=html if isinstance(html, str) else None,
            format=response_format if isinstance(response_format, str) else None,
            fallback_menu=fallback_menu if isinstance(fallback_menu, list) else None,
            error=error if isinstance(error, str) else None,
        )


@dataclass(frozen=True)
class SlotFailure:
    """Transport failure reported for a slot fetch."""

    message: str


@dataclass(frozen=True)
class DateContext:
    """Renderings of the menu date used to locate the relevant markup."""

    day: date
    long: str
    medium: str


@dataclass(frozen=True)
class MenuSnapshot:
    """All reconciled slot sections for a date plus the aggregate status."""

    day: date
    sections: tuple[MenuMealSection, ...]
    source: str | None
    error: str | None

    @property
    def status(self) -> str:
        """Aggregate status, `unavailable` when no slot succeeded."""
        return self.source or "unavailable"


@dataclass(frozen=True)
class MenuSearchResult:
    """Flattened search hit."""

    location: str
    location_key: str
    meal_type: str
    section_type: str
    section_label: str
    item: MenuItem
