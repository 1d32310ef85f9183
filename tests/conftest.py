"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from uuid import uuid4

import pytest

from dining_fuel.config import Settings
from dining_fuel.containers import AppContainer
from dining_fuel.domain.menu import ProviderResponse
from dining_fuel.domain.plate import MealLog, MealLogDraft
from dining_fuel.services.cache import InMemoryCache
from dining_fuel.services.meal_logs import MealLogRepository, MealLogService
from dining_fuel.services.menus import MenuProvider, MenuService
from dining_fuel.services.plate import Plate

MENU_DAY = date(2025, 3, 3)


def live_menu(location: str, meal_type: str, *items: dict[str, object]) -> list:
    """Raw provider menu with a single location and meal."""
    return [
        {
            "location": location,
            "meals": [{"mealType": meal_type, "items": list(items)}],
        }
    ]


@dataclass
class FakeMenuProvider(MenuProvider):
    """Menu provider returning canned responses per slot."""

    responses: dict[str, ProviderResponse | Exception] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    calls: list[tuple[str, date]] = field(default_factory=list)

    async def fetch_slot(self, slot: str, day: date) -> ProviderResponse:
        self.calls.append((slot, day))
        delay = self.delays.get(slot)
        if delay:
            await asyncio.sleep(delay)
        response = self.responses.get(slot, ProviderResponse(source="live", menu=[]))
        if isinstance(response, Exception):
            raise response
        return response


@dataclass
class InMemoryMealLogRepository(MealLogRepository):
    """In-memory meal log repository for tests."""

    logs: list[MealLog] = field(default_factory=list)

    def create_meal_log(self, athlete_id: str, draft: MealLogDraft) -> MealLog:
        meal_log = MealLog(
            id=str(uuid4()),
            athlete_id=athlete_id,
            meal_type=draft.meal_type,
            calories=draft.calories,
            protein_g=draft.protein_g,
            notes=draft.notes,
            date_time=draft.date_time,
            nutrition_facts=draft.nutrition_facts,
            completed=True,
        )
        self.logs.append(meal_log)
        return meal_log

    def list_meal_logs(self, athlete_id: str, limit: int) -> list[MealLog]:
        logs = [log for log in self.logs if log.athlete_id == athlete_id]
        logs.sort(key=lambda log: log.date_time, reverse=True)
        return logs[:limit]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
    )


@pytest.fixture
def menu_provider() -> FakeMenuProvider:
    return FakeMenuProvider(
        responses={
            "breakfast": ProviderResponse(
                source="live",
                menu=live_menu(
                    "Jonathan Edwards College",
                    "Breakfast",
                    {"name": "Scrambled Eggs", "calories": 180},
                ),
            ),
            "lunch": ProviderResponse(
                source="live",
                menu=live_menu(
                    "Jonathan Edwards College",
                    "Lunch",
                    {
                        "name": "Grilled Chicken",
                        "calories": 300,
                        "nutrition": {"protein": {"amount": 30, "unit": "g"}},
                    },
                    {"name": "Chicken Caesar Salad", "calories": 420},
                ),
            ),
            "dinner": ProviderResponse(
                source="live",
                menu=live_menu(
                    "JE Dining Hall",
                    "Dinner",
                    {"name": "Lemon Chicken", "calories": 510},
                    {"name": "Roasted Carrots", "calories": 90},
                ),
            ),
        }
    )


@pytest.fixture
def meal_log_repository() -> InMemoryMealLogRepository:
    return InMemoryMealLogRepository()


@pytest.fixture
def container(
    settings: Settings,
    menu_provider: FakeMenuProvider,
    meal_log_repository: InMemoryMealLogRepository,
) -> AppContainer:
    menu_service = MenuService(
        provider=menu_provider,
        cache=InMemoryCache(),
        keywords=settings.parser_keywords(),
        timeout_seconds=1.0,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        menu_provider=menu_provider,
        menu_service=menu_service,
        plate=Plate(),
        meal_log_service=MealLogService(meal_log_repository),
        close_resources=close_resources,
    )
