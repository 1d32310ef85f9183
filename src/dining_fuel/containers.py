"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from dining_fuel.adapters.nutrislice_client import (
    DEFAULT_USER_AGENT,
    HttpxNutrisliceClient,
)
from dining_fuel.adapters.supabase_meal_log_repository import (
    SupabaseMealLogRepository,
)
from dining_fuel.config import Settings, parse_csv, parse_location_aliases
from dining_fuel.services.cache import InMemoryCache
from dining_fuel.services.meal_logs import MealLogService
from dining_fuel.services.menus import MenuProvider, MenuService
from dining_fuel.services.plate import Plate
from dining_fuel.services.reconciler import DEFAULT_SLOTS


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    menu_provider: MenuProvider
    menu_service: MenuService
    plate: Plate
    meal_log_service: MealLogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    meal_log_repository = SupabaseMealLogRepository(supabase_client)
    nutrislice_client = HttpxNutrisliceClient.create(
        base_url=resolved_settings.nutrislice_base_url,
        school_slug=resolved_settings.school_slug,
        location=resolved_settings.default_location,
        origin=resolved_settings.nutrislice_origin,
        user_agent=resolved_settings.nutrislice_user_agent or DEFAULT_USER_AGENT,
        timeout=resolved_settings.request_timeout_seconds,
    )
    menu_service = MenuService(
        provider=nutrislice_client,
        cache=InMemoryCache(),
        slots=parse_csv(resolved_settings.meal_slots) or DEFAULT_SLOTS,
        keywords=resolved_settings.parser_keywords(),
        location_aliases=parse_location_aliases(resolved_settings.location_aliases),
        fallback_enabled=resolved_settings.fallback_enabled,
        fallback_location=resolved_settings.default_location,
        timeout_seconds=resolved_settings.request_timeout_seconds,
        ttl_seconds=resolved_settings.menu_ttl_seconds,
    )

    async def close_resources() -> None:
        await nutrislice_client.close()

    return AppContainer(
        settings=resolved_settings,
        menu_provider=nutrislice_client,
        menu_service=menu_service,
        plate=Plate(),
        meal_log_service=MealLogService(meal_log_repository),
        close_resources=close_resources,
    )
