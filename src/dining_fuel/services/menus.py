"""Menu service: concurrent slot fetches, reconciliation and caching."""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

import httpx

from dining_fuel.domain.menu import (
    MenuLocation,
    MenuMealSection,
    MenuSearchResult,
    MenuSnapshot,
    ProviderResponse,
    SlotFailure,
)
from dining_fuel.services.cache import Cache
from dining_fuel.services.fallback import DEFAULT_FALLBACK_LOCATION, fallback_menu
from dining_fuel.services.html_parser import ParserKeywords, build_date_context
from dining_fuel.services.reconciler import (
    DEFAULT_SLOTS,
    aggregate_error,
    aggregate_source,
    reconcile,
)
from dining_fuel.services.search import DEFAULT_LOCATION_ALIASES, search

_logger = logging.getLogger(__name__)


class MenuProvider(Protocol):
    """Transport that fetches one meal slot from the dining provider."""

    async def fetch_slot(self, slot: str, day: date) -> ProviderResponse:
        """Return the provider response for a slot on a date."""


@dataclass
class MenuService:
    """Loads, reconciles and caches the menu for a date."""

    provider: MenuProvider
    cache: Cache
    slots: tuple[str, ...] = DEFAULT_SLOTS
    keywords: ParserKeywords = field(default_factory=ParserKeywords)
    location_aliases: Mapping[str, Iterable[str]] = field(
        default_factory=lambda: dict(DEFAULT_LOCATION_ALIASES)
    )
    fallback_enabled: bool = True
    fallback_location: str = DEFAULT_FALLBACK_LOCATION
    timeout_seconds: float = 15.0
    ttl_seconds: int = 900

    async def get_menu(self, day: date) -> MenuSnapshot:
        """Return the reconciled menu for a date, fetching slots concurrently."""
        cache_key = f"menu:{day.isoformat()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, MenuSnapshot):
            return cached

        responses = await asyncio.gather(
            *(self._fetch_slot(slot, day) for slot in self.slots)
        )
        snapshot = self.build_snapshot(
            day, dict(zip(self.slots, responses, strict=True))
        )
        # Fallback and partial menus are not cached.
        if snapshot.source == "live" and snapshot.error is None:
            self.cache.set(cache_key, snapshot, ttl_seconds=self.ttl_seconds)
        return snapshot

    def build_snapshot(
        self, day: date, responses: Mapping[str, ProviderResponse | SlotFailure]
    ) -> MenuSnapshot:
        """Reconcile already-fetched slot responses into a snapshot."""
        sections = reconcile(
            responses,
            date_context=build_date_context(day),
            keywords=self.keywords,
            fallback_provider=self._fallback if self.fallback_enabled else None,
        )
        snapshot = MenuSnapshot(
            day=day,
            sections=tuple(sections),
            source=aggregate_source(sections),
            error=aggregate_error(sections),
        )
        _logger.info(
            "Menu reconciled: date=%s status=%s slots=%s",
            day.isoformat(),
            snapshot.status,
            ",".join(f"{s.type}:{s.source or 'none'}" for s in sections),
        )
        return snapshot

    async def search(self, day: date, query: str) -> list[MenuSearchResult]:
        """Search the menu for a date."""
        if not query.strip():
            return []
        snapshot = await self.get_menu(day)
        return self.search_sections(snapshot.sections, query)

    def search_sections(
        self, sections: Iterable[MenuMealSection], query: str
    ) -> list[MenuSearchResult]:
        """Search already reconciled sections with the configured aliases."""
        return search(sections, query, self.location_aliases)

    async def _fetch_slot(self, slot: str, day: date) -> ProviderResponse | SlotFailure:
        try:
            return await asyncio.wait_for(
                self.provider.fetch_slot(slot, day), timeout=self.timeout_seconds
            )
        except TimeoutError:
            _logger.warning("Menu fetch timed out: slot=%s date=%s", slot, day)
            return SlotFailure(f"Timed out after {self.timeout_seconds:g}s")
        except (httpx.HTTPError, ValueError, TypeError, KeyError) as exc:
            _logger.warning(
                "Menu fetch failed: slot=%s date=%s error=%s", slot, day, exc
            )
            return SlotFailure(str(exc) or exc.__class__.__name__)

    def _fallback(self, slot: str) -> list[MenuLocation]:
        return fallback_menu(slot, self.fallback_location)
