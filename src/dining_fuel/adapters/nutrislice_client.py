"""Nutrislice weeks API client."""

from dataclasses import dataclass
from datetime import date
from urllib.parse import quote

import httpx

from dining_fuel.domain.menu import ProviderResponse
from dining_fuel.services.menus import MenuProvider

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


@dataclass
class HttpxNutrisliceClient(MenuProvider):
    """HTTPX-backed provider for one school's weekly Nutrislice menus."""

    base_url: str
    school_slug: str
    location: str
    origin: str
    http_client: httpx.AsyncClient
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 15

    @classmethod
    def create(
        cls,
        base_url: str,
        school_slug: str,
        location: str,
        origin: str,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15,
    ) -> "HttpxNutrisliceClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            school_slug=school_slug,
            location=location,
            origin=origin.rstrip("/"),
            http_client=httpx.AsyncClient(),
            user_agent=user_agent,
            timeout=timeout,
        )

    async def fetch_slot(self, slot: str, day: date) -> ProviderResponse:
        """Fetch the week containing a date and keep that day's foods."""
        url = (
            f"{self.base_url}/weeks/school/{quote(self.school_slug)}"
            f"/menu-type/{quote(slot.lower())}"
            f"/{day.year}/{day.month:02d}/{day.day:02d}/"
        )
        response = await self.http_client.get(
            url,
            params={"format": "json"},
            headers={
                "User-Agent": self.user_agent,
                "Accept": "application/json",
                "Origin": self.origin,
                "Referer": f"{self.origin}/",
                "Accept-Language": "en-US,en;q=0.9",
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            return ProviderResponse(source="live", html=response.text, format="html")
        return self._from_weeks(response.json(), slot, day)

    def _from_weeks(
        self, payload: object, slot: str, day: date
    ) -> ProviderResponse:
        iso = day.isoformat()
        days = payload.get("days") if isinstance(payload, dict) else None
        match = next(
            (
                entry
                for entry in (days if isinstance(days, list) else [])
                if isinstance(entry, dict) and entry.get("date") == iso
            ),
            None,
        )
        if match is None:
            return ProviderResponse(
                source="fallback",
                menu=[],
                format="json",
                error=f"No menu found for {self.school_slug} {slot} on {iso}",
            )

        menu_items = match.get("menu_items")
        if not isinstance(menu_items, list):
            menu_items = []
        foods = []
        for menu_item in menu_items:
            food = menu_item.get("food") if isinstance(menu_item, dict) else None
            # Station headers come through as rows without a food.
            if isinstance(food, dict) and food.get("name"):
                foods.append(food)
        return ProviderResponse(
            source="live",
            format="json",
            menu=[
                {
                    "location": self.location,
                    "meals": [{"mealType": slot.title(), "items": foods}],
                }
            ],
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
