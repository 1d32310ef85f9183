"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from dining_fuel.services.html_parser import (
    DEFAULT_LOCATION_KEYWORDS,
    DEFAULT_MEAL_KEYWORDS,
    ParserKeywords,
)
from dining_fuel.services.search import DEFAULT_LOCATION_ALIASES

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    nutrislice_base_url: str = "https://yaledining.api.nutrislice.com/menu/api"
    nutrislice_origin: str = "https://yaledining.nutrislice.com"
    nutrislice_user_agent: str | None = None
    school_slug: str = "jonathan-edwards-college"
    default_location: str = "Jonathan Edwards College"
    request_timeout_seconds: float = 15
    menu_ttl_seconds: int = 900
    meal_slots: str = "breakfast,lunch,dinner"
    location_keywords: str = ",".join(DEFAULT_LOCATION_KEYWORDS)
    meal_keywords: str = ",".join(DEFAULT_MEAL_KEYWORDS)
    location_aliases: str | None = None
    fallback_enabled: bool = True
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def parser_keywords(self) -> ParserKeywords:
        """Keyword lists for the HTML heuristic parser."""
        return ParserKeywords(
            location_keywords=parse_csv(self.location_keywords),
            meal_keywords=parse_csv(self.meal_keywords),
        )


def parse_csv(raw: str | None) -> tuple[str, ...]:
    """Parse a comma-separated env value, dropping blanks and duplicates."""
    if raw is None:
        return ()
    values: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value and value not in values:
            values.append(value)
    return tuple(values)


def parse_location_aliases(raw: str | None) -> dict[str, tuple[str, ...]]:
    """Parse `Canonical=alias1|alias2;Other=alias` into an alias mapping.

    Unset or blank values fall back to the built-in aliases.
    """
    if raw is None or not raw.strip():
        return dict(DEFAULT_LOCATION_ALIASES)
    aliases: dict[str, tuple[str, ...]] = {}
    for group in raw.split(";"):
        canonical, _, spellings = group.partition("=")
        canonical = canonical.strip()
        if not canonical:
            continue
        aliases[canonical] = tuple(
            spelling.strip() for spelling in spellings.split("|") if spelling.strip()
        )
    return aliases
