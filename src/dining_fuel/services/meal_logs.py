"""Meal log commit service for checked-out plates."""

import logging
from dataclasses import dataclass
from typing import Protocol

from dining_fuel.domain.plate import MealLog, MealLogDraft

_logger = logging.getLogger(__name__)


class MealLogRepository(Protocol):
    """Persistence interface for athlete meal logs."""

    def create_meal_log(self, athlete_id: str, draft: MealLogDraft) -> MealLog:
        """Persist a draft as a completed meal log and return it."""

    def list_meal_logs(self, athlete_id: str, limit: int) -> list[MealLog]:
        """Return the most recent meal logs for an athlete."""


@dataclass
class MealLogService:
    """Commits plate checkout drafts through the persistence collaborator."""

    repository: MealLogRepository

    def commit(self, athlete_id: str, draft: MealLogDraft) -> MealLog:
        """Persist a checkout draft."""
        meal_log = self.repository.create_meal_log(athlete_id, draft)
        _logger.info(
            "Meal log committed: athlete=%s meal_type=%s calories=%s",
            athlete_id,
            meal_log.meal_type,
            meal_log.calories,
        )
        return meal_log

    def recent(self, athlete_id: str, limit: int = 10) -> list[MealLog]:
        """Return recent meal logs for an athlete."""
        return self.repository.list_meal_logs(athlete_id, limit)
