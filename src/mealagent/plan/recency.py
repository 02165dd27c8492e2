"""Tracks which recipes were planned in recent weeks."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from mealagent.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecipeHistoryEntry:
    """A recipe planned for a given week."""

    recipe_id: str
    week_of_iso: date  # Monday of the planned week
    used_at: datetime


class RecencyTracker:
    """
    In-memory recipe history with a rolling window of weeks.

    One entry is kept per recipe and week. Entries older than the window
    are pruned whenever a week is recorded.
    """

    def __init__(self, window_weeks: int = 3):
        self.window_weeks = window_weeks
        self._history: dict[tuple[str, date], RecipeHistoryEntry] = {}

    def _window_start(self, reference: date) -> date:
        return reference - timedelta(weeks=self.window_weeks)

    def record_week(self, week_of_iso: date, recipe_ids: list[str]) -> None:
        """Record the recipes planned for a week."""
        now = datetime.now(timezone.utc)

        for recipe_id in recipe_ids:
            self._history[(recipe_id, week_of_iso)] = RecipeHistoryEntry(
                recipe_id=recipe_id,
                week_of_iso=week_of_iso,
                used_at=now,
            )

        window_start = self._window_start(week_of_iso)
        stale = [key for key, entry in self._history.items() if entry.week_of_iso < window_start]
        for key in stale:
            del self._history[key]

        logger.debug(
            f"Recorded {len(set(recipe_ids))} recipes for week {week_of_iso.isoformat()}, "
            f"pruned {len(stale)} stale entries"
        )

    def history(self) -> list[RecipeHistoryEntry]:
        """Get all tracked entries, oldest week first."""
        return sorted(self._history.values(), key=lambda entry: (entry.week_of_iso, entry.recipe_id))

    def recent_recipe_ids(self, current_week_iso: date | None = None) -> list[str]:
        """
        Get ids of recipes used within the window before the given week.

        The given week itself and any later weeks do not count, so planning
        a week again is not penalised by its own earlier plan.
        """
        current = current_week_iso or date.today()
        window_start = self._window_start(current)

        recent: dict[str, None] = {}
        for entry in self.history():
            if window_start <= entry.week_of_iso < current:
                recent[entry.recipe_id] = None
        return list(recent)

    def was_recently_used(self, recipe_id: str, current_week_iso: date | None = None) -> bool:
        """Check if a recipe is inside the repetition window."""
        return recipe_id in self.recent_recipe_ids(current_week_iso)

    def usage_counts(self) -> dict[str, int]:
        """Count the tracked weeks each recipe was used in."""
        counts: dict[str, int] = {}
        for entry in self._history.values():
            counts[entry.recipe_id] = counts.get(entry.recipe_id, 0) + 1
        return counts

    def clear(self) -> None:
        """Forget all history."""
        self._history.clear()
