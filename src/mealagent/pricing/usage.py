"""Ingredient usage analytics.

Counts how often each normalized ingredient appears in planned weeks and
whether the product catalog can price it. The unmapped ingredients, most
used first, are the ones worth adding to the catalog next.
"""

import json
import threading
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from datetime import datetime

from mealagent.collaborators import Clock, RecipeCatalog, utc_now
from mealagent.logging_config import get_logger
from mealagent.models import PlanWeek, Recipe
from mealagent.normalize.names import normalize_ingredient_name
from mealagent.pricing.catalog import ProductCatalog

logger = get_logger(__name__)

MOST_USED_LIMIT = 50
UNMAPPED_LIMIT = 100


@dataclass
class IngredientFrequency:
    """Usage counters for one normalized ingredient."""

    normalized_name: str
    display_name: str  # First spelling seen
    count: int
    recipes: list[str]
    is_mapped: bool
    first_seen: datetime
    last_seen: datetime


@dataclass
class IngredientUsageReport:
    """Summary of tracked ingredient usage."""

    total_tracked_recipes: int
    total_ingredients: int
    mapped_ingredients: int
    unmapped_ingredients: int
    most_used_ingredients: list[IngredientFrequency] = field(default_factory=list)
    unmapped_priority_list: list[IngredientFrequency] = field(default_factory=list)
    last_updated: datetime | None = None


class IngredientUsageTracker:
    """In-memory ingredient frequency table checked against a product catalog."""

    def __init__(self, catalog: ProductCatalog, clock: Clock = utc_now):
        self.catalog = catalog
        self._clock = clock
        self._lock = threading.Lock()
        self._frequencies: dict[str, IngredientFrequency] = {}
        self._last_updated: datetime | None = None

    def track_recipes(self, recipes: Iterable[Recipe]) -> int:
        """
        Count every ingredient line of the given recipes.

        Returns:
            Number of recipes tracked.
        """
        now = self._clock()
        tracked = 0

        with self._lock:
            for recipe in recipes:
                tracked += 1
                for ingredient in recipe.ingredients:
                    normalized = normalize_ingredient_name(ingredient.name)
                    if not normalized:
                        continue

                    entry = self._frequencies.get(normalized)
                    if entry is None:
                        self._frequencies[normalized] = IngredientFrequency(
                            normalized_name=normalized,
                            display_name=ingredient.name,
                            count=1,
                            recipes=[recipe.id],
                            is_mapped=normalized in self.catalog,
                            first_seen=now,
                            last_seen=now,
                        )
                        continue

                    entry.count += 1
                    entry.last_seen = now
                    if recipe.id not in entry.recipes:
                        entry.recipes.append(recipe.id)

            self._last_updated = now

        logger.debug(f"Tracked ingredients from {tracked} recipes, {len(self._frequencies)} unique ingredients")
        return tracked

    def track_plan(self, plan: PlanWeek, recipes: RecipeCatalog) -> int:
        """Track the recipes cooked in a week plan. Leftover days and unknown ids are skipped."""
        resolved = []
        for day in plan.days:
            if day.is_leftover or not day.recipe_id.strip():
                continue

            recipe = recipes.get_recipe_by_id(day.recipe_id)
            if recipe is None:
                logger.debug(f"Recipe '{day.recipe_id}' not found, not tracked")
                continue
            resolved.append(recipe)

        return self.track_recipes(resolved)

    def report(
        self,
        most_used_limit: int = MOST_USED_LIMIT,
        unmapped_limit: int = UNMAPPED_LIMIT,
    ) -> IngredientUsageReport:
        """Most used ingredients and unmapped ingredients, both by descending count."""
        with self._lock:
            entries = sorted(self._frequencies.values(), key=lambda e: -e.count)
            last_updated = self._last_updated

        unmapped = [e for e in entries if not e.is_mapped]
        return IngredientUsageReport(
            total_tracked_recipes=len({recipe_id for e in entries for recipe_id in e.recipes}),
            total_ingredients=len(entries),
            mapped_ingredients=len(entries) - len(unmapped),
            unmapped_ingredients=len(unmapped),
            most_used_ingredients=entries[:most_used_limit],
            unmapped_priority_list=unmapped[:unmapped_limit],
            last_updated=last_updated,
        )

    def priority_report(self, top_unmapped: int = 50, top_used: int = 20) -> str:
        """Plain-text report of the ingredients most worth adding to the catalog."""
        summary = self.report()
        total = summary.total_ingredients

        def share(count: int) -> int:
            return round(count / total * 100) if total else 0

        lines = [
            "=== INGREDIENT PRICING PRIORITY REPORT ===",
            "",
            f"Total tracked recipes: {summary.total_tracked_recipes}",
            f"Total unique ingredients: {total}",
            f"Mapped in product catalog: {summary.mapped_ingredients} ({share(summary.mapped_ingredients)}%)",
            f"Unmapped (need pricing): {summary.unmapped_ingredients} ({share(summary.unmapped_ingredients)}%)",
            f"Last updated: {summary.last_updated.isoformat() if summary.last_updated else 'never'}",
            "",
            f"=== TOP {top_unmapped} UNMAPPED INGREDIENTS ===",
            "",
            "Rank | Count | Ingredient Name                          | Normalized Name",
        ]
        for rank, entry in enumerate(summary.unmapped_priority_list[:top_unmapped], start=1):
            lines.append(f"{rank:>4} | {entry.count:>5} | {entry.display_name[:40]:<40} | {entry.normalized_name}")

        lines += [
            "",
            f"=== TOP {top_used} MOST USED INGREDIENTS ===",
            "",
            "Rank | Count | Mapped | Ingredient Name",
        ]
        for rank, entry in enumerate(summary.most_used_ingredients[:top_used], start=1):
            mapped = "yes" if entry.is_mapped else "no"
            lines.append(f"{rank:>4} | {entry.count:>5} | {mapped:<6} | {entry.display_name}")

        return "\n".join(lines) + "\n"

    def export_json(self) -> str:
        """Full report as indented JSON."""
        return json.dumps(asdict(self.report()), default=str, indent=2)

    def reset(self) -> None:
        """Forget all tracked usage."""
        with self._lock:
            self._frequencies.clear()
            self._last_updated = None
