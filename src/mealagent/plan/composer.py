"""Greedy week composition on top of the recipe scorer."""

from datetime import date, timedelta

from mealagent.collaborators import RecipeCatalog
from mealagent.config import Settings, get_settings
from mealagent.logging_config import LoggingContext, get_logger
from mealagent.models import Household, PlanDay, PlanWeek, Recipe, WeeklyOverrides
from mealagent.normalize.names import ingredient_match_key, primary_protein
from mealagent.plan.recency import RecencyTracker
from mealagent.plan.scoring import KID_FRIENDLY_TAG, RecipeScorer, ScoringContext, ScoringWeights

logger = get_logger(__name__)

LEFTOVER_NOTE = "Leftovers from previous day"
MAX_REASONS_PER_DAY = 3
MIN_KID_FRIENDLY_OPTIONS = 3


def next_week_monday(today: date | None = None) -> date:
    """Get the Monday of next week."""
    today = today or date.today()
    return today + timedelta(days=7 - today.weekday())


class WeekComposer:
    """
    Builds a week of dinners one day at a time.

    Each slot gets a fresh scoring context reflecting what was already
    chosen this week, then takes the top-ranked candidate. No backtracking.
    """

    def __init__(
        self,
        catalog: RecipeCatalog,
        scorer: RecipeScorer | None = None,
        recency: RecencyTracker | None = None,
        settings: Settings | None = None,
    ):
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.scorer = scorer or RecipeScorer(ScoringWeights.from_settings(self.settings))
        self.recency = recency or RecencyTracker(self.settings.repetition_window_weeks)

    def _candidate_max_time(self, is_weekend: bool) -> int | None:
        return None if is_weekend else self.settings.candidate_max_time_mins

    def _candidates_for_day(
        self,
        is_weekend: bool,
        kid_friendly: bool,
        exclude_ids: list[str],
    ) -> list[Recipe]:
        candidates = self.catalog.search(
            max_time=self._candidate_max_time(is_weekend),
            exclude_ids=exclude_ids,
        )

        # Prefer kid-friendly options when there are enough of them, the
        # scorer's hard filter handles the rest
        if not is_weekend and kid_friendly:
            kid_friendly_options = [r for r in candidates if r.has_tag(KID_FRIENDLY_TAG)]
            if len(kid_friendly_options) >= MIN_KID_FRIENDLY_OPTIONS:
                candidates = kid_friendly_options

        return candidates

    def compose_week(self, household: Household, overrides: WeeklyOverrides | None = None) -> PlanWeek:
        """Compose a week plan for a household."""
        overrides = overrides or WeeklyOverrides()

        start = overrides.week_of_iso or next_week_monday()
        dinner_count = min(
            overrides.dinners or self.settings.default_dinners_per_week,
            self.settings.max_dinners_per_week,
        )
        servings = overrides.servings_per_meal or self.settings.default_servings_per_meal

        if overrides.kid_friendly_weeknights is not None:
            household = household.model_copy(
                update={"diet": household.diet.model_copy(update={"kid_friendly": overrides.kid_friendly_weeknights})}
            )
        kid_friendly = household.diet.kid_friendly

        with LoggingContext(plan_id=start.isoformat(), household_id=household.id):
            logger.info(f"Composing week of {start.isoformat()}: {dinner_count} dinners, {servings} servings")

            days: list[PlanDay] = []
            conflicts: list[str] = []
            suggested_swaps: dict[int, list[str]] = {}
            selected_recipes: list[Recipe] = []
            used_protein_types: dict[str, int] = {}
            ingredient_counts: dict[str, int] = {}
            recent_recipe_ids = self.recency.recent_recipe_ids(start)
            total_cost = 0.0

            enable_leftovers = dinner_count >= 5
            bulk_day: int | None = None

            for i in range(dinner_count):
                date_iso = start + timedelta(days=i)
                is_weekend = i >= self.settings.weekend_start_day_index

                if enable_leftovers and bulk_day is not None and i == bulk_day + 1:
                    days.append(
                        PlanDay(
                            date_iso=date_iso,
                            recipe_id=days[-1].recipe_id,
                            scaled_servings=servings,
                            notes=LEFTOVER_NOTE,
                            bulk=True,
                            is_leftover=True,
                        )
                    )
                    continue

                context = ScoringContext(
                    household=household,
                    is_weekend=is_weekend,
                    selected_recipes=list(selected_recipes),
                    used_protein_types=dict(used_protein_types),
                    ingredient_counts=dict(ingredient_counts),
                    recent_recipe_ids=recent_recipe_ids,
                    preferred_chef=overrides.preferred_chef,
                )

                candidates = self._candidates_for_day(is_weekend, kid_friendly, [d.recipe_id for d in days])
                if not candidates:
                    conflicts.append(f"No suitable recipes found for day {i + 1}")
                    logger.warning(f"No candidates for day {i + 1}")
                    continue

                ranked = self.scorer.rank(candidates, context, self.settings.candidates_to_score_per_slot)
                if not ranked:
                    conflicts.append(f"All candidates filtered out for day {i + 1}")
                    logger.warning(f"All {len(candidates)} candidates filtered out for day {i + 1}")
                    continue

                best = ranked[0]
                recipe = best.recipe

                suggested_swaps[i] = self.suggest_swaps(recipe.id, is_weekend, household)

                should_be_bulk = (
                    enable_leftovers
                    and bulk_day is None
                    and i < dinner_count - 1
                    and not is_weekend
                    and recipe.has_tag("bulk_cook")
                )
                if should_be_bulk:
                    bulk_day = i

                days.append(
                    PlanDay(
                        date_iso=date_iso,
                        recipe_id=recipe.id,
                        scaled_servings=servings,
                        bulk=should_be_bulk,
                        reasons=best.explanation.reasons[:MAX_REASONS_PER_DAY],
                    )
                )

                selected_recipes.append(recipe)
                protein = primary_protein(recipe.tags)
                if protein:
                    used_protein_types[protein] = used_protein_types.get(protein, 0) + 1
                for ingredient in recipe.ingredients:
                    key = ingredient_match_key(ingredient.name)
                    if key:
                        ingredient_counts[key] = ingredient_counts.get(key, 0) + 1

                total_cost += (recipe.cost_per_serve_est or 0) * servings

                logger.debug(f"Day {i + 1}: {recipe.id} (score {best.explanation.score:g})")

            self.recency.record_week(start, [d.recipe_id for d in days])

            logger.info(f"Composed {len(days)} days with {len(conflicts)} conflicts")

            return PlanWeek(
                start_iso=start,
                days=days,
                cost_estimate=round(total_cost, 2),
                conflicts=conflicts,
                suggested_swaps=suggested_swaps,
            )

    def suggest_swaps(self, recipe_id: str, is_weekend: bool, household: Household) -> list[str]:
        """
        Suggest alternative recipe ids for a day.

        Recipes by the same chef come first, topped up from the rest of the
        catalog, all ranked by the scorer.
        """
        current = self.catalog.get_recipe_by_id(recipe_id)
        if current is None:
            return []

        max_swaps = self.settings.max_suggested_swaps
        max_time = self._candidate_max_time(is_weekend)

        candidates: list[Recipe] = []
        if current.chef:
            candidates = self.catalog.search(max_time=max_time, exclude_ids=[recipe_id], chef=current.chef)

        if len(candidates) < max_swaps * 2:
            others = self.catalog.search(
                max_time=max_time,
                exclude_ids=[recipe_id, *(r.id for r in candidates)],
            )
            candidates = candidates + others

        context = ScoringContext(
            household=household,
            is_weekend=is_weekend,
            selected_recipes=[current],
            recent_recipe_ids=self.recency.recent_recipe_ids(),
        )

        return [ranked.recipe.id for ranked in self.scorer.rank(candidates, context, max_swaps)]
