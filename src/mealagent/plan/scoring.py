"""Deterministic, explainable recipe scoring."""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from mealagent.config import Settings
from mealagent.logging_config import get_logger
from mealagent.models import Household, Recipe
from mealagent.normalize.names import ingredient_match_key, primary_protein

logger = get_logger(__name__)

KID_FRIENDLY_TAG = "kid_friendly"
BULK_COOK_TAG = "bulk_cook"
HIGH_PROTEIN_TAG = "high_protein"
ORGANIC_TAG = "organic_ok"

WEEKNIGHT_TIME_REASON = "Failed weeknight time constraint (>{limit}min)"
KID_FRIENDLY_REASON = "Failed kid-friendly requirement"


class ScoringWeights(BaseModel):
    """Immutable scoring weights and thresholds."""

    model_config = ConfigDict(frozen=True)

    # Bonuses
    favorite_bonus: float = 50
    ingredient_reuse_bonus_per_match: float = 5
    same_chef_bonus: float = 10
    bulk_cook_bonus: float = 8  # Leftovers strategy
    value_bonus_max: float = 15
    high_protein_bonus: float = 5
    organic_friendly_bonus: float = 3

    # Penalties
    protein_repetition_penalty_per_use: float = 15
    recent_recipe_penalty: float = 30
    complexity_penalty_per_ingredient: float = 0.5
    complexity_ingredient_threshold: int = 12

    # Pack size reuse value proxy
    pack_reuse_threshold: int = 2
    pack_reuse_bonus: float = 10

    # Constraints
    base_score: float = 100
    weeknight_max_time_mins: int = 40
    default_time_mins: int = 30
    value_cost_ceiling: float = 4.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringWeights":
        """Build weights with thresholds taken from application settings."""
        return cls(weeknight_max_time_mins=settings.weeknight_max_time_mins)


@dataclass
class ScoringContext:
    """Everything the scorer needs to evaluate one recipe for one slot."""

    household: Household
    is_weekend: bool = False
    selected_recipes: list[Recipe] = field(default_factory=list)
    used_protein_types: dict[str, int] = field(default_factory=dict)
    ingredient_counts: dict[str, int] = field(default_factory=dict)
    recent_recipe_ids: list[str] = field(default_factory=list)
    preferred_chef: str | None = None

    @classmethod
    def for_selection(
        cls,
        household: Household,
        selected_recipes: Sequence[Recipe] = (),
        is_weekend: bool = False,
        recent_recipe_ids: Sequence[str] = (),
        preferred_chef: str | None = None,
    ) -> "ScoringContext":
        """Build a context with protein and ingredient tallies derived from already selected recipes."""
        used_protein_types: dict[str, int] = {}
        ingredient_counts: dict[str, int] = {}

        for recipe in selected_recipes:
            protein = primary_protein(recipe.tags)
            if protein:
                used_protein_types[protein] = used_protein_types.get(protein, 0) + 1
            for ingredient in recipe.ingredients:
                key = ingredient_match_key(ingredient.name)
                if key:
                    ingredient_counts[key] = ingredient_counts.get(key, 0) + 1

        return cls(
            household=household,
            is_weekend=is_weekend,
            selected_recipes=list(selected_recipes),
            used_protein_types=used_protein_types,
            ingredient_counts=ingredient_counts,
            recent_recipe_ids=list(recent_recipe_ids),
            preferred_chef=preferred_chef,
        )


@dataclass
class ScoreExplanation:
    """Numeric score plus the rules that produced it."""

    score: float
    reasons: list[str] = field(default_factory=list)
    penalties: list[str] = field(default_factory=list)
    bonuses: list[str] = field(default_factory=list)


@dataclass
class RankedRecipe:
    """A candidate recipe with its score explanation."""

    recipe: Recipe
    explanation: ScoreExplanation


def _format_points(value: float) -> str:
    return f"{value:g}"


class RecipeScorer:
    """
    Scores recipes for a single dinner slot.

    Hard filters short-circuit to a score of 0 with the blocking reason.
    Otherwise the score starts from a base and collects additive bonuses
    and penalties, clamped at 0.
    """

    def __init__(self, weights: ScoringWeights | None = None):
        self.weights = weights or ScoringWeights()

    def score(self, recipe: Recipe, context: ScoringContext) -> ScoreExplanation:
        """Score a recipe in context."""
        w = self.weights

        # === HARD FILTERS ===

        if not context.is_weekend:
            time_mins = recipe.time_mins or w.default_time_mins
            if time_mins > w.weeknight_max_time_mins:
                return ScoreExplanation(
                    score=0,
                    reasons=[WEEKNIGHT_TIME_REASON.format(limit=w.weeknight_max_time_mins)],
                    penalties=["Exceeds weeknight time limit"],
                )

            if context.household.diet.kid_friendly and not recipe.has_tag(KID_FRIENDLY_TAG):
                return ScoreExplanation(
                    score=0,
                    reasons=[KID_FRIENDLY_REASON],
                    penalties=["Not kid-friendly on weeknight"],
                )

        # === SOFT SCORING ===

        score = w.base_score
        reasons: list[str] = []
        penalties: list[str] = []
        bonuses: list[str] = []

        if recipe.id in context.household.favorites:
            score += w.favorite_bonus
            bonuses.append(f"Favorite (+{_format_points(w.favorite_bonus)})")
            reasons.append("favorite")

        if recipe.id in context.recent_recipe_ids:
            score -= w.recent_recipe_penalty
            penalties.append(f"Recently used (-{_format_points(w.recent_recipe_penalty)})")

        protein = primary_protein(recipe.tags)
        if protein:
            protein_count = context.used_protein_types.get(protein, 0)
            if protein_count > 0:
                penalty = protein_count * w.protein_repetition_penalty_per_use
                score -= penalty
                penalties.append(f"Protein repetition: {protein} (-{_format_points(penalty)})")

        reuse_count = sum(
            1
            for ingredient in recipe.ingredients
            if context.ingredient_counts.get(ingredient_match_key(ingredient.name))
        )
        if reuse_count > 0:
            bonus = reuse_count * w.ingredient_reuse_bonus_per_match
            score += bonus
            bonuses.append(f"Ingredient reuse: {reuse_count} matches (+{_format_points(bonus)})")
            reasons.append("reuses ingredients")

        appearances = count_ingredient_appearances(recipe, context.selected_recipes)
        for name, count in appearances.items():
            if count >= w.pack_reuse_threshold:
                score += w.pack_reuse_bonus
                bonuses.append(f"Pack reuse: {name} (+{_format_points(w.pack_reuse_bonus)})")
                reasons.append("best value")
                break

        cost = recipe.cost_per_serve_est
        if cost and 0 < cost < w.value_cost_ceiling:
            bonus = math.floor((w.value_cost_ceiling - cost) / w.value_cost_ceiling * w.value_bonus_max)
            score += bonus
            bonuses.append(f"Cost effective (+{bonus})")
            reasons.append("best value")

        if recipe.has_tag(BULK_COOK_TAG):
            score += w.bulk_cook_bonus
            bonuses.append(f"Bulk cook (+{_format_points(w.bulk_cook_bonus)})")
            reasons.append("bulk cook")

        if context.household.diet.high_protein and recipe.has_tag(HIGH_PROTEIN_TAG):
            score += w.high_protein_bonus
            bonuses.append(f"High protein (+{_format_points(w.high_protein_bonus)})")

        if context.household.diet.organic_preferred and recipe.has_tag(ORGANIC_TAG):
            score += w.organic_friendly_bonus
            bonuses.append(f"Organic friendly (+{_format_points(w.organic_friendly_bonus)})")

        if context.preferred_chef and recipe.chef == context.preferred_chef:
            score += w.same_chef_bonus
            bonuses.append(f"Preferred chef (+{_format_points(w.same_chef_bonus)})")

        ingredient_count = len(recipe.ingredients)
        if ingredient_count > w.complexity_ingredient_threshold:
            penalty = (
                ingredient_count - w.complexity_ingredient_threshold
            ) * w.complexity_penalty_per_ingredient
            score -= penalty
            penalties.append(f"Complex recipe (-{penalty:.1f})")

        if recipe.time_mins and recipe.time_mins <= 30:
            reasons.append("≤30m")
        elif recipe.time_mins and recipe.time_mins <= 40:
            reasons.append("≤40m")

        if recipe.has_tag(KID_FRIENDLY_TAG):
            reasons.append("kid-friendly")

        return ScoreExplanation(
            score=max(0.0, score),
            reasons=list(dict.fromkeys(reasons)),
            penalties=penalties,
            bonuses=bonuses,
        )

    def rank(
        self,
        candidates: Iterable[Recipe],
        context: ScoringContext,
        top_n: int = 5,
    ) -> list[RankedRecipe]:
        """
        Score every candidate and return the best top_n.

        Hard-filtered (zero) scores are dropped. Ties keep input order.
        """
        scored = [RankedRecipe(recipe=recipe, explanation=self.score(recipe, context)) for recipe in candidates]
        scored = [item for item in scored if item.explanation.score > 0]
        scored.sort(key=lambda item: item.explanation.score, reverse=True)

        logger.debug(f"Ranked {len(scored)} eligible recipes, returning top {top_n}")

        return scored[:top_n]


def count_ingredient_appearances(recipe: Recipe, selected_recipes: Sequence[Recipe]) -> dict[str, int]:
    """
    Count how often each of a recipe's ingredients appears this week.

    Counts occurrences inside the recipe itself plus those in already
    selected recipes, but only for ingredients this recipe uses.
    """
    counts: dict[str, int] = {}

    for ingredient in recipe.ingredients:
        key = ingredient_match_key(ingredient.name)
        if key:
            counts[key] = counts.get(key, 0) + 1

    for selected in selected_recipes:
        for ingredient in selected.ingredients:
            key = ingredient_match_key(ingredient.name)
            if key in counts:
                counts[key] += 1

    return counts


_default_scorer = RecipeScorer()


def score_recipe(recipe: Recipe, context: ScoringContext) -> ScoreExplanation:
    """Score a recipe with the default weights."""
    return _default_scorer.score(recipe, context)


def score_and_rank(
    candidates: Iterable[Recipe],
    context: ScoringContext,
    top_n: int = 5,
) -> list[RankedRecipe]:
    """Score and rank candidates with the default weights."""
    return _default_scorer.rank(candidates, context, top_n)
