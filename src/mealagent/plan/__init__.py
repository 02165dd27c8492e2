"""Recipe scoring, week composition and shopping list aggregation."""

from mealagent.plan.composer import WeekComposer, next_week_monday
from mealagent.plan.explainer import DeterministicExplainer, ReasonChip
from mealagent.plan.recency import RecencyTracker
from mealagent.plan.scoring import (
    RankedRecipe,
    RecipeScorer,
    ScoreExplanation,
    ScoringContext,
    ScoringWeights,
    score_and_rank,
    score_recipe,
)
from mealagent.plan.shopping_list import (
    AggregatedIngredient,
    FlatIngredientRow,
    PantryPreferences,
    ShoppingItem,
    ShoppingList,
    ShoppingListPricer,
    aggregate_shopping_list,
    generate_shopping_list_csv,
    to_legacy_format,
)

__all__ = [
    "AggregatedIngredient",
    "DeterministicExplainer",
    "FlatIngredientRow",
    "PantryPreferences",
    "RankedRecipe",
    "ReasonChip",
    "RecencyTracker",
    "RecipeScorer",
    "ScoreExplanation",
    "ScoringContext",
    "ScoringWeights",
    "ShoppingItem",
    "ShoppingList",
    "ShoppingListPricer",
    "WeekComposer",
    "aggregate_shopping_list",
    "generate_shopping_list_csv",
    "next_week_monday",
    "score_and_rank",
    "score_recipe",
]
