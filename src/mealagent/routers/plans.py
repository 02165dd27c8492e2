"""API routes for recipe ranking and week composition."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from mealagent.collaborators import BestEffort, InMemoryRecipeCatalog
from mealagent.dependencies import (
    get_ingredient_usage,
    get_recency_tracker,
    get_recipe_catalog,
    get_recipe_scorer,
    resolve_recipe_catalog,
)
from mealagent.logging_config import get_logger
from mealagent.models import Household, PlanWeek, Recipe, WeeklyOverrides
from mealagent.plan.composer import WeekComposer
from mealagent.plan.explainer import DeterministicExplainer
from mealagent.plan.recency import RecencyTracker
from mealagent.plan.scoring import RecipeScorer, ScoringContext
from mealagent.pricing.usage import IngredientUsageTracker

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/plans", tags=["plans"])

explainer = DeterministicExplainer()


# =============================================================================
# Request/Response Schemas
# =============================================================================


class RankRequest(BaseModel):
    """Candidates to rank for one dinner slot."""

    candidates: list[Recipe]
    household: Household = Field(default_factory=Household)
    is_weekend: bool = False
    selected_recipes: list[Recipe] = Field(default_factory=list, description="Recipes already chosen this week")
    recent_recipe_ids: list[str] = Field(default_factory=list)
    preferred_chef: str | None = None
    top_n: int = Field(default=5, ge=1, le=50)


class RankedRecipeResponse(BaseModel):
    """A ranked candidate with its score breakdown."""

    recipe_id: str
    title: str
    score: float
    reasons: list[str]
    penalties: list[str]
    bonuses: list[str]
    chips: list[str]


class ComposeRequest(BaseModel):
    """Request to compose a week of dinners."""

    household: Household = Field(default_factory=Household)
    overrides: WeeklyOverrides = Field(default_factory=WeeklyOverrides)
    recipes: list[Recipe] | None = Field(None, description="Recipes to plan from, defaults to the configured library")


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/rank", response_model=list[RankedRecipeResponse])
async def rank_recipes(
    request: RankRequest,
    scorer: Annotated[RecipeScorer, Depends(get_recipe_scorer)],
) -> list[RankedRecipeResponse]:
    """Score and rank candidate recipes for a single slot."""
    context = ScoringContext.for_selection(
        request.household,
        request.selected_recipes,
        is_weekend=request.is_weekend,
        recent_recipe_ids=request.recent_recipe_ids,
        preferred_chef=request.preferred_chef,
    )

    ranked = scorer.rank(request.candidates, context, request.top_n)
    logger.info(f"Ranked {len(ranked)} of {len(request.candidates)} candidates")

    return [
        RankedRecipeResponse(
            recipe_id=r.recipe.id,
            title=r.recipe.title,
            score=r.explanation.score,
            reasons=r.explanation.reasons,
            penalties=r.explanation.penalties,
            bonuses=r.explanation.bonuses,
            chips=explainer.chip_texts(r.explanation.reasons),
        )
        for r in ranked
    ]


@router.post("/compose", response_model=PlanWeek)
async def compose_week(
    request: ComposeRequest,
    library: Annotated[InMemoryRecipeCatalog, Depends(get_recipe_catalog)],
    recency: Annotated[RecencyTracker, Depends(get_recency_tracker)],
    usage: Annotated[IngredientUsageTracker, Depends(get_ingredient_usage)],
) -> PlanWeek:
    """Compose a week plan, recording it in the recency history and ingredient usage."""
    catalog = resolve_recipe_catalog(request.recipes, library)
    composer = WeekComposer(catalog, recency=recency)
    plan = composer.compose_week(request.household, request.overrides)

    BestEffort("ingredient usage").run(usage.track_plan, plan, catalog)
    return plan
