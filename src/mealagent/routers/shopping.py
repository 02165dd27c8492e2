"""API routes for shopping list aggregation, pricing and export."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from mealagent.collaborators import InMemoryAnalyticsSink, InMemoryRecipeCatalog
from mealagent.dependencies import (
    get_analytics_sink,
    get_price_estimator,
    get_recipe_catalog,
    resolve_recipe_catalog,
)
from mealagent.logging_config import get_logger
from mealagent.models import PantryItem, PlanWeek, Recipe
from mealagent.plan.shopping_list import (
    AggregatedIngredient,
    PantryPreferences,
    ShoppingListPricer,
    aggregate_shopping_list,
    generate_shopping_list_csv,
    to_legacy_format,
)
from mealagent.pricing.estimator import PriceEstimator

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/shopping-list", tags=["shopping-list"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class ShoppingListRequest(BaseModel):
    """Request to turn a week plan into a shopping list."""

    plan: PlanWeek
    recipes: list[Recipe] | None = Field(None, description="Recipes referenced by the plan, defaults to the library")
    pantry_items: list[PantryItem] = Field(default_factory=list)
    pantry_staples: list[str] = Field(default_factory=list, description="Standing pantry preferences")
    include_prices: bool = False
    live_prices: bool = True


class SourceRecipeResponse(BaseModel):
    recipe_id: str
    recipe_title: str
    qty: float


class ShoppingListItemResponse(BaseModel):
    """Single line in the shopping list."""

    name: str
    normalized_name: str
    total_qty: float
    unit: str
    category: str
    is_pantry_staple: bool
    source_recipes: list[SourceRecipeResponse]

    # Pricing, when requested
    estimated_cost: float | None = None
    packs_needed: int | None = None
    product_name: str | None = None
    price_source: str | None = None
    live_price: bool | None = None


class ShoppingListResponse(BaseModel):
    """Aggregated shopping list with optional totals."""

    items: list[ShoppingListItemResponse]
    total_cost: float | None = None
    matched_items_count: int | None = None
    unmatched_items_count: int | None = None


def _item_response(ingredient: AggregatedIngredient) -> ShoppingListItemResponse:
    return ShoppingListItemResponse(
        name=ingredient.name,
        normalized_name=ingredient.normalized_name,
        total_qty=ingredient.total_qty,
        unit=ingredient.unit,
        category=ingredient.category,
        is_pantry_staple=ingredient.is_pantry_staple,
        source_recipes=[
            SourceRecipeResponse(recipe_id=s.recipe_id, recipe_title=s.recipe_title, qty=s.qty)
            for s in ingredient.source_recipes
        ],
    )


def _aggregate(
    request: ShoppingListRequest,
    library: InMemoryRecipeCatalog,
    analytics: InMemoryAnalyticsSink,
) -> list[AggregatedIngredient]:
    catalog = resolve_recipe_catalog(request.recipes, library)
    return aggregate_shopping_list(
        request.plan,
        catalog,
        pantry_items=request.pantry_items,
        pantry_preferences=PantryPreferences(request.pantry_staples),
        analytics=analytics,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=ShoppingListResponse)
async def create_shopping_list(
    request: ShoppingListRequest,
    library: Annotated[InMemoryRecipeCatalog, Depends(get_recipe_catalog)],
    analytics: Annotated[InMemoryAnalyticsSink, Depends(get_analytics_sink)],
    estimator: Annotated[PriceEstimator, Depends(get_price_estimator)],
) -> ShoppingListResponse:
    """Aggregate a plan's ingredients, optionally priced."""
    aggregated = _aggregate(request, library, analytics)

    if not request.include_prices:
        return ShoppingListResponse(items=[_item_response(ingredient) for ingredient in aggregated])

    pricer = ShoppingListPricer(estimator, use_live_prices=request.live_prices)
    shopping_list = await pricer.price(aggregated)

    items = []
    for shopping_item in shopping_list.items:
        response = _item_response(shopping_item.ingredient)
        if shopping_item.cost is not None:
            response.estimated_cost = shopping_item.cost.estimated_cost
            response.packs_needed = shopping_item.cost.packs_needed
            response.product_name = shopping_item.cost.product.name if shopping_item.cost.product else None
            response.price_source = shopping_item.cost.price_source
            response.live_price = shopping_item.cost.live_price
        items.append(response)

    return ShoppingListResponse(
        items=items,
        total_cost=shopping_list.total_cost,
        matched_items_count=shopping_list.matched_items_count,
        unmatched_items_count=shopping_list.unmatched_items_count,
    )


@router.post("/csv", response_class=PlainTextResponse)
async def export_shopping_list_csv(
    request: ShoppingListRequest,
    library: Annotated[InMemoryRecipeCatalog, Depends(get_recipe_catalog)],
    analytics: Annotated[InMemoryAnalyticsSink, Depends(get_analytics_sink)],
) -> PlainTextResponse:
    """Export the aggregated list as CSV, pantry staples left out."""
    aggregated = [item for item in _aggregate(request, library, analytics) if not item.is_pantry_staple]
    csv_text = generate_shopping_list_csv(to_legacy_format(aggregated))
    return PlainTextResponse(csv_text, media_type="text/csv")
