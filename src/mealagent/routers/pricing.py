"""API routes for ingredient price estimates, price reports, request quota and ingredient usage."""

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from mealagent.collaborators import QuotaManager
from mealagent.dependencies import get_ingredient_usage, get_price_estimator, get_price_reports, get_quota_manager
from mealagent.logging_config import get_logger
from mealagent.normalize.names import normalize_ingredient_name
from mealagent.pricing.categories import price_source_description
from mealagent.pricing.estimator import PriceEstimator
from mealagent.pricing.reports import PriceReportStore
from mealagent.pricing.usage import IngredientFrequency, IngredientUsageTracker

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/pricing", tags=["pricing"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class EstimateRequest(BaseModel):
    """Ingredient quantity to price."""

    name: str = Field(min_length=1)
    qty: float = Field(ge=0)
    unit: str = ""
    live: bool = Field(default=True, description="Try cached and live prices before static ones")


class ProductResponse(BaseModel):
    sku: str
    name: str
    brand: str | None = None
    pack_size: float
    pack_unit: str
    price: float
    last_updated: date | None = None


class EstimateResponse(BaseModel):
    """Cost estimate for one ingredient."""

    normalized_name: str
    mapped: bool
    estimated_cost: float
    packs_needed: int
    requires_choice: bool
    confidence: str | None = None
    price_source: str
    live_price: bool
    product: ProductResponse | None = None


class PriceReportRequest(BaseModel):
    """A price the user actually paid."""

    ingredient_name: str = Field(min_length=1)
    price: float = Field(gt=0)
    quantity: float = Field(gt=0)
    unit: str
    location: str | None = None


class PriceReportResponse(BaseModel):
    normalized_name: str
    report_count: int
    average_price: float | None = None
    price: float
    confidence: str
    source: str
    source_description: str


class QuotaStatusResponse(BaseModel):
    used: int
    limit: int
    remaining: int
    percentage: float
    status: str
    can_make_request: bool
    enabled: bool
    message: str | None = None


class IngredientFrequencyResponse(BaseModel):
    normalized_name: str
    display_name: str
    count: int
    recipes: list[str]
    is_mapped: bool


class IngredientUsageResponse(BaseModel):
    """Ingredient usage across composed weeks, unmapped ingredients first in line for pricing."""

    total_tracked_recipes: int
    total_ingredients: int
    mapped_ingredients: int
    unmapped_ingredients: int
    most_used_ingredients: list[IngredientFrequencyResponse]
    unmapped_priority_list: list[IngredientFrequencyResponse]
    last_updated: datetime | None = None


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/estimate", response_model=EstimateResponse)
async def estimate_price(
    request: EstimateRequest,
    estimator: Annotated[PriceEstimator, Depends(get_price_estimator)],
) -> EstimateResponse:
    """Estimate what buying an ingredient quantity costs."""
    normalized_name = normalize_ingredient_name(request.name)

    if request.live:
        result = await estimator.estimate_ingredient_cost_with_api(normalized_name, request.qty, request.unit)
    else:
        result = estimator.estimate_ingredient_cost(normalized_name, request.qty, request.unit)

    product = None
    if result.product is not None:
        product = ProductResponse(**result.product.model_dump(exclude={"aisle"}))

    return EstimateResponse(
        normalized_name=normalized_name,
        mapped=result.mapped,
        estimated_cost=result.estimated_cost,
        packs_needed=result.packs_needed,
        requires_choice=result.requires_choice,
        confidence=result.confidence,
        price_source=result.price_source,
        live_price=result.live_price,
        product=product,
    )


@router.post("/reports", response_model=PriceReportResponse, status_code=status.HTTP_201_CREATED)
async def report_price(
    request: PriceReportRequest,
    reports: Annotated[PriceReportStore, Depends(get_price_reports)],
    estimator: Annotated[PriceEstimator, Depends(get_price_estimator)],
) -> PriceReportResponse:
    """Record a user-reported price and return the resulting best estimate."""
    report = reports.add_report(
        request.ingredient_name,
        request.price,
        request.quantity,
        request.unit,
        location=request.location,
    )

    average = reports.average_price(report.normalized_name, estimator.settings.user_report_max_age_days)
    estimate = estimator.price_estimate(report.normalized_name, request.quantity, request.unit)

    return PriceReportResponse(
        normalized_name=report.normalized_name,
        report_count=average.report_count if average else 0,
        average_price=average.avg_price if average else None,
        price=estimate.price,
        confidence=estimate.confidence,
        source=estimate.source,
        source_description=price_source_description(estimate.source),
    )


@router.get("/quota", response_model=QuotaStatusResponse)
async def quota_status(quota: Annotated[QuotaManager, Depends(get_quota_manager)]) -> QuotaStatusResponse:
    """Current monthly usage of the external product search quota."""
    current = quota.status()
    return QuotaStatusResponse(
        used=current.used,
        limit=current.limit,
        remaining=current.remaining,
        percentage=current.percentage,
        status=current.status,
        can_make_request=current.can_make_request and quota.enabled,
        enabled=quota.enabled,
        message=current.message,
    )


@router.get("/ingredient-usage", response_model=IngredientUsageResponse)
async def ingredient_usage(
    usage: Annotated[IngredientUsageTracker, Depends(get_ingredient_usage)],
    most_used_limit: Annotated[int, Query(ge=1, le=500)] = 50,
    unmapped_limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> IngredientUsageResponse:
    """Ingredient frequencies from composed weeks, checked against the product catalog."""
    report = usage.report(most_used_limit=most_used_limit, unmapped_limit=unmapped_limit)

    def frequency(entry: IngredientFrequency) -> IngredientFrequencyResponse:
        return IngredientFrequencyResponse(
            normalized_name=entry.normalized_name,
            display_name=entry.display_name,
            count=entry.count,
            recipes=entry.recipes,
            is_mapped=entry.is_mapped,
        )

    return IngredientUsageResponse(
        total_tracked_recipes=report.total_tracked_recipes,
        total_ingredients=report.total_ingredients,
        mapped_ingredients=report.mapped_ingredients,
        unmapped_ingredients=report.unmapped_ingredients,
        most_used_ingredients=[frequency(e) for e in report.most_used_ingredients],
        unmapped_priority_list=[frequency(e) for e in report.unmapped_priority_list],
        last_updated=report.last_updated,
    )


@router.get("/ingredient-usage/report", response_class=PlainTextResponse)
async def ingredient_usage_report(
    usage: Annotated[IngredientUsageTracker, Depends(get_ingredient_usage)],
) -> str:
    """Plain-text pricing priority report."""
    return usage.priority_report()
