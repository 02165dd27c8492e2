"""Shared service instances for the API, injected with FastAPI Depends."""

from collections.abc import Iterable
from functools import lru_cache

from fastapi import HTTPException, status

from mealagent.collaborators import (
    InMemoryAnalyticsSink,
    InMemoryProductCache,
    InMemoryRecipeCatalog,
    MonthlyQuota,
    QuotaManager,
)
from mealagent.config import get_settings
from mealagent.exceptions import CollaboratorError
from mealagent.logging_config import get_logger
from mealagent.models import Recipe
from mealagent.plan.recency import RecencyTracker
from mealagent.plan.scoring import RecipeScorer, ScoringWeights
from mealagent.pricing.catalog import ProductCatalog, load_default_catalog
from mealagent.pricing.estimator import PriceEstimator
from mealagent.pricing.reports import PriceReportStore
from mealagent.pricing.usage import IngredientUsageTracker

logger = get_logger(__name__)


@lru_cache
def get_product_catalog() -> ProductCatalog:
    settings = get_settings()
    if settings.product_catalog_path:
        return ProductCatalog.from_json_file(settings.product_catalog_path)
    return load_default_catalog()


@lru_cache
def get_recipe_catalog() -> InMemoryRecipeCatalog:
    settings = get_settings()
    if settings.recipe_library_path:
        try:
            return InMemoryRecipeCatalog.from_json_file(settings.recipe_library_path)
        except CollaboratorError as e:
            logger.error(f"Recipe library unavailable, starting with an empty one: {e}")
            return InMemoryRecipeCatalog()
    logger.warning("No recipe library configured, requests must supply their own recipes")
    return InMemoryRecipeCatalog()


def resolve_recipe_catalog(
    recipes: Iterable[Recipe] | None,
    library: InMemoryRecipeCatalog,
) -> InMemoryRecipeCatalog:
    """Use the recipes sent with a request, or the configured library when none were sent."""
    if recipes is not None:
        return InMemoryRecipeCatalog(recipes)

    if len(library) == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No recipe library configured. Include the recipes in the request.",
        )

    return library


@lru_cache
def get_quota_manager() -> QuotaManager:
    settings = get_settings()
    return QuotaManager(MonthlyQuota(limit=settings.api_monthly_limit), enabled=settings.api_enabled)


@lru_cache
def get_product_cache() -> InMemoryProductCache:
    return InMemoryProductCache(ttl_days=get_settings().api_cache_ttl_days)


@lru_cache
def get_price_reports() -> PriceReportStore:
    return PriceReportStore()


@lru_cache
def get_analytics_sink() -> InMemoryAnalyticsSink:
    return InMemoryAnalyticsSink()


@lru_cache
def get_ingredient_usage() -> IngredientUsageTracker:
    return IngredientUsageTracker(get_product_catalog())


@lru_cache
def get_recipe_scorer() -> RecipeScorer:
    return RecipeScorer(ScoringWeights.from_settings(get_settings()))


@lru_cache
def get_recency_tracker() -> RecencyTracker:
    return RecencyTracker(get_settings().repetition_window_weeks)


@lru_cache
def get_price_estimator() -> PriceEstimator:
    """
    Estimator wired to the shared cache, quota and price reports.

    No product search client is configured here, so live prices only come
    from entries already in the cache.
    """
    return PriceEstimator(
        get_product_catalog(),
        cache=get_product_cache(),
        quota=get_quota_manager(),
        reports=get_price_reports(),
        settings=get_settings(),
    )
