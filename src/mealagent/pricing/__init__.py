"""Ingredient pricing: categories, static catalog, product search, the tiered estimator and ingredient usage."""

from mealagent.pricing.catalog import (
    IngredientMapping,
    Product,
    ProductCatalog,
    load_default_catalog,
)
from mealagent.pricing.categories import (
    IngredientCategory,
    PriceEstimate,
    categorize_ingredient,
    estimate_cost_by_category,
    get_ingredient_price,
)
from mealagent.pricing.estimator import PriceEstimator, estimate_ingredient_cost_with_api
from mealagent.pricing.reports import PriceReport, PriceReportStore
from mealagent.pricing.search_terms import calculate_match_score, generate_search_term, rank_search_results
from mealagent.pricing.selection import CostEstimate, estimate_ingredient_cost, select_best_product
from mealagent.pricing.usage import IngredientFrequency, IngredientUsageReport, IngredientUsageTracker

__all__ = [
    "CostEstimate",
    "IngredientCategory",
    "IngredientFrequency",
    "IngredientMapping",
    "IngredientUsageReport",
    "IngredientUsageTracker",
    "PriceEstimate",
    "PriceEstimator",
    "PriceReport",
    "PriceReportStore",
    "Product",
    "ProductCatalog",
    "calculate_match_score",
    "categorize_ingredient",
    "estimate_cost_by_category",
    "estimate_ingredient_cost",
    "estimate_ingredient_cost_with_api",
    "generate_search_term",
    "get_ingredient_price",
    "load_default_catalog",
    "rank_search_results",
    "select_best_product",
]
