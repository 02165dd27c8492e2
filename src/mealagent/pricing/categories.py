"""Category-based ingredient price estimation."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from mealagent.logging_config import get_logger
from mealagent.normalize.units import COUNT, get_unit_info, normalize_to_base_unit

logger = get_logger(__name__)

MINIMUM_PRICE = 0.10


class IngredientCategory(str, Enum):
    """Pricing category of an ingredient."""

    PROTEIN = "protein"
    SEAFOOD = "seafood"
    VEGETABLES = "vegetables"
    DAIRY = "dairy"
    PANTRY = "pantry"
    HERBS = "herbs"
    SPICES = "spices"
    FRUIT = "fruit"
    BAKERY = "bakery"
    CONDIMENTS = "condiments"


@dataclass(frozen=True)
class CategoryRate:
    """Base price of a category, per kg, litre, bunch or unit."""

    rate: float
    unit: str  # "kg", "l", "bunch", "unit"


# Average supermarket prices in AUD
CATEGORY_BASE_RATES: dict[IngredientCategory, CategoryRate] = {
    IngredientCategory.PROTEIN: CategoryRate(15.00, "kg"),
    IngredientCategory.SEAFOOD: CategoryRate(30.00, "kg"),
    IngredientCategory.VEGETABLES: CategoryRate(5.00, "kg"),
    IngredientCategory.DAIRY: CategoryRate(8.00, "kg"),
    IngredientCategory.PANTRY: CategoryRate(3.00, "kg"),
    IngredientCategory.HERBS: CategoryRate(3.50, "bunch"),
    IngredientCategory.SPICES: CategoryRate(8.00, "unit"),
    IngredientCategory.FRUIT: CategoryRate(6.00, "kg"),
    IngredientCategory.BAKERY: CategoryRate(4.00, "unit"),
    IngredientCategory.CONDIMENTS: CategoryRate(12.00, "l"),
}

# Checked in order, first match wins. Anything else is pantry.
_CATEGORY_PATTERNS: list[tuple[IngredientCategory, re.Pattern[str]]] = [
    (IngredientCategory.PROTEIN, re.compile(r"chicken|beef|pork|lamb|turkey|duck|mince|steak|chop|fillet")),
    (
        IngredientCategory.SEAFOOD,
        re.compile(r"fish|salmon|tuna|prawn|shrimp|crab|lobster|mussel|oyster|calamari|barramundi"),
    ),
    (
        IngredientCategory.DAIRY,
        re.compile(r"milk|cream|cheese|butter|yogurt|yoghurt|sour cream|creme fraiche|mascarpone"),
    ),
    (
        IngredientCategory.SPICES,
        re.compile(r"cumin|paprika|turmeric|cinnamon|nutmeg|cardamom|curry|garam|powder|dried|ground"),
    ),
    (
        IngredientCategory.VEGETABLES,
        re.compile(
            r"onion|garlic|tomato|potato|carrot|capsicum|pepper|broccoli|cauliflower|zucchini|eggplant"
            r"|lettuce|spinach|kale|cabbage|celery|cucumber|mushroom|pumpkin|squash|beetroot|bean|pea"
        ),
    ),
    (
        IngredientCategory.FRUIT,
        re.compile(
            r"apple|banana|orange|lemon|lime|grape|berry|strawberry|blueberry|mango|pineapple|melon"
            r"|peach|pear|plum|cherry|kiwi|avocado"
        ),
    ),
    (IngredientCategory.BAKERY, re.compile(r"bread|roll|bun|pita|tortilla|wrap|baguette|loaf")),
    (IngredientCategory.CONDIMENTS, re.compile(r"oil|vinegar|sauce|paste|mayo|mustard|ketchup|relish|dressing")),
]

_HERB_PATTERN = re.compile(r"basil|parsley|coriander|cilantro|mint|rosemary|thyme|oregano|dill|chives|sage")
_FRESH_HERB_PATTERN = re.compile(r"fresh|bunch")

# Per-item weights used when pricing counted items by weight
_KG_PER_ITEM = 0.1
_KG_PER_BUNCH = 0.035
_KG_FALLBACK = 0.05
_PER_ITEM_UNITS = {"", "unit", "units", "whole", "piece", "pieces", "each", "ea", "pc", "pcs"}
_BUNCH_UNITS = {"bunch", "bunches"}


def categorize_ingredient(ingredient_name: str) -> IngredientCategory:
    """Classify an ingredient into a pricing category by keyword."""
    name = ingredient_name.lower()

    for category, pattern in _CATEGORY_PATTERNS[:3]:
        if pattern.search(name):
            return category

    # Only fresh herbs are priced per bunch
    if _HERB_PATTERN.search(name) and _FRESH_HERB_PATTERN.search(name):
        return IngredientCategory.HERBS

    for category, pattern in _CATEGORY_PATTERNS[3:]:
        if pattern.search(name):
            return category

    return IngredientCategory.PANTRY


def convert_to_kg(quantity: float, unit: str) -> float:
    """
    Convert a quantity to a kilogram equivalent for rate pricing.

    Volumes count as 1 l = 1 kg. Counted items are 100 g each, bunches
    35 g, and anything unrecognized 50 g.
    """
    unit_lower = (unit or "").lower().strip()
    info = get_unit_info(unit_lower)

    if info is not None and info.unit_type != COUNT:
        return normalize_to_base_unit(quantity, unit_lower).quantity / 1000

    if unit_lower in _PER_ITEM_UNITS:
        return quantity * _KG_PER_ITEM

    if unit_lower in _BUNCH_UNITS:
        return quantity * _KG_PER_BUNCH

    return quantity * _KG_FALLBACK


@dataclass
class PriceEstimate:
    """A single price estimate with its provenance."""

    price: float
    confidence: str  # "high", "medium", "low"
    source: str  # "mapped", "scraped", "user", "estimated"
    category: IngredientCategory | None = None
    last_updated: datetime | None = None


def estimate_cost_by_category(
    ingredient_name: str,
    quantity: float,
    unit: str,
    minimum_price: float = MINIMUM_PRICE,
) -> PriceEstimate:
    """
    Estimate an ingredient's cost from its category's base rate.

    Bunch-priced and unit-priced categories are charged per bunch or item
    when the requested unit matches; everything else goes through a kg
    equivalent. Rounded to cents, never below minimum_price.
    """
    category = categorize_ingredient(ingredient_name)
    base = CATEGORY_BASE_RATES[category]
    unit_lower = (unit or "").lower().strip()

    if base.unit == "bunch" and unit_lower in _BUNCH_UNITS:
        price = base.rate * quantity
    elif base.unit == "unit" and unit_lower in _PER_ITEM_UNITS:
        price = base.rate * quantity
    else:
        price = base.rate * convert_to_kg(quantity, unit_lower)

    price = max(minimum_price, round(price, 2))

    logger.debug(f"Category estimate for '{ingredient_name}': {category.value} -> {price:.2f}")

    return PriceEstimate(
        price=price,
        confidence="low",
        source="estimated",
        category=category,
        last_updated=datetime.now(timezone.utc),
    )


@dataclass
class ObservedPrice:
    """A known price and when it was observed."""

    price: float
    last_updated: datetime


@dataclass
class ReportedPrice:
    """Average of recent user price reports."""

    avg_price: float
    report_count: int
    last_updated: datetime


def _is_stale(last_updated: datetime, max_days: int, now: datetime) -> bool:
    return now - last_updated > timedelta(days=max_days)


def get_ingredient_price(
    ingredient_name: str,
    quantity: float,
    unit: str,
    mapped_price: ObservedPrice | None = None,
    scraped_price: ObservedPrice | None = None,
    user_reported_price: ReportedPrice | None = None,
    now: datetime | None = None,
    mapped_max_age_days: int = 30,
    scraped_max_age_days: int = 7,
    user_report_max_age_days: int = 14,
    user_report_min_count: int = 3,
) -> PriceEstimate:
    """
    Pick the most trustworthy price available.

    Priority: fresh mapped price (30 days), fresh scraped price (7 days),
    user reports (3 or more within 14 days), then category estimate.
    """
    now = now or datetime.now(timezone.utc)

    if mapped_price and not _is_stale(mapped_price.last_updated, mapped_max_age_days, now):
        return PriceEstimate(
            price=mapped_price.price,
            confidence="high",
            source="mapped",
            last_updated=mapped_price.last_updated,
        )

    if scraped_price and not _is_stale(scraped_price.last_updated, scraped_max_age_days, now):
        return PriceEstimate(
            price=scraped_price.price,
            confidence="high",
            source="scraped",
            last_updated=scraped_price.last_updated,
        )

    if (
        user_reported_price
        and user_reported_price.report_count >= user_report_min_count
        and not _is_stale(user_reported_price.last_updated, user_report_max_age_days, now)
    ):
        return PriceEstimate(
            price=user_reported_price.avg_price,
            confidence="medium",
            source="user",
            last_updated=user_reported_price.last_updated,
        )

    return estimate_cost_by_category(ingredient_name, quantity, unit)


def confidence_score(estimate: PriceEstimate) -> int:
    """Confidence as a percentage for display."""
    return {"high": 90, "medium": 60, "low": 30}.get(estimate.confidence, 30)


PRICE_SOURCE_DESCRIPTIONS = {
    "mapped": "Verified product price",
    "scraped": "Recent supermarket price",
    "user": "Community reported",
    "estimated": "Estimated price",
}


def price_source_description(source: str) -> str:
    """Human-readable description of a price source."""
    return PRICE_SOURCE_DESCRIPTIONS.get(source, "Estimated price")
