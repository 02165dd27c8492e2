"""Shopping list generation from week plans."""

import csv
import io
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from mealagent.collaborators import AnalyticsSink, BestEffortAnalytics, RecipeCatalog
from mealagent.exceptions import InvalidWeekPlanError
from mealagent.logging_config import get_logger
from mealagent.models import PantryItem, PlanDay, PlanWeek
from mealagent.normalize.names import normalize_ingredient_name
from mealagent.normalize.units import format_for_display, normalize_to_base_unit
from mealagent.pricing.estimator import PriceEstimator
from mealagent.pricing.selection import CostEstimate

logger = get_logger(__name__)

DEFAULT_RECIPE_SERVES = 4
INGREDIENT_REUSED_EVENT = "ingredient_reused"

# Checked in order, first match wins
GROCERY_CATEGORIES: list[tuple[str, re.Pattern[str]]] = [
    ("Meat & Seafood", re.compile(r"chicken|beef|pork|lamb|fish|salmon|tuna|prawns|shrimp|mince|bacon|sausage")),
    ("Dairy & Eggs", re.compile(r"milk|cream|cheese|yogh?urt|butter|egg")),
    (
        "Fresh Produce",
        re.compile(
            r"tomato|onion|garlic|carrot|potato|lettuce|cucumber|capsicum|pepper|zucchini|mushroom"
            r"|spinach|broccoli|cauliflower|lemon|lime|ginger|herb|coriander|parsley|basil"
        ),
    ),
    ("Pantry", re.compile(r"pasta|rice|noodle|flour|sugar|salt|oil|vinegar|sauce|stock|spice")),
    ("Canned & Packaged", re.compile(r"canned|tinned|jar|packet")),
    ("Bakery", re.compile(r"bread|bun|roll|wrap|tortilla")),
    ("Frozen", re.compile(r"frozen")),
]
OTHER_CATEGORY = "Other"

COMMON_PANTRY_STAPLES = (
    "salt",
    "pepper",
    "olive oil",
    "vegetable oil",
    "flour",
    "sugar",
    "baking powder",
    "baking soda",
    "vinegar",
    "soy sauce",
    "water",
)


def categorize_grocery_item(name: str) -> str:
    """Map an ingredient name to its supermarket section."""
    lowered = name.lower()
    for category, pattern in GROCERY_CATEGORIES:
        if pattern.search(lowered):
            return category
    return OTHER_CATEGORY


# =============================================================================
# Pantry preferences
# =============================================================================


class PantryPreferences:
    """
    Standing set of ingredients the household always keeps in stock.

    Names are stored normalized so they line up with shopping list keys.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: set[str] = set()
        for name in names:
            self.add(name)

    @classmethod
    def with_common_staples(cls) -> "PantryPreferences":
        return cls(COMMON_PANTRY_STAPLES)

    def add(self, name: str) -> None:
        normalized = normalize_ingredient_name(name)
        if normalized:
            self._names.add(normalized)

    def remove(self, name: str) -> None:
        self._names.discard(normalize_ingredient_name(name))

    def contains(self, name: str) -> bool:
        return normalize_ingredient_name(name) in self._names

    def export(self) -> list[str]:
        return sorted(self._names)

    def clear(self) -> None:
        self._names.clear()

    def __len__(self) -> int:
        return len(self._names)


# =============================================================================
# Aggregation
# =============================================================================


@dataclass
class SourceRecipe:
    """Contribution of one planned recipe to an aggregated ingredient."""

    recipe_id: str
    recipe_title: str
    qty: float


@dataclass
class AggregatedIngredient:
    """One shopping list line, summed across the week."""

    name: str
    normalized_name: str
    total_qty: float
    unit: str
    category: str
    source_recipes: list[SourceRecipe] = field(default_factory=list)
    is_pantry_staple: bool = False

    # Unrounded total in the base unit, kept for pricing
    base_qty: float = 0.0
    base_unit: str = ""


@dataclass
class FlatIngredientRow:
    """Flat export row for CSV and older consumers."""

    name: str
    quantity: float
    unit: str
    category: str


def _coerce_plan(plan: Any) -> PlanWeek:
    if isinstance(plan, PlanWeek):
        return plan
    if isinstance(plan, dict):
        return PlanWeek.model_validate(plan)
    raise InvalidWeekPlanError(f"Expected a week plan, got {type(plan).__name__}")


def _is_leftover_day(day: PlanDay) -> bool:
    return day.is_leftover or "leftover" in (day.notes or "").lower()


def aggregate_shopping_list(
    plan: PlanWeek | dict,
    catalog: RecipeCatalog,
    pantry_items: Iterable[PantryItem] | None = None,
    pantry_preferences: PantryPreferences | None = None,
    analytics: AnalyticsSink | None = None,
) -> list[AggregatedIngredient]:
    """
    Fold a week plan into one deduplicated list of ingredients.

    Quantities are scaled to each day's servings and summed in base units
    per normalized name. A name seen in two unit families gets a second,
    unit-qualified entry instead of a forced conversion. Pantry items are
    flagged, never dropped.

    Raises:
        InvalidWeekPlanError: If the plan is not a week plan at all.
        ValidationError: If a dict plan does not validate.
    """
    week = _coerce_plan(plan)

    on_hand = {normalize_ingredient_name(item.name) for item in (pantry_items or ())}
    on_hand.discard("")

    entries: dict[str, AggregatedIngredient] = {}

    for day in week.days:
        if _is_leftover_day(day):
            continue

        recipe = catalog.get_recipe_by_id(day.recipe_id)
        if recipe is None:
            logger.debug(f"Recipe {day.recipe_id} not found, skipping {day.date_iso}")
            continue

        scale_factor = day.scaled_servings / (recipe.serves or DEFAULT_RECIPE_SERVES)

        for ingredient in recipe.ingredients:
            if not ingredient.name:
                continue

            normalized_name = normalize_ingredient_name(ingredient.name)
            if not normalized_name:
                logger.warning(f"Ingredient '{ingredient.name}' in recipe {recipe.id} is empty after normalization")
                continue

            is_pantry = normalized_name in on_hand or (
                pantry_preferences is not None and pantry_preferences.contains(normalized_name)
            )

            scaled_qty = ingredient.qty * scale_factor
            base = normalize_to_base_unit(scaled_qty, ingredient.unit)
            source = SourceRecipe(recipe_id=recipe.id, recipe_title=recipe.title, qty=scaled_qty)

            key = normalized_name
            existing = entries.get(key)
            if existing is not None and existing.base_unit != base.unit:
                key = f"{normalized_name}_{base.unit}"
                existing = entries.get(key)

            if existing is not None:
                existing.base_qty += base.quantity
                existing.source_recipes.append(source)
                existing.is_pantry_staple = existing.is_pantry_staple or is_pantry
                continue

            entries[key] = AggregatedIngredient(
                name=ingredient.name,
                normalized_name=normalized_name,
                total_qty=0.0,
                unit=base.unit,
                category=categorize_grocery_item(ingredient.name),
                source_recipes=[source],
                is_pantry_staple=is_pantry,
                base_qty=base.quantity,
                base_unit=base.unit,
            )

    tracker = BestEffortAnalytics(analytics)
    aggregated = list(entries.values())

    for item in aggregated:
        display = format_for_display(item.base_qty, item.base_unit)
        item.total_qty = round(display.quantity, 1)
        item.unit = display.unit

        if len(item.source_recipes) >= 2:
            tracker.track(
                INGREDIENT_REUSED_EVENT,
                {
                    "ingredient": item.normalized_name,
                    "recipe_count": len(item.source_recipes),
                    "total_quantity": item.total_qty,
                    "packs_saved": len(item.source_recipes) - 1,
                },
            )

    aggregated.sort(key=lambda item: (item.category, item.name.lower()))

    logger.info(f"Aggregated {len(aggregated)} ingredients from {len(week.days)} planned days")
    return aggregated


def to_legacy_format(aggregated: Iterable[AggregatedIngredient]) -> list[FlatIngredientRow]:
    return [
        FlatIngredientRow(name=item.name, quantity=item.total_qty, unit=item.unit, category=item.category)
        for item in aggregated
    ]


def generate_shopping_list_csv(rows: Iterable[FlatIngredientRow]) -> str:
    """
    Render flat rows as CSV with a Category, Qty, Unit, Item header.

    Rows are grouped by category in alphabetical order, keeping their order
    within a category.
    """
    grouped: dict[str, list[FlatIngredientRow]] = {}
    for row in rows:
        grouped.setdefault(row.category or OTHER_CATEGORY, []).append(row)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(["Category", "Qty", "Unit", "Item"])

    for category in sorted(grouped):
        for row in grouped[category]:
            writer.writerow([category, row.quantity, row.unit, row.name])

    return buffer.getvalue()


# =============================================================================
# Priced shopping list
# =============================================================================


@dataclass
class ShoppingItem:
    """A single item in the priced shopping list."""

    ingredient: AggregatedIngredient
    cost: CostEstimate | None = None

    @property
    def name(self) -> str:
        return self.ingredient.name

    @property
    def category(self) -> str:
        return self.ingredient.category

    @property
    def price(self) -> float | None:
        return self.cost.estimated_cost if self.cost else None

    @property
    def is_matched(self) -> bool:
        """Whether the price came from a real product rather than a category estimate."""
        return self.cost is not None and self.cost.mapped


@dataclass
class ShoppingList:
    """Priced shopping list for a week plan."""

    items: list[ShoppingItem] = field(default_factory=list)

    # Computed totals
    total_cost: float = 0.0
    pantry_items_count: int = 0
    matched_items_count: int = 0
    unmatched_items_count: int = 0
    live_priced_count: int = 0

    items_by_category: dict[str, list[ShoppingItem]] = field(default_factory=dict)

    def add_item(self, item: ShoppingItem) -> None:
        """Add an item and update computed fields. Pantry staples are listed but not costed."""
        self.items.append(item)
        self.items_by_category.setdefault(item.category, []).append(item)

        if item.ingredient.is_pantry_staple:
            self.pantry_items_count += 1
            return

        if item.price is not None:
            self.total_cost = round(self.total_cost + item.price, 2)

        if item.is_matched:
            self.matched_items_count += 1
        else:
            self.unmatched_items_count += 1

        if item.cost is not None and item.cost.live_price:
            self.live_priced_count += 1


class ShoppingListPricer:
    """Prices aggregated ingredients through the tiered estimator."""

    def __init__(self, estimator: PriceEstimator, use_live_prices: bool = True):
        self.estimator = estimator
        self.use_live_prices = use_live_prices

    async def price(self, aggregated: Iterable[AggregatedIngredient]) -> ShoppingList:
        shopping_list = ShoppingList()

        for ingredient in aggregated:
            if ingredient.is_pantry_staple:
                shopping_list.add_item(ShoppingItem(ingredient=ingredient))
                continue

            # Base units only; display units would skew pack counts
            if self.use_live_prices:
                cost = await self.estimator.estimate_ingredient_cost_with_api(
                    ingredient.normalized_name, ingredient.base_qty, ingredient.base_unit
                )
            else:
                cost = self.estimator.estimate_ingredient_cost(
                    ingredient.normalized_name, ingredient.base_qty, ingredient.base_unit
                )

            shopping_list.add_item(ShoppingItem(ingredient=ingredient, cost=cost))

        logger.info(
            f"Priced shopping list: {len(shopping_list.items)} items, "
            f"{shopping_list.matched_items_count} matched, "
            f"total cost: {shopping_list.total_cost:.2f}"
        )
        return shopping_list

