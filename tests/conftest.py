"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest

from mealagent.collaborators import InMemoryRecipeCatalog
from mealagent.models import Household, Ingredient, PlanDay, PlanWeek, Recipe, RecipeSource
from mealagent.pricing.catalog import IngredientMapping, Product, ProductCatalog

# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow running")


# =============================================================================
# Recipe Fixtures
# =============================================================================


def make_recipe(
    recipe_id: str,
    ingredients: list[tuple[str, float, str]] | None = None,
    tags: list[str] | None = None,
    time_mins: int | None = 30,
    serves: int | None = 4,
    cost_per_serve_est: float | None = None,
    chef: str = "",
    title: str | None = None,
) -> Recipe:
    """Build a recipe from (name, qty, unit) tuples."""
    return Recipe(
        id=recipe_id,
        title=title or recipe_id.replace("-", " ").title(),
        ingredients=[Ingredient(name=name, qty=qty, unit=unit) for name, qty, unit in (ingredients or [])],
        tags=tags or [],
        time_mins=time_mins,
        serves=serves,
        cost_per_serve_est=cost_per_serve_est,
        source=RecipeSource(chef=chef) if chef else None,
    )


@pytest.fixture
def recipe_factory():
    """Factory for building recipes in tests."""
    return make_recipe


@pytest.fixture
def household():
    """Household without dietary constraints."""
    return Household(id="test-household")


@pytest.fixture
def kid_household():
    """Household that needs kid-friendly weeknight dinners."""
    return Household(id="kid-household", diet={"kid_friendly": True})


@pytest.fixture
def sample_recipes():
    """A small recipe library covering weeknight, weekend and bulk-cook recipes."""
    return [
        make_recipe(
            "chicken-stir-fry",
            [("chicken breast", 500, "g"), ("brown onion, diced", 1, "unit"), ("soy sauce", 3, "tbsp")],
            tags=["chicken", "kid_friendly"],
            time_mins=25,
            cost_per_serve_est=3.5,
            chef="Nagi",
        ),
        make_recipe(
            "beef-bolognese",
            [("beef mince", 500, "g"), ("onion", 1, "unit"), ("pasta", 400, "g"), ("crushed tomatoes", 400, "g")],
            tags=["beef", "bulk_cook", "kid_friendly"],
            time_mins=35,
            cost_per_serve_est=3.0,
            chef="Nagi",
        ),
        make_recipe(
            "salmon-traybake",
            [("salmon fillets", 4, "fillet"), ("potato", 600, "g"), ("lemon", 1, "unit")],
            tags=["fish", "kid_friendly"],
            time_mins=30,
            cost_per_serve_est=6.0,
            chef="Jamie",
        ),
        make_recipe(
            "pork-tacos",
            [("pork mince", 500, "g"), ("tortilla", 8, "unit"), ("cheese", 100, "g")],
            tags=["pork", "kid_friendly"],
            time_mins=20,
            cost_per_serve_est=3.8,
        ),
        make_recipe(
            "lamb-roast",
            [("lamb leg", 1.5, "kg"), ("potato", 800, "g"), ("rosemary", 1, "bunch")],
            tags=["lamb"],
            time_mins=120,
            cost_per_serve_est=7.0,
            chef="Jamie",
        ),
        make_recipe(
            "veggie-curry",
            [("chickpea", 400, "g"), ("coconut milk", 400, "ml"), ("onion", 1, "unit")],
            tags=["vegetarian", "kid_friendly"],
            time_mins=30,
            cost_per_serve_est=2.5,
        ),
        make_recipe(
            "chicken-pie",
            [("chicken thigh", 600, "g"), ("puff pastry", 2, "sheet"), ("milk", 250, "ml")],
            tags=["chicken"],
            time_mins=75,
            cost_per_serve_est=4.5,
        ),
    ]


@pytest.fixture
def recipe_catalog(sample_recipes):
    """In-memory recipe catalog over the sample recipes."""
    return InMemoryRecipeCatalog(sample_recipes)


# =============================================================================
# Product Catalog Fixtures
# =============================================================================


@pytest.fixture
def product_catalog():
    """Small product catalog for pricing tests."""
    return ProductCatalog(
        [
            IngredientMapping(
                normalized_name="chicken breast",
                products=[
                    Product(sku="CHK-500", name="Chicken Breast 500g", pack_size=500, pack_unit="g", price=7.5),
                    Product(sku="CHK-1KG", name="Chicken Breast 1kg", pack_size=1000, pack_unit="g", price=14.0),
                ],
                confidence="high",
            ),
            IngredientMapping(
                normalized_name="beef mince",
                products=[
                    Product(
                        sku="BEEF-500",
                        name="Beef Mince 500g",
                        pack_size=500,
                        pack_unit="g",
                        price=6.5,
                        last_updated=date(2025, 10, 27),
                    )
                ],
                confidence="high",
            ),
            IngredientMapping(
                normalized_name="pasta",
                products=[Product(sku="PASTA-500", name="Spaghetti 500g", pack_size=500, pack_unit="g", price=1.5)],
                confidence="medium",
                requires_choice=True,
            ),
            IngredientMapping(
                normalized_name="milk",
                products=[Product(sku="MILK-2L", name="Milk 2L", pack_size=2, pack_unit="l", price=3.4)],
                confidence="high",
            ),
            IngredientMapping(
                normalized_name="egg",
                products=[Product(sku="EGG-12", name="Eggs 12 pack", pack_size=12, pack_unit="unit", price=7.5)],
                confidence="high",
            ),
        ]
    )


# =============================================================================
# Plan Fixtures
# =============================================================================


@pytest.fixture
def make_plan():
    """Factory for week plans from (recipe_id, servings) pairs."""

    def _make_plan(*entries: tuple[str, int], start: date = date(2025, 11, 3)) -> PlanWeek:
        return PlanWeek(
            start_iso=start,
            days=[
                PlanDay(date_iso=date.fromordinal(start.toordinal() + i), recipe_id=recipe_id, scaled_servings=servings)
                for i, (recipe_id, servings) in enumerate(entries)
            ],
        )

    return _make_plan
