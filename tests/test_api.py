"""Tests for the HTTP API."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from mealagent.collaborators import InMemoryRecipeCatalog, MonthlyQuota, QuotaManager
from mealagent.config import Settings
from mealagent.dependencies import (
    get_ingredient_usage,
    get_price_estimator,
    get_price_reports,
    get_quota_manager,
    get_recency_tracker,
    get_recipe_catalog,
    get_recipe_scorer,
)
from mealagent.main import app
from mealagent.plan.recency import RecencyTracker
from mealagent.plan.scoring import RecipeScorer, ScoringWeights
from mealagent.pricing.estimator import PriceEstimator
from mealagent.pricing.reports import PriceReportStore
from mealagent.pricing.usage import IngredientUsageTracker


@pytest.fixture
def client(product_catalog):
    """Test client with fresh per-test service instances."""
    reports = PriceReportStore()
    quota = QuotaManager(MonthlyQuota(limit=1000))
    estimator = PriceEstimator(product_catalog, quota=quota, reports=reports, settings=Settings())

    app.dependency_overrides[get_price_reports] = lambda: reports
    app.dependency_overrides[get_quota_manager] = lambda: quota
    app.dependency_overrides[get_price_estimator] = lambda: estimator
    app.dependency_overrides[get_recency_tracker] = lambda: RecencyTracker()
    app.dependency_overrides[get_recipe_catalog] = lambda: InMemoryRecipeCatalog()
    usage = IngredientUsageTracker(product_catalog)
    app.dependency_overrides[get_ingredient_usage] = lambda: usage

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def recipes_json(sample_recipes):
    """Sample recipes as request payloads."""
    return [recipe.model_dump(mode="json") for recipe in sample_recipes]


def _plan_json(*recipe_ids: str) -> dict:
    return {
        "start_iso": "2025-11-03",
        "days": [
            {"date_iso": f"2025-11-0{3 + i}", "recipe_id": recipe_id, "scaled_servings": 4}
            for i, recipe_id in enumerate(recipe_ids)
        ],
    }


# =============================================================================
# Health Tests
# =============================================================================


def test_health_check(client) -> None:
    """Test basic health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "mealagent-api"}


def test_root_endpoint(client) -> None:
    """Test root endpoint returns API info."""
    response = client.get("/")
    assert response.status_code == 200

    data = response.json()
    assert data["name"] == "Mealagent API"
    assert "version" in data
    assert data["docs"] == "/docs"


def test_request_id_header(client) -> None:
    """Test the request id is echoed back."""
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


# =============================================================================
# Plan Tests
# =============================================================================


class TestPlanEndpoints:
    """Tests for ranking and composition endpoints."""

    def test_rank(self, client, recipes_json):
        """Test candidates are ranked with chips and filtered ones dropped."""
        by_id = {r["id"]: r for r in recipes_json}
        response = client.post(
            "/api/v1/plans/rank",
            json={
                "candidates": [by_id["lamb-roast"], by_id["chicken-stir-fry"]],
                "household": {"favorites": ["chicken-stir-fry"]},
            },
        )

        assert response.status_code == 200
        ranked = response.json()
        assert [r["recipe_id"] for r in ranked] == ["chicken-stir-fry"]
        assert "favorite" in ranked[0]["reasons"]
        assert ranked[0]["chips"][0] == "Your favorite"

    def test_rank_uses_configured_time_limit(self, client, recipes_json):
        """Test the weeknight time limit comes from settings."""
        settings = Settings(weeknight_max_time_mins=20)
        app.dependency_overrides[get_recipe_scorer] = lambda: RecipeScorer(ScoringWeights.from_settings(settings))
        by_id = {r["id"]: r for r in recipes_json}

        response = client.post(
            "/api/v1/plans/rank",
            json={"candidates": [by_id["chicken-stir-fry"], by_id["pork-tacos"]]},
        )

        assert [r["recipe_id"] for r in response.json()] == ["pork-tacos"]

    def test_rank_validation(self, client):
        """Test top_n is bounded."""
        response = client.post("/api/v1/plans/rank", json={"candidates": [], "top_n": 0})
        assert response.status_code == 422

    def test_compose_with_inline_recipes(self, client, recipes_json):
        """Test composing a week from recipes given in the request."""
        response = client.post(
            "/api/v1/plans/compose",
            json={"recipes": recipes_json, "overrides": {"week_of_iso": "2025-11-03", "dinners": 5}},
        )

        assert response.status_code == 200
        plan = response.json()
        assert plan["start_iso"] == "2025-11-03"
        assert [d["recipe_id"] for d in plan["days"]] == [
            "beef-bolognese",
            "beef-bolognese",
            "veggie-curry",
            "chicken-stir-fry",
            "salmon-traybake",
        ]
        assert plan["days"][1]["is_leftover"] is True
        assert plan["cost_estimate"] == 60.0

    def test_compose_empty_library(self, client):
        """Test an empty library gives conflicts, not an error."""
        response = client.post(
            "/api/v1/plans/compose",
            json={"recipes": [], "overrides": {"week_of_iso": "2025-11-03", "dinners": 1}},
        )

        assert response.status_code == 200
        assert response.json()["conflicts"] == ["No suitable recipes found for day 1"]

    def test_compose_without_library(self, client):
        """Test composing without recipes or a configured library is a client error."""
        response = client.post("/api/v1/plans/compose", json={"overrides": {"dinners": 3}})

        assert response.status_code == 400
        assert "No recipe library configured" in response.json()["detail"]

    def test_compose_with_configured_library(self, client, recipe_catalog):
        """Test the configured library is used when no recipes are sent."""
        app.dependency_overrides[get_recipe_catalog] = lambda: recipe_catalog

        response = client.post(
            "/api/v1/plans/compose",
            json={"overrides": {"week_of_iso": "2025-11-03", "dinners": 3}},
        )

        assert response.status_code == 200
        days = response.json()["days"]
        assert len(days) == 3
        assert all(recipe_catalog.get_recipe_by_id(d["recipe_id"]) for d in days)

    def test_compose_when_usage_tracking_fails(self, client, recipes_json):
        """Test a broken usage tracker does not fail composition."""
        usage = MagicMock()
        usage.track_plan.side_effect = RuntimeError("tracker down")
        app.dependency_overrides[get_ingredient_usage] = lambda: usage

        response = client.post(
            "/api/v1/plans/compose",
            json={"recipes": recipes_json, "overrides": {"week_of_iso": "2025-11-03", "dinners": 3}},
        )

        assert response.status_code == 200
        assert len(response.json()["days"]) == 3
        usage.track_plan.assert_called_once()


# =============================================================================
# Shopping List Tests
# =============================================================================


class TestShoppingListEndpoints:
    """Tests for shopping list endpoints."""

    def test_aggregate(self, client, recipes_json):
        """Test a plan is aggregated into sorted, merged lines."""
        response = client.post(
            "/api/v1/shopping-list",
            json={"plan": _plan_json("beef-bolognese", "veggie-curry"), "recipes": recipes_json},
        )

        assert response.status_code == 200
        items = response.json()["items"]
        assert [i["category"] for i in items] == [
            "Dairy & Eggs",
            "Fresh Produce",
            "Fresh Produce",
            "Meat & Seafood",
            "Other",
            "Pantry",
        ]
        onion = next(i for i in items if i["normalized_name"] == "onion")
        assert onion["total_qty"] == 2
        assert len(onion["source_recipes"]) == 2
        assert response.json()["total_cost"] is None

    def test_priced(self, client, recipes_json):
        """Test prices and totals are added on request."""
        response = client.post(
            "/api/v1/shopping-list",
            json={
                "plan": _plan_json("beef-bolognese", "veggie-curry"),
                "recipes": recipes_json,
                "include_prices": True,
                "live_prices": False,
            },
        )

        data = response.json()
        assert data["total_cost"] == 16.2
        assert data["matched_items_count"] == 2
        assert data["unmatched_items_count"] == 4

        beef = next(i for i in data["items"] if i["normalized_name"] == "beef mince")
        assert beef["estimated_cost"] == 6.5
        assert beef["product_name"] == "Beef Mince 500g"
        assert beef["price_source"] == "static"

    def test_priced_with_pantry(self, client, recipes_json):
        """Test pantry staples are listed but not costed."""
        response = client.post(
            "/api/v1/shopping-list",
            json={
                "plan": _plan_json("beef-bolognese"),
                "recipes": recipes_json,
                "pantry_staples": ["pasta"],
                "include_prices": True,
            },
        )

        data = response.json()
        pasta = next(i for i in data["items"] if i["normalized_name"] == "pasta")
        assert pasta["is_pantry_staple"] is True
        assert pasta["estimated_cost"] is None
        assert data["matched_items_count"] == 1

    def test_csv(self, client, recipes_json):
        """Test CSV export leaves out pantry staples."""
        response = client.post(
            "/api/v1/shopping-list/csv",
            json={
                "plan": _plan_json("beef-bolognese"),
                "recipes": recipes_json,
                "pantry_items": [{"name": "spaghetti pasta"}, {"name": "Pasta"}],
            },
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0] == '"Category","Qty","Unit","Item"'
        assert len(lines) == 4
        assert not any("pasta" in line for line in lines[1:])

    def test_without_recipes(self, client):
        """Test a plan without recipes or a library is a client error."""
        response = client.post("/api/v1/shopping-list", json={"plan": _plan_json("beef-bolognese")})
        assert response.status_code == 400

    def test_invalid_plan(self, client):
        """Test malformed plans are rejected."""
        response = client.post("/api/v1/shopping-list", json={"plan": {"days": []}})
        assert response.status_code == 422


# =============================================================================
# Pricing Tests
# =============================================================================


class TestPricingEndpoints:
    """Tests for pricing endpoints."""

    def test_estimate_static(self, client):
        """Test estimating a mapped ingredient from the catalog."""
        response = client.post(
            "/api/v1/pricing/estimate",
            json={"name": "Chicken Breast, skinless", "qty": 800, "unit": "g", "live": False},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["normalized_name"] == "chicken breast"
        assert data["estimated_cost"] == 14.0
        assert data["product"]["sku"] == "CHK-1KG"
        assert data["live_price"] is False

    def test_estimate_live_without_search(self, client):
        """Test the live chain falls back to a category estimate."""
        response = client.post(
            "/api/v1/pricing/estimate",
            json={"name": "unmapped-exotic-item", "qty": 200, "unit": "g"},
        )

        data = response.json()
        assert data["mapped"] is False
        assert data["price_source"] == "category"
        assert data["estimated_cost"] == 0.6
        assert data["product"] is None

    def test_estimate_validation(self, client):
        """Test empty names and negative quantities are rejected."""
        assert client.post("/api/v1/pricing/estimate", json={"name": "", "qty": 1}).status_code == 422
        assert client.post("/api/v1/pricing/estimate", json={"name": "salt", "qty": -1}).status_code == 422

    def test_price_reports(self, client):
        """Test user reports become the best estimate once there are enough."""
        payload = {"ingredient_name": "Beef mince", "price": 6.0, "quantity": 500, "unit": "g"}

        first = client.post("/api/v1/pricing/reports", json=payload)
        assert first.status_code == 201
        assert first.json()["report_count"] == 1
        assert first.json()["source"] == "estimated"

        client.post("/api/v1/pricing/reports", json=payload)
        third = client.post("/api/v1/pricing/reports", json=payload).json()

        assert third["report_count"] == 3
        assert third["average_price"] == 6.0
        assert third["source"] == "user"
        assert third["source_description"] == "Community reported"

    def test_quota(self, client):
        """Test the quota status endpoint."""
        response = client.get("/api/v1/pricing/quota")

        assert response.status_code == 200
        data = response.json()
        assert data["used"] == 0
        assert data["limit"] == 1000
        assert data["status"] == "ok"
        assert data["enabled"] is True

    def test_ingredient_usage_empty(self, client):
        """Test usage before any week is composed."""
        response = client.get("/api/v1/pricing/ingredient-usage")

        assert response.status_code == 200
        data = response.json()
        assert data["total_ingredients"] == 0
        assert data["unmapped_priority_list"] == []
        assert data["last_updated"] is None

    def test_ingredient_usage_after_compose(self, client, recipes_json):
        """Test composed weeks feed ingredient usage, leftover days excluded."""
        client.post(
            "/api/v1/plans/compose",
            json={"recipes": recipes_json, "overrides": {"week_of_iso": "2025-11-03", "dinners": 5}},
        )

        response = client.get("/api/v1/pricing/ingredient-usage", params={"most_used_limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["total_tracked_recipes"] == 4
        assert data["total_ingredients"] == 12
        assert data["mapped_ingredients"] == 3
        assert len(data["most_used_ingredients"]) == 5
        assert data["unmapped_priority_list"][0] == {
            "normalized_name": "onion",
            "display_name": "onion",
            "count": 2,
            "recipes": ["beef-bolognese", "veggie-curry"],
            "is_mapped": False,
        }

    def test_ingredient_usage_validation(self, client):
        """Test list limits are validated."""
        response = client.get("/api/v1/pricing/ingredient-usage", params={"unmapped_limit": 0})

        assert response.status_code == 422

    def test_ingredient_usage_report(self, client, recipes_json):
        """Test the plain-text priority report."""
        client.post(
            "/api/v1/plans/compose",
            json={"recipes": recipes_json, "overrides": {"week_of_iso": "2025-11-03", "dinners": 5}},
        )

        response = client.get("/api/v1/pricing/ingredient-usage/report")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "Total tracked recipes: 4" in response.text
        assert "Mapped in product catalog: 3 (25%)" in response.text
