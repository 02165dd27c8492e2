"""Unit tests for ingredient usage analytics."""

import json
from datetime import date, datetime, timezone

import pytest

from mealagent.collaborators import InMemoryRecipeCatalog
from mealagent.models import PlanDay, PlanWeek
from mealagent.pricing.usage import IngredientUsageTracker

NOW = datetime(2025, 11, 3, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def tracker(product_catalog):
    """Tracker over the test product catalog with a fixed clock."""
    return IngredientUsageTracker(product_catalog, clock=lambda: NOW)


# =============================================================================
# Tracking Tests
# =============================================================================


class TestTrackRecipes:
    """Tests for counting ingredient lines."""

    def test_counts_every_line(self, tracker, recipe_factory):
        """Test each ingredient line counts, but a recipe is listed once per ingredient."""
        recipe = recipe_factory("soup", [("onion", 1, "unit"), ("Onion (extra)", 1, "unit"), ("stock", 1, "l")])

        assert tracker.track_recipes([recipe]) == 1

        onion = next(e for e in tracker.report().most_used_ingredients if e.normalized_name == "onion")
        assert onion.count == 2
        assert onion.recipes == ["soup"]

    def test_keeps_first_spelling(self, tracker, recipe_factory):
        """Test the display name is the first spelling seen."""
        tracker.track_recipes([recipe_factory("a", [("Fresh Chicken Breast", 500, "g")])])
        tracker.track_recipes([recipe_factory("b", [("chicken breast, sliced", 300, "g")])])

        entry = tracker.report().most_used_ingredients[0]
        assert entry.normalized_name == "chicken breast"
        assert entry.display_name == "Fresh Chicken Breast"
        assert entry.count == 2
        assert entry.recipes == ["a", "b"]

    def test_mapped_against_catalog(self, tracker, recipe_factory):
        """Test ingredients are marked mapped only when the catalog has them."""
        tracker.track_recipes([recipe_factory("r", [("beef mince", 500, "g"), ("saffron", 1, "pinch")])])

        mapped = {e.normalized_name: e.is_mapped for e in tracker.report().most_used_ingredients}
        assert mapped == {"beef mince": True, "saffron": False}

    def test_skips_empty_names(self, tracker, recipe_factory):
        """Test lines that normalize to nothing are not tracked."""
        tracker.track_recipes([recipe_factory("r", [("(optional)", 1, "unit"), ("salt", 1, "pinch")])])

        assert [e.normalized_name for e in tracker.report().most_used_ingredients] == ["salt"]

    def test_timestamps_from_clock(self, tracker, recipe_factory):
        """Test first and last seen come from the clock."""
        tracker.track_recipes([recipe_factory("r", [("salt", 1, "pinch")])])

        entry = tracker.report().most_used_ingredients[0]
        assert entry.first_seen == NOW
        assert entry.last_seen == NOW
        assert tracker.report().last_updated == NOW


class TestTrackPlan:
    """Tests for tracking a composed week."""

    def test_skips_leftovers_and_unknown_recipes(self, tracker, recipe_catalog):
        """Test only cooked, known recipes are tracked."""
        plan = PlanWeek(
            start_iso=date(2025, 11, 3),
            days=[
                PlanDay(date_iso=date(2025, 11, 3), recipe_id="veggie-curry"),
                PlanDay(date_iso=date(2025, 11, 4), recipe_id="veggie-curry", is_leftover=True),
                PlanDay(date_iso=date(2025, 11, 5), recipe_id="no-such-recipe"),
                PlanDay(date_iso=date(2025, 11, 6), recipe_id=" "),
            ],
        )

        assert tracker.track_plan(plan, recipe_catalog) == 1

        report = tracker.report()
        assert report.total_tracked_recipes == 1
        assert {e.normalized_name: e.count for e in report.most_used_ingredients} == {
            "chickpea": 1,
            "coconut milk": 1,
            "onion": 1,
        }

    def test_empty_plan(self, tracker):
        """Test an empty plan tracks nothing."""
        plan = PlanWeek(start_iso=date(2025, 11, 3))

        assert tracker.track_plan(plan, InMemoryRecipeCatalog()) == 0
        assert tracker.report().total_ingredients == 0


# =============================================================================
# Report Tests
# =============================================================================


class TestReport:
    """Tests for usage summaries."""

    @pytest.fixture
    def tracked(self, tracker, sample_recipes):
        tracker.track_recipes(sample_recipes)
        return tracker

    def test_totals(self, tracked):
        """Test totals across the sample library."""
        report = tracked.report()

        assert report.total_tracked_recipes == 7
        assert report.mapped_ingredients == 4
        assert report.unmapped_ingredients == report.total_ingredients - 4

    def test_sorted_by_count(self, tracked):
        """Test most used first, ties in first-seen order."""
        counts = [e.count for e in tracked.report().most_used_ingredients]

        assert counts == sorted(counts, reverse=True)
        assert [e.normalized_name for e in tracked.report().most_used_ingredients[:2]] == ["onion", "potato"]

    def test_unmapped_priority(self, tracked):
        """Test the priority list only holds unmapped ingredients."""
        unmapped = tracked.report().unmapped_priority_list

        assert unmapped[0].normalized_name == "onion"
        assert not any(e.is_mapped for e in unmapped)

    def test_limits(self, tracked):
        """Test list limits are applied."""
        report = tracked.report(most_used_limit=3, unmapped_limit=1)

        assert len(report.most_used_ingredients) == 3
        assert len(report.unmapped_priority_list) == 1

    def test_priority_report(self, tracked):
        """Test the text report lists unmapped ingredients by rank."""
        text = tracked.priority_report(top_unmapped=5, top_used=3)

        assert text.startswith("=== INGREDIENT PRICING PRIORITY REPORT ===")
        assert "Total tracked recipes: 7" in text
        assert "=== TOP 5 UNMAPPED INGREDIENTS ===" in text
        assert "   1 |     2 | onion" in text
        assert "=== TOP 3 MOST USED INGREDIENTS ===" in text

    def test_priority_report_when_empty(self, tracker):
        """Test an empty tracker still reports."""
        text = tracker.priority_report()

        assert "Mapped in product catalog: 0 (0%)" in text
        assert "Last updated: never" in text

    def test_export_json(self, tracked):
        """Test the export is the full report as JSON."""
        data = json.loads(tracked.export_json())

        assert data["total_tracked_recipes"] == 7
        assert data["unmapped_priority_list"][0]["normalized_name"] == "onion"
        assert data["last_updated"] == str(NOW)

    def test_reset(self, tracked):
        """Test reset forgets everything."""
        tracked.reset()

        report = tracked.report()
        assert report.total_ingredients == 0
        assert report.last_updated is None
