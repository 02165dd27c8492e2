"""Unit tests for week composition."""

from datetime import date

from mealagent.collaborators import InMemoryRecipeCatalog
from mealagent.config import Settings
from mealagent.models import WeeklyOverrides
from mealagent.plan.composer import LEFTOVER_NOTE, WeekComposer, next_week_monday

WEEK_OF = date(2025, 11, 3)


class TestNextWeekMonday:
    """Tests for next_week_monday function."""

    def test_midweek(self):
        """Test a Wednesday maps to the following Monday."""
        assert next_week_monday(date(2025, 11, 5)) == date(2025, 11, 10)

    def test_monday(self):
        """Test a Monday maps to the Monday a week later."""
        assert next_week_monday(date(2025, 11, 3)) == date(2025, 11, 10)


class TestComposeWeek:
    """Tests for WeekComposer.compose_week."""

    def test_five_dinner_week(self, recipe_catalog, household):
        """Test a five dinner week with a bulk cook day followed by leftovers."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=5))

        assert plan.start_iso == WEEK_OF
        assert [d.recipe_id for d in plan.days] == [
            "beef-bolognese",
            "beef-bolognese",
            "veggie-curry",
            "chicken-stir-fry",
            "salmon-traybake",
        ]
        assert [d.date_iso.day for d in plan.days] == [3, 4, 5, 6, 7]
        assert plan.conflicts == []

    def test_leftover_day(self, recipe_catalog, household):
        """Test the day after the bulk cook reuses its recipe as leftovers."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=5))

        bulk_day, leftover_day = plan.days[0], plan.days[1]
        assert bulk_day.bulk is True
        assert bulk_day.is_leftover is False
        assert leftover_day.is_leftover is True
        assert leftover_day.notes == LEFTOVER_NOTE
        assert sum(d.is_leftover for d in plan.days) == 1

    def test_cost_estimate_skips_leftovers(self, recipe_catalog, household):
        """Test the cost estimate counts each cooked dinner once."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=5))

        # (3.0 + 2.5 + 3.5 + 6.0) per serve x 4 servings
        assert plan.cost_estimate == 60.0

    def test_no_leftovers_for_short_weeks(self, recipe_catalog, household):
        """Test weeks under five dinners never plan leftovers."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=3))

        assert [d.recipe_id for d in plan.days] == ["beef-bolognese", "veggie-curry", "chicken-stir-fry"]
        assert not any(d.is_leftover or d.bulk for d in plan.days)

    def test_reasons_limited(self, recipe_catalog, household):
        """Test each planned day carries at most three reasons."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=5))

        assert all(len(d.reasons) <= 3 for d in plan.days)
        assert "bulk cook" in plan.days[0].reasons

    def test_servings_override(self, recipe_catalog, household):
        """Test the servings override is applied to every day."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(
            household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=3, servings_per_meal=2)
        )

        assert {d.scaled_servings for d in plan.days} == {2}

    def test_records_recency(self, recipe_catalog, household):
        """Test composed recipes are recorded in the recency history."""
        composer = WeekComposer(recipe_catalog)
        composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=3))

        next_week = date(2025, 11, 10)
        assert composer.recency.was_recently_used("beef-bolognese", next_week)
        assert not composer.recency.was_recently_used("lamb-roast", next_week)
        assert not composer.recency.was_recently_used("beef-bolognese", WEEK_OF)

    def test_recomposing_same_week(self, recipe_catalog, household):
        """Test composing a week twice gives the same plan."""
        composer = WeekComposer(recipe_catalog)
        overrides = WeeklyOverrides(week_of_iso=WEEK_OF, dinners=5)

        first = composer.compose_week(household, overrides)
        second = composer.compose_week(household, overrides)

        assert [d.recipe_id for d in second.days] == [d.recipe_id for d in first.days]

    def test_no_candidates_conflict(self, household):
        """Test an empty library reports a conflict per day."""
        composer = WeekComposer(InMemoryRecipeCatalog())
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=2))

        assert plan.days == []
        assert plan.conflicts == ["No suitable recipes found for day 1", "No suitable recipes found for day 2"]

    def test_all_filtered_conflict(self, recipe_factory, household):
        """Test a library with only non kid-friendly recipes conflicts for kid households."""
        catalog = InMemoryRecipeCatalog([recipe_factory("grown-up-pasta", time_mins=25)])
        composer = WeekComposer(catalog)
        plan = composer.compose_week(
            household,
            WeeklyOverrides(week_of_iso=WEEK_OF, dinners=1, kid_friendly_weeknights=True),
        )

        assert plan.days == []
        assert plan.conflicts == ["All candidates filtered out for day 1"]

    def test_weekend_allows_long_recipes(self, recipe_factory, household):
        """Test weekend days may use recipes over the weeknight limit."""
        catalog = InMemoryRecipeCatalog([recipe_factory("sunday-roast", time_mins=150)])
        settings = Settings(weekend_start_day_index=0)
        composer = WeekComposer(catalog, settings=settings)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=1))

        assert [d.recipe_id for d in plan.days] == ["sunday-roast"]


class TestSuggestSwaps:
    """Tests for WeekComposer.suggest_swaps."""

    def test_ranked_alternatives(self, recipe_catalog, household):
        """Test swaps are ranked alternatives that exclude the current recipe."""
        composer = WeekComposer(recipe_catalog)
        swaps = composer.suggest_swaps("beef-bolognese", False, household)

        assert swaps == ["veggie-curry", "chicken-stir-fry", "salmon-traybake"]

    def test_unknown_recipe(self, recipe_catalog, household):
        """Test an unknown recipe has no swaps."""
        composer = WeekComposer(recipe_catalog)
        assert composer.suggest_swaps("missing", False, household) == []

    def test_plan_includes_swaps(self, recipe_catalog, household):
        """Test composed plans carry swaps for every cooked day."""
        composer = WeekComposer(recipe_catalog)
        plan = composer.compose_week(household, WeeklyOverrides(week_of_iso=WEEK_OF, dinners=5))

        assert sorted(plan.suggested_swaps) == [0, 2, 3, 4]
        assert all(plan.days[i].recipe_id not in swaps for i, swaps in plan.suggested_swaps.items())
