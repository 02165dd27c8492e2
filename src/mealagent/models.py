"""Pydantic models for recipes, households and week plans."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class DomainModel(BaseModel):
    """Base class for all domain records."""

    model_config = ConfigDict(from_attributes=True)


class Ingredient(DomainModel):
    """A single recipe ingredient line."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    name: str = ""
    qty: float = 0.0
    unit: str = ""


class RecipeSource(DomainModel):
    """Attribution for where a recipe came from."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    url: str = ""
    domain: str = ""
    chef: str = ""
    license: str = "unknown"


class Recipe(DomainModel):
    """Recipe as loaded from the catalog. Immutable once loaded."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    title: str
    ingredients: list[Ingredient] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    time_mins: int | None = None
    serves: int | None = None
    cost_per_serve_est: float | None = None
    source: RecipeSource | None = None
    instructions: list[str] = Field(default_factory=list)

    @property
    def chef(self) -> str | None:
        """Get the source attribution, if any."""
        return self.source.chef if self.source and self.source.chef else None

    def has_tag(self, tag: str) -> bool:
        """Check whether the recipe carries a tag."""
        return tag in self.tags


class PantryItem(DomainModel):
    """Something the household already has on hand."""

    name: str
    qty: float = 0.0
    unit: str = ""


class HouseholdMembers(DomainModel):
    """Member counts of a household."""

    adults: int = Field(default=2, ge=0)
    kids: int = Field(default=0, ge=0)


class DietFlags(DomainModel):
    """Dietary flags and preferences of a household."""

    kid_friendly: bool = False
    high_protein: bool = False
    organic_preferred: bool = False
    gluten_light: bool = False


class Household(DomainModel):
    """Scoring input describing who is being cooked for."""

    id: str = "default-household"
    members: HouseholdMembers = Field(default_factory=HouseholdMembers)
    diet: DietFlags = Field(default_factory=DietFlags)
    favorites: list[str] = Field(default_factory=list)
    pantry: list[PantryItem] = Field(default_factory=list)


class WeeklyOverrides(DomainModel):
    """Per-week adjustments applied on top of the household settings."""

    week_of_iso: date | None = None
    dinners: int | None = Field(default=None, ge=1, le=7)
    servings_per_meal: int | None = Field(default=None, ge=1, le=20)
    kid_friendly_weeknights: bool | None = None
    preferred_chef: str | None = None


class PlanDay(DomainModel):
    """A single dinner slot in a week plan."""

    date_iso: date
    recipe_id: str
    scaled_servings: int = Field(default=4, ge=1)
    notes: str | None = None
    bulk: bool = False
    is_leftover: bool = False
    reasons: list[str] = Field(default_factory=list)


class PlanWeek(DomainModel):
    """A composed week of dinners."""

    start_iso: date
    days: list[PlanDay] = Field(default_factory=list)
    cost_estimate: float = 0.0
    conflicts: list[str] = Field(default_factory=list)
    suggested_swaps: dict[int, list[str]] = Field(default_factory=dict)
