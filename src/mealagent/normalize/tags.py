"""Recipe tag normalization and inference.

Recipe sources tag inconsistently ("Kid-Friendly", "family meal", "batch
cooking") or not at all. The scorer only understands the canonical tags
below, so library recipes are passed through enhance_recipe_tags() when
they are loaded.
"""

import re

from mealagent.models import Recipe

# Dietary
KID_FRIENDLY = "kid_friendly"
GLUTEN_LIGHT = "gluten_light"
HIGH_PROTEIN = "high_protein"
VEGETARIAN = "vegetarian"
VEGAN = "vegan"

# Cooking style
QUICK = "quick"
SIMPLE = "simple"
BULK_COOK = "bulk_cook"

# Occasion
WEEKNIGHT = "weeknight"
PARTY_FOOD = "party_food"
BBQ = "bbq"

# Protein
CHICKEN = "chicken"
BEEF = "beef"
PORK = "pork"
FISH = "fish"
LAMB = "lamb"
SEAFOOD = "seafood"

ORGANIC_OK = "organic_ok"

QUICK_MAX_MINS = 30
WEEKNIGHT_MAX_MINS = 40
SIMPLE_MAX_INGREDIENTS = 10
BULK_COOK_MIN_SERVES = 6
ORGANIC_MIN_SHARE = 0.5

# Canonical tag -> substrings of a raw tag that map to it
TAG_SYNONYMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (KID_FRIENDLY, ("kid", "family")),
    (QUICK, ("quick", "fast", "express")),
    (SIMPLE, ("simple", "easy")),
    (BULK_COOK, ("bulk", "batch", "meal_prep")),
    (VEGETARIAN, ("vegetarian", "veggie")),
    (VEGAN, ("vegan",)),
    (PARTY_FOOD, ("party", "appetizer", "finger")),
    (BBQ, ("bbq", "grill")),
    (CHICKEN, ("chicken",)),
    (BEEF, ("beef",)),
    (PORK, ("pork",)),
)

KID_FRIENDLY_KEYWORDS = ("kid", "child", "family", "nugget", "tender", "finger food", "mild", "simple")
GLUTEN_LIGHT_KEYWORDS = ("rice", "potato", "gluten free", "salad", "grilled", "roasted")

HIGH_PROTEIN_INGREDIENTS = (
    "chicken",
    "beef",
    "pork",
    "lamb",
    "fish",
    "salmon",
    "tuna",
    "prawn",
    "shrimp",
    "egg",
    "tofu",
    "lentil",
    "bean",
    "chickpea",
)

MEAT_INGREDIENTS = (
    "chicken",
    "beef",
    "pork",
    "lamb",
    "bacon",
    "sausage",
    "mince",
    "fish",
    "salmon",
    "tuna",
    "prawn",
    "shrimp",
    "seafood",
    "meat",
)

ORGANIC_FRIENDLY_INGREDIENTS = (
    "spinach",
    "kale",
    "lettuce",
    "tomato",
    "carrot",
    "broccoli",
    "cauliflower",
    "zucchini",
    "bell pepper",
    "capsicum",
    "mushroom",
    "onion",
    "garlic",
    "herbs",
    "chicken",
    "egg",
)

# Protein tag -> ingredient substrings that imply it
PROTEIN_INGREDIENTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CHICKEN, ("chicken",)),
    (BEEF, ("beef",)),
    (PORK, ("pork", "bacon")),
    (FISH, ("fish", "salmon", "tuna")),
    (LAMB, ("lamb",)),
    (SEAFOOD, ("prawn", "shrimp")),
)

_SEPARATORS = re.compile(r"[_\s-]+")


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def normalize_tags(tags: list[str]) -> list[str]:
    """
    Map raw tags onto canonical tags.

    Each raw tag is kept in snake_case alongside any canonical tags it
    implies, e.g. "Family Favourite" -> ["family_favourite", "kid_friendly"].
    Order follows first appearance.
    """
    normalized: dict[str, None] = {}

    for tag in tags:
        lower = _SEPARATORS.sub("_", tag.lower().strip())
        if not lower:
            continue

        normalized[lower] = None
        for canonical, synonyms in TAG_SYNONYMS:
            if _contains_any(lower, synonyms):
                normalized[canonical] = None

    return list(normalized)


def infer_tags(recipe: Recipe) -> list[str]:
    """Infer canonical tags from a recipe's time, size, title and ingredients."""
    inferred: dict[str, None] = dict.fromkeys(recipe.tags)

    if recipe.time_mins is not None:
        if recipe.time_mins <= QUICK_MAX_MINS:
            inferred[QUICK] = None
        if recipe.time_mins <= WEEKNIGHT_MAX_MINS:
            inferred[WEEKNIGHT] = None

    if len(recipe.ingredients) <= SIMPLE_MAX_INGREDIENTS:
        inferred[SIMPLE] = None

    if recipe.serves and recipe.serves >= BULK_COOK_MIN_SERVES:
        inferred[BULK_COOK] = None

    search_text = " ".join([recipe.title, *recipe.tags]).lower()
    if _contains_any(search_text, KID_FRIENDLY_KEYWORDS):
        inferred[KID_FRIENDLY] = None
    if _contains_any(search_text, GLUTEN_LIGHT_KEYWORDS):
        inferred[GLUTEN_LIGHT] = None

    names = [ingredient.name.lower() for ingredient in recipe.ingredients if ingredient.name]
    if not names:
        return list(inferred)

    ingredient_text = " ".join(names)

    if _contains_any(ingredient_text, HIGH_PROTEIN_INGREDIENTS):
        inferred[HIGH_PROTEIN] = None

    if not _contains_any(ingredient_text, MEAT_INGREDIENTS):
        inferred[VEGETARIAN] = None

    for protein, keywords in PROTEIN_INGREDIENTS:
        if _contains_any(ingredient_text, keywords):
            inferred[protein] = None

    organic_count = sum(1 for keyword in ORGANIC_FRIENDLY_INGREDIENTS if keyword in ingredient_text)
    if organic_count / len(recipe.ingredients) > ORGANIC_MIN_SHARE:
        inferred[ORGANIC_OK] = None

    return list(inferred)


def enhance_recipe_tags(recipe: Recipe) -> Recipe:
    """Return a copy of the recipe with normalized and inferred tags, sorted."""
    normalized = recipe.model_copy(update={"tags": normalize_tags(recipe.tags)})
    return normalized.model_copy(update={"tags": sorted(infer_tags(normalized))})
