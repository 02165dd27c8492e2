"""Ingredient name normalization.

Every dedup or lookup key in the pipeline goes through
normalize_ingredient_name(), so aggregation, pantry matching and catalog
lookups agree on what counts as "the same ingredient".
"""

import re

PREPARATION_DESCRIPTORS = (
    "fresh",
    "dried",
    "ground",
    "chopped",
    "sliced",
    "diced",
    "minced",
    "grated",
    "crushed",
    "shredded",
    "raw",
    "cooked",
)

QUALITY_DESCRIPTORS = (
    "plain",
    "greek",
    "whole",
    "full cream",
    "low fat",
    "reduced fat",
    "extra virgin",
    "unsalted",
    "salted",
    "canned",
    "frozen",
)

PROTEIN_TAGS = ("chicken", "beef", "pork", "fish", "lamb", "seafood")

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_AFTER_COMMA = re.compile(r",.*$")
_ALTERNATIVES = re.compile(r"\s+(?:and/or|or)\s+.*$")
_LEADING_PREP = re.compile(rf"^(?:(?:{'|'.join(PREPARATION_DESCRIPTORS)})\s+)+")
_LEADING_QUALITY = re.compile(rf"^(?:(?:{'|'.join(QUALITY_DESCRIPTORS)})\s+)+")
_TRAILING_QUALITY = re.compile(rf"(?:\s+(?:{'|'.join(QUALITY_DESCRIPTORS)}))+$")
_PUNCTUATION = re.compile(r"[^\w\s]")


def normalize_ingredient_name(name: str | None) -> str:
    """
    Normalize an ingredient name for deduplication and lookups.

    - Lowercase
    - Remove parenthetical notes and anything after a comma
    - Remove "or ..." / "and/or ..." alternatives
    - Remove leading preparation descriptors (fresh, chopped, ...)
    - Remove leading and trailing quality descriptors (plain, frozen, ...)
    - Collapse whitespace

    May return an empty string, e.g. for "(optional)".
    """
    if not name:
        return ""

    name = name.lower().strip()
    name = _PARENTHETICAL.sub(" ", name)
    name = _AFTER_COMMA.sub("", name)
    name = " ".join(name.split())
    name = _ALTERNATIVES.sub("", name)
    name = _LEADING_PREP.sub("", name)
    name = _LEADING_QUALITY.sub("", name)
    name = _TRAILING_QUALITY.sub("", name)

    return " ".join(name.split())


def ingredient_match_key(name: str | None) -> str:
    """
    Coarse key used when comparing ingredients across recipes.

    Counts and punctuation are dropped, the name is normalized and only the
    first two significant words are kept, so "2 chicken thighs, skin on"
    and "chicken thighs (boneless)" share the key "chicken thighs".
    """
    if not name:
        return ""

    name = re.sub(r"\d", "", name)
    name = normalize_ingredient_name(name)
    name = _PUNCTUATION.sub(" ", name)

    return " ".join(name.split()[:2])


def primary_protein(tags: list[str] | set[str]) -> str | None:
    """Get the first protein tag of a recipe, if any."""
    for tag in tags:
        if tag in PROTEIN_TAGS:
            return tag
    return None
