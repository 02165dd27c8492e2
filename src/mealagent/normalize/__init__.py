"""Normalize ingredient names, recipe tags, units and quantities."""

from mealagent.normalize.names import (
    ingredient_match_key,
    normalize_ingredient_name,
    primary_protein,
)
from mealagent.normalize.tags import enhance_recipe_tags, infer_tags, normalize_tags
from mealagent.normalize.units import (
    Quantity,
    UnitInfo,
    are_units_compatible,
    calculate_packs_needed,
    convert_to_grams,
    convert_unit,
    format_for_display,
    get_unit_info,
    normalize_to_base_unit,
    parse_quantity_string,
    parse_size,
)

__all__ = [
    "Quantity",
    "UnitInfo",
    "are_units_compatible",
    "calculate_packs_needed",
    "convert_to_grams",
    "convert_unit",
    "enhance_recipe_tags",
    "format_for_display",
    "get_unit_info",
    "infer_tags",
    "ingredient_match_key",
    "normalize_ingredient_name",
    "normalize_tags",
    "normalize_to_base_unit",
    "parse_quantity_string",
    "parse_size",
    "primary_protein",
]
