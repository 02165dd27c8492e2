"""Unit normalization and conversion utilities."""

import math
import re
from dataclasses import dataclass

from mealagent.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Unit Conversion Tables
# =============================================================================

WEIGHT = "weight"
VOLUME = "volume"
COUNT = "count"

BASE_UNITS: dict[str, str] = {
    WEIGHT: "g",
    VOLUME: "ml",
    COUNT: "unit",
}

# Weight conversions (base unit: g)
WEIGHT_UNITS: dict[str, float] = {
    # Metric
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "kilogram": 1000.0,
    "kilograms": 1000.0,
    "mg": 0.001,
    "milligram": 0.001,
    "milligrams": 0.001,
    # Imperial
    "oz": 28.3495,
    "ounce": 28.3495,
    "ounces": 28.3495,
    "lb": 453.592,
    "lbs": 453.592,
    "pound": 453.592,
    "pounds": 453.592,
}

# Volume conversions (base unit: ml). Cooking measures are metric.
VOLUME_UNITS: dict[str, float] = {
    "ml": 1.0,
    "milliliter": 1.0,
    "milliliters": 1.0,
    "millilitre": 1.0,
    "millilitres": 1.0,
    "l": 1000.0,
    "liter": 1000.0,
    "liters": 1000.0,
    "litre": 1000.0,
    "litres": 1000.0,
    "dl": 100.0,
    "cl": 10.0,
    "tsp": 5.0,
    "teaspoon": 5.0,
    "teaspoons": 5.0,
    "tbsp": 15.0,
    "tbs": 15.0,
    "tablespoon": 15.0,
    "tablespoons": 15.0,
    "cup": 250.0,
    "cups": 250.0,
}

# Count-based units (base unit: unit)
COUNT_UNITS: dict[str, float] = {
    "unit": 1.0,
    "units": 1.0,
    "piece": 1.0,
    "pieces": 1.0,
    "pc": 1.0,
    "pcs": 1.0,
    "whole": 1.0,
    "each": 1.0,
    "ea": 1.0,
    "bunch": 1.0,
    "bunches": 1.0,
    "clove": 1.0,
    "cloves": 1.0,
    "can": 1.0,
    "cans": 1.0,
    "tin": 1.0,
    "tins": 1.0,
    "jar": 1.0,
    "jars": 1.0,
    "pack": 1.0,
    "packs": 1.0,
    "packet": 1.0,
    "packets": 1.0,
    "fillet": 1.0,
    "fillets": 1.0,
}

_FAMILY_TABLES: tuple[tuple[str, dict[str, float]], ...] = (
    (WEIGHT, WEIGHT_UNITS),
    (VOLUME, VOLUME_UNITS),
    (COUNT, COUNT_UNITS),
)

# Average weight per item in grams, for turning "2 onions" into a weight
AVERAGE_ITEM_WEIGHTS: dict[str, float] = {
    # Vegetables
    "onion": 150,
    "tomato": 125,
    "potato": 200,
    "carrot": 100,
    "zucchini": 200,
    "capsicum": 150,
    "bell pepper": 150,
    "avocado": 180,
    "lemon": 100,
    "lime": 50,
    # Proteins
    "chicken breast": 250,
    "chicken thigh": 150,
    "egg": 50,
    # Herbs (per bunch)
    "parsley": 35,
    "coriander": 35,
    "basil": 35,
    "mint": 35,
    "thyme": 20,
    "rosemary": 20,
    # Bakery
    "bread": 450,
    "loaf": 450,
    "roll": 50,
}

DEFAULT_ITEM_WEIGHT = 100.0


@dataclass(frozen=True)
class UnitInfo:
    """Family, base unit and multiplier of a recognized unit."""

    unit_type: str  # "weight", "volume" or "count"
    base_unit: str
    to_base: float


@dataclass(frozen=True)
class Quantity:
    """A quantity paired with its unit."""

    quantity: float
    unit: str


# =============================================================================
# Unit Lookup
# =============================================================================


def get_unit_info(unit: str | None) -> UnitInfo | None:
    """
    Classify a unit string into its family.

    Lookup is case- and whitespace-insensitive. Returns None for empty or
    unrecognized units.
    """
    if not unit or not isinstance(unit, str):
        return None

    unit_lower = unit.lower().strip()

    for unit_type, table in _FAMILY_TABLES:
        if unit_lower in table:
            return UnitInfo(
                unit_type=unit_type,
                base_unit=BASE_UNITS[unit_type],
                to_base=table[unit_lower],
            )

    return None


def get_unit_type(unit: str | None) -> str | None:
    """Get the family ("weight", "volume", "count") of a unit."""
    info = get_unit_info(unit)
    return info.unit_type if info else None


def is_valid_unit(unit: str | None) -> bool:
    """Check if a unit string is recognized."""
    return get_unit_info(unit) is not None


def get_base_unit(unit: str) -> str:
    """Get the base unit for a unit, e.g. kg -> g, tbsp -> ml."""
    info = get_unit_info(unit)
    return info.base_unit if info else unit


def are_units_compatible(unit1: str | None, unit2: str | None) -> bool:
    """
    Check if two units belong to the same family.

    Unknown units are never compatible with anything, including themselves.
    """
    type1 = get_unit_type(unit1)
    type2 = get_unit_type(unit2)

    if type1 is None or type2 is None:
        return False

    return type1 == type2


# =============================================================================
# Conversion
# =============================================================================


def normalize_to_base_unit(quantity: float, unit: str | None) -> Quantity:
    """
    Convert a quantity to its family's base unit (g, ml or unit).

    Unknown or missing units pass through unchanged.
    """
    info = get_unit_info(unit)

    if info is None:
        return Quantity(quantity=quantity, unit=unit or "")

    return Quantity(quantity=quantity * info.to_base, unit=info.base_unit)


def convert_unit(quantity: float, from_unit: str, to_unit: str) -> float:
    """
    Convert a quantity between two units of the same family.

    When the units are incompatible or unknown the original quantity is
    returned unchanged and a warning is logged. Callers that care must check
    are_units_compatible() first; a same-value return does not mean success.
    """
    if (from_unit or "").lower().strip() == (to_unit or "").lower().strip():
        return quantity

    if not are_units_compatible(from_unit, to_unit):
        logger.warning(f"Cannot convert between incompatible units: {from_unit} -> {to_unit}")
        return quantity

    from_info = get_unit_info(from_unit)
    to_info = get_unit_info(to_unit)
    if from_info is None or to_info is None:
        return quantity

    return quantity * from_info.to_base / to_info.to_base


def format_for_display(quantity: float, unit: str) -> Quantity:
    """
    Upgrade large base-unit quantities to a larger unit for display.

    1000 g and up becomes kg, 1000 ml and up becomes L. Display only: never
    feed the result back into aggregation or pricing math.
    """
    info = get_unit_info(unit)

    if info is None:
        return Quantity(quantity=quantity, unit=unit)

    if info.base_unit == "g" and quantity >= 1000:
        return Quantity(quantity=quantity / 1000, unit="kg")

    if info.base_unit == "ml" and quantity >= 1000:
        return Quantity(quantity=quantity / 1000, unit="L")

    return Quantity(quantity=quantity, unit=unit)


def calculate_packs_needed(
    quantity_needed: float,
    quantity_unit: str,
    pack_size: float,
    pack_unit: str,
    pack_size_multiplier: float = 1.5,
) -> int:
    """
    Work out how many retail packs cover a quantity.

    The need is converted into the pack's unit. One pack if it fits; the
    ceiling of packs if it exceeds multiplier x pack size; otherwise one pack,
    assuming the shopper picks a larger single pack by hand.
    """
    if pack_size <= 0:
        logger.warning(f"Invalid pack size {pack_size} {pack_unit}, assuming a single pack")
        return 1

    converted = convert_unit(quantity_needed, quantity_unit, pack_unit)

    if converted <= pack_size:
        return 1

    if converted > pack_size * pack_size_multiplier:
        return math.ceil(converted / pack_size)

    return 1


def estimate_weight_from_count(ingredient_name: str, count: float) -> float:
    """Estimate grams for a count of items, e.g. "2 onions" -> 300."""
    normalized = ingredient_name.lower().strip()

    for key, weight in AVERAGE_ITEM_WEIGHTS.items():
        if key in normalized:
            return count * weight

    return count * DEFAULT_ITEM_WEIGHT


def convert_to_grams(quantity: float, unit: str, ingredient_name: str | None = None) -> float:
    """
    Convert any quantity to grams for standardized pricing.

    Volumes are treated as 1 ml = 1 g. Counts use average item weights.
    Unknown units are assumed to already be grams.
    """
    info = get_unit_info(unit)

    if info is None:
        return quantity

    if info.unit_type in (WEIGHT, VOLUME):
        return normalize_to_base_unit(quantity, unit).quantity

    if ingredient_name:
        return estimate_weight_from_count(ingredient_name, quantity)

    return quantity * DEFAULT_ITEM_WEIGHT


# =============================================================================
# Parsing Functions
# =============================================================================


def parse_quantity_string(quantity_str: str) -> float:
    """
    Parse a quantity string into a float.

    Handles formats like:
    - "2"
    - "1.5"
    - "1/2"
    - "1 1/2" (one and a half)
    - "2-3" (range, returns average)
    """
    if not quantity_str:
        return 1.0

    quantity_str = quantity_str.strip().lower()

    if not quantity_str or quantity_str in ("to taste", "pinch", "dash", "some"):
        return 1.0

    range_match = re.match(r"(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)", quantity_str)
    if range_match:
        low = float(range_match.group(1))
        high = float(range_match.group(2))
        return (low + high) / 2

    mixed_match = re.match(r"(\d+)\s+(\d+)/(\d+)", quantity_str)
    if mixed_match:
        whole = int(mixed_match.group(1))
        num = int(mixed_match.group(2))
        denom = int(mixed_match.group(3))
        return whole + (num / denom)

    frac_match = re.match(r"(\d+)/(\d+)", quantity_str)
    if frac_match:
        num = int(frac_match.group(1))
        denom = int(frac_match.group(2))
        return num / denom

    num_match = re.match(r"(\d+(?:\.\d+)?)", quantity_str)
    if num_match:
        return float(num_match.group(1))

    return 1.0


def parse_size(size_str: str | None) -> Quantity:
    """
    Parse a retail pack size string.

    Examples:
        "500g" -> Quantity(500.0, "g")
        "2 L" -> Quantity(2.0, "l")
        "family pack" -> Quantity(0.0, "")
    """
    if not size_str:
        return Quantity(quantity=0.0, unit="")

    match = re.match(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+)\s*$", size_str)
    if not match:
        return Quantity(quantity=0.0, unit="")

    return Quantity(
        quantity=parse_quantity_string(match.group(1)),
        unit=match.group(2).lower(),
    )
