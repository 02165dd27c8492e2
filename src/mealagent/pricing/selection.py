"""Product selection and pack-based cost estimation from the static catalog."""

from dataclasses import dataclass

from mealagent.logging_config import get_logger
from mealagent.normalize.units import are_units_compatible, calculate_packs_needed, normalize_to_base_unit
from mealagent.pricing.catalog import Product, ProductCatalog
from mealagent.pricing.categories import MINIMUM_PRICE, PriceEstimate, estimate_cost_by_category

logger = get_logger(__name__)

PACK_SIZE_MULTIPLIER = 1.5


@dataclass
class CostEstimate:
    """Estimated cost of buying enough of one ingredient."""

    mapped: bool
    estimated_cost: float
    packs_needed: int = 1
    requires_choice: bool = False
    product: Product | None = None
    confidence: str | None = None
    price_estimate: PriceEstimate | None = None
    price_source: str = "category"  # "api", "static", "category"
    live_price: bool = False


def select_best_product(products: list[Product], quantity_needed: float, unit: str) -> Product:
    """
    Choose the product that best covers a quantity.

    Only products whose pack unit is compatible with the requested unit
    are considered; if there are none the first product is returned. When
    two or more packs hold the whole quantity the smallest of them wins.
    Otherwise the lowest price per base unit wins. Ties keep catalog order.
    """
    if not products:
        raise ValueError("select_best_product() needs at least one product")

    compatible = [p for p in products if are_units_compatible(p.pack_unit, unit)]

    if not compatible:
        logger.warning(f"No product with a unit compatible with {unit}, using {products[0].sku}")
        return products[0]

    if len(compatible) == 1:
        return compatible[0]

    needed = normalize_to_base_unit(quantity_needed, unit).quantity
    fitting = [p for p in compatible if needed <= p.base_pack_size]

    if len(fitting) >= 2:
        return min(fitting, key=lambda p: p.base_pack_size)

    return min(compatible, key=lambda p: p.price_per_unit)


def estimate_ingredient_cost(
    normalized_name: str,
    quantity: float,
    unit: str,
    catalog: ProductCatalog,
    pack_size_multiplier: float = PACK_SIZE_MULTIPLIER,
    minimum_price: float = MINIMUM_PRICE,
) -> CostEstimate:
    """
    Estimate an ingredient's cost from the static catalog.

    Unmapped ingredients fall back to a category estimate.
    """
    mapping = catalog.find_mapping(normalized_name)

    if mapping is None:
        estimate = estimate_cost_by_category(normalized_name, quantity, unit, minimum_price)
        return CostEstimate(
            mapped=False,
            estimated_cost=estimate.price,
            packs_needed=1,
            requires_choice=False,
            confidence=estimate.confidence,
            price_estimate=estimate,
            price_source="category",
        )

    product = select_best_product(mapping.products, quantity, unit)
    packs_needed = calculate_packs_needed(
        quantity,
        unit,
        product.pack_size,
        product.pack_unit,
        pack_size_multiplier,
    )

    return CostEstimate(
        mapped=True,
        estimated_cost=round(product.price * packs_needed, 2),
        packs_needed=packs_needed,
        requires_choice=mapping.requires_choice,
        product=product,
        confidence=mapping.confidence,
        price_source="static",
    )
