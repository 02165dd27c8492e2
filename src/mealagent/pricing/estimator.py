"""Tiered ingredient price estimation.

The async chain tries, in order: the persistent product cache, a
quota-gated external product search, the static product catalog and
finally a category estimate. Tiers run one after another and any failing
tier counts as a miss, so the chain always produces an estimate.
"""

from datetime import date, datetime, time, timezone

from mealagent.collaborators import BestEffort, ProductCache, ProductSearchClient, QuotaGate, SearchProduct
from mealagent.config import Settings, get_settings
from mealagent.logging_config import get_logger
from mealagent.normalize.units import calculate_packs_needed, parse_size
from mealagent.pricing.catalog import Product, ProductCatalog
from mealagent.pricing.categories import (
    ObservedPrice,
    PriceEstimate,
    categorize_ingredient,
    estimate_cost_by_category,
    get_ingredient_price,
)
from mealagent.pricing.reports import PriceReportStore
from mealagent.pricing.search_terms import generate_search_term, parse_price, rank_search_results
from mealagent.pricing.selection import CostEstimate, estimate_ingredient_cost

logger = get_logger(__name__)


class PriceEstimator:
    """
    Estimates ingredient costs against a product catalog and optional
    external collaborators.

    Any collaborator left as None is simply skipped by the async chain.
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        cache: ProductCache | None = None,
        quota: QuotaGate | None = None,
        search_client: ProductSearchClient | None = None,
        reports: PriceReportStore | None = None,
        settings: Settings | None = None,
    ):
        self.catalog = catalog
        self.cache = cache
        self.quota = quota
        self.search_client = search_client
        self.reports = reports
        self.settings = settings or get_settings()
        self._cache_writes = BestEffort("product cache write")

    # =========================================================================
    # Synchronous path
    # =========================================================================

    def estimate_ingredient_cost(self, normalized_name: str, quantity: float, unit: str) -> CostEstimate:
        """Static catalog, then category estimate."""
        return estimate_ingredient_cost(
            normalized_name,
            quantity,
            unit,
            self.catalog,
            pack_size_multiplier=self.settings.pack_size_multiplier,
            minimum_price=self.settings.minimum_item_price,
        )

    def price_estimate(self, normalized_name: str, quantity: float, unit: str) -> PriceEstimate:
        """
        Best single price estimate from the catalog and user reports.

        A catalog price counts as a mapped price while its product data is
        fresh; recent user reports come next; otherwise a category estimate.
        """
        mapped_price = None
        mapping = self.catalog.find_mapping(normalized_name)
        if mapping is not None:
            cost = self.estimate_ingredient_cost(normalized_name, quantity, unit)
            if cost.product is not None and cost.product.last_updated is not None:
                mapped_price = ObservedPrice(
                    price=cost.estimated_cost,
                    last_updated=datetime.combine(cost.product.last_updated, time.min, tzinfo=timezone.utc),
                )

        reported = None
        if self.reports is not None:
            reported = self.reports.average_price(normalized_name, self.settings.user_report_max_age_days)

        return get_ingredient_price(
            normalized_name,
            quantity,
            unit,
            mapped_price=mapped_price,
            user_reported_price=reported,
            mapped_max_age_days=self.settings.mapped_price_max_age_days,
            scraped_max_age_days=self.settings.scraped_price_max_age_days,
            user_report_max_age_days=self.settings.user_report_max_age_days,
            user_report_min_count=self.settings.user_report_min_count,
        )

    # =========================================================================
    # Async tiered path
    # =========================================================================

    async def estimate_ingredient_cost_with_api(
        self,
        normalized_name: str,
        quantity: float,
        unit: str,
    ) -> CostEstimate:
        """Cache, then external search, then static catalog, then category estimate."""
        result = await self._from_cache(normalized_name, quantity, unit)
        if result is not None:
            return result

        result = await self._from_search(normalized_name, quantity, unit)
        if result is not None:
            return result

        try:
            result = self.estimate_ingredient_cost(normalized_name, quantity, unit)
        except Exception as e:
            logger.warning(f"Static price lookup failed for '{normalized_name}': {e}")
            estimate = estimate_cost_by_category(normalized_name, quantity, unit, self.settings.minimum_item_price)
            result = CostEstimate(
                mapped=False,
                estimated_cost=estimate.price,
                confidence=estimate.confidence,
                price_estimate=estimate,
                price_source="category",
            )

        result.live_price = False
        return result

    def _live_estimate(
        self,
        product: SearchProduct,
        quantity: float,
        unit: str,
        sku_prefix: str,
        last_updated: date,
    ) -> CostEstimate | None:
        price = parse_price(product.current_price)
        size = parse_size(product.size)

        if price <= 0 or size.quantity <= 0:
            return None

        packs_needed = calculate_packs_needed(
            quantity,
            unit,
            size.quantity,
            size.unit,
            self.settings.pack_size_multiplier,
        )

        return CostEstimate(
            mapped=True,
            estimated_cost=round(price * packs_needed, 2),
            packs_needed=packs_needed,
            requires_choice=False,
            product=Product(
                sku=f"{sku_prefix}-{product.product_name.lower().replace(' ', '-')}",
                name=product.product_name,
                brand=product.brand or None,
                pack_size=size.quantity,
                pack_unit=size.unit,
                price=price,
                last_updated=last_updated,
            ),
            confidence="high",
            price_source="api",
            live_price=True,
        )

    async def _from_cache(self, normalized_name: str, quantity: float, unit: str) -> CostEstimate | None:
        if self.cache is None:
            return None

        try:
            cached = await self.cache.get_cached_product(normalized_name)
            if cached is None:
                return None

            result = self._live_estimate(cached.product, quantity, unit, "CACHE", cached.timestamp.date())
        except Exception as e:
            logger.warning(f"Product cache lookup failed for '{normalized_name}': {e}")
            return None

        if result is not None:
            logger.debug(f"Cache hit for '{normalized_name}': {cached.product.product_name}")
        return result

    async def _from_search(self, normalized_name: str, quantity: float, unit: str) -> CostEstimate | None:
        if self.search_client is None or self.quota is None or not self.settings.api_enabled:
            return None

        try:
            return await self._search_and_price(normalized_name, quantity, unit)
        except Exception as e:
            logger.warning(f"Product search failed for '{normalized_name}', falling back to static prices: {e}")
            return None

    async def _search_and_price(self, normalized_name: str, quantity: float, unit: str) -> CostEstimate | None:
        decision = self.quota.should_make_api_request()
        if not decision.allowed:
            logger.info(f"Skipping product search for '{normalized_name}': {decision.reason}")
            return None

        category = categorize_ingredient(normalized_name)
        query = generate_search_term(normalized_name, category.value)
        response = await self.search_client.search(query, self.settings.api_search_result_limit, category.value)

        if response is None or not response.results:
            logger.debug(f"No search results for '{normalized_name}'")
            return None

        today = datetime.now(timezone.utc).date()
        for product in rank_search_results(normalized_name, response.results):
            result = self._live_estimate(product, quantity, unit, "API", today)
            if result is None:
                continue

            if self.cache is not None:
                await self._cache_writes.run_async(
                    self.cache.save_product_to_cache,
                    normalized_name,
                    product,
                    quantity,
                    unit,
                    search_term=query,
                )

            logger.debug(f"Live price for '{normalized_name}': {product.product_name} ({product.current_price})")
            return result

        logger.debug(f"No usable search result for '{normalized_name}'")
        return None


async def estimate_ingredient_cost_with_api(
    normalized_name: str,
    quantity: float,
    unit: str,
    catalog: ProductCatalog,
    cache: ProductCache | None = None,
    quota: QuotaGate | None = None,
    search_client: ProductSearchClient | None = None,
) -> CostEstimate:
    """Run the tiered price chain once with the given collaborators."""
    estimator = PriceEstimator(catalog, cache=cache, quota=quota, search_client=search_client)
    return await estimator.estimate_ingredient_cost_with_api(normalized_name, quantity, unit)
