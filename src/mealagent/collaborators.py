"""Interfaces to external collaborators and their in-memory implementations.

The planning and pricing core only talks to recipe storage, the product
cache, the request quota, product search and analytics through the
protocols in this module.
"""

import json
import threading
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol

from mealagent.exceptions import CollaboratorError
from mealagent.logging_config import get_logger
from mealagent.models import Recipe
from mealagent.normalize.tags import enhance_recipe_tags

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Records
# =============================================================================


@dataclass
class SearchProduct:
    """A product as returned by an external product search."""

    product_name: str
    brand: str = ""
    current_price: str = ""  # e.g. "$7.50"
    size: str = ""  # e.g. "500g"
    url: str = ""


@dataclass
class SearchResponse:
    """Result page of an external product search."""

    query: str
    results: list[SearchProduct] = field(default_factory=list)
    total_results: int = 0


@dataclass
class CachedProduct:
    """A product match stored in the persistent product cache."""

    product: SearchProduct
    quantity: float
    unit: str
    timestamp: datetime
    expires_at: datetime
    search_term: str = ""


@dataclass
class QuotaDecision:
    """Whether an external request may be made right now."""

    allowed: bool
    reason: str | None = None


@dataclass
class QuotaStatus:
    """Snapshot of monthly request usage."""

    used: int
    limit: int
    remaining: int
    percentage: float
    status: str  # "ok", "warning", "critical", "exceeded"
    can_make_request: bool
    message: str | None = None


@dataclass
class AnalyticsEvent:
    """A fire-and-forget analytics record."""

    type: str
    meta: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)


# =============================================================================
# Protocols
# =============================================================================


class RecipeCatalog(Protocol):
    """Lookup of recipes owned outside the core."""

    def get_recipe_by_id(self, recipe_id: str) -> Recipe | None: ...

    def search(
        self,
        max_time: int | None = None,
        exclude_ids: Iterable[str] | None = None,
        chef: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> list[Recipe]: ...


class ProductCache(Protocol):
    """Persistent cache of external product matches keyed by normalized name."""

    async def get_cached_product(self, normalized_name: str) -> CachedProduct | None: ...

    async def save_product_to_cache(
        self,
        normalized_name: str,
        product: SearchProduct,
        quantity: float,
        unit: str,
        search_term: str | None = None,
    ) -> None: ...


class QuotaGate(Protocol):
    """Gate in front of rate-limited external requests."""

    def should_make_api_request(self) -> QuotaDecision: ...


class ProductSearchClient(Protocol):
    """External product search service."""

    async def search(self, query: str, limit: int, category: str | None = None) -> SearchResponse: ...


class AnalyticsSink(Protocol):
    """Receiver of analytics events."""

    def track(self, event: AnalyticsEvent) -> None: ...


# =============================================================================
# Best-effort side channel
# =============================================================================


class BestEffort:
    """
    Runs side-channel calls whose failures must never reach the caller.

    Any exception is logged as a warning and reported as a False return.
    """

    def __init__(self, name: str):
        self.name = name

    def run(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        try:
            func(*args, **kwargs)
        except Exception as e:
            logger.warning(f"Best-effort {self.name} call failed: {e}")
            return False
        return True

    async def run_async(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> bool:
        try:
            await func(*args, **kwargs)
        except Exception as e:
            logger.warning(f"Best-effort {self.name} call failed: {e}")
            return False
        return True


class BestEffortAnalytics:
    """Analytics sink wrapper that never blocks or fails the caller."""

    def __init__(self, sink: AnalyticsSink | None):
        self.sink = sink
        self._channel = BestEffort("analytics")

    def track(self, event_type: str, meta: dict[str, Any] | None = None) -> bool:
        if self.sink is None:
            return False
        return self._channel.run(self.sink.track, AnalyticsEvent(type=event_type, meta=meta or {}))


# =============================================================================
# Quota
# =============================================================================


class MonthlyQuota:
    """
    Request counter that resets at the start of each calendar month.

    try_acquire() reads and increments under a lock, so two concurrent
    callers can never both take the last remaining request.
    """

    def __init__(self, limit: int = 1000, clock: Clock = utc_now):
        self.limit = limit
        self._clock = clock
        self._lock = threading.Lock()
        self._used = 0
        self._month = self._current_month()

    def _current_month(self) -> str:
        return self._clock().strftime("%Y-%m")

    def _roll_month(self) -> None:
        month = self._current_month()
        if month != self._month:
            logger.info(f"Request quota reset for {month} (used {self._used} in {self._month})")
            self._month = month
            self._used = 0

    @property
    def used(self) -> int:
        with self._lock:
            self._roll_month()
            return self._used

    @property
    def remaining(self) -> int:
        with self._lock:
            self._roll_month()
            return max(0, self.limit - self._used)

    def try_acquire(self) -> bool:
        """Take one request from the quota if any remain."""
        with self._lock:
            self._roll_month()
            if self._used >= self.limit:
                return False
            self._used += 1
            return True

    def reset(self) -> None:
        with self._lock:
            self._used = 0


class QuotaManager:
    """
    Quota gate combining the monthly counter with a user on/off switch.

    A granted decision consumes one request from the quota.
    """

    WARNING_THRESHOLD = 0.8
    CRITICAL_THRESHOLD = 0.95

    def __init__(self, quota: MonthlyQuota, enabled: bool = True):
        self.quota = quota
        self.enabled = enabled

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def status(self) -> QuotaStatus:
        """Get current usage with a warning level."""
        used = self.quota.used
        limit = self.quota.limit
        remaining = max(0, limit - used)
        percentage = (used / limit) * 100 if limit else 100.0

        status = "ok"
        message = None
        can_make_request = True

        if remaining == 0:
            status = "exceeded"
            message = "Request quota exceeded. Resets next month. Using static prices only."
            can_make_request = False
        elif percentage >= self.CRITICAL_THRESHOLD * 100:
            status = "critical"
            message = f"Critical: {remaining} requests remaining. Consider using cached prices."
        elif percentage >= self.WARNING_THRESHOLD * 100:
            status = "warning"
            message = f"Warning: {remaining} requests remaining this month."

        return QuotaStatus(
            used=used,
            limit=limit,
            remaining=remaining,
            percentage=percentage,
            status=status,
            can_make_request=can_make_request,
            message=message,
        )

    def should_make_api_request(self) -> QuotaDecision:
        if not self.enabled:
            return QuotaDecision(allowed=False, reason="External requests disabled by user preference")

        if not self.quota.try_acquire():
            return QuotaDecision(allowed=False, reason=self.status().message)

        return QuotaDecision(allowed=True)


# =============================================================================
# In-memory implementations
# =============================================================================


class InMemoryProductCache:
    """Product cache with a fixed time-to-live per entry."""

    def __init__(self, ttl_days: int = 30, clock: Clock = utc_now):
        self.ttl = timedelta(days=ttl_days)
        self._clock = clock
        self._products: dict[str, CachedProduct] = {}

    async def get_cached_product(self, normalized_name: str) -> CachedProduct | None:
        cached = self._products.get(normalized_name)
        if cached is None:
            return None

        if self._clock() > cached.expires_at:
            logger.debug(f"Cached product for '{normalized_name}' expired")
            del self._products[normalized_name]
            return None

        return cached

    async def save_product_to_cache(
        self,
        normalized_name: str,
        product: SearchProduct,
        quantity: float,
        unit: str,
        search_term: str | None = None,
    ) -> None:
        now = self._clock()
        self._products[normalized_name] = CachedProduct(
            product=product,
            quantity=quantity,
            unit=unit,
            timestamp=now,
            expires_at=now + self.ttl,
            search_term=search_term or normalized_name,
        )

    def clear_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [name for name, cached in self._products.items() if now > cached.expires_at]
        for name in expired:
            del self._products[name]
        return len(expired)

    def cached_names(self) -> list[str]:
        return sorted(self._products)

    def __len__(self) -> int:
        return len(self._products)


class InMemoryRecipeCatalog:
    """Recipe catalog over a fixed list of recipes."""

    def __init__(self, recipes: Iterable[Recipe] = ()):
        self._recipes: dict[str, Recipe] = {}
        for recipe in recipes:
            self._recipes[recipe.id] = recipe

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryRecipeCatalog":
        """
        Load recipes from a JSON file holding a list of recipe objects.

        Tags are normalized and inferred on load so the scorer sees
        canonical tags whatever the source used.

        Raises:
            CollaboratorError: If the file cannot be read or holds invalid recipes.
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            recipes = [enhance_recipe_tags(Recipe.model_validate(item)) for item in data]
        except (OSError, ValueError) as e:
            raise CollaboratorError(f"Cannot load recipe library from {path}: {e}", "recipe_catalog") from e

        logger.info(f"Loaded {len(recipes)} recipes from {path}")
        return cls(recipes)

    def get_recipe_by_id(self, recipe_id: str) -> Recipe | None:
        return self._recipes.get(recipe_id)

    def all(self) -> list[Recipe]:
        return list(self._recipes.values())

    def search(
        self,
        max_time: int | None = None,
        exclude_ids: Iterable[str] | None = None,
        chef: str | None = None,
        tags: Iterable[str] | None = None,
    ) -> list[Recipe]:
        """
        Filter recipes, keeping catalog order.

        Recipes without a cooking time pass the max_time filter. All given
        tags must be present.
        """
        excluded = set(exclude_ids or ())
        required_tags = list(tags or ())

        results = []
        for recipe in self._recipes.values():
            if recipe.id in excluded:
                continue
            if chef is not None and recipe.chef != chef:
                continue
            if max_time is not None and recipe.time_mins is not None and recipe.time_mins > max_time:
                continue
            if not all(recipe.has_tag(tag) for tag in required_tags):
                continue
            results.append(recipe)

        return results

    def __len__(self) -> int:
        return len(self._recipes)


class InMemoryAnalyticsSink:
    """Collects analytics events in memory."""

    def __init__(self, opted_out: bool = False):
        self.opted_out = opted_out
        self.events: list[AnalyticsEvent] = []

    def track(self, event: AnalyticsEvent) -> None:
        if self.opted_out:
            return
        self.events.append(event)

    def events_of_type(self, event_type: str) -> list[AnalyticsEvent]:
        return [event for event in self.events if event.type == event_type]

    def count_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for event in self.events:
            counts[event.type] = counts.get(event.type, 0) + 1
        return counts

    def clear(self) -> None:
        self.events.clear()
