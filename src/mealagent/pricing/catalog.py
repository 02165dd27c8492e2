"""Static product catalog mapping ingredients to supermarket products."""

import json
from collections.abc import Iterable
from datetime import date
from functools import lru_cache
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mealagent.logging_config import get_logger
from mealagent.normalize.units import normalize_to_base_unit

logger = get_logger(__name__)

DEFAULT_CATALOG_RESOURCE = "product_catalog.json"


class Product(BaseModel):
    """A purchasable retail product with a fixed pack size."""

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    brand: str | None = None
    pack_size: float = Field(gt=0)
    pack_unit: str  # g, ml, kg, unit
    price: float = Field(ge=0)
    aisle: str | None = None
    last_updated: date | None = None

    @property
    def base_pack_size(self) -> float:
        """Pack size in its family base unit (g, ml or unit)."""
        return normalize_to_base_unit(self.pack_size, self.pack_unit).quantity

    @property
    def price_per_unit(self) -> float:
        """Price per base unit, so g and kg packs compare directly."""
        return self.price / self.base_pack_size


class IngredientMapping(BaseModel):
    """Candidate products for one normalized ingredient name."""

    model_config = ConfigDict(frozen=True)

    normalized_name: str
    products: list[Product] = Field(min_length=1)
    confidence: str = "medium"  # "high", "medium", "low"
    requires_choice: bool = False
    notes: str | None = None


class ProductCatalog:
    """Read-only lookup of ingredient mappings by normalized name."""

    def __init__(self, mappings: Iterable[IngredientMapping]):
        self._mappings: dict[str, IngredientMapping] = {}
        for mapping in mappings:
            if mapping.normalized_name in self._mappings:
                logger.warning(f"Duplicate catalog mapping for '{mapping.normalized_name}', keeping the first")
                continue
            self._mappings[mapping.normalized_name] = mapping

    @classmethod
    def from_dict(cls, data: dict) -> "ProductCatalog":
        return cls(IngredientMapping.model_validate(item) for item in data.get("mappings", []))

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ProductCatalog":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        catalog = cls.from_dict(data)
        logger.info(f"Loaded {len(catalog)} ingredient mappings from {path}")
        return catalog

    def find_mapping(self, normalized_name: str) -> IngredientMapping | None:
        return self._mappings.get(normalized_name)

    def names(self) -> list[str]:
        return list(self._mappings)

    def __contains__(self, normalized_name: object) -> bool:
        return normalized_name in self._mappings

    def __len__(self) -> int:
        return len(self._mappings)


@lru_cache
def load_default_catalog() -> ProductCatalog:
    """Load the product catalog shipped with the package."""
    text = resources.files("mealagent.data").joinpath(DEFAULT_CATALOG_RESOURCE).read_text(encoding="utf-8")
    catalog = ProductCatalog.from_dict(json.loads(text))
    logger.info(f"Loaded default product catalog with {len(catalog)} mappings")
    return catalog
