from catalog.pricing.context import DiscountContext
from catalog.pricing.coordinator import (
    NO_DISCOUNT_RULE,
    DiscountCoordinator,
    DiscountResult,
    build_default_coordinator,
)
from catalog.pricing.rules import (
    CategoryDiscountRule,
    DiscountRule,
    QuantityTierDiscountRule,
    SeasonalDiscountRule,
)
from catalog.pricing.tables import DEFAULT_TABLES, DiscountTables, QuantityTier, Season

__all__ = [
    "DEFAULT_TABLES",
    "NO_DISCOUNT_RULE",
    "CategoryDiscountRule",
    "DiscountContext",
    "DiscountCoordinator",
    "DiscountResult",
    "DiscountRule",
    "DiscountTables",
    "QuantityTier",
    "QuantityTierDiscountRule",
    "Season",
    "SeasonalDiscountRule",
    "build_default_coordinator",
]
