"""Built-in discount rules.

A rule answers two questions about a product in a purchase context: whether it
applies at all, and how much money it takes off a single unit. Rules hold no
mutable state and may be shared between threads.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from catalog.domain.money import ZERO, is_positive, multiply
from catalog.pricing.context import DiscountContext
from catalog.pricing.tables import DEFAULT_TABLES, DiscountTables, QuantityTier, Season

logger = logging.getLogger(__name__)


class DiscountRule(ABC):
    priority: int = 100
    name: str = "discount"

    @abstractmethod
    def is_applicable(self, product, context: DiscountContext) -> bool:
        ...

    @abstractmethod
    def compute(self, product, context: DiscountContext) -> Decimal:
        """Amount to subtract from one unit's price; never negative."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


class CategoryDiscountRule(DiscountRule):
    priority = 10
    name = "Category discount"

    def __init__(self, tables: DiscountTables = DEFAULT_TABLES):
        self._tables = tables

    def rate_for(self, category: str | None) -> Decimal:
        return self._tables.category_rate(category)

    def is_applicable(self, product, context: DiscountContext) -> bool:
        return (
            product is not None
            and is_positive(product.price)
            and self.rate_for(product.category) > 0
        )

    def compute(self, product, context: DiscountContext) -> Decimal:
        if product is None or not is_positive(product.price):
            return ZERO
        rate = self.rate_for(product.category)
        if rate <= 0:
            return ZERO
        amount = multiply(product.price, rate)
        logger.debug(
            "Category discount for '%s' (%s): %s%% = %s",
            product.name,
            product.category,
            rate * 100,
            amount,
        )
        return amount


class QuantityTierDiscountRule(DiscountRule):
    """Tiered rate by units purchased, with an optional relative bonus for VIP buyers."""

    priority = 5
    name = "Quantity discount"

    def __init__(self, tables: DiscountTables = DEFAULT_TABLES, vip_bonus_enabled: bool = True):
        self._tables = tables
        self.vip_bonus_enabled = vip_bonus_enabled

    def base_rate(self, quantity: int | None) -> Decimal:
        if quantity is None or quantity <= 0:
            return Decimal("0")
        tier = self._tables.tier_for(quantity)
        return tier.rate if tier is not None else Decimal("0")

    def effective_rate(self, context: DiscountContext) -> Decimal:
        rate = self.base_rate(context.quantity)
        if rate <= 0:
            return Decimal("0")
        if self.vip_bonus_enabled and context.is_vip():
            boosted = rate * (1 + self._tables.vip_bonus)
            capped = min(boosted, self._tables.max_quantity_rate)
            if capped < boosted:
                logger.debug("VIP quantity rate capped at %s (was %s)", capped, boosted)
            return capped
        return rate

    def next_tier(self, quantity: int) -> QuantityTier | None:
        """The next tier a buyer of ``quantity`` units could reach, if any."""
        return self._tables.next_tier(quantity)

    def is_applicable(self, product, context: DiscountContext) -> bool:
        return (
            product is not None
            and context is not None
            and is_positive(product.price)
            and self.base_rate(context.quantity) > 0
        )

    def compute(self, product, context: DiscountContext) -> Decimal:
        if product is None or context is None or not is_positive(product.price):
            return ZERO
        rate = self.effective_rate(context)
        if rate <= 0:
            return ZERO
        amount = multiply(product.price, rate)
        logger.debug(
            "Quantity discount for '%s' x%s (%s): %s",
            product.name,
            context.quantity,
            context.actor_type,
            amount,
        )
        return amount


class SeasonalDiscountRule(DiscountRule):
    priority = 7
    name = "Seasonal discount"

    def __init__(
        self,
        tables: DiscountTables = DEFAULT_TABLES,
        clock: Callable[[], datetime] = datetime.now,
        season: str | None = None,
    ):
        self._tables = tables
        self._clock = clock
        # A configured season overrides the calendar but not the context.
        self._fixed_season = Season.parse(season)

    def season_for(self, context: DiscountContext | None) -> Season:
        if context is not None:
            explicit = Season.parse(context.season)
            if explicit is not None:
                return explicit
        if self._fixed_season is not None:
            return self._fixed_season
        when = context.calculated_at if context is not None else None
        return Season.for_date(when or self._clock())

    def rate_for(self, product, context: DiscountContext | None) -> Decimal:
        offer = self._tables.seasonal_offer(self.season_for(context))
        if offer is None or not offer.covers(product.category):
            return Decimal("0")
        return offer.rate

    def is_applicable(self, product, context: DiscountContext) -> bool:
        return (
            product is not None
            and is_positive(product.price)
            and self.rate_for(product, context) > 0
        )

    def compute(self, product, context: DiscountContext) -> Decimal:
        if product is None or not is_positive(product.price):
            return ZERO
        rate = self.rate_for(product, context)
        if rate <= 0:
            return ZERO
        amount = multiply(product.price, rate)
        logger.debug(
            "Seasonal discount (%s) for '%s': %s",
            self.season_for(context).value,
            product.name,
            amount,
        )
        return amount
