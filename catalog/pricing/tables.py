"""Immutable rate tables consumed by the discount rules."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType

ALL_CATEGORIES = "*"


class Season(str, enum.Enum):
    WINTER = "WINTER"
    SPRING = "SPRING"
    SUMMER = "SUMMER"
    AUTUMN = "AUTUMN"

    @classmethod
    def for_month(cls, month: int) -> Season:
        if month in (12, 1, 2):
            return cls.WINTER
        if month in (3, 4, 5):
            return cls.SPRING
        if month in (6, 7, 8):
            return cls.SUMMER
        return cls.AUTUMN

    @classmethod
    def for_date(cls, when: datetime) -> Season:
        return cls.for_month(when.month)

    @classmethod
    def parse(cls, value: str | None) -> Season | None:
        """Case-insensitive lookup; unknown or blank names give None."""
        if value is None or not value.strip():
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class SeasonalOffer:
    rate: Decimal
    categories: frozenset[str]

    def covers(self, category: str | None) -> bool:
        if ALL_CATEGORIES in self.categories:
            return True
        return category is not None and category.strip().lower() in self.categories


@dataclass(frozen=True, slots=True)
class QuantityTier:
    threshold: int
    rate: Decimal


def _ci_mapping(rates: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
    return MappingProxyType({key.strip().lower(): Decimal(value) for key, value in rates.items()})


def _offer(rate: str, *categories: str) -> SeasonalOffer:
    return SeasonalOffer(Decimal(rate), frozenset(c.strip().lower() for c in categories))


@dataclass(frozen=True, slots=True)
class DiscountTables:
    """Rates for every built-in rule.

    Category keys are compared case-insensitively. Quantity tiers are kept sorted
    by threshold.
    """

    category_rates: Mapping[str, Decimal] = field(default_factory=dict)
    quantity_tiers: tuple[QuantityTier, ...] = ()
    vip_bonus: Decimal = Decimal("0.20")
    max_quantity_rate: Decimal = Decimal("0.30")
    seasonal_offers: Mapping[Season, SeasonalOffer] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "category_rates", _ci_mapping(self.category_rates))
        object.__setattr__(
            self,
            "quantity_tiers",
            tuple(sorted(self.quantity_tiers, key=lambda tier: tier.threshold)),
        )
        object.__setattr__(self, "seasonal_offers", MappingProxyType(dict(self.seasonal_offers)))

    def category_rate(self, category: str | None) -> Decimal:
        if not category:
            return Decimal("0")
        return self.category_rates.get(category.strip().lower(), Decimal("0"))

    def tier_for(self, quantity: int) -> QuantityTier | None:
        """Greatest tier whose threshold is at or below ``quantity``."""
        found = None
        for tier in self.quantity_tiers:
            if tier.threshold <= quantity:
                found = tier
            else:
                break
        return found

    def next_tier(self, quantity: int) -> QuantityTier | None:
        for tier in self.quantity_tiers:
            if tier.threshold > quantity:
                return tier
        return None

    def seasonal_offer(self, season: Season | None) -> SeasonalOffer | None:
        if season is None:
            return None
        return self.seasonal_offers.get(season)


DEFAULT_TABLES = DiscountTables(
    category_rates={
        "Zapatos": Decimal("0.10"),
        "Camisetas": Decimal("0.05"),
        "Pantalones": Decimal("0.08"),
        "Accesorios": Decimal("0.15"),
        "Equipamiento": Decimal("0.12"),
    },
    quantity_tiers=(
        QuantityTier(1, Decimal("0.00")),
        QuantityTier(3, Decimal("0.05")),
        QuantityTier(6, Decimal("0.10")),
        QuantityTier(11, Decimal("0.15")),
    ),
    seasonal_offers={
        Season.SUMMER: _offer("0.15", "Camisetas", "Shorts", "Trajes de baño"),
        Season.WINTER: _offer("0.20", "Abrigos", "Sudaderas", "Pantalones"),
        Season.AUTUMN: _offer("0.10", ALL_CATEGORIES),
        Season.SPRING: _offer("0.05", "Zapatillas", "Calzado deportivo"),
    },
)
