"""Picks at most one discount rule for a product and applies it."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from catalog.core.config import Settings
from catalog.domain.money import MONEY_PLACES, ZERO, is_positive, normalize, to_decimal
from catalog.errors import DiscountCalculationError
from catalog.pricing.context import DiscountContext
from catalog.pricing.rules import (
    CategoryDiscountRule,
    DiscountRule,
    QuantityTierDiscountRule,
    SeasonalDiscountRule,
)
from catalog.pricing.tables import DEFAULT_TABLES, DiscountTables

logger = logging.getLogger(__name__)

NO_DISCOUNT_RULE = "none applicable"


@dataclass(frozen=True, slots=True)
class DiscountResult:
    original_price: Decimal
    final_price: Decimal
    rule_name: str
    amount: Decimal
    elapsed_ms: float = 0.0

    @classmethod
    def no_discount(cls, price, elapsed_ms: float = 0.0) -> DiscountResult:
        value = normalize(price) if price is not None else ZERO
        return cls(value, value, NO_DISCOUNT_RULE, ZERO, elapsed_ms)

    @property
    def has_discount(self) -> bool:
        return self.amount > 0

    @property
    def percentage(self) -> Decimal:
        if self.original_price <= 0:
            return ZERO
        return (self.amount / self.original_price * 100).quantize(
            MONEY_PLACES, rounding=ROUND_HALF_UP
        )


@dataclass(frozen=True, slots=True)
class RuleInfo:
    name: str
    priority: int
    kind: str


class DiscountCoordinator:
    """Evaluates rules in ascending priority order; the first applicable one wins.

    Discounts never stack. A rule that raises is skipped (fail-open), and the next
    one gets its chance.
    """

    def __init__(self, rules: Iterable[DiscountRule]):
        self._rules = tuple(sorted(rules, key=lambda rule: rule.priority))
        logger.info(
            "Discount coordinator ready with %d rule(s): %s",
            len(self._rules),
            ", ".join(f"{r.name} ({r.priority})" for r in self._rules),
        )

    @property
    def rules(self) -> tuple[DiscountRule, ...]:
        return self._rules

    def resolve(
        self, product, context: DiscountContext | None = None, strict: bool = False
    ) -> DiscountResult:
        started = time.perf_counter()
        price = getattr(product, "price", None)
        try:
            valid = product is not None and is_positive(price)
        except ValueError as exc:
            logger.error("Unreadable price %r for discount calculation", price)
            if strict:
                raise DiscountCalculationError(
                    f"Could not read the price of product '{getattr(product, 'name', None)}'"
                ) from exc
            return DiscountResult.no_discount(None)
        if not valid:
            logger.warning("Invalid product for discount calculation: %r", product)
            return DiscountResult.no_discount(price if product is not None else None)
        if context is None:
            context = DiscountContext.with_defaults()

        try:
            return self._resolve(product, context, started)
        except Exception as exc:
            label = getattr(product, "name", None)
            logger.exception("Discount calculation failed for '%s'", label)
            if strict:
                raise DiscountCalculationError(
                    f"Could not calculate discount for product '{label}'"
                ) from exc
            return DiscountResult.no_discount(price, self._elapsed(started))

    def _resolve(self, product, context: DiscountContext, started: float) -> DiscountResult:
        original = normalize(product.price)
        for rule in self._rules:
            try:
                if not rule.is_applicable(product, context):
                    continue
                amount = to_decimal(rule.compute(product, context))
            except Exception:
                logger.warning(
                    "Discount rule %s failed for '%s'; skipping",
                    rule.name,
                    product.name,
                    exc_info=True,
                )
                continue

            if amount <= 0:
                logger.debug("Rule %s applicable but produced no discount", rule.name)
                continue

            amount = normalize(min(amount, original))
            final = normalize(original - amount)
            elapsed = self._elapsed(started)
            logger.info(
                "Discount '%s' applied to '%s': %s -> %s (-%s) in %.2fms",
                rule.name,
                product.name,
                original,
                final,
                amount,
                elapsed,
            )
            return DiscountResult(original, final, rule.name, amount, elapsed)

        logger.debug("No discount applicable to '%s'", product.name)
        return DiscountResult.no_discount(original, self._elapsed(started))

    def applicable_rules(self, product, context: DiscountContext | None = None) -> list[str]:
        """Names of every rule that would apply, in evaluation order."""
        if product is None:
            return []
        context = context or DiscountContext.with_defaults()
        names = []
        for rule in self._rules:
            try:
                if rule.is_applicable(product, context):
                    names.append(rule.name)
            except Exception:
                logger.warning("Applicability check failed for rule %s", rule.name, exc_info=True)
        return names

    def describe_rules(self) -> list[RuleInfo]:
        return [RuleInfo(r.name, r.priority, type(r).__name__) for r in self._rules]

    @staticmethod
    def _elapsed(started: float) -> float:
        return (time.perf_counter() - started) * 1000


def build_default_coordinator(
    settings: Settings, tables: DiscountTables = DEFAULT_TABLES
) -> DiscountCoordinator:
    """Wire the built-in rules against ``tables`` using the configured toggles."""
    return DiscountCoordinator(
        [
            QuantityTierDiscountRule(tables, vip_bonus_enabled=settings.vip_bonus_enabled),
            SeasonalDiscountRule(tables, season=settings.discount_season),
            CategoryDiscountRule(tables),
        ]
    )
