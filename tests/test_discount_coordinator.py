import logging
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from catalog.core.config import Settings
from catalog.errors import DiscountCalculationError
from catalog.pricing.context import DiscountContext
from catalog.pricing.coordinator import (
    NO_DISCOUNT_RULE,
    DiscountCoordinator,
    DiscountResult,
    build_default_coordinator,
)
from catalog.pricing.rules import DiscountRule


def product(price="100.00", category="Zapatos"):
    return SimpleNamespace(name="Test product", price=Decimal(price), category=category)


class FixedRule(DiscountRule):
    def __init__(self, name, priority, amount=None, applicable=True, error=None):
        self.name = name
        self.priority = priority
        self.amount = amount
        self.applicable = applicable
        self.error = error
        self.seen_contexts = []

    def is_applicable(self, product, context):
        self.seen_contexts.append(context)
        if self.error is not None:
            raise self.error
        return self.applicable

    def compute(self, product, context):
        return Decimal(self.amount)


@pytest.fixture
def default_coordinator():
    return build_default_coordinator(Settings())


def test_rules_are_evaluated_in_ascending_priority(default_coordinator):
    described = default_coordinator.describe_rules()

    assert [(r.name, r.priority) for r in described] == [
        ("Quantity discount", 5),
        ("Seasonal discount", 7),
        ("Category discount", 10),
    ]
    assert described[0].kind == "QuantityTierDiscountRule"


def test_first_applicable_rule_wins_and_discounts_do_not_stack(default_coordinator):
    """Test that quantity (priority 5) beats category (priority 10) for Zapatos."""
    context = DiscountContext(quantity=6, season="SPRING")

    result = default_coordinator.resolve(product(), context)

    assert result.rule_name == "Quantity discount"
    assert result.amount == Decimal("10.00")
    assert result.final_price == Decimal("90.00")


def test_category_discount_when_nothing_earlier_applies(default_coordinator):
    context = DiscountContext(quantity=1, season="SPRING")

    result = default_coordinator.resolve(product(), context)

    assert result.rule_name == "Category discount"
    assert result.original_price == Decimal("100.00")
    assert result.final_price == Decimal("90.00")
    assert result.percentage == Decimal("10.00")
    assert result.has_discount


def test_seasonal_discount_precedes_category(default_coordinator):
    context = DiscountContext(quantity=1, season="SUMMER")

    result = default_coordinator.resolve(product(category="Camisetas"), context)

    assert result.rule_name == "Seasonal discount"
    assert result.amount == Decimal("15.00")


def test_no_applicable_rule_returns_original_price(default_coordinator):
    context = DiscountContext(quantity=1, season="SPRING")

    result = default_coordinator.resolve(product("59.99", category="Electronica"), context)

    assert result.rule_name == NO_DISCOUNT_RULE
    assert result.final_price == Decimal("59.99")
    assert result.amount == Decimal("0.00")
    assert not result.has_discount


def test_failing_rule_is_skipped(caplog):
    """Test that a rule that raises does not stop the next one from applying."""
    caplog.set_level(logging.WARNING, logger="catalog.pricing.coordinator")
    coordinator = DiscountCoordinator(
        [FixedRule("broken", 1, error=RuntimeError("boom")), FixedRule("fallback", 2, amount="3")]
    )

    result = coordinator.resolve(product(), DiscountContext())

    assert result.rule_name == "fallback"
    assert result.amount == Decimal("3.00")
    assert any("Discount rule broken failed" in r.getMessage() for r in caplog.records)


def test_zero_amount_moves_on_to_next_rule():
    coordinator = DiscountCoordinator([FixedRule("zero", 1, amount="0"), FixedRule("real", 2, amount="4")])
    assert coordinator.resolve(product(), DiscountContext()).rule_name == "real"


def test_discount_never_makes_price_negative():
    coordinator = DiscountCoordinator([FixedRule("huge", 1, amount="250")])

    result = coordinator.resolve(product("100.00"), DiscountContext())

    assert result.final_price == Decimal("0.00")
    assert result.amount == Decimal("100.00")


@pytest.mark.parametrize("bad_product", [None, product("0"), product("-10")])
def test_invalid_product_gets_no_discount(bad_product):
    coordinator = DiscountCoordinator([FixedRule("any", 1, amount="5")])

    result = coordinator.resolve(bad_product, DiscountContext())

    assert result.rule_name == NO_DISCOUNT_RULE
    assert not result.has_discount


def test_missing_context_uses_defaults():
    rule = FixedRule("any", 1, amount="1")
    DiscountCoordinator([rule]).resolve(product(), None)

    (context,) = rule.seen_contexts
    assert context.quantity == 1
    assert context.actor_type == "REGULAR"
    assert context.calculated_at is not None


def test_engine_failure_degrades_to_no_discount(monkeypatch):
    coordinator = DiscountCoordinator([FixedRule("any", 1, amount="5")])

    def explode(*args):
        raise ArithmeticError("engine broke")

    monkeypatch.setattr(coordinator, "_resolve", explode)

    result = coordinator.resolve(product(), DiscountContext())
    assert result.rule_name == NO_DISCOUNT_RULE
    assert result.final_price == Decimal("100.00")


def test_engine_failure_raises_in_strict_mode(monkeypatch):
    coordinator = DiscountCoordinator([FixedRule("any", 1, amount="5")])

    def explode(*args):
        raise ArithmeticError("engine broke")

    monkeypatch.setattr(coordinator, "_resolve", explode)

    with pytest.raises(DiscountCalculationError) as exc_info:
        coordinator.resolve(product(), DiscountContext(), strict=True)
    assert isinstance(exc_info.value.__cause__, ArithmeticError)


def test_applicable_rules_lists_every_match(default_coordinator):
    context = DiscountContext(quantity=6, calculated_at=datetime(2024, 10, 1))

    names = default_coordinator.applicable_rules(product(), context)

    assert names == ["Quantity discount", "Seasonal discount", "Category discount"]


def test_discount_result_percentage():
    result = DiscountResult(Decimal("33.33"), Decimal("31.66"), "x", Decimal("1.67"))
    assert result.percentage == Decimal("5.01")
    assert DiscountResult.no_discount(Decimal("10")).percentage == Decimal("0.00")


def test_vip_disabled_in_settings():
    coordinator = build_default_coordinator(Settings(VIP_BONUS_ENABLED=False))
    context = DiscountContext(quantity=6, actor_type="VIP", season="SPRING")

    assert coordinator.resolve(product(), context).amount == Decimal("10.00")


def test_unreadable_price_degrades_to_no_discount(caplog):
    caplog.set_level(logging.ERROR, logger="catalog.pricing.coordinator")
    coordinator = DiscountCoordinator([FixedRule("any", 1, amount="5")])
    bad = SimpleNamespace(name="Broken", price="abc", category="Zapatos")

    result = coordinator.resolve(bad, DiscountContext())

    assert result.rule_name == NO_DISCOUNT_RULE
    assert result.final_price == Decimal("0.00")
    assert any("Unreadable price" in r.getMessage() for r in caplog.records)


def test_unreadable_price_raises_in_strict_mode():
    coordinator = DiscountCoordinator([FixedRule("any", 1, amount="5")])
    bad = SimpleNamespace(name="Broken", price="abc", category="Zapatos")

    with pytest.raises(DiscountCalculationError):
        coordinator.resolve(bad, DiscountContext(), strict=True)
