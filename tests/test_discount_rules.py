from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from catalog.pricing.context import DiscountContext
from catalog.pricing.rules import CategoryDiscountRule, QuantityTierDiscountRule, SeasonalDiscountRule
from catalog.pricing.tables import DEFAULT_TABLES, DiscountTables, QuantityTier, Season


def product(price="100.00", category="Zapatos", name="Test product"):
    return SimpleNamespace(name=name, price=Decimal(price), category=category)


# ============================================================================
# QUANTITY TIERS
# ============================================================================


@pytest.mark.parametrize(
    "quantity,amount",
    [(1, "0.00"), (2, "0.00"), (3, "5.00"), (5, "5.00"), (6, "10.00"), (10, "10.00"), (11, "15.00"), (200, "15.00")],
)
def test_quantity_tiers_at_price_100(quantity, amount):
    rule = QuantityTierDiscountRule()
    context = DiscountContext.standard_purchase(quantity)

    assert rule.compute(product(), context) == Decimal(amount)


def test_quantity_rule_applies_only_from_first_paying_tier():
    rule = QuantityTierDiscountRule()
    assert not rule.is_applicable(product(), DiscountContext.standard_purchase(2))
    assert rule.is_applicable(product(), DiscountContext.standard_purchase(3))


def test_quantity_discount_rounds_half_up_to_cents():
    rule = QuantityTierDiscountRule()
    # 33.33 * 0.05 = 1.6665
    assert rule.compute(product("33.33"), DiscountContext.standard_purchase(3)) == Decimal("1.67")


def test_vip_gets_relative_bonus():
    rule = QuantityTierDiscountRule()
    context = DiscountContext.standard_purchase(6, "VIP")
    assert rule.compute(product(), context) == Decimal("12.00")


def test_vip_bonus_can_be_disabled():
    rule = QuantityTierDiscountRule(vip_bonus_enabled=False)
    context = DiscountContext.standard_purchase(6, "VIP")
    assert rule.compute(product(), context) == Decimal("10.00")


@pytest.mark.parametrize("top_rate,expected", [("0.25", "30.00"), ("0.28", "30.00"), ("0.20", "24.00")])
def test_vip_rate_is_capped_at_thirty_percent(top_rate, expected):
    tables = DiscountTables(
        quantity_tiers=(QuantityTier(1, Decimal("0")), QuantityTier(50, Decimal(top_rate)))
    )
    rule = QuantityTierDiscountRule(tables)
    context = DiscountContext.standard_purchase(50, "VIP")

    assert rule.compute(product(), context) == Decimal(expected)


def test_next_tier():
    rule = QuantityTierDiscountRule()
    assert rule.next_tier(1) == QuantityTier(3, Decimal("0.05"))
    assert rule.next_tier(4).threshold == 6
    assert rule.next_tier(11) is None


def test_quantity_rule_ignores_invalid_price():
    rule = QuantityTierDiscountRule()
    context = DiscountContext.standard_purchase(10)
    assert not rule.is_applicable(product("0"), context)
    assert rule.compute(product("0"), context) == Decimal("0.00")


# ============================================================================
# CATEGORY
# ============================================================================


@pytest.mark.parametrize(
    "category,amount",
    [
        ("Zapatos", "10.00"),
        ("zapatos", "10.00"),
        ("Camisetas", "5.00"),
        ("Pantalones", "8.00"),
        ("Accesorios", "15.00"),
        ("Equipamiento", "12.00"),
    ],
)
def test_category_rates(category, amount):
    rule = CategoryDiscountRule()
    assert rule.compute(product(category=category), DiscountContext()) == Decimal(amount)


def test_category_without_rate_is_not_applicable():
    rule = CategoryDiscountRule()
    assert not rule.is_applicable(product(category="Electronica"), DiscountContext())
    assert rule.compute(product(category="Electronica"), DiscountContext()) == Decimal("0.00")
    assert not rule.is_applicable(product(category=None), DiscountContext())


def test_category_rule_uses_injected_tables():
    tables = DiscountTables(category_rates={"Balones": Decimal("0.50")})
    rule = CategoryDiscountRule(tables)
    assert rule.compute(product(category="balones"), DiscountContext()) == Decimal("50.00")
    assert not rule.is_applicable(product(category="Zapatos"), DiscountContext())


# ============================================================================
# SEASONAL
# ============================================================================


@pytest.mark.parametrize(
    "month,season",
    [(12, Season.WINTER), (1, Season.WINTER), (2, Season.WINTER), (3, Season.SPRING), (5, Season.SPRING),
     (6, Season.SUMMER), (8, Season.SUMMER), (9, Season.AUTUMN), (11, Season.AUTUMN)],
)
def test_season_for_month(month, season):
    assert Season.for_month(month) is season


def test_explicit_season_in_context_is_case_insensitive():
    rule = SeasonalDiscountRule()
    context = DiscountContext(season="summer", calculated_at=datetime(2024, 1, 10))

    assert rule.compute(product(category="Camisetas"), context) == Decimal("15.00")


def test_season_derived_from_calculation_date():
    rule = SeasonalDiscountRule()
    context = DiscountContext(calculated_at=datetime(2024, 1, 10))

    assert rule.compute(product(category="Abrigos"), context) == Decimal("20.00")
    assert not rule.is_applicable(product(category="Camisetas"), context)


def test_autumn_covers_every_category():
    rule = SeasonalDiscountRule()
    context = DiscountContext(season="AUTUMN")
    assert rule.compute(product(category="Cualquiera"), context) == Decimal("10.00")


def test_spring_offer_is_limited_to_its_categories():
    rule = SeasonalDiscountRule()
    context = DiscountContext(season="SPRING")
    assert rule.compute(product(category="Zapatillas"), context) == Decimal("5.00")
    assert not rule.is_applicable(product(category="Zapatos"), context)


def test_unknown_season_falls_back_to_the_clock():
    rule = SeasonalDiscountRule(clock=lambda: datetime(2024, 7, 15))
    context = DiscountContext(season="MONSOON")

    assert rule.season_for(context) is Season.SUMMER


def test_configured_season_overrides_the_calendar():
    rule = SeasonalDiscountRule(season="winter")
    context = DiscountContext(calculated_at=datetime(2024, 7, 15))

    assert rule.season_for(context) is Season.WINTER
    assert rule.season_for(DiscountContext(season="SUMMER")) is Season.SUMMER


def test_default_tables_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_TABLES.category_rates["zapatos"] = Decimal("0.99")
