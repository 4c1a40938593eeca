import dataclasses
from datetime import datetime
from decimal import Decimal

import pytest

from catalog.db.models.product import Product as ProductModel
from catalog.domain import ProductSnapshot
from catalog.events.models import EventType, ProductEvent


def _model() -> ProductModel:
    return ProductModel(
        id=3,
        name="Pegasus",
        description="Daily trainer",
        price=Decimal("89.90"),
        category="Zapatos",
        brand="Nike",
        stock=4,
        active=True,
        created_at=datetime(2024, 2, 2),
    )


def test_event_from_model_carries_a_snapshot():
    event = ProductEvent.of(EventType.PRODUCT_CREATED, _model(), actor="alice")

    assert isinstance(event.product, ProductSnapshot)
    assert event.product_id == 3
    assert event.product_name == "Pegasus"
    assert event.actor == "alice"
    assert event.event_id
    assert isinstance(event.timestamp, datetime)


def test_event_requires_type_and_product():
    snapshot = ProductSnapshot.from_model(_model())
    with pytest.raises(ValueError):
        ProductEvent(type=None, product=snapshot)
    with pytest.raises(ValueError):
        ProductEvent(type=EventType.PRODUCT_CREATED, product=None)
    with pytest.raises(ValueError):
        ProductEvent(type="PRODUCT_CREATED_TYPO", product=snapshot)


def test_events_are_equal_only_by_id():
    snapshot = ProductSnapshot.from_model(_model())
    first = ProductEvent(type=EventType.STOCK_LOW, product=snapshot)
    second = ProductEvent(type=EventType.STOCK_LOW, product=snapshot)

    assert first != second
    assert first == dataclasses.replace(second, event_id=first.event_id)
    assert len({first, first}) == 1


def test_event_is_immutable():
    event = ProductEvent.of(EventType.PRODUCT_UPDATED, _model())
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.actor = "mallory"


def test_event_type_classification():
    assert EventType.STOCK_DEPLETED.is_stock_event
    assert EventType.STOCK_DEPLETED.is_urgent
    assert EventType.ERROR.is_urgent
    assert EventType.DISCOUNT_APPLIED.is_price_event
    assert not EventType.PRODUCT_CREATED.is_stock_event
    assert not EventType.PRICE_CHANGED.is_urgent
    assert EventType.STOCK_LOW.label == "Low stock detected"


def test_snapshot_round_trip_onto_model():
    model = _model()
    snapshot = ProductSnapshot.from_model(model)
    model.name = "Changed"
    model.stock = 0

    snapshot.apply_to(model)

    assert model.name == "Pegasus"
    assert model.stock == 4
    assert model.id == 3
