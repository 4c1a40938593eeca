"""Domain events raised after product mutations."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from catalog.domain import ProductSnapshot

SYSTEM_ACTOR = "SYSTEM"


class EventType(str, enum.Enum):
    PRODUCT_CREATED = "PRODUCT_CREATED"
    PRODUCT_UPDATED = "PRODUCT_UPDATED"
    PRODUCT_REMOVED = "PRODUCT_REMOVED"
    STOCK_CHANGED = "STOCK_CHANGED"
    STOCK_LOW = "STOCK_LOW"
    STOCK_DEPLETED = "STOCK_DEPLETED"
    PRICE_CHANGED = "PRICE_CHANGED"
    DISCOUNT_APPLIED = "DISCOUNT_APPLIED"
    ERROR = "ERROR"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_stock_event(self) -> bool:
        return self in (EventType.STOCK_CHANGED, EventType.STOCK_LOW, EventType.STOCK_DEPLETED)

    @property
    def is_price_event(self) -> bool:
        return self in (EventType.PRICE_CHANGED, EventType.DISCOUNT_APPLIED)

    @property
    def is_urgent(self) -> bool:
        return self in (EventType.STOCK_DEPLETED, EventType.ERROR)


_LABELS = {
    EventType.PRODUCT_CREATED: "Product created",
    EventType.PRODUCT_UPDATED: "Product updated",
    EventType.PRODUCT_REMOVED: "Product removed from the catalog",
    EventType.STOCK_CHANGED: "Product stock changed",
    EventType.STOCK_LOW: "Low stock detected",
    EventType.STOCK_DEPLETED: "Product out of stock",
    EventType.PRICE_CHANGED: "Product price changed",
    EventType.DISCOUNT_APPLIED: "Discount applied to product",
    EventType.ERROR: "Error in product operation",
}


@dataclass(frozen=True, slots=True, eq=False)
class ProductEvent:
    """Immutable record of something that happened to a product.

    ``payload`` is free-form; for PRICE_CHANGED it holds the previous price.
    Two events are equal only when they share an ``event_id``.
    """

    type: EventType
    product: ProductSnapshot
    actor: str = SYSTEM_ACTOR
    description: str | None = None
    payload: Any = None
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if self.type is None:
            raise ValueError("Event type is required")
        if not isinstance(self.type, EventType):
            raise ValueError(f"Unknown event type: {self.type!r}")
        if self.product is None:
            raise ValueError("Event product is required")
        if self.timestamp is None:
            raise ValueError("Event timestamp is required")

    @classmethod
    def of(
        cls,
        event_type: EventType,
        product,
        actor: str | None = None,
        description: str | None = None,
        payload: Any = None,
        timestamp: datetime | None = None,
    ) -> ProductEvent:
        """Build an event from a snapshot or a live product model."""
        if product is not None and not isinstance(product, ProductSnapshot):
            product = ProductSnapshot.from_model(product)
        kwargs = {}
        if timestamp is not None:
            kwargs["timestamp"] = timestamp
        return cls(
            type=event_type,
            product=product,
            actor=actor or SYSTEM_ACTOR,
            description=description,
            payload=payload,
            **kwargs,
        )

    @property
    def product_id(self) -> int | None:
        return self.product.id

    @property
    def product_name(self) -> str:
        return self.product.name

    @property
    def is_urgent(self) -> bool:
        return self.type.is_urgent

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProductEvent):
            return NotImplemented
        return self.event_id == other.event_id

    def __hash__(self) -> int:
        return hash(self.event_id)

    def __str__(self) -> str:
        return (
            f"ProductEvent(id={self.event_id}, type={self.type.value}, "
            f"product={self.product_name!r}, timestamp={self.timestamp.isoformat()})"
        )
