"""Domain-level value objects and business rules.

This package contains logic that defines *what* the business rules are,
independent from *where* they are applied (commands, services, repositories).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal

from catalog.domain.money import to_decimal


@dataclass(frozen=True, slots=True)
class ProductSnapshot:
    """Immutable copy of every field of a product at one point in time.

    Commands capture one before mutating so that ``undo`` can write it back,
    and events carry one as their subject so observers running on another
    thread never touch a live ORM instance.
    """

    id: int | None
    name: str
    description: str | None
    price: Decimal
    category: str
    brand: str
    stock: int
    active: bool
    created_at: datetime | None
    modified_at: datetime | None

    @classmethod
    def from_model(cls, product) -> ProductSnapshot:
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=to_decimal(product.price),
            category=product.category,
            brand=product.brand,
            stock=product.stock if product.stock is not None else 0,
            active=bool(product.active),
            created_at=product.created_at,
            modified_at=product.modified_at,
        )

    def apply_to(self, product) -> None:
        """Write every mutable field back onto ``product`` (the id is left alone)."""
        for f in fields(self):
            if f.name == "id":
                continue
            setattr(product, f.name, getattr(self, f.name))


@dataclass(frozen=True, slots=True)
class ProductInvariants:
    """Field rules every persisted product must satisfy.

    Semantics (intentionally centralized):
    - name is non-empty after trimming
    - price is strictly positive
    - stock is zero or more
    """

    def violations(self, *, name: str | None, price, stock: int | None) -> list[str]:
        problems = []
        if name is None or not name.strip():
            problems.append("Product name must not be empty")
        if price is None or to_decimal(price) <= 0:
            problems.append("Product price must be greater than 0")
        if stock is not None and stock < 0:
            problems.append("Product stock must not be negative")
        return problems

    def is_satisfied(self, *, name: str | None, price, stock: int | None) -> bool:
        return not self.violations(name=name, price=price, stock=stock)


PRODUCT_INVARIANTS = ProductInvariants()


@dataclass(slots=True)
class ProductDraft:
    """Field values for a product that does not exist yet."""

    name: str
    price: Decimal
    category: str
    brand: str
    description: str | None = None
    stock: int = 0
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProductChanges:
    """Partial update: ``None`` means "leave the field as it is"."""

    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    category: str | None = None
    brand: str | None = None
    stock: int | None = None

    def present(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def is_empty(self) -> bool:
        return not self.present()


__all__ = [
    "PRODUCT_INVARIANTS",
    "ProductChanges",
    "ProductDraft",
    "ProductInvariants",
    "ProductSnapshot",
]
