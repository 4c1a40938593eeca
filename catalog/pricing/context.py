"""Purchase context handed to discount rules."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any

REGULAR = "REGULAR"
VIP = "VIP"
EMPLOYEE = "EMPLOYEE"
WHOLESALE = "WHOLESALE"

DEFAULT_CHANNEL = "WEB"
DEFAULT_COUNTRY = "MX"

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


def _frozen(properties: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(properties or {}))


@dataclass(frozen=True, slots=True)
class DiscountContext:
    """Everything a rule may want to know about the purchase besides the product.

    ``properties`` is an open-ended, read-only bag for data that has no dedicated
    field; the typed ``get_*`` accessors fall back to a default instead of raising
    when a value is missing or has the wrong shape.
    """

    quantity: int = 1
    actor_type: str = REGULAR
    promo_code: str | None = None
    channel: str = DEFAULT_CHANNEL
    season: str | None = None
    calculated_at: datetime | None = None
    country: str = DEFAULT_COUNTRY
    actor_id: str | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", _frozen(self.properties))

    @classmethod
    def with_defaults(cls, **overrides) -> DiscountContext:
        """Single regular-customer web purchase in MX, calculated now."""
        overrides.setdefault("calculated_at", datetime.now())
        return cls(**overrides)

    @classmethod
    def standard_purchase(cls, quantity: int, actor_type: str = REGULAR) -> DiscountContext:
        return cls.with_defaults(quantity=quantity, actor_type=actor_type)

    def but(self, **changes) -> DiscountContext:
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Properties bag
    # ------------------------------------------------------------------

    def has_property(self, key: str) -> bool:
        return key in self.properties

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def get_str(self, key: str, default: str | None = None) -> str | None:
        value = self.properties.get(key)
        return default if value is None else str(value)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self.properties.get(key)
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.properties.get(key)
        if isinstance(value, bool):
            return value
        if value is None:
            return default
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        return default

    # ------------------------------------------------------------------
    # Convenience predicates
    # ------------------------------------------------------------------

    def is_vip(self) -> bool:
        return (self.actor_type or "").upper() == VIP

    def is_employee(self) -> bool:
        return (self.actor_type or "").upper() == EMPLOYEE

    def has_promo_code(self) -> bool:
        return bool(self.promo_code and self.promo_code.strip())

    def is_bulk_purchase(self, threshold: int = 10) -> bool:
        return self.quantity is not None and self.quantity >= threshold
