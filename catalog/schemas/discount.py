from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from catalog.pricing.context import DEFAULT_CHANNEL, DEFAULT_COUNTRY, REGULAR, DiscountContext


class DiscountRequest(BaseModel):
    quantity: int = Field(1, ge=1)
    actor_type: str = REGULAR
    promo_code: str | None = None
    channel: str = DEFAULT_CHANNEL
    season: str | None = None
    country: str = DEFAULT_COUNTRY
    properties: dict[str, Any] = Field(default_factory=dict)

    def to_context(self, actor_id: str | None = None) -> DiscountContext:
        return DiscountContext.with_defaults(
            quantity=self.quantity,
            actor_type=self.actor_type,
            promo_code=self.promo_code,
            channel=self.channel,
            season=self.season,
            country=self.country,
            actor_id=actor_id,
            properties=self.properties,
        )


class DiscountQuote(BaseModel):
    product_id: int
    original_price: Decimal
    final_price: Decimal
    rule_name: str
    amount: Decimal
    percentage: Decimal
    has_discount: bool


class DiscountRuleInfo(BaseModel):
    name: str
    priority: int
    kind: str
