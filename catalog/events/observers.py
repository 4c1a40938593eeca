import enum
import logging
from decimal import ROUND_HALF_UP, Decimal

from catalog.domain.money import RATE_PLACES, to_decimal
from catalog.events.dispatcher import ProductObserver
from catalog.events.models import SYSTEM_ACTOR, EventType, ProductEvent


class StockAlert(str, enum.Enum):
    OK = "OK"
    LOW = "LOW"
    CRITICAL = "CRITICAL"


class PriceChangeLevel(str, enum.Enum):
    NORMAL = "NORMAL"
    SIGNIFICANT = "SIGNIFICANT"
    CRITICAL = "CRITICAL"


DEFAULT_REORDER_QUANTITY = 25
REORDER_QUANTITIES = {
    "zapatos": 20,
    "camisetas": 50,
    "pantalones": 30,
}


class StockObserver(ProductObserver):
    """Raises stock alerts and suggests reorder quantities."""

    priority = 10
    asynchronous = False

    def __init__(self, low_threshold: int = 5, critical_threshold: int = 1):
        self.low_threshold = low_threshold
        self.critical_threshold = critical_threshold
        self._logger = logging.getLogger(f"{__name__}.stock")

    def is_interested_in(self, event_type: EventType) -> bool:
        return event_type.is_stock_event

    def alert_level(self, stock: int | None) -> StockAlert:
        if stock is None:
            return StockAlert.OK
        if stock <= self.critical_threshold:
            return StockAlert.CRITICAL
        if stock <= self.low_threshold:
            return StockAlert.LOW
        return StockAlert.OK

    @staticmethod
    def reorder_quantity(category: str | None) -> int:
        if not category:
            return DEFAULT_REORDER_QUANTITY
        return REORDER_QUANTITIES.get(category.strip().lower(), DEFAULT_REORDER_QUANTITY)

    def on_event(self, event: ProductEvent) -> None:
        product = event.product
        if event.type is EventType.STOCK_CHANGED:
            self._logger.info(
                "Stock updated for '%s' (id=%s): %s units",
                product.name,
                product.id,
                product.stock,
            )
            self._alert(product.name, product.stock)
        elif event.type is EventType.STOCK_LOW:
            self._logger.warning(
                "Low stock for '%s' (id=%s): %s units", product.name, product.id, product.stock
            )
            self._alert(product.name, product.stock)
            self._logger.info(
                "Reorder suggestion for '%s': %d units",
                product.name,
                self.reorder_quantity(product.category),
            )
        elif event.type is EventType.STOCK_DEPLETED:
            self._logger.error("Product '%s' (id=%s) is out of stock", product.name, product.id)
            self._logger.info(
                "Reorder suggestion for '%s': %d units",
                product.name,
                self.reorder_quantity(product.category),
            )

    def _alert(self, name: str, stock: int) -> None:
        level = self.alert_level(stock)
        if level is StockAlert.CRITICAL:
            self._logger.error("CRITICAL stock for '%s': only %s unit(s) left", name, stock)
        elif level is StockAlert.LOW:
            self._logger.warning(
                "LOW stock for '%s': %s unit(s) left (threshold %d)", name, stock, self.low_threshold
            )


SIGNIFICANT_CHANGE = Decimal("0.15")
CRITICAL_CHANGE = Decimal("0.25")
HIGH_PRICE = Decimal("1000")
LOW_PRICE = Decimal("1")


class PriceObserver(ProductObserver):
    """Analyses price changes and discounts, escalating large swings."""

    priority = 2
    asynchronous = True

    def __init__(self, asynchronous: bool = True):
        self.asynchronous = asynchronous
        self._logger = logging.getLogger(f"{__name__}.price")

    def is_interested_in(self, event_type: EventType) -> bool:
        return event_type.is_price_event

    @staticmethod
    def change_ratio(previous: Decimal, current: Decimal) -> Decimal:
        """Signed relative change, four decimal places; a zero previous price counts as 100%."""
        previous = to_decimal(previous)
        current = to_decimal(current)
        if previous == 0:
            return Decimal("1")
        return ((current - previous) / previous).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)

    @staticmethod
    def classify(ratio: Decimal) -> PriceChangeLevel:
        magnitude = abs(ratio)
        if magnitude > CRITICAL_CHANGE:
            return PriceChangeLevel.CRITICAL
        if magnitude > SIGNIFICANT_CHANGE:
            return PriceChangeLevel.SIGNIFICANT
        return PriceChangeLevel.NORMAL

    def on_event(self, event: ProductEvent) -> None:
        if event.type is EventType.PRICE_CHANGED:
            self._price_changed(event)
        elif event.type is EventType.DISCOUNT_APPLIED:
            self._logger.info(
                "Discount applied to '%s' (id=%s): %s",
                event.product.name,
                event.product.id,
                event.description or "standard discount",
            )

    def _price_changed(self, event: ProductEvent) -> PriceChangeLevel | None:
        product = event.product
        current = product.price
        self._logger.info(
            "Price change for '%s' (id=%s): now %s", product.name, product.id, current
        )

        level = None
        if event.payload is not None:
            previous = to_decimal(event.payload)
            if previous > 0:
                ratio = self.change_ratio(previous, current)
                level = self.classify(ratio)
                self._report(product.name, previous, current, ratio, level)

        if current > HIGH_PRICE:
            self._logger.warning("Unusually high price for '%s': %s", product.name, current)
        elif current < LOW_PRICE:
            self._logger.warning("Unusually low price for '%s': %s", product.name, current)
        return level

    def _report(self, name, previous, current, ratio, level: PriceChangeLevel) -> None:
        direction = "increase" if ratio > 0 else "decrease"
        percent = (abs(ratio) * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        if level is PriceChangeLevel.CRITICAL:
            self._logger.error(
                "CRITICAL price %s of %s%% for '%s' (%s -> %s) - needs review",
                direction,
                percent,
                name,
                previous,
                current,
            )
        elif level is PriceChangeLevel.SIGNIFICANT:
            self._logger.warning(
                "Significant price %s of %s%% for '%s' (%s -> %s)",
                direction,
                percent,
                name,
                previous,
                current,
            )
        else:
            self._logger.info(
                "Price %s of %s%% for '%s' (%s -> %s)", direction, percent, name, previous, current
            )


class LoggingObserver(ProductObserver):
    """Audit trail: records every event, no filtering."""

    priority = 5

    def __init__(self, asynchronous: bool = True):
        self.asynchronous = asynchronous
        self._events = logging.getLogger("catalog.events")
        self._audit = logging.getLogger("catalog.audit")

    def on_event(self, event: ProductEvent) -> None:
        product = event.product
        actor = event.actor or SYSTEM_ACTOR
        self._events.info(
            "EVENT [%s] id=%s product='%s' (id=%s) actor=%s description=%s",
            event.type.value,
            event.event_id,
            product.name,
            product.id,
            actor,
            event.description or "N/A",
        )
        self._audit.info(
            "AUDIT|%s|%s|%s|%s|%s|%s|%s|%s",
            event.timestamp.isoformat(timespec="milliseconds"),
            event.event_id,
            event.type.value,
            product.id,
            actor,
            product.category or "N/A",
            product.price,
            product.stock,
        )
        self._log_specific(event)

    def _log_specific(self, event: ProductEvent) -> None:
        product = event.product
        kind = event.type
        if kind is EventType.PRODUCT_CREATED:
            self._events.info(
                "Product created: '%s' category=%s price=%s stock=%s",
                product.name,
                product.category,
                product.price,
                product.stock,
            )
        elif kind is EventType.PRODUCT_REMOVED:
            self._events.warning(
                "Product removed: '%s' reason=%s", product.name, event.description or "unspecified"
            )
        elif kind is EventType.STOCK_LOW:
            self._events.warning("Low stock: '%s' has %s unit(s)", product.name, product.stock)
        elif kind is EventType.STOCK_DEPLETED:
            self._events.error("Out of stock: '%s'", product.name)
        elif kind is EventType.PRICE_CHANGED:
            previous = f" (previous: {event.payload})" if event.payload is not None else ""
            self._events.info("Price changed: '%s' now %s%s", product.name, product.price, previous)
        elif kind is EventType.ERROR:
            self._events.error(
                "Product error: '%s' - %s", product.name, event.description or "unspecified"
            )
