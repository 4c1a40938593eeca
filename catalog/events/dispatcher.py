"""Priority-ordered fan-out of product events to registered observers.

Inline observers run on the caller's thread, in ascending priority order, before
``dispatch`` returns. Off-path observers are handed to a bounded worker pool and
``dispatch`` does not wait for them; no ordering holds among them.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from catalog.events.executor import BoundedExecutor, PoolSaturatedError
from catalog.events.models import EventType, ProductEvent

logger = logging.getLogger(__name__)


class ProductObserver(ABC):
    """A listener notified of product events.

    Subclasses declare their ``priority`` (lower runs first), whether they run
    ``asynchronous``-ly (off the calling path) and which event types interest them.
    """

    priority: int = 0
    asynchronous: bool = False

    @abstractmethod
    def on_event(self, event: ProductEvent) -> None:
        ...

    def is_interested_in(self, event_type: EventType) -> bool:
        return True

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class ObserverStats:
    total: int
    inline: int
    off_path: int


class EventDispatcher:
    def __init__(self, executor: BoundedExecutor | None = None):
        self._executor = executor
        self._observers: tuple[ProductObserver, ...] = ()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, observer: ProductObserver) -> bool:
        """Add an observer. Returns False if it is None or already registered."""
        if observer is None:
            return False
        with self._lock:
            if any(existing is observer for existing in self._observers):
                return False
            # sorted() is stable: equal priorities keep registration order
            self._observers = tuple(
                sorted((*self._observers, observer), key=lambda o: o.priority)
            )
            total = len(self._observers)
        logger.info(
            "Observer registered: %s (priority=%s, async=%s) - %d total",
            observer.name,
            observer.priority,
            observer.asynchronous,
            total,
        )
        return True

    def unregister(self, observer: ProductObserver) -> bool:
        with self._lock:
            remaining = tuple(o for o in self._observers if o is not observer)
            if len(remaining) == len(self._observers):
                return False
            self._observers = remaining
        logger.info("Observer removed: %s - %d total", observer.name, len(remaining))
        return True

    def clear(self) -> None:
        with self._lock:
            count = len(self._observers)
            self._observers = ()
        logger.info("All observers removed (%d)", count)

    @property
    def observers(self) -> tuple[ProductObserver, ...]:
        return self._observers

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def stats(self) -> ObserverStats:
        observers = self._observers
        off_path = sum(1 for o in observers if o.asynchronous)
        return ObserverStats(total=len(observers), inline=len(observers) - off_path, off_path=off_path)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: ProductEvent) -> None:
        """Deliver ``event`` to every interested observer. Never raises."""
        if event is None:
            logger.warning("Ignoring attempt to dispatch a null event")
            return

        observers = self._observers
        logger.debug(
            "Dispatching %s for product '%s' to %d observer(s)",
            event.type.value,
            event.product_name,
            len(observers),
        )
        for observer in observers:
            try:
                interested = observer.is_interested_in(event.type)
            except Exception:
                logger.exception("Interest check failed for observer %s", observer.name)
                continue
            if not interested:
                continue
            if observer.asynchronous:
                self._submit(observer, event)
            else:
                self._invoke(observer, event)

    def _invoke(self, observer: ProductObserver, event: ProductEvent) -> None:
        started = time.perf_counter()
        try:
            observer.on_event(event)
        except Exception:
            logger.exception(
                "Observer %s failed on event %s (%s)",
                observer.name,
                event.event_id,
                event.type.value,
            )
            return
        logger.debug(
            "Observer %s handled %s in %.1fms",
            observer.name,
            event.type.value,
            (time.perf_counter() - started) * 1000,
        )

    def _submit(self, observer: ProductObserver, event: ProductEvent) -> None:
        if self._executor is None:
            logger.warning(
                "No worker pool configured; running off-path observer %s inline",
                observer.name,
            )
            self._invoke(observer, event)
            return
        try:
            self._executor.submit(self._invoke, observer, event)
        except PoolSaturatedError:
            logger.error(
                "Dropped event %s for observer %s: worker pool saturated",
                event.event_id,
                observer.name,
            )
        except RuntimeError:
            logger.error(
                "Dropped event %s for observer %s: worker pool is shut down",
                event.event_id,
                observer.name,
            )

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Convenience entry points
    # ------------------------------------------------------------------

    def notify(self, event_type: EventType, product, actor: str | None = None) -> None:
        """Build a minimal event and dispatch it."""
        self.notify_with(event_type, product, actor=actor)

    def notify_with(
        self,
        event_type: EventType,
        product,
        actor: str | None = None,
        description: str | None = None,
        payload: Any = None,
    ) -> None:
        """Build an event with an optional description and payload and dispatch it."""
        try:
            event = ProductEvent.of(
                event_type, product, actor=actor, description=description, payload=payload
            )
        except (ValueError, AttributeError):
            logger.exception("Could not build %s event", event_type)
            return
        self.dispatch(event)

    def product_created(self, product, actor: str | None = None) -> None:
        self.notify_with(EventType.PRODUCT_CREATED, product, actor, "Product created in the catalog")

    def product_updated(self, product, actor: str | None = None) -> None:
        self.notify_with(EventType.PRODUCT_UPDATED, product, actor, "Product information updated")

    def product_removed(self, product, actor: str | None = None) -> None:
        self.notify_with(EventType.PRODUCT_REMOVED, product, actor, "Product removed from the catalog")

    def stock_changed(self, product, actor: str | None = None) -> None:
        self.notify_with(EventType.STOCK_CHANGED, product, actor, "Product stock updated")

    def price_changed(self, product, previous_price: Decimal, actor: str | None = None) -> None:
        self.notify_with(
            EventType.PRICE_CHANGED,
            product,
            actor,
            "Product price changed",
            payload=previous_price,
        )

    def discount_applied(self, product, details: str, actor: str | None = None) -> None:
        self.notify_with(EventType.DISCOUNT_APPLIED, product, actor, details)
