"""Process-owned wiring of the default observers."""

import logging

from catalog.core.config import Settings
from catalog.events.dispatcher import EventDispatcher
from catalog.events.executor import BoundedExecutor
from catalog.events.models import EventType
from catalog.events.observers import LoggingObserver, PriceObserver, StockObserver

logger = logging.getLogger(__name__)


def build_dispatcher(settings: Settings) -> EventDispatcher:
    """Create a dispatcher backed by a bounded pool sized from settings."""
    executor = BoundedExecutor(
        max_workers=settings.observer_pool_max_workers,
        queue_capacity=settings.observer_pool_queue_capacity,
    )
    return EventDispatcher(executor)


def default_observers(settings: Settings) -> list:
    return [
        StockObserver(
            low_threshold=settings.stock_low_threshold,
            critical_threshold=settings.stock_critical_threshold,
        ),
        PriceObserver(),
        LoggingObserver(asynchronous=settings.logging_observer_async),
    ]


def register_default_observers(dispatcher: EventDispatcher, settings: Settings) -> int:
    """Register the stock, price and audit observers. Returns how many were newly added."""
    observers = default_observers(settings)
    registered = 0
    for observer in observers:
        if dispatcher.register(observer):
            registered += 1
        else:
            logger.warning("Observer already registered: %s", observer.name)

    for observer in dispatcher.observers:
        interests = [t.value for t in EventType if observer.is_interested_in(t)]
        logger.info(
            "  %s - %s, priority %s, interests: %s",
            observer.name,
            "off-path" if observer.asynchronous else "inline",
            observer.priority,
            ", ".join(interests) if len(interests) < len(EventType) else "ALL",
        )
    logger.info("Observer setup complete: %s", dispatcher.stats())
    return registered
