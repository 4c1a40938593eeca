from catalog.events.dispatcher import EventDispatcher, ObserverStats, ProductObserver
from catalog.events.executor import BoundedExecutor, PoolSaturatedError
from catalog.events.models import EventType, ProductEvent

__all__ = [
    "BoundedExecutor",
    "EventDispatcher",
    "EventType",
    "ObserverStats",
    "PoolSaturatedError",
    "ProductEvent",
    "ProductObserver",
]
