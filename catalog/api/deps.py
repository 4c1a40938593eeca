from fastapi import Header, Request

from catalog.core.config import settings
from catalog.db.base import SessionLocal
from catalog.events.dispatcher import EventDispatcher
from catalog.pricing.coordinator import DiscountCoordinator


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor(x_actor: str | None = Header(None)) -> str:
    """Identity recorded on commands and events; falls back to the configured placeholder."""
    if x_actor is None or not x_actor.strip():
        return settings.default_actor
    return x_actor.strip()


def get_dispatcher(request: Request) -> EventDispatcher:
    return request.app.state.dispatcher


def get_coordinator(request: Request) -> DiscountCoordinator:
    return request.app.state.coordinator
