import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog.api.exception_handlers import register_exception_handlers
from catalog.api.v1.router import api_router
from catalog.core.config import settings
from catalog.events.registry import build_dispatcher, register_default_observers
from catalog.pricing.coordinator import build_default_coordinator

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    dispatcher = build_dispatcher(settings)
    register_default_observers(dispatcher, settings)
    app.state.dispatcher = dispatcher
    app.state.coordinator = build_default_coordinator(settings)
    logger.info("Catalog service started")
    try:
        yield
    finally:
        dispatcher.shutdown(wait=True)
        logger.info("Catalog service stopped")


app = FastAPI(lifespan=lifespan)

register_exception_handlers(app)
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "ok"}
