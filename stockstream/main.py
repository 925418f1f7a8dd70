# stockstream/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockstream.core import logging_config  # noqa: F401  configures logging on import
from stockstream.core.config import get_settings
from stockstream.database import async_session
from stockstream.routes import health, products
from stockstream.services.alert_publisher import AlertPublisher
from stockstream.services.cache_service import ProductCache
from stockstream.services.inventory_store import InventoryStore
from stockstream.services.purchase_service import PurchaseService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    store = InventoryStore(async_session, lock_timeout=settings.DATABASE_LOCK_TIMEOUT_SECONDS)
    cache = ProductCache.from_settings(settings)
    publisher = AlertPublisher(settings)  # Connects lazily on first alert
    app.state.purchase_service = PurchaseService(store, cache, publisher, settings)
    logger.info("StockStream started (environment: %s)", settings.ENVIRONMENT)

    try:
        yield  # This is where the app runs
    finally:
        await cache.close()
        await publisher.close()
        logger.info("StockStream stopped")


app = FastAPI(
    title="StockStream Warehouse API",
    description="Warehouse inventory with Redis caching, transactional purchases and RabbitMQ low-stock alerts",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products.router)
app.include_router(health.router)  # Health check should be accessible without auth
