"""
Purpose: Purchase transaction coordinator and read-through category listing.

A purchase runs in two phases:

1. Durable phase - one unit of work against the inventory store: lock the
   product row, check stock, decrement, commit. Either all of it commits or
   none of it does. The row lock is the only thing preventing overselling;
   there is no application-level lock.

2. Best-effort phase - post-commit hooks (cache invalidation, low-stock
   alert). They only run after a successful commit, each one is guarded on
   its own, and a failure is logged and never changes the purchase result.

Failures are reported as PurchaseResult objects, never raised:
- validation errors and business-rule failures carry their own message,
- infrastructure failures get a generic message; the cause is only logged.

There is no retry. Resubmitting after a lost response deducts stock again.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from pydantic import ValidationError

from stockstream.core.config import Settings, get_settings
from stockstream.core.exceptions import CacheError, InventoryStoreError
from stockstream.schemas.product import (
    ProductSnapshot,
    PurchaseResult,
    dump_snapshots,
    load_snapshots,
)
from stockstream.services.alert_publisher import AlertPublisher
from stockstream.services.cache_service import ProductCache, category_cache_key
from stockstream.services.inventory_store import InventoryStore

logger = logging.getLogger(__name__)

INVALID_PRODUCT_ID = "Invalid ProductId"
INVALID_QUANTITY = "Quantity must be greater than 0"
PRODUCT_NOT_FOUND = "Product not found"
INSUFFICIENT_STOCK = "Insufficient stock. Available: {available}"
TRANSACTION_FAILED = "Purchase could not be completed, please retry"

PostCommitHook = Callable[[ProductSnapshot], Awaitable[None]]


class PurchaseService:
    def __init__(
        self,
        store: InventoryStore,
        cache: ProductCache,
        publisher: AlertPublisher,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.cache = cache
        self.publisher = publisher
        self.low_stock_threshold = settings.LOW_STOCK_THRESHOLD
        self.cache_ttl = settings.CACHE_TTL_SECONDS

        # Run in order after every committed purchase
        self.post_commit_hooks: List[PostCommitHook] = [
            self._invalidate_category_cache,
            self._dispatch_low_stock_alert,
        ]

    # ------------------------------------------------------------------
    # Purchases
    # ------------------------------------------------------------------
    async def purchase(self, product_id: int, quantity: int) -> PurchaseResult:
        """
        Buy `quantity` units of a product.

        Args:
            product_id: Product to buy, must be > 0
            quantity: Units to buy, must be > 0

        Returns:
            PurchaseResult with the new stock level on success, or a failure
            message. Cache and alert failures never turn a committed purchase
            into a failure.
        """
        if product_id <= 0:
            return PurchaseResult.failed(INVALID_PRODUCT_ID)
        if quantity <= 0:
            return PurchaseResult.failed(INVALID_QUANTITY)

        try:
            async with self.store.begin_unit_of_work() as uow:
                product = await uow.get_for_update(product_id)

                if product is None:
                    logger.info("Purchase rejected: product %s not found", product_id)
                    await uow.abort()
                    return PurchaseResult.failed(PRODUCT_NOT_FOUND)

                if product.stock_quantity < quantity:
                    logger.info(
                        "Purchase rejected: product %s has %s in stock, %s requested",
                        product_id, product.stock_quantity, quantity,
                    )
                    available = product.stock_quantity
                    await uow.abort()
                    return PurchaseResult.failed(INSUFFICIENT_STOCK.format(available=available))

                product.stock_quantity -= quantity
                product.updated_at = datetime.now(timezone.utc)
                uow.save(product)
                await uow.commit()

                committed = ProductSnapshot.from_orm_model(product)

        except InventoryStoreError:
            logger.error(
                "Purchase of %s x product %s rolled back", quantity, product_id, exc_info=True
            )
            return PurchaseResult.failed(TRANSACTION_FAILED)

        logger.info(
            "Purchase committed: product %s, -%s, new stock %s",
            committed.id, quantity, committed.stock_quantity,
        )
        await self._run_post_commit_hooks(committed)
        return PurchaseResult.succeeded(committed.stock_quantity)

    async def _run_post_commit_hooks(self, committed: ProductSnapshot) -> None:
        for hook in self.post_commit_hooks:
            try:
                await hook(committed)
            except Exception:
                # The purchase is already durable; side effects are best effort.
                logger.warning(
                    "Post-commit step %s failed for product %s",
                    getattr(hook, "__name__", repr(hook)), committed.id, exc_info=True,
                )

    async def _invalidate_category_cache(self, committed: ProductSnapshot) -> None:
        key = category_cache_key(committed.category)
        await self.cache.invalidate(key)
        logger.debug("Cache invalidated: %s", key)

    async def _dispatch_low_stock_alert(self, committed: ProductSnapshot) -> None:
        if committed.stock_quantity > self.low_stock_threshold:
            return
        logger.warning(
            "Product %s at %s units (threshold %s), sending low-stock alert",
            committed.id, committed.stock_quantity, self.low_stock_threshold,
        )
        await self.publisher.publish_low_stock(committed.id, committed.stock_quantity)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def list_by_category(self, category: str) -> List[ProductSnapshot]:
        """Category listing, served from cache when possible."""
        key = category_cache_key(category)

        cached = await self._read_cache(key)
        if cached is not None:
            logger.debug("Cache HIT: %s", key)
            return cached

        logger.debug("Cache MISS: %s, querying database", key)
        # Read before the database so a purchase committing meanwhile wins
        generation = await self._read_generation(key)
        products = await self.store.list_by_category(category)
        snapshots = [ProductSnapshot.from_orm_model(p) for p in products]
        if generation is not None:
            await self._populate_cache(key, snapshots, generation)
        return snapshots

    async def _read_cache(self, key: str) -> Optional[List[ProductSnapshot]]:
        try:
            payload = await self.cache.get(key)
        except CacheError as e:
            logger.warning("Cache unavailable, treating %s as a miss: %s", key, e)
            return None
        if payload is None:
            return None
        try:
            return load_snapshots(payload)
        except ValidationError:
            logger.warning("Discarding undecodable cache entry %s", key, exc_info=True)
            return None

    async def _read_generation(self, key: str) -> Optional[int]:
        try:
            return await self.cache.get_generation(key)
        except CacheError as e:
            logger.warning("Cache unavailable, not caching %s: %s", key, e)
            return None

    async def _populate_cache(self, key: str, snapshots: List[ProductSnapshot], generation: int) -> None:
        try:
            written = await self.cache.set_if_generation(
                key, dump_snapshots(snapshots), self.cache_ttl, generation
            )
            if not written:
                logger.debug("Cache %s invalidated during read, not populating", key)
        except CacheError as e:
            logger.warning("Could not populate cache %s: %s", key, e)
