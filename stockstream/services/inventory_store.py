"""
Purpose: Authoritative store for product stock levels.

Role: Wraps the async SQLAlchemy session in a small unit-of-work API so the
purchase service can do a locked read-check-write without knowing about
sessions, dialects or driver errors.

    async with store.begin_unit_of_work() as uow:
        product = await uow.get_for_update(product_id)   # row locked from here...
        product.stock_quantity -= quantity
        uow.save(product)
        await uow.commit()                               # ...until here

Leaving the block without commit() rolls the transaction back. Every
SQLAlchemy error is re-raised as InventoryStoreError (LockTimeoutError when the
row lock could not be obtained within the configured timeout).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy import select, func, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockstream.core.exceptions import InventoryStoreError, LockTimeoutError
from stockstream.models.product import Product

logger = logging.getLogger(__name__)

# PostgreSQL lock_not_available
PG_LOCK_NOT_AVAILABLE = "55P03"

# products.id is a 32-bit INTEGER; larger ids cannot exist
MAX_PRODUCT_ID = 2**31 - 1

# asyncpg raises OSError subclasses (ConnectionRefusedError, ...) unwrapped
STORE_ERRORS = (SQLAlchemyError, OSError)


def _translate(exc: Exception, action: str) -> InventoryStoreError:
    """Map a driver error to the store's exception hierarchy."""
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        if sqlstate == PG_LOCK_NOT_AVAILABLE or "database is locked" in str(orig):
            return LockTimeoutError(f"Timed out waiting for row lock during {action}")
    return InventoryStoreError(f"Inventory store failed during {action}: {exc}")


class UnitOfWork:
    """A single database transaction against the products table."""

    def __init__(self, session: AsyncSession, lock_timeout: Optional[float] = None):
        self.session = session
        self.lock_timeout = lock_timeout
        self.finished = False

    async def begin(self) -> None:
        try:
            await self.session.begin()
            if self.lock_timeout and self.session.get_bind().dialect.name == "postgresql":
                # SET does not accept bind parameters
                timeout_ms = int(self.lock_timeout * 1000)
                await self.session.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
        except STORE_ERRORS as e:
            raise _translate(e, "begin") from e

    async def get_for_update(self, product_id: int) -> Optional[Product]:
        """Read a product and hold an exclusive lock on its row until commit/abort."""
        if product_id > MAX_PRODUCT_ID:
            return None
        query = select(Product).where(Product.id == product_id).with_for_update()
        try:
            result = await self.session.execute(query)
        except STORE_ERRORS as e:
            raise _translate(e, f"locking product {product_id}") from e
        return result.scalar_one_or_none()

    def save(self, product: Product) -> None:
        """Stage a write; it is flushed as part of commit()."""
        self.session.add(product)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except STORE_ERRORS as e:
            raise _translate(e, "commit") from e
        self.finished = True

    async def abort(self) -> None:
        if self.finished:
            return
        self.finished = True
        try:
            await self.session.rollback()
        except STORE_ERRORS:
            # The connection is discarded on close; nothing was committed.
            logger.warning("Rollback failed, closing session", exc_info=True)


class InventoryStore:
    def __init__(self, session_factory: async_sessionmaker, lock_timeout: Optional[float] = None):
        self._session_factory = session_factory
        self.lock_timeout = lock_timeout

    @asynccontextmanager
    async def begin_unit_of_work(self) -> AsyncIterator[UnitOfWork]:
        session = self._session_factory()
        uow = UnitOfWork(session, self.lock_timeout)
        try:
            await uow.begin()
            yield uow
        finally:
            await uow.abort()
            await session.close()

    async def get_product(self, product_id: int) -> Optional[Product]:
        """Lock-free read of a single product."""
        if product_id > MAX_PRODUCT_ID:
            return None
        async with self._session_factory() as session:
            try:
                return await session.get(Product, product_id)
            except STORE_ERRORS as e:
                raise _translate(e, f"reading product {product_id}") from e

    async def list_by_category(self, category: str) -> List[Product]:
        """All products whose category matches case-insensitively, ordered by id."""
        query = (
            select(Product)
            .where(func.lower(Product.category) == category.lower())
            .order_by(Product.id)
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(query)
            except STORE_ERRORS as e:
                raise _translate(e, f"listing category '{category}'") from e
            return list(result.scalars().all())
