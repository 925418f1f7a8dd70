# stockstream/cli/create_tables.py
import asyncio
from decimal import Decimal

import click
from sqlalchemy import select, func

from stockstream.database import Base, build_engine, build_session_factory
from stockstream.models.product import Product

SEED_PRODUCTS = [
    {"name": "Laptop", "category": "electronics", "price": Decimal("999.99"), "stock_quantity": 50},
    {"name": "Mouse", "category": "electronics", "price": Decimal("29.99"), "stock_quantity": 5},
    {"name": "Keyboard", "category": "electronics", "price": Decimal("79.99"), "stock_quantity": 8},
    {"name": "Office Chair", "category": "furniture", "price": Decimal("299.99"), "stock_quantity": 15},
    {"name": "Desk", "category": "furniture", "price": Decimal("499.99"), "stock_quantity": 3},
]


async def create_schema(engine, seed: bool = True) -> int:
    """Create tables and, if the catalogue is empty, insert the demo products. Returns rows seeded."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if not seed:
        return 0

    session_factory = build_session_factory(engine)
    async with session_factory() as session:
        async with session.begin():
            existing = await session.scalar(select(func.count()).select_from(Product))
            if existing:
                return 0
            session.add_all([Product(**row) for row in SEED_PRODUCTS])
    return len(SEED_PRODUCTS)


@click.command()
@click.option('--seed/--no-seed', default=True, help='Insert the demo catalogue when the table is empty')
def create_tables(seed):
    """Create all database tables directly using SQLAlchemy"""
    from stockstream.core.config import get_settings
    settings = get_settings()

    async def _create_tables():
        engine = build_engine(settings.DATABASE_URL, lock_timeout=settings.DATABASE_LOCK_TIMEOUT_SECONDS)
        try:
            seeded = await create_schema(engine, seed=seed)
        finally:
            await engine.dispose()
        print("All tables created successfully!")
        if seeded:
            print(f"Seeded {seeded} products")

    asyncio.run(_create_tables())

if __name__ == "__main__":
    create_tables()
