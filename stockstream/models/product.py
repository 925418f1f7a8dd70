"""
Model for the warehouse product catalogue.

The products table is the authoritative record of stock levels. Rows are
created at provisioning time and only ever mutated by purchase transactions.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint

from ..database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    # Primary Key and Timestamps
    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Core Product Information
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=False, index=True)  # Grouping key, compared lower-cased
    price = Column(Numeric(10, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock_quantity})>"
