"""
Schemas for product listings and purchases.
"""

from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import ConfigDict, PlainSerializer, TypeAdapter

from stockstream.schemas.base import BaseSchema

# Exact in Python, a plain JSON number on the wire
Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ProductSnapshot(BaseSchema):
    """Point-in-time view of a product, as served to clients and stored in the cache"""
    id: int
    name: str
    category: str
    price: Price
    stock_quantity: int


class PurchaseRequest(BaseSchema):
    # Plain ints: range checks belong to the purchase service so the
    # client sees the same messages whichever entry point it uses.
    product_id: int
    quantity: int


class PurchaseResult(BaseSchema):
    """Outcome of a single purchase. new_stock is set only on success."""

    model_config = ConfigDict(frozen=True)

    success: bool
    new_stock: Optional[int] = None
    message: str

    @classmethod
    def succeeded(cls, new_stock: int) -> "PurchaseResult":
        return cls(success=True, new_stock=new_stock, message="Purchase successful")

    @classmethod
    def failed(cls, message: str) -> "PurchaseResult":
        return cls(success=False, new_stock=None, message=message)


_snapshot_list = TypeAdapter(List[ProductSnapshot])


def dump_snapshots(snapshots: List[ProductSnapshot]) -> bytes:
    """Serialize a category listing for the cache (UTF-8 JSON)."""
    return _snapshot_list.dump_json(snapshots, by_alias=True)


def load_snapshots(payload: bytes) -> List[ProductSnapshot]:
    """Inverse of dump_snapshots. Raises pydantic.ValidationError on bad data."""
    return _snapshot_list.validate_json(payload)
