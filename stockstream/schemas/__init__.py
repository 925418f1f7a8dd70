from .base import BaseSchema
from .product import ProductSnapshot, PurchaseRequest, PurchaseResult, dump_snapshots, load_snapshots
from .alert import LowStockAlertMessage
