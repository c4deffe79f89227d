from .base import TimestampMixin, UUIDMixin
from .product import Product
from .stock import StockTransaction
from .order import OrderHeader, OrderItem, PickingSession

__all__ = [
    # Base
    "TimestampMixin", "UUIDMixin",
    # Product
    "Product",
    # Stock
    "StockTransaction",
    # Order
    "OrderHeader", "OrderItem", "PickingSession",
]
