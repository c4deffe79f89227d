"""
Product Models
"""
from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from depopro.core import Base
from .base import UUIDMixin, TimestampMixin

class Product(Base, UUIDMixin, TimestampMixin):
    """Product Master"""
    __tablename__ = "product"

    product_name = Column(String(300), nullable=False, index=True)
    category = Column(String(100))
    unit = Column(String(30), default="Adet")
    min_stock_level = Column(Numeric(12, 3), default=10, nullable=False)

    # Derived from the ledger only; never edited directly
    current_stock = Column(Numeric(12, 3), default=0, nullable=False)
    opening_stock = Column(Numeric(12, 3), default=0, nullable=False)  # Baseline for ledger replay

    part_code = Column(String(100), index=True)  # e.g. P-00003
    location = Column(String(50))  # Zone-prefixed shelf, e.g. B1-06-06
    material = Column(String(100))
    barcode = Column(String(100), index=True)
    short_id = Column(String(6), unique=True, index=True)  # 6-digit numeric scan code

    critical_since = Column(DateTime)
    last_counted_at = Column(DateTime)
    last_alert_sent_at = Column(DateTime)  # Critical report sent; cleared when stock recovers

    # Relationships
    transactions = relationship(
        "StockTransaction",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    @property
    def is_negative(self) -> bool:
        return (self.current_stock or 0) < 0

    @property
    def is_critical(self) -> bool:
        stock = self.current_stock or 0
        return 0 <= stock <= (self.min_stock_level or 0)
