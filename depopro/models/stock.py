"""
Stock Transaction Model
"""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from depopro.core import Base
from .base import UUIDMixin, utcnow

class StockTransaction(Base, UUIDMixin):
    """Stock Movement Ledger entry"""
    __tablename__ = "stock_transaction"

    seq = Column(Integer, nullable=False, index=True)  # Application order, used for replay
    product_id = Column(String(36), ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    product_name = Column(String(300))  # Denormalized for history display

    # Movement info
    type = Column(String(10), nullable=False)  # IN, OUT
    quantity = Column(Numeric(12, 3), nullable=False)  # Positive magnitude

    # Audit snapshots captured at application time
    previous_stock = Column(Numeric(12, 3))
    new_stock = Column(Numeric(12, 3))

    # Metadata
    description = Column(Text, default="")
    date = Column(DateTime, default=utcnow, nullable=False, index=True)
    created_by = Column(String(100))

    # Relationships
    product = relationship("Product", back_populates="transactions")

    @property
    def signed_quantity(self):
        return self.quantity if self.type == "IN" else -self.quantity
