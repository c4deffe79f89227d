"""
Order Models
"""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from depopro.core import Base
from .base import UUIDMixin, utcnow

class OrderHeader(Base, UUIDMixin):
    """Demand list (order) header"""
    __tablename__ = "order_header"

    name = Column(String(200), nullable=False)
    status = Column(String(20), default="PENDING", nullable=False, index=True)  # PENDING, COMPLETED
    note = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )
    picking_sessions = relationship("PickingSession", back_populates="order", cascade="all, delete-orphan")

class OrderItem(Base, UUIDMixin):
    """Order line: one demanded product"""
    __tablename__ = "order_item"

    order_id = Column(String(36), ForeignKey("order_header.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # Row order in the uploaded list

    product_name = Column(String(300), nullable=False)
    required_qty = Column(Numeric(12, 3), nullable=False)
    unit = Column(String(30))
    part_code = Column(String(100))
    group = Column("item_group", String(100))
    location = Column(String(50))

    # Guided picking progress; never posted to the ledger
    picked_qty = Column(Numeric(12, 3), default=0, nullable=False)

    # Relationships
    order = relationship("OrderHeader", back_populates="items")

class PickingSession(Base, UUIDMixin):
    """Persisted state of a guided picking run for one order"""
    __tablename__ = "picking_session"

    order_id = Column(String(36), ForeignKey("order_header.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default="IN_PROGRESS", nullable=False)  # IN_PROGRESS, COMPLETE, ABORTED
    sequence = Column(JSON, nullable=False, default=list)  # Item positions in pick order
    current_index = Column(Integer, default=0, nullable=False)
    started_at = Column(DateTime, default=utcnow, nullable=False)
    finished_at = Column(DateTime)

    # Relationships
    order = relationship("OrderHeader", back_populates="picking_sessions")
