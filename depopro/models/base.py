"""
Base Model Mixins
"""
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import Column, DateTime, String
import uuid

# Quantities and stock levels are stored with three decimals (Metre, Kg, Litre)
QUANTITY_STEP = Decimal("0.001")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # Naive UTC: SQLite drops tzinfo on read
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_decimal(value):
    """Quantity value as a Decimal on the stored scale; None stays None"""
    if value is None:
        return None
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(QUANTITY_STEP)


def plain_number(value):
    """Decimal -> int when whole, else float; for JSON and CSV output"""
    if value is None:
        return None
    value = Decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class UUIDMixin:
    """Mixin for string UUID primary key"""
    id = Column(String(36), primary_key=True, default=new_id)

class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
