"""
Backup Schemas - full snapshot of the three collections
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional, List
from datetime import datetime
from decimal import Decimal

from .stock import Quantity

class ProductRecord(BaseModel):
    id: str
    product_name: str
    category: Optional[str] = None
    unit: Optional[str] = None
    min_stock_level: Quantity = Decimal("0")
    current_stock: Quantity = Decimal("0")
    opening_stock: Optional[Quantity] = None
    part_code: Optional[str] = None
    location: Optional[str] = None
    material: Optional[str] = None
    barcode: Optional[str] = None
    short_id: Optional[str] = None
    created_at: Optional[datetime] = None
    critical_since: Optional[datetime] = None
    last_counted_at: Optional[datetime] = None
    last_alert_sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TransactionRecord(BaseModel):
    id: str
    seq: Optional[int] = None
    product_id: str
    product_name: Optional[str] = None
    type: Literal["IN", "OUT"]
    quantity: Quantity = Field(gt=0)
    date: datetime
    description: Optional[str] = ""
    created_by: Optional[str] = None
    previous_stock: Optional[Quantity] = None
    new_stock: Optional[Quantity] = None

    class Config:
        from_attributes = True

class OrderItemRecord(BaseModel):
    product_name: str
    required_qty: Quantity = Field(gt=0)
    unit: Optional[str] = None
    part_code: Optional[str] = None
    group: Optional[str] = None
    location: Optional[str] = None
    picked_qty: Quantity = Decimal("0")

    class Config:
        from_attributes = True

class OrderRecord(BaseModel):
    id: str
    name: str
    status: Literal["PENDING", "COMPLETED"] = "PENDING"
    note: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    items: List[OrderItemRecord] = []

    class Config:
        from_attributes = True

class BackupDocument(BaseModel):
    version: int = 1
    exported_at: Optional[datetime] = None
    products: List[ProductRecord]
    transactions: List[TransactionRecord]
    orders: List[OrderRecord] = []
