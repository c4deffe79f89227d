"""
Product Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from .stock import Quantity

class ProductCreate(BaseModel):
    product_name: str
    category: Optional[str] = None
    unit: Optional[str] = None
    min_stock_level: Optional[Quantity] = None
    initial_stock: Quantity = Decimal("0")
    part_code: Optional[str] = None
    location: Optional[str] = None
    material: Optional[str] = None
    barcode: Optional[str] = None

class ProductUpdate(BaseModel):
    product_name: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    min_stock_level: Optional[Quantity] = None
    part_code: Optional[str] = None
    location: Optional[str] = None
    material: Optional[str] = None
    barcode: Optional[str] = None

class ProductResponse(BaseModel):
    id: str
    product_name: str
    category: Optional[str]
    unit: Optional[str]
    min_stock_level: Quantity
    current_stock: Quantity
    opening_stock: Quantity
    part_code: Optional[str]
    location: Optional[str]
    material: Optional[str]
    barcode: Optional[str]
    short_id: Optional[str]
    is_critical: bool
    is_negative: bool
    critical_since: Optional[datetime]
    last_counted_at: Optional[datetime]
    last_alert_sent_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

class CriticalReportMark(BaseModel):
    product_ids: Optional[List[str]] = None  # None: every unreported critical product
