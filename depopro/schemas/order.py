"""
Order Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from .stock import Quantity

class OrderCreate(BaseModel):
    name: str
    note: Optional[str] = None
    rows: List[dict] = []

class OrderItemResponse(BaseModel):
    id: str
    position: int
    product_name: str
    required_qty: Quantity
    unit: Optional[str]
    part_code: Optional[str]
    group: Optional[str]
    location: Optional[str]
    picked_qty: Quantity

    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    id: str
    name: str
    status: str
    note: Optional[str]
    created_at: datetime
    completed_at: Optional[datetime]
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True

class OrderSummary(BaseModel):
    id: str
    name: str
    status: str
    note: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    item_count: int
    missing_count: int

class ShortageLine(BaseModel):
    position: Optional[int] = None
    product_name: str
    part_code: Optional[str] = None
    unit: Optional[str] = None
    required_qty: Quantity
    matched_product_id: Optional[str] = None
    current_stock: Quantity
    missing: Quantity

class OrderShortage(BaseModel):
    order_id: str
    order_name: str
    missing_count: int
    details: List[ShortageLine]

class OrderContribution(BaseModel):
    order_id: str
    order_name: str
    quantity: Quantity

class AggregateShortage(BaseModel):
    key: str
    product_name: str
    part_code: Optional[str] = None
    matched_product_id: Optional[str] = None
    total_required: Quantity
    current_stock: Quantity
    missing: Quantity
    contributions: List[OrderContribution]

class SimulationLine(BaseModel):
    product_name: str
    part_code: Optional[str] = None
    required_qty: Quantity
    current_stock: Quantity
    missing_qty: Quantity
    unit: str
    status: str  # NOT_FOUND, SHORTAGE, OK

class SimulationResult(BaseModel):
    ok_count: int
    shortage_count: int
    not_found_count: int
    results: List[SimulationLine]
