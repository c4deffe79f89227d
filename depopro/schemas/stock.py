"""
Stock Transaction Schemas
"""
from pydantic import BaseModel, PlainSerializer
from typing import Annotated, Optional, List
from datetime import datetime
from decimal import Decimal

from depopro.models.base import plain_number

# Decimal in, plain JSON number out (2.5, not "2.500")
Quantity = Annotated[Decimal, PlainSerializer(plain_number, when_used="json")]

class TransactionCreate(BaseModel):
    product_id: str
    type: str  # IN, OUT
    quantity: Quantity
    description: str = ""

class TransactionUpdate(BaseModel):
    product_id: str
    type: str
    quantity: Quantity
    description: str = ""

class TransactionResponse(BaseModel):
    id: str
    seq: int
    product_id: str
    product_name: Optional[str]
    type: str
    quantity: Quantity
    previous_stock: Optional[Quantity]
    new_stock: Optional[Quantity]
    description: Optional[str]
    date: datetime
    created_by: Optional[str]

    class Config:
        from_attributes = True

class StockAudit(BaseModel):
    product_id: str
    opening_stock: Quantity
    transaction_count: int
    expected_stock: Quantity
    current_stock: Quantity
    consistent: bool

class CycleCountSubmit(BaseModel):
    product_id: str
    counted_qty: Quantity

class CycleCountResult(BaseModel):
    product_id: str
    previous_stock: Quantity
    counted_qty: Quantity
    difference: Quantity
    transaction: Optional[TransactionResponse] = None

class ImportRequest(BaseModel):
    rows: List[dict]

class ImportResult(BaseModel):
    message: str
    applied: int
    errors: List[str] = []
    partial: bool = False
