"""
Guided Picking Schemas
"""
from pydantic import BaseModel
from typing import Optional, List

from .stock import Quantity

class PickItemState(BaseModel):
    position: int
    product_name: str
    part_code: Optional[str] = None
    group: Optional[str] = None
    location: Optional[str] = None
    required_qty: Quantity
    picked_qty: Quantity

class PickingStateResponse(BaseModel):
    session_id: str
    order_id: str
    state: str  # IN_PROGRESS, COMPLETE, ABORTED
    current_index: int
    total: int
    current_item: Optional[PickItemState] = None
    sequence: List[PickItemState]

class ScanRequest(BaseModel):
    code: str

class ScanResponse(BaseModel):
    outcome: str  # UNRECOGNIZED, WRONG_ITEM, CORRECT
    message: str
    product_id: Optional[str] = None
    item_complete: bool = False
    advanced: bool = False
    advance_after_ms: int = 0
    picking: PickingStateResponse
