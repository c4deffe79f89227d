"""
Cycle count endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from depopro.core import get_db
from depopro.schemas.product import ProductResponse
from depopro.schemas.stock import CycleCountSubmit, CycleCountResult
from depopro.services import CycleCountService
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/cycle-count", tags=["Cycle Count"])


@router.get("/due", response_model=List[ProductResponse])
def due_products(
    zone: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return CycleCountService.due_products(db, zone=zone, search=search)


@router.get("/zones", response_model=List[str])
def zones(db: Session = Depends(get_db)):
    return CycleCountService.zones(db)


@router.post("", response_model=CycleCountResult)
def submit_count(
    data: CycleCountSubmit,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return CycleCountService.submit_count(db, data.product_id, data.counted_qty, created_by=user.name)
