"""
Order endpoints - demand lists, shortage reports, simulation
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional

from depopro.core import get_db
from depopro.schemas.order import (
    OrderCreate, OrderResponse, OrderSummary, OrderShortage, AggregateShortage, SimulationResult,
)
from depopro.schemas.stock import ImportRequest
from depopro.services import OrderService, ShortageService
from depopro.services.spreadsheet import read_csv_rows
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/orders", tags=["Orders"])


# ===================== LIST / CREATE =====================

@router.get("", response_model=List[OrderSummary])
def list_orders(
    status: Optional[str] = Query(None, description="PENDING, COMPLETED or all"),
    db: Session = Depends(get_db),
):
    return [
        {
            "id": row["order"].id,
            "name": row["order"].name,
            "status": row["order"].status,
            "note": row["order"].note,
            "created_at": row["order"].created_at,
            "completed_at": row["order"].completed_at,
            "item_count": len(row["order"].items),
            "missing_count": row["missing_count"],
        }
        for row in OrderService.get_orders_with_summary(db, status)
    ]


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    return OrderService.create_order(db, data)


@router.post("/upload", response_model=OrderResponse, status_code=201)
async def upload_order(
    name: str = Form(...),
    note: Optional[str] = Form(None),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    """Demand list exported as CSV"""
    rows = read_csv_rows(await file.read())
    return OrderService.create_order(db, OrderCreate(name=name, note=note, rows=rows))


# ===================== SHORTAGE =====================

@router.get("/shortages/aggregate", response_model=List[AggregateShortage])
def aggregate_shortages(db: Session = Depends(get_db)):
    """Demand of all PENDING orders summed per part, most missing first"""
    return ShortageService.aggregate(db)


@router.post("/simulate", response_model=SimulationResult)
def simulate(request: ImportRequest, db: Session = Depends(get_db)):
    """Check a list against stock without saving it"""
    return ShortageService.simulate(db, request.rows)


@router.post("/simulate/upload", response_model=SimulationResult)
async def simulate_upload(file: UploadFile = File(...), db: Session = Depends(get_db)):
    rows = read_csv_rows(await file.read())
    return ShortageService.simulate(db, rows)


# ===================== SINGLE ORDER =====================

@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return OrderService.get_order(db, order_id)


@router.get("/{order_id}/shortage", response_model=OrderShortage)
def order_shortage(order_id: str, db: Session = Depends(get_db)):
    order = OrderService.get_order(db, order_id)
    return ShortageService.order_report(db, order)


@router.post("/{order_id}/complete", response_model=OrderResponse)
def complete_order(
    order_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    return OrderService.complete_order(db, order_id)


@router.delete("/{order_id}")
def delete_order(
    order_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    OrderService.delete_order(db, order_id)
    return {"message": "Order deleted"}
