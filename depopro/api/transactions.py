"""
Stock ledger endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from depopro.core import get_db
from depopro.core.errors import NotFoundError
from depopro.schemas.stock import TransactionCreate, TransactionUpdate, TransactionResponse
from depopro.services import LedgerService
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/transactions", tags=["Stock Ledger"])


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
    product_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="IN, OUT or ALL"),
    search: Optional[str] = Query(None),
    min_quantity: Optional[Decimal] = Query(None, ge=0),
    max_quantity: Optional[Decimal] = Query(None, ge=0),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=5000),
    db: Session = Depends(get_db),
):
    """History, newest first"""
    return LedgerService.get_transactions(
        db,
        product_id=product_id,
        movement_type=type,
        search=search,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    transaction = LedgerService.get_transaction(db, transaction_id)
    if not transaction:
        raise NotFoundError(f"Transaction '{transaction_id}' not found")
    return transaction


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return LedgerService.create_transaction(
        db, data.product_id, data.type, data.quantity, data.description, created_by=user.name
    )


@router.put("/{transaction_id}", response_model=TransactionResponse)
def edit_transaction(
    transaction_id: str,
    data: TransactionUpdate,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    return LedgerService.edit_transaction(
        db, transaction_id, data.product_id, data.type, data.quantity, data.description
    )


@router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    LedgerService.delete_transaction(db, transaction_id)
    return {"message": "Transaction deleted"}
