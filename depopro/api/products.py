"""
Product catalog endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from depopro.core import get_db
from depopro.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from depopro.schemas.stock import StockAudit, TransactionResponse
from depopro.services import LedgerService, ProductService
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductResponse])
def list_products(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return ProductService.get_products(db, search)


@router.get("/lookup/{code}", response_model=ProductResponse)
def lookup_product(code: str, db: Session = Depends(get_db)):
    """Resolve a scanned code (short id, barcode or part code)"""
    return ProductService.get_product_by_code(db, code)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return ProductService.get_product_by_id(db, product_id)


@router.get("/{product_id}/transactions", response_model=List[TransactionResponse])
def product_history(
    product_id: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    ProductService.get_product_by_id(db, product_id)
    return LedgerService.get_transactions(db, product_id=product_id, limit=limit)


@router.get("/{product_id}/audit", response_model=StockAudit)
def audit_product(product_id: str, db: Session = Depends(get_db)):
    return LedgerService.audit_product(db, product_id)


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    return ProductService.create_product(db, data)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: str,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    return ProductService.update_product(db, product_id, data)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    ProductService.delete_product(db, product_id)
    return {"message": "Product deleted"}
