"""
Bulk import endpoints - JSON rows or CSV upload
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from depopro.core import get_db
from depopro.schemas.stock import ImportRequest, ImportResult
from depopro.services import BulkImportService
from depopro.services.spreadsheet import read_csv_rows
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/imports", tags=["Bulk Import"])


# ===================== TRANSACTIONS =====================

@router.post("/transactions", response_model=ImportResult)
def import_transactions(
    request: ImportRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return BulkImportService.import_transactions(db, request.rows, created_by=user.name)


@router.post("/transactions/upload", response_model=ImportResult)
async def upload_transactions(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    """Spreadsheet exported as CSV; columns Urun / ParcaKodu, Miktar, Islem, Aciklama"""
    rows = read_csv_rows(await file.read())
    return BulkImportService.import_transactions(db, rows, created_by=user.name)


# ===================== PRODUCTS =====================

@router.post("/products", response_model=ImportResult)
def import_products(
    request: ImportRequest,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    return BulkImportService.import_products(db, request.rows)


@router.post("/products/upload", response_model=ImportResult)
async def upload_products(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    """Columns UrunAdi, ParcaKodu, Reyon, Hammadde, Kategori, Birim, KritikStok, BaslangicStogu"""
    rows = read_csv_rows(await file.read())
    return BulkImportService.import_products(db, rows)
