"""
Report endpoints - dashboard numbers, analytics and CSV exports
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from depopro.core import get_db
from depopro.schemas.product import CriticalReportMark, ProductResponse
from depopro.services import ReportService
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/reports", tags=["Reports"])


def csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    return ReportService.get_dashboard_stats(db)


@router.get("/critical", response_model=List[ProductResponse])
def critical_stock(db: Session = Depends(get_db)):
    return ReportService.critical_products(db)


@router.get("/analytics")
def analytics(db: Session = Depends(get_db)):
    """Material distribution, top movers and ledger totals"""
    return ReportService.analytics(db)


@router.get("/critical/unreported", response_model=List[ProductResponse])
def unreported_critical_stock(db: Session = Depends(get_db)):
    return ReportService.unreported_critical_products(db)


@router.post("/critical/mark-reported", response_model=List[ProductResponse])
def mark_critical_reported(
    data: CriticalReportMark,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    """Record that a critical stock report went out for these products"""
    return ReportService.mark_critical_reported(db, data.product_ids)


@router.get("/negative", response_model=List[ProductResponse])
def negative_stock(db: Session = Depends(get_db)):
    return ReportService.negative_products(db)


# ===================== CSV EXPORT =====================

@router.get("/critical.csv")
def critical_stock_csv(db: Session = Depends(get_db)):
    return csv_response(ReportService.critical_stock_csv(db), "kritik_stok_listesi.csv")


@router.get("/negative.csv")
def negative_stock_csv(db: Session = Depends(get_db)):
    return csv_response(ReportService.negative_stock_csv(db), "eksi_bakiyeli_urunler.csv")


@router.get("/transactions.csv")
def transactions_csv(
    product_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    content = ReportService.transactions_csv(
        db,
        product_id=product_id,
        movement_type=type,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    return csv_response(content, "stok_hareketleri.csv")
