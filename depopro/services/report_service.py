from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import csv
import io
import math

from depopro.models import Product, StockTransaction
from depopro.models.base import plain_number, utcnow
from .catalog import location_sort_key
from .ledger_service import IN, OUT, LedgerService

import logging
logger = logging.getLogger(__name__)

# Excel opens UTF-8 CSV correctly only with a BOM
BOM = "\ufeff"
DATE_FORMAT = "%d.%m.%Y %H:%M:%S"

CRITICAL_HEADERS = ["Ürün Adı", "Parça Kodu", "Mevcut Stok", "Birim", "Min. Seviye", "Kritik Tarihi", "Durum"]
NEGATIVE_HEADERS = ["Ürün Adı", "Parça Kodu", "Mevcut Stok (Eksi)", "Birim", "Min. Stok"]
TRANSACTION_HEADERS = [
    "Tarih", "İşlem Tipi", "Ürün", "Miktar", "Önceki Stok", "Sonraki Stok", "Açıklama", "Kullanıcı",
]

OTHER_MATERIAL = "Diğer"
UNKNOWN_PRODUCT = "Bilinmeyen Ürün"
TOP_MOVERS_LIMIT = 5


def _text(value: Any) -> str:
    return "-" if value is None or value == "" else str(value)


def _date(value: Optional[datetime]) -> str:
    return value.strftime(DATE_FORMAT) if value else "-"


def _number(value: Any) -> Any:
    return "-" if value is None else plain_number(value)


def percentage(part: int, whole: int) -> int:
    """Whole percent, halves rounded up"""
    if not whole:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


def render_csv(headers: List[str], rows: Iterable[List[Any]]) -> str:
    """BOM + comma separated; text quoted, numbers bare; header always present"""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return BOM + output.getvalue()


class ReportService:

    @staticmethod
    def critical_products(db: Session) -> List[Product]:
        products = db.query(Product).filter(
            Product.current_stock >= 0,
            Product.current_stock <= Product.min_stock_level,
        ).all()
        products.sort(key=lambda p: location_sort_key(p.location))
        return products

    @staticmethod
    def unreported_critical_products(db: Session) -> List[Product]:
        """Critical products no report has gone out for since they dipped"""
        return [p for p in ReportService.critical_products(db) if p.last_alert_sent_at is None]

    @staticmethod
    def mark_critical_reported(db: Session, product_ids: Optional[List[str]] = None) -> List[Product]:
        """
        Stamp critical products as reported.

        Without ids the unreported ones are stamped, or the whole critical list
        when everything was already reported. Ids of products that are not
        critical are ignored.
        """
        critical = ReportService.critical_products(db)
        if product_ids is not None:
            wanted = set(product_ids)
            targets = [p for p in critical if p.id in wanted]
        else:
            targets = [p for p in critical if p.last_alert_sent_at is None] or critical

        now = utcnow()
        for product in targets:
            product.last_alert_sent_at = now
        db.commit()

        logger.info("Marked %d critical products as reported", len(targets))
        return targets

    @staticmethod
    def negative_products(db: Session) -> List[Product]:
        return db.query(Product).filter(Product.current_stock < 0).order_by(Product.current_stock).all()

    @staticmethod
    def get_dashboard_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Headline numbers for the dashboard"""
        now = now or utcnow()
        month_start = datetime(now.year, now.month, 1)

        total = db.query(Product).count()
        critical = ReportService.critical_products(db)
        negative = db.query(Product).filter(Product.current_stock < 0).count()
        this_month = db.query(StockTransaction).filter(StockTransaction.date >= month_start).count()

        return {
            "total_products": total,
            "critical_count": len(critical),
            "unreported_critical_count": sum(1 for p in critical if p.last_alert_sent_at is None),
            "negative_count": negative,
            "transactions_this_month": this_month,
            "critical_ratio": round(len(critical) / total, 4) if total else 0.0,
        }

    @staticmethod
    def analytics(db: Session) -> Dict[str, Any]:
        """
        Warehouse analysis: products per material, the most moved products
        and ledger totals.
        """
        products = db.query(Product).order_by(Product.created_at).all()
        total = len(products)

        # Material distribution; ties keep first-seen order
        material_counts: Dict[str, int] = {}
        for p in products:
            material = (p.material or "").strip() or OTHER_MATERIAL
            material_counts[material] = material_counts.get(material, 0) + 1
        materials = [
            {"material": name, "count": count, "percentage": percentage(count, total)}
            for name, count in material_counts.items()
        ]
        materials.sort(key=lambda m: m["count"], reverse=True)

        move_count = func.count(StockTransaction.id)
        movers = db.query(
            StockTransaction.product_id, move_count, func.min(StockTransaction.seq)
        ).group_by(StockTransaction.product_id).order_by(
            move_count.desc(), func.min(StockTransaction.seq)
        ).limit(TOP_MOVERS_LIMIT).all()
        by_id = {p.id: p for p in products}
        top_movers = []
        for product_id, count, _ in movers:
            product = by_id.get(product_id)
            top_movers.append({
                "product_id": product_id,
                "product_name": product.product_name if product else UNKNOWN_PRODUCT,
                "part_code": product.part_code if product else None,
                "transaction_count": count,
            })

        type_counts = dict(
            db.query(StockTransaction.type, func.count(StockTransaction.id))
            .group_by(StockTransaction.type).all()
        )
        critical = sum(1 for p in products if (p.current_stock or 0) <= (p.min_stock_level or 0))

        return {
            "total_products": total,
            "total_stock": plain_number(sum((p.current_stock or 0) for p in products)),
            "in_count": type_counts.get(IN, 0),
            "out_count": type_counts.get(OUT, 0),
            "critical_ratio": percentage(critical, total),
            "materials": materials,
            "top_movers": top_movers,
        }

    @staticmethod
    def critical_stock_csv(db: Session) -> str:
        rows = [
            [
                p.product_name, _text(p.part_code), _number(p.current_stock), _text(p.unit),
                _number(p.min_stock_level), _date(p.critical_since),
                "Raporlandı" if p.last_alert_sent_at else "Raporlanmadı",
            ]
            for p in ReportService.critical_products(db)
        ]
        return render_csv(CRITICAL_HEADERS, rows)

    @staticmethod
    def negative_stock_csv(db: Session) -> str:
        rows = [
            [p.product_name, _text(p.part_code), _number(p.current_stock), _text(p.unit), _number(p.min_stock_level)]
            for p in ReportService.negative_products(db)
        ]
        return render_csv(NEGATIVE_HEADERS, rows)

    @staticmethod
    def transactions_csv(db: Session, **filters) -> str:
        """History export; accepts the same filters as the history listing"""
        rows = []
        for t in LedgerService.get_transactions(db, **filters):
            rows.append([
                _date(t.date),
                "GİRİŞ" if t.type == IN else "ÇIKIŞ",
                _text(t.product_name),
                _number(t.quantity),
                _number(t.previous_stock),
                _number(t.new_stock),
                _text(t.description),
                _text(t.created_by),
            ])
        return render_csv(TRANSACTION_HEADERS, rows)
