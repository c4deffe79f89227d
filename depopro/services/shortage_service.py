"""
Shortage Service - demand vs. stock

The engines are plain functions over product-like and item-like objects so
they run the same on ORM rows and on test fixtures. Shortage is never
negative; an item that matches nothing in the catalog counts as fully missing.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from depopro.core.errors import ValidationError
from depopro.models import OrderHeader, Product
from .catalog import CatalogIndex, normalize
from .spreadsheet import cell, parse_quantity, text_cell

import logging
logger = logging.getLogger(__name__)

SIM_NAME_COLUMNS = ("Urun", "Ürün", "product_name")
SIM_PART_CODE_COLUMNS = ("ParcaKodu", "Parça Kodu", "part_code")
SIM_QUANTITY_COLUMNS = ("GerekliMiktar", "Miktar", "Adet", "required_qty")

# Simulation bucket order
STATUS_ORDER = {"NOT_FOUND": 0, "SHORTAGE": 1, "OK": 2}


def shortage(required_qty: Decimal, current_stock: Decimal) -> Decimal:
    return max(Decimal(0), required_qty - current_stock)


def _stock_of(product: Optional[Any]) -> Decimal:
    return product.current_stock if product is not None else Decimal(0)


def order_shortages(items: Iterable[Any], catalog: CatalogIndex) -> List[dict]:
    """One line per order item, in item order"""
    lines = []
    for item in items:
        product = catalog.match_item(item.part_code, item.product_name)
        stock = _stock_of(product)
        lines.append({
            "position": getattr(item, "position", None),
            "product_name": item.product_name,
            "part_code": item.part_code,
            "unit": item.unit,
            "required_qty": item.required_qty,
            "matched_product_id": product.id if product is not None else None,
            "current_stock": stock,
            "missing": shortage(item.required_qty, stock),
        })
    return lines


def missing_count(items: Iterable[Any], catalog: CatalogIndex) -> int:
    """Number of items short of stock"""
    return sum(1 for line in order_shortages(items, catalog) if line["missing"] > 0)


def aggregate_key(part_code: Optional[str], product_name: Optional[str]) -> str:
    return normalize(part_code) or normalize(product_name)


def aggregate_report(orders: Iterable[Any], catalog: CatalogIndex) -> List[dict]:
    """
    Sum demand per part (part code, else name) across PENDING orders.

    Each entry keeps the (order, quantity) contributions behind its total.
    Sorted by missing, largest first; ties keep first-seen order.
    """
    groups: Dict[str, dict] = {}
    for order in orders:
        if order.status != "PENDING":
            continue
        for item in order.items:
            key = aggregate_key(item.part_code, item.product_name)
            if not key:
                continue
            group = groups.get(key)
            if group is None:
                group = groups[key] = {
                    "key": key,
                    "product_name": item.product_name,
                    "part_code": item.part_code,
                    "total_required": Decimal(0),
                    "contributions": [],
                }
            group["total_required"] += item.required_qty
            group["contributions"].append({
                "order_id": order.id,
                "order_name": order.name,
                "quantity": item.required_qty,
            })

    report = []
    for group in groups.values():
        product = catalog.match_item(group["part_code"], group["product_name"])
        stock = _stock_of(product)
        group["matched_product_id"] = product.id if product is not None else None
        group["current_stock"] = stock
        group["missing"] = shortage(group["total_required"], stock)
        report.append(group)

    report.sort(key=lambda g: g["missing"], reverse=True)
    return report


def simulate(rows: List[Dict[str, Any]], catalog: CatalogIndex) -> dict:
    """
    Ad hoc shortage check for a list that is not saved as an order.

    Rows without a usable name/code or quantity are skipped. Results are
    NOT_FOUND first, then SHORTAGE, then OK, input order kept within each.
    """
    results = []
    for row in rows:
        name = text_cell(row, *SIM_NAME_COLUMNS)
        part_code = text_cell(row, *SIM_PART_CODE_COLUMNS)
        raw_quantity = cell(row, *SIM_QUANTITY_COLUMNS)
        if not (name or part_code) or raw_quantity is None:
            continue
        try:
            required = parse_quantity(raw_quantity)
        except ValueError:
            continue

        product = catalog.match_item(part_code, name)
        if product is None:
            results.append({
                "product_name": name or part_code,
                "part_code": part_code,
                "required_qty": required,
                "current_stock": Decimal(0),
                "missing_qty": required,
                "unit": "-",
                "status": "NOT_FOUND",
            })
            continue

        missing = shortage(required, product.current_stock)
        results.append({
            "product_name": product.product_name,
            "part_code": product.part_code or part_code,
            "required_qty": required,
            "current_stock": product.current_stock,
            "missing_qty": missing,
            "unit": product.unit or "-",
            "status": "SHORTAGE" if missing > 0 else "OK",
        })

    if not results:
        raise ValidationError("No valid rows to simulate")

    results.sort(key=lambda r: STATUS_ORDER[r["status"]])
    return {
        "ok_count": sum(1 for r in results if r["status"] == "OK"),
        "shortage_count": sum(1 for r in results if r["status"] == "SHORTAGE"),
        "not_found_count": sum(1 for r in results if r["status"] == "NOT_FOUND"),
        "results": results,
    }


class ShortageService:
    """Shortage reports against the live catalog"""

    @staticmethod
    def catalog(db: Session) -> CatalogIndex:
        return CatalogIndex(db.query(Product).all())

    @staticmethod
    def order_report(db: Session, order: OrderHeader) -> dict:
        details = order_shortages(order.items, ShortageService.catalog(db))
        return {
            "order_id": order.id,
            "order_name": order.name,
            "missing_count": sum(1 for d in details if d["missing"] > 0),
            "details": details,
        }

    @staticmethod
    def aggregate(db: Session) -> List[dict]:
        orders = db.query(OrderHeader).filter(OrderHeader.status == "PENDING").order_by(
            OrderHeader.created_at
        ).all()
        return aggregate_report(orders, ShortageService.catalog(db))

    @staticmethod
    def simulate(db: Session, rows: List[Dict[str, Any]]) -> dict:
        result = simulate(rows, ShortageService.catalog(db))
        logger.info(
            "Simulation: %d ok, %d short, %d not found",
            result["ok_count"], result["shortage_count"], result["not_found_count"],
        )
        return result
