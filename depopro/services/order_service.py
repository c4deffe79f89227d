"""
Order Service - Business Logic for demand lists (orders)
"""
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Tuple

from depopro.core import settings
from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import OrderHeader, OrderItem, Product
from depopro.models.base import utcnow
from depopro.schemas.order import OrderCreate
from .catalog import CatalogIndex
from .shortage_service import missing_count
from .spreadsheet import cell, parse_quantity, text_cell

import logging
logger = logging.getLogger(__name__)

PART_CODE_COLUMNS = ("ParcaKodu", "Parça Kodu", "PartCode", "Kod", "part_code")
QUANTITY_COLUMNS = ("Adet", "Miktar", "Qty", "required_qty")
NAME_COLUMNS = ("Urun", "Ürün", "Aciklama", "Ürün Adı", "product_name")
GROUP_COLUMNS = ("Grubu", "Grup", "Group", "group")
LOCATION_COLUMNS = ("Reyon", "Raf", "Location", "location")
UNIT_COLUMNS = ("Birim", "unit")

UNKNOWN_PRODUCT = "Unknown product"


def parse_order_rows(rows: List[Dict[str, Any]], catalog: CatalogIndex) -> Tuple[List[dict], int]:
    """
    Demand rows -> order item values, plus the number of rows skipped.

    Rows without a usable quantity are skipped. A row matched in the catalog
    (part code first, else name) takes its unit and location from the product,
    and its name or part code where the row left them empty.
    """
    items = []
    skipped = 0
    for row in rows:
        raw_quantity = cell(row, *QUANTITY_COLUMNS)
        if raw_quantity is None:
            skipped += 1
            continue
        try:
            quantity = parse_quantity(raw_quantity)
        except ValueError:
            skipped += 1
            continue

        name = text_cell(row, *NAME_COLUMNS)
        part_code = text_cell(row, *PART_CODE_COLUMNS)
        unit = text_cell(row, *UNIT_COLUMNS)
        location = text_cell(row, *LOCATION_COLUMNS)

        if part_code:
            product = catalog.by_part_code_exact(part_code)
        else:
            product = catalog.by_name(name)
        if product is not None:
            name = name or product.product_name
            part_code = part_code or product.part_code
            unit = product.unit or unit
            location = product.location or location

        items.append({
            "product_name": name or part_code or UNKNOWN_PRODUCT,
            "required_qty": quantity,
            "unit": unit or settings.DEFAULT_UNIT,
            "part_code": part_code,
            "group": text_cell(row, *GROUP_COLUMNS),
            "location": location,
        })
    return items, skipped


class OrderService:
    """Order business logic"""

    # Valid status transitions
    STATUS_TRANSITIONS = {
        "PENDING": ["COMPLETED"],
        "COMPLETED": [],
    }

    @staticmethod
    def get_orders(db: Session, status: Optional[str] = None) -> List[OrderHeader]:
        """Orders newest first"""
        query = db.query(OrderHeader)
        if status and status != "all":
            query = query.filter(OrderHeader.status == status)
        return query.order_by(OrderHeader.created_at.desc()).all()

    @staticmethod
    def get_orders_with_summary(db: Session, status: Optional[str] = None) -> List[dict]:
        """Orders plus the number of short items in each"""
        orders = OrderService.get_orders(db, status)
        catalog = CatalogIndex(db.query(Product).all())
        return [
            {"order": order, "missing_count": missing_count(order.items, catalog)}
            for order in orders
        ]

    @staticmethod
    def get_order(db: Session, order_id: str) -> OrderHeader:
        order = db.query(OrderHeader).filter(OrderHeader.id == order_id).first()
        if not order:
            raise NotFoundError(f"Order '{order_id}' not found")
        return order

    @staticmethod
    def create_order(db: Session, order_data: OrderCreate) -> OrderHeader:
        """Create a PENDING order from demand rows"""
        name = (order_data.name or "").strip()
        if not name:
            raise ValidationError("Order name is required")

        catalog = CatalogIndex(db.query(Product).all())
        items, skipped = parse_order_rows(order_data.rows, catalog)
        if not items:
            raise ValidationError("No valid order items found")

        order = OrderHeader(name=name, note=order_data.note, status="PENDING", created_at=utcnow())
        for position, values in enumerate(items):
            order.items.append(OrderItem(position=position, picked_qty=0, **values))

        db.add(order)
        db.commit()
        db.refresh(order)

        logger.info("Created order %s with %d items (%d rows skipped)", order.name, len(items), skipped)
        return order

    @staticmethod
    def complete_order(db: Session, order_id: str) -> OrderHeader:
        """PENDING -> COMPLETED; the authoritative end of an order"""
        order = OrderService.get_order(db, order_id)

        allowed = OrderService.STATUS_TRANSITIONS.get(order.status, [])
        if "COMPLETED" not in allowed:
            logger.warning("Rejected completion of order %s in status %s", order.name, order.status)
            raise ValidationError(f"Cannot transition from {order.status} to COMPLETED")

        order.status = "COMPLETED"
        order.completed_at = utcnow()
        db.commit()
        db.refresh(order)
        logger.info("Order %s completed", order.name)
        return order

    @staticmethod
    def delete_order(db: Session, order_id: str) -> None:
        """Remove the order with its items and picking sessions"""
        order = OrderService.get_order(db, order_id)
        name = order.name
        db.delete(order)
        db.commit()
        logger.info("Deleted order %s", name)
