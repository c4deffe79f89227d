"""
Cycle Count Service - periodic physical stock counts

A count that differs from the system stock is booked through the ledger as a
normal IN/OUT movement, so conservation holds across corrections.
"""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from depopro.core import settings
from depopro.core.errors import ValidationError
from depopro.models import Product
from depopro.models.base import plain_number, to_decimal, utcnow
from .catalog import location_sort_key, normalize
from .ledger_service import IN, OUT, LedgerService
from .product_service import ProductService

import logging
logger = logging.getLogger(__name__)


def zone_of(location: Optional[str]) -> Optional[str]:
    """Zone is the location prefix before the first '-'"""
    if not location or not location.strip():
        return None
    return location.strip().split("-")[0]


def is_due(product: Product, now: datetime) -> bool:
    if product.last_counted_at is None:
        return True
    return product.last_counted_at < now - timedelta(days=settings.CYCLE_COUNT_INTERVAL_DAYS)


class CycleCountService:

    @staticmethod
    def zones(db: Session) -> List[str]:
        found = {zone_of(location) for (location,) in db.query(Product.location).all()}
        found.discard(None)
        return sorted(found, key=location_sort_key)

    @staticmethod
    def due_products(
        db: Session,
        zone: Optional[str] = None,
        search: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Product]:
        """Products due for counting: never counted first, then the oldest count"""
        now = now or utcnow()
        products = [p for p in db.query(Product).all() if is_due(p, now)]

        if zone and zone != "ALL":
            products = [p for p in products if zone_of(p.location) == zone]

        if search:
            term = normalize(search)
            products = [
                p for p in products
                if term in normalize(p.product_name) or term in normalize(p.part_code)
            ]

        products.sort(key=lambda p: (p.last_counted_at is not None, p.last_counted_at or now))
        return products

    @staticmethod
    def submit_count(db: Session, product_id: str, counted_qty, created_by: Optional[str] = None) -> dict:
        counted_qty = to_decimal(counted_qty)
        if counted_qty is None or counted_qty < 0:
            raise ValidationError("Counted quantity cannot be negative")

        product = ProductService.get_product_by_id(db, product_id)
        previous_stock = product.current_stock
        difference = counted_qty - previous_stock

        transaction = None
        if difference != 0:
            transaction = LedgerService.create_transaction(
                db,
                product.id,
                IN if difference > 0 else OUT,
                abs(difference),
                description=(
                    f"Cycle count correction (system {plain_number(previous_stock)}, "
                    f"counted {plain_number(counted_qty)})"
                ),
                created_by=created_by,
            )

        product.last_counted_at = utcnow()
        db.commit()
        db.refresh(product)

        logger.info("Cycle count %s: system %s, counted %s", product.product_name, previous_stock, counted_qty)
        return {
            "product_id": product.id,
            "previous_stock": previous_stock,
            "counted_qty": counted_qty,
            "difference": difference,
            "transaction": transaction,
        }
