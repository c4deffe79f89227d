"""
Ledger Service - the only code path that changes product stock.

Invariant: product.current_stock == product.opening_stock + sum of the signed
quantities of the transactions currently attributed to that product.
previous_stock / new_stock on each transaction are point-in-time snapshots for
audit display and are never rewritten for other transactions.
"""
from datetime import datetime, time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import Product, StockTransaction
from depopro.models.base import to_decimal, utcnow

import logging
logger = logging.getLogger(__name__)

IN = "IN"
OUT = "OUT"
TRANSACTION_TYPES = (IN, OUT)


def signed_delta(movement_type: str, quantity: Decimal) -> Decimal:
    """+quantity for IN, -quantity for OUT"""
    return quantity if movement_type == IN else -quantity


def validate_movement(movement_type: str, quantity) -> None:
    if movement_type not in TRANSACTION_TYPES:
        raise ValidationError(f"Transaction type must be one of {', '.join(TRANSACTION_TYPES)}")
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than zero")


class LedgerService:
    """Create / edit / delete stock movements"""

    @staticmethod
    def next_seq(db: Session) -> int:
        current = db.query(func.max(StockTransaction.seq)).scalar()
        return (current or 0) + 1

    @staticmethod
    def set_stock(product: Product, new_stock, now: Optional[datetime] = None) -> None:
        """
        Write current_stock and keep critical_since in step with it.

        Leaving the critical band also clears the critical-report stamp, so the
        next dip is reported again.
        """
        new_stock = to_decimal(new_stock)
        product.current_stock = new_stock
        if 0 <= new_stock <= (product.min_stock_level or 0):
            if product.critical_since is None:
                product.critical_since = now or utcnow()
        else:
            product.critical_since = None
            product.last_alert_sent_at = None

    @staticmethod
    def get_transaction(db: Session, transaction_id: str) -> Optional[StockTransaction]:
        return db.query(StockTransaction).filter(StockTransaction.id == transaction_id).first()

    @staticmethod
    def create_transaction(
        db: Session,
        product_id: str,
        movement_type: str,
        quantity,
        description: str = "",
        created_by: Optional[str] = None,
    ) -> StockTransaction:
        """Apply a stock movement and append it to the log"""
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise ValidationError(f"Product '{product_id}' does not exist")
        quantity = to_decimal(quantity)
        validate_movement(movement_type, quantity)

        now = utcnow()
        previous_stock = product.current_stock
        new_stock = previous_stock + signed_delta(movement_type, quantity)

        transaction = StockTransaction(
            seq=LedgerService.next_seq(db),
            product_id=product.id,
            product_name=product.product_name,
            type=movement_type,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=new_stock,
            description=description or "",
            date=now,
            created_by=created_by,
        )
        LedgerService.set_stock(product, new_stock, now)
        db.add(transaction)
        db.commit()
        db.refresh(transaction)

        logger.info(
            "Ledger %s %s x%s: %s -> %s",
            movement_type, product.product_name, quantity, previous_stock, new_stock,
        )
        if new_stock < 0:
            logger.warning("Product %s went negative (%s)", product.product_name, new_stock)
        return transaction

    @staticmethod
    def edit_transaction(
        db: Session,
        transaction_id: str,
        product_id: str,
        movement_type: str,
        quantity,
        description: str = "",
    ) -> StockTransaction:
        """
        Re-point a transaction, possibly to another product.

        The original effect is reversed on the original product, then the new
        effect is applied to the new product. When both are the same product the
        two deltas run in that order against one running value.

        Snapshots: same product keeps the stored previous_stock and recomputes
        new_stock from it. For a cross-product edit there is no historical
        baseline on the new product, so previous_stock becomes that product's
        stock at edit time. This is an approximation, not a replay.
        """
        transaction = LedgerService.get_transaction(db, transaction_id)
        if not transaction:
            raise NotFoundError(f"Transaction '{transaction_id}' not found")
        new_product = db.query(Product).filter(Product.id == product_id).first()
        if not new_product:
            raise NotFoundError(f"Product '{product_id}' not found")
        quantity = to_decimal(quantity)
        validate_movement(movement_type, quantity)

        old_product = db.query(Product).filter(Product.id == transaction.product_id).first()
        reverse = -signed_delta(transaction.type, transaction.quantity)
        forward = signed_delta(movement_type, quantity)

        if old_product is not None and old_product.id == new_product.id:
            stock = new_product.current_stock
            stock += reverse
            stock += forward
            LedgerService.set_stock(new_product, stock)

            previous_snapshot = transaction.previous_stock
            new_snapshot = previous_snapshot + forward if previous_snapshot is not None else None
        else:
            if old_product is not None:
                LedgerService.set_stock(old_product, old_product.current_stock + reverse)

            previous_snapshot = new_product.current_stock
            new_snapshot = previous_snapshot + forward
            LedgerService.set_stock(new_product, new_product.current_stock + forward)

        transaction.product_id = new_product.id
        transaction.product_name = new_product.product_name
        transaction.type = movement_type
        transaction.quantity = quantity
        transaction.description = description or ""
        transaction.previous_stock = previous_snapshot
        transaction.new_stock = new_snapshot

        db.commit()
        db.refresh(transaction)

        logger.info(
            "Ledger edit %s: now %s %s x%s (product stock %s)",
            transaction.id, movement_type, new_product.product_name, quantity, new_product.current_stock,
        )
        return transaction

    @staticmethod
    def delete_transaction(db: Session, transaction_id: str) -> None:
        """Revert the transaction's effect on its product and drop the record"""
        transaction = LedgerService.get_transaction(db, transaction_id)
        if not transaction:
            raise NotFoundError(f"Transaction '{transaction_id}' not found")

        summary = (transaction.type, transaction.product_name, transaction.quantity)
        product = db.query(Product).filter(Product.id == transaction.product_id).first()
        if product is not None:
            LedgerService.set_stock(
                product, product.current_stock - signed_delta(transaction.type, transaction.quantity)
            )

        db.delete(transaction)
        db.commit()
        logger.info("Ledger delete %s (%s %s x%s)", transaction_id, *summary)

    @staticmethod
    def get_transactions(
        db: Session,
        product_id: Optional[str] = None,
        movement_type: Optional[str] = None,
        search: Optional[str] = None,
        min_quantity: Optional[Decimal] = None,
        max_quantity: Optional[Decimal] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[StockTransaction]:
        """History, newest first"""
        query = db.query(StockTransaction)

        if product_id:
            query = query.filter(StockTransaction.product_id == product_id)

        if movement_type and movement_type != "ALL":
            query = query.filter(StockTransaction.type == movement_type)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    StockTransaction.product_name.ilike(search_term),
                    StockTransaction.description.ilike(search_term),
                )
            )

        if min_quantity is not None:
            query = query.filter(StockTransaction.quantity >= min_quantity)
        if max_quantity is not None:
            query = query.filter(StockTransaction.quantity <= max_quantity)

        # Whole-day bounds
        if date_from:
            query = query.filter(StockTransaction.date >= datetime.combine(date_from.date(), time.min))
        if date_to:
            query = query.filter(StockTransaction.date <= datetime.combine(date_to.date(), time.max))

        query = query.order_by(StockTransaction.date.desc(), StockTransaction.seq.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def audit_product(db: Session, product_id: str) -> dict:
        """Replay the product's transactions in application order and compare"""
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError(f"Product '{product_id}' not found")

        transactions = db.query(StockTransaction).filter(
            StockTransaction.product_id == product_id
        ).order_by(StockTransaction.seq).all()

        expected = product.opening_stock or 0
        for t in transactions:
            expected += t.signed_quantity

        return {
            "product_id": product.id,
            "opening_stock": product.opening_stock or 0,
            "transaction_count": len(transactions),
            "expected_stock": expected,
            "current_stock": product.current_stock,
            "consistent": expected == product.current_stock,
        }
