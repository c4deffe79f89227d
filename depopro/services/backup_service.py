"""
Backup Service - whole-store JSON snapshot and all-or-nothing restore
"""
from decimal import Decimal
from typing import Dict, Union

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from depopro.core.errors import ExternalIOError
from depopro.models import OrderHeader, OrderItem, PickingSession, Product, StockTransaction
from depopro.models.base import utcnow
from depopro.schemas.backup import (
    BackupDocument, OrderRecord, ProductRecord, TransactionRecord,
)

import logging
logger = logging.getLogger(__name__)


class BackupService:

    @staticmethod
    def export(db: Session) -> BackupDocument:
        products = db.query(Product).order_by(Product.created_at).all()
        transactions = db.query(StockTransaction).order_by(StockTransaction.seq).all()
        orders = db.query(OrderHeader).order_by(OrderHeader.created_at).all()

        return BackupDocument(
            exported_at=utcnow(),
            products=[ProductRecord.model_validate(p) for p in products],
            transactions=[TransactionRecord.model_validate(t) for t in transactions],
            orders=[OrderRecord.model_validate(o) for o in orders],
        )

    @staticmethod
    def parse(payload: Union[str, bytes]) -> BackupDocument:
        """Validate the whole document before anything is touched"""
        try:
            document = BackupDocument.model_validate_json(payload)
        except SchemaError as e:
            raise ExternalIOError("Invalid backup file", [str(err["msg"]) for err in e.errors()])

        product_ids = [p.id for p in document.products]
        if len(set(product_ids)) != len(product_ids):
            raise ExternalIOError("Invalid backup file: duplicate product ids")
        transaction_ids = [t.id for t in document.transactions]
        if len(set(transaction_ids)) != len(transaction_ids):
            raise ExternalIOError("Invalid backup file: duplicate transaction ids")

        known = set(product_ids)
        orphans = [t.id for t in document.transactions if t.product_id not in known]
        if orphans:
            raise ExternalIOError(
                "Invalid backup file: transactions reference unknown products", orphans[:20]
            )
        return document

    @staticmethod
    def restore(db: Session, payload: Union[str, bytes]) -> Dict[str, int]:
        """
        Replace products, transactions and orders with the backup contents.

        Runs in one database transaction; on failure nothing changes.
        """
        document = BackupService.parse(payload)

        # Older backups carry no seq / opening_stock; rebuild them from document order
        signed_totals: Dict[str, Decimal] = {}
        for t in document.transactions:
            delta = t.quantity if t.type == "IN" else -t.quantity
            signed_totals[t.product_id] = signed_totals.get(t.product_id, Decimal(0)) + delta

        try:
            db.query(PickingSession).delete(synchronize_session=False)
            db.query(OrderItem).delete(synchronize_session=False)
            db.query(OrderHeader).delete(synchronize_session=False)
            db.query(StockTransaction).delete(synchronize_session=False)
            db.query(Product).delete(synchronize_session=False)
            db.flush()
            db.expunge_all()

            for record in document.products:
                values = record.model_dump()
                if values["opening_stock"] is None:
                    values["opening_stock"] = record.current_stock - signed_totals.get(record.id, Decimal(0))
                if values["created_at"] is None:
                    values["created_at"] = utcnow()
                db.add(Product(**values))
            db.flush()

            for index, record in enumerate(sorted(document.transactions, key=lambda t: t.seq or 0), start=1):
                values = record.model_dump()
                values["seq"] = index
                db.add(StockTransaction(**values))

            for record in document.orders:
                values = record.model_dump(exclude={"items"})
                order = OrderHeader(**values)
                for position, item in enumerate(record.items):
                    order.items.append(OrderItem(position=position, **item.model_dump()))
                db.add(order)

            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Restore failed, previous data kept")
            raise ExternalIOError("Restore failed; previous data kept") from e

        db.expire_all()
        counts = {
            "products": len(document.products),
            "transactions": len(document.transactions),
            "orders": len(document.orders),
        }
        logger.info("Restored backup: %s", counts)
        return counts
