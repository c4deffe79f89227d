"""
Bulk Import Service - spreadsheet rows into the ledger / catalog

Transaction rows are validated into typed intents at the boundary, planned as
a fold over a working copy of current stocks, then committed in one go.
Row errors are collected; valid rows still commit and the caller is told
"N errors, M applied".
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from depopro.core import settings
from depopro.core.errors import BatchPartialError, ValidationError
from depopro.models import Product, StockTransaction
from depopro.models.base import utcnow
from depopro.schemas.product import ProductCreate
from .catalog import CatalogIndex, normalize
from .ledger_service import IN, OUT, LedgerService, signed_delta
from .product_service import ProductService
from .spreadsheet import FIRST_DATA_ROW, parse_number, parse_quantity, text_cell, cell

import logging
logger = logging.getLogger(__name__)

NAME_COLUMNS = ("Urun", "Ürün")
PART_CODE_COLUMNS = ("ParcaKodu", "Parça Kodu")
QUANTITY_COLUMNS = ("Miktar",)
TYPE_COLUMNS = ("Islem", "İşlem")
DESCRIPTION_COLUMNS = ("Aciklama", "Açıklama", "Not")

PRODUCT_NAME_COLUMNS = ("UrunAdi", "Ürün Adı", "Aciklama")
LOCATION_COLUMNS = ("Reyon", "Raf")
MATERIAL_COLUMNS = ("Hammadde", "Materyal")

OUT_MARKERS = ("ÇIK", "OUT", "CIKIS")


@dataclass
class TransactionIntent:
    """A validated ledger Create request derived from one row"""
    row_number: int
    product_id: str
    movement_type: str
    quantity: Decimal
    description: str


@dataclass
class PlannedTransaction:
    intent: TransactionIntent
    product_name: str
    previous_stock: Decimal
    new_stock: Decimal


def parse_movement_type(raw: Any) -> str:
    """Blank means IN; any OUT marker anywhere in the cell means OUT"""
    if raw is None:
        return IN
    text = str(raw).strip().upper()
    if any(marker in text for marker in OUT_MARKERS):
        return OUT
    return IN


def parse_transaction_rows(
    rows: Iterable[Dict[str, Any]], catalog: CatalogIndex
) -> Tuple[List[TransactionIntent], List[str]]:
    """Validate raw rows into intents; unknown products are errors, never created"""
    intents: List[TransactionIntent] = []
    errors: List[str] = []

    for index, row in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        name = text_cell(row, *NAME_COLUMNS)
        part_code = text_cell(row, *PART_CODE_COLUMNS)
        raw_quantity = cell(row, *QUANTITY_COLUMNS)

        if (not name and not part_code) or raw_quantity is None:
            errors.append(f"Row {row_number}: product name or quantity missing")
            continue

        try:
            quantity = parse_quantity(raw_quantity)
        except ValueError as e:
            errors.append(f"Row {row_number}: {e}")
            continue

        product = catalog.by_part_code_exact(part_code) if part_code else None
        if product is None and name:
            product = catalog.by_name(name)
        if product is None:
            errors.append(f"Row {row_number}: '{part_code or name}' not found in catalog")
            continue

        intents.append(TransactionIntent(
            row_number=row_number,
            product_id=product.id,
            movement_type=parse_movement_type(cell(row, *TYPE_COLUMNS)),
            quantity=quantity,
            description=text_cell(row, *DESCRIPTION_COLUMNS) or settings.BULK_DEFAULT_DESCRIPTION,
        ))

    return intents, errors


def plan_batch(
    stocks: Dict[str, Decimal], names: Dict[str, str], intents: Iterable[TransactionIntent]
) -> Tuple[Dict[str, Decimal], List[PlannedTransaction]]:
    """
    Fold intents over a working copy of stocks.

    Rows for the same product see each other's effect in row order. The input
    mapping is not modified.
    """
    working = dict(stocks)
    planned: List[PlannedTransaction] = []
    for intent in intents:
        previous = working[intent.product_id]
        new = previous + signed_delta(intent.movement_type, intent.quantity)
        working[intent.product_id] = new
        planned.append(PlannedTransaction(
            intent=intent,
            product_name=names.get(intent.product_id, ""),
            previous_stock=previous,
            new_stock=new,
        ))
    return working, planned


def summarize(applied: int, errors: List[str]) -> str:
    if errors:
        return f"{len(errors)} errors, {applied} applied"
    return f"{applied} applied"


class BulkImportService:
    """Apply spreadsheet batches"""

    @staticmethod
    def import_transactions(db: Session, rows: List[Dict[str, Any]], created_by: Optional[str] = None) -> dict:
        if not rows:
            raise ValidationError("No rows to import")

        products = db.query(Product).all()
        intents, errors = parse_transaction_rows(rows, CatalogIndex(products))
        if not intents:
            logger.warning("Bulk transaction import rejected: %d errors, nothing valid", len(errors))
            raise BatchPartialError(summarize(0, errors), errors, applied=0)

        by_id = {p.id: p for p in products}
        final_stocks, planned = plan_batch(
            {p.id: p.current_stock for p in products},
            {p.id: p.product_name for p in products},
            intents,
        )

        author = f"{created_by or 'anonymous'}{settings.BULK_CREATED_BY_SUFFIX}"
        seq = LedgerService.next_seq(db)
        transactions = []
        for offset, plan in enumerate(planned):
            transaction = StockTransaction(
                seq=seq + offset,
                product_id=plan.intent.product_id,
                product_name=plan.product_name,
                type=plan.intent.movement_type,
                quantity=plan.intent.quantity,
                previous_stock=plan.previous_stock,
                new_stock=plan.new_stock,
                description=plan.intent.description,
                date=utcnow(),
                created_by=author,
            )
            db.add(transaction)
            transactions.append(transaction)

        now = utcnow()
        for product_id, stock in final_stocks.items():
            product = by_id[product_id]
            if product.current_stock != stock:
                LedgerService.set_stock(product, stock, now)

        db.commit()
        for transaction in transactions:
            db.refresh(transaction)

        logger.info("Bulk transaction import: %d applied, %d errors", len(transactions), len(errors))
        return {
            "message": summarize(len(transactions), errors),
            "applied": len(transactions),
            "errors": errors,
            "partial": bool(errors),
            "transactions": transactions,
        }

    @staticmethod
    def import_products(db: Session, rows: List[Dict[str, Any]]) -> dict:
        """Create new products; never touches the ledger"""
        if not rows:
            raise ValidationError("No rows to import")

        catalog = CatalogIndex(db.query(Product).all())
        seen_names = set()
        seen_codes = set()
        taken_short_ids = set()
        created: List[Product] = []
        errors: List[str] = []

        for index, row in enumerate(rows):
            row_number = index + FIRST_DATA_ROW
            name = text_cell(row, *PRODUCT_NAME_COLUMNS)
            part_code = text_cell(row, *PART_CODE_COLUMNS)

            if not name:
                errors.append(f"Row {row_number}: product name missing")
                continue
            if part_code and (catalog.by_part_code(part_code) is not None or normalize(part_code) in seen_codes):
                errors.append(f"Row {row_number}: part code '{part_code}' already exists")
                continue
            if catalog.by_name(name) is not None or normalize(name) in seen_names:
                errors.append(f"Row {row_number}: product '{name}' already exists")
                continue

            try:
                min_stock = parse_number(cell(row, "KritikStok"), settings.DEFAULT_MIN_STOCK_LEVEL)
                initial_stock = parse_number(cell(row, "BaslangicStogu"), 0)
            except ValueError as e:
                errors.append(f"Row {row_number}: {e}")
                continue

            short_id = ProductService.generate_short_id(db, taken_short_ids)
            taken_short_ids.add(short_id)
            product = ProductService.build_product(ProductCreate(
                product_name=name,
                category=text_cell(row, "Kategori"),
                unit=text_cell(row, "Birim"),
                min_stock_level=min_stock,
                initial_stock=initial_stock,
                part_code=part_code,
                location=text_cell(row, *LOCATION_COLUMNS),
                material=text_cell(row, *MATERIAL_COLUMNS),
            ), short_id)
            db.add(product)
            created.append(product)
            seen_names.add(normalize(name))
            if part_code:
                seen_codes.add(normalize(part_code))

        if not created:
            logger.warning("Bulk product import rejected: %d errors, nothing valid", len(errors))
            raise BatchPartialError(summarize(0, errors), errors, applied=0)

        db.commit()
        for product in created:
            db.refresh(product)

        logger.info("Bulk product import: %d created, %d errors", len(created), len(errors))
        return {
            "message": summarize(len(created), errors),
            "applied": len(created),
            "errors": errors,
            "partial": bool(errors),
            "products": created,
        }
