"""
Product Service - Business Logic for the catalog
"""
import random
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from depopro.core import settings
from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import Product
from depopro.models.base import to_decimal
from depopro.schemas.product import ProductCreate, ProductUpdate
from .catalog import CatalogIndex, location_sort_key
from .ledger_service import LedgerService

import logging
logger = logging.getLogger(__name__)


class ProductService:
    """Product business logic"""

    @staticmethod
    def get_products(db: Session, search: Optional[str] = None) -> List[Product]:
        """Catalog filtered by search term, ordered by shelf location"""
        query = db.query(Product)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    Product.product_name.ilike(search_term),
                    Product.part_code.ilike(search_term),
                    Product.location.ilike(search_term),
                    Product.barcode.ilike(search_term),
                )
            )

        products = query.order_by(Product.product_name).all()
        products.sort(key=lambda p: location_sort_key(p.location))
        return products

    @staticmethod
    def get_product_by_id(db: Session, product_id: str) -> Product:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError(f"Product '{product_id}' not found")
        return product

    @staticmethod
    def get_product_by_code(db: Session, code: str) -> Product:
        """Scanner lookup: short_id, barcode, then part code"""
        product = CatalogIndex(db.query(Product).all()).resolve_code(code)
        if not product:
            raise NotFoundError(f"No product for code '{code}'")
        return product

    @staticmethod
    def find_by_name(db: Session, name: str) -> Optional[Product]:
        """Case-insensitive exact name match"""
        return CatalogIndex(db.query(Product).all()).by_name(name)

    @staticmethod
    def find_by_part_code(db: Session, part_code: str) -> Optional[Product]:
        """Case-insensitive exact part code match"""
        return CatalogIndex(db.query(Product).all()).by_part_code(part_code)

    @staticmethod
    def check_unique(db: Session, name: Optional[str], part_code: Optional[str], product_id: Optional[str] = None) -> None:
        """Names and part codes identify a product in lookups; neither may repeat"""
        if name:
            other = ProductService.find_by_name(db, name)
            if other is not None and other.id != product_id:
                raise ValidationError(f"A product named '{name}' already exists")
        if part_code:
            other = ProductService.find_by_part_code(db, part_code)
            if other is not None and other.id != product_id:
                raise ValidationError(f"Part code '{part_code}' is already used by '{other.product_name}'")

    @staticmethod
    def generate_short_id(db: Session, taken: Optional[set] = None) -> str:
        """Random unused 6-digit numeric code"""
        taken = set(taken or ())
        taken.update(
            s for (s,) in db.query(Product.short_id).filter(Product.short_id.isnot(None)).all()
        )
        while True:
            candidate = str(random.randint(100000, 999999))
            if candidate not in taken:
                return candidate

    @staticmethod
    def build_product(product_data: ProductCreate, short_id: str) -> Product:
        """New Product row; stock starts at the given initial stock without a ledger entry"""
        name = (product_data.product_name or "").strip()
        if not name:
            raise ValidationError("Product name is required")
        part_code = (product_data.part_code or "").strip() or None
        barcode = (product_data.barcode or "").strip() or part_code
        min_stock = product_data.min_stock_level
        if min_stock is None:
            min_stock = settings.DEFAULT_MIN_STOCK_LEVEL

        product = Product(
            product_name=name,
            category=product_data.category or settings.DEFAULT_CATEGORY,
            unit=product_data.unit or settings.DEFAULT_UNIT,
            min_stock_level=to_decimal(min_stock),
            part_code=part_code,
            location=(product_data.location or "").strip() or None,
            material=(product_data.material or "").strip() or None,
            barcode=barcode,
            short_id=short_id,
            opening_stock=to_decimal(product_data.initial_stock),
        )
        LedgerService.set_stock(product, product_data.initial_stock)
        return product

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        """Create new product"""
        ProductService.check_unique(
            db, (product_data.product_name or "").strip(), (product_data.part_code or "").strip()
        )

        product = ProductService.build_product(product_data, ProductService.generate_short_id(db))
        db.add(product)
        db.commit()
        db.refresh(product)
        logger.info("Created product %s (stock %s)", product.product_name, product.current_stock)
        return product

    @staticmethod
    def update_product(db: Session, product_id: str, product_data: ProductUpdate) -> Product:
        """Update non-stock fields"""
        product = ProductService.get_product_by_id(db, product_id)

        changes = product_data.model_dump(exclude_unset=True)
        changes.pop("current_stock", None)
        if changes.get("min_stock_level", 0) is None:
            del changes["min_stock_level"]
        if "product_name" in changes:
            name = (changes["product_name"] or "").strip()
            if not name:
                raise ValidationError("Product name is required")
            ProductService.check_unique(db, name, None, product.id)
            changes["product_name"] = name
        if "part_code" in changes:
            part_code = (changes["part_code"] or "").strip() or None
            ProductService.check_unique(db, None, part_code, product.id)
            changes["part_code"] = part_code

        for field, value in changes.items():
            setattr(product, field, value)

        if "min_stock_level" in changes:
            LedgerService.set_stock(product, product.current_stock)

        db.commit()
        db.refresh(product)
        return product

    @staticmethod
    def delete_product(db: Session, product_id: str) -> None:
        """Delete the product together with its transactions"""
        product = ProductService.get_product_by_id(db, product_id)
        name = product.product_name
        db.delete(product)
        db.commit()
        logger.info("Deleted product %s and its transactions", name)
