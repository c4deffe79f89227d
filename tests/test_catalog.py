"""Catalog rules and product service."""

import pytest

from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import StockTransaction
from depopro.schemas.product import ProductUpdate
from depopro.services import LedgerService, ProductService
from depopro.services.catalog import location_sort_key, natural_key, normalize


def test_natural_key_orders_numbers_numerically():
    locations = ["A10", "A2", "B1-06-10", "a1", "B1-06-06"]
    assert sorted(locations, key=natural_key) == ["a1", "A2", "A10", "B1-06-06", "B1-06-10"]


def test_location_sort_key_puts_blank_last():
    assert sorted(["C1", None, " ", "A3"], key=location_sort_key) == ["A3", "C1", None, " "]


def test_normalize():
    assert normalize("  Rulman 6204 ") == normalize("RULMAN 6204")
    assert normalize(None) == ""


def test_create_product_defaults(db_session, make_product):
    product = make_product("Rulman", stock=7, part_code="R-1")

    assert product.current_stock == product.opening_stock == 7
    assert product.barcode == "R-1"
    assert product.unit == "Adet"
    assert product.category == "Yedek Parça"
    assert product.min_stock_level == 10
    assert len(product.short_id) == 6 and product.short_id.isdigit()
    assert product.critical_since is not None
    assert db_session.query(StockTransaction).count() == 0


def test_duplicate_name_rejected(make_product):
    make_product("Conta")
    with pytest.raises(ValidationError):
        make_product(" CONTA ")


def test_duplicate_part_code_rejected(db_session, make_product):
    make_product("Rulman 6204", part_code="R-6204")
    with pytest.raises(ValidationError, match="Part code"):
        make_product("Rulman Yeni", part_code=" r-6204 ")
    assert len(ProductService.get_products(db_session)) == 1


def test_update_cannot_take_another_part_code(db_session, make_product):
    make_product("Rulman", part_code="R-1")
    hortum = make_product("Hortum", part_code="H-1")

    with pytest.raises(ValidationError):
        ProductService.update_product(db_session, hortum.id, ProductUpdate(part_code="R-1"))

    # Keeping its own code is not a conflict
    updated = ProductService.update_product(db_session, hortum.id, ProductUpdate(part_code="H-1", location="A1"))
    assert (updated.part_code, updated.location) == ("H-1", "A1")


def test_name_required(make_product):
    with pytest.raises(ValidationError):
        make_product("   ")


def test_update_ignores_stock(db_session, make_product):
    product = make_product("Hortum", stock=3)
    payload = ProductUpdate.model_validate({"location": "B2-01", "current_stock": 999})
    updated = ProductService.update_product(db_session, product.id, payload)
    assert updated.location == "B2-01"
    assert updated.current_stock == 3


def test_update_min_level_refreshes_critical_flag(db_session, make_product):
    product = make_product("Vida", stock=20)
    assert product.critical_since is None

    updated = ProductService.update_product(db_session, product.id, ProductUpdate(min_stock_level=25))
    assert updated.is_critical
    assert updated.critical_since is not None


def test_delete_product_removes_transactions(db_session, make_product):
    product = make_product("Filtre", stock=1)
    LedgerService.create_transaction(db_session, product.id, "IN", 2)

    ProductService.delete_product(db_session, product.id)

    assert db_session.query(StockTransaction).count() == 0
    with pytest.raises(NotFoundError):
        ProductService.get_product_by_id(db_session, product.id)


def test_search_sorted_by_location(db_session, make_product):
    make_product("Kayis A", location="A10")
    make_product("Kayis B", location="A2")
    make_product("Kayis C")
    make_product("Baska")

    names = [p.product_name for p in ProductService.get_products(db_session, "kayis")]
    assert names == ["Kayis B", "Kayis A", "Kayis C"]


def test_lookup_by_code_precedence(db_session, make_product):
    product = make_product("Rulman", part_code="R-1", barcode="8690001")

    assert ProductService.get_product_by_code(db_session, product.short_id).id == product.id
    assert ProductService.get_product_by_code(db_session, "8690001").id == product.id
    assert ProductService.get_product_by_code(db_session, "R-1").id == product.id
    with pytest.raises(NotFoundError):
        ProductService.get_product_by_code(db_session, "nope")
