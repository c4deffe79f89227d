"""Order creation, catalog auto-fill and status transitions."""

import pytest

from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import OrderHeader, OrderItem, PickingSession
from depopro.schemas.order import OrderCreate
from depopro.services import OrderService, PickingService, ShortageService


def test_create_order_autofills_from_catalog(db_session, make_product):
    make_product("Rulman 6204", stock=5, part_code="R-6204", unit="Adet", location="B1-06-06")
    make_product("Hortum", stock=1, part_code="H-1", unit="Metre", location="C2-01")

    order = OrderService.create_order(db_session, OrderCreate(name="Montaj Hatti", rows=[
        {"Parça Kodu": "R-6204", "Miktar": 8, "Grup": "Ön Montaj"},
        {"Urun": "hortum", "Adet": "2", "Reyon": "X9"},
        {"Kod": "ZZ-1", "Qty": 1},
        {"Aciklama": "Kalem yok"},
    ]))

    assert order.status == "PENDING"
    assert [i.position for i in order.items] == [0, 1, 2]
    rulman, hortum, unknown = order.items
    assert (rulman.product_name, rulman.location, rulman.group) == ("Rulman 6204", "B1-06-06", "Ön Montaj")
    assert (hortum.part_code, hortum.unit, hortum.location) == ("H-1", "Metre", "C2-01")
    assert (unknown.product_name, unknown.part_code, unknown.unit) == ("ZZ-1", "ZZ-1", "Adet")
    assert all(i.picked_qty == 0 for i in order.items)


def test_unknown_product_name_fallback(db_session):
    order = OrderService.create_order(db_session, OrderCreate(name="X", rows=[{"Miktar": 3}]))
    assert order.items[0].product_name == "Unknown product"


def test_create_order_requires_name_and_items(db_session):
    with pytest.raises(ValidationError):
        OrderService.create_order(db_session, OrderCreate(name=" ", rows=[{"Miktar": 1}]))
    with pytest.raises(ValidationError):
        OrderService.create_order(db_session, OrderCreate(name="Bos", rows=[{"Urun": "A"}]))


def test_complete_is_terminal(db_session):
    order = OrderService.create_order(db_session, OrderCreate(name="S1", rows=[{"Urun": "A", "Miktar": 1}]))

    completed = OrderService.complete_order(db_session, order.id)
    assert completed.status == "COMPLETED"
    assert completed.completed_at is not None

    with pytest.raises(ValidationError):
        OrderService.complete_order(db_session, order.id)


def test_order_summary_counts_short_items(db_session, make_product):
    make_product("A", stock=5)
    make_product("B", stock=50)
    OrderService.create_order(db_session, OrderCreate(name="S1", rows=[
        {"Urun": "A", "Miktar": 8},
        {"Urun": "B", "Miktar": 8},
        {"Urun": "C", "Miktar": 1},
    ]))

    [row] = OrderService.get_orders_with_summary(db_session)
    assert row["missing_count"] == 2

    report = ShortageService.order_report(db_session, row["order"])
    assert [d["missing"] for d in report["details"]] == [3, 0, 1]


def test_aggregate_ignores_completed_orders(db_session, make_product):
    make_product("Vida", stock=1, part_code="V-1")
    first = OrderService.create_order(db_session, OrderCreate(name="S1", rows=[{"ParcaKodu": "V-1", "Miktar": 4}]))
    OrderService.create_order(db_session, OrderCreate(name="S2", rows=[{"ParcaKodu": "V-1", "Miktar": 4}]))
    OrderService.create_order(db_session, OrderCreate(name="S3", rows=[{"ParcaKodu": "V-1", "Miktar": 4}]))
    OrderService.complete_order(db_session, first.id)

    [entry] = ShortageService.aggregate(db_session)
    assert entry["total_required"] == 8
    assert entry["missing"] == 7
    assert sorted(c["order_name"] for c in entry["contributions"]) == ["S2", "S3"]


def test_delete_order_removes_items_and_sessions(db_session, make_product):
    make_product("A", stock=5, part_code="A-1")
    order = OrderService.create_order(db_session, OrderCreate(name="S1", rows=[{"ParcaKodu": "A-1", "Miktar": 1}]))
    PickingService.start(db_session, order.id)

    OrderService.delete_order(db_session, order.id)

    assert db_session.query(OrderHeader).count() == 0
    assert db_session.query(OrderItem).count() == 0
    assert db_session.query(PickingSession).count() == 0
    with pytest.raises(NotFoundError):
        OrderService.get_order(db_session, order.id)
