"""Stock ledger: create / edit / delete and conservation."""

import pytest
from decimal import Decimal

from depopro.core.errors import NotFoundError, ValidationError
from depopro.models import StockTransaction
from depopro.services import LedgerService


def signed_sum(db_session, product_id):
    rows = db_session.query(StockTransaction).filter(StockTransaction.product_id == product_id).all()
    return sum(t.signed_quantity for t in rows)


class TestCreate:
    def test_in_and_out_update_stock_and_snapshots(self, db_session, make_product):
        product = make_product("Rulman 6204", stock=10)

        t_in = LedgerService.create_transaction(db_session, product.id, "IN", 5, "Tedarik")
        assert (t_in.previous_stock, t_in.new_stock) == (10, 15)

        t_out = LedgerService.create_transaction(db_session, product.id, "OUT", 3)
        assert (t_out.previous_stock, t_out.new_stock) == (15, 12)

        db_session.refresh(product)
        assert product.current_stock == 12
        assert t_out.seq > t_in.seq

    def test_negative_stock_is_allowed(self, db_session, make_product):
        product = make_product("Conta", stock=2)
        t = LedgerService.create_transaction(db_session, product.id, "OUT", 5)

        db_session.refresh(product)
        assert t.new_stock == -3
        assert product.current_stock == -3
        assert product.is_negative
        assert not product.is_critical

    def test_unknown_product_is_rejected_without_writing(self, db_session):
        with pytest.raises(ValidationError):
            LedgerService.create_transaction(db_session, "missing", "IN", 1)
        assert db_session.query(StockTransaction).count() == 0

    @pytest.mark.parametrize("quantity", [0, -4])
    def test_non_positive_quantity_is_rejected(self, db_session, make_product, quantity):
        product = make_product("Vida M8", stock=7)
        with pytest.raises(ValidationError):
            LedgerService.create_transaction(db_session, product.id, "IN", quantity)
        db_session.refresh(product)
        assert product.current_stock == 7

    def test_unknown_type_is_rejected(self, db_session, make_product):
        product = make_product("Vida M10")
        with pytest.raises(ValidationError):
            LedgerService.create_transaction(db_session, product.id, "MOVE", 1)

    def test_created_by_is_recorded(self, db_session, make_product):
        product = make_product("Somun")
        t = LedgerService.create_transaction(db_session, product.id, "IN", 1, created_by="Ayse")
        assert t.created_by == "Ayse"
        assert t.product_name == "Somun"


class TestEdit:
    def test_same_product_quantity_change(self, db_session, make_product):
        product = make_product("Kayis", stock=10)
        t = LedgerService.create_transaction(db_session, product.id, "IN", 5)

        edited = LedgerService.edit_transaction(db_session, t.id, product.id, "IN", 8)

        db_session.refresh(product)
        assert product.current_stock == 18
        assert (edited.previous_stock, edited.new_stock) == (10, 18)

    def test_same_product_type_flip(self, db_session, make_product):
        product = make_product("Filtre", stock=10)
        t = LedgerService.create_transaction(db_session, product.id, "IN", 4)

        LedgerService.edit_transaction(db_session, t.id, product.id, "OUT", 4)

        db_session.refresh(product)
        assert product.current_stock == 6

    def test_no_op_edit_round_trip(self, db_session, make_product):
        product = make_product("Hortum", stock=20)
        t = LedgerService.create_transaction(db_session, product.id, "OUT", 6)
        db_session.refresh(product)
        before = product.current_stock

        LedgerService.edit_transaction(db_session, t.id, product.id, "OUT", 9)
        LedgerService.edit_transaction(db_session, t.id, product.id, "OUT", 6)

        db_session.refresh(product)
        assert product.current_stock == before

    def test_cross_product_move(self, db_session, make_product):
        a = make_product("Urun A", stock=15)
        b = make_product("Urun B", stock=20)
        t = LedgerService.create_transaction(db_session, a.id, "OUT", 5)
        db_session.refresh(a)
        assert a.current_stock == 10

        edited = LedgerService.edit_transaction(db_session, t.id, b.id, "OUT", 5)

        db_session.refresh(a)
        db_session.refresh(b)
        assert a.current_stock == 15
        assert b.current_stock == 15
        assert edited.product_id == b.id
        assert edited.product_name == "Urun B"
        # Best-effort snapshot taken from B at edit time
        assert (edited.previous_stock, edited.new_stock) == (20, 15)

    def test_unknown_transaction(self, db_session, make_product):
        product = make_product("Pim")
        with pytest.raises(NotFoundError):
            LedgerService.edit_transaction(db_session, "nope", product.id, "IN", 1)

    def test_unknown_target_product_leaves_state(self, db_session, make_product):
        product = make_product("Yay", stock=3)
        t = LedgerService.create_transaction(db_session, product.id, "IN", 2)

        with pytest.raises(NotFoundError):
            LedgerService.edit_transaction(db_session, t.id, "nope", "IN", 1)

        db_session.refresh(product)
        db_session.refresh(t)
        assert product.current_stock == 5
        assert t.quantity == 2


class TestDelete:
    def test_delete_reverts_effect(self, db_session, make_product):
        product = make_product("Zincir", stock=10)
        t_in = LedgerService.create_transaction(db_session, product.id, "IN", 4)
        t_out = LedgerService.create_transaction(db_session, product.id, "OUT", 6)

        LedgerService.delete_transaction(db_session, t_out.id)
        db_session.refresh(product)
        assert product.current_stock == 14

        LedgerService.delete_transaction(db_session, t_in.id)
        db_session.refresh(product)
        assert product.current_stock == 10
        assert db_session.query(StockTransaction).count() == 0

    def test_delete_then_recreate_restores_stock(self, db_session, make_product):
        product = make_product("Disli", stock=8)
        t = LedgerService.create_transaction(db_session, product.id, "OUT", 3)
        db_session.refresh(product)
        before = product.current_stock

        LedgerService.delete_transaction(db_session, t.id)
        LedgerService.create_transaction(db_session, product.id, "OUT", 3)

        db_session.refresh(product)
        assert product.current_stock == before

    def test_delete_does_not_rewrite_other_snapshots(self, db_session, make_product):
        product = make_product("Mil", stock=0)
        first = LedgerService.create_transaction(db_session, product.id, "IN", 5)
        second = LedgerService.create_transaction(db_session, product.id, "IN", 5)

        LedgerService.delete_transaction(db_session, first.id)

        db_session.refresh(second)
        assert (second.previous_stock, second.new_stock) == (5, 10)

    def test_unknown_transaction(self, db_session):
        with pytest.raises(NotFoundError):
            LedgerService.delete_transaction(db_session, "nope")


def test_conservation_after_mixed_operations(db_session, make_product):
    a = make_product("Piston", stock=12)
    b = make_product("Segman", stock=4)

    t1 = LedgerService.create_transaction(db_session, a.id, "IN", 7)
    t2 = LedgerService.create_transaction(db_session, a.id, "OUT", 15)
    t3 = LedgerService.create_transaction(db_session, b.id, "IN", 2)
    LedgerService.edit_transaction(db_session, t1.id, b.id, "OUT", 3)
    LedgerService.edit_transaction(db_session, t2.id, a.id, "OUT", 1)
    LedgerService.delete_transaction(db_session, t3.id)
    LedgerService.create_transaction(db_session, b.id, "OUT", 9)

    for product in (a, b):
        db_session.refresh(product)
        assert product.current_stock == product.opening_stock + signed_sum(db_session, product.id)
        audit = LedgerService.audit_product(db_session, product.id)
        assert audit["consistent"]
        assert audit["expected_stock"] == product.current_stock


def test_history_newest_first_with_filters(db_session, make_product):
    a = make_product("Kablo", stock=0)
    b = make_product("Sigorta", stock=0)
    LedgerService.create_transaction(db_session, a.id, "IN", 10, "ilk giris")
    LedgerService.create_transaction(db_session, a.id, "OUT", 2, "montaj")
    LedgerService.create_transaction(db_session, b.id, "IN", 50, "ilk giris")

    history = LedgerService.get_transactions(db_session)
    assert [t.quantity for t in history] == [50, 2, 10]

    assert [t.quantity for t in LedgerService.get_transactions(db_session, product_id=a.id)] == [2, 10]
    assert [t.quantity for t in LedgerService.get_transactions(db_session, movement_type="OUT")] == [2]
    assert [t.quantity for t in LedgerService.get_transactions(db_session, search="montaj")] == [2]
    assert [t.quantity for t in LedgerService.get_transactions(db_session, min_quantity=5, max_quantity=20)] == [10]


class TestFractionalQuantities:
    def test_metre_withdrawal(self, db_session, make_product):
        hortum = make_product("Hidrolik Hortum", stock=10, unit="Metre")

        t = LedgerService.create_transaction(db_session, hortum.id, "OUT", Decimal("2.5"))

        db_session.refresh(hortum)
        assert t.quantity == Decimal("2.5")
        assert (t.previous_stock, t.new_stock) == (Decimal("10"), Decimal("7.5"))
        assert hortum.current_stock == Decimal("7.5")

    def test_edit_and_delete_keep_conservation(self, db_session, make_product):
        yag = make_product("Hidrolik Yag", stock=Decimal("20.5"), unit="Litre")
        t1 = LedgerService.create_transaction(db_session, yag.id, "OUT", "0.75")
        t2 = LedgerService.create_transaction(db_session, yag.id, "IN", 1.125)

        LedgerService.edit_transaction(db_session, t1.id, yag.id, "OUT", Decimal("1.25"))
        db_session.refresh(yag)
        assert yag.current_stock == Decimal("20.375")

        LedgerService.delete_transaction(db_session, t2.id)
        db_session.refresh(yag)
        assert yag.current_stock == Decimal("19.25")
        assert LedgerService.audit_product(db_session, yag.id)["consistent"]

    def test_quantity_below_storage_precision_is_rejected(self, db_session, make_product):
        product = make_product("Gres", stock=1, unit="Kg")
        with pytest.raises(ValidationError):
            LedgerService.create_transaction(db_session, product.id, "OUT", Decimal("0.0004"))
