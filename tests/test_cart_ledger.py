"""
Tests for the session cart ledger
"""

import logging

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bookheaven.errors import InvalidArgument, NotFound, StorageFailure
from bookheaven.models import Cart, CartItem
from bookheaven.services.repository import BookstoreRepository


def assert_total_consistent(cart):
    assert cart.total == sum(i.price_at_addition * i.quantity for i in cart.items)
    for item in cart.items:
        assert item.quantity >= 1
        assert item.line_total == item.price_at_addition * item.quantity


class TestGet:
    """Reading carts."""

    def test_unknown_session_is_empty_cart(self, ledger):
        cart = ledger.get("never-seen")

        assert cart.session_id == "never-seen"
        assert cart.items == []
        assert cart.total == 0

    def test_get_does_not_create_cart(self, ledger, engine):
        ledger.get("ghost")

        with Session(engine) as session:
            assert session.exec(select(Cart)).all() == []

    def test_blank_session_rejected(self, ledger):
        with pytest.raises(InvalidArgument) as exc:
            ledger.get("   ")
        assert exc.value.field == "session_id"

    def test_overlong_session_rejected(self, ledger):
        with pytest.raises(InvalidArgument):
            ledger.get("s" * 129)


class TestScenario:
    """The add / add / update / remove walk-through for one session."""

    def test_full_walkthrough(self, ledger):
        cart = ledger.add_item("s1", 10, 2)
        assert cart.total == 600

        cart = ledger.add_item("s1", 10, 1)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.total == 900

        cart = ledger.update_item_quantity("s1", 10, 1)
        assert cart.items[0].quantity == 1
        assert cart.total == 300

        cart = ledger.remove_item("s1", 10)
        assert cart.items == []
        assert cart.total == 0

    def test_total_consistent_after_every_mutation(self, ledger):
        steps = [
            lambda: ledger.add_item("mix", 1, 1),
            lambda: ledger.add_item("mix", 2, 3),
            lambda: ledger.add_item("mix", 10, 2),
            lambda: ledger.add_item("mix", 1, 4),
            lambda: ledger.update_item_quantity("mix", 2, 1),
            lambda: ledger.update_item_quantity("mix", 10, 0),
            lambda: ledger.remove_item("mix", 1),
            lambda: ledger.add_item("mix", 10, 5),
        ]
        for step in steps:
            cart = step()
            assert_total_consistent(cart)
            assert_total_consistent(ledger.get("mix"))

        final = ledger.get("mix")
        assert {i.book_id: i.quantity for i in final.items} == {2: 1, 10: 5}
        assert final.total == 800 + 1500

    def test_line_carries_book_details(self, ledger):
        cart = ledger.add_item("details", 10)

        item = cart.items[0]
        assert item.title == "Data Analysis using SQL and Excel"
        assert item.author == "Gordon S. Linoff"
        assert item.image_url == "/books/data1.jpg"
        assert item.quantity == 1


class TestPriceLock:
    """Lines keep the price from when they were first added."""

    def test_second_add_uses_original_price(self, ledger, set_price):
        ledger.add_item("lock", 1, 1)
        set_price(1, 700)

        cart = ledger.add_item("lock", 1, 1)

        assert cart.items[0].price_at_addition == 500
        assert cart.items[0].quantity == 2
        assert cart.total == 1000

    def test_quantity_update_keeps_original_price(self, ledger, set_price):
        ledger.add_item("lock", 2, 1)
        set_price(2, 100)

        cart = ledger.update_item_quantity("lock", 2, 4)

        assert cart.items[0].price_at_addition == 800
        assert cart.total == 3200

    def test_new_line_uses_current_price(self, ledger, set_price):
        set_price(10, 450)

        cart = ledger.add_item("fresh", 10, 2)

        assert cart.items[0].price_at_addition == 450
        assert cart.total == 900


class TestUpdateQuantity:
    """Setting quantities verbatim."""

    def test_zero_removes_line(self, ledger):
        ledger.add_item("zero", 1, 2)
        ledger.add_item("zero", 10, 1)

        cart = ledger.update_item_quantity("zero", 1, 0)

        assert [i.book_id for i in cart.items] == [10]
        assert cart.total == 300
        again = ledger.get("zero")
        assert [i.book_id for i in again.items] == [10]
        assert again.total == 300

    def test_negative_rejected_and_cart_unchanged(self, ledger):
        before = ledger.add_item("neg", 1, 2)

        with pytest.raises(InvalidArgument) as exc:
            ledger.update_item_quantity("neg", 1, -1)
        assert exc.value.field == "quantity"

        after = ledger.get("neg")
        assert after.items == before.items
        assert after.total == before.total == 1000

    def test_can_lower_below_previous_quantity(self, ledger):
        ledger.add_item("lower", 2, 5)

        cart = ledger.update_item_quantity("lower", 2, 2)

        assert cart.items[0].quantity == 2
        assert cart.total == 1600

    def test_missing_cart(self, ledger):
        with pytest.raises(NotFound) as exc:
            ledger.update_item_quantity("nobody", 1, 1)
        assert exc.value.entity == "cart"
        assert exc.value.id == "nobody"

    def test_missing_item(self, ledger):
        ledger.add_item("partial", 1, 1)

        with pytest.raises(NotFound) as exc:
            ledger.update_item_quantity("partial", 2, 1)
        assert exc.value.entity == "cart item"
        assert exc.value.id == 2


class TestAddItem:
    """Adding books."""

    def test_unknown_book(self, ledger, engine):
        with pytest.raises(NotFound) as exc:
            ledger.add_item("s1", 999, 1)
        assert exc.value.entity == "book"
        assert exc.value.id == 999

        with Session(engine) as session:
            assert session.exec(select(Cart)).all() == []

    def test_quantity_must_be_positive(self, ledger):
        with pytest.raises(InvalidArgument):
            ledger.add_item("s1", 1, 0)

    def test_sessions_are_independent(self, ledger):
        ledger.add_item("alice", 1, 1)
        ledger.add_item("bob", 2, 2)

        assert ledger.get("alice").total == 500
        assert ledger.get("bob").total == 1600

    def test_duplicate_adds_collapse_into_one_line(self, ledger, engine):
        for _ in range(3):
            ledger.add_item("double-click", 10, 1)

        with Session(engine) as session:
            rows = session.exec(select(CartItem)).all()
        assert len(rows) == 1
        assert rows[0].quantity == 3


class TestRemoveAndClear:
    """Removing lines and emptying carts."""

    def test_remove_missing_item(self, ledger):
        ledger.add_item("rm", 1, 1)

        with pytest.raises(NotFound) as exc:
            ledger.remove_item("rm", 10)
        assert exc.value.entity == "cart item"

    def test_remove_missing_cart(self, ledger):
        with pytest.raises(NotFound) as exc:
            ledger.remove_item("nobody", 10)
        assert exc.value.entity == "cart"

    def test_clear(self, ledger):
        ledger.add_item("full", 1, 1)
        ledger.add_item("full", 2, 1)

        cart = ledger.clear("full")

        assert cart.items == []
        assert cart.total == 0
        assert ledger.get("full").total == 0

    def test_clear_unknown_session(self, ledger):
        with pytest.raises(NotFound):
            ledger.clear("nobody")


class TestConflicts:
    """Retrying transactions that lose a race."""

    def test_conflict_is_retried(self, ledger, monkeypatch):
        original = BookstoreRepository.upsert_cart
        calls = {"count": 0}

        def flaky_upsert(self, session_id, total=0):
            calls["count"] += 1
            if calls["count"] == 1:
                raise IntegrityError("INSERT INTO cart", {}, Exception("duplicate session_id"))
            return original(self, session_id, total)

        monkeypatch.setattr(BookstoreRepository, "upsert_cart", flaky_upsert)

        cart = ledger.add_item("race", 10, 2)

        assert calls["count"] == 2
        assert cart.total == 600
        assert len(cart.items) == 1

    def test_persistent_conflict_fails_cleanly(self, ledger, monkeypatch, engine):
        calls = {"count": 0}

        def always_conflicts(self, session_id, total=0):
            calls["count"] += 1
            raise IntegrityError("INSERT INTO cart", {}, Exception("duplicate session_id"))

        monkeypatch.setattr(BookstoreRepository, "upsert_cart", always_conflicts)

        with pytest.raises(StorageFailure):
            ledger.add_item("race", 10, 1)

        assert calls["count"] == 3
        with Session(engine) as session:
            assert session.exec(select(CartItem)).all() == []

    def test_exhausted_retries_log_traceback(self, ledger, monkeypatch, caplog):
        def always_conflicts(self, session_id, total=0):
            raise IntegrityError("INSERT INTO cart", {}, Exception("duplicate session_id"))

        monkeypatch.setattr(BookstoreRepository, "upsert_cart", always_conflicts)

        with caplog.at_level(logging.ERROR, logger="bookheaven.services.transaction"):
            with pytest.raises(StorageFailure):
                ledger.add_item("race", 10, 1)

        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failures) == 1
        assert failures[0].exc_info is not None

    def test_failed_mutation_rolls_back(self, ledger, monkeypatch):
        ledger.add_item("rollback", 1, 1)

        def broken_total(self, cart):
            raise IntegrityError("UPDATE cart", {}, Exception("boom"))

        monkeypatch.setattr(BookstoreRepository, "refresh_cart_total", broken_total)

        with pytest.raises(StorageFailure):
            ledger.add_item("rollback", 1, 5)

        monkeypatch.undo()
        cart = ledger.get("rollback")
        assert cart.items[0].quantity == 1
        assert cart.total == 500


class TestLimits:
    """Quantity ceilings and stored timestamps."""

    def test_add_beyond_line_limit_rejected(self, ledger):
        ledger.add_item("bulk", 1, 998)

        with pytest.raises(InvalidArgument) as exc:
            ledger.add_item("bulk", 1, 2)
        assert exc.value.field == "quantity"

        assert ledger.get("bulk").items[0].quantity == 998

    def test_update_beyond_line_limit_rejected(self, ledger):
        ledger.add_item("bulk", 2, 1)

        with pytest.raises(InvalidArgument):
            ledger.update_item_quantity("bulk", 2, 1000)

        assert ledger.get("bulk").total == 800

    def test_writes_stamp_timezone_aware_times(self, ledger):
        cart = ledger.add_item("stamped", 10, 1)

        assert cart.created_at.tzinfo is not None
        assert cart.updated_at.tzinfo is not None
        assert ledger.get("stamped").total == 300

    def test_timestamp_columns_store_time_zone(self):
        for column in (
            Cart.__table__.c.created_at,
            Cart.__table__.c.updated_at,
            CartItem.__table__.c.created_at,
        ):
            assert column.type.timezone is True
