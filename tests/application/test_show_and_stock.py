"""Integration tests for the query use cases and stock administration."""

from datetime import date, datetime, timezone

import pytest

from rms.application.confirm_reservation import ConfirmReservationHandler
from rms.application.create_reservation import CreateReservationHandler
from rms.application.dto import ReservationLineSpec
from rms.application.set_stock import SetStockHandler
from rms.application.show_reservation import ShowReservationHandler
from rms.application.show_stock import ShowStockHandler
from rms.domain.exceptions import EntityNotFoundError, ValidationError
from tests.fakes import FakeDatabase

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup():
    db = FakeDatabase()
    db.add_shop("shop-1", "Plateau")
    db.add_shop("shop-2", "Almadies")
    db.add_item("dress", "Dress", {"shop-1": 3, "shop-2": 2}, global_quantity=10)
    return db


class TestShowReservation:

    def test_show_includes_history(self):
        db = _setup()
        create = CreateReservationHandler(db.unit_of_work, clock=lambda: NOW)
        rid = create.handle("client-7", "shop-1", [ReservationLineSpec("dress", 1)],
                            date(2026, 3, 10), 10000, 3000, 7000, "alice").reservation.id
        ConfirmReservationHandler(db.unit_of_work, clock=lambda: NOW).handle(rid, actor="bob")

        dto = ShowReservationHandler(db.unit_of_work).handle(rid)

        assert dto.status == "confirmed"
        assert dto.status_label == "Confirmed"
        assert dto.pickup_date == "2026-03-10"
        assert dto.created_at == "2026-03-01 09:00 UTC"
        assert [(h.old_status, h.new_status) for h in dto.history] == [("pending", "confirmed")]

    def test_unknown_reservation_rejected(self):
        db = _setup()
        with pytest.raises(EntityNotFoundError, match="Reservation #5 not found"):
            ShowReservationHandler(db.unit_of_work).handle(5)


class TestSetStock:

    def test_update_existing_item(self):
        db = _setup()
        unit = SetStockHandler(db.unit_of_work).handle("dress", "Dress", "shop-1", 7)
        assert unit.shop_quantity == 7
        assert db.stock("dress", "shop-1") == (7, 10)

    def test_new_item_defaults_global_to_shop_quantity(self):
        db = _setup()
        SetStockHandler(db.unit_of_work).handle("hat", "Hat", "shop-2", 4)
        assert db.stock("hat", "shop-2") == (4, 4)

    def test_shop_total_cannot_exceed_global(self):
        db = _setup()
        with pytest.raises(ValidationError):
            SetStockHandler(db.unit_of_work).handle("dress", "Dress", "shop-1", 9)
        assert db.stock("dress", "shop-1") == (3, 10)

    def test_raising_global_allows_more_shop_stock(self):
        db = _setup()
        SetStockHandler(db.unit_of_work).handle("dress", "Dress", "shop-1", 9, global_quantity=15)
        assert db.stock("dress", "shop-1") == (9, 15)

    def test_negative_quantity_rejected(self):
        db = _setup()
        with pytest.raises(ValidationError, match="cannot be negative"):
            SetStockHandler(db.unit_of_work).handle("dress", "Dress", "shop-1", -1)

    def test_unknown_shop_rejected(self):
        db = _setup()
        with pytest.raises(EntityNotFoundError, match="Shop 'shop-9' not found"):
            SetStockHandler(db.unit_of_work).handle("dress", "Dress", "shop-9", 1)


class TestShowStock:

    def test_lists_every_shop(self):
        db = _setup()
        lines = ShowStockHandler(db.unit_of_work).handle()
        assert {(line.shop_id, line.shop_quantity) for line in lines} == {("shop-1", 3), ("shop-2", 2)}

    def test_filter_by_shop(self):
        db = _setup()
        lines = ShowStockHandler(db.unit_of_work).handle(shop_id="shop-2")
        assert len(lines) == 1
        assert lines[0].available == 2
