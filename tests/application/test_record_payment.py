"""Integration tests for the RecordPayment use case."""

from datetime import date, datetime, timezone

import pytest

from rms.application.cancel_reservation import CancelReservationHandler
from rms.application.create_reservation import CreateReservationHandler
from rms.application.dto import ReservationLineSpec
from rms.application.record_payment import RecordPaymentHandler
from rms.domain.exceptions import EntityNotFoundError, InconsistentAmountsError, InvalidTransitionError
from tests.fakes import FakeDatabase

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup():
    db = FakeDatabase()
    db.add_shop("shop-1", "Plateau")
    db.add_item("dress", "Dress", {"shop-1": 3}, global_quantity=10)
    create = CreateReservationHandler(db.unit_of_work, clock=lambda: NOW)
    result = create.handle("client-7", "shop-1", [ReservationLineSpec("dress", 1)],
                           date(2026, 3, 10), 10000, 3000, 7000, "alice")
    return db, result.reservation.id, RecordPaymentHandler(db.unit_of_work)


class TestRecordPayment:

    def test_payment_moves_remaining_to_deposit(self):
        db, rid, pay = _setup()
        dto = pay.handle(rid, amount=4000, actor="bob")

        assert (dto.total, dto.deposit, dto.remaining) == (10000, 7000, 3000)
        assert db.reservations[rid].remaining == 3000

    def test_overpayment_rejected(self):
        db, rid, pay = _setup()
        with pytest.raises(InconsistentAmountsError, match="exceeds remaining"):
            pay.handle(rid, amount=7500, actor="bob")
        assert db.reservations[rid].remaining == 7000

    def test_payment_on_cancelled_rejected(self):
        db, rid, pay = _setup()
        CancelReservationHandler(db.unit_of_work, clock=lambda: NOW).handle(rid, actor="bob")
        with pytest.raises(InvalidTransitionError, match="cannot record a payment"):
            pay.handle(rid, amount=100, actor="bob")

    def test_nonexistent_reservation_rejected(self):
        _, _, pay = _setup()
        with pytest.raises(EntityNotFoundError):
            pay.handle(12, amount=100, actor="bob")
