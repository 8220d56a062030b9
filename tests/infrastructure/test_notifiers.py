"""Tests for the stock alert delivery channels."""

import threading
from datetime import date, datetime, timezone

from rms.application.notifications import StockAlert, StockAlertNotifier
from rms.domain.model.reservation import Reservation, ReservationLine
from rms.domain.model.stock_deficit import StockDeficit
from rms.domain.model.value_objects import PaymentBreakdown, Quantity
from rms.infrastructure.notifiers import FanOutNotifier, JsonOutboxNotifier
from tests.fakes import FailingNotifier, RecordingNotifier


def _alert() -> StockAlert:
    reservation = Reservation.create(
        "client-7", "shop-1", [ReservationLine("dress", "Dress", Quantity(5))],
        date(2026, 3, 10), PaymentBreakdown(10000, 3000, 7000), "alice",
        has_stock_issue=True, now=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )
    reservation.id = 3
    return StockAlert.build(
        reservation, "Plateau", [StockDeficit.compute("Dress", 5, 3, "shop-1")]
    )


class TestJsonOutboxNotifier:

    def test_alerts_are_appended(self, tmp_path):
        outbox = JsonOutboxNotifier(tmp_path / "notifications.json")
        outbox.notify(_alert())
        outbox.notify(_alert())

        records = outbox.pending()
        assert len(records) == 2
        assert records[0]["type"] == "stock_alert"
        assert records[0]["reservation_id"] == 3
        assert records[0]["priority"] == "NORMAL"
        assert records[0]["deficits"][0]["item_name"] == "Dress"
        assert records[0]["message"] == (
            "Reservation #3 for client client-7 has 1 item short of stock (2 units missing)."
        )


class TestFanOutNotifier:

    def test_failing_channel_does_not_block_others(self):
        failing, recording = FailingNotifier(), RecordingNotifier()
        FanOutNotifier([failing, recording]).notify(_alert())

        assert failing.attempts == 1
        assert len(recording.alerts) == 1

    def test_is_a_notifier(self):
        assert isinstance(FanOutNotifier([]), StockAlertNotifier)


class TestJsonOutboxConcurrency:

    def test_separate_writers_lose_no_alerts(self, tmp_path):
        path = tmp_path / "notifications.json"
        writers = [JsonOutboxNotifier(path), JsonOutboxNotifier(path)]

        def send(notifier):
            for _ in range(10):
                notifier.notify(_alert())

        threads = [threading.Thread(target=send, args=(w,)) for w in writers for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(writers[0].pending()) == 40
        assert not list(tmp_path.glob("*.tmp"))
