"""Integration tests for the JSON store and its unit of work."""

import json
import multiprocessing
import sys
import threading
from datetime import date, datetime, timezone

import pytest

from rms.application.confirm_reservation import ConfirmReservationHandler
from rms.application.create_reservation import CreateReservationHandler
from rms.application.dto import ReservationLineSpec
from rms.application.set_stock import SetStockHandler
from rms.application.show_reservation import ShowReservationHandler
from rms.domain.exceptions import InsufficientStockError, StorageError
from rms.domain.model.status import ReservationStatus
from rms.infrastructure.persistence.json_store import JsonStore

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup(tmp_path, dress_quantity: int = 3, lock_timeout: float = 10.0):
    store = JsonStore(tmp_path / "rms.json", lock_timeout=lock_timeout)
    with store.unit_of_work() as uow:
        uow.shops.save("shop-1", "Plateau")
        uow.commit()
    SetStockHandler(store.unit_of_work).handle(
        "dress", "Dress", "shop-1", dress_quantity, global_quantity=10
    )
    return store


def _create(store, quantity: int = 1) -> int:
    handler = CreateReservationHandler(store.unit_of_work, clock=lambda: NOW)
    result = handler.handle("client-7", "shop-1", [ReservationLineSpec("dress", quantity)],
                            date(2026, 3, 10), 10000, 3000, 7000, "alice")
    return result.reservation.id


def _dress(store):
    with store.unit_of_work() as uow:
        return uow.stock.read_quantities("dress", "shop-1")


# Each worker opens its own JsonStore, like a separate CLI invocation.

def _confirm_in_process(path, rid, barrier, results):
    handler = ConfirmReservationHandler(JsonStore(path).unit_of_work, clock=lambda: NOW)
    barrier.wait()
    try:
        handler.handle(rid, actor=f"clerk-{rid}")
        results.put((rid, "confirmed"))
    except InsufficientStockError:
        results.put((rid, "short"))


def _create_in_process(path, client_id, barrier, results):
    handler = CreateReservationHandler(JsonStore(path).unit_of_work, clock=lambda: NOW)
    barrier.wait()
    result = handler.handle(client_id, "shop-1", [ReservationLineSpec("dress", 1)],
                            date(2026, 3, 10), 10000, 3000, 7000, "alice")
    results.put((client_id, result.reservation.id))


def _run_processes(target, args_list):
    ctx = multiprocessing.get_context("fork")
    barrier = ctx.Barrier(len(args_list))
    results = ctx.Queue()
    procs = [ctx.Process(target=target, args=(*args, barrier, results)) for args in args_list]
    for p in procs:
        p.start()
    collected = [results.get(timeout=30) for _ in procs]
    for p in procs:
        p.join(timeout=30)
        assert p.exitcode == 0
    return collected


class TestJsonStoreRoundTrip:

    def test_new_store_file_is_created(self, tmp_path):
        JsonStore(tmp_path / "nested" / "rms.json")
        doc = json.loads((tmp_path / "nested" / "rms.json").read_text())
        assert doc == {"reservations": [], "status_history": [], "items": [], "shops": []}

    def test_reservation_survives_reload(self, tmp_path):
        store = _setup(tmp_path)
        rid = _create(store, quantity=2)
        ConfirmReservationHandler(store.unit_of_work, clock=lambda: NOW).handle(
            rid, actor="bob", note="paid"
        )

        reopened = JsonStore(tmp_path / "rms.json")
        dto = ShowReservationHandler(reopened.unit_of_work).handle(rid)
        assert dto.status == "confirmed"
        assert dto.confirmed_by == "bob"
        assert dto.items[0].quantity == 2
        assert dto.history[0].reason == "paid"
        assert dto.created_at == "2026-03-01 09:00 UTC"

        unit = _dress(reopened)
        assert (unit.shop_quantity, unit.global_quantity) == (1, 8)

    def test_ids_assigned_on_commit(self, tmp_path):
        store = _setup(tmp_path)
        assert [_create(store), _create(store), _create(store)] == [1, 2, 3]

    def test_uncommitted_work_is_discarded(self, tmp_path):
        store = _setup(tmp_path)
        with store.unit_of_work() as uow:
            uow.stock.deduct("dress", "shop-1", 2)
            uow.shops.save("shop-2", "Almadies")
            # no commit

        assert _dress(store).shop_quantity == 3
        with store.unit_of_work() as uow:
            assert uow.shops.get_name("shop-2") is None

    def test_staged_writes_visible_inside_the_unit(self, tmp_path):
        store = _setup(tmp_path)
        with store.unit_of_work() as uow:
            uow.stock.deduct("dress", "shop-1", 1)
            assert uow.stock.read_quantities("dress", "shop-1").shop_quantity == 2

    def test_unreadable_store_raises_storage_error(self, tmp_path):
        store = _setup(tmp_path)
        (tmp_path / "rms.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="Cannot read store"):
            with store.unit_of_work() as uow:
                uow.shops.get_name("shop-1")


class TestJsonStoreLocking:

    def test_lock_is_released_after_rollback(self, tmp_path):
        store = _setup(tmp_path, lock_timeout=0.5)
        with store.unit_of_work() as uow:
            uow.stock.lock_for_update("dress", "shop-1")
        with store.unit_of_work() as uow:
            assert uow.stock.lock_for_update("dress", "shop-1") is not None

    def test_lock_wait_times_out(self, tmp_path):
        store = _setup(tmp_path, lock_timeout=0.1)
        holder = store.unit_of_work()
        holder.stock.lock_for_update("dress", "shop-1")
        try:
            with pytest.raises(StorageError, match="Timed out"):
                with store.unit_of_work() as uow:
                    uow.stock.lock_for_update("dress", "shop-1")
        finally:
            holder.rollback()

    def test_concurrent_confirmations_never_oversell(self, tmp_path):
        store = _setup(tmp_path, dress_quantity=3)
        reservation_ids = [_create(store) for _ in range(6)]
        handler = ConfirmReservationHandler(store.unit_of_work, clock=lambda: NOW)

        barrier = threading.Barrier(len(reservation_ids))
        outcomes: dict[int, str] = {}

        def confirm(rid: int) -> None:
            barrier.wait()
            try:
                handler.handle(rid, actor=f"clerk-{rid}")
                outcomes[rid] = "confirmed"
            except InsufficientStockError:
                outcomes[rid] = "short"

        threads = [threading.Thread(target=confirm, args=(rid,)) for rid in reservation_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes.values()) == ["confirmed"] * 3 + ["short"] * 3
        unit = _dress(store)
        assert (unit.shop_quantity, unit.global_quantity) == (0, 7)

        with store.unit_of_work() as uow:
            statuses = [uow.reservations.get_by_id(rid).status for rid in reservation_ids]
        assert statuses.count(ReservationStatus.CONFIRMED) == 3
        assert statuses.count(ReservationStatus.PENDING) == 3

    def test_same_reservation_confirmed_once(self, tmp_path):
        store = _setup(tmp_path, dress_quantity=3)
        rid = _create(store)
        handler = ConfirmReservationHandler(store.unit_of_work, clock=lambda: NOW)

        barrier = threading.Barrier(2)
        errors: list[Exception] = []

        def confirm(actor: str) -> None:
            barrier.wait()
            try:
                handler.handle(rid, actor=actor)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=confirm, args=(a,)) for a in ("bob", "carol")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 1
        assert "cannot confirm reservation in status confirmed" in str(errors[0])
        assert _dress(store).shop_quantity == 2
        with store.unit_of_work() as uow:
            assert len(uow.history.list_for_reservation(rid)) == 1


@pytest.mark.skipif(sys.platform == "win32", reason="needs fork and flock")
class TestJsonStoreAcrossProcesses:

    def test_competing_confirmations_never_oversell(self, tmp_path):
        store = _setup(tmp_path, dress_quantity=3)
        first, second = _create(store, quantity=2), _create(store, quantity=2)

        outcomes = dict(_run_processes(
            _confirm_in_process,
            [(tmp_path / "rms.json", first), (tmp_path / "rms.json", second)],
        ))

        assert sorted(outcomes.values()) == ["confirmed", "short"]
        unit = _dress(JsonStore(tmp_path / "rms.json"))
        assert (unit.shop_quantity, unit.global_quantity) == (1, 8)

    def test_concurrent_creations_are_all_kept(self, tmp_path):
        _setup(tmp_path)
        clients = [f"client-{n}" for n in range(4)]

        created = dict(_run_processes(
            _create_in_process,
            [(tmp_path / "rms.json", client) for client in clients],
        ))

        assert sorted(created.values()) == [1, 2, 3, 4]
        with JsonStore(tmp_path / "rms.json").unit_of_work() as uow:
            for client, rid in created.items():
                assert uow.reservations.get_by_id(rid).client_id == client
