"""Unit tests for StockReservationService.

Covers:
- Availability checks (merged lines, unknown products).
- All-or-nothing reservation with compensation of applied lines.
- Idempotent release.
- No overselling under concurrent reservations.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.catalog.repositories.interfaces import IStockStore
from modules.core.models import OutboxEvent
from modules.inventory.constants import ReservationStatus
from modules.inventory.dtos import StockRequestDTO
from modules.inventory.exceptions import InsufficientStock, ReservationNotFound
from modules.inventory.models import ReservationLine, StockReservation
from modules.inventory.services import StockReservationService, merge_lines

pytestmark = pytest.mark.unit


def _req(product, quantity, size=""):
    return StockRequestDTO(product_id=product.id, size=size, quantity=quantity)


# ---------------------------------------------------------------------------
# merge_lines
# ---------------------------------------------------------------------------


class TestMergeLines:
    def test_duplicates_are_summed(self):
        pid = uuid4()
        lines = merge_lines(
            [
                StockRequestDTO(product_id=pid, size="m", quantity=2),
                StockRequestDTO(product_id=pid, size="M", quantity=3),
            ]
        )
        assert lines == [(pid, "M", 5)]

    def test_lines_are_sorted_by_product_then_size(self):
        a, b = sorted([uuid4(), uuid4()], key=str)
        lines = merge_lines(
            [
                StockRequestDTO(product_id=b, size="S", quantity=1),
                StockRequestDTO(product_id=a, size="XL", quantity=1),
                StockRequestDTO(product_id=a, size="L", quantity=1),
            ]
        )
        assert [(p, s) for p, s, _ in lines] == [(a, "L"), (a, "XL"), (b, "S")]


# ---------------------------------------------------------------------------
# check_availability
# ---------------------------------------------------------------------------


class TestCheckAvailability:
    def test_available_when_every_line_fits(self, reservation_service, make_product):
        tee = make_product(stock={"M": 3})
        assert reservation_service.check_availability([_req(tee, 3, "M")]) is True

    def test_unavailable_when_a_line_exceeds_stock(
        self, reservation_service, make_product
    ):
        tee = make_product(stock={"M": 3})
        cap = make_product(stock={"": 10})
        assert (
            reservation_service.check_availability(
                [_req(cap, 1), _req(tee, 4, "M")]
            )
            is False
        )

    def test_duplicate_lines_are_checked_together(
        self, reservation_service, make_product
    ):
        tee = make_product(stock={"M": 5})
        assert (
            reservation_service.check_availability(
                [_req(tee, 3, "M"), _req(tee, 3, "M")]
            )
            is False
        )

    def test_unknown_size_is_unavailable(self, reservation_service, make_product):
        tee = make_product(stock={"M": 5})
        assert reservation_service.check_availability([_req(tee, 1, "XXL")]) is False

    def test_check_does_not_change_stock(self, reservation_service, make_product, stock):
        tee = make_product(stock={"M": 5})
        reservation_service.check_availability([_req(tee, 2, "M")])
        assert stock(tee, "M") == 5


# ---------------------------------------------------------------------------
# reserve_and_decrement
# ---------------------------------------------------------------------------


class TestReserveAndDecrement:
    def test_decrements_every_line(self, reservation_service, make_product, stock):
        shirt = make_product(stock={"M": 10})
        cap = make_product(stock={"": 5})

        reservation = reservation_service.reserve_and_decrement(
            [_req(shirt, 2, "M"), _req(cap, 1)], user_id="u-1"
        )

        assert reservation.status == ReservationStatus.HELD
        assert reservation.user_id == "u-1"
        assert stock(shirt, "M") == 8
        assert stock(cap) == 4
        assert ReservationLine.objects.filter(reservation=reservation).count() == 2

    def test_second_reservation_reports_what_is_left(
        self, reservation_service, make_product, stock
    ):
        product = make_product(stock={"": 5})

        reservation_service.reserve_and_decrement([_req(product, 3)], user_id="a")
        with pytest.raises(InsufficientStock) as exc_info:
            reservation_service.reserve_and_decrement([_req(product, 3)], user_id="b")

        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2
        assert exc_info.value.product_id == product.id
        assert stock(product) == 2

    def test_partial_failure_leaves_stock_untouched(
        self, reservation_service, make_product, stock
    ):
        plenty = make_product(stock={"": 10})
        scarce = make_product(stock={"": 1})

        with pytest.raises(InsufficientStock) as exc_info:
            reservation_service.reserve_and_decrement(
                [_req(plenty, 3), _req(scarce, 2)], user_id="u-1"
            )

        assert exc_info.value.product_id == scarce.id
        assert stock(plenty) == 10
        assert stock(scarce) == 1
        assert StockReservation.objects.count() == 0

    def test_inactive_product_reports_zero_available(
        self, reservation_service, make_product
    ):
        product = make_product(stock={"": 10}, status="inactive")

        with pytest.raises(InsufficientStock) as exc_info:
            reservation_service.reserve_and_decrement([_req(product, 1)], user_id="u")

        assert exc_info.value.available == 0

    def test_empty_request_is_rejected(self, reservation_service):
        with pytest.raises(ValueError):
            reservation_service.reserve_and_decrement([], user_id="u")

    def test_reserved_event_written_to_outbox(self, reservation_service, make_product):
        product = make_product(stock={"": 4})

        reservation = reservation_service.reserve_and_decrement(
            [_req(product, 2)], user_id="u-9"
        )

        event = OutboxEvent.objects.get(event_type="StockReserved")
        assert event.topic == "inventory"
        assert event.aggregate_id == str(reservation.id)
        assert event.payload["user_id"] == "u-9"
        assert event.payload["lines"] == [
            {"product_id": str(product.id), "size": "", "quantity": 2}
        ]


# ---------------------------------------------------------------------------
# release
# ---------------------------------------------------------------------------


class TestRelease:
    def test_release_restores_stock(self, reservation_service, make_product, stock):
        tee = make_product(stock={"S": 4, "L": 4})
        reservation = reservation_service.reserve_and_decrement(
            [_req(tee, 1, "S"), _req(tee, 3, "L")], user_id="u"
        )

        assert reservation_service.release(str(reservation.id), reason="test") is True

        reservation.refresh_from_db()
        assert reservation.status == ReservationStatus.RELEASED
        assert reservation.release_reason == "test"
        assert reservation.released_at is not None
        assert stock(tee, "S") == 4
        assert stock(tee, "L") == 4

    def test_release_twice_equals_release_once(
        self, reservation_service, make_product, stock
    ):
        product = make_product(stock={"": 5})
        reservation = reservation_service.reserve_and_decrement(
            [_req(product, 3)], user_id="u"
        )

        first = reservation_service.release(str(reservation.id))
        second = reservation_service.release(str(reservation.id))

        assert (first, second) == (True, False)
        assert stock(product) == 5
        assert OutboxEvent.objects.filter(event_type="StockReleased").count() == 1

    def test_unknown_reservation_raises(self, reservation_service):
        with pytest.raises(ReservationNotFound):
            reservation_service.release(str(uuid4()))

    def test_malformed_id_raises_not_found(self, reservation_service):
        with pytest.raises(ReservationNotFound):
            reservation_service.release("not-a-uuid")


# ---------------------------------------------------------------------------
# Concurrency (in-memory stock store, no database)
# ---------------------------------------------------------------------------


class LockedStockStore(IStockStore):
    """Thread-safe stock counters with the same conditional semantics."""

    def __init__(self, levels):
        self._levels = dict(levels)
        self._lock = threading.Lock()
        self.decrements = 0
        self.increments = 0

    def get_stock(self, product_id, size):
        with self._lock:
            return self._levels.get((product_id, size), 0)

    def decrement_stock(self, product_id, size, quantity):
        with self._lock:
            current = self._levels.get((product_id, size))
            if current is None or current < quantity:
                return False
            self._levels[(product_id, size)] = current - quantity
            self.decrements += 1
            return True

    def increment_stock(self, product_id, size, quantity):
        with self._lock:
            if (product_id, size) not in self._levels:
                return False
            self._levels[(product_id, size)] += quantity
            self.increments += 1
            return True


def _fake_reservations():
    repo = MagicMock()
    repo.create.side_effect = lambda reservation, lines: reservation
    return repo


class TestConcurrentReservations:
    def test_never_commits_more_than_stock(self):
        pid = uuid4()
        store = LockedStockStore({(pid, "M"): 5})
        service = StockReservationService(store, _fake_reservations())
        reserve = StockReservationService.reserve_and_decrement.__wrapped__

        def attempt(i):
            try:
                reserve(
                    service,
                    [StockRequestDTO(product_id=pid, size="M", quantity=1)],
                    f"user-{i}",
                )
                return "ok"
            except InsufficientStock:
                return "insufficient"

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(20)))

        assert results.count("ok") == 5
        assert results.count("insufficient") == 15
        assert store.get_stock(pid, "M") == 0

    def test_multi_line_conflicts_keep_totals_consistent(self):
        a, b = uuid4(), uuid4()
        store = LockedStockStore({(a, ""): 6, (b, ""): 3})
        service = StockReservationService(store, _fake_reservations())
        reserve = StockReservationService.reserve_and_decrement.__wrapped__

        def attempt(i):
            try:
                reserve(
                    service,
                    [
                        StockRequestDTO(product_id=a, quantity=2),
                        StockRequestDTO(product_id=b, quantity=1),
                    ],
                    f"user-{i}",
                )
                return True
            except InsufficientStock:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            successes = sum(pool.map(attempt, range(10)))

        assert successes == 3
        assert store.get_stock(a, "") == 6 - 2 * successes
        assert store.get_stock(b, "") == 3 - successes

    def test_failed_line_compensates_applied_lines(self):
        a, b = sorted([uuid4(), uuid4()], key=str)
        store = LockedStockStore({(a, ""): 10, (b, ""): 0})
        repo = _fake_reservations()
        service = StockReservationService(store, repo)

        with pytest.raises(InsufficientStock) as exc_info:
            StockReservationService.reserve_and_decrement.__wrapped__(
                service,
                [
                    StockRequestDTO(product_id=a, quantity=4),
                    StockRequestDTO(product_id=b, quantity=1),
                ],
                "user",
            )

        assert exc_info.value.available == 0
        assert store.get_stock(a, "") == 10
        assert store.increments == 1
        repo.create.assert_not_called()
