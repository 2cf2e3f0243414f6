"""Outbox rows are written with the aggregate and settled after commit."""

from __future__ import annotations

import pytest

from modules.core.models import EventStatus, OutboxEvent
from modules.core.outbox import (
    record_domain_events,
    redeliver_failed,
    serialize_event_payload,
)
from modules.core.tasks import redeliver_outbox
from modules.orders.events import OrderCreated, OrderStatusChanged
from modules.orders.models import Order
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.unit


@pytest.fixture()
def order():
    order = Order(user_id="7", address="1 Main St")
    order.add_domain_event(OrderCreated(aggregate_id=order.id, user_id="7"))
    order.add_domain_event(OrderStatusChanged(aggregate_id=order.id, new_status="X"))
    return order


def test_rows_are_pending_until_commit(order):
    events = record_domain_events(order, topic="orders")

    assert [e.event_name for e in events] == ["OrderCreated", "OrderStatusChanged"]
    assert order.domain_events == []
    rows = OutboxEvent.objects.filter(aggregate_id=str(order.id))
    assert rows.count() == 2
    assert set(rows.values_list("status", flat=True)) == {EventStatus.PENDING}
    assert set(rows.values_list("topic", flat=True)) == {"orders"}


def test_rows_are_published_after_commit(order, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        record_domain_events(order, topic="orders")

    statuses = OutboxEvent.objects.filter(aggregate_id=str(order.id)).values_list(
        "status", flat=True
    )
    assert set(statuses) == {EventStatus.PUBLISHED}


def test_failing_handler_marks_row_failed(
    order, monkeypatch, django_capture_on_commit_callbacks
):
    original = event_bus.publish

    def publish(event):
        if isinstance(event, OrderCreated):
            raise RuntimeError("handler exploded")
        original(event)

    monkeypatch.setattr(event_bus, "publish", publish)

    with django_capture_on_commit_callbacks(execute=True):
        record_domain_events(order, topic="orders")

    failed = OutboxEvent.objects.get(event_type="OrderCreated")
    assert failed.status == EventStatus.FAILED
    assert failed.error_message == "handler exploded"
    assert failed.retry_count == 1
    assert (
        OutboxEvent.objects.get(event_type="OrderStatusChanged").status
        == EventStatus.PUBLISHED
    )


def test_nothing_to_record():
    order = Order(user_id="7", address="x")
    assert record_domain_events(order, topic="orders") == []
    assert not OutboxEvent.objects.exists()


class TestRedelivery:
    def _failed_row(self, event, retries=1):
        return OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event_payload(event),
            topic="orders",
            status=EventStatus.FAILED,
            error_message="handler exploded",
            retry_count=retries,
        )

    def test_failed_row_is_published_again(self, order, monkeypatch):
        event = OrderStatusChanged(
            aggregate_id=order.id, old_status="RECEIVED", new_status="SHIPPED"
        )
        row = self._failed_row(event)
        seen = []
        original = event_bus.publish

        def publish(e):
            seen.append(e)
            original(e)

        monkeypatch.setattr(event_bus, "publish", publish)

        assert redeliver_failed(max_retries=5) == 1

        row.refresh_from_db()
        assert row.status == EventStatus.PUBLISHED
        assert seen == [event]

    def test_exhausted_rows_are_left_alone(self, order):
        row = self._failed_row(OrderCreated(aggregate_id=order.id), retries=5)

        assert redeliver_failed(max_retries=5) == 0

        row.refresh_from_db()
        assert row.status == EventStatus.FAILED
        assert row.retry_count == 5

    def test_unknown_event_type_counts_as_attempt(self, order):
        row = self._failed_row(OrderCreated(aggregate_id=order.id))
        OutboxEvent.objects.filter(id=row.id).update(event_type="Renamed")

        assert redeliver_failed(max_retries=5) == 0

        row.refresh_from_db()
        assert row.retry_count == 2
        assert row.error_message.startswith("Undecodable payload")

    def test_beat_task_uses_configured_limit(self, order, settings):
        settings.OUTBOX_MAX_RETRIES = 1
        self._failed_row(OrderCreated(aggregate_id=order.id), retries=1)

        assert redeliver_outbox.delay().get() == {"delivered": 0}
