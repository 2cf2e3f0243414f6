"""Flush an aggregate's pending domain events into the outbox table.

Called by repositories inside the same transaction that persists the
aggregate.  Once that transaction commits, each event is handed to the
in-process bus and its outbox row is marked ``PUBLISHED``, or ``FAILED``
with the handler's error.  Rolled-back transactions leave no rows and
dispatch nothing.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Tuple
from uuid import UUID

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def record_domain_events(entity: Any, topic: str) -> List[DomainEvent]:
    """Persist every event collected on *entity* and schedule dispatch.

    Returns the flushed events; the entity's buffer is cleared.
    """
    events: List[DomainEvent] = list(getattr(entity, "domain_events", []))
    rows = [
        (
            OutboxEvent.objects.create(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=serialize_event_payload(event),
                topic=topic,
            ),
            event,
        )
        for event in events
    ]
    if hasattr(entity, "clear_domain_events"):
        entity.clear_domain_events()

    if rows:
        transaction.on_commit(lambda: dispatch(rows))
    return events


def dispatch(rows: List[Tuple[OutboxEvent, DomainEvent]]) -> None:
    """Publish committed events; one failing handler does not stop the rest."""
    for row, event in rows:
        _deliver(row, event)


def redeliver_failed(max_retries: int, limit: int = 100) -> int:
    """Publish ``FAILED`` rows again; returns how many went through."""
    delivered = 0
    for row in OutboxEvent.objects.redeliverable(max_retries)[:limit]:
        try:
            event = DomainEvent.from_payload(row.event_type, row.payload)
        except (KeyError, TypeError, ValueError) as exc:
            row.mark_as_failed(f"Undecodable payload: {exc!r}")
            continue
        delivered += _deliver(row, event)
    logger.info("outbox.redelivered", delivered=delivered)
    return delivered


def _deliver(row: OutboxEvent, event: DomainEvent) -> bool:
    try:
        event_bus.publish(event)
    except Exception as exc:
        logger.exception(
            "outbox.dispatch_failed",
            outbox_id=str(row.id),
            event_type=row.event_type,
            attempt=row.retry_count + 1,
        )
        row.mark_as_failed(str(exc))
        return False
    row.mark_as_published()
    return True


def serialize_event_payload(event: DomainEvent) -> Dict[str, Any]:
    normalized = _normalize_for_json(asdict(event))
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
