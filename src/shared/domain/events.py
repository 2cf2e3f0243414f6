"""Domain event primitives shared by every bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Type
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable fact raised by an aggregate.

    Subclasses add payload fields; those must carry defaults because the
    base already declares defaulted fields.  Every subclass is registered
    by class name so an outbox row can be turned back into its event.
    """

    registry: ClassVar[Dict[str, Type[DomainEvent]]] = {}

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_name: str = field(init=False)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        DomainEvent.registry[cls.__name__] = cls

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", self.__class__.__name__)

    @classmethod
    def from_payload(cls, event_type: str, payload: Dict[str, Any]) -> DomainEvent:
        """Rebuild an event from its JSON outbox payload.

        Raises:
            KeyError: no event class is registered under *event_type*.
        """
        event_class = cls.registry[event_type]
        values = {
            f.name: payload[f.name]
            for f in fields(event_class)
            if f.init and f.name in payload
        }
        values["aggregate_id"] = UUID(str(values["aggregate_id"]))
        if "event_id" in values:
            values["event_id"] = UUID(str(values["event_id"]))
        if "occurred_on" in values:
            values["occurred_on"] = datetime.fromisoformat(values["occurred_on"])
        return event_class(**values)


class DomainEventMixin:
    """Collects events on an aggregate until the repository flushes them."""

    _domain_events: list[DomainEvent]

    def add_domain_event(self, event: DomainEvent) -> None:
        self.__dict__.setdefault("_domain_events", []).append(event)

    def clear_domain_events(self) -> None:
        self.__dict__.pop("_domain_events", None)

    @property
    def domain_events(self) -> list[DomainEvent]:
        return list(self.__dict__.get("_domain_events", ()))
