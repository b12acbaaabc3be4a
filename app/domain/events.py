"""
Domain events raised by the appointment aggregate.

Events are immutable records of transitions that already happened. They are
buffered on the aggregate and handed to the event publisher after the
aggregate has been saved; they are never written to the appointment store.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar
from uuid import uuid4

APPOINTMENT_CREATED = "AppointmentCreated"
APPOINTMENT_CONFIRMED = "AppointmentConfirmed"
APPOINTMENT_CANCELLED = "AppointmentCancelled"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_event_id() -> str:
    return str(uuid4())


def _to_wire(value: Any) -> Any:
    """Render datetimes in a payload as ISO-8601 strings."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _to_wire(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_to_wire(item) for item in value]
    return value


@dataclass(frozen=True)
class DomainEvent:
    """Immutable fact about an appointment aggregate."""

    aggregate_id: str
    payload: dict[str, Any]
    event_id: str = field(default_factory=_new_event_id)
    occurred_at: datetime = field(default_factory=_utcnow)

    event_type: ClassVar[str] = "DomainEvent"

    def to_message(self) -> dict[str, Any]:
        """
        Build the wire representation of the event.

        Returns:
            JSON-serializable dict with eventId, eventType, occurredAt,
            aggregateId and payload keys
        """
        return {
            "eventId": self.event_id,
            "eventType": self.event_type,
            "occurredAt": self.occurred_at.isoformat(),
            "aggregateId": self.aggregate_id,
            "payload": _to_wire(self.payload),
        }


@dataclass(frozen=True)
class AppointmentCreated(DomainEvent):
    """A new appointment was booked."""

    event_type: ClassVar[str] = APPOINTMENT_CREATED

    @classmethod
    def build(
        cls,
        aggregate_id: str,
        patient_name: str,
        patient_email: str,
        appointment_date: datetime,
        reason: str,
        occurred_at: datetime,
    ) -> "AppointmentCreated":
        return cls(
            aggregate_id=aggregate_id,
            payload={
                "patientName": patient_name,
                "patientEmail": patient_email,
                "appointmentDate": appointment_date,
                "reason": reason,
            },
            occurred_at=occurred_at,
        )


@dataclass(frozen=True)
class AppointmentConfirmed(DomainEvent):
    """A scheduled appointment was confirmed."""

    event_type: ClassVar[str] = APPOINTMENT_CONFIRMED

    @classmethod
    def build(cls, aggregate_id: str, confirmed_at: datetime) -> "AppointmentConfirmed":
        return cls(
            aggregate_id=aggregate_id,
            payload={"confirmedAt": confirmed_at},
            occurred_at=confirmed_at,
        )


@dataclass(frozen=True)
class AppointmentCancelled(DomainEvent):
    """An appointment was cancelled."""

    event_type: ClassVar[str] = APPOINTMENT_CANCELLED

    @classmethod
    def build(
        cls,
        aggregate_id: str,
        reason: str,
        cancelled_by: str,
        cancelled_at: datetime,
    ) -> "AppointmentCancelled":
        return cls(
            aggregate_id=aggregate_id,
            payload={"reason": reason, "cancelledBy": cancelled_by},
            occurred_at=cancelled_at,
        )
