"""Appointment aggregate."""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

from app.core.exceptions import ValidationException
from app.domain.events import AppointmentCreated, DomainEvent
from app.domain.transitions import (
    AppointmentState,
    CancelAppointment,
    Command,
    CompleteAppointment,
    ConfirmAppointment,
    apply,
)
from app.domain.value_objects import AppointmentId, AppointmentStatus, Email, PhoneNumber

MINIMUM_LEAD_TIME = timedelta(hours=1)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which BSON dates cannot hold."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utcnow() -> datetime:
    """Current instant as an aware UTC datetime, at millisecond precision."""
    return truncate_to_millis(datetime.now(UTC))


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC at millisecond precision.

    Naive values are interpreted as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return truncate_to_millis(value.astimezone(UTC))


class Appointment:
    """
    Appointment aggregate root.

    Owns the appointment state and an in-memory buffer of domain events.
    Instances are built with ``create`` (new booking, emits an event) or
    ``from_persistence`` (reload, emits nothing); the constructor is not
    part of the public API.
    """

    def __init__(self, state: AppointmentState):
        """Wrap an existing state snapshot. Use ``create`` or ``from_persistence``."""
        self._state = state
        self._domain_events: list[DomainEvent] = []

    @classmethod
    def create(
        cls,
        patient_name: str,
        patient_email: str,
        patient_phone: str,
        appointment_date: datetime,
        reason: str,
        *,
        now: datetime | None = None,
    ) -> "Appointment":
        """
        Book a new appointment.

        Args:
            patient_name: Patient full name
            patient_email: Patient email address
            patient_phone: Patient phone number, any formatting
            appointment_date: Scheduled date and time
            reason: Reason for the visit
            now: Creation instant, defaults to the current time

        Returns:
            New appointment in SCHEDULED status with one buffered
            AppointmentCreated event

        Raises:
            ValidationException: If the date is not at least one hour ahead,
                or the email or phone number is malformed
        """
        now = ensure_utc(now or utcnow())
        appointment_date = ensure_utc(appointment_date)

        if appointment_date <= now:
            raise ValidationException(
                "Appointment date must be in the future",
                details={"bound": "future"},
            )

        if appointment_date < now + MINIMUM_LEAD_TIME:
            raise ValidationException(
                "Appointment must be at least 1 hour in the future",
                details={"bound": "minimum_lead_time"},
            )

        state = AppointmentState(
            id=AppointmentId.generate(),
            patient_name=patient_name.strip(),
            patient_email=Email.create(patient_email),
            patient_phone=PhoneNumber.create(patient_phone),
            appointment_date=appointment_date,
            reason=reason.strip(),
            status=AppointmentStatus.SCHEDULED,
            created_at=now,
            updated_at=now,
        )

        appointment = cls(state)
        appointment._record(
            AppointmentCreated.build(
                str(state.id),
                patient_name=state.patient_name,
                patient_email=state.patient_email.value,
                appointment_date=state.appointment_date,
                reason=state.reason,
                occurred_at=now,
            )
        )
        return appointment

    @classmethod
    def from_persistence(cls, state: AppointmentState) -> "Appointment":
        """Reconstitute a stored appointment without emitting events."""
        return cls(state)

    def confirm(self, *, now: datetime | None = None) -> None:
        """Confirm a scheduled appointment."""
        self._execute(ConfirmAppointment(), now)

    def cancel(self, reason: str, cancelled_by: str, *, now: datetime | None = None) -> None:
        """Cancel the appointment unless it is already cancelled or completed."""
        self._execute(CancelAppointment(reason=reason, cancelled_by=cancelled_by), now)

    def complete(self, *, now: datetime | None = None) -> None:
        """Mark a past, non-cancelled appointment as completed. Emits no event."""
        self._execute(CompleteAppointment(), now)

    def _execute(self, command: Command, now: datetime | None) -> None:
        # Nothing is assigned when apply() raises.
        new_state, events = apply(command, self._state, ensure_utc(now or utcnow()))
        self._state = new_state
        for event in events:
            self._record(event)

    def _record(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    # Domain events management

    @property
    def domain_events(self) -> list[DomainEvent]:
        """Copy of the buffered events in the order they were raised."""
        return list(self._domain_events)

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return the buffered events and empty the buffer."""
        events, self._domain_events = self._domain_events, []
        return events

    def clear_domain_events(self) -> None:
        """Discard all buffered events."""
        self._domain_events = []

    def mark_persisted(self, version: int) -> None:
        """Record the version the store now holds for this aggregate."""
        self._state = replace(self._state, version=version)

    # Read-only projections

    @property
    def state(self) -> AppointmentState:
        return self._state

    @property
    def id(self) -> AppointmentId:
        return self._state.id

    @property
    def patient_name(self) -> str:
        return self._state.patient_name

    @property
    def patient_email(self) -> Email:
        return self._state.patient_email

    @property
    def patient_phone(self) -> PhoneNumber:
        return self._state.patient_phone

    @property
    def appointment_date(self) -> datetime:
        return self._state.appointment_date

    @property
    def reason(self) -> str:
        return self._state.reason

    @property
    def status(self) -> AppointmentStatus:
        return self._state.status

    @property
    def created_at(self) -> datetime:
        return self._state.created_at

    @property
    def updated_at(self) -> datetime:
        return self._state.updated_at

    @property
    def confirmed_at(self) -> datetime | None:
        return self._state.confirmed_at

    @property
    def cancelled_at(self) -> datetime | None:
        return self._state.cancelled_at

    @property
    def cancellation_reason(self) -> str | None:
        return self._state.cancellation_reason

    @property
    def cancelled_by(self) -> str | None:
        return self._state.cancelled_by

    @property
    def version(self) -> int:
        return self._state.version

    def __repr__(self) -> str:
        return f"Appointment(id={self.id.value!r}, status={self.status.value})"
