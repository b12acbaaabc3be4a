"""Pure state transitions of the appointment lifecycle.

``apply(command, state, now)`` decides whether a command is allowed from the
current state and returns the new state together with the events the
transition produced. It never mutates its input, which makes the lifecycle
testable without an aggregate instance and replayable from a command log.

    SCHEDULED -> CONFIRMED | CANCELLED
    CONFIRMED -> CANCELLED | COMPLETED
    CANCELLED, COMPLETED, NO_SHOW are terminal for confirm.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from functools import singledispatch

from app.core.exceptions import BusinessRuleViolation
from app.domain.events import AppointmentCancelled, AppointmentConfirmed, DomainEvent
from app.domain.value_objects import AppointmentId, AppointmentStatus, Email, PhoneNumber


@dataclass(frozen=True)
class AppointmentState:
    """Immutable snapshot of every appointment attribute."""

    id: AppointmentId
    patient_name: str
    patient_email: Email
    patient_phone: PhoneNumber
    appointment_date: datetime
    reason: str
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    version: int = 0


@dataclass(frozen=True)
class ConfirmAppointment:
    """Confirm a scheduled appointment."""


@dataclass(frozen=True)
class CancelAppointment:
    """Cancel an appointment that is neither cancelled nor completed."""

    reason: str
    cancelled_by: str


@dataclass(frozen=True)
class CompleteAppointment:
    """Mark an appointment whose time has passed as completed."""


Command = ConfirmAppointment | CancelAppointment | CompleteAppointment
Transition = tuple[AppointmentState, list[DomainEvent]]


@singledispatch
def apply(command: object, state: AppointmentState, now: datetime) -> Transition:
    """
    Apply a command to an appointment state.

    Args:
        command: One of the lifecycle commands
        state: Current appointment state
        now: Instant the transition happens at

    Returns:
        Tuple of (new state, events produced by the transition)

    Raises:
        BusinessRuleViolation: If the transition is not allowed
        TypeError: If the command type is unknown
    """
    raise TypeError(f"Unsupported appointment command: {type(command).__name__}")


@apply.register
def _confirm(command: ConfirmAppointment, state: AppointmentState, now: datetime) -> Transition:
    if state.status != AppointmentStatus.SCHEDULED:
        raise BusinessRuleViolation(
            f"Cannot confirm appointment in {state.status.value} status",
            details={"status": state.status.value, "action": "confirm"},
        )

    new_state = replace(
        state,
        status=AppointmentStatus.CONFIRMED,
        confirmed_at=now,
        updated_at=now,
    )
    return new_state, [AppointmentConfirmed.build(str(state.id), confirmed_at=now)]


@apply.register
def _cancel(command: CancelAppointment, state: AppointmentState, now: datetime) -> Transition:
    if state.status == AppointmentStatus.CANCELLED:
        raise BusinessRuleViolation(
            "Appointment is already cancelled",
            details={"status": state.status.value, "action": "cancel"},
        )

    if state.status == AppointmentStatus.COMPLETED:
        raise BusinessRuleViolation(
            "Cannot cancel a completed appointment",
            details={"status": state.status.value, "action": "cancel"},
        )

    new_state = replace(
        state,
        status=AppointmentStatus.CANCELLED,
        cancelled_at=now,
        cancellation_reason=command.reason,
        cancelled_by=command.cancelled_by,
        updated_at=now,
    )
    event = AppointmentCancelled.build(
        str(state.id),
        reason=command.reason,
        cancelled_by=command.cancelled_by,
        cancelled_at=now,
    )
    return new_state, [event]


@apply.register
def _complete(command: CompleteAppointment, state: AppointmentState, now: datetime) -> Transition:
    if state.status == AppointmentStatus.CANCELLED:
        raise BusinessRuleViolation(
            "Cannot complete a cancelled appointment",
            details={"status": state.status.value, "action": "complete"},
        )

    if state.appointment_date > now:
        raise BusinessRuleViolation(
            "Cannot complete a future appointment",
            details={"status": state.status.value, "action": "complete"},
        )

    # Completion is not announced to consumers.
    return replace(state, status=AppointmentStatus.COMPLETED, updated_at=now), []
