"""Mapping between appointment aggregates and stored documents."""

from typing import Any

from app.domain.appointment import Appointment, ensure_utc
from app.domain.transitions import AppointmentState
from app.domain.value_objects import AppointmentId, AppointmentStatus, Email, PhoneNumber

# Optional attributes are left out of the document while unset.
OPTIONAL_FIELDS = {
    "confirmedAt": "confirmed_at",
    "cancelledAt": "cancelled_at",
    "cancellationReason": "cancellation_reason",
    "cancelledBy": "cancelled_by",
}


class AppointmentMapper:
    """Convert appointments to and from the flattened ``appointments`` document."""

    @staticmethod
    def to_document(appointment: Appointment) -> dict[str, Any]:
        """
        Flatten an aggregate into a storable document.

        Args:
            appointment: Appointment aggregate

        Returns:
            Document keyed by ``_id`` without the ``version`` field, which
            repositories manage themselves
        """
        document: dict[str, Any] = {
            "_id": appointment.id.value,
            "patientName": appointment.patient_name,
            "patientEmail": appointment.patient_email.value,
            "patientPhone": appointment.patient_phone.value,
            "appointmentDate": appointment.appointment_date,
            "reason": appointment.reason,
            "status": appointment.status.value,
            "createdAt": appointment.created_at,
            "updatedAt": appointment.updated_at,
        }

        for key, attribute in OPTIONAL_FIELDS.items():
            value = getattr(appointment, attribute)
            if value is not None:
                document[key] = value

        return document

    @staticmethod
    def to_domain(document: dict[str, Any]) -> Appointment:
        """Rebuild an aggregate from a stored document without raising events."""
        confirmed_at = document.get("confirmedAt")
        cancelled_at = document.get("cancelledAt")

        state = AppointmentState(
            id=AppointmentId.from_string(document["_id"]),
            patient_name=document["patientName"],
            patient_email=Email.create(document["patientEmail"]),
            patient_phone=PhoneNumber.create(document["patientPhone"]),
            appointment_date=ensure_utc(document["appointmentDate"]),
            reason=document["reason"],
            status=AppointmentStatus(document["status"]),
            created_at=ensure_utc(document["createdAt"]),
            updated_at=ensure_utc(document["updatedAt"]),
            confirmed_at=ensure_utc(confirmed_at) if confirmed_at else None,
            cancelled_at=ensure_utc(cancelled_at) if cancelled_at else None,
            cancellation_reason=document.get("cancellationReason"),
            cancelled_by=document.get("cancelledBy"),
            version=document.get("version", 0),
        )
        return Appointment.from_persistence(state)
