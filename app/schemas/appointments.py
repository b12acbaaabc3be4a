"""Appointment schemas for request/response validation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.domain.appointment import Appointment
from app.domain.value_objects import AppointmentStatus

EMAIL_REGEX = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class CamelModel(BaseModel):
    """Base schema accepting and emitting camelCase field names."""

    model_config = ConfigDict(populate_by_name=True)


class AppointmentCreate(CamelModel):
    """Schema for creating a new appointment."""

    patient_name: str = Field(..., alias="patientName", min_length=2, max_length=200)
    patient_email: str = Field(..., alias="patientEmail", pattern=EMAIL_REGEX)
    patient_phone: str = Field(default="", alias="patientPhone", max_length=30)
    appointment_date: datetime = Field(..., alias="appointmentDate")
    reason: str = Field(..., min_length=5, max_length=500)


class AppointmentCancel(CamelModel):
    """Schema for cancelling an appointment."""

    reason: str = Field(..., min_length=5, max_length=500)
    cancelled_by: str = Field(..., alias="cancelledBy", min_length=2, max_length=200)


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    id: str
    patient_name: str = Field(..., serialization_alias="patientName")
    patient_email: str = Field(..., serialization_alias="patientEmail")
    patient_phone: str = Field(..., serialization_alias="patientPhone")
    appointment_date: datetime = Field(..., serialization_alias="appointmentDate")
    reason: str
    status: AppointmentStatus
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")
    confirmed_at: datetime | None = Field(None, serialization_alias="confirmedAt")
    cancelled_at: datetime | None = Field(None, serialization_alias="cancelledAt")
    cancellation_reason: str | None = Field(None, serialization_alias="cancellationReason")
    cancelled_by: str | None = Field(None, serialization_alias="cancelledBy")

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentResponse":
        """Project an aggregate into the response shape."""
        return cls(
            id=appointment.id.value,
            patient_name=appointment.patient_name,
            patient_email=appointment.patient_email.value,
            patient_phone=appointment.patient_phone.value,
            appointment_date=appointment.appointment_date,
            reason=appointment.reason,
            status=appointment.status,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            confirmed_at=appointment.confirmed_at,
            cancelled_at=appointment.cancelled_at,
            cancellation_reason=appointment.cancellation_reason,
            cancelled_by=appointment.cancelled_by,
        )
