"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.exceptions import NotFoundException
from app.dependencies import AppointmentServiceDep
from app.domain.repository import DEFAULT_UPCOMING_LIMIT, MAX_UPCOMING_LIMIT
from app.schemas.appointments import (
    EMAIL_REGEX,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentResponse,
)

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Book a new appointment and publish AppointmentCreated.

    Args:
        data: Appointment creation data
        service: Appointment service

    Returns:
        Created appointment
    """
    appointment = await service.create_appointment(
        patient_name=data.patient_name,
        patient_email=data.patient_email,
        patient_phone=data.patient_phone,
        appointment_date=data.appointment_date,
        reason=data.reason,
    )
    return AppointmentResponse.from_domain(appointment)


@router.get(
    "",
    response_model=list[AppointmentResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    service: AppointmentServiceDep,
    email: str | None = Query(None, pattern=EMAIL_REGEX),
    limit: int = Query(DEFAULT_UPCOMING_LIMIT, ge=1, le=MAX_UPCOMING_LIMIT),
) -> list[AppointmentResponse]:
    """
    List a patient's appointments by email, or upcoming appointments.

    Args:
        service: Appointment service
        email: Patient email filter
        limit: Maximum number of upcoming appointments

    Returns:
        List of appointments
    """
    appointments = await service.list_appointments(email=email, limit=limit)
    return [AppointmentResponse.from_domain(appointment) for appointment in appointments]


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Raises:
        NotFoundException: If appointment not found
    """
    appointment = await service.get_appointment(str(appointment_id))
    if appointment is None:
        raise NotFoundException("Appointment not found")
    return AppointmentResponse.from_domain(appointment)


@router.post(
    "/{appointment_id}/confirm",
    response_model=AppointmentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Confirm a scheduled appointment and publish AppointmentConfirmed."""
    appointment = await service.confirm_appointment(str(appointment_id))
    return AppointmentResponse.from_domain(appointment)


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Cancel an appointment and publish AppointmentCancelled.

    Args:
        appointment_id: Appointment ID
        data: Cancellation reason and who cancelled
        service: Appointment service

    Returns:
        Cancelled appointment
    """
    appointment = await service.cancel_appointment(
        str(appointment_id),
        reason=data.reason,
        cancelled_by=data.cancelled_by,
    )
    return AppointmentResponse.from_domain(appointment)


@router.post(
    "/{appointment_id}/complete",
    response_model=AppointmentResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Complete appointment",
)
async def complete_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Mark a past appointment as completed. No event is published."""
    appointment = await service.complete_appointment(str(appointment_id))
    return AppointmentResponse.from_domain(appointment)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Appointments"],
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    service: AppointmentServiceDep,
) -> None:
    """
    Permanently delete an appointment.

    Raises:
        NotFoundException: If appointment not found
    """
    await service.delete_appointment(str(appointment_id))
