"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from app.core.exceptions import InfrastructureException
from app.domain.repository import AppointmentRepository
from app.messaging.event_publisher import EventPublisher
from app.services.appointment_service import AppointmentService


def get_appointment_repository(request: Request) -> AppointmentRepository:
    """
    Get the appointment repository built at startup.

    Raises:
        InfrastructureException: If the application has not finished startup
    """
    repository = getattr(request.app.state, "appointment_repository", None)
    if repository is None:
        raise InfrastructureException("Appointment store is not initialized")
    return repository


def get_event_publisher(request: Request) -> EventPublisher:
    """
    Get the event publisher built at startup.

    Raises:
        InfrastructureException: If the application has not finished startup
    """
    publisher = getattr(request.app.state, "event_publisher", None)
    if publisher is None:
        raise InfrastructureException("Event publisher is not initialized")
    return publisher


def get_appointment_service(
    repository: Annotated[AppointmentRepository, Depends(get_appointment_repository)],
    publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
) -> AppointmentService:
    """Build an appointment service for the current request."""
    return AppointmentService(repository, publisher)


# Type aliases for dependency injection
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
