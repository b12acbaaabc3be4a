"""Appointment service for business logic."""

from datetime import datetime

import structlog

from app.core.exceptions import EventPublishError, NotFoundException
from app.domain.appointment import Appointment
from app.domain.repository import DEFAULT_UPCOMING_LIMIT, AppointmentRepository
from app.domain.value_objects import AppointmentId
from app.messaging.event_publisher import EventPublisher

logger = structlog.get_logger(__name__)


class AppointmentService:
    """
    Service orchestrating appointment use cases.

    Every mutation saves the aggregate first and publishes its buffered events
    afterwards. The two steps do not share a transaction: a publish failure
    after a successful save leaves the new state stored and the events lost.
    """

    def __init__(self, repository: AppointmentRepository, publisher: EventPublisher):
        """Initialize service with a repository and an event publisher."""
        self.repository = repository
        self.publisher = publisher

    async def create_appointment(
        self,
        patient_name: str,
        patient_email: str,
        patient_phone: str,
        appointment_date: datetime,
        reason: str,
    ) -> Appointment:
        """
        Book a new appointment.

        Args:
            patient_name: Patient full name
            patient_email: Patient email address
            patient_phone: Patient phone number
            appointment_date: Scheduled date and time
            reason: Reason for the visit

        Returns:
            Created appointment

        Raises:
            ValidationException: If the date or contact details are invalid
        """
        appointment = Appointment.create(
            patient_name=patient_name,
            patient_email=patient_email,
            patient_phone=patient_phone,
            appointment_date=appointment_date,
            reason=reason,
        )

        await self._persist_and_publish(appointment)

        logger.info(
            "appointment_created",
            appointment_id=appointment.id.value,
            appointment_date=appointment.appointment_date.isoformat(),
        )
        return appointment

    async def get_appointment(self, appointment_id: str) -> Appointment | None:
        """Get appointment by ID, or None if it does not exist."""
        return await self.repository.find_by_id(AppointmentId.from_string(appointment_id))

    async def list_appointments(
        self,
        email: str | None = None,
        limit: int = DEFAULT_UPCOMING_LIMIT,
    ) -> list[Appointment]:
        """
        List appointments for a patient email, or the upcoming ones.

        Args:
            email: Patient email; when given, all of the patient's appointments
            limit: Maximum number of upcoming appointments

        Returns:
            List of appointments
        """
        if email:
            return await self.repository.find_by_email(email)
        return await self.repository.find_upcoming(limit)

    async def confirm_appointment(self, appointment_id: str) -> Appointment:
        """
        Confirm a scheduled appointment.

        Raises:
            NotFoundException: If appointment not found
            BusinessRuleViolation: If the appointment is not scheduled
        """
        appointment = await self._load(appointment_id)
        appointment.confirm()
        await self._persist_and_publish(appointment)

        logger.info("appointment_confirmed", appointment_id=appointment.id.value)
        return appointment

    async def cancel_appointment(
        self,
        appointment_id: str,
        reason: str,
        cancelled_by: str,
    ) -> Appointment:
        """
        Cancel an appointment.

        Raises:
            NotFoundException: If appointment not found
            BusinessRuleViolation: If already cancelled or completed
        """
        appointment = await self._load(appointment_id)
        appointment.cancel(reason, cancelled_by)
        await self._persist_and_publish(appointment)

        logger.info(
            "appointment_cancelled",
            appointment_id=appointment.id.value,
            cancelled_by=cancelled_by,
        )
        return appointment

    async def complete_appointment(self, appointment_id: str) -> Appointment:
        """
        Mark a past appointment as completed.

        Raises:
            NotFoundException: If appointment not found
            BusinessRuleViolation: If cancelled or still in the future
        """
        appointment = await self._load(appointment_id)
        appointment.complete()
        await self._persist_and_publish(appointment)

        logger.info("appointment_completed", appointment_id=appointment.id.value)
        return appointment

    async def delete_appointment(self, appointment_id: str) -> None:
        """
        Delete an appointment.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment = await self._load(appointment_id)
        await self.repository.delete(appointment.id)

        logger.info("appointment_deleted", appointment_id=appointment.id.value)

    async def _load(self, appointment_id: str) -> Appointment:
        appointment = await self.repository.find_by_id(AppointmentId.from_string(appointment_id))
        if appointment is None:
            raise NotFoundException("Appointment not found")
        return appointment

    async def _persist_and_publish(self, appointment: Appointment) -> None:
        await self.repository.save(appointment)

        events = appointment.pull_domain_events()
        try:
            await self.publisher.publish_batch(events)
        except EventPublishError as e:
            logger.error(
                "appointment_events_publish_failed",
                appointment_id=appointment.id.value,
                failed_event_id=e.event_id,
                event_ids=[event.event_id for event in events],
            )
            raise
