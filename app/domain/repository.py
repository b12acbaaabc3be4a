"""
Appointment repository interface.

Persistence boundary the application service saves aggregates through and
reloads them from. Implementations live in ``app.repositories``.
"""

from abc import ABC, abstractmethod

from app.domain.appointment import Appointment
from app.domain.value_objects import AppointmentId, AppointmentStatus

DEFAULT_UPCOMING_LIMIT = 50
MAX_UPCOMING_LIMIT = 100

UPCOMING_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)


def clamp_limit(limit: int) -> int:
    """Clamp a requested page size to [1, MAX_UPCOMING_LIMIT]."""
    return max(1, min(limit, MAX_UPCOMING_LIMIT))


class AppointmentRepository(ABC):
    """Abstract base class defining the appointment repository interface."""

    @abstractmethod
    async def save(self, appointment: Appointment) -> None:
        """
        Insert or overwrite an appointment keyed by its identifier.

        The write only succeeds when the stored version still equals
        ``appointment.version``; the stored version is then incremented and
        reported back through ``appointment.mark_persisted``.

        Raises:
            ConflictException: If another writer saved the appointment first
            InfrastructureException: If the store is unavailable
        """

    @abstractmethod
    async def find_by_id(self, appointment_id: AppointmentId) -> Appointment | None:
        """Retrieve an appointment by its ID."""

    @abstractmethod
    async def find_by_email(self, email: str) -> list[Appointment]:
        """List a patient's appointments, latest scheduled date first."""

    @abstractmethod
    async def find_upcoming(self, limit: int = DEFAULT_UPCOMING_LIMIT) -> list[Appointment]:
        """List scheduled or confirmed appointments from now on, soonest first."""

    @abstractmethod
    async def delete(self, appointment_id: AppointmentId) -> None:
        """Delete an appointment by its ID. Missing IDs are ignored."""

    @abstractmethod
    async def count(self) -> int:
        """Count stored appointments."""
