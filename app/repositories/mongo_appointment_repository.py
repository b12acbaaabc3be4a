"""MongoDB implementation of the appointment repository."""

from typing import Any

import structlog
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import ConflictException, InfrastructureException
from app.core.mongodb import APPOINTMENTS_COLLECTION, MongoDBClient
from app.domain.appointment import Appointment, utcnow
from app.domain.repository import (
    DEFAULT_UPCOMING_LIMIT,
    UPCOMING_STATUSES,
    AppointmentRepository,
    clamp_limit,
)
from app.domain.value_objects import AppointmentId
from app.repositories.appointment_mapper import AppointmentMapper

logger = structlog.get_logger(__name__)


def version_filter(appointment_id: str, version: int) -> dict[str, Any]:
    """Match a document by ID and the version the caller last saw."""
    if version == 0:
        # Never saved by this process, or stored before versioning existed.
        return {"_id": appointment_id, "version": {"$in": [0, None]}}
    return {"_id": appointment_id, "version": version}


class MongoAppointmentRepository(AppointmentRepository):
    """Appointment repository backed by the ``appointments`` collection."""

    def __init__(self, mongo_client: MongoDBClient):
        """Initialize repository with a connected MongoDB handle."""
        self.collection: AsyncCollection = mongo_client.get_collection(APPOINTMENTS_COLLECTION)

    async def save(self, appointment: Appointment) -> None:
        """
        Replace or insert an appointment with an optimistic version check.

        Args:
            appointment: Appointment to persist

        Raises:
            ConflictException: If the stored version moved on since the
                appointment was loaded
            InfrastructureException: If MongoDB rejects the write
        """
        document = AppointmentMapper.to_document(appointment)
        appointment_id = document.pop("_id")
        next_version = appointment.version + 1

        try:
            await self.collection.replace_one(
                version_filter(appointment_id, appointment.version),
                {**document, "version": next_version},
                upsert=True,
            )
        except DuplicateKeyError as e:
            # The ID exists with another version, so the upsert tried to insert.
            logger.warning(
                "appointment_save_conflict",
                appointment_id=appointment_id,
                expected_version=appointment.version,
            )
            raise ConflictException(
                "Appointment was modified by another request",
                details={"appointmentId": appointment_id, "expectedVersion": appointment.version},
            ) from e
        except PyMongoError as e:
            logger.error("appointment_save_failed", appointment_id=appointment_id, error=str(e))
            raise InfrastructureException(f"Failed to save appointment: {e}") from e

        appointment.mark_persisted(next_version)

    async def find_by_id(self, appointment_id: AppointmentId) -> Appointment | None:
        """Retrieve an appointment by its ID."""
        try:
            document = await self.collection.find_one({"_id": appointment_id.value})
        except PyMongoError as e:
            raise InfrastructureException(f"Failed to load appointment: {e}") from e

        if not document:
            return None

        return AppointmentMapper.to_domain(document)

    async def find_by_email(self, email: str) -> list[Appointment]:
        """List a patient's appointments, latest scheduled date first."""
        cursor = self.collection.find({"patientEmail": email.strip().lower()}).sort(
            "appointmentDate", DESCENDING
        )
        return await self._load(cursor)

    async def find_upcoming(self, limit: int = DEFAULT_UPCOMING_LIMIT) -> list[Appointment]:
        """List scheduled or confirmed appointments from now on, soonest first."""
        cursor = (
            self.collection.find(
                {
                    "appointmentDate": {"$gte": utcnow()},
                    "status": {"$in": [status.value for status in UPCOMING_STATUSES]},
                }
            )
            .sort("appointmentDate", ASCENDING)
            .limit(clamp_limit(limit))
        )
        return await self._load(cursor)

    async def delete(self, appointment_id: AppointmentId) -> None:
        """Delete an appointment by its ID. Missing IDs are ignored."""
        try:
            await self.collection.delete_one({"_id": appointment_id.value})
        except PyMongoError as e:
            raise InfrastructureException(f"Failed to delete appointment: {e}") from e

    async def count(self) -> int:
        """Count stored appointments."""
        try:
            return await self.collection.count_documents({})
        except PyMongoError as e:
            raise InfrastructureException(f"Failed to count appointments: {e}") from e

    async def _load(self, cursor: Any) -> list[Appointment]:
        try:
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise InfrastructureException(f"Failed to query appointments: {e}") from e
        return [AppointmentMapper.to_domain(document) for document in documents]
