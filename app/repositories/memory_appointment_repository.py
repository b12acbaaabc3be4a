"""In-process appointment repository for local runs and tests."""

from typing import Any

from app.core.exceptions import ConflictException
from app.domain.appointment import Appointment, utcnow
from app.domain.repository import (
    DEFAULT_UPCOMING_LIMIT,
    UPCOMING_STATUSES,
    AppointmentRepository,
    clamp_limit,
)
from app.domain.value_objects import AppointmentId
from app.repositories.appointment_mapper import AppointmentMapper


class MemoryAppointmentRepository(AppointmentRepository):
    """Dict-backed repository storing the same documents MongoDB would."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    async def save(self, appointment: Appointment) -> None:
        document = AppointmentMapper.to_document(appointment)
        stored = self._documents.get(document["_id"])

        if stored is not None and stored["version"] != appointment.version:
            raise ConflictException(
                "Appointment was modified by another request",
                details={"appointmentId": document["_id"], "expectedVersion": appointment.version},
            )

        next_version = appointment.version + 1
        self._documents[document["_id"]] = {**document, "version": next_version}
        appointment.mark_persisted(next_version)

    async def find_by_id(self, appointment_id: AppointmentId) -> Appointment | None:
        document = self._documents.get(appointment_id.value)
        return AppointmentMapper.to_domain(document) if document else None

    async def find_by_email(self, email: str) -> list[Appointment]:
        normalized = email.strip().lower()
        documents = [doc for doc in self._documents.values() if doc["patientEmail"] == normalized]
        documents.sort(key=lambda doc: doc["appointmentDate"], reverse=True)
        return [AppointmentMapper.to_domain(doc) for doc in documents]

    async def find_upcoming(self, limit: int = DEFAULT_UPCOMING_LIMIT) -> list[Appointment]:
        now = utcnow()
        statuses = {status.value for status in UPCOMING_STATUSES}
        documents = [
            doc
            for doc in self._documents.values()
            if doc["status"] in statuses and doc["appointmentDate"] >= now
        ]
        documents.sort(key=lambda doc: doc["appointmentDate"])
        return [AppointmentMapper.to_domain(doc) for doc in documents[: clamp_limit(limit)]]

    async def delete(self, appointment_id: AppointmentId) -> None:
        self._documents.pop(appointment_id.value, None)

    async def count(self) -> int:
        return len(self._documents)
