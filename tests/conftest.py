from collections.abc import AsyncGenerator, Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

# Load environment variables from .env file
load_dotenv()

from app.core.exceptions import EventPublishError
from app.dependencies import get_appointment_repository, get_event_publisher
from app.domain.appointment import Appointment, utcnow
from app.domain.events import DomainEvent
from app.domain.transitions import AppointmentState
from app.domain.value_objects import AppointmentId, AppointmentStatus, Email, PhoneNumber
from app.main import app
from app.messaging.event_publisher import EventPublisher
from app.repositories.memory_appointment_repository import MemoryAppointmentRepository


class RecordingEventPublisher(EventPublisher):
    """Publisher that keeps delivered events and can fail on demand."""

    def __init__(self) -> None:
        self.published: list[DomainEvent] = []
        self.fail_on_call: int | None = None
        self.calls = 0

    async def publish(self, event: DomainEvent) -> None:
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise EventPublishError(event.event_type, event.event_id, "broker unavailable")
        self.published.append(event)

    @property
    def event_types(self) -> list[str]:
        return [event.event_type for event in self.published]


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant for domain tests."""
    return datetime(2030, 6, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def appointment_data() -> dict:
    """Valid creation arguments, two hours ahead of the real clock."""
    return {
        "patient_name": "  Jane Doe ",
        "patient_email": " Jane@X.com ",
        "patient_phone": "(512) 555-1234",
        "appointment_date": datetime.now(UTC) + timedelta(hours=2),
        "reason": " checkup ",
    }


@pytest.fixture
def state_factory() -> Callable[..., AppointmentState]:
    """Build appointment states directly, bypassing the creation bounds."""

    def factory(**overrides) -> AppointmentState:
        created = utcnow() - timedelta(days=1)
        state = AppointmentState(
            id=AppointmentId.generate(),
            patient_name="Jane Doe",
            patient_email=Email.create("jane@x.com"),
            patient_phone=PhoneNumber.create("5125551234"),
            appointment_date=utcnow() + timedelta(days=1),
            reason="checkup",
            status=AppointmentStatus.SCHEDULED,
            created_at=created,
            updated_at=created,
        )
        return replace(state, **overrides)

    return factory


@pytest.fixture
def appointment_factory(state_factory) -> Callable[..., Appointment]:
    """Reconstitute appointments in any state without buffered events."""

    def factory(**overrides) -> Appointment:
        return Appointment.from_persistence(state_factory(**overrides))

    return factory


@pytest.fixture
def repository() -> MemoryAppointmentRepository:
    return MemoryAppointmentRepository()


@pytest.fixture
def publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest_asyncio.fixture
async def client(
    repository: MemoryAppointmentRepository,
    publisher: RecordingEventPublisher,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client backed by the in-memory repository."""
    app.dependency_overrides[get_appointment_repository] = lambda: repository
    app.dependency_overrides[get_event_publisher] = lambda: publisher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_appointment_payload() -> dict:
    """Sample request body for creating an appointment."""
    return {
        "patientName": "Jane Doe",
        "patientEmail": "jane@x.com",
        "patientPhone": "5125551234",
        "appointmentDate": (datetime.now(UTC) + timedelta(hours=2)).isoformat(),
        "reason": "Regular checkup",
    }
