"""Tests for the appointment repositories."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from app.core.exceptions import ConflictException, InfrastructureException
from app.domain.appointment import Appointment
from app.domain.value_objects import AppointmentId, AppointmentStatus, Email
from app.repositories.appointment_mapper import AppointmentMapper
from app.repositories.memory_appointment_repository import MemoryAppointmentRepository
from app.repositories.mongo_appointment_repository import (
    MongoAppointmentRepository,
    version_filter,
)


def in_days(days: float) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


# In-memory repository


@pytest.mark.asyncio
async def test_memory_save_and_find(
    repository: MemoryAppointmentRepository, appointment_factory
) -> None:
    """Test saving stores the appointment and advances its version."""
    appointment = appointment_factory()

    await repository.save(appointment)

    assert appointment.version == 1
    found = await repository.find_by_id(appointment.id)
    assert found is not None
    assert found.id == appointment.id
    assert found.version == 1
    assert await repository.count() == 1


@pytest.mark.asyncio
async def test_memory_find_missing_returns_none(repository: MemoryAppointmentRepository) -> None:
    assert await repository.find_by_id(AppointmentId.generate()) is None


@pytest.mark.asyncio
async def test_memory_save_overwrites_same_id(
    repository: MemoryAppointmentRepository, appointment_factory, now: datetime
) -> None:
    appointment = appointment_factory()
    await repository.save(appointment)

    appointment.confirm(now=now)
    await repository.save(appointment)

    found = await repository.find_by_id(appointment.id)
    assert found.status == AppointmentStatus.CONFIRMED
    assert found.version == 2
    assert await repository.count() == 1


@pytest.mark.asyncio
async def test_memory_save_rejects_stale_version(
    repository: MemoryAppointmentRepository, appointment_factory, now: datetime
) -> None:
    """Test a save based on an outdated copy raises a conflict."""
    appointment = appointment_factory()
    await repository.save(appointment)

    first = await repository.find_by_id(appointment.id)
    second = await repository.find_by_id(appointment.id)

    first.confirm(now=now)
    await repository.save(first)

    second.cancel("double booked", "staff-1", now=now)
    with pytest.raises(ConflictException):
        await repository.save(second)

    stored = await repository.find_by_id(appointment.id)
    assert stored.status == AppointmentStatus.CONFIRMED


@pytest.mark.asyncio
async def test_memory_find_by_email(
    repository: MemoryAppointmentRepository, appointment_factory
) -> None:
    """Test email lookups are case-insensitive and latest-first."""
    earlier = appointment_factory(appointment_date=in_days(1))
    later = appointment_factory(appointment_date=in_days(5), status=AppointmentStatus.CANCELLED)
    other = appointment_factory(patient_email=Email.create("other@x.com"))
    for appointment in (earlier, later, other):
        await repository.save(appointment)

    result = await repository.find_by_email(" JANE@X.COM ")

    assert [appointment.id for appointment in result] == [later.id, earlier.id]
    assert await repository.find_by_email("nobody@x.com") == []


@pytest.mark.asyncio
async def test_memory_find_upcoming(
    repository: MemoryAppointmentRepository, appointment_factory
) -> None:
    """Test upcoming excludes past and closed appointments and sorts soonest first."""
    soon = appointment_factory(appointment_date=in_days(1))
    later = appointment_factory(appointment_date=in_days(3), status=AppointmentStatus.CONFIRMED)
    past = appointment_factory(appointment_date=in_days(-1))
    cancelled = appointment_factory(appointment_date=in_days(2), status=AppointmentStatus.CANCELLED)
    no_show = appointment_factory(appointment_date=in_days(2), status=AppointmentStatus.NO_SHOW)
    for appointment in (later, past, cancelled, no_show, soon):
        await repository.save(appointment)

    result = await repository.find_upcoming()

    assert [appointment.id for appointment in result] == [soon.id, later.id]


@pytest.mark.asyncio
@pytest.mark.parametrize(("limit", "expected"), [(0, 1), (-5, 1), (2, 2), (500, 4)])
async def test_memory_find_upcoming_clamps_limit(
    repository: MemoryAppointmentRepository, appointment_factory, limit: int, expected: int
) -> None:
    for days in range(1, 5):
        await repository.save(appointment_factory(appointment_date=in_days(days)))

    assert len(await repository.find_upcoming(limit)) == expected


@pytest.mark.asyncio
async def test_memory_delete(
    repository: MemoryAppointmentRepository, appointment_factory
) -> None:
    """Test delete removes the appointment and ignores missing IDs."""
    appointment = appointment_factory()
    await repository.save(appointment)

    await repository.delete(appointment.id)
    await repository.delete(appointment.id)
    await repository.delete(AppointmentId.generate())

    assert await repository.find_by_id(appointment.id) is None
    assert await repository.count() == 0


# MongoDB repository


def make_mongo_repository() -> tuple[MongoAppointmentRepository, MagicMock]:
    collection = MagicMock()
    collection.replace_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)

    mongo_client = MagicMock()
    mongo_client.get_collection.return_value = collection
    return MongoAppointmentRepository(mongo_client), collection


def make_cursor(documents: list[dict]) -> MagicMock:
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=documents)
    return cursor


def test_version_filter() -> None:
    assert version_filter("abc", 0) == {"_id": "abc", "version": {"$in": [0, None]}}
    assert version_filter("abc", 4) == {"_id": "abc", "version": 4}


@pytest.mark.asyncio
async def test_mongo_save_replaces_with_version(appointment_factory) -> None:
    """Test save issues a versioned replace-or-insert and marks the aggregate persisted."""
    repository, collection = make_mongo_repository()
    appointment = appointment_factory()

    await repository.save(appointment)

    collection.replace_one.assert_awaited_once()
    filter_, replacement = collection.replace_one.await_args.args
    assert filter_ == version_filter(appointment.id.value, 0)
    assert replacement["version"] == 1
    assert replacement["status"] == "SCHEDULED"
    assert "_id" not in replacement
    assert collection.replace_one.await_args.kwargs == {"upsert": True}
    assert appointment.version == 1


@pytest.mark.asyncio
async def test_mongo_save_writes_whole_document(appointment_factory, now: datetime) -> None:
    """Test the stored document is replaced, never merged with stale fields."""
    repository, collection = make_mongo_repository()
    appointment = appointment_factory(version=1)
    appointment.confirm(now=now)

    await repository.save(appointment)

    _, replacement = collection.replace_one.await_args.args
    expected = AppointmentMapper.to_document(appointment)
    del expected["_id"]
    assert replacement == {**expected, "version": 2}
    assert not any(key.startswith("$") for key in replacement)
    assert appointment.version == 2


@pytest.mark.asyncio
async def test_mongo_save_duplicate_key_is_conflict(appointment_factory) -> None:
    repository, collection = make_mongo_repository()
    collection.replace_one.side_effect = DuplicateKeyError("E11000 duplicate key error")
    appointment = appointment_factory(version=2)

    with pytest.raises(ConflictException) as exc_info:
        await repository.save(appointment)

    assert exc_info.value.details["expectedVersion"] == 2
    assert appointment.version == 2


@pytest.mark.asyncio
async def test_mongo_save_store_unavailable(appointment_factory) -> None:
    repository, collection = make_mongo_repository()
    collection.replace_one.side_effect = ServerSelectionTimeoutError("no servers")

    with pytest.raises(InfrastructureException):
        await repository.save(appointment_factory())


@pytest.mark.asyncio
async def test_mongo_find_by_id(appointment_factory) -> None:
    repository, collection = make_mongo_repository()
    appointment = appointment_factory()
    collection.find_one.return_value = {
        **AppointmentMapper.to_document(appointment),
        "version": 5,
    }

    found = await repository.find_by_id(appointment.id)

    collection.find_one.assert_awaited_once_with({"_id": appointment.id.value})
    assert isinstance(found, Appointment)
    assert found.version == 5

    collection.find_one.return_value = None
    assert await repository.find_by_id(appointment.id) is None


@pytest.mark.asyncio
async def test_mongo_find_by_email_query(appointment_factory) -> None:
    repository, collection = make_mongo_repository()
    cursor = make_cursor([AppointmentMapper.to_document(appointment_factory())])
    collection.find.return_value = cursor

    result = await repository.find_by_email("Jane@X.com")

    collection.find.assert_called_once_with({"patientEmail": "jane@x.com"})
    cursor.sort.assert_called_once_with("appointmentDate", DESCENDING)
    assert len(result) == 1


@pytest.mark.asyncio
async def test_mongo_find_upcoming_query() -> None:
    """Test the upcoming query filters by status and date and clamps the limit."""
    repository, collection = make_mongo_repository()
    cursor = make_cursor([])
    collection.find.return_value = cursor

    assert await repository.find_upcoming(limit=250) == []

    query = collection.find.call_args.args[0]
    assert query["status"] == {"$in": ["SCHEDULED", "CONFIRMED"]}
    assert "$gte" in query["appointmentDate"]
    cursor.sort.assert_called_once_with("appointmentDate", ASCENDING)
    cursor.limit.assert_called_once_with(100)


@pytest.mark.asyncio
async def test_mongo_delete_and_count() -> None:
    repository, collection = make_mongo_repository()
    collection.count_documents.return_value = 7
    appointment_id = AppointmentId.generate()

    await repository.delete(appointment_id)

    collection.delete_one.assert_awaited_once_with({"_id": appointment_id.value})
    assert await repository.count() == 7
