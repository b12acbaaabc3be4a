"""Startup and shutdown of the store and broker handles."""

import structlog
from fastapi import FastAPI

from app.config import Settings
from app.core.mongodb import MongoDBClient
from app.core.rabbitmq import RabbitMQClient
from app.messaging.event_publisher import LoggingEventPublisher, RabbitMQEventPublisher
from app.repositories.memory_appointment_repository import MemoryAppointmentRepository
from app.repositories.mongo_appointment_repository import MongoAppointmentRepository

logger = structlog.get_logger(__name__)


async def initialize_infrastructure(app: FastAPI, settings: Settings) -> None:
    """
    Connect to MongoDB and RabbitMQ and store the handles on ``app.state``.

    Args:
        app: FastAPI application
        settings: Application settings

    Raises:
        InfrastructureException: If a configured backend cannot be reached
    """
    app.state.mongo_client = None
    app.state.rabbitmq_client = None

    if settings.storage_backend == "mongodb":
        mongo_client = MongoDBClient(
            settings.mongodb_uri,
            settings.mongodb_database,
            timeout_ms=settings.mongodb_timeout_ms,
        )
        await mongo_client.connect()
        app.state.mongo_client = mongo_client
        app.state.appointment_repository = MongoAppointmentRepository(mongo_client)
    else:
        logger.warning("using_memory_storage", note="Appointments are lost on restart")
        app.state.appointment_repository = MemoryAppointmentRepository()

    if settings.event_publishing_enabled:
        rabbitmq_client = RabbitMQClient(
            settings.rabbitmq_uri,
            reminders_binding=settings.rabbitmq_reminders_binding,
        )
        await rabbitmq_client.connect()
        app.state.rabbitmq_client = rabbitmq_client
        app.state.event_publisher = RabbitMQEventPublisher(rabbitmq_client)
    else:
        logger.warning("event_publishing_disabled", note="Domain events are only logged")
        app.state.event_publisher = LoggingEventPublisher()

    logger.info("infrastructure_ready", storage_backend=settings.storage_backend)


async def shutdown_infrastructure(app: FastAPI) -> None:
    """Close the broker connection, then the store connection."""
    rabbitmq_client = getattr(app.state, "rabbitmq_client", None)
    if rabbitmq_client is not None:
        await rabbitmq_client.disconnect()

    mongo_client = getattr(app.state, "mongo_client", None)
    if mongo_client is not None:
        await mongo_client.disconnect()

    logger.info("infrastructure_shut_down")
