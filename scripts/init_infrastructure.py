"""Script to create MongoDB indexes and declare the RabbitMQ topology."""

import asyncio

from app.config import settings
from app.core.mongodb import MongoDBClient
from app.core.rabbitmq import RabbitMQClient


async def init_infrastructure() -> None:
    """Connect to the configured backends once, provisioning them on connect."""
    if settings.storage_backend == "mongodb":
        mongo_client = MongoDBClient(
            settings.mongodb_uri,
            settings.mongodb_database,
            timeout_ms=settings.mongodb_timeout_ms,
        )
        await mongo_client.connect()
        await mongo_client.disconnect()
        print(f"✓ MongoDB indexes created in '{settings.mongodb_database}'")
    else:
        print("- Skipping MongoDB (STORAGE_BACKEND=memory)")

    if settings.event_publishing_enabled:
        rabbitmq_client = RabbitMQClient(
            settings.rabbitmq_uri,
            reminders_binding=settings.rabbitmq_reminders_binding,
        )
        await rabbitmq_client.connect()
        await rabbitmq_client.disconnect()
        print("✓ RabbitMQ exchange and queues declared")
    else:
        print("- Skipping RabbitMQ (EVENT_PUBLISHING_ENABLED=false)")


if __name__ == "__main__":
    asyncio.run(init_infrastructure())
