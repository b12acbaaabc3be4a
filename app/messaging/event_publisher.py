"""Delivery of appointment domain events to the message broker."""

import asyncio
import json
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import UTC, datetime

import structlog
from aio_pika import DeliveryMode, Message
from aio_pika.exceptions import AMQPError, ChannelInvalidStateError

from app.core.exceptions import EventPublishError, InfrastructureException
from app.core.rabbitmq import RabbitMQClient
from app.domain.events import DomainEvent
from app.messaging.topology import routing_key_for

logger = structlog.get_logger(__name__)


class EventPublisher(ABC):
    """Publishes domain events one at a time."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Deliver one event.

        Raises:
            EventPublishError: If the event could not be delivered
        """

    async def publish_batch(self, events: Iterable[DomainEvent]) -> None:
        """
        Publish events strictly in order, stopping at the first failure.

        Events before the failing one stay delivered and the rest are not
        attempted, so consumers must tolerate gaps and be idempotent on
        ``eventId``.

        Args:
            events: Events drained from an aggregate

        Raises:
            EventPublishError: From the first event that failed
        """
        for event in events:
            await self.publish(event)


class RabbitMQEventPublisher(EventPublisher):
    """Publishes events as persistent JSON messages to the appointments exchange."""

    def __init__(self, rabbitmq_client: RabbitMQClient, lock: asyncio.Lock | None = None):
        """
        Initialize publisher.

        Args:
            rabbitmq_client: Connected broker handle
            lock: Lock serializing publishes on the shared channel; share one
                lock between all publishers that use the same client
        """
        self.rabbitmq_client = rabbitmq_client
        self._lock = lock or asyncio.Lock()

    @staticmethod
    def serialize(event: DomainEvent) -> bytes:
        """Encode an event in the wire format."""
        return json.dumps(event.to_message()).encode("utf-8")

    def build_message(self, event: DomainEvent) -> Message:
        return Message(
            body=self.serialize(event),
            content_type="application/json",
            delivery_mode=DeliveryMode.PERSISTENT,
            timestamp=datetime.now(UTC),
            message_id=event.event_id,
            type=event.event_type,
        )

    async def publish(self, event: DomainEvent) -> None:
        """
        Publish one event and wait for the broker confirm.

        Raises:
            EventPublishError: If the broker is not connected, nacks the
                message, or the channel fails
        """
        routing_key = routing_key_for(event.event_type)

        try:
            exchange = self.rabbitmq_client.get_exchange()
        except InfrastructureException as e:
            raise EventPublishError(event.event_type, event.event_id, str(e)) from e

        message = self.build_message(event)

        try:
            async with self._lock:
                await exchange.publish(message, routing_key=routing_key)
        except (AMQPError, ChannelInvalidStateError, ConnectionError) as e:
            logger.error(
                "event_publish_failed",
                event_type=event.event_type,
                event_id=event.event_id,
                routing_key=routing_key,
                error=str(e),
            )
            raise EventPublishError(event.event_type, event.event_id, str(e)) from e

        logger.info(
            "event_published",
            event_type=event.event_type,
            event_id=event.event_id,
            aggregate_id=event.aggregate_id,
            routing_key=routing_key,
        )


class LoggingEventPublisher(EventPublisher):
    """Logs events instead of sending them, for runs without a broker."""

    async def publish(self, event: DomainEvent) -> None:
        logger.info(
            "event_publishing_disabled",
            event_type=event.event_type,
            event_id=event.event_id,
            aggregate_id=event.aggregate_id,
            routing_key=routing_key_for(event.event_type),
        )
