"""RabbitMQ client configuration and utilities."""

import aio_pika
import structlog
from aio_pika.abc import AbstractChannel, AbstractExchange, AbstractRobustConnection
from aio_pika.exceptions import AMQPError

from app.core.exceptions import InfrastructureException
from app.messaging.topology import declare_topology

logger = structlog.get_logger(__name__)


class RabbitMQClient:
    """
    Connection handle for the appointment event broker.

    Owns one robust connection and one channel with publisher confirms.
    Created once at startup and passed to event publishers.
    """

    def __init__(self, uri: str, reminders_binding: str | None = None):
        """Initialize handle with connection parameters. Does not connect."""
        self.uri = uri
        self.reminders_binding = reminders_binding
        self._connection: AbstractRobustConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchange: AbstractExchange | None = None

    async def connect(self) -> None:
        """
        Connect to the broker and declare the appointment topology.

        Raises:
            InfrastructureException: If the broker cannot be reached
        """
        if self._connection is not None and self._channel is not None:
            return

        try:
            self._connection = await aio_pika.connect_robust(self.uri)
            self._channel = await self._connection.channel(publisher_confirms=True)
            logger.info("rabbitmq_connected")

            self._exchange = await declare_topology(self._channel, self.reminders_binding)
        except (AMQPError, OSError) as e:
            logger.error("rabbitmq_connection_failed", error=str(e))
            await self.disconnect()
            raise InfrastructureException(f"RabbitMQ connection failed: {e}") from e

    def get_exchange(self) -> AbstractExchange:
        """
        Get the appointments exchange.

        Raises:
            InfrastructureException: If ``connect`` has not been awaited
        """
        if self._exchange is None or self._channel is None or self._channel.is_closed:
            raise InfrastructureException("RabbitMQ not connected. Call connect() first.")
        return self._exchange

    async def disconnect(self) -> None:
        """Close channel and connection."""
        try:
            if self._channel is not None and not self._channel.is_closed:
                await self._channel.close()
            if self._connection is not None and not self._connection.is_closed:
                await self._connection.close()
            logger.info("rabbitmq_disconnected")
        except AMQPError as e:
            logger.error("rabbitmq_disconnect_failed", error=str(e))
        finally:
            self._connection = None
            self._channel = None
            self._exchange = None

    async def health_check(self) -> bool:
        """Check if the connection and channel are open."""
        return (
            self._connection is not None
            and not self._connection.is_closed
            and self._channel is not None
            and not self._channel.is_closed
        )
