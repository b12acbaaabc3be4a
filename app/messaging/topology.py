"""RabbitMQ exchange, queue and routing key layout for appointment events."""

import structlog
from aio_pika import ExchangeType
from aio_pika.abc import AbstractChannel, AbstractExchange

from app.domain.events import APPOINTMENT_CANCELLED, APPOINTMENT_CONFIRMED, APPOINTMENT_CREATED

logger = structlog.get_logger(__name__)

APPOINTMENTS_EXCHANGE = "appointments"

NOTIFICATIONS_QUEUE = "appointment.notifications"
REMINDERS_QUEUE = "appointment.reminders"

NOTIFICATIONS_BINDING = "appointment.*"

ROUTING_KEYS: dict[str, str] = {
    APPOINTMENT_CREATED: "appointment.created",
    APPOINTMENT_CONFIRMED: "appointment.confirmed",
    APPOINTMENT_CANCELLED: "appointment.cancelled",
}
UNKNOWN_ROUTING_KEY = "appointment.unknown"


def routing_key_for(event_type: str) -> str:
    """Map an event type to its routing key."""
    return ROUTING_KEYS.get(event_type, UNKNOWN_ROUTING_KEY)


async def declare_topology(
    channel: AbstractChannel,
    reminders_binding: str | None = None,
) -> AbstractExchange:
    """
    Declare the appointment exchange, queues and bindings.

    The reminders queue is declared but left unbound unless a binding
    pattern is configured; nothing is routed to it by default.

    Args:
        channel: Open channel to declare on
        reminders_binding: Optional routing pattern for the reminders queue

    Returns:
        The durable topic exchange appointment events are published to
    """
    exchange = await channel.declare_exchange(
        APPOINTMENTS_EXCHANGE,
        ExchangeType.TOPIC,
        durable=True,
    )

    notifications = await channel.declare_queue(NOTIFICATIONS_QUEUE, durable=True)
    reminders = await channel.declare_queue(REMINDERS_QUEUE, durable=True)

    await notifications.bind(exchange, routing_key=NOTIFICATIONS_BINDING)

    if reminders_binding:
        await reminders.bind(exchange, routing_key=reminders_binding)
    else:
        logger.warning("reminders_queue_unbound", queue=REMINDERS_QUEUE, exchange=APPOINTMENTS_EXCHANGE)

    logger.info(
        "rabbitmq_topology_declared",
        exchange=APPOINTMENTS_EXCHANGE,
        queues=[NOTIFICATIONS_QUEUE, REMINDERS_QUEUE],
        reminders_binding=reminders_binding,
    )
    return exchange
