"""
Domain event publication to the platform's RabbitMQ topic exchange.

Notification delivery consumes ``rsvp.*`` messages; this service only
publishes them after the attendance change has been committed.
"""
import json
from aio_pika import connect_robust, Message, ExchangeType
from attendance.core.config import settings
from attendance.core.logging import logger

EXCHANGE_NAME = "attendance.events"

_connection = None
_channel = None


async def get_rabbit_connection():
    global _connection, _channel
    if _connection and not _connection.is_closed:
        return _connection, _channel
    _connection = await connect_robust(settings.RABBITMQ_URL)
    _channel = await _connection.channel()
    return _connection, _channel


async def publish_event(routing_key: str, payload: dict):
    if not settings.EVENTS_ENABLED:
        logger.debug(f"Event publishing disabled, dropping {routing_key}")
        return
    _, channel = await get_rabbit_connection()
    exchange = await channel.declare_exchange(EXCHANGE_NAME, ExchangeType.TOPIC, durable=True)
    body = json.dumps(payload).encode()
    message = Message(body, content_type="application/json")
    await exchange.publish(message, routing_key=routing_key)


async def publish_rsvp_event(kind: str, rsvp, action: str, actor_id=None):
    """
    Publish ``rsvp.<kind>`` for a committed RSVP change.

    The change is already durable, so a broker failure is logged and not
    propagated to the request.
    """
    routing_key = f"rsvp.{kind}"
    payload = {
        "type": routing_key,
        "rsvp_id": str(rsvp.id),
        "event_id": str(rsvp.event_id),
        "user_id": str(rsvp.user_id),
        "status": rsvp.status.value,
        "action": action,
        "actor_id": str(actor_id) if actor_id else None,
    }
    try:
        await publish_event(routing_key, payload)
    except Exception as e:
        logger.error(f"Failed to publish {routing_key} for RSVP {rsvp.id}: {e}")
