
import json
import logging
from kafka import KafkaProducer
from storefront.core.config import settings

logger = logging.getLogger(__name__)

_producer = None

def get_producer() -> KafkaProducer:
    global _producer
    if _producer is None:
        _producer = KafkaProducer(
            bootstrap_servers=[settings.KAFKA_BOOTSTRAP],
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            key_serializer=lambda v: (v.encode("utf-8") if isinstance(v, str) else v),
            linger_ms=5,
            retries=3,
        )
    return _producer

def send(topic: str, key: str, value: dict):
    p = get_producer()
    p.send(topic, key=key, value=value)
    p.flush(5)

def emit_order_event(event: dict) -> bool:
    """Publish to order.events. Never raises; returns whether it was sent."""
    if not settings.EVENTS_ENABLED:
        return False
    try:
        send(settings.TOPIC_ORDER_EVENTS, key=str(event.get("order_id", "")), value=event)
        return True
    except Exception:
        logger.exception("Failed to publish %s for order %s", event.get("type"), event.get("order_id"))
        return False
