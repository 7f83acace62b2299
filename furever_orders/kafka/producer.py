from kafka import KafkaProducer
from kafka.errors import KafkaError
import json
import logging
from furever_orders.core.config import settings
from furever_orders.errors import DependencyFailure

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
    try:
        p = get_producer()
        p.send(topic, key=key, value=value)
        p.flush(5)
    except KafkaError as e:
        raise DependencyFailure("kafka", str(e)) from e

def publish_order_event(event: dict):
    """Emit to order.events (configurable), keyed by order or product id."""
    key = event.get("order_id") or event.get("product_id") or ""
    send(settings.TOPIC_ORDER_EVENTS, key=str(key), value=event)
    logger.info("Published %s for %s to %s", event.get("type"), key, settings.TOPIC_ORDER_EVENTS)
