"""Tests for the order.events publisher."""

import pytest
from kafka.errors import KafkaError

from furever_orders.errors import DependencyFailure
from furever_orders.kafka import producer


class BrokenProducer:
    def send(self, topic, key=None, value=None):
        raise KafkaError("no brokers available")

    def flush(self, timeout=None):
        pass


def test_keys_by_order_or_product(monkeypatch):
    sent = []
    monkeypatch.setattr(producer, "send", lambda topic, key, value: sent.append((topic, key, value)))

    producer.publish_order_event({"type": "EmailQueued", "order_id": "abc"})
    producer.publish_order_event({"type": "StockAlertRaised", "product_id": "P3"})

    assert [(t, k) for t, k, _ in sent] == [("order.events", "abc"), ("order.events", "P3")]


def test_broker_errors_become_dependency_failures(monkeypatch):
    monkeypatch.setattr(producer, "get_producer", lambda: BrokenProducer())
    with pytest.raises(DependencyFailure) as exc:
        producer.send("order.events", "abc", {"type": "EmailQueued"})
    assert exc.value.dependency == "kafka"
