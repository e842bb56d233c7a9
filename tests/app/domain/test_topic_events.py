"""Testes da conversão tópico + resource em evento tipado."""

from __future__ import annotations

import pytest

from app.domain.topic_events import (
    ItemEvent,
    MessageEvent,
    OrderEvent,
    QuestionEvent,
    UnrecognizedEvent,
    extract_resource_id,
    to_topic_event,
)


@pytest.mark.parametrize(
    ("resource", "expected"),
    [
        ("/orders/2000003508419013", "2000003508419013"),
        ("/items/MLB123?attributes=id", "MLB123"),
        ("/questions/555/", "555"),
        ("/", ""),
        ("", ""),
    ],
)
def test_extract_resource_id(resource: str, expected: str) -> None:
    assert extract_resource_id(resource) == expected


@pytest.mark.parametrize(
    ("topic", "resource", "expected"),
    [
        ("orders_v2", "/orders/1", OrderEvent(order_id="1")),
        ("items", "/items/MLB1", ItemEvent(item_id="MLB1")),
        ("questions", "/questions/7", QuestionEvent(question_id="7")),
        ("messages", "/messages/abc", MessageEvent(message_id="abc")),
    ],
)
def test_known_topics(topic: str, resource: str, expected) -> None:
    assert to_topic_event(topic, resource) == expected


def test_unsupported_topic() -> None:
    event = to_topic_event("shipments", "/shipments/1")

    assert event == UnrecognizedEvent(topic="shipments", resource="/shipments/1")
    assert event.kind == "unrecognized"


def test_known_topic_without_id() -> None:
    event = to_topic_event("orders_v2", "/")

    assert isinstance(event, UnrecognizedEvent)
    assert event.reason == "missing_resource_id"
