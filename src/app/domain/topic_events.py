"""Eventos tipados por tópico, derivados do `resource` da notificação."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class OrderEvent:
    order_id: str
    kind: Literal["order"] = "order"


@dataclass(frozen=True, slots=True)
class ItemEvent:
    item_id: str
    kind: Literal["item"] = "item"


@dataclass(frozen=True, slots=True)
class QuestionEvent:
    question_id: str
    kind: Literal["question"] = "question"


@dataclass(frozen=True, slots=True)
class MessageEvent:
    message_id: str
    kind: Literal["message"] = "message"


@dataclass(frozen=True, slots=True)
class UnrecognizedEvent:
    """Tópico sem handler (ex: shipments, payments) ou resource sem ID."""

    topic: str
    resource: str
    reason: str = "unsupported_topic"
    kind: Literal["unrecognized"] = "unrecognized"


TopicEvent = OrderEvent | ItemEvent | QuestionEvent | MessageEvent | UnrecognizedEvent


def extract_resource_id(resource: str) -> str:
    """Extrai o ID da entidade do último segmento do resource.

    Exemplos:
        "/orders/2000003508419013" -> "2000003508419013"
        "/items/MLB123?attributes=id" -> "MLB123"
    """
    path = resource.split("?", 1)[0].strip()
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""


def to_topic_event(topic: str, resource: str) -> TopicEvent:
    """Converte tópico + resource na variante tipada correspondente."""
    entity_id = extract_resource_id(resource)
    if topic in ("orders_v2", "items", "questions", "messages") and not entity_id:
        return UnrecognizedEvent(topic=topic, resource=resource, reason="missing_resource_id")

    if topic == "orders_v2":
        return OrderEvent(order_id=entity_id)
    if topic == "items":
        return ItemEvent(item_id=entity_id)
    if topic == "questions":
        return QuestionEvent(question_id=entity_id)
    if topic == "messages":
        return MessageEvent(message_id=entity_id)
    return UnrecognizedEvent(topic=topic, resource=resource)


__all__ = [
    "ItemEvent",
    "MessageEvent",
    "OrderEvent",
    "QuestionEvent",
    "TopicEvent",
    "UnrecognizedEvent",
    "extract_resource_id",
    "to_topic_event",
]
