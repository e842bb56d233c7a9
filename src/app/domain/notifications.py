"""Modelos de domínio das notificações do Mercado Livre.

`WebhookNotification` é o envelope recebido via webhook (push) e
`MissedFeed` a variante devolvida pela API de missed feeds (pull). Os
eventos tipados por tópico são derivados do campo `resource` e consumidos
pelo TopicProcessor.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_validator,
)

WebhookTopic = Literal[
    "orders_v2",
    "items",
    "questions",
    "messages",
    "shipments",
    "payments",
]


class WebhookNotification(BaseModel):
    """Envelope de notificação entregue pelo Mercado Livre.

    Campos desconhecidos são ignorados; campos obrigatórios são validados
    com tipos estritos (ex: `user_id` como string é rejeitado).
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: StrictStr | None = Field(default=None, alias="_id", description="ID do feed.")
    user_id: StrictInt = Field(..., description="Conta do vendedor no marketplace.")
    topic: WebhookTopic = Field(..., description="Categoria do evento.")
    resource: StrictStr = Field(..., min_length=1, description="Recurso afetado.")
    application_id: StrictStr = Field(..., min_length=1, description="ID da aplicação.")
    attempts: StrictInt = Field(..., ge=0, description="Tentativa de entrega.")
    sent: datetime = Field(..., description="Envio pelo marketplace.")
    received: datetime = Field(..., description="Recebimento pelo marketplace.")

    @field_validator("application_id", mode="before")
    @classmethod
    def _normalize_application_id(cls, value: Any) -> Any:
        # O marketplace envia como número; a configuração guarda como texto
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def notification_id(self) -> str:
        """ID estável da notificação para markers de idempotência.

        Usa `_id` quando presente; senão deriva um hash SHA-256 dos campos
        que identificam a entrega original.
        """
        if self.id:
            return self.id
        raw = f"{self.user_id}|{self.topic}|{self.resource}|{self.sent.isoformat()}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


class MissedFeed(WebhookNotification):
    """Feed devolvido pela API de missed feeds (pull).

    Mesmo envelope do webhook, mas `received` é opcional: a API omite o
    campo em feeds que nunca chegaram ao endpoint.
    """

    received: datetime | None = Field(default=None, description="Recebimento pelo marketplace.")


class MissedFeedsPaging(BaseModel):
    """Paginação da API de missed feeds.

    `total` fica None quando a resposta não informa o total; nesse caso a
    paginação segue até uma página vazia.
    """

    model_config = ConfigDict(extra="ignore")

    total: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=0, ge=0)


class MissedFeedsPage(BaseModel):
    """Página retornada pela API de missed feeds.

    Feeds com tópicos fora da allowlist chegam como dict cru e são
    convertidos item a item pelo serviço de recuperação.
    """

    model_config = ConfigDict(extra="ignore")

    feeds: list[dict[str, Any]] = Field(default_factory=list)
    paging: MissedFeedsPaging = Field(default_factory=MissedFeedsPaging)


@dataclass(frozen=True, slots=True)
class RecoveryResult:
    """Resumo de uma execução de recuperação."""

    processed: int
    failed: int
    skipped: int
    total: int
    duration_ms: int

    def as_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "skipped": self.skipped,
            "total": self.total,
            "duration_ms": self.duration_ms,
        }


__all__ = [
    "MissedFeed",
    "MissedFeedsPage",
    "MissedFeedsPaging",
    "RecoveryResult",
    "WebhookNotification",
    "WebhookTopic",
]
