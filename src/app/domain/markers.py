"""Marker de processamento (idempotência) de notificações."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MarkerStatus = Literal["pending", "processing", "completed", "failed"]


class ProcessedMarker(BaseModel):
    """Registro de idempotência guardado em `processed_feed:{id}`."""

    model_config = ConfigDict(extra="ignore")

    status: MarkerStatus = Field(..., description="Estado do processamento.")
    processed_at: datetime = Field(..., description="Última transição de estado.")
    topic: str = Field(default="", description="Tópico da notificação.")
    resource: str = Field(default="", description="Recurso da notificação.")
    attempts: int = Field(default=0, ge=0, description="Tentativas já realizadas.")
    source: str = Field(default="webhook", description="Origem: webhook ou recovery.")
    error: str | None = Field(default=None, description="Tipo do último erro.")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


__all__ = ["MarkerStatus", "ProcessedMarker"]
