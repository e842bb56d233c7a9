"""Protocolo de envio de alertas de segurança."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.security_events import SecurityAlert


class AlertSenderProtocol(ABC):
    """Entrega alertas a canais externos (webhook, email, chat)."""

    @abstractmethod
    async def send(self, alert: SecurityAlert) -> None:
        """Envia alerta para todos os destinos configurados.

        Raises:
            Exception: Falhas de entrega propagam; quem agenda o envio
                registra em log e descarta.
        """
