"""Protocolo do cliente da API do Mercado Livre."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.domain.notifications import MissedFeedsPage


class MercadoLivreApiProtocol(ABC):
    """Leituras necessárias ao processamento de tópicos e à recuperação.

    Cada chamada recebe o access_token do tenant; o cliente não guarda
    credenciais entre chamadas.
    """

    @abstractmethod
    async def get_order(self, order_id: str, access_token: str) -> dict[str, Any]:
        """Busca pedido por ID."""

    @abstractmethod
    async def get_item(self, item_id: str, access_token: str) -> dict[str, Any]:
        """Busca anúncio por ID."""

    @abstractmethod
    async def get_question(self, question_id: str, access_token: str) -> dict[str, Any]:
        """Busca pergunta por ID."""

    @abstractmethod
    async def get_message(self, message_id: str, access_token: str) -> dict[str, Any]:
        """Busca mensagem pós-venda por ID."""

    @abstractmethod
    async def get_missed_feeds(
        self,
        app_id: str,
        access_token: str,
        *,
        limit: int,
        offset: int,
        topic: str | None = None,
    ) -> MissedFeedsPage:
        """Busca uma página de notificações não entregues.

        Args:
            app_id: ID da aplicação
            access_token: Token do tenant
            limit: Tamanho da página
            offset: Deslocamento
            topic: Filtro opcional por tópico

        Returns:
            MissedFeedsPage com feeds e paginação.
        """
