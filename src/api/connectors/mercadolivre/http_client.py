"""Cliente HTTP especializado para a API do Mercado Livre.

Estende HttpClient genérico com:
- Autenticação Bearer por chamada (token do tenant, nunca logado)
- Conversão de falhas HTTP em MarketplaceApiError
- Normalização da resposta de missed feeds em MissedFeedsPage
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from api.connectors.mercadolivre.http_base import HttpClient, HttpClientConfig, HttpError
from app.domain.notifications import MissedFeedsPage
from app.protocols.marketplace_client import MercadoLivreApiProtocol
from utils.errors import MarketplaceApiError

if TYPE_CHECKING:
    import httpx

    from config.settings import MercadoLivreSettings

logger: logging.Logger = logging.getLogger(__name__)


class MercadoLivreHttpClient(HttpClient, MercadoLivreApiProtocol):
    """Cliente das leituras usadas pelo pipeline de notificações.

    Args:
        base_url: URL base da API (ex: https://api.mercadolibre.com)
        config: Configuração HTTP base
        transport: Transport httpx opcional (testes)
    """

    def __init__(
        self,
        base_url: str,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, transport)
        self._base_url = base_url.rstrip("/")

    async def get_order(self, order_id: str, access_token: str) -> dict[str, Any]:
        return await self._get_json(f"/orders/{quote(order_id, safe='')}", access_token)

    async def get_item(self, item_id: str, access_token: str) -> dict[str, Any]:
        return await self._get_json(f"/items/{quote(item_id, safe='')}", access_token)

    async def get_question(self, question_id: str, access_token: str) -> dict[str, Any]:
        return await self._get_json(f"/questions/{quote(question_id, safe='')}", access_token)

    async def get_message(self, message_id: str, access_token: str) -> dict[str, Any]:
        return await self._get_json(
            f"/messages/{quote(message_id, safe='')}",
            access_token,
            params={"tag": "post_sale"},
        )

    async def get_missed_feeds(
        self,
        app_id: str,
        access_token: str,
        *,
        limit: int,
        offset: int,
        topic: str | None = None,
    ) -> MissedFeedsPage:
        params: dict[str, Any] = {"app_id": app_id, "limit": limit, "offset": offset}
        if topic:
            params["topic"] = topic
        data = await self._get_json("/missed_feeds", access_token, params=params)

        # A API devolve a lista em "messages"; versões antigas usavam "feeds"
        feeds = data.get("feeds", data.get("messages", []))
        if not isinstance(feeds, list):
            raise MarketplaceApiError("missed_feeds_invalid_payload")
        paging = data.get("paging")
        if not isinstance(paging, dict):
            # Sem bloco de paginação: o total, quando existe, vem no topo
            total = data.get("total")
            paging = {"total": total} if isinstance(total, int) and total >= 0 else {}
        return MissedFeedsPage.model_validate(
            {
                "feeds": [feed for feed in feeds if isinstance(feed, dict)],
                "paging": paging,
            }
        )

    @staticmethod
    def _auth_headers(access_token: str) -> dict[str, str]:
        if not access_token or not access_token.strip():
            raise ValueError("access_token não pode ser vazio")
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }

    async def _get_json(
        self,
        path: str,
        access_token: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET autenticado que devolve o corpo JSON.

        Raises:
            MarketplaceApiError: Status >= 400, retries esgotados ou JSON inválido.
        """
        url = f"{self._base_url}{path}"
        endpoint = path.split("?", 1)[0].split("/")[1]
        try:
            response = await self.get(url, params=params, headers=self._auth_headers(access_token))
        except HttpError as exc:
            logger.warning(
                "ml_api_request_failed",
                extra={"endpoint": endpoint, "status_code": exc.status_code},
            )
            raise MarketplaceApiError(str(exc), status_code=exc.status_code) from exc

        if response.status_code >= 400:
            logger.warning(
                "ml_api_error_status",
                extra={"endpoint": endpoint, "status_code": response.status_code},
            )
            raise MarketplaceApiError("ml_api_error_status", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise MarketplaceApiError("ml_api_invalid_json", response.status_code) from exc
        if not isinstance(data, dict):
            raise MarketplaceApiError("ml_api_unexpected_payload", response.status_code)

        logger.debug(
            "ml_api_request_ok",
            extra={"endpoint": endpoint, "status_code": response.status_code},
        )
        return data


def create_mercadolivre_http_client(
    settings: MercadoLivreSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MercadoLivreHttpClient:
    """Factory para criar cliente Mercado Livre com config padrão.

    Args:
        settings: MercadoLivreSettings opcional. Se None, carrega do ambiente.
        transport: Transport httpx opcional (testes)
    """
    # Import local para evitar dependência circular
    from config.settings import get_mercadolivre_settings

    mercadolivre = settings or get_mercadolivre_settings()
    config = HttpClientConfig(
        timeout_seconds=mercadolivre.request_timeout_seconds,
        max_retries=mercadolivre.max_retries,
    )
    return MercadoLivreHttpClient(
        base_url=mercadolivre.api_base_url,
        config=config,
        transport=transport,
    )
