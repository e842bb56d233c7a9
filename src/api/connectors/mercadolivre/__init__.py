"""Conector Mercado Livre - adapter de borda para a API e o webhook.

Responsabilidades:
- Webhook (autenticação, parsing do envelope)
- HTTP client para a API (pedidos, anúncios, perguntas, mensagens, missed feeds)
"""

from .http_base import HttpClient, HttpClientConfig, HttpError
from .http_client import MercadoLivreHttpClient, create_mercadolivre_http_client

__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "MercadoLivreHttpClient",
    "create_mercadolivre_http_client",
]
