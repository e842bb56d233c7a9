"""Protocolos e contratos do core da aplicação."""

from .alert_sender import AlertSenderProtocol
from .cache_store import AsyncCacheStoreProtocol
from .marketplace_client import MercadoLivreApiProtocol

__all__ = [
    "AlertSenderProtocol",
    "AsyncCacheStoreProtocol",
    "MercadoLivreApiProtocol",
]
