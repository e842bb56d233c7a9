"""Factories de clientes externos — Redis."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)


def create_async_redis_client(
    redis_url: str,
    socket_timeout_seconds: float = 5.0,
) -> AsyncRedis:
    """Cria cliente Redis assíncrono.

    A conexão é aberta de forma preguiçosa no primeiro comando.

    Args:
        redis_url: URL de conexão (REDIS_URL)
        socket_timeout_seconds: Timeout de socket por operação

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)

    client: AsyncRedis = AsyncRedis.from_url(
        redis_url,
        decode_responses=False,
        socket_timeout=socket_timeout_seconds,
        socket_connect_timeout=socket_timeout_seconds,
    )
    host = client.connection_pool.connection_kwargs.get("host", "unknown")
    logger.info("async_redis_client_created", extra={"host": host})
    return client


async def close_async_redis_client(client: AsyncRedis | None) -> None:
    """Fecha o cliente Redis (aclose nas versões novas, close nas antigas)."""
    if client is None:
        return
    close_async = getattr(client, "aclose", None)
    if callable(close_async):
        await close_async()
        return
    await client.close()
