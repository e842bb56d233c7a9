"""Composition root — cria os serviços uma vez e os conecta.

Todos os serviços com estado (rate limiter, sink de eventos, registro de
tasks em background) vivem no ServiceContainer, construído no startup e
guardado em `app.state.container`. Nada aqui é singleton de módulo.

Referência: app/app.py (lifespan) e scripts/run_missed_feeds_recovery.py
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from api.connectors.mercadolivre import create_mercadolivre_http_client
from api.connectors.mercadolivre.webhook import WebhookAuthenticator
from app.bootstrap.clients import close_async_redis_client, create_async_redis_client
from app.coordinators.mercadolivre.deadline_dispatcher import DeadlineDispatcher
from app.infra.alerts import HttpAlertSender
from app.infra.stores import MemoryCacheStore, RedisCacheStore
from app.services import (
    MissedFeedsRecoveryService,
    ProcessedMarkerStore,
    RateLimitPolicies,
    SecurityEventSink,
    SlidingWindowRateLimiter,
    TenantCredentialsResolver,
    TopicProcessor,
)
from app.use_cases.mercadolivre import ProcessNotificationUseCase
from config.settings import (
    AlertSettings,
    BaseSettings,
    CacheSettings,
    MercadoLivreSettings,
    RateLimitSettings,
    RecoverySettings,
    get_alert_settings,
    get_base_settings,
    get_cache_settings,
    get_mercadolivre_settings,
    get_rate_limit_settings,
    get_recovery_settings,
)

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

    from app.protocols import (
        AlertSenderProtocol,
        AsyncCacheStoreProtocol,
        MercadoLivreApiProtocol,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeSettings:
    """Settings agrupadas usadas na montagem do container."""

    base: BaseSettings
    cache: CacheSettings
    mercadolivre: MercadoLivreSettings
    rate_limit: RateLimitSettings
    recovery: RecoverySettings
    alerts: AlertSettings


def load_runtime_settings() -> RuntimeSettings:
    """Carrega todas as settings do ambiente (cacheadas por getter)."""
    return RuntimeSettings(
        base=get_base_settings(),
        cache=get_cache_settings(),
        mercadolivre=get_mercadolivre_settings(),
        rate_limit=get_rate_limit_settings(),
        recovery=get_recovery_settings(),
        alerts=get_alert_settings(),
    )


@dataclass
class ServiceContainer:
    """Serviços do processo, compartilhados por todas as requisições."""

    settings: RuntimeSettings
    cache: AsyncCacheStoreProtocol
    api: MercadoLivreApiProtocol
    security_events: SecurityEventSink
    rate_limits: RateLimitPolicies
    authenticator: WebhookAuthenticator
    dispatcher: DeadlineDispatcher
    markers: ProcessedMarkerStore
    process_notification: ProcessNotificationUseCase
    recovery: MissedFeedsRecoveryService
    redis_client: AsyncRedis | None = field(default=None, repr=False)

    async def aclose(self, drain_timeout_seconds: float = 30.0) -> None:
        """Drena tasks em background e fecha conexões (shutdown)."""
        cancelled = await self.dispatcher.background.drain(drain_timeout_seconds)
        cancelled += await self.security_events.drain_alerts(drain_timeout_seconds)
        if cancelled:
            logger.warning("background_tasks_cancelled", extra={"count": cancelled})
        await close_async_redis_client(self.redis_client)


def create_cache_store(
    settings: RuntimeSettings,
) -> tuple[AsyncCacheStoreProtocol, AsyncRedis | None]:
    """Cria o cache conforme CACHE_BACKEND.

    Returns:
        (store, cliente Redis ou None para o backend em memória)
    """
    if settings.cache.backend == "redis":
        client = create_async_redis_client(
            settings.base.redis_url,
            settings.cache.operation_timeout_seconds,
        )
        logger.info("cache_store_created", extra={"backend": "redis"})
        return RedisCacheStore(client), client

    if not settings.base.is_development:
        logger.warning(
            "memory_store_in_non_dev",
            extra={"backend": "memory", "environment": settings.base.environment},
        )
    logger.info("cache_store_created", extra={"backend": "memory"})
    return MemoryCacheStore(), None


def build_container(
    settings: RuntimeSettings | None = None,
    *,
    cache: AsyncCacheStoreProtocol | None = None,
    api: MercadoLivreApiProtocol | None = None,
    alert_sender: AlertSenderProtocol | None = None,
) -> ServiceContainer:
    """Monta o grafo de serviços.

    Args:
        settings: Settings do runtime (None = carrega do ambiente)
        cache: Cache já criado (testes); None = conforme CACHE_BACKEND
        api: Cliente da API (testes); None = cliente HTTP real
        alert_sender: Destino de alertas; None = HTTP quando há destinos

    Returns:
        ServiceContainer pronto para uso.
    """
    runtime = settings or load_runtime_settings()
    redis_client = None
    if cache is None:
        cache, redis_client = create_cache_store(runtime)
    if api is None:
        api = create_mercadolivre_http_client(runtime.mercadolivre)
    if alert_sender is None and runtime.alerts.has_destinations:
        alert_sender = HttpAlertSender(runtime.alerts, runtime.base.environment)

    security_events = SecurityEventSink(
        alert_sender=alert_sender,
        capacity=runtime.alerts.event_buffer_size,
    )
    limiter = SlidingWindowRateLimiter(
        cache,
        whitelist=runtime.rate_limit.whitelist,
        enabled=runtime.rate_limit.enabled,
        store_timeout_seconds=runtime.rate_limit.store_timeout_ms / 1000,
    )
    mercadolivre = runtime.mercadolivre
    authenticator = WebhookAuthenticator(
        secret=mercadolivre.webhook_secret,
        allowed_ips=mercadolivre.allowed_ips,
        require_ip_validation=mercadolivre.require_ip_validation,
        environment=runtime.base.environment,
    )
    dispatcher = DeadlineDispatcher(
        deadline_ms=mercadolivre.webhook_timeout_ms,
        safety_buffer_ms=mercadolivre.deadline_buffer_ms,
    )

    credentials = TenantCredentialsResolver(cache)
    markers = ProcessedMarkerStore(cache, runtime.recovery)
    process_notification = ProcessNotificationUseCase(
        markers=markers,
        processor=TopicProcessor(cache, api, credentials),
    )
    recovery = MissedFeedsRecoveryService(
        cache=cache,
        api=api,
        credentials=credentials,
        use_case=process_notification,
        markers=markers,
        settings=runtime.recovery,
        application_id=mercadolivre.client_id,
    )

    logger.info(
        "service_container_built",
        extra={
            "component": "bootstrap",
            "cache_backend": "redis" if redis_client is not None else type(cache).__name__,
            "alerts_enabled": alert_sender is not None,
            "ip_validation": mercadolivre.require_ip_validation,
        },
    )
    return ServiceContainer(
        settings=runtime,
        cache=cache,
        api=api,
        security_events=security_events,
        rate_limits=RateLimitPolicies(limiter, security_events),
        authenticator=authenticator,
        dispatcher=dispatcher,
        markers=markers,
        process_notification=process_notification,
        recovery=recovery,
        redis_client=redis_client,
    )
