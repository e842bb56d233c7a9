"""Políticas nomeadas de rate limit.

Compõem o SlidingWindowRateLimiter com chaves e limiares distintos.
Toda negação vira um SecurityEvent `security.rate_limit.exceeded`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.security_events import SecurityEventType, Severity
from app.services.rate_limiter import RateLimitConfig, RateLimitResult

if TYPE_CHECKING:
    from app.services.rate_limiter import SlidingWindowRateLimiter
    from app.services.security_events import SecurityEventSink

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# User-agents usados pelo marketplace nas entregas de notificação
MARKETPLACE_USER_AGENT_MARKERS = ("MercadoLibre", "MercadoPago")

IP_LIMIT = (100, 15 * MINUTE_MS)
USER_LIMIT = (1000, HOUR_MS)
PUBLIC_API_LIMIT = (100, MINUTE_MS)
WEBHOOK_MARKETPLACE_LIMIT = (2000, HOUR_MS)
WEBHOOK_UNKNOWN_LIMIT = (100, 15 * MINUTE_MS)
LOGIN_IP_LIMIT = (10, 15 * MINUTE_MS)
LOGIN_USER_LIMIT = (5, 10 * MINUTE_MS)
USER_DAILY_LIMIT = (5000, DAY_MS)
APP_HOURLY_LIMIT = (1000, HOUR_MS)


def is_marketplace_user_agent(user_agent: str | None) -> bool:
    """True se o user-agent carrega a assinatura do marketplace."""
    if not user_agent:
        return False
    return any(marker in user_agent for marker in MARKETPLACE_USER_AGENT_MARKERS)


class RateLimitPolicies:
    """Políticas por IP, usuário, endpoint, webhook, login e teto diário.

    Args:
        limiter: Limiter de janela deslizante
        security_events: Sink que recebe as negações (opcional)
    """

    def __init__(
        self,
        limiter: SlidingWindowRateLimiter,
        security_events: SecurityEventSink | None = None,
    ) -> None:
        self._limiter = limiter
        self._security_events = security_events

    def _on_limit_reached(
        self,
        scope: str,
        *,
        client_ip: str | None = None,
        user_id: str | None = None,
        path: str | None = None,
    ):
        def _callback(identifier: str, result: RateLimitResult) -> None:
            if self._security_events is None:
                return
            self._security_events.log_event(
                SecurityEventType.RATE_LIMIT_EXCEEDED,
                Severity.MEDIUM,
                client_ip=client_ip,
                user_id=user_id,
                path=path,
                details={
                    "scope": scope,
                    "total_hits": result.total_hits,
                    "retry_after": result.retry_after,
                },
            )

        return _callback

    async def limit_by_ip(self, ip: str, path: str | None = None) -> RateLimitResult:
        max_requests, window_ms = IP_LIMIT
        return await self._limiter.check(
            ip,
            RateLimitConfig(
                max_requests=max_requests,
                window_ms=window_ms,
                scope="ip",
                on_limit_reached=self._on_limit_reached("ip", client_ip=ip, path=path),
            ),
        )

    async def limit_by_user(self, user_id: str) -> RateLimitResult:
        max_requests, window_ms = USER_LIMIT
        return await self._limiter.check(
            user_id,
            RateLimitConfig(
                max_requests=max_requests,
                window_ms=window_ms,
                scope="user",
                on_limit_reached=self._on_limit_reached("user", user_id=user_id),
            ),
        )

    async def limit_public_api(self, ip: str, endpoint: str) -> RateLimitResult:
        """Limite por endpoint + IP para rotas públicas/administrativas."""
        max_requests, window_ms = PUBLIC_API_LIMIT
        return await self._limiter.check(
            ip,
            RateLimitConfig(
                max_requests=max_requests,
                window_ms=window_ms,
                scope="endpoint",
                key_generator=lambda identifier: f"rate_limit:public:{endpoint}:{identifier}",
                on_limit_reached=self._on_limit_reached(
                    "endpoint", client_ip=ip, path=endpoint
                ),
            ),
        )

    async def limit_webhook(self, ip: str, user_agent: str | None) -> RateLimitResult:
        """Limite do webhook: maior folga para o user-agent do marketplace."""
        if is_marketplace_user_agent(user_agent):
            max_requests, window_ms = WEBHOOK_MARKETPLACE_LIMIT
            scope = "webhook"
        else:
            max_requests, window_ms = WEBHOOK_UNKNOWN_LIMIT
            scope = "webhook_unknown"
        return await self._limiter.check(
            ip,
            RateLimitConfig(
                max_requests=max_requests,
                window_ms=window_ms,
                scope=scope,
                on_limit_reached=self._on_limit_reached(
                    scope, client_ip=ip, path="/api/webhook/mercado-livre"
                ),
            ),
        )

    async def limit_login(self, ip: str, user_id: str | None = None) -> RateLimitResult:
        """Proteção contra força bruta: IP e usuário, vence o mais restritivo.

        O bucket de usuário só é consumido quando o IP ainda está liberado.
        """
        ip_max, ip_window = LOGIN_IP_LIMIT
        ip_result = await self._limiter.check(
            ip,
            RateLimitConfig(
                max_requests=ip_max,
                window_ms=ip_window,
                scope="login",
                key_generator=lambda identifier: f"rate_limit:login:ip:{identifier}",
                on_limit_reached=self._on_limit_reached("login_ip", client_ip=ip),
            ),
        )
        if not ip_result.allowed or not user_id:
            return ip_result

        user_max, user_window = LOGIN_USER_LIMIT
        user_result = await self._limiter.check(
            user_id,
            RateLimitConfig(
                max_requests=user_max,
                window_ms=user_window,
                scope="login",
                key_generator=lambda identifier: f"rate_limit:login:user:{identifier}",
                on_limit_reached=self._on_limit_reached(
                    "login_user", client_ip=ip, user_id=user_id
                ),
            ),
        )
        if not user_result.allowed:
            return user_result
        return min(ip_result, user_result, key=lambda result: result.remaining)

    async def limit_user_daily(self, user_id: str) -> RateLimitResult:
        """Teto diário de chamadas à API do marketplace por usuário."""
        max_requests, window_ms = USER_DAILY_LIMIT
        return await self._limiter.check(
            user_id,
            RateLimitConfig(
                max_requests=max_requests,
                window_ms=window_ms,
                scope="user_daily",
                key_generator=lambda identifier: f"ml_rate_limit:user:{identifier}:daily",
                on_limit_reached=self._on_limit_reached("user_daily", user_id=user_id),
            ),
        )

    async def limit_app_hourly(self) -> RateLimitResult:
        """Teto horário global da aplicação na API do marketplace."""
        max_requests, window_ms = APP_HOURLY_LIMIT
        return await self._limiter.check(
            "global",
            RateLimitConfig(
                max_requests=max_requests,
                window_ms=window_ms,
                scope="app",
                key_generator=lambda _identifier: "ml_rate_limit:app:global",
                on_limit_reached=self._on_limit_reached("app_hourly"),
            ),
        )
