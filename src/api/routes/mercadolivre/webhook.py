"""Endpoints do webhook do Mercado Livre.

Endpoints:
- GET /api/webhook/mercado-livre: descritor de capacidades (tópicos, prazo)
- POST /api/webhook/mercado-livre: recebimento de notificações

Fluxo do POST:
1. Rate limit (429 com Retry-After)
2. Autenticação: IP de origem (403) e assinatura ou secret (401)
3. Validação do envelope (400)
4. Processamento com prazo rígido (sempre 200)

Erros internos nunca viram 5xx: o marketplace recebe 200 com
`success: false` e a recuperação de missed feeds cobre o que se perder.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from api.connectors.mercadolivre.webhook import (
    InvalidJsonError,
    InvalidSchemaError,
    extract_client_ip,
    parse_notification,
)
from api.routes.dependencies import get_container
from app.coordinators.mercadolivre.deadline_dispatcher import internal_error_body
from app.domain.security_events import SecurityEventType, Severity
from app.observability import (
    CORRELATION_ID_HEADER,
    get_correlation_id,
    record_webhook_outcome,
    reset_correlation_id,
    set_correlation_id,
)

if TYPE_CHECKING:
    from app.bootstrap import ServiceContainer
    from app.domain.notifications import WebhookNotification

logger = logging.getLogger(__name__)

router = APIRouter()

WEBHOOK_PATH = "/api/webhook/mercado-livre"


def _elapsed_ms(started_at: float) -> float:
    return (time.perf_counter() - started_at) * 1000


@router.get("")
async def webhook_status(request: Request) -> dict[str, Any]:
    """Descritor estático do endpoint (introspecção, sem regra de negócio)."""
    mercadolivre = get_container(request).settings.mercadolivre
    return {
        "status": "active",
        "endpoint": WEBHOOK_PATH,
        "supported_topics": list(mercadolivre.supported_topics),
        "timeout_ms": mercadolivre.webhook_timeout_ms,
        "deadline_buffer_ms": mercadolivre.deadline_buffer_ms,
        "ip_validation": mercadolivre.require_ip_validation,
    }


@router.post("", response_model=None)
async def receive_webhook(request: Request) -> JSONResponse:
    """Recebimento de notificações do Mercado Livre.

    Returns:
        Exatamente uma resposta por requisição, em qualquer caminho.
    """
    started_at = time.perf_counter()
    token = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
    try:
        return await _handle_notification(request, started_at)
    except Exception:
        elapsed_ms = _elapsed_ms(started_at)
        logger.exception("webhook_unhandled_error", extra={"channel": "mercadolivre"})
        record_webhook_outcome("internal_error", status.HTTP_200_OK, elapsed_ms)
        return JSONResponse(internal_error_body(elapsed_ms), status_code=status.HTTP_200_OK)
    finally:
        reset_correlation_id(token)


def _reject(
    outcome: str,
    status_code: int,
    content: dict[str, Any],
    started_at: float,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    record_webhook_outcome(outcome, status_code, _elapsed_ms(started_at))
    return JSONResponse(content, status_code=status_code, headers=headers)


async def _handle_notification(request: Request, started_at: float) -> JSONResponse:
    container = get_container(request)
    raw_body = await request.body()

    client_ip = extract_client_ip(request.headers)

    rate = await container.rate_limits.limit_webhook(
        client_ip,
        request.headers.get("user-agent"),
    )
    if not rate.allowed:
        return _reject(
            "rate_limited",
            status.HTTP_429_TOO_MANY_REQUESTS,
            {"error": "Rate limit exceeded"},
            started_at,
            headers={
                "Retry-After": str(rate.retry_after or 1),
                "X-RateLimit-Remaining": str(rate.remaining),
                "X-RateLimit-Reset": str(rate.reset_time),
            },
        )

    auth = container.authenticator.validate(raw_body, request.headers)
    if not auth.is_valid:
        if auth.error == "unauthorized_ip":
            container.security_events.log_event(
                SecurityEventType.WEBHOOK_IP_REJECTED,
                Severity.HIGH,
                client_ip=auth.client_ip,
                path=WEBHOOK_PATH,
                details={"reason": "ip_not_allowlisted"},
            )
            return _reject(
                "unauthorized_ip",
                status.HTTP_403_FORBIDDEN,
                {"error": "Unauthorized IP", "ml_compliance": "ip_validation_failed"},
                started_at,
            )
        container.security_events.log_event(
            SecurityEventType.WEBHOOK_AUTH_FAILURE,
            Severity.HIGH,
            client_ip=auth.client_ip,
            path=WEBHOOK_PATH,
            details={"reason": auth.error},
        )
        return _reject(
            "unauthorized",
            status.HTTP_401_UNAUTHORIZED,
            {"error": "Unauthorized"},
            started_at,
        )

    try:
        notification = parse_notification(
            raw_body,
            expected_application_id=container.settings.mercadolivre.client_id or None,
        )
    except InvalidJsonError:
        return _reject(
            "invalid_json",
            status.HTTP_400_BAD_REQUEST,
            {"error": "Invalid JSON payload"},
            started_at,
        )
    except InvalidSchemaError:
        return _reject(
            "invalid_schema",
            status.HTTP_400_BAD_REQUEST,
            {"error": "Invalid payload schema"},
            started_at,
        )

    logger.info(
        "webhook_received",
        extra={
            "channel": "mercadolivre",
            "topic": notification.topic,
            "attempts": notification.attempts,
            "auth_method": auth.method,
            "payload_size": len(raw_body),
        },
    )

    outcome = await container.dispatcher.dispatch(
        lambda: _process(container, notification),
        topic=notification.topic,
        started_at=started_at,
    )
    if outcome.timed_out:
        label = "timeout"
    elif outcome.succeeded:
        label = "processed"
    else:
        label = "processing_failed"
    record_webhook_outcome(
        label,
        status.HTTP_200_OK,
        outcome.elapsed_ms,
        topic=notification.topic,
        timed_out=outcome.timed_out,
    )
    return JSONResponse(outcome.body, status_code=status.HTTP_200_OK)


async def _process(
    container: ServiceContainer,
    notification: WebhookNotification,
) -> dict[str, Any]:
    result = await container.process_notification.execute(
        notification_id=notification.notification_id,
        topic=notification.topic,
        resource=notification.resource,
        tenant_id=str(notification.user_id),
        source="webhook",
    )
    body: dict[str, Any] = {
        "success": result != "failed",
        "topic": notification.topic,
        "notification_id": notification.notification_id,
        "status": result,
        "correlation_id": get_correlation_id(),
    }
    if result == "failed":
        body["error"] = "processing_failed"
    return body
