"""Endpoints de recuperação de missed feeds.

Endpoints:
- POST /api/recovery/missed-feeds: executa a recuperação para um tenant
- GET /api/recovery/missed-feeds?tenantId=: estatísticas da última execução

Protegidos pelo limite por endpoint + IP.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from api.routes.dependencies import client_ip_from, get_container
from app.domain.notifications import WebhookTopic  # noqa: TC001 - usado em runtime pelo Pydantic
from utils.errors import CredentialsUnavailableError, InfrastructureError

logger = logging.getLogger(__name__)

router = APIRouter()

RECOVERY_ENDPOINT = "recovery_missed_feeds"


class RecoveryRequest(BaseModel):
    """Corpo do POST de recuperação."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    tenant_id: str = Field(..., alias="tenantId", min_length=1)
    topics: list[WebhookTopic] | None = None
    max_age_hours: int | None = Field(default=None, alias="maxAgeHours", ge=1, le=168)
    dry_run: bool = Field(default=False, alias="dryRun")


def _rate_limited(retry_after: int | None) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": "Rate limit exceeded"},
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(retry_after or 1)},
    )


@router.post("", response_model=None)
async def run_recovery(request: Request) -> JSONResponse:
    """Executa a recuperação de missed feeds de um tenant.

    Returns:
        200 com RecoveryResult; 400 para corpo inválido ou tenant sem
        credenciais; 500 para falha da API ou do cache.
    """
    started_at = time.perf_counter()
    container = get_container(request)

    rate = await container.rate_limits.limit_public_api(client_ip_from(request), RECOVERY_ENDPOINT)
    if not rate.allowed:
        return _rate_limited(rate.retry_after)

    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(
            {"success": False, "error": "Invalid JSON payload"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        params = RecoveryRequest.model_validate(payload)
    except ValidationError as exc:
        return JSONResponse(
            {
                "success": False,
                "error": "Invalid parameters",
                "details": [
                    {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                    for err in exc.errors()
                ],
            },
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        result = await container.recovery.recover_all_missed_feeds(
            params.tenant_id,
            topics=params.topics,
            max_age_hours=params.max_age_hours,
            dry_run=params.dry_run,
        )
    except CredentialsUnavailableError as exc:
        return JSONResponse(
            {"success": False, "error": "Tenant credentials unavailable", "reason": exc.reason},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except Exception as exc:
        logger.exception(
            "recovery_request_failed",
            extra={"tenant_id": params.tenant_id, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            {"success": False, "error": "Recovery failed"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    mode = "Dry run" if params.dry_run else "Recovery"
    return JSONResponse(
        {
            "success": True,
            "data": result.as_dict(),
            "processing_time_ms": round((time.perf_counter() - started_at) * 1000, 2),
            "message": (
                f"{mode} completed: {result.processed} processed, "
                f"{result.failed} failed, {result.skipped} skipped"
            ),
        }
    )


@router.get("", response_model=None)
async def recovery_stats(request: Request) -> JSONResponse:
    """Estatísticas da recuperação de um tenant (`?tenantId=`)."""
    container = get_container(request)

    rate = await container.rate_limits.limit_public_api(client_ip_from(request), RECOVERY_ENDPOINT)
    if not rate.allowed:
        return _rate_limited(rate.retry_after)

    tenant_id = (request.query_params.get("tenantId") or "").strip()
    if not tenant_id:
        return JSONResponse(
            {"success": False, "error": "tenantId is required"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        stats: dict[str, Any] = await container.recovery.get_recovery_stats(tenant_id)
    except InfrastructureError as exc:
        logger.warning(
            "recovery_stats_unavailable",
            extra={"tenant_id": tenant_id, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            {"success": False, "error": "Stats unavailable"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return JSONResponse({"success": True, "data": stats})
