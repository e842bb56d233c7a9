"""Endpoint de estatísticas dos eventos de segurança."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse

from api.routes.dependencies import client_ip_from, get_container

router = APIRouter()


@router.get("/stats", response_model=None)
async def security_stats(
    request: Request,
    time_window: int = Query(default=3600, ge=60, le=86400),
) -> JSONResponse | dict[str, Any]:
    """Agrega eventos de segurança da janela (segundos)."""
    container = get_container(request)
    rate = await container.rate_limits.limit_by_ip(client_ip_from(request), request.url.path)
    if not rate.allowed:
        return JSONResponse(
            {"error": "Rate limit exceeded"},
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(rate.retry_after or 1)},
        )
    return {"success": True, "data": container.security_events.get_event_stats(time_window)}
