"""Agregador de rotas — registra todos os routers.

Uso:
    from api.routes import create_api_router

    app = FastAPI()
    app.include_router(create_api_router())
"""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.health.router import router as health_router
from api.routes.mercadolivre.router import router as mercadolivre_router
from api.routes.security.router import router as security_router


def create_api_router() -> APIRouter:
    """Cria router principal com todos os sub-routers registrados.

    Returns:
        APIRouter configurado com todos os endpoints.
    """
    api_router = APIRouter()

    # Health checks (sem prefixo para /health e /ready na raiz)
    api_router.include_router(health_router, tags=["health"])

    # Mercado Livre: webhook e recuperação de missed feeds
    api_router.include_router(mercadolivre_router, tags=["mercadolivre"])

    api_router.include_router(security_router, prefix="/api/security", tags=["security"])

    return api_router
