"""Entrypoint do serviço de webhooks do Mercado Livre.

Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import build_container, initialize_app, validate_runtime_settings
from config.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

SHUTDOWN_DRAIN_SECONDS = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Monta o ServiceContainer (cache, cliente da API, serviços)

    Shutdown:
    - Aguarda processamentos abandonados pelo prazo do webhook
    - Fecha conexões
    """
    logger.info("app_starting", extra={"service": "peepers-webhooks"})
    validate_runtime_settings()
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container()

    yield

    logger.info("app_shutting_down", extra={"service": "peepers-webhooks"})
    await app.state.container.aclose(SHUTDOWN_DRAIN_SECONDS)


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Um container já presente em `app.state.container` (testes) é reutilizado.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="Peepers ML Webhooks",
        description="Ingestão de webhooks e recuperação de missed feeds do Mercado Livre",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    fastapi_app.state.container = None

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "peepers-webhooks"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting peepers-webhooks in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
