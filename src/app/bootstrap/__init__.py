"""Bootstrap da aplicação — inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
monta o ServiceContainer com as implementações concretas dos protocolos.

Uso:
    from app.bootstrap import build_container, initialize_app

    # Na inicialização do serviço
    initialize_app()
    container = build_container()
"""

from __future__ import annotations

import logging
import os

from app.bootstrap.dependencies import (
    RuntimeSettings,
    ServiceContainer,
    build_container,
    load_runtime_settings,
)
from app.observability import get_correlation_id
from config.logging import configure_logging

# Nome do serviço para logs e métricas
SERVICE_NAME = "peepers_webhooks"

# Nível de log padrão (pode ser sobrescrito por env)
DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Configura logging estruturado JSON com correlation_id.

    Deve ser chamada uma vez no início do serviço.
    """
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    configure_logging(
        level=log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def initialize_test_app() -> None:
    """Inicializa a aplicação para testes (logging em DEBUG)."""
    configure_logging(
        level="DEBUG",
        service_name=f"{SERVICE_NAME}_test",
        correlation_id_getter=get_correlation_id,
    )


def validate_runtime_settings(settings: RuntimeSettings | None = None) -> list[str]:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.

    Returns:
        Lista de erros encontrados (vazia = OK).

    Raises:
        RuntimeError: Configuração inválida em ambiente estrito.
    """
    runtime = settings or load_runtime_settings()
    environment = runtime.base.environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in runtime.base.validate())
    errors.extend(f"cache: {error}" for error in runtime.cache.validate(runtime.base))
    errors.extend(
        f"mercadolivre: {error}" for error in runtime.mercadolivre.validate(environment)
    )
    errors.extend(f"rate_limit: {error}" for error in runtime.rate_limit.validate())
    errors.extend(f"recovery: {error}" for error in runtime.recovery.validate())
    errors.extend(f"alerts: {error}" for error in runtime.alerts.validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return errors

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")
    return errors


__all__ = [
    "SERVICE_NAME",
    "RuntimeSettings",
    "ServiceContainer",
    "build_container",
    "initialize_app",
    "initialize_test_app",
    "load_runtime_settings",
    "validate_runtime_settings",
]
