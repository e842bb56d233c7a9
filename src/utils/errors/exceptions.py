"""Exceções de domínio para falhas recuperáveis de infraestrutura."""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class CacheUnavailableError(InfrastructureError):
    """Falha de conexão/timeout ao acessar o cache compartilhado."""


class CredentialsUnavailableError(InfrastructureError):
    """Credenciais do tenant ausentes ou expiradas no cache."""

    def __init__(self, tenant_id: str, reason: str) -> None:
        super().__init__(f"Credenciais indisponíveis para tenant: {reason}")
        self.tenant_id = tenant_id
        self.reason = reason


class MarketplaceApiError(InfrastructureError):
    """Falha ao consultar a API do Mercado Livre."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
