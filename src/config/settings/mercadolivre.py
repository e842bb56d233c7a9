"""Settings específicas do Mercado Livre.

Credenciais da aplicação, segurança do webhook e parâmetros da API.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from config.settings.base.core import parse_bool, parse_csv, parse_environment

ML_API_BASE_URL: str = "https://api.mercadolibre.com"

# IPs de saída publicados pelo Mercado Livre para entrega de notificações
ML_WEBHOOK_IPS: tuple[str, ...] = (
    "54.88.218.97",
    "18.215.140.160",
    "18.213.114.129",
    "18.206.34.84",
)

SUPPORTED_WEBHOOK_TOPICS: tuple[str, ...] = (
    "orders_v2",
    "items",
    "questions",
    "messages",
    "shipments",
    "payments",
)

# Prazo imposto pelo Mercado Livre para resposta do webhook
WEBHOOK_TIMEOUT_MS: int = 500
WEBHOOK_DEADLINE_BUFFER_MS: int = 25


@dataclass(frozen=True)
class MercadoLivreSettings:
    """Configurações da integração Mercado Livre.

    Attributes:
        client_id: ID da aplicação (também o application_id das notificações)
        client_secret: Secret da aplicação
        webhook_secret: Secret compartilhado para HMAC e header legado
        allowed_ips: Allowlist de IPs de origem do webhook
        require_ip_validation: Rejeita IPs fora da allowlist (403)
        webhook_timeout_ms: Prazo rígido de resposta do webhook
        deadline_buffer_ms: Margem de segurança subtraída do prazo
        api_base_url: URL base da API
        request_timeout_seconds: Timeout por requisição HTTP
        max_retries: Máximo de novas tentativas em erro transitório
    """

    client_id: str = ""
    client_secret: str = ""
    webhook_secret: str = ""

    allowed_ips: tuple[str, ...] = field(default=ML_WEBHOOK_IPS)
    require_ip_validation: bool = False

    webhook_timeout_ms: int = WEBHOOK_TIMEOUT_MS
    deadline_buffer_ms: int = WEBHOOK_DEADLINE_BUFFER_MS

    api_base_url: str = ML_API_BASE_URL
    request_timeout_seconds: float = 10.0
    max_retries: int = 2

    supported_topics: tuple[str, ...] = field(default=SUPPORTED_WEBHOOK_TOPICS)

    @property
    def effective_deadline_ms(self) -> int:
        """Prazo efetivo da corrida de processamento."""
        return self.webhook_timeout_ms - self.deadline_buffer_ms

    def validate(self, environment: str = "development") -> list[str]:
        """Valida configurações mínimas da integração.

        Args:
            environment: Ambiente de execução atual.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if not self.client_id:
            errors.append("ML_CLIENT_ID não configurado")

        if not self.webhook_secret and environment != "development":
            errors.append("ML_WEBHOOK_SECRET obrigatório fora de development")

        if self.require_ip_validation and not self.allowed_ips:
            errors.append("ML_REQUIRE_IP_VALIDATION ativo com ML_WEBHOOK_IPS vazio")

        if self.webhook_timeout_ms <= 0:
            errors.append("WEBHOOK_TIMEOUT_MS deve ser > 0")

        if not 0 <= self.deadline_buffer_ms < self.webhook_timeout_ms:
            errors.append("WEBHOOK_DEADLINE_BUFFER_MS deve estar entre 0 e WEBHOOK_TIMEOUT_MS")

        if self.request_timeout_seconds <= 0:
            errors.append("ML_REQUEST_TIMEOUT_SECONDS deve ser > 0")

        if self.max_retries < 0:
            errors.append("ML_MAX_RETRIES deve ser >= 0")

        return errors


def _load_mercadolivre_from_env() -> MercadoLivreSettings:
    """Carrega MercadoLivreSettings de variáveis de ambiente."""
    environment = parse_environment(os.getenv("ENVIRONMENT", "development"))
    allowed_ips = parse_csv(os.getenv("ML_WEBHOOK_IPS")) or ML_WEBHOOK_IPS
    return MercadoLivreSettings(
        client_id=os.getenv("ML_CLIENT_ID", ""),
        client_secret=os.getenv("ML_CLIENT_SECRET", ""),
        webhook_secret=os.getenv("ML_WEBHOOK_SECRET", ""),
        allowed_ips=allowed_ips,
        require_ip_validation=parse_bool(
            os.getenv("ML_REQUIRE_IP_VALIDATION"),
            default=environment == "production",
        ),
        webhook_timeout_ms=int(os.getenv("WEBHOOK_TIMEOUT_MS", str(WEBHOOK_TIMEOUT_MS))),
        deadline_buffer_ms=int(
            os.getenv("WEBHOOK_DEADLINE_BUFFER_MS", str(WEBHOOK_DEADLINE_BUFFER_MS))
        ),
        api_base_url=os.getenv("ML_API_BASE_URL", ML_API_BASE_URL),
        request_timeout_seconds=float(os.getenv("ML_REQUEST_TIMEOUT_SECONDS", "10.0")),
        max_retries=int(os.getenv("ML_MAX_RETRIES", "2")),
    )


@lru_cache(maxsize=1)
def get_mercadolivre_settings() -> MercadoLivreSettings:
    """Retorna instância cacheada de MercadoLivreSettings."""
    return _load_mercadolivre_from_env()
