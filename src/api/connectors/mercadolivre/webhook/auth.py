"""Autenticação do webhook do Mercado Livre (sem I/O).

Ordem de validação:
1. Allowlist de IPs de origem (quando exigida), independente das credenciais
2. Assinatura HMAC-SHA256 do corpo bruto OU header legado com o secret

Todas as comparações de credencial são em tempo constante.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-ml-webhook-signature"
SECRET_HEADER = "x-ml-webhook-secret"

UNKNOWN_IP = "unknown"
_IPV4_MAPPED_PREFIX = "::ffff:"

AuthError = Literal["unauthorized", "unauthorized_ip"]
AuthMethod = Literal["signature", "secret", "skipped"]


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Resultado da autenticação do webhook."""

    is_valid: bool
    client_ip: str
    error: AuthError | None = None
    method: AuthMethod | None = None


def normalize_ip(value: str) -> str:
    """Remove espaços e o prefixo IPv4-mapped (::ffff:)."""
    ip = value.strip()
    if ip.lower().startswith(_IPV4_MAPPED_PREFIX):
        return ip[len(_IPV4_MAPPED_PREFIX) :]
    return ip


def extract_client_ip(headers: Mapping[str, str]) -> str:
    """Extrai o IP do cliente dos headers de proxy.

    Prioridade: cf-connecting-ip, x-real-ip, primeiro item de x-forwarded-for.
    """
    for header in ("cf-connecting-ip", "x-real-ip"):
        value = headers.get(header)
        if value and value.strip():
            return normalize_ip(value)

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",", 1)[0]
        if first.strip():
            return normalize_ip(first)
    return UNKNOWN_IP


def compute_signature(raw_body: bytes, secret: str) -> str:
    """HMAC-SHA256 do corpo em base64url sem padding."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _constant_time_equals(received: str, expected: str) -> bool:
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


class WebhookAuthenticator:
    """Valida origem e credenciais de cada entrega do webhook.

    Args:
        secret: Secret compartilhado (vazio = não configurado)
        allowed_ips: Allowlist de IPs de saída do marketplace
        require_ip_validation: Rejeita IPs fora da allowlist
        environment: Ambiente atual (sem secret só é aceito em development)
    """

    def __init__(
        self,
        secret: str,
        allowed_ips: Iterable[str],
        require_ip_validation: bool,
        environment: str = "development",
    ) -> None:
        self._secret = secret
        self._allowed_ips = frozenset(normalize_ip(ip) for ip in allowed_ips)
        self._require_ip_validation = require_ip_validation
        self._environment = environment

    def validate(self, raw_body: bytes, headers: Mapping[str, str]) -> AuthResult:
        """Autentica a requisição.

        Args:
            raw_body: Corpo bruto, exatamente como recebido
            headers: Headers (chaves case-insensitive, ex: starlette Headers)

        Returns:
            AuthResult; `error` distingue credencial inválida de IP não autorizado.
        """
        client_ip = extract_client_ip(headers)

        if self._require_ip_validation and client_ip not in self._allowed_ips:
            logger.warning("webhook_ip_rejected", extra={"client_ip": client_ip})
            return AuthResult(False, client_ip, error="unauthorized_ip")

        if not self._secret:
            if self._environment == "development":
                logger.debug("webhook_auth_skipped", extra={"reason": "secret_not_configured"})
                return AuthResult(True, client_ip, method="skipped")
            logger.error("webhook_secret_not_configured", extra={"environment": self._environment})
            return AuthResult(False, client_ip, error="unauthorized")

        signature = headers.get(SIGNATURE_HEADER)
        if signature and _constant_time_equals(
            signature.strip(), compute_signature(raw_body, self._secret)
        ):
            return AuthResult(True, client_ip, method="signature")

        legacy_secret = headers.get(SECRET_HEADER)
        if legacy_secret and _constant_time_equals(legacy_secret, self._secret):
            return AuthResult(True, client_ip, method="secret")

        logger.warning(
            "webhook_auth_failed",
            extra={
                "client_ip": client_ip,
                "has_signature": bool(signature),
                "has_secret_header": bool(legacy_secret),
            },
        )
        return AuthResult(False, client_ip, error="unauthorized")
