"""Resolução das credenciais do Mercado Livre por tenant.

As credenciais são gravadas no cache pelo fluxo de OAuth (fora deste
serviço) em `user:{tenant_id}`. Token ausente ou expirado não é renovado
aqui: a notificação falha e fica para a recuperação de missed feeds.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from utils.errors import CredentialsUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.protocols.cache_store import AsyncCacheStoreProtocol

CREDENTIALS_PREFIX = "user:"


@dataclass(frozen=True, slots=True)
class TenantCredentials:
    access_token: str
    user_id: str | None = None
    expires_at: datetime | None = None

    def __repr__(self) -> str:
        return f"TenantCredentials(user_id={self.user_id!r}, expires_at={self.expires_at!r})"


def _parse_expires_at(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, int | float) and not isinstance(value, bool):
        # Epoch em milissegundos
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


class TenantCredentialsResolver:
    """Lê e valida as credenciais de um tenant no cache."""

    def __init__(
        self,
        cache: AsyncCacheStoreProtocol,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cache = cache
        self._clock = clock or (lambda: datetime.now(UTC))

    async def resolve(self, tenant_id: str) -> TenantCredentials:
        """Retorna credenciais utilizáveis do tenant.

        Raises:
            CredentialsUnavailableError: Registro ausente, sem token ou expirado.
        """
        data = await self._cache.get(f"{CREDENTIALS_PREFIX}{tenant_id}")
        if not isinstance(data, dict):
            raise CredentialsUnavailableError(tenant_id, "missing")

        token = data.get("token") or data.get("access_token")
        if not token or not isinstance(token, str):
            raise CredentialsUnavailableError(tenant_id, "missing_token")

        expires_at = _parse_expires_at(data.get("expires_at"))
        if expires_at is not None and expires_at <= self._clock():
            raise CredentialsUnavailableError(tenant_id, "expired")

        user_id = data.get("user_id")
        return TenantCredentials(
            access_token=token,
            user_id=str(user_id) if user_id is not None else None,
            expires_at=expires_at,
        )
