"""Settings da recuperação de notificações perdidas (missed feeds)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class RecoverySettings:
    """Configurações da recuperação de missed feeds.

    Attributes:
        batch_size: Itens por página pedidos à API
        batch_delay_seconds: Pausa entre páginas consecutivas
        max_batches: Limite de páginas por execução
        summary_ttl_seconds: TTL do resumo persistido de cada execução
        processed_marker_ttl_seconds: TTL do marker `completed`
        failed_marker_ttl_seconds: TTL do marker `failed`
        processing_marker_ttl_seconds: TTL do marker `processing`
        max_age_hours_limit: Maior janela aceita para `max_age_hours`
    """

    batch_size: int = 50
    batch_delay_seconds: float = 1.0
    max_batches: int = 200
    summary_ttl_seconds: int = 3600
    processed_marker_ttl_seconds: int = 86400  # 24h
    failed_marker_ttl_seconds: int = 3600
    processing_marker_ttl_seconds: int = 300
    max_age_hours_limit: int = 168

    def validate(self) -> list[str]:
        """Valida limites da recuperação.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not 1 <= self.batch_size <= 100:
            errors.append("RECOVERY_BATCH_SIZE deve estar entre 1 e 100")

        if self.batch_delay_seconds < 0:
            errors.append("RECOVERY_BATCH_DELAY_SECONDS deve ser >= 0")

        if self.max_batches <= 0:
            errors.append("RECOVERY_MAX_BATCHES deve ser > 0")

        for name, value in (
            ("RECOVERY_SUMMARY_TTL_SECONDS", self.summary_ttl_seconds),
            ("PROCESSED_MARKER_TTL_SECONDS", self.processed_marker_ttl_seconds),
            ("FAILED_MARKER_TTL_SECONDS", self.failed_marker_ttl_seconds),
        ):
            if value <= 0:
                errors.append(f"{name} deve ser > 0")

        return errors


def _load_recovery_from_env() -> RecoverySettings:
    """Carrega RecoverySettings de variáveis de ambiente."""
    return RecoverySettings(
        batch_size=int(os.getenv("RECOVERY_BATCH_SIZE", "50")),
        batch_delay_seconds=float(os.getenv("RECOVERY_BATCH_DELAY_SECONDS", "1.0")),
        max_batches=int(os.getenv("RECOVERY_MAX_BATCHES", "200")),
        summary_ttl_seconds=int(os.getenv("RECOVERY_SUMMARY_TTL_SECONDS", "3600")),
        processed_marker_ttl_seconds=int(os.getenv("PROCESSED_MARKER_TTL_SECONDS", "86400")),
        failed_marker_ttl_seconds=int(os.getenv("FAILED_MARKER_TTL_SECONDS", "3600")),
    )


@lru_cache(maxsize=1)
def get_recovery_settings() -> RecoverySettings:
    """Retorna instância cacheada de RecoverySettings."""
    return _load_recovery_from_env()
