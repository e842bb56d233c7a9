"""Agregador de settings do serviço de webhooks.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Alertas de segurança
from config.settings.alerts import AlertSettings, get_alert_settings

# Base settings
from config.settings.base import (
    BaseSettings,
    CacheBackend,
    CacheSettings,
    Environment,
    get_base_settings,
    get_cache_settings,
)

# Mercado Livre
from config.settings.mercadolivre import (
    ML_API_BASE_URL,
    ML_WEBHOOK_IPS,
    SUPPORTED_WEBHOOK_TOPICS,
    MercadoLivreSettings,
    get_mercadolivre_settings,
)

# Rate limiting
from config.settings.rate_limit import RateLimitSettings, get_rate_limit_settings

# Recuperação de missed feeds
from config.settings.recovery import RecoverySettings, get_recovery_settings

__all__ = [
    # Constants
    "ML_API_BASE_URL",
    "ML_WEBHOOK_IPS",
    "SUPPORTED_WEBHOOK_TOPICS",
    "AlertSettings",
    # Base
    "BaseSettings",
    "CacheBackend",
    "CacheSettings",
    "Environment",
    "MercadoLivreSettings",
    "RateLimitSettings",
    "RecoverySettings",
    "get_alert_settings",
    "get_base_settings",
    "get_cache_settings",
    "get_mercadolivre_settings",
    "get_rate_limit_settings",
    "get_recovery_settings",
]
