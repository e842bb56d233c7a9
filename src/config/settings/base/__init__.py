"""Agregador de settings base.

Re-exporta todas as settings base para uso externo.
"""

from __future__ import annotations

from config.settings.base.cache import (
    CacheBackend,
    CacheSettings,
    get_cache_settings,
)
from config.settings.base.core import (
    BaseSettings,
    Environment,
    get_base_settings,
    parse_bool,
    parse_csv,
    parse_environment,
)

__all__ = [
    # Core
    "BaseSettings",
    # Cache
    "CacheBackend",
    "CacheSettings",
    # Types
    "Environment",
    "get_base_settings",
    "get_cache_settings",
    "parse_bool",
    "parse_csv",
    "parse_environment",
]
