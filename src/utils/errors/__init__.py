"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    CacheUnavailableError,
    CredentialsUnavailableError,
    InfrastructureError,
    MarketplaceApiError,
)

__all__ = [
    "CacheUnavailableError",
    "CredentialsUnavailableError",
    "InfrastructureError",
    "MarketplaceApiError",
]
