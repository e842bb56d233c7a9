"""Webhook Mercado Livre: autenticação e parsing seguro."""

from .auth import (
    SECRET_HEADER,
    SIGNATURE_HEADER,
    UNKNOWN_IP,
    AuthResult,
    WebhookAuthenticator,
    compute_signature,
    extract_client_ip,
    normalize_ip,
)
from .receive import (
    InvalidJsonError,
    InvalidSchemaError,
    WebhookRequestError,
    parse_notification,
)

__all__ = [
    "SECRET_HEADER",
    "SIGNATURE_HEADER",
    "UNKNOWN_IP",
    "AuthResult",
    "InvalidJsonError",
    "InvalidSchemaError",
    "WebhookAuthenticator",
    "WebhookRequestError",
    "compute_signature",
    "extract_client_ip",
    "normalize_ip",
    "parse_notification",
]
