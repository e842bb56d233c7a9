"""Parse e validação estrita do envelope do webhook (sem PII nos logs)."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from app.domain.notifications import WebhookNotification

logger = logging.getLogger(__name__)


class WebhookRequestError(ValueError):
    """Erro base para falhas de webhook."""


class InvalidJsonError(WebhookRequestError):
    """JSON inválido no payload do webhook."""


class InvalidSchemaError(WebhookRequestError):
    """Payload com formato, tipo ou tópico inválido."""


def parse_notification(
    raw_body: bytes,
    expected_application_id: str | None = None,
) -> WebhookNotification:
    """Parseia e valida a notificação recebida.

    Args:
        raw_body: Corpo bruto do request
        expected_application_id: ID da aplicação desta instalação; quando
            informado, notificações de outra aplicação são rejeitadas

    Raises:
        InvalidJsonError: Se o corpo não for JSON decodificável
        InvalidSchemaError: Se faltar campo, o tipo divergir, o tópico não
            for suportado ou a aplicação não corresponder

    Returns:
        WebhookNotification validada
    """
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidJsonError("invalid_json") from exc

    if not isinstance(payload, dict):
        raise InvalidSchemaError("payload_not_object")

    try:
        notification = WebhookNotification.model_validate(payload)
    except ValidationError as exc:
        logger.info(
            "webhook_schema_invalid",
            extra={
                "error_count": exc.error_count(),
                "fields": sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]}),
            },
        )
        raise InvalidSchemaError("invalid_schema") from exc

    if expected_application_id and notification.application_id != expected_application_id:
        logger.warning(
            "webhook_application_mismatch",
            extra={"topic": notification.topic},
        )
        raise InvalidSchemaError("application_id_mismatch")

    return notification
