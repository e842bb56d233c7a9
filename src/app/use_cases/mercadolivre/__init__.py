"""Casos de uso do Mercado Livre."""

from app.use_cases.mercadolivre.process_notification import (
    ProcessingOutcome,
    ProcessNotificationUseCase,
)

__all__ = ["ProcessNotificationUseCase", "ProcessingOutcome"]
