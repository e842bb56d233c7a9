"""Entrega de alertas de segurança a canais externos."""

from __future__ import annotations

from app.infra.alerts.http_alert_sender import AlertDeliveryError, HttpAlertSender

__all__ = ["AlertDeliveryError", "HttpAlertSender"]
