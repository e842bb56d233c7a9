"""Acesso ao ServiceContainer a partir das rotas."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.requests import Request

from api.connectors.mercadolivre.webhook import UNKNOWN_IP, extract_client_ip

if TYPE_CHECKING:
    from app.bootstrap import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    """Retorna o container montado no lifespan da aplicação.

    Raises:
        RuntimeError: Se a aplicação subiu sem container.
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("ServiceContainer não inicializado")
    return container


def client_ip_from(request: Request) -> str:
    """IP do cliente pelos headers de proxy, com fallback para o socket."""
    ip = extract_client_ip(request.headers)
    if ip == UNKNOWN_IP and request.client is not None:
        return request.client.host
    return ip
