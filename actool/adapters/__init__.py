"""Adapter modules for external integrations."""

from .gateway import GatewayClient, GatewayError, RemoteRejection, TransportError

__all__ = [
    "GatewayClient",
    "GatewayError",
    "RemoteRejection",
    "TransportError",
]
