"""
Shared FastAPI dependencies.

Routers import the DB session and the gateway client from here so tests can
swap both through app.dependency_overrides.
"""

from __future__ import annotations

from fastapi import Request

from config import settings
from services.gateway_client import GatewayClient
from services.paypay_provider import PayPayProvider


def build_gateway_client() -> GatewayClient:
    """Construct the PayPay gateway client once, from settings."""
    provider = PayPayProvider.from_settings(settings)
    return GatewayClient(provider, timeout_seconds=settings.gateway_timeout_seconds)


def get_gateway_client(request: Request) -> GatewayClient:
    """The gateway client built during app startup (see main.lifespan)."""
    return request.app.state.gateway_client
