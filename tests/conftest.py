"""Pytest bootstrap configuration.

Ensure environment variables are set before test collection and module
imports that depend on application settings.
"""
import os

# In-memory database for modules that build the engine at import time
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DOMAIN_URL", "https://shop.example.com")

import pytest

from core.settings import GatewayConfig, PaymentRetry


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return GatewayConfig(
        currency="USD",
        client_id="CLIENT",
        merchant_id="MERCHANT",
        access_key_id="AKID",
        secret_access_key="SECRET",
        region="us",
        sandbox=True,
    )


@pytest.fixture
def fast_retry() -> PaymentRetry:
    return PaymentRetry(max=2, base_backoff=0, max_backoff=0)
