"""
Factories for the wallet payment gateway and remote order references.
"""
from __future__ import annotations

from functools import partial
from typing import Callable, Optional

import httpx

from core.settings import GatewayConfig, wallet_settings
from domain.common.unit_of_work import AbstractUnitOfWork
from .client import SignedRequestClient
from .gateway import WalletGateway
from .remote_order import RemoteOrder


def get_request_client(
    config: Optional[GatewayConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> SignedRequestClient:
    return SignedRequestClient(config or wallet_settings.gateway, transport=transport)


def get_wallet_gateway(
    config: Optional[GatewayConfig] = None,
    uow_factory: Optional[Callable[..., AbstractUnitOfWork]] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> WalletGateway:
    return WalletGateway(get_request_client(config, transport=transport), uow_factory)


def get_remote_order_factory(client: SignedRequestClient) -> Callable[[str], RemoteOrder]:
    """Bind RemoteOrder to one client; the result satisfies RemoteOrderFactory."""
    return partial(RemoteOrder, client=client)
