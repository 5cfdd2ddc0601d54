"""
Wallet payment-method port (application/ports) exposing a replaceable protocol.

This is the contract the host payment pipeline invokes; infrastructure
implements it against the remote order-reference API.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from application.dtos.payments import GatewayContext, GatewayResponse, SetOrderDetailsResult
from domain.payment.address import WalletAddress
from domain.payment.entity import RemoteOrderSnapshot, TransactionRecord


@runtime_checkable
class WalletPaymentMethod(Protocol):
    """Payment-method protocol for the wallet provider.

    Amounts are integer minor units (cents), as the host pipeline passes them.
    """

    provider: str

    async def authorize(self, amount_cents: int, transaction: TransactionRecord, context: GatewayContext) -> GatewayResponse: ...

    async def capture(self, amount_cents: int, transaction: TransactionRecord, context: GatewayContext) -> GatewayResponse: ...

    async def purchase(self, amount_cents: int, transaction: TransactionRecord, context: GatewayContext) -> GatewayResponse: ...

    async def credit(self, amount_cents: int, context: GatewayContext) -> GatewayResponse: ...

    async def void(self, context: GatewayContext) -> GatewayResponse: ...


@runtime_checkable
class RemoteOrderPort(Protocol):
    """One remote order reference as seen by the checkout flow."""

    reference_id: str
    email: Optional[str]
    address: Optional[WalletAddress]

    async def fetch(self, address_consent_token: Optional[str] = None) -> RemoteOrderSnapshot: ...

    async def confirm(self) -> Any: ...

    async def set_order_reference_details(
        self,
        total: Decimal,
        *,
        currency: Optional[str] = None,
        seller_note: Optional[str] = None,
        seller_order_id: Optional[str] = None,
        store_name: Optional[str] = None,
        custom_information: Optional[str] = None,
    ) -> SetOrderDetailsResult: ...


RemoteOrderFactory = Callable[[str], RemoteOrderPort]
