"""
Host commerce platform ports (application/ports).

The checkout core depends only on these Protocols. The host platform adapts
its own order, payment and country objects to them; nothing here assumes a
concrete host type.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class HostPayment(Protocol):
    """A host payment whose source is a wallet TransactionRecord."""

    number: str
    amount: Decimal
    currency: str
    state: str
    source_id: Optional[int]

    @property
    def credit_allowed(self) -> Decimal: ...

    async def save(self) -> None: ...


@runtime_checkable
class HostOrder(Protocol):
    id: int
    number: str
    total: Decimal
    currency: str
    store_name: Optional[str]
    email: Optional[str]
    state: str

    @property
    def is_confirm(self) -> bool: ...

    @property
    def has_shipments(self) -> bool: ...

    async def set_ship_address(self, attributes: dict[str, Any]) -> None: ...

    async def set_bill_address(self, attributes: dict[str, Any]) -> None: ...

    async def advance(self) -> bool:
        """Run the host's next lifecycle transition; False when it cannot move."""
        ...

    async def payments(self) -> Sequence[HostPayment]:
        """All payments of the order, in creation order."""
        ...

    async def wallet_payments(self) -> Sequence[HostPayment]:
        """Valid payments that use the wallet gateway."""
        ...

    async def create_payment(self) -> HostPayment: ...

    async def save(self) -> None: ...


@runtime_checkable
class CountryCatalog(Protocol):
    async def find_by_iso(self, iso: str) -> Optional[Any]: ...
