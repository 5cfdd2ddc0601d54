"""
Wallet payment DTOs used at application boundaries.

Results are Pydantic v2 models; GatewayContext is a plain dataclass because it
carries the live TransactionRecord the adapter writes into.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from domain.payment.address import WalletAddress
from domain.payment.entity import Constraint, Money, TransactionRecord


@dataclass
class GatewayContext:
    """Host-side identity of one payment operation."""

    order_number: str
    payment_number: str
    currency: str
    order_total: Decimal
    transaction: Optional[TransactionRecord] = None
    ship_first_name: Optional[str] = None
    ship_last_name: Optional[str] = None


class GatewayResponse(BaseModel):
    """Uniform outcome of a gateway operation, kept for audit and debugging."""

    success: bool
    message: str
    params: dict[str, Any] = Field(default_factory=dict)
    raw: Optional[str] = None
    authorization: Optional[str] = None
    reference_id: Optional[str] = None
    reason_code: Optional[str] = None
    soft_decline: Optional[bool] = None


class SetOrderDetailsResult(BaseModel):
    success: bool
    state: Optional[str] = None
    total: Optional[Money] = None
    constraints: list[Constraint] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def constraint_message(self) -> Optional[str]:
        if not self.constraints:
            return None
        return "; ".join(str(c) for c in self.constraints)


class CheckoutStatus(str, Enum):
    COMPLETED = "completed"
    RETRY_ADDRESS = "retry_address"
    RETURN_TO_CART = "return_to_cart"


class CheckoutOutcome(BaseModel):
    status: CheckoutStatus
    message: Optional[str] = None
    order_number: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status is CheckoutStatus.COMPLETED


@dataclass
class DeliveryResult:
    """Outcome of loading the wallet address onto the host order."""

    address: Optional[WalletAddress] = None
    shippable: bool = False
