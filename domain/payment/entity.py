"""
钱包支付领域实体 - 本地交易记录与远端订单快照

TransactionRecord mirrors the remote order-reference lifecycle for one
payment attempt. An order owns many records; the most recently created one
is the active record consulted for every gateway operation.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from domain.common.exceptions import DomainValidationException

if TYPE_CHECKING:  # pragma: no cover
    from application.ports.host import HostPayment
    from domain.payment.address import WalletAddress


class PaymentState(str, Enum):
    """Host payment states the wallet source cares about."""
    CHECKOUT = "checkout"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    VOID = "void"
    INVALID = "invalid"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _state_of(payment: "HostPayment") -> str:
    state = payment.state
    return state.value if isinstance(state, Enum) else str(state)


@dataclass
class Money:
    amount: Decimal
    currency: str

    @classmethod
    def from_cents(cls, cents: int, currency: str) -> "Money":
        return cls((Decimal(cents) / Decimal(100)).quantize(Decimal("0.01")), currency.upper())

    def to_cents(self) -> int:
        return int((self.amount * 100).to_integral_value())

    def formatted(self) -> str:
        # Remote API expects a plain decimal string with two places
        return f"{self.amount:.2f}"


@dataclass
class Constraint:
    """A blocking reason reported on a remote order reference."""
    id: str
    description: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.id}: {self.description}" if self.description else self.id


@dataclass
class RemoteOrderSnapshot:
    reference_id: Optional[str]
    state: Optional[str]
    total: Optional[Money]
    email: Optional[str] = None
    shipping_address: Optional["WalletAddress"] = None
    billing_address: Optional["WalletAddress"] = None
    constraints: list[Constraint] = field(default_factory=list)


@dataclass
class TransactionRecord:
    """
    钱包交易记录 - 远端订单引用在本地的镜像

    业务规则：
    1. order_reference 一经设置不可更改
    2. capture_id 仅在扣款成功后写入
    3. closed_at 仅在远端关闭成功后写入
    """

    id: Optional[int]
    order_id: int
    order_reference: Optional[str] = None
    authorization_id: Optional[str] = None
    authorization_reference_id: Optional[str] = None
    capture_id: Optional[str] = None
    closed_at: Optional[datetime] = None
    success: Optional[bool] = None
    message: Optional[str] = None
    soft_decline: Optional[bool] = None
    retry: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    name = "Pay with Amazon"
    cc_type = "n/a"
    display_number = "n/a"
    actions = ("capture", "credit", "void", "close")

    def __post_init__(self):
        self.closed_at = _ensure_utc(self.closed_at)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def assign_order_reference(self, reference: str) -> None:
        """业务规则：order_reference 只能设置一次"""
        if not reference:
            raise DomainValidationException("order reference must not be empty", field="order_reference")
        if self.order_reference and self.order_reference != reference:
            raise DomainValidationException(
                f"order reference already set to {self.order_reference}",
                field="order_reference",
            )
        self.order_reference = reference
        self._touch()

    def record_authorization(
        self,
        *,
        success: bool,
        message: str,
        reference_id: str,
        authorization_id: Optional[str] = None,
        soft_decline: Optional[bool] = None,
        retry: bool = False,
    ) -> None:
        self.success = success
        self.message = message
        self.authorization_reference_id = reference_id
        if authorization_id:
            self.authorization_id = authorization_id
        self.soft_decline = soft_decline
        self.retry = retry
        self._touch()

    def record_capture(self, capture_id: str) -> None:
        if not capture_id:
            raise DomainValidationException("capture id must not be empty", field="capture_id")
        self.capture_id = capture_id
        self._touch()

    def mark_closed(self, at: Optional[datetime] = None) -> None:
        self.closed_at = _ensure_utc(at) or datetime.now(timezone.utc)
        self._touch()

    @property
    def captured(self) -> bool:
        return self.capture_id is not None

    # Payment-source capabilities consulted by the host admin/payment pipeline

    def can_capture(self, payment: "HostPayment") -> bool:
        return _state_of(payment) in (PaymentState.PENDING.value, PaymentState.CHECKOUT.value) and payment.amount > 0

    def can_credit(self, payment: "HostPayment") -> bool:
        return _state_of(payment) == PaymentState.COMPLETED.value and payment.credit_allowed > 0

    def can_void(self, payment: "HostPayment") -> bool:
        return _state_of(payment) == PaymentState.PENDING.value

    def can_close(self, payment: "HostPayment") -> bool:
        return _state_of(payment) == PaymentState.COMPLETED.value and self.closed_at is None
