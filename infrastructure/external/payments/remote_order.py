"""
One remote order reference and the calls made against it.

Lifecycle on the provider side::

    Draft --SetOrderReferenceDetails--> Draft
    Draft --ConfirmOrderReference-----> Open
    Open  --Authorize/Capture---------> Open
    Open  --CloseOrderReference-------> Closed
    Open  --CancelOrderReference------> Canceled

Declined and Closed references cannot be reused; a new reference is needed.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from core.config import settings
from core.logging_config import get_logger
from core.settings import GatewayConfig
from application.dtos.payments import SetOrderDetailsResult
from domain.payment.address import WalletAddress
from domain.payment.entity import Constraint, Money, RemoteOrderSnapshot
from infrastructure.external.payments.client import SignedRequestClient
from infrastructure.external.payments.exceptions import CloseFailure, WalletGatewayError
from infrastructure.external.payments.responses import (
    AuthorizationResponse,
    CaptureResponse,
    OrderReferenceResponse,
    ProviderResponse,
    RawResponse,
    RefundResponse,
)


logger = get_logger(__name__)

SUCCESS_PATH = "/amazon_order/complete"
FAILURE_PATH = "/amazon_order/confirmation"


def _amount(total: Decimal | Money) -> str:
    value = total.amount if isinstance(total, Money) else Decimal(total)
    return f"{value:.2f}"


class RemoteOrder:
    """A remote order reference bound to one explicit gateway configuration."""

    def __init__(
        self,
        reference_id: str,
        *,
        config: Optional[GatewayConfig] = None,
        client: Optional[SignedRequestClient] = None,
        address_consent_token: Optional[str] = None,
    ) -> None:
        if client is None:
            if config is None:
                raise ValueError("RemoteOrder needs a gateway config or a client")
            client = SignedRequestClient(config)
        self.reference_id = reference_id
        self.client = client
        self.config = client.config
        self.address_consent_token = address_consent_token

        self.state: Optional[str] = None
        self.total: Optional[Money] = None
        self.email: Optional[str] = None
        self.address: Optional[WalletAddress] = None
        self.billing_address: Optional[WalletAddress] = None
        self.constraints: list[Constraint] = []

    @classmethod
    async def find(
        cls,
        reference_id: str,
        *,
        client: SignedRequestClient,
        address_consent_token: Optional[str] = None,
    ) -> "RemoteOrder":
        order = cls(reference_id, client=client, address_consent_token=address_consent_token)
        await order.fetch()
        return order

    @property
    def currency(self) -> str:
        return self.total.currency if self.total else self.config.currency

    async def _call(self, action: str, params: dict[str, Any]) -> RawResponse:
        return await self.client.call(action, params)

    def _raise_for_error(self, action: str, parsed: ProviderResponse) -> None:
        if parsed.success:
            return
        message = parsed.format_error()
        logger.error("wallet_order_reference_error", action=action, reference_id=self.reference_id, error=message)
        raise WalletGatewayError(
            message,
            status_code=parsed.response_code,
            provider_code=parsed.error_code,
            details={"action": action, "reference_id": self.reference_id},
        )

    async def fetch(self, address_consent_token: Optional[str] = None) -> RemoteOrderSnapshot:
        token = address_consent_token or self.address_consent_token
        raw = await self._call(
            "GetOrderReferenceDetails",
            {"AmazonOrderReferenceId": self.reference_id, "AddressConsentToken": token},
        )
        parsed = OrderReferenceResponse(raw)
        self._raise_for_error("GetOrderReferenceDetails", parsed)
        snapshot = parsed.snapshot()
        self.state = snapshot.state
        self.total = snapshot.total
        self.email = snapshot.email
        self.address = snapshot.shipping_address
        self.billing_address = snapshot.billing_address
        self.constraints = snapshot.constraints
        logger.info(
            "wallet_order_reference_fetched",
            reference_id=self.reference_id,
            state=self.state,
            has_address=self.address is not None,
            constraints=[c.id for c in self.constraints],
        )
        return snapshot

    async def confirm(self) -> RawResponse:
        base = settings.DOMAIN_URL
        raw = await self._call(
            "ConfirmOrderReference",
            {
                "AmazonOrderReferenceId": self.reference_id,
                "SuccessUrl": f"{base}{SUCCESS_PATH}",
                "FailureUrl": f"{base}{FAILURE_PATH}",
            },
        )
        self._raise_for_error("ConfirmOrderReference", ProviderResponse(raw, call="ConfirmOrderReference"))
        logger.info("wallet_order_reference_confirmed", reference_id=self.reference_id)
        return raw

    async def set_order_reference_details(
        self,
        total: Decimal | Money,
        *,
        currency: Optional[str] = None,
        seller_note: Optional[str] = None,
        seller_order_id: Optional[str] = None,
        store_name: Optional[str] = None,
        custom_information: Optional[str] = None,
    ) -> SetOrderDetailsResult:
        code = (currency or (total.currency if isinstance(total, Money) else None) or self.config.currency).upper()
        raw = await self._call(
            "SetOrderReferenceDetails",
            {
                "AmazonOrderReferenceId": self.reference_id,
                "OrderReferenceAttributes.OrderTotal.Amount": _amount(total),
                "OrderReferenceAttributes.OrderTotal.CurrencyCode": code,
                "OrderReferenceAttributes.SellerNote": seller_note,
                "OrderReferenceAttributes.SellerOrderAttributes.SellerOrderId": seller_order_id,
                "OrderReferenceAttributes.SellerOrderAttributes.StoreName": store_name,
                "OrderReferenceAttributes.SellerOrderAttributes.CustomInformation": custom_information,
            },
        )
        parsed = OrderReferenceResponse(raw, call="SetOrderReferenceDetails")
        if not parsed.success:
            logger.warning(
                "wallet_set_order_details_failed",
                reference_id=self.reference_id,
                error=parsed.format_error(),
            )
            return SetOrderDetailsResult(
                success=False,
                error_code=parsed.error_code,
                error_message=parsed.error_message or parsed.format_error(),
            )
        result = SetOrderDetailsResult(
            success=True,
            state=parsed.state,
            total=parsed.total,
            constraints=parsed.constraints,
        )
        if result.constraints:
            logger.info(
                "wallet_order_reference_constrained",
                reference_id=self.reference_id,
                constraints=[c.id for c in result.constraints],
            )
        return result

    async def close_order_reference(self, closure_reason: Optional[str] = None) -> bool:
        raw = await self._call(
            "CloseOrderReference",
            {"AmazonOrderReferenceId": self.reference_id, "ClosureReason": closure_reason},
        )
        parsed = ProviderResponse(raw, call="CloseOrderReference")
        if parsed.success:
            logger.info("wallet_order_reference_closed", reference_id=self.reference_id)
            return True
        message = parsed.format_error()
        logger.warning("wallet_order_reference_close_failed", reference_id=self.reference_id, error=message)
        raise CloseFailure(message, status_code=parsed.response_code, provider_code=parsed.error_code)

    async def cancel(self, reason: Optional[str] = None) -> RawResponse:
        return await self._call(
            "CancelOrderReference",
            {"AmazonOrderReferenceId": self.reference_id, "CancelationReason": reason},
        )

    async def authorize(
        self,
        reference_id: str,
        total: Decimal | Money,
        currency: str,
        *,
        seller_authorization_note: Optional[str] = None,
    ) -> AuthorizationResponse:
        raw = await self._call(
            "Authorize",
            {
                "AmazonOrderReferenceId": self.reference_id,
                "AuthorizationReferenceId": reference_id,
                "AuthorizationAmount.Amount": _amount(total),
                "AuthorizationAmount.CurrencyCode": currency.upper(),
                "SellerAuthorizationNote": seller_authorization_note,
                # 0 is synchronous mode
                "TransactionTimeout": 0,
                "CaptureNow": False,
            },
        )
        return AuthorizationResponse(raw)

    async def capture(
        self,
        authorization_id: str,
        reference_id: str,
        total: Decimal | Money,
        currency: str,
        *,
        seller_capture_note: Optional[str] = None,
    ) -> CaptureResponse:
        raw = await self._call(
            "Capture",
            {
                "AmazonAuthorizationId": authorization_id,
                "CaptureReferenceId": reference_id,
                "CaptureAmount.Amount": _amount(total),
                "CaptureAmount.CurrencyCode": currency.upper(),
                "SellerCaptureNote": seller_capture_note,
            },
        )
        return CaptureResponse(raw)

    async def refund(
        self,
        capture_id: str,
        reference_id: str,
        total: Decimal | Money,
        currency: str,
        *,
        seller_refund_note: Optional[str] = None,
    ) -> RefundResponse:
        raw = await self._call(
            "Refund",
            {
                "AmazonCaptureId": capture_id,
                "RefundReferenceId": reference_id,
                "RefundAmount.Amount": _amount(total),
                "RefundAmount.CurrencyCode": currency.upper(),
                "SellerRefundNote": seller_refund_note,
            },
        )
        return RefundResponse(raw)

    async def get_authorization_details(self, authorization_id: str) -> AuthorizationResponse:
        raw = await self._call("GetAuthorizationDetails", {"AmazonAuthorizationId": authorization_id})
        return AuthorizationResponse(raw, call="GetAuthorizationDetails")

    async def get_capture_details(self, capture_id: str) -> CaptureResponse:
        raw = await self._call("GetCaptureDetails", {"AmazonCaptureId": capture_id})
        return CaptureResponse(raw, call="GetCaptureDetails")

    async def get_refund_details(self, refund_id: str) -> RefundResponse:
        raw = await self._call("GetRefundDetails", {"AmazonRefundId": refund_id})
        return RefundResponse(raw, call="GetRefundDetails")
