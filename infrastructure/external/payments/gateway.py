"""
Wallet gateway adapter invoked by the host payment pipeline.

Every operation returns a GatewayResponse. Business declines are values on
that response and on the TransactionRecord; only transport failures and
unusable responses are raised.
"""
from __future__ import annotations

import json
import secrets
import string
from dataclasses import replace
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional

from core.logging_config import get_logger
from application.dtos.payments import GatewayContext, GatewayResponse
from application.ports.host import HostPayment
from domain.common.exceptions import DomainValidationException
from domain.payment.entity import Money, TransactionRecord
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.external.payments.client import SignedRequestClient
from infrastructure.external.payments.exceptions import InvalidAmountError, WalletGatewayError
from infrastructure.external.payments.remote_order import RemoteOrder
from infrastructure.external.payments.responses import ProviderResponse
from shared.codes.payment_codes import SOFT_DECLINE_REASONS


logger = get_logger(__name__)

SIMULATION_SENTINEL = "SandboxSimulation"
SOFT_DECLINE_MESSAGE = (
    "Your payment method was declined. Please select a different payment method in your wallet."
)

_KEY_ALPHABET = string.digits + string.ascii_lowercase
_KEY_LENGTH = 10


def generate_reference_id(payment_number: str) -> str:
    """Idempotency key for one logical remote operation: ``{payment_number}-{10 base36 chars}``."""
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(_KEY_LENGTH))
    return f"{payment_number}-{suffix}"


def simulation_note(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    """Sandbox directive encoded in the shipping name, e.g. ``InvalidPaymentMethod-2 SandboxSimulation``."""
    if last_name != SIMULATION_SENTINEL or not first_name:
        return None
    reason, _, minutes_text = first_name.partition("-")
    minutes = int(minutes_text) if minutes_text.isdigit() else 1
    if reason == "InvalidPaymentMethod":
        directive: dict[str, Any] = {
            "State": "Declined",
            "ReasonCode": reason,
            "PaymentMethodUpdateTimeInMins": minutes,
        }
    elif reason == "ExpiredUnused":
        directive = {"State": "Closed", "ReasonCode": reason, "ExpirationTimeInMins": minutes}
    elif reason == "AmazonClosed":
        directive = {"State": "Closed", "ReasonCode": reason}
    else:
        directive = {"State": "Declined", "ReasonCode": reason}
    return json.dumps({"SandboxSimulation": directive})


def _params_of(response: ProviderResponse) -> dict[str, Any]:
    data = response.parse()
    return dict(data) if isinstance(data, Mapping) else {}


class WalletGateway:
    provider: str = "amazon"

    def __init__(
        self,
        client: SignedRequestClient,
        uow_factory: Optional[Callable[..., AbstractUnitOfWork]] = None,
    ) -> None:
        self.client = client
        self.config = client.config
        self._uow_factory = uow_factory

    async def aclose(self) -> None:
        await self.client.aclose()

    def remote_order(self, transaction: TransactionRecord) -> RemoteOrder:
        if not transaction.order_reference:
            raise DomainValidationException("transaction has no order reference", field="order_reference")
        return RemoteOrder(transaction.order_reference, client=self.client)

    async def _save(self, transaction: TransactionRecord) -> None:
        # Each save commits on its own so checkout reads the outcome from a fresh unit of work
        if self._uow_factory is None or transaction.id is None:
            return
        async with self._uow_factory() as uow:
            await uow.transaction_repository.update(transaction)

    def _failed_or_raise(self, operation: str, response: ProviderResponse, reference_id: Optional[str]) -> GatewayResponse:
        """Structured 4xx errors become failed results; anything else is fatal."""
        status = response.response_code
        if 400 <= status < 500 and response.error_code:
            logger.warning(
                "wallet_operation_rejected",
                operation=operation,
                status_code=status,
                error_code=response.error_code,
            )
            return GatewayResponse(
                success=False,
                message=response.error_message or response.format_error(),
                params=_params_of(response),
                raw=response.body,
                reference_id=reference_id,
                reason_code=response.error_code,
            )
        logger.error("wallet_operation_failed", operation=operation, status_code=status)
        raise WalletGatewayError(
            response.format_error(),
            status_code=status,
            provider_code=response.error_code,
            details={"operation": operation},
        )

    def _require_details(self, operation: str, response: ProviderResponse) -> None:
        if response.details is None:
            logger.error("wallet_response_malformed", operation=operation, status_code=response.response_code)
            raise WalletGatewayError(
                f"{operation} returned no {response.type} details",
                status_code=response.response_code,
                details={"operation": operation},
            )

    async def authorize(self, amount_cents: int, transaction: TransactionRecord, context: GatewayContext) -> GatewayResponse:
        if amount_cents < 0:
            raise InvalidAmountError("authorize", amount_cents)
        remote = self.remote_order(transaction)
        reference_id = generate_reference_id(context.payment_number)
        money = Money.from_cents(amount_cents, context.currency)
        note = None
        if self.config.sandbox:
            note = simulation_note(context.ship_first_name, context.ship_last_name)

        logger.info(
            "wallet_authorize_request",
            order_number=context.order_number,
            order_reference=transaction.order_reference,
            reference_id=reference_id,
            amount=money.formatted(),
            simulation=note is not None,
        )
        response = await remote.authorize(reference_id, money, money.currency, seller_authorization_note=note)

        if not response.success:
            result = self._failed_or_raise("authorize", response, reference_id)
            transaction.record_authorization(
                success=False,
                message=result.message,
                reference_id=reference_id,
            )
            await self._save(transaction)
            return result

        self._require_details("authorize", response)
        reason = response.reason_code
        soft_decline = False
        retry = False
        if response.success_state:
            success, message = True, "Success"
        elif reason in SOFT_DECLINE_REASONS:
            success, soft_decline, retry = False, True, True
            message = response.reason_description or SOFT_DECLINE_MESSAGE
        else:
            success = False
            message = f"Authorization failure: {reason}"

        transaction.record_authorization(
            success=success,
            message=message,
            reference_id=reference_id,
            authorization_id=response.response_id,
            soft_decline=soft_decline,
            retry=retry,
        )
        await self._save(transaction)
        logger.info(
            "wallet_authorize_result",
            order_number=context.order_number,
            reference_id=reference_id,
            state=response.state,
            reason_code=reason,
            success=success,
            soft_decline=soft_decline,
        )
        return GatewayResponse(
            success=success,
            message=message,
            params=_params_of(response),
            raw=response.body,
            authorization=response.response_id,
            reference_id=reference_id,
            reason_code=reason,
            soft_decline=soft_decline,
        )

    async def capture(self, amount_cents: int, transaction: TransactionRecord, context: GatewayContext) -> GatewayResponse:
        if amount_cents < 0:
            if context.transaction is None:
                context = replace(context, transaction=transaction)
            return await self.credit(abs(amount_cents), context)
        if not transaction.authorization_id:
            raise DomainValidationException("transaction has no authorization to capture", field="authorization_id")

        remote = self.remote_order(transaction)
        reference_id = generate_reference_id(context.payment_number)
        money = Money.from_cents(amount_cents, context.currency)
        logger.info(
            "wallet_capture_request",
            order_number=context.order_number,
            authorization_id=transaction.authorization_id,
            reference_id=reference_id,
            amount=money.formatted(),
        )
        response = await remote.capture(transaction.authorization_id, reference_id, money, money.currency)
        if not response.success:
            return self._failed_or_raise("capture", response, reference_id)

        self._require_details("capture", response)
        success = response.state == "Completed"
        if success and response.response_id:
            transaction.record_capture(response.response_id)
            await self._save(transaction)
        message = "Success" if success else f"Capture failure: {response.reason_code or response.state}"
        logger.info(
            "wallet_capture_result",
            order_number=context.order_number,
            reference_id=reference_id,
            state=response.state,
            success=success,
        )
        return GatewayResponse(
            success=success,
            message=message,
            params=_params_of(response),
            raw=response.body,
            authorization=response.response_id,
            reference_id=reference_id,
            reason_code=response.reason_code,
        )

    async def purchase(self, amount_cents: int, transaction: TransactionRecord, context: GatewayContext) -> GatewayResponse:
        authorized = await self.authorize(amount_cents, transaction, context)
        if not authorized.success:
            return authorized
        return await self.capture(amount_cents, transaction, context)

    async def _refund(self, transaction: TransactionRecord, money: Money, context: GatewayContext, operation: str) -> GatewayResponse:
        reference_id = generate_reference_id(context.payment_number)
        logger.info(
            "wallet_refund_request",
            operation=operation,
            order_number=context.order_number,
            capture_id=transaction.capture_id,
            reference_id=reference_id,
            amount=money.formatted(),
        )
        response = await self.remote_order(transaction).refund(
            transaction.capture_id, reference_id, money, money.currency
        )
        if not response.success:
            return self._failed_or_raise(operation, response, reference_id)
        logger.info("wallet_refund_result", operation=operation, reference_id=reference_id, state=response.state)
        return GatewayResponse(
            success=True,
            message="Success",
            params=_params_of(response),
            raw=response.body,
            authorization=response.response_id,
            reference_id=reference_id,
            reason_code=response.reason_code,
        )

    async def credit(self, amount_cents: int, context: GatewayContext) -> GatewayResponse:
        """Refund against the captured charge; the refundable balance is not checked here."""
        if amount_cents < 0:
            raise InvalidAmountError("credit", amount_cents)
        transaction = context.transaction
        if transaction is None or not transaction.capture_id:
            raise DomainValidationException("credit requires a captured transaction", field="capture_id")
        money = Money.from_cents(amount_cents, context.currency)
        return await self._refund(transaction, money, context, "credit")

    async def void(self, context: GatewayContext) -> GatewayResponse:
        transaction = context.transaction
        if transaction is None:
            raise DomainValidationException("void requires a transaction", field="transaction")

        # Decided on the locally stored capture id; the remote side is not re-read first
        if transaction.captured:
            total = Money(Decimal(context.order_total).quantize(Decimal("0.01")), context.currency.upper())
            return await self._refund(transaction, total, context, "void")

        remote = self.remote_order(transaction)
        logger.info("wallet_cancel_request", order_number=context.order_number, order_reference=remote.reference_id)
        raw = await remote.cancel()
        response = ProviderResponse(raw, call="CancelOrderReference")
        if not response.success:
            return self._failed_or_raise("void", response, None)
        return GatewayResponse(success=True, message="Success", params=_params_of(response), raw=response.body)

    async def cancel(self, context: GatewayContext) -> GatewayResponse:
        return await self.void(context)

    async def close(self, transaction: TransactionRecord, payment: HostPayment) -> GatewayResponse:
        """Close the remote order reference of a completed payment.

        Payments that cannot be closed are a no-op success. Raises CloseFailure
        when the remote side refuses.
        """
        if not transaction.can_close(payment):
            return GatewayResponse(success=True, message="Nothing to close")
        await self.remote_order(transaction).close_order_reference()
        transaction.mark_closed()
        await self._save(transaction)
        return GatewayResponse(success=True, message="Success")
