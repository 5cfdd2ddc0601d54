"""
Exceptions for the wallet provider mapped to unified BusinessException variants.

Business declines are never raised; these cover transport failures,
unusable responses, refused closes and local validation.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode

PROVIDER = "amazon"


class WalletGatewayError(BusinessException):
    """Fatal gateway error: server failure or a response that cannot be used."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        provider_code: Optional[str] = None,
        details: Optional[dict] = None,
        code: int = PaymentCode.PROVIDER_ERROR,
        error_type: str = "WalletGatewayError",
    ):
        full_details = {"provider": PROVIDER, "provider_code": provider_code, "status_code": status_code}
        if details:
            full_details.update(details)
        self.status_code = status_code
        self.provider_code = provider_code
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=full_details,
        )


class GatewayUnavailable(WalletGatewayError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[dict] = None):
        super().__init__(
            message,
            status_code=status_code,
            details=details,
            code=PaymentCode.PROVIDER_UNAVAILABLE,
            error_type="GatewayUnavailable",
        )


class GatewayTimeout(WalletGatewayError):
    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            message,
            details=details,
            code=PaymentCode.TIMEOUT,
            error_type="GatewayTimeout",
        )


class GatewayTransportError(WalletGatewayError):
    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            message,
            details=details,
            code=PaymentCode.PROVIDER_RECOVERABLE,
            error_type="GatewayTransportError",
        )


class CloseFailure(WalletGatewayError):
    """The remote side refused to close an order reference."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, provider_code: Optional[str] = None):
        super().__init__(
            message,
            status_code=status_code,
            provider_code=provider_code,
            code=PaymentCode.CLOSE_FAILED,
            error_type="CloseFailure",
        )


class GatewayConfigurationError(BusinessException):
    def __init__(self, missing: list[str]):
        super().__init__(
            code=PaymentCode.CONFIGURATION_ERROR,
            message=f"Wallet gateway configuration incomplete: {', '.join(missing)}",
            error_type="GatewayConfigurationError",
            details={"provider": PROVIDER, "missing": missing},
        )


class InvalidAmountError(BusinessException):
    def __init__(self, operation: str, amount_cents: int):
        super().__init__(
            code=PaymentCode.INVALID_AMOUNT,
            message=f"{operation} requires a non-negative amount, got {amount_cents}",
            error_type="InvalidAmountError",
            details={"provider": PROVIDER, "operation": operation, "amount": amount_cents},
            field="amount",
        )
