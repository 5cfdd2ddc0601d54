"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责配置与日志，领域层不反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        message_key: Optional[str] = None,
        format_params: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        self.message_key = message_key
        self.format_params = format_params
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
        message_key: str | None = None,
        format_params: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
            message_key=message_key or "validation.domain",
            format_params=format_params,
        )


class TransactionRecordNotFoundException(BusinessException):
    def __init__(self, *, order_id: Optional[int] = None, record_id: Optional[int] = None):
        details = {}
        if order_id is not None:
            details["order_id"] = order_id
        if record_id is not None:
            details["record_id"] = record_id
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message="Wallet transaction not found",
            error_type="TransactionRecordNotFound",
            details=details or None,
            message_key="wallet.transaction.not_found",
        )
