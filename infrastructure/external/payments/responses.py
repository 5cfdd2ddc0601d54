"""
Response decoding and typed accessors for wallet provider responses.

Bodies are XML (an action-specific root element, or ``ErrorResponse`` on
failure) and occasionally JSON. ``decode_body`` turns either into nested
dicts; the response classes below read typed fields out of that structure.
"""
from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Mapping, Optional

from core.logging_config import get_logger
from domain.payment.address import WalletAddress
from domain.payment.entity import Constraint, Money, RemoteOrderSnapshot
from shared.codes.payment_codes import SUCCESS_STATES


logger = get_logger(__name__)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_to_value(elem: ET.Element) -> Any:
    children = list(elem)
    if not children:
        text = (elem.text or "").strip()
        return text or None
    result: dict[str, Any] = {}
    for child in children:
        name = _local_name(child.tag)
        value = _element_to_value(child)
        if name in result:
            existing = result[name]
            if not isinstance(existing, list):
                result[name] = [existing]
            result[name].append(value)
        else:
            result[name] = value
    return result


def xml_to_dict(body: str | bytes) -> dict[str, Any]:
    """Decode an XML document into ``{root_name: nested_dicts}``; namespaces are dropped."""
    root = ET.fromstring(body)
    return {_local_name(root.tag): _element_to_value(root)}


def decode_body(body: bytes, content_type: str = "") -> Optional[Any]:
    """Structural decode of a response body, or None when it cannot be decoded."""
    if not body:
        return None
    text = body.decode("utf-8", errors="replace").strip()
    try:
        if "json" in content_type.lower() or text[:1] in ("{", "["):
            return json.loads(text)
        if text.startswith("<"):
            return xml_to_dict(text)
    except (ET.ParseError, json.JSONDecodeError) as exc:
        logger.warning("wallet_response_undecodable", content_type=content_type, error=str(exc))
    return None


def dig(data: Any, *path: str) -> Any:
    node = data
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _as_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    return str(value).strip().lower() == "true"


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        return None


@dataclass
class RawResponse:
    """Raw HTTP result of one remote call plus its structural decode."""

    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    data: Optional[Any] = None
    elapsed_ms: float = 0.0

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def request_id(self) -> Optional[str]:
        return dig(self.data, *self._root(), "ResponseMetadata", "RequestId") or dig(
            self.data, "ErrorResponse", "RequestId"
        )

    def _root(self) -> tuple[str, ...]:
        if isinstance(self.data, Mapping) and len(self.data) == 1:
            return (next(iter(self.data)),)
        return ()

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class ProviderResponse:
    """Shared accessors over a decoded provider response."""

    object_name: ClassVar[str] = ""
    call_name: ClassVar[str] = ""
    # Field names inside the details node; None means derive from object_name
    id_field: ClassVar[Optional[str]] = None
    reference_field: ClassVar[Optional[str]] = None
    amount_field: ClassVar[Optional[str]] = None
    status_field: ClassVar[Optional[str]] = None

    def __init__(self, response: RawResponse, *, call: Optional[str] = None) -> None:
        self.response = response
        self.call = call or self.call_name or self.object_name

    @property
    def type(self) -> str:
        return self.object_name

    @property
    def details_path(self) -> tuple[str, str, str]:
        return (f"{self.call}Response", f"{self.call}Result", f"{self.object_name}Details")

    def fetch(self, *path: str) -> Any:
        return dig(self.parse(), *path)

    def detail(self, *path: str) -> Any:
        return self.fetch(*self.details_path, *path)

    @property
    def details(self) -> Optional[Mapping[str, Any]]:
        node = self.detail()
        return node if isinstance(node, Mapping) else None

    @property
    def response_id(self) -> Optional[str]:
        return self.detail(self.id_field or f"Amazon{self.object_name}Id")

    @property
    def reference_id(self) -> Optional[str]:
        return self.detail(self.reference_field or f"{self.object_name}ReferenceId")

    @property
    def amount(self) -> Optional[Decimal]:
        return _as_decimal(self.detail(self.amount_field or f"{self.object_name}Amount", "Amount"))

    @property
    def currency_code(self) -> Optional[str]:
        return self.detail(self.amount_field or f"{self.object_name}Amount", "CurrencyCode")

    @property
    def state(self) -> Optional[str]:
        return self.detail(self.status_field or f"{self.object_name}Status", "State")

    @property
    def reason_code(self) -> Optional[str]:
        return self.detail(self.status_field or f"{self.object_name}Status", "ReasonCode")

    @property
    def reason_description(self) -> Optional[str]:
        return self.detail(self.status_field or f"{self.object_name}Status", "ReasonDescription")

    @property
    def success_state(self) -> bool:
        return self.state in SUCCESS_STATES

    @property
    def success(self) -> bool:
        return self.response.success

    @property
    def response_code(self) -> int:
        return self.response.status_code

    @property
    def error_code(self) -> Optional[str]:
        if self.success:
            return None
        return self.fetch("ErrorResponse", "Error", "Code")

    @property
    def error_message(self) -> Optional[str]:
        if self.success:
            return None
        return self.fetch("ErrorResponse", "Error", "Message")

    @property
    def error_response_present(self) -> bool:
        data = self.parse()
        return isinstance(data, Mapping) and data.get("ErrorResponse") is not None

    @property
    def body(self) -> str:
        return self.response.text()

    def parse(self) -> Any:
        return self.response.data

    def format_error(self) -> str:
        """``"{status} {code}: {message}"`` for structured errors, ``"{status} {body}"`` otherwise."""
        code = self.fetch("ErrorResponse", "Error", "Code")
        if self.error_response_present and code:
            message = self.fetch("ErrorResponse", "Error", "Message")
            return f"{self.response_code} {code}: {message}"
        return f"{self.response_code} {self.body}"


class AuthorizationResponse(ProviderResponse):
    # Authorize nests AuthorizationDetails, not AuthorizeDetails
    object_name = "Authorization"
    call_name = "Authorize"
    id_field = "AmazonAuthorizationId"
    reference_field = "AuthorizationReferenceId"
    amount_field = "AuthorizationAmount"
    status_field = "AuthorizationStatus"

    @property
    def soft_decline(self) -> Optional[bool]:
        return _as_bool(self.detail("SoftDecline"))


class CaptureResponse(ProviderResponse):
    object_name = "Capture"


class RefundResponse(ProviderResponse):
    object_name = "Refund"


class OrderReferenceResponse(ProviderResponse):
    """GetOrderReferenceDetails / SetOrderReferenceDetails responses."""

    object_name = "OrderReference"
    call_name = "GetOrderReferenceDetails"

    @property
    def reference_id(self) -> Optional[str]:
        return self.detail("AmazonOrderReferenceId")

    @property
    def response_id(self) -> Optional[str]:
        return self.reference_id

    @property
    def state(self) -> Optional[str]:
        return self.detail("OrderReferenceStatus", "State")

    @property
    def reason_code(self) -> Optional[str]:
        return self.detail("OrderReferenceStatus", "ReasonCode")

    @property
    def amount(self) -> Optional[Decimal]:
        return _as_decimal(self.detail("OrderTotal", "Amount"))

    @property
    def currency_code(self) -> Optional[str]:
        return self.detail("OrderTotal", "CurrencyCode")

    @property
    def total(self) -> Optional[Money]:
        amount = self.amount
        if amount is None:
            return None
        return Money(amount, (self.currency_code or "USD").upper())

    @property
    def email(self) -> Optional[str]:
        return self.detail("Buyer", "Email")

    @property
    def shipping_address(self) -> Optional[WalletAddress]:
        return WalletAddress.from_destination(self.detail("Destination", "PhysicalDestination"))

    @property
    def billing_address(self) -> Optional[WalletAddress]:
        return WalletAddress.from_destination(self.detail("BillingAddress", "PhysicalAddress"))

    @property
    def constraints(self) -> list[Constraint]:
        result = []
        for node in _as_list(self.detail("Constraints", "Constraint")):
            if isinstance(node, Mapping) and node.get("ConstraintID"):
                result.append(Constraint(id=node["ConstraintID"], description=node.get("Description")))
        return result

    def snapshot(self) -> RemoteOrderSnapshot:
        return RemoteOrderSnapshot(
            reference_id=self.reference_id,
            state=self.state,
            total=self.total,
            email=self.email,
            shipping_address=self.shipping_address,
            billing_address=self.billing_address,
            constraints=self.constraints,
        )
