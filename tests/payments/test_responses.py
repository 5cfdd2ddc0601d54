from decimal import Decimal

from infrastructure.external.payments.responses import (
    AuthorizationResponse,
    CaptureResponse,
    OrderReferenceResponse,
    ProviderResponse,
    RawResponse,
    RefundResponse,
    decode_body,
    xml_to_dict,
)

from wallet_fakes import (
    US_ADDRESS,
    authorize_xml,
    capture_xml,
    error_xml,
    order_reference_xml,
    refund_xml,
)


def _raw(status: int, body: str, content_type: str = "text/xml") -> RawResponse:
    content = body.encode("utf-8")
    return RawResponse(status_code=status, body=content, data=decode_body(content, content_type))


def test_xml_to_dict_strips_namespaces_and_collects_repeats():
    data = xml_to_dict('<Root xmlns="urn:x"><Item>1</Item><Item>2</Item><Empty/></Root>')
    assert data == {"Root": {"Item": ["1", "2"], "Empty": None}}


def test_decode_body_json_and_garbage():
    assert decode_body(b'{"a": 1}', "application/json") == {"a": 1}
    assert decode_body(b"<broken", "text/xml") is None
    assert decode_body(b"", "text/xml") is None


def test_authorization_uses_authorize_result_path():
    response = AuthorizationResponse(_raw(200, authorize_xml("Open", amount="94.50", soft_decline="false")))

    assert response.type == "Authorization"
    assert response.response_id == "P01-1234567-1234567-A000001"
    assert response.reference_id == "R100_0-abc"
    assert response.amount == Decimal("94.50")
    assert response.currency_code == "USD"
    assert response.state == "Open"
    assert response.success_state is True
    assert response.success is True
    assert response.soft_decline is False
    assert response.error_code is None
    assert response.error_message is None


def test_authorization_decline_reason():
    response = AuthorizationResponse(
        _raw(200, authorize_xml("Declined", "InvalidPaymentMethod", soft_decline="true"))
    )
    assert response.state == "Declined"
    assert response.reason_code == "InvalidPaymentMethod"
    assert response.success_state is False
    assert response.soft_decline is True


def test_get_authorization_details_path():
    body = authorize_xml("Closed", "MaxCapturesProcessed", call="GetAuthorizationDetails")
    response = AuthorizationResponse(_raw(200, body), call="GetAuthorizationDetails")
    assert response.state == "Closed"
    assert response.reason_code == "MaxCapturesProcessed"


def test_capture_and_refund_paths():
    capture = CaptureResponse(_raw(200, capture_xml("Completed", amount="20.00")))
    assert capture.response_id == "P01-1234567-1234567-C000001"
    assert capture.reference_id == "R100_0-cap"
    assert capture.amount == Decimal("20.00")
    assert capture.success_state is True

    refund = RefundResponse(_raw(200, refund_xml("Pending")))
    assert refund.response_id == "P01-1234567-1234567-R000001"
    assert refund.state == "Pending"
    assert refund.success_state is False


def test_structured_error():
    message = "The OrderReferenceId ORDER_REFERENCE is invalid."
    response = CaptureResponse(_raw(404, error_xml("InvalidOrderReferenceId", message)))

    assert response.success is False
    assert response.response_code == 404
    assert response.error_response_present is True
    assert response.error_code == "InvalidOrderReferenceId"
    assert response.error_message == message
    assert response.details is None
    assert response.format_error() == f"404 InvalidOrderReferenceId: {message}"


def test_unstructured_error_uses_raw_body():
    response = ProviderResponse(_raw(400, "Bad Request", "text/plain"), call="CloseOrderReference")
    assert response.error_response_present is False
    assert response.error_code is None
    assert response.format_error() == "400 Bad Request"


def test_order_reference_snapshot():
    body = order_reference_xml(
        state="Open",
        amount="25.00",
        address=US_ADDRESS,
        constraints=[("ShippingAddressNotSet", "The seller has not set the shipping address.")],
    )
    snapshot = OrderReferenceResponse(_raw(200, body)).snapshot()

    assert snapshot.reference_id == "S01-1234567-1234567"
    assert snapshot.state == "Open"
    assert snapshot.total.amount == Decimal("25.00")
    assert snapshot.total.currency == "USD"
    assert snapshot.email == "buyer@example.com"
    assert snapshot.shipping_address.city == "New York"
    assert snapshot.shipping_address.first_name == "Jane"
    assert snapshot.billing_address is None
    assert [c.id for c in snapshot.constraints] == ["ShippingAddressNotSet"]


def test_order_reference_without_destination():
    snapshot = OrderReferenceResponse(_raw(200, order_reference_xml(amount=None, email=None))).snapshot()
    assert snapshot.shipping_address is None
    assert snapshot.total is None
    assert snapshot.email is None
    assert snapshot.constraints == []
