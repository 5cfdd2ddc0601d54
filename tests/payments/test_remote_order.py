from decimal import Decimal

import pytest

from core.config import settings
from domain.payment.entity import Money
from infrastructure.external.payments.client import SignedRequestClient
from infrastructure.external.payments.exceptions import CloseFailure, WalletGatewayError
from infrastructure.external.payments.remote_order import RemoteOrder

from wallet_fakes import (
    US_ADDRESS,
    FakeProvider,
    authorize_xml,
    empty_xml,
    error_xml,
    order_reference_xml,
)


REFERENCE = "S01-1234567-1234567"


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def remote(gateway_config, fast_retry, provider):
    client = SignedRequestClient(gateway_config, retry=fast_retry, transport=provider.transport())
    return RemoteOrder(REFERENCE, client=client)


def test_requires_config_or_client():
    with pytest.raises(ValueError):
        RemoteOrder(REFERENCE)


@pytest.mark.asyncio
async def test_fetch_populates_snapshot(remote, provider):
    provider.on("GetOrderReferenceDetails", (200, order_reference_xml(state="Draft", address=US_ADDRESS)))

    snapshot = await remote.fetch("consent-token")

    assert snapshot.state == "Draft"
    assert remote.state == "Draft"
    assert remote.total == Money(Decimal("10.00"), "USD")
    assert remote.email == "buyer@example.com"
    assert remote.address.address1 == "123 Main St"
    assert remote.address.zipcode == "10001"
    assert remote.constraints == []
    call = provider.calls("GetOrderReferenceDetails")[0]
    assert call["AmazonOrderReferenceId"] == REFERENCE
    assert call["AddressConsentToken"] == "consent-token"


@pytest.mark.asyncio
async def test_fetch_error_raises(remote, provider):
    provider.on(
        "GetOrderReferenceDetails",
        (404, error_xml("InvalidOrderReferenceId", "The OrderReferenceId ORDER_REFERENCE is invalid.")),
    )
    with pytest.raises(WalletGatewayError) as exc_info:
        await remote.fetch()
    assert exc_info.value.message == "404 InvalidOrderReferenceId: The OrderReferenceId ORDER_REFERENCE is invalid."
    assert exc_info.value.provider_code == "InvalidOrderReferenceId"


@pytest.mark.asyncio
async def test_find_fetches(gateway_config, fast_retry, provider):
    provider.on("GetOrderReferenceDetails", (200, order_reference_xml(state="Open")))
    client = SignedRequestClient(gateway_config, retry=fast_retry, transport=provider.transport())

    order = await RemoteOrder.find(REFERENCE, client=client)

    assert order.state == "Open"
    assert "AddressConsentToken" not in provider.requests[0]


@pytest.mark.asyncio
async def test_confirm_sends_callback_urls(remote, provider, monkeypatch):
    monkeypatch.setattr(settings, "DOMAIN_URL", "https://shop.example.com")
    provider.on("ConfirmOrderReference", (200, empty_xml("ConfirmOrderReference")))

    await remote.confirm()

    call = provider.calls("ConfirmOrderReference")[0]
    assert call["SuccessUrl"] == "https://shop.example.com/amazon_order/complete"
    assert call["FailureUrl"] == "https://shop.example.com/amazon_order/confirmation"


@pytest.mark.asyncio
async def test_confirm_error_raises(remote, provider):
    provider.on("ConfirmOrderReference", (400, error_xml("InvalidOrderReferenceStatus", "Not in Draft")))
    with pytest.raises(WalletGatewayError):
        await remote.confirm()


@pytest.mark.asyncio
async def test_set_order_reference_details_surfaces_constraints(remote, provider):
    body = order_reference_xml(
        call="SetOrderReferenceDetails",
        amount="12.50",
        constraints=[
            ("PaymentPlanNotSet", "The buyer has not selected a payment method."),
            ("ShippingAddressNotSet", "The buyer has not selected a shipping address."),
        ],
    )
    provider.on("SetOrderReferenceDetails", (200, body))

    result = await remote.set_order_reference_details(
        Decimal("12.5"),
        currency="usd",
        seller_order_id="R100",
        store_name="Test Store",
    )

    assert result.success is True
    assert result.state == "Draft"
    assert result.total == Money(Decimal("12.50"), "USD")
    assert [c.id for c in result.constraints] == ["PaymentPlanNotSet", "ShippingAddressNotSet"]
    assert result.constraint_message == (
        "PaymentPlanNotSet: The buyer has not selected a payment method.; "
        "ShippingAddressNotSet: The buyer has not selected a shipping address."
    )
    call = provider.calls("SetOrderReferenceDetails")[0]
    assert call["OrderReferenceAttributes.OrderTotal.Amount"] == "12.50"
    assert call["OrderReferenceAttributes.OrderTotal.CurrencyCode"] == "USD"
    assert call["OrderReferenceAttributes.SellerOrderAttributes.SellerOrderId"] == "R100"
    assert call["OrderReferenceAttributes.SellerOrderAttributes.StoreName"] == "Test Store"
    assert "OrderReferenceAttributes.SellerNote" not in call


@pytest.mark.asyncio
async def test_set_order_reference_details_error_is_a_value(remote, provider):
    provider.on("SetOrderReferenceDetails", (400, error_xml("InvalidOrderReferenceStatus", "Order is Closed")))

    result = await remote.set_order_reference_details(Money(Decimal("10.00"), "USD"))

    assert result.success is False
    assert result.error_code == "InvalidOrderReferenceStatus"
    assert result.error_message == "Order is Closed"
    assert result.constraints == []


@pytest.mark.asyncio
async def test_total_set_then_fetched(remote, provider):
    provider.on(
        "SetOrderReferenceDetails",
        (200, order_reference_xml(call="SetOrderReferenceDetails", state="Draft", amount="31.40")),
    )
    provider.on("GetOrderReferenceDetails", (200, order_reference_xml(state="Draft", amount="31.40")))

    result = await remote.set_order_reference_details(Decimal("31.40"), currency="USD")
    await remote.fetch()

    sent = provider.calls("SetOrderReferenceDetails")[0]
    assert sent["OrderReferenceAttributes.OrderTotal.Amount"] == "31.40"
    assert result.total == Money(Decimal("31.40"), "USD")
    assert remote.total == result.total
    assert remote.total.formatted() == sent["OrderReferenceAttributes.OrderTotal.Amount"]


@pytest.mark.asyncio
async def test_close_success(remote, provider):
    provider.on("CloseOrderReference", (200, empty_xml("CloseOrderReference")))
    assert await remote.close_order_reference() is True


@pytest.mark.asyncio
async def test_close_structured_failure(remote, provider):
    provider.on(
        "CloseOrderReference",
        (404, error_xml("InvalidOrderReferenceId", "The OrderReferenceId ORDER_REFERENCE is invalid.")),
    )
    with pytest.raises(CloseFailure) as exc_info:
        await remote.close_order_reference()
    assert str(exc_info.value) == "404 InvalidOrderReferenceId: The OrderReferenceId ORDER_REFERENCE is invalid."


@pytest.mark.asyncio
async def test_close_unstructured_failure(remote, provider):
    provider.on("CloseOrderReference", (400, "Bad Request"))
    with pytest.raises(CloseFailure) as exc_info:
        await remote.close_order_reference()
    assert str(exc_info.value) == "400 Bad Request"


@pytest.mark.asyncio
async def test_authorize_is_synchronous(remote, provider):
    provider.on("Authorize", (200, authorize_xml("Open")))

    response = await remote.authorize("R100_0-abc", Money(Decimal("10.00"), "USD"), "usd", seller_authorization_note="note")

    assert response.success_state is True
    call = provider.calls("Authorize")[0]
    assert call["AmazonOrderReferenceId"] == REFERENCE
    assert call["AuthorizationReferenceId"] == "R100_0-abc"
    assert call["AuthorizationAmount.Amount"] == "10.00"
    assert call["AuthorizationAmount.CurrencyCode"] == "USD"
    assert call["TransactionTimeout"] == "0"
    assert call["CaptureNow"] == "false"
    assert call["SellerAuthorizationNote"] == "note"
