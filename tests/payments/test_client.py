import httpx
import pytest

from core.settings import GatewayConfig
from infrastructure.external.payments.client import SignedRequestClient
from infrastructure.external.payments.exceptions import (
    GatewayConfigurationError,
    GatewayTimeout,
    GatewayTransportError,
    GatewayUnavailable,
)
from shared.codes.payment_codes import PaymentCode

from wallet_fakes import FakeProvider, authorize_xml, error_xml


def _client(config, provider, retry):
    return SignedRequestClient(config, retry=retry, transport=provider.transport())


def test_missing_credentials_rejected_before_network():
    with pytest.raises(GatewayConfigurationError) as exc_info:
        SignedRequestClient(GatewayConfig(merchant_id="M"))
    assert exc_info.value.code == PaymentCode.CONFIGURATION_ERROR
    assert exc_info.value.details["missing"] == ["access_key_id", "secret_access_key"]


@pytest.mark.asyncio
async def test_posts_signed_form_body(gateway_config, fast_retry):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=authorize_xml().encode(), headers={"content-type": "text/xml"})

    client = SignedRequestClient(gateway_config, retry=fast_retry, transport=httpx.MockTransport(handler))
    async with client:
        raw = await client.call("Authorize", {"AmazonOrderReferenceId": "S01"})

    assert raw.status_code == 200
    assert raw.success is True
    assert raw.request_id == "5f20169b-7ab2-11df-bcef-d35615e2b044"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == gateway_config.api_url
    assert request.headers["content-type"].startswith("application/x-www-form-urlencoded")
    assert "&Signature=" in request.content.decode()


@pytest.mark.asyncio
async def test_retries_503_then_succeeds_with_same_params(gateway_config, fast_retry):
    provider = FakeProvider().on("Authorize", (503, "Service Unavailable"), (200, authorize_xml()))
    client = _client(gateway_config, provider, fast_retry)

    raw = await client.call("Authorize", {"AuthorizationReferenceId": "R100_0-abc"})

    assert raw.status_code == 200
    calls = provider.calls("Authorize")
    assert len(calls) == 2
    assert {c["AuthorizationReferenceId"] for c in calls} == {"R100_0-abc"}
    await client.aclose()


@pytest.mark.asyncio
async def test_persistent_500_raises_unavailable(gateway_config, fast_retry):
    provider = FakeProvider().on("Capture", (500, "Internal Server Error"))
    client = _client(gateway_config, provider, fast_retry)

    with pytest.raises(GatewayUnavailable) as exc_info:
        await client.call("Capture", {"AmazonAuthorizationId": "P01"})

    assert exc_info.value.status_code == 500
    assert exc_info.value.code == PaymentCode.PROVIDER_UNAVAILABLE
    assert len(provider.calls("Capture")) == fast_retry.max + 1
    await client.aclose()


@pytest.mark.asyncio
async def test_client_errors_are_returned_not_retried(gateway_config, fast_retry):
    provider = FakeProvider().on("CloseOrderReference", (400, error_xml("InvalidParameterValue", "Bad value")))
    client = _client(gateway_config, provider, fast_retry)

    raw = await client.call("CloseOrderReference", {"AmazonOrderReferenceId": "S01"})

    assert raw.status_code == 400
    assert raw.success is False
    assert len(provider.requests) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_timeout_is_a_transport_error(gateway_config, fast_retry):
    provider = FakeProvider().on("Authorize", httpx.ReadTimeout("timed out"))
    client = _client(gateway_config, provider, fast_retry)

    with pytest.raises(GatewayTimeout) as exc_info:
        await client.call("Authorize", {})
    assert exc_info.value.code == PaymentCode.TIMEOUT
    assert len(provider.requests) == 1
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_failure(gateway_config, fast_retry):
    provider = FakeProvider().on("Refund", httpx.ConnectError("connection refused"))
    client = _client(gateway_config, provider, fast_retry)

    with pytest.raises(GatewayTransportError):
        await client.call("Refund", {})
    await client.aclose()


@pytest.mark.asyncio
async def test_unknown_action_rejected(gateway_config, fast_retry):
    client = _client(gateway_config, FakeProvider(), fast_retry)
    with pytest.raises(ValueError):
        await client.call("ListOrders", {})
