"""
Signed HTTP client for the wallet provider API.

One ``call`` signs one action and POSTs it as a form body. 500 and 503 are
retried with exponential backoff; any other status goes back to the caller.
Timeouts and connection failures surface as transport errors, never as
declines.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Mapping, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.logging_config import get_logger
from core.settings import GatewayConfig, PaymentRetry, PaymentTimeouts, wallet_settings
from infrastructure.external.payments.exceptions import (
    GatewayConfigurationError,
    GatewayTimeout,
    GatewayTransportError,
    GatewayUnavailable,
)
from infrastructure.external.payments.responses import RawResponse, decode_body
from infrastructure.external.payments.signing import RequestSigner


logger = get_logger(__name__)

RETRY_STATUS_CODES = {500, 503}

ACTIONS = frozenset({
    "GetOrderReferenceDetails",
    "SetOrderReferenceDetails",
    "ConfirmOrderReference",
    "Authorize",
    "Capture",
    "Refund",
    "CancelOrderReference",
    "CloseOrderReference",
    "GetAuthorizationDetails",
    "GetCaptureDetails",
    "GetRefundDetails",
})


class _RetryableStatus(Exception):
    def __init__(self, response: RawResponse):
        super().__init__(f"Transient API error with status {response.status_code}")
        self.response = response


class SignedRequestClient:
    provider: str = "amazon"

    def __init__(
        self,
        config: GatewayConfig,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        retry: Optional[PaymentRetry] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        missing = config.missing_credentials()
        if missing:
            raise GatewayConfigurationError(missing)
        self.config = config
        self.signer = RequestSigner(config)
        self._timeouts_cfg = timeouts or wallet_settings.timeouts
        self._retry_cfg = retry or wallet_settings.retry
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg.connect,
            read=self._timeouts_cfg.read,
            write=self._timeouts_cfg.write,
            pool=self._timeouts_cfg.total,
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._transport)
        yield self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self) -> "SignedRequestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _send_once(self, action: str, params: Mapping[str, Any], now: Optional[datetime]) -> RawResponse:
        # Re-signed per attempt so the Timestamp stays fresh; params (and any
        # reference id inside them) are identical across attempts.
        signed = self.signer.sign_action(action, params, now=now)
        logger.debug("wallet_api_signed_request", action=action, params=signed.params)
        started = datetime.now()
        async with self.client() as http:
            resp = await http.post(
                signed.url,
                content=signed.body.encode("utf-8"),
                headers={"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"},
            )
        elapsed = (datetime.now() - started).total_seconds() * 1000
        content_type = resp.headers.get("content-type", "")
        raw = RawResponse(
            status_code=resp.status_code,
            body=resp.content,
            headers=dict(resp.headers),
            data=decode_body(resp.content, content_type),
            elapsed_ms=elapsed,
        )
        logger.info(
            "wallet_api_response",
            provider=self.provider,
            action=action,
            status_code=raw.status_code,
            elapsed_ms=round(elapsed, 2),
            request_id=raw.request_id,
        )
        if raw.status_code in RETRY_STATUS_CODES:
            raise _RetryableStatus(raw)
        return raw

    async def call(self, action: str, params: Mapping[str, Any], *, now: Optional[datetime] = None) -> RawResponse:
        """Sign and send one action.

        Raises:
            GatewayUnavailable: 500/503 persisted through every retry.
            GatewayTimeout: the request timed out.
            GatewayTransportError: the connection failed.
        """
        if action not in ACTIONS:
            raise ValueError(f"Unsupported wallet action: {action}")
        logger.info("wallet_api_request", provider=self.provider, action=action, region=self.config.region)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg.max) + 1),
            wait=wait_exponential(
                multiplier=self._retry_cfg.base_backoff,
                min=self._retry_cfg.base_backoff,
                max=self._retry_cfg.max_backoff,
            ),
            retry=retry_if_exception_type(_RetryableStatus),
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._send_once(action, params, now)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            status = last.response.status_code if isinstance(last, _RetryableStatus) else None
            logger.error("wallet_api_unavailable", provider=self.provider, action=action, status_code=status)
            raise GatewayUnavailable(
                f"{action} failed with status {status} after {self._retry_cfg.max + 1} attempts",
                status_code=status,
                details={"action": action},
            ) from exc
        except httpx.TimeoutException as exc:
            logger.error("wallet_api_timeout", provider=self.provider, action=action)
            raise GatewayTimeout(f"{action} timed out", details={"action": action}) from exc
        except httpx.TransportError as exc:
            logger.error("wallet_api_transport_error", provider=self.provider, action=action, error=str(exc))
            raise GatewayTransportError(f"{action} transport failure: {exc}", details={"action": action}) from exc
        raise GatewayUnavailable(f"{action} produced no response", details={"action": action})  # pragma: no cover
