"""
Signature Version 2 request signing for the wallet provider API.

Parameters are sorted by key, percent-encoded with the strict RFC 3986
unreserved set (only ``A-Za-z0-9-_.~`` pass through, space becomes ``%20``),
joined into ``POST\\n{host}\\n{path}\\n{query}`` and signed with HMAC-SHA256.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional
from urllib.parse import quote

from core.settings import API_VERSION, GatewayConfig

SIGNATURE_METHOD = "HmacSHA256"
SIGNATURE_VERSION = "2"
HTTP_METHOD = "POST"

_UNRESERVED = "-_.~"


def percent_encode(value: Any) -> str:
    return quote(_to_text(value), safe=_UNRESERVED)


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def timestamp(now: Optional[datetime] = None) -> str:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def canonical_query(params: Mapping[str, Any]) -> str:
    items = sorted((k, v) for k, v in params.items() if v is not None)
    return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in items)


def string_to_sign(host: str, path: str, params: Mapping[str, Any]) -> str:
    return "\n".join([HTTP_METHOD, host.lower(), path or "/", canonical_query(params)])


def sign(secret_key: str, payload: str) -> str:
    digest = hmac.new(secret_key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class SignedRequest:
    url: str
    body: str
    params: dict[str, Any]
    string_to_sign: str


class RequestSigner:
    """Adds the boilerplate parameters and signs one action call."""

    def __init__(self, config: GatewayConfig) -> None:
        self.config = config

    def base_params(self, action: str, *, now: Optional[datetime] = None) -> dict[str, Any]:
        return {
            "Action": action,
            "AWSAccessKeyId": self.config.access_key_id,
            "SellerId": self.config.merchant_id,
            "SignatureMethod": SIGNATURE_METHOD,
            "SignatureVersion": SIGNATURE_VERSION,
            "Timestamp": timestamp(now),
            "Version": API_VERSION,
        }

    def sign_action(
        self,
        action: str,
        params: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> SignedRequest:
        merged = {k: v for k, v in params.items() if v is not None}
        merged.update(self.base_params(action, now=now))
        payload = string_to_sign(self.config.api_host, self.config.api_path, merged)
        signature = sign(self.config.secret_access_key or "", payload)
        body = f"{canonical_query(merged)}&Signature={percent_encode(signature)}"
        return SignedRequest(
            url=self.config.api_url,
            body=body,
            params=merged,
            string_to_sign=payload,
        )
