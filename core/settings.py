"""
Wallet payment settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings: these values describe one wallet
gateway instance plus the HTTP policy shared by every gateway client.
"""
from __future__ import annotations

from typing import Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


API_VERSION = "2013-01-01"

Region = Literal["us", "uk", "de", "jp"]
REGIONS: tuple[str, ...] = ("us", "uk", "de", "jp")

_API_HOSTS = {
    "us": "https://mws.amazonservices.com",
    "uk": "https://mws-eu.amazonservices.com",
    "de": "https://mws-eu.amazonservices.com",
    "jp": "https://mws.amazonservices.jp",
}

_WIDGET_URLS = {
    "us": "https://static-na.payments-amazon.com/OffAmazonPayments/us{sandbox}/js/Widgets.js",
    "uk": "https://static-eu.payments-amazon.com/OffAmazonPayments/uk{sandbox}/lpa/js/Widgets.js",
    "de": "https://static-eu.payments-amazon.com/OffAmazonPayments/de{sandbox}/lpa/js/Widgets.js",
    "jp": "https://origin-na.ssl-images-amazon.com/images/G/09/EP/offAmazonPayments{sandbox}/prod/lpa/js/Widgets.js",
}


class PaymentTimeouts(BaseModel):
    connect: float = 2.0
    read: float = 10.0
    write: float = 5.0
    total: float = 15.0


class PaymentRetry(BaseModel):
    # Extra attempts after the first one for 500/503 responses
    max: int = 3
    base_backoff: float = 0.5
    max_backoff: float = 8.0


class GatewayConfig(BaseModel):
    """Settings of one configured wallet gateway instance."""

    currency: str = "USD"
    client_id: Optional[str] = None
    merchant_id: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region: Region = "us"
    sandbox: bool = True

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u

    @property
    def api_url(self) -> str:
        sandbox = "_Sandbox" if self.sandbox else ""
        return f"{_API_HOSTS[self.region]}/OffAmazonPayments{sandbox}/{API_VERSION}"

    @property
    def api_host(self) -> str:
        return urlsplit(self.api_url).netloc

    @property
    def api_path(self) -> str:
        return urlsplit(self.api_url).path or "/"

    @property
    def widgets_url(self) -> str:
        sandbox = "/sandbox" if self.sandbox else ""
        return _WIDGET_URLS[self.region].format(sandbox=sandbox)

    def missing_credentials(self) -> list[str]:
        names = ("merchant_id", "access_key_id", "secret_access_key")
        return [name for name in names if not getattr(self, name)]


class WalletSettings(BaseSettings):
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WALLET__",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


wallet_settings = WalletSettings()
