"""
Wallet address value object and its mapping onto host address attributes.

The placeholder literals ("Amazon", "User", "N/A") keep the host's required
address fields populated when the wallet discloses only part of an address.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

FALLBACK_FIRST_NAME = "Amazon"
FALLBACK_LAST_NAME = "User"
FALLBACK_TEXT = "N/A"


@dataclass
class WalletAddress:
    name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    zipcode: Optional[str] = None
    state_name: Optional[str] = None
    country_code: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_destination(cls, node: Optional[Mapping[str, Any]]) -> Optional["WalletAddress"]:
        """Build from a decoded ``PhysicalDestination``/``PhysicalAddress`` node."""
        if not node or not isinstance(node, Mapping):
            return None
        return cls(
            name=node.get("Name"),
            address1=node.get("AddressLine1"),
            address2=node.get("AddressLine2"),
            city=node.get("City"),
            zipcode=node.get("PostalCode"),
            state_name=node.get("StateOrRegion"),
            country_code=node.get("CountryCode"),
            phone=node.get("Phone"),
        )

    @property
    def first_name(self) -> Optional[str]:
        if not self.name or not self.name.strip():
            return None
        return self.name.split(None, 1)[0]

    @property
    def last_name(self) -> Optional[str]:
        if not self.name or not self.name.strip():
            return None
        parts = self.name.split(None, 1)
        return parts[1] if len(parts) > 1 else ""


def _pick(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def host_address_attributes(
    address: WalletAddress,
    saved: Optional[Any] = None,
    country: Optional[Any] = None,
) -> dict[str, Any]:
    """Map a wallet address to host address attributes.

    ``saved`` is the shopper's stored address on the host (any object with
    the host attribute names), consulted before the placeholder literals.
    ``country`` is the host country record already resolved from
    ``address.country_code``.
    """
    def from_saved(attr: str) -> Any:
        return getattr(saved, attr, None) if saved is not None else None

    return {
        "firstname": _pick(address.first_name, from_saved("firstname"), FALLBACK_FIRST_NAME),
        "lastname": _pick(address.last_name, from_saved("lastname"), FALLBACK_LAST_NAME),
        "address1": _pick(address.address1, from_saved("address1"), FALLBACK_TEXT),
        "address2": _pick(address.address2, from_saved("address2"), FALLBACK_TEXT),
        "phone": _pick(address.phone, from_saved("phone"), FALLBACK_TEXT),
        "city": _pick(address.city, from_saved("city")),
        "zipcode": _pick(address.zipcode, from_saved("zipcode")),
        "state_name": _pick(address.state_name, from_saved("state_name")),
        "country": _pick(country, from_saved("country")),
    }
