"""
Literal network address validation.

Only the `ipaddress` literal parsers are used here: an untrusted string must
never be handed to anything that could turn it into a DNS lookup.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Optional

from core.errors import InvalidAddressError

IPV4 = 4
IPV6 = 6

_FAMILY_LENGTH = {IPV4: 4, IPV6: 16}


@dataclass(frozen=True)
class Address:
    family: int
    packed: bytes

    def __post_init__(self) -> None:
        expected = _FAMILY_LENGTH.get(self.family)
        if expected is None or len(self.packed) != expected:
            raise InvalidAddressError(
                f"family {self.family} requires {expected} bytes, got {len(self.packed)}"
            )

    @property
    def max_prefix(self) -> int:
        return len(self.packed) * 8

    def __str__(self) -> str:
        return str(ipaddress.ip_address(self.packed))


def _parse_v4(text: str) -> Optional[Address]:
    try:
        parsed = ipaddress.IPv4Address(text)
    except ValueError:
        return None
    # "192.168.1" style shorthand must not be completed into a full address
    if str(parsed) != text:
        return None
    return Address(IPV4, parsed.packed)


def _parse_v6(text: str) -> Optional[Address]:
    if ":" not in text or "." in text:
        return None
    try:
        parsed = ipaddress.IPv6Address(text)
    except ValueError:
        return None
    return Address(IPV6, parsed.packed)


def _parse(value: Optional[str]) -> Optional[Address]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if ":" in text:
        return _parse_v6(text)
    return _parse_v4(text)


def is_valid_address(value: Optional[str]) -> bool:
    return _parse(value) is not None


def parse_address(value: Optional[str]) -> Address:
    """
    Build an Address from a literal. Accepts exactly what is_valid_address
    accepts and raises InvalidAddressError for everything else.
    """
    address = _parse(value)
    if address is None:
        raise InvalidAddressError(f"invalid IP address: {value!r}")
    return address
