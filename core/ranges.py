"""
Range notation ("address/prefix") validation.

The accepted grammar is dotted-quad IPv4 with a /0../32 suffix. IPv6 ranges
are only recognised when the caller opts in with allow_ipv6=True.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Optional

from core.address import IPV4, IPV6, Address
from core.errors import InvalidRangeError

_OCTET = r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
CIDR_PATTERN = re.compile(
    rf"(?P<base>(?:{_OCTET}\.){{3}}{_OCTET})/(?P<prefix>[0-9]|[1-2][0-9]|3[0-2])"
)
CIDR6_PATTERN = re.compile(r"(?P<base>[0-9A-Fa-f:]*:[0-9A-Fa-f:]*)/(?P<prefix>[0-9]{1,3})")


@dataclass(frozen=True)
class RangeDescriptor:
    base: Address
    prefix_length: int

    def __post_init__(self) -> None:
        if not 0 <= self.prefix_length <= self.base.max_prefix:
            raise InvalidRangeError(
                f"prefix /{self.prefix_length} out of bounds for IPv{self.base.family}"
            )

    def __str__(self) -> str:
        return f"{self.base}/{self.prefix_length}"


def _parse_v4(text: str) -> Optional[RangeDescriptor]:
    m = CIDR_PATTERN.fullmatch(text)
    if not m:
        return None
    # the grammar admits leading zeros ("010"); octets are read as decimal
    octets = bytes(int(part) for part in m.group("base").split("."))
    return RangeDescriptor(Address(IPV4, octets), int(m.group("prefix")))


def _parse_v6(text: str) -> Optional[RangeDescriptor]:
    m = CIDR6_PATTERN.fullmatch(text)
    if not m:
        return None
    prefix = int(m.group("prefix"))
    if prefix > 128:
        return None
    try:
        base = ipaddress.IPv6Address(m.group("base"))
    except ValueError:
        return None
    return RangeDescriptor(Address(IPV6, base.packed), prefix)


def _parse(value: Optional[str], allow_ipv6: bool) -> Optional[RangeDescriptor]:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if ":" in text:
        return _parse_v6(text) if allow_ipv6 else None
    return _parse_v4(text)


def is_valid_range(value: Optional[str], allow_ipv6: bool = False) -> bool:
    return _parse(value, allow_ipv6) is not None


def parse_range(value: Optional[str], allow_ipv6: bool = False) -> RangeDescriptor:
    descriptor = _parse(value, allow_ipv6)
    if descriptor is None:
        raise InvalidRangeError(f"invalid CIDR notation: {value!r}")
    return descriptor
