"""
Prefix comparison between a parsed address and a parsed range.

Both arguments are expected to come out of core.address / core.ranges; the
matcher does no validation of its own beyond rejecting None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from core.address import Address, parse_address
from core.errors import MatchContractError
from core.ranges import RangeDescriptor, parse_range


@dataclass(frozen=True)
class MatchDecision:
    matched: bool
    address: Optional[str] = None
    matched_range: Optional[str] = None
    skipped: Tuple[str, ...] = field(default_factory=tuple)
    errors: Tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.matched


def address_in_range(address: Address, network: RangeDescriptor) -> bool:
    if address is None or network is None:
        raise MatchContractError("address and range cannot be None")

    ip_bytes = address.packed
    net_bytes = network.base.packed
    if len(ip_bytes) != len(net_bytes):
        return False

    full_bytes, rem_bits = divmod(network.prefix_length, 8)

    if ip_bytes[:full_bytes] != net_bytes[:full_bytes]:
        return False

    if rem_bits and full_bytes < len(ip_bytes):
        mask = (0xFF << (8 - rem_bits)) & 0xFF
        if ip_bytes[full_bytes] & mask != net_bytes[full_bytes] & mask:
            return False

    return True


def is_ip_in_cidr(ip: str, cidr: str, allow_ipv6: bool = False) -> bool:
    """
    String form of address_in_range. Raises MatchContractError for None and
    InvalidAddressError / InvalidRangeError for text that does not parse.
    """
    if ip is None or cidr is None:
        raise MatchContractError("IP and CIDR cannot be None")
    return address_in_range(parse_address(ip), parse_range(cidr, allow_ipv6=allow_ipv6))
