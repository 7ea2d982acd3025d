"""
Range-set evaluation: decides whether a client IP belongs to any of the
administrator-configured CIDR ranges.

Fail-closed: a missing or malformed address, an empty range list, or a
range whose evaluation blows up all resolve to "not in range". Malformed
entries are skipped so they can never hide a valid match further down.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from core.address import parse_address
from core.errors import AllowlistError
from core.matcher import MatchDecision, address_in_range
from core.ranges import is_valid_range, parse_range

log = logging.getLogger(__name__)


def _valid_ranges(
    ranges: Iterable[Optional[str]], allow_ipv6: bool, skipped: List[str]
) -> Iterator[str]:
    for raw in ranges:
        if raw is None or not raw.strip():
            continue
        cidr = raw.strip()
        if not is_valid_range(cidr, allow_ipv6=allow_ipv6):
            log.warning("Invalid CIDR notation: %s", cidr)
            skipped.append(cidr)
            continue
        yield cidr


def evaluate(
    candidate: Optional[str], ranges: Optional[Iterable[Optional[str]]], allow_ipv6: bool = False
) -> MatchDecision:
    if candidate is None or not candidate.strip():
        log.warning("Client IP is null or empty")
        return MatchDecision(matched=False)

    ranges = list(ranges) if ranges is not None else []
    if not ranges:
        log.warning("No allowed IP ranges provided")
        return MatchDecision(matched=False, address=candidate.strip())

    candidate = candidate.strip()
    try:
        address = parse_address(candidate)
    except AllowlistError:
        log.warning("Invalid client IP format: %s", candidate)
        return MatchDecision(matched=False, address=candidate)

    skipped: List[str] = []
    errors: List[str] = []
    for cidr in _valid_ranges(ranges, allow_ipv6, skipped):
        try:
            if address_in_range(address, parse_range(cidr, allow_ipv6=allow_ipv6)):
                log.debug("IP %s matches CIDR range %s", candidate, cidr)
                return MatchDecision(
                    matched=True,
                    address=candidate,
                    matched_range=cidr,
                    skipped=tuple(skipped),
                    errors=tuple(errors),
                )
        except Exception as exc:  # noqa: BLE001
            log.error("Error checking IP %s against CIDR range %s: %s", candidate, cidr, exc)
            errors.append(cidr)

    log.debug("IP %s does not match any allowed CIDR ranges", candidate)
    return MatchDecision(
        matched=False, address=candidate, skipped=tuple(skipped), errors=tuple(errors)
    )


def is_in_any_range(
    candidate: Optional[str], ranges: Optional[Iterable[Optional[str]]], allow_ipv6: bool = False
) -> bool:
    return evaluate(candidate, ranges, allow_ipv6=allow_ipv6).matched
