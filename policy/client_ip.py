"""
Client IP extraction from proxy headers and the transport peer address.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

log = logging.getLogger(__name__)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def client_ip_from_request(
    headers: Optional[Mapping[str, str]],
    remote_addr: Optional[str],
    trust_proxy_headers: bool = True,
    forwarded_for_header: str = "X-Forwarded-For",
    real_ip_header: str = "X-Real-IP",
) -> Optional[str]:
    """
    Pick the caller's address: first X-Forwarded-For entry, then X-Real-IP,
    then the peer address. Returns None when none of them is usable.
    """
    headers = headers or {}
    if trust_proxy_headers:
        forwarded_for = _header(headers, forwarded_for_header)
        if forwarded_for and forwarded_for.strip():
            client_ip = forwarded_for.split(",")[0].strip()
            log.debug("Client IP from %s: %s", forwarded_for_header, client_ip)
            return client_ip

        real_ip = _header(headers, real_ip_header)
        if real_ip and real_ip.strip():
            log.debug("Client IP from %s: %s", real_ip_header, real_ip)
            return real_ip.strip()

    if remote_addr and remote_addr.strip():
        log.debug("Client IP from remote address: %s", remote_addr)
        return remote_addr.strip()

    log.warning("Could not determine client IP address from any source")
    return None
