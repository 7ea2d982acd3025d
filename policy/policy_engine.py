"""
Client policy executor gating token issuance on the caller's network origin.
Only token endpoint events are checked; the allowlist comes from the client's
`allowed.ip.ranges` attribute and the decision from core.authz_scope.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from core.authz_scope import evaluate
from core.config import settings
from core.errors import ClientPolicyError
from core.matcher import MatchDecision
from core.models import TOKEN_ENDPOINT_EVENTS, DecisionRecord, PolicyContext
from policy.client_ip import client_ip_from_request

log = logging.getLogger(__name__)

AuditSink = Callable[[DecisionRecord], None]


class IpWhitelistExecutor:
    def __init__(self, audit_sink: Optional[AuditSink] = None):
        self.audit_sink = audit_sink

    @property
    def provider_id(self) -> str:
        return IpWhitelistExecutorFactory.PROVIDER_ID

    def execute_on_event(self, context: PolicyContext) -> Optional[MatchDecision]:
        log.info("IpWhitelistExecutor called")

        if context.event not in TOKEN_ENDPOINT_EVENTS:
            log.info("Ignoring non-token endpoint context: %s", context.event.value)
            return None

        client = context.client
        if client is None:
            return None

        remote_ip = client_ip_from_request(
            context.request.headers,
            context.request.remote_addr,
            trust_proxy_headers=settings.trust_proxy_headers,
            forwarded_for_header=settings.forwarded_for_header,
            real_ip_header=settings.real_ip_header,
        )
        if not remote_ip:
            log.error("Could not determine client IP address")
            raise ClientPolicyError("Access denied from IpWhitelistExecutor: Unable to determine client IP")

        allowed_ranges_str = client.get_attribute(settings.allowed_ip_ranges_attr)
        log.debug("Allowed IP ranges: %s", allowed_ranges_str)
        if not allowed_ranges_str:
            log.error("No allowed IP ranges configured for client ID: %s", client.client_id)
            raise ClientPolicyError("Access denied from IpWhitelistExecutor: No allowed IP ranges configured")

        log.debug("Client ID: %s, IP: %s", client.client_id, remote_ip)
        allowed_ranges: List[str] = allowed_ranges_str.split(",")
        decision = evaluate(remote_ip, allowed_ranges, allow_ipv6=settings.allow_ipv6_ranges)
        self._audit(context, remote_ip, decision)

        if decision.matched:
            log.info("Access granted from IpWhitelistExecutor for IP: %s", remote_ip)
            return decision

        log.error("Access denied from IpWhitelistExecutor for IP: %s", remote_ip)
        raise ClientPolicyError("Access denied from IpWhitelistExecutor", error="invalid_client", status_code=403)

    def _audit(self, context: PolicyContext, remote_ip: str, decision: MatchDecision) -> None:
        if self.audit_sink is None:
            return
        record = DecisionRecord(
            client_id=context.client.client_id,
            client_ip=remote_ip,
            allowed=decision.matched,
            event=context.event.value,
            matched_range=decision.matched_range,
            skipped_ranges=list(decision.skipped),
            error_ranges=list(decision.errors),
        )
        try:
            self.audit_sink(record)
        except Exception:  # noqa: BLE001
            log.exception("audit sink failed for client %s", record.client_id)


class IpWhitelistExecutorFactory:
    PROVIDER_ID = "df-ip-whitelist-client"
    HELP_TEXT = (
        "On token endpoint requests, this executor checks whether the client IP address "
        "is inside the CIDR ranges of the client's allowed.ip.ranges attribute. If not, it denies the request."
    )

    def __init__(self, audit_sink: Optional[AuditSink] = None):
        self.audit_sink = audit_sink

    def create(self) -> IpWhitelistExecutor:
        return IpWhitelistExecutor(audit_sink=self.audit_sink)

    def get_id(self) -> str:
        return self.PROVIDER_ID

    def get_help_text(self) -> str:
        return self.HELP_TEXT

    def get_config_properties(self) -> List[dict]:
        return []
