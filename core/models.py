"""
Interchange models passed between the HTTP layer, the policy executor and the
audit sink: Client -> RequestInfo -> PolicyContext -> DecisionRecord.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PolicyEvent(str, Enum):
    TOKEN_REQUEST = "token_request"
    SERVICE_ACCOUNT_TOKEN_REQUEST = "service_account_token_request"
    AUTHORIZATION_REQUEST = "authorization_request"
    TOKEN_REFRESH = "token_refresh"
    LOGOUT = "logout"


TOKEN_ENDPOINT_EVENTS = frozenset(
    {PolicyEvent.TOKEN_REQUEST, PolicyEvent.SERVICE_ACCOUNT_TOKEN_REQUEST}
)


class Client(BaseModel):
    client_id: str
    attributes: Dict[str, str] = Field(default_factory=dict)

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)


class RequestInfo(BaseModel):
    headers: Dict[str, str] = Field(default_factory=dict)
    remote_addr: Optional[str] = None


class PolicyContext(BaseModel):
    event: PolicyEvent
    client: Optional[Client] = None
    request: RequestInfo = Field(default_factory=RequestInfo)


class DecisionRecord(BaseModel):
    client_id: str
    client_ip: str
    allowed: bool
    event: str
    matched_range: Optional[str] = None
    skipped_ranges: List[str] = Field(default_factory=list)
    error_ranges: List[str] = Field(default_factory=list)
    timestamp: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
