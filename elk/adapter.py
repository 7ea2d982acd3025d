"""
Elasticsearch sink for access-decision audit records.

Writes sit on the token request path, so each record gets exactly one
attempt with a short timeout and no retry/backoff. Audit writes never
influence the allow/deny outcome.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from elasticsearch import Elasticsearch

from core.config import settings
from core.models import DecisionRecord


def _client_from_settings() -> Elasticsearch:
    if not settings.elasticsearch_url:
        raise ValueError("ELASTICSEARCH_URL is required for ElasticsearchAdapter")

    extra: Dict = {}
    if settings.elasticsearch_api_key:
        extra["api_key"] = settings.elasticsearch_api_key
    elif settings.elasticsearch_user and settings.elasticsearch_pass:
        extra["basic_auth"] = (settings.elasticsearch_user, settings.elasticsearch_pass)
    if settings.elasticsearch_ca_cert:
        extra["ca_certs"] = settings.elasticsearch_ca_cert

    return Elasticsearch(
        settings.elasticsearch_url,
        verify_certs=settings.elasticsearch_verify_certs,
        **extra,
    )


class ElasticsearchAdapter:
    def __init__(self, client: Optional[Elasticsearch] = None):
        self.client = client if client is not None else _client_from_settings()
        self.index = settings.audit_index
        self.timeout_s = settings.audit_timeout_s

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except Exception:  # noqa: BLE001
            return False

    def index_decision(self, record: DecisionRecord) -> None:
        """Single attempt; errors propagate to the caller, which logs them."""
        self.client.options(request_timeout=self.timeout_s, max_retries=0).index(
            index=self.index,
            document=record.model_dump(mode="json"),
        )

    def search_decisions(self, client_id: str, size: int = 50) -> List[Dict]:
        try:
            res = self.client.search(
                index=self.index,
                size=size,
                query={"term": {"client_id.keyword": client_id}},
                sort=[{"timestamp": {"order": "desc"}}],
            )
            hits = res.get("hits", {}).get("hits", [])
            return [h.get("_source", {}) for h in hits]
        except Exception:  # noqa: BLE001
            return []
