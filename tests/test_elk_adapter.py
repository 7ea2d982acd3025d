import time

import pytest

from core.models import Client, DecisionRecord, PolicyContext, PolicyEvent, RequestInfo
from elk import adapter as elk_adapter
from elk.adapter import ElasticsearchAdapter
from policy.policy_engine import IpWhitelistExecutor


class FakeES:
    def __init__(self, hits=None, fail=False):
        self.hits = hits or []
        self.fail = fail
        self.indexed = []
        self.searches = []
        self.options_calls = []

    def options(self, **kwargs):
        self.options_calls.append(kwargs)
        return self

    def index(self, index, document):
        if self.fail:
            raise ConnectionError("es down")
        self.indexed.append((index, document))

    def ping(self):
        if self.fail:
            raise ConnectionError("es down")
        return True

    def search(self, **kwargs):
        self.searches.append(kwargs)
        if self.fail:
            raise ConnectionError("es down")
        return {"hits": {"hits": [{"_source": h} for h in self.hits]}}


def _record(**kwargs):
    data = dict(client_id="svc", client_ip="10.0.0.1", allowed=True, event="token_request", matched_range="10.0.0.0/8")
    data.update(kwargs)
    return DecisionRecord(**data)


def test_requires_url_without_client(monkeypatch):
    monkeypatch.setattr(elk_adapter.settings, "elasticsearch_url", None)
    with pytest.raises(ValueError):
        ElasticsearchAdapter()


def test_index_decision(monkeypatch):
    monkeypatch.setattr(elk_adapter.settings, "audit_index", "decisions-test")
    monkeypatch.setattr(elk_adapter.settings, "audit_timeout_s", 1.5)
    fake = FakeES()
    ElasticsearchAdapter(client=fake).index_decision(_record())

    index, doc = fake.indexed[0]
    assert index == "decisions-test"
    assert doc["client_id"] == "svc"
    assert doc["allowed"] is True
    assert isinstance(doc["timestamp"], str)
    assert fake.options_calls == [{"request_timeout": 1.5, "max_retries": 0}]


def test_index_decision_failure_is_single_attempt():
    fake = FakeES(fail=True)
    with pytest.raises(ConnectionError):
        ElasticsearchAdapter(client=fake).index_decision(_record())
    assert len(fake.options_calls) == 1


def test_unreachable_audit_does_not_stall_executor(monkeypatch):
    slept = []
    monkeypatch.setattr(time, "sleep", lambda s: slept.append(s))
    monkeypatch.setattr(elk_adapter.settings, "allowed_ip_ranges_attr", "allowed.ip.ranges")
    es = ElasticsearchAdapter(client=FakeES(fail=True))
    context = PolicyContext(
        event=PolicyEvent.TOKEN_REQUEST,
        client=Client(client_id="svc", attributes={"allowed.ip.ranges": "10.0.0.0/8"}),
        request=RequestInfo(remote_addr="10.1.1.1"),
    )

    start = time.monotonic()
    decision = IpWhitelistExecutor(audit_sink=es.index_decision).execute_on_event(context)
    assert decision.matched
    assert slept == []
    assert time.monotonic() - start < 0.5


def test_search_decisions():
    fake = FakeES(hits=[{"client_id": "svc", "allowed": False}])
    adapter = ElasticsearchAdapter(client=fake)
    assert adapter.search_decisions("svc") == [{"client_id": "svc", "allowed": False}]
    assert fake.searches[0]["query"] == {"term": {"client_id.keyword": "svc"}}


def test_failures_are_reported_not_raised():
    adapter = ElasticsearchAdapter(client=FakeES(fail=True))
    assert adapter.search_decisions("svc") == []
    assert adapter.ping() is False
