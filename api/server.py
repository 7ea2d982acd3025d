"""
FastAPI surface exposing the allowlist decision and the token endpoint gate.
Client allowlists come from core.config (CLIENTS); decisions are optionally
written to Elasticsearch through elk.adapter after the response is sent.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.authz_scope import evaluate
from core.config import settings
from core.errors import ClientPolicyError
from core.models import Client, DecisionRecord, PolicyContext, PolicyEvent, RequestInfo
from elk.adapter import ElasticsearchAdapter
from policy.policy_engine import IpWhitelistExecutor, IpWhitelistExecutorFactory

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)
    yield


app = FastAPI(title="IP Allowlist Gate API", version="1.0", lifespan=lifespan)
elk = ElasticsearchAdapter() if settings.elasticsearch_url else None


class EvaluatePayload(BaseModel):
    client_ip: Optional[str] = None
    ranges: Optional[List[Optional[str]]] = None


class TokenCheckPayload(BaseModel):
    client_id: str


def _write_audit(record: DecisionRecord) -> None:
    try:
        elk.index_decision(record)
    except Exception:  # noqa: BLE001
        log.exception("audit write failed for client %s", record.client_id)


def _executor(background_tasks: BackgroundTasks) -> IpWhitelistExecutor:
    sink = None
    if elk is not None:
        def sink(record: DecisionRecord) -> None:
            background_tasks.add_task(_write_audit, record)
    return IpWhitelistExecutorFactory(audit_sink=sink).create()


@app.post("/api/evaluate")
def api_evaluate(payload: EvaluatePayload):
    try:
        decision = evaluate(payload.client_ip, payload.ranges, allow_ipv6=settings.allow_ipv6_ranges)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "allowed": decision.matched,
        "matched_range": decision.matched_range,
        "skipped": list(decision.skipped),
        "errors": list(decision.errors),
    }


@app.post("/api/token/check")
def api_token_check(payload: TokenCheckPayload, request: Request, background_tasks: BackgroundTasks):
    ranges = settings.clients.get(payload.client_id)
    if ranges is None:
        raise HTTPException(status_code=404, detail=f"unknown client {payload.client_id}")

    context = PolicyContext(
        event=PolicyEvent.TOKEN_REQUEST,
        client=Client(client_id=payload.client_id, attributes={settings.allowed_ip_ranges_attr: ranges}),
        request=RequestInfo(
            headers=dict(request.headers),
            remote_addr=request.client.host if request.client else None,
        ),
    )
    try:
        decision = _executor(background_tasks).execute_on_event(context)
    except ClientPolicyError as exc:
        # deny decisions are audited as well
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), background=background_tasks)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        log.exception("token check failed")
        raise HTTPException(status_code=500, detail="token check failed") from exc

    return {
        "allowed": True,
        "client_id": payload.client_id,
        "client_ip": decision.address,
        "matched_range": decision.matched_range,
    }


@app.get("/api/health")
def api_health():
    return {
        "provider": IpWhitelistExecutorFactory.PROVIDER_ID,
        "clients": len(settings.clients),
        "audit": elk.ping() if elk else False,
    }
