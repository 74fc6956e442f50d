"""WebAudit API: background audits with SSE streaming for live progress."""

import asyncio
import json
import uuid
from datetime import datetime

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from webaudit.config import AuditConfig
from webaudit.core.auditor import AuditCoordinator
from webaudit.models.types import AuditReport

app = FastAPI(title="WebAudit API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

audits: dict[str, dict] = {}
# Per-audit event queues for SSE streaming
_event_queues: dict[str, list[asyncio.Queue]] = {}

TERMINAL_EVENTS = {"audit_complete", "audit_failed"}


class AuditRequest(BaseModel):
    url: str
    concurrency_limit: int | None = Field(default=None, ge=1)


class AuditResponse(BaseModel):
    audit_id: str
    status: str
    url: str


@app.get("/health")
def health():
    return {"status": "ok", "service": "webaudit-api", "version": "0.1.0"}


@app.post("/api/v1/audit", response_model=AuditResponse)
async def start_audit(req: AuditRequest, background_tasks: BackgroundTasks):
    url = req.url.strip()
    if not url.startswith("http"):
        url = f"https://{url}"

    audit_id = str(uuid.uuid4())[:8]

    audits[audit_id] = {
        "audit_id": audit_id,
        "url": url,
        "status": "running",
        "started_at": datetime.now().isoformat(),
        "report": None,
        "report_path": None,
        "error": None,
    }
    _event_queues[audit_id] = []

    background_tasks.add_task(run_audit, audit_id, url, req.concurrency_limit)

    return AuditResponse(audit_id=audit_id, status="running", url=url)


@app.get("/api/v1/audit/{audit_id}/stream")
async def audit_stream(audit_id: str, request: Request):
    """SSE endpoint that streams live progress events during an audit."""
    if audit_id not in audits:
        raise HTTPException(status_code=404, detail="Audit not found")

    queue: asyncio.Queue = asyncio.Queue()
    _event_queues.setdefault(audit_id, []).append(queue)

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    break

                try:
                    event = await asyncio.wait_for(queue.get(), timeout=30.0)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue

                if event is None:
                    break

                event_type = event.get("type", "update")
                yield f"event: {event_type}\ndata: {json.dumps(event)}\n\n"

                if event_type in TERMINAL_EVENTS:
                    break
        finally:
            if queue in _event_queues.get(audit_id, []):
                _event_queues[audit_id].remove(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@app.get("/api/v1/audit/{audit_id}")
async def get_audit(audit_id: str):
    if audit_id not in audits:
        raise HTTPException(status_code=404, detail="Audit not found")

    audit = audits[audit_id]
    body = {
        "audit_id": audit_id,
        "status": audit["status"],
        "url": audit["url"],
        "started_at": audit["started_at"],
        "error": audit.get("error"),
    }
    report: AuditReport | None = audit.get("report")
    if audit["status"] == "completed" and report is not None:
        body["report"] = report.to_dict()
        body["report_path"] = audit.get("report_path")
    return body


@app.get("/api/v1/audits")
async def list_audits():
    return [
        {
            "audit_id": a["audit_id"],
            "url": a["url"],
            "status": a["status"],
            "started_at": a["started_at"],
            "overall_score": a["report"].overall_score if a.get("report") else None,
        }
        for a in audits.values()
    ]


def _broadcast_event(audit_id: str, event_type: str, data: dict):
    """Push an SSE event to all connected clients for this audit."""
    event = {"type": event_type, **data}
    for q in _event_queues.get(audit_id, []):
        q.put_nowait(event)


def build_coordinator(config: AuditConfig, on_progress) -> AuditCoordinator:
    return AuditCoordinator(config=config, on_progress=on_progress)


async def run_audit(audit_id: str, url: str, concurrency_limit: int | None = None):
    try:
        def on_progress(event_type: str, data: dict):
            _broadcast_event(audit_id, event_type, data)

        config = AuditConfig.from_env(concurrency_limit=concurrency_limit)
        coordinator = build_coordinator(config, on_progress)
        report = await coordinator.run_full_audit(url)
        audits[audit_id]["status"] = "completed"
        audits[audit_id]["report"] = report
        audits[audit_id]["report_path"] = str(coordinator.report_path) if coordinator.report_path else None
    except Exception as e:
        audits[audit_id]["status"] = "failed"
        audits[audit_id]["error"] = str(e)[:500]
        _broadcast_event(audit_id, "audit_failed", {"error": str(e)[:500]})

    # Signal end to all SSE listeners
    for q in _event_queues.get(audit_id, []):
        q.put_nowait(None)
