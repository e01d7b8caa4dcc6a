"""
Telemetry ingestion endpoint.
POST /events/telemetry — receives one message or a batch (JSON array).
"""

from fastapi import APIRouter, Request
from machine_telemetry.utils.json_parser import safe_parse_json, as_batch
from machine_telemetry.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/events/telemetry", summary="Telemetry ingestion — one event or a batch")
async def receive_telemetry(request: Request):
    """
    Runs every event through the configured handler.
    Always returns HTTP 200 — skips and failures are reported per event,
    the delivery layer must not redeliver the whole batch because of them.
    """
    raw_body = await request.body()
    if not raw_body:
        return {"status": "ignored", "reason": "empty body"}

    data = safe_parse_json(raw_body)
    if data is None:
        logger.error(f"Telemetry body is not valid JSON ({len(raw_body)} bytes)")
        return {"status": "error", "detail": "body is not valid JSON"}

    batch = as_batch(data)
    logger.info(f"Telemetry batch from {request.client.host if request.client else '?'} | {len(batch)} events")

    summary = await request.app.state.handler.handle_batch(batch)
    return {"status": "ok", **summary.to_dict()}
