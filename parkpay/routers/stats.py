"""Dashboard statistics: one-shot JSON and a server-sent-events stream."""

import asyncio
import json
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from parkpay.database import get_db, SessionLocal
from parkpay.schemas.stats import DashboardStats
from parkpay.services.stats_service import compute_stats
from parkpay.services.stats_stream import broadcaster
from parkpay.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/admin/stats", response_model=DashboardStats)
def get_stats(db: Session = Depends(get_db)):
    return compute_stats(db)


def _stats_event() -> str:
    db = SessionLocal()
    try:
        payload = compute_stats(db)
    except Exception as e:
        logger.error(f"[STATS] Could not compute stats: {e}", exc_info=True)
        payload = {"error": "Error calculating stats"}
    finally:
        db.close()
    return f"data: {json.dumps(payload)}\n\n"


async def _stats_events(request: Request):
    queue = await broadcaster.subscribe()
    try:
        yield await asyncio.to_thread(_stats_event)
        while not await request.is_disconnected():
            await queue.get()
            yield await asyncio.to_thread(_stats_event)
    finally:
        await broadcaster.unsubscribe(queue)


@router.get("/admin/stats-stream", summary="Live stats (text/event-stream)")
async def stats_stream(request: Request):
    """Pushes the stats on connect and again whenever a ticket, car or payment changes."""
    return StreamingResponse(
        _stats_events(request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
