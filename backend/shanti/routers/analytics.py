# analytics router — live schedule summary for the dashboard
# /summary is the plain pull, /stream pushes the same payload over sse

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from shanti.models.analytics import AnalyticsSummary
from shanti.services.analytics_service import build_summary
from shanti.services.broadcaster import STREAM_HEADERS, SubscriberRegistry, stream_summaries
from shanti.services.db import Database, get_db
from shanti.dependencies import get_current_owner, get_registry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/summary", response_model=AnalyticsSummary)
async def get_summary(
    owner_id: str = Depends(get_current_owner),
    db: Database = Depends(get_db),
):
    """current summary, same shape as one stream payload"""
    try:
        return await build_summary(owner_id, db)
    except Exception as e:
        logger.error(f"Failed to build analytics summary for {owner_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to build analytics summary",
        )


@router.get("/stream")
async def stream_analytics(
    request: Request,
    owner_id: str = Depends(get_current_owner),
    db: Database = Depends(get_db),
    registry: SubscriberRegistry = Depends(get_registry),
) -> StreamingResponse:
    """server-sent events: one summary on connect, then one per schedule change.
    ": ping" comments keep idle connections open."""
    return StreamingResponse(
        stream_summaries(registry, owner_id, db, is_disconnected=request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
