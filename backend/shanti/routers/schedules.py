# schedules router — list, book and cancel therapy sessions
# every query is scoped to the caller's owner id; mutations push fresh analytics
# to the owner's open streams once the response has gone out

import logging

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from shanti.models.schedule import (
    ScheduleCreate,
    ScheduleItemResponse,
    ScheduleListResponse,
    ScheduleResponse,
)
from shanti.services.broadcaster import SubscriberRegistry, safe_broadcast
from shanti.services.db import Database, get_db
from shanti.services.schedule_store import ScheduleStore
from shanti.dependencies import get_current_owner, get_registry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/schedules", tags=["schedules"])


def _doc_to_schedule(doc: dict) -> ScheduleResponse:
    """convert a mongodb schedule document to response model"""
    return ScheduleResponse(
        id=str(doc.get("_id", "")),
        ownerId=doc.get("owner_id", ""),
        therapistId=doc.get("therapist_id", ""),
        startTime=doc["start_time"],
        endTime=doc["end_time"],
        notes=doc.get("notes"),
        status=doc.get("status", "scheduled"),
        createdAt=doc.get("created_at"),
        updatedAt=doc.get("updated_at"),
    )


def _parse_object_id(schedule_id: str) -> ObjectId:
    try:
        return ObjectId(schedule_id)
    except (InvalidId, TypeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[{"loc": ["path", "id"], "msg": "Invalid schedule id", "type": "value_error"}],
        )


@router.get("", response_model=ScheduleListResponse)
async def list_schedules(
    owner_id: str = Depends(get_current_owner),
    db: Database = Depends(get_db),
):
    """list the caller's sessions, earliest first"""
    try:
        docs = await ScheduleStore(db).find({"owner_id": owner_id}, sort=[("start_time", 1)])
    except Exception as e:
        logger.error(f"Failed to fetch schedules for {owner_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch schedules",
        )

    return ScheduleListResponse(items=[_doc_to_schedule(doc) for doc in docs])


@router.post("", response_model=ScheduleItemResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    body: ScheduleCreate,
    background_tasks: BackgroundTasks,
    owner_id: str = Depends(get_current_owner),
    db: Database = Depends(get_db),
    registry: SubscriberRegistry = Depends(get_registry),
):
    """book a new session, status starts as scheduled"""
    try:
        doc = await ScheduleStore(db).insert({
            "owner_id": owner_id,
            "therapist_id": body.therapist_id,
            "start_time": body.start_time,
            "end_time": body.end_time,
            "notes": body.notes,
        })
    except Exception as e:
        logger.error(f"Failed to create schedule for {owner_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create schedule",
        )

    background_tasks.add_task(safe_broadcast, registry, owner_id, db)
    return ScheduleItemResponse(item=_doc_to_schedule(doc))


@router.post("/{schedule_id}/cancel", response_model=ScheduleItemResponse)
async def cancel_schedule(
    schedule_id: str,
    background_tasks: BackgroundTasks,
    owner_id: str = Depends(get_current_owner),
    db: Database = Depends(get_db),
    registry: SubscriberRegistry = Depends(get_registry),
):
    """cancel one of the caller's sessions. only scheduled sessions can be cancelled."""
    oid = _parse_object_id(schedule_id)
    store = ScheduleStore(db)

    try:
        updated = await store.update_one(
            {"_id": oid, "owner_id": owner_id, "status": "scheduled"},
            {"status": "cancelled"},
        )
        existing = None
        if not updated:
            existing = await store.find({"_id": oid, "owner_id": owner_id}, limit=1)
    except Exception as e:
        logger.error(f"Failed to cancel schedule {schedule_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel schedule",
        )

    if not updated:
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Schedule is already {existing[0].get('status')}",
            )
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

    logger.info(f"Schedule cancelled: {schedule_id} by owner {owner_id}")
    background_tasks.add_task(safe_broadcast, registry, owner_id, db)
    return ScheduleItemResponse(item=_doc_to_schedule(updated))
