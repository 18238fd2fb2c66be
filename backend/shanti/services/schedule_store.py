# schedule store — owner-scoped access to the schedules collection
# insert stamps status/created_at/updated_at, updates bump updated_at

import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument

from shanti.services.db import Database

logger = logging.getLogger(__name__)


class ScheduleStore:
    """find / insert / update_one over the schedules collection.
    callers always include owner_id in the query; the store never widens it."""

    def __init__(self, db: Database):
        self._collection = db.schedules

    async def find(
        self,
        query: dict,
        sort: Optional[list[tuple[str, int]]] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        cursor = self._collection.find(query)
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)

        docs = []
        async for doc in cursor:
            docs.append(doc)
        return docs

    async def insert(self, fields: dict) -> dict:
        """insert a new record, defaulting status to scheduled"""
        now = datetime.now(timezone.utc)
        doc = {
            **fields,
            "status": fields.get("status", "scheduled"),
            "created_at": now,
            "updated_at": now,
        }
        result = await self._collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Schedule created: {doc['_id']} for owner {doc.get('owner_id')}")
        return doc

    async def update_one(self, query: dict, patch: dict) -> Optional[dict]:
        """apply a $set patch and return the updated record, or none if nothing matched"""
        update = {**patch, "updated_at": datetime.now(timezone.utc)}
        return await self._collection.find_one_and_update(
            query,
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
