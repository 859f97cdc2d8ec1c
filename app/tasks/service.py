"""Task service - CRUD, listing and participation."""

import logging
import re
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from pymongo import ReturnDocument

from app.core.database import Database, TASKS_COLLECTION
from app.core.documents import parse_object_id, serialize, utcnow, validate_merged
from app.core.exceptions import ConflictException, ExpiredException, NotFoundException
from app.core.pagination import page_window
from app.tasks.deadlines import is_task_expired
from app.tasks.models import TaskCreate, TaskDocument, TaskUpdate

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


def normalize_task_payload(payload: dict) -> dict:
    """
    Applied to every task document before it is written.

    A weekly task is always featured. The reverse does not hold: clearing
    is_weekly leaves featured as it was.
    """
    if payload.get("is_weekly") is True:
        payload["featured"] = True
    return payload


class TaskService:
    """Service for brand tasks."""

    @staticmethod
    def _get_collection():
        return Database.get_collection(TASKS_COLLECTION)

    @classmethod
    async def list_tasks(
        cls,
        status: Optional[str] = None,
        brand: Optional[str] = None,
        category: Optional[str] = None,
        is_weekly: Optional[bool] = None,
        is_sponsored: Optional[bool] = None,
        featured: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[dict], int]:
        """
        List tasks with optional filters.

        Returns: (tasks, total_count)
        """
        filter_query: Dict[str, Any] = {}
        if status:
            filter_query["status"] = status
        if brand:
            filter_query["brand"] = {"$regex": re.escape(brand), "$options": "i"}
        if category:
            filter_query["category"] = category
        if is_weekly is not None:
            filter_query["is_weekly"] = is_weekly
        if is_sponsored is not None:
            filter_query["is_sponsored"] = is_sponsored
        if featured is not None:
            filter_query["featured"] = featured

        collection = cls._get_collection()
        skip, limit = page_window(page, limit)
        direction = -1 if sort_order == "desc" else 1

        cursor = collection.find(filter_query).sort(sort_by, direction).skip(skip).limit(limit)
        tasks = await cursor.to_list(length=limit)
        total = await collection.count_documents(filter_query)

        return [serialize(task) for task in tasks], total

    @classmethod
    async def get_task(cls, task_id: str) -> dict:
        oid = parse_object_id(task_id, TASK_NOT_FOUND)
        task = await cls._get_collection().find_one({"_id": oid})
        if not task:
            raise NotFoundException(TASK_NOT_FOUND)
        return serialize(task)

    @classmethod
    async def get_active_tasks(cls, limit: int = 20, now: Optional[datetime] = None) -> List[dict]:
        """
        Tasks with Active status whose date window contains now, newest first.
        Full tasks are still returned; capacity only affects the derived is_active.
        """
        now = now or utcnow()
        cursor = cls._get_collection().find({
            "status": "Active",
            "start_date": {"$lte": now},
            "end_date": {"$gte": now},
        }).sort("created_at", -1).limit(limit)
        tasks = await cursor.to_list(length=limit)
        return [serialize(task) for task in tasks]

    @classmethod
    async def get_weekly_featured(cls, now: Optional[datetime] = None) -> Optional[dict]:
        """Newest running weekly task, if any."""
        now = now or utcnow()
        cursor = cls._get_collection().find({
            "is_weekly": True,
            "status": "Active",
            "start_date": {"$lte": now},
            "end_date": {"$gte": now},
        }).sort("created_at", -1).limit(1)
        tasks = await cursor.to_list(length=1)
        return serialize(tasks[0]) if tasks else None

    @classmethod
    async def create_task(cls, data: TaskCreate) -> dict:
        doc = normalize_task_payload(data.model_dump())
        now = utcnow()
        doc["participants"] = 0
        doc["created_at"] = now
        doc["updated_at"] = now

        result = await cls._get_collection().insert_one(doc)
        doc["_id"] = result.inserted_id

        logger.info(f"Task created: {doc['title']} ({doc['brand']})")
        return serialize(doc)

    @classmethod
    async def update_task(cls, task_id: str, data: TaskUpdate) -> dict:
        """
        Partial update. The merged task is re-validated, so date ordering
        holds on updates as well as on create.
        """
        oid = parse_object_id(task_id, TASK_NOT_FOUND)
        collection = cls._get_collection()

        existing = await collection.find_one({"_id": oid})
        if not existing:
            raise NotFoundException(TASK_NOT_FOUND)

        changes = data.model_dump(exclude_unset=True)
        merged = normalize_task_payload(validate_merged(TaskDocument, existing, changes).model_dump())

        updates = {key: merged[key] for key in changes}
        if merged["featured"] != existing.get("featured"):
            updates["featured"] = merged["featured"]
        updates["updated_at"] = utcnow()

        updated = await collection.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundException(TASK_NOT_FOUND)
        return serialize(updated)

    @classmethod
    async def delete_task(cls, task_id: str) -> dict:
        oid = parse_object_id(task_id, TASK_NOT_FOUND)
        deleted = await cls._get_collection().find_one_and_delete({"_id": oid})
        if not deleted:
            raise NotFoundException(TASK_NOT_FOUND)

        logger.info(f"Task deleted: {deleted.get('title')}")
        return serialize(deleted)

    @classmethod
    async def participate(cls, task_id: str, now: Optional[datetime] = None) -> dict:
        """
        Join a task, adding one participant.

        The increment is conditional on the participant count that was
        checked, so two joins racing for the last slot cannot both succeed.
        """
        oid = parse_object_id(task_id, TASK_NOT_FOUND)
        collection = cls._get_collection()

        while True:
            task = await collection.find_one({"_id": oid})
            if not task:
                raise NotFoundException(TASK_NOT_FOUND)

            participants = task.get("participants") or 0
            if participants >= task["max_participants"]:
                raise ConflictException("Task is full")
            if is_task_expired(task, now or utcnow()):
                raise ExpiredException("Task has expired")

            updated = await collection.find_one_and_update(
                {
                    "_id": oid,
                    "participants": task.get("participants"),
                    "max_participants": task["max_participants"],
                },
                {
                    "$inc": {"participants": 1},
                    "$set": {"updated_at": utcnow()},
                },
                return_document=ReturnDocument.AFTER,
            )
            if updated:
                logger.info(f"Participation recorded for task {task_id}: {updated['participants']}/{updated['max_participants']}")
                return serialize(updated)

            logger.debug(f"Task {task_id} changed during participation, retrying")
