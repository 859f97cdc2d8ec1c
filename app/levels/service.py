"""Level service - tier CRUD, range invariants and point lookups."""

import asyncio
import logging
from typing import List, Optional, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.database import Database, LEVELS_COLLECTION
from app.core.documents import parse_object_id, serialize, utcnow, validate_merged
from app.core.exceptions import ConflictException, NotFoundException
from app.levels.models import LevelBase, LevelCreate, LevelOrderItem, LevelUpdate

logger = logging.getLogger(__name__)

LEVEL_NOT_FOUND = "Level not found"
OVERLAPPING_RANGES = "Point ranges cannot overlap with existing levels"
DUPLICATE_NAME = "Level name already exists"
DUPLICATE_ORDER = "Level order already exists"

MAX_LEVELS = 500

# Held from the uniqueness and overlap checks through the write they guard.
_write_lock = asyncio.Lock()


class LevelService:
    """Handles level operations - CRUD, overlap checks, points resolution."""

    @staticmethod
    def _get_collection():
        return Database.get_collection(LEVELS_COLLECTION)

    @staticmethod
    def qualifies_for_level(level: dict, points: int) -> bool:
        """True when points fall inside the level's inclusive range."""
        return level["min_points"] <= points <= level["max_points"]

    @staticmethod
    def ranges_overlap(min_a: int, max_a: int, min_b: int, max_b: int) -> bool:
        return min_a <= max_b and max_a >= min_b

    @staticmethod
    def point_range(level: dict) -> str:
        return f"{level['min_points']:,} - {level['max_points']:,}"

    @classmethod
    async def _ensure_no_overlap(
        cls, min_points: int, max_points: int, exclude_id: Optional[ObjectId] = None
    ) -> None:
        query = {
            "is_active": True,
            "min_points": {"$lte": max_points},
            "max_points": {"$gte": min_points},
        }
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}

        if await cls._get_collection().find_one(query):
            raise ConflictException(OVERLAPPING_RANGES)

    @classmethod
    async def _ensure_unique_name(cls, name: str, exclude_id: Optional[ObjectId] = None) -> None:
        query = {"name": name}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}

        if await cls._get_collection().find_one(query):
            raise ConflictException(DUPLICATE_NAME)

    @classmethod
    async def list_levels(
        cls,
        active: Optional[bool] = None,
        sort_by: str = "order",
        sort_order: str = "asc",
    ) -> List[dict]:
        filter_query = {}
        if active is not None:
            filter_query["is_active"] = active

        direction = -1 if sort_order == "desc" else 1
        cursor = cls._get_collection().find(filter_query).sort(sort_by, direction)
        levels = await cursor.to_list(length=MAX_LEVELS)
        return [serialize(level) for level in levels]

    @classmethod
    async def get_active_levels(cls) -> List[dict]:
        """All active levels, lowest display order first."""
        return await cls.list_levels(active=True, sort_by="order", sort_order="asc")

    @classmethod
    async def get_level(cls, level_id: str) -> dict:
        oid = parse_object_id(level_id, LEVEL_NOT_FOUND)
        level = await cls._get_collection().find_one({"_id": oid})
        if not level:
            raise NotFoundException(LEVEL_NOT_FOUND)
        return serialize(level)

    @classmethod
    async def find_by_points(cls, points: int) -> Optional[dict]:
        """
        Find the active level whose range contains the given points.
        Ranges never overlap, so at most one level matches.
        """
        level = await cls._get_collection().find_one({
            "is_active": True,
            "min_points": {"$lte": points},
            "max_points": {"$gte": points},
        })
        return serialize(level) if level else None

    @classmethod
    async def get_next_level(cls, points: int) -> Optional[dict]:
        """Active level with the smallest min_points above the given points."""
        cursor = cls._get_collection().find({
            "is_active": True,
            "min_points": {"$gt": points},
        }).sort("min_points", 1).limit(1)
        levels = await cursor.to_list(length=1)
        return serialize(levels[0]) if levels else None

    @classmethod
    async def get_level_for_points(cls, points: int) -> Tuple[dict, Optional[dict], Optional[int]]:
        """
        Resolve a QP total to (current_level, next_level, points_to_next).
        Raises NotFoundException when no active level covers the points.
        """
        current = await cls.find_by_points(points)
        if not current:
            raise NotFoundException("No level found for these points")

        next_level = await cls.get_next_level(points)
        points_to_next = next_level["min_points"] - points if next_level else None
        return current, next_level, points_to_next

    @classmethod
    async def _ensure_unique_order(cls, order: int, exclude_id: Optional[ObjectId] = None) -> None:
        query = {"order": order}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}

        if await cls._get_collection().find_one(query):
            raise ConflictException(DUPLICATE_ORDER)

    @classmethod
    async def create_level(cls, data: LevelCreate) -> dict:
        collection = cls._get_collection()
        doc = data.model_dump()

        async with _write_lock:
            await cls._ensure_unique_name(doc["name"])
            await cls._ensure_unique_order(doc["order"])
            if doc["is_active"]:
                await cls._ensure_no_overlap(doc["min_points"], doc["max_points"])

            now = utcnow()
            doc["created_at"] = now
            doc["updated_at"] = now

            try:
                result = await collection.insert_one(doc)
            except DuplicateKeyError:
                raise ConflictException(DUPLICATE_NAME)
            doc["_id"] = result.inserted_id

        logger.info(f"Level created: {doc['name']} ({cls.point_range(doc)})")
        return serialize(doc)

    @classmethod
    async def update_level(cls, level_id: str, data: LevelUpdate) -> dict:
        oid = parse_object_id(level_id, LEVEL_NOT_FOUND)
        collection = cls._get_collection()

        async with _write_lock:
            existing = await collection.find_one({"_id": oid})
            if not existing:
                raise NotFoundException(LEVEL_NOT_FOUND)

            changes = data.model_dump(exclude_unset=True)
            merged = validate_merged(LevelBase, existing, changes).model_dump()
            updates = {key: merged[key] for key in changes}

            if merged["name"] != existing.get("name"):
                await cls._ensure_unique_name(merged["name"], exclude_id=oid)
            if merged["order"] != existing.get("order"):
                await cls._ensure_unique_order(merged["order"], exclude_id=oid)

            range_changed = any(
                merged[key] != existing.get(key) for key in ("min_points", "max_points", "is_active")
            )
            if merged["is_active"] and range_changed:
                await cls._ensure_no_overlap(merged["min_points"], merged["max_points"], exclude_id=oid)

            updates["updated_at"] = utcnow()
            try:
                updated = await collection.find_one_and_update(
                    {"_id": oid},
                    {"$set": updates},
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                raise ConflictException(DUPLICATE_NAME)

        if not updated:
            raise NotFoundException(LEVEL_NOT_FOUND)
        return serialize(updated)

    @classmethod
    async def delete_level(cls, level_id: str) -> dict:
        oid = parse_object_id(level_id, LEVEL_NOT_FOUND)
        deleted = await cls._get_collection().find_one_and_delete({"_id": oid})
        if not deleted:
            raise NotFoundException(LEVEL_NOT_FOUND)

        logger.info(f"Level deleted: {deleted.get('name')}")
        return serialize(deleted)

    @classmethod
    async def toggle_level(cls, level_id: str) -> dict:
        """Flip is_active. Re-activating a level re-checks the overlap rule."""
        oid = parse_object_id(level_id, LEVEL_NOT_FOUND)
        collection = cls._get_collection()

        async with _write_lock:
            level = await collection.find_one({"_id": oid})
            if not level:
                raise NotFoundException(LEVEL_NOT_FOUND)

            currently_active = level.get("is_active", True)
            if not currently_active:
                await cls._ensure_no_overlap(level["min_points"], level["max_points"], exclude_id=oid)

            updated = await collection.find_one_and_update(
                {"_id": oid},
                {"$set": {"is_active": not currently_active, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )

        if not updated:
            raise NotFoundException(LEVEL_NOT_FOUND)
        return serialize(updated)

    @classmethod
    async def reorder(cls, level_orders: List[LevelOrderItem]) -> Tuple[List[dict], List[str]]:
        """
        Set the display order of several levels in one go.

        Orders are checked against the result of the whole batch, so two
        levels can swap places. If any two levels would end up sharing an
        order nothing is written. Ids that are malformed or match no level
        are reported back in failed_ids.
        """
        collection = cls._get_collection()
        failed_ids: List[str] = []

        async with _write_lock:
            levels = await collection.find({}, {"order": 1}).to_list(length=MAX_LEVELS)
            orders = {level["_id"]: level["order"] for level in levels}

            changes: List[Tuple[ObjectId, int]] = []
            for item in level_orders:
                if not ObjectId.is_valid(item.id) or ObjectId(item.id) not in orders:
                    failed_ids.append(item.id)
                    continue
                oid = ObjectId(item.id)
                orders[oid] = item.order
                changes.append((oid, item.order))

            final_orders = list(orders.values())
            if len(final_orders) != len(set(final_orders)):
                raise ConflictException(DUPLICATE_ORDER)

            now = utcnow()
            updated_levels: List[dict] = []
            for oid, order in changes:
                updated = await collection.find_one_and_update(
                    {"_id": oid},
                    {"$set": {"order": order, "updated_at": now}},
                    return_document=ReturnDocument.AFTER,
                )
                if updated:
                    updated_levels.append(serialize(updated))
                else:
                    failed_ids.append(str(oid))

        if failed_ids:
            logger.warning(f"Reorder skipped unknown levels: {failed_ids}")
        return updated_levels, failed_ids
