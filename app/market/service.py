"""Market service - catalog CRUD, search and purchases."""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ReturnDocument

from app.core.database import Database, MARKET_ITEMS_COLLECTION
from app.core.documents import parse_object_id, serialize, utcnow, validate_merged
from app.core.exceptions import NotFoundException, OutOfStockException, UnavailableException
from app.core.pagination import page_window
from app.market.models import (
    MarketItemCreate,
    MarketItemDocument,
    MarketItemUpdate,
    UNLIMITED_STOCK,
)
from app.market.pricing import compute_discounted_price, is_in_stock

logger = logging.getLogger(__name__)

ITEM_NOT_FOUND = "Market item not found"

# Stock is either positive or the unlimited sentinel.
AVAILABLE_STOCK = {"$or": [{"stock": {"$gt": 0}}, {"stock": UNLIMITED_STOCK}]}


def _text_match(query: str) -> Dict[str, Any]:
    """Case-insensitive literal substring match on name, description, brand or any tag."""
    pattern = {"$regex": re.escape(query), "$options": "i"}
    return {
        "$or": [
            {"name": pattern},
            {"description": pattern},
            {"brand": pattern},
            {"tags": pattern},
        ]
    }


def _and(conditions: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not conditions:
        return {}
    if len(conditions) == 1:
        return conditions[0]
    return {"$and": conditions}


class MarketService:
    """Service for market items."""

    @staticmethod
    def _get_collection():
        return Database.get_collection(MARKET_ITEMS_COLLECTION)

    @classmethod
    async def list_items(
        cls,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        status: Optional[str] = None,
        level_access: Optional[str] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        in_stock: bool = False,
        page: int = 1,
        limit: int = 12,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[dict], int]:
        """
        List items; every given filter narrows the result.

        Returns: (items, total_count)
        """
        conditions: List[Dict[str, Any]] = []
        if category:
            conditions.append({"category": category})
        if brand:
            conditions.append({"brand": {"$regex": re.escape(brand), "$options": "i"}})
        if status:
            conditions.append({"status": status})
        if level_access:
            conditions.append({"level_access": level_access})
        if featured is not None:
            conditions.append({"featured": featured})
        if min_price is not None:
            conditions.append({"qp_price": {"$gte": min_price}})
        if max_price is not None:
            conditions.append({"qp_price": {"$lte": max_price}})
        if in_stock:
            conditions.append(AVAILABLE_STOCK)
        if search:
            conditions.append(_text_match(search))

        filter_query = _and(conditions)
        collection = cls._get_collection()
        skip, limit = page_window(page, limit)
        direction = -1 if sort_order == "desc" else 1

        cursor = collection.find(filter_query).sort(sort_by, direction).skip(skip).limit(limit)
        items = await cursor.to_list(length=limit)
        total = await collection.count_documents(filter_query)

        return [serialize(item) for item in items], total

    @classmethod
    async def get_item(cls, item_id: str) -> dict:
        oid = parse_object_id(item_id, ITEM_NOT_FOUND)
        item = await cls._get_collection().find_one({"_id": oid})
        if not item:
            raise NotFoundException(ITEM_NOT_FOUND)
        return serialize(item)

    @classmethod
    async def get_featured_items(cls, limit: int = 8) -> List[dict]:
        """Featured, active and in-stock items, newest first."""
        cursor = cls._get_collection().find(
            _and([{"featured": True, "status": "Active"}, AVAILABLE_STOCK])
        ).sort("created_at", -1).limit(limit)
        items = await cursor.to_list(length=limit)
        return [serialize(item) for item in items]

    @classmethod
    async def search_items(
        cls,
        query: Optional[str] = None,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        max_price: Optional[int] = None,
        level_access: Optional[str] = None,
        limit: int = 20,
    ) -> List[dict]:
        """
        Search purchasable items.

        Only active, in-stock items are considered. The text query and each
        filter are ANDed on top; best sellers come first.
        """
        conditions: List[Dict[str, Any]] = [{"status": "Active"}, AVAILABLE_STOCK]
        if query:
            conditions.append(_text_match(query))
        if category:
            conditions.append({"category": category})
        if brand:
            conditions.append({"brand": brand})
        if max_price is not None:
            conditions.append({"qp_price": {"$lte": max_price}})
        if level_access:
            conditions.append({"level_access": level_access})

        cursor = cls._get_collection().find(_and(conditions)).sort(
            [("sales", -1), ("created_at", -1)]
        ).limit(limit)
        items = await cursor.to_list(length=limit)
        return [serialize(item) for item in items]

    @classmethod
    async def get_category_stats(cls) -> List[dict]:
        """Active items grouped by category, largest group first."""
        pipeline = [
            {"$match": {"status": "Active"}},
            {
                "$group": {
                    "_id": "$category",
                    "count": {"$sum": 1},
                    "avg_price": {"$avg": "$qp_price"},
                    "min_price": {"$min": "$qp_price"},
                    "max_price": {"$max": "$qp_price"},
                }
            },
            {"$sort": {"count": -1, "_id": 1}},
        ]
        groups = await cls._get_collection().aggregate(pipeline).to_list(length=100)
        for group in groups:
            group["category"] = group.pop("_id")
        return groups

    @classmethod
    async def create_item(cls, data: MarketItemCreate) -> dict:
        doc = data.model_dump()
        now = utcnow()
        doc["sales"] = 0
        doc["revenue"] = 0
        doc["created_at"] = now
        doc["updated_at"] = now

        result = await cls._get_collection().insert_one(doc)
        doc["_id"] = result.inserted_id

        logger.info(f"Market item created: {doc['name']} ({doc['qp_price']} QP)")
        return serialize(doc)

    @classmethod
    async def update_item(cls, item_id: str, data: MarketItemUpdate) -> dict:
        oid = parse_object_id(item_id, ITEM_NOT_FOUND)
        collection = cls._get_collection()

        existing = await collection.find_one({"_id": oid})
        if not existing:
            raise NotFoundException(ITEM_NOT_FOUND)

        changes = data.model_dump(exclude_unset=True)
        merged = validate_merged(MarketItemDocument, existing, changes).model_dump()
        updates = {key: merged[key] for key in changes}
        updates["updated_at"] = utcnow()

        updated = await collection.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundException(ITEM_NOT_FOUND)
        return serialize(updated)

    @classmethod
    async def delete_item(cls, item_id: str) -> dict:
        oid = parse_object_id(item_id, ITEM_NOT_FOUND)
        deleted = await cls._get_collection().find_one_and_delete({"_id": oid})
        if not deleted:
            raise NotFoundException(ITEM_NOT_FOUND)

        logger.info(f"Market item deleted: {deleted.get('name')}")
        return serialize(deleted)

    @classmethod
    async def toggle_featured(cls, item_id: str) -> dict:
        oid = parse_object_id(item_id, ITEM_NOT_FOUND)
        collection = cls._get_collection()

        while True:
            item = await collection.find_one({"_id": oid})
            if not item:
                raise NotFoundException(ITEM_NOT_FOUND)

            featured = item.get("featured", False)
            updated = await collection.find_one_and_update(
                {"_id": oid, "featured": featured},
                {"$set": {"featured": not featured, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if updated:
                return serialize(updated)
            logger.debug(f"Market item {item_id} changed during toggle, retrying")

    @classmethod
    async def purchase(
        cls, item_id: str, quantity: int = 1, now: Optional[datetime] = None
    ) -> Tuple[dict, int, int]:
        """
        Buy `quantity` units of an item.

        The write is conditional on the stock, status, price and discount that
        were read, so the charged price always matches the state the stock was
        taken from and concurrent buyers can never push stock below zero.

        Returns: (updated_item, unit_price, total_price)
        """
        oid = parse_object_id(item_id, ITEM_NOT_FOUND)
        collection = cls._get_collection()

        while True:
            item = await collection.find_one({"_id": oid})
            if not item:
                raise NotFoundException(ITEM_NOT_FOUND)
            if not is_in_stock(item, quantity):
                raise OutOfStockException()
            if item.get("status") != "Active":
                raise UnavailableException()

            unit_price = compute_discounted_price(item, now or utcnow())
            total_price = unit_price * quantity
            stock = item["stock"]

            updates: Dict[str, Any] = {"updated_at": utcnow()}
            if stock != UNLIMITED_STOCK:
                remaining = max(0, stock - quantity)
                updates["stock"] = remaining
                if remaining == 0:
                    updates["status"] = "SoldOut"

            discount = item.get("discount") or {}
            updated = await collection.find_one_and_update(
                {
                    "_id": oid,
                    "stock": stock,
                    "status": "Active",
                    "qp_price": item["qp_price"],
                    "discount.percentage": discount.get("percentage"),
                    "discount.is_active": discount.get("is_active"),
                    "discount.start_date": discount.get("start_date"),
                    "discount.end_date": discount.get("end_date"),
                },
                {
                    "$set": updates,
                    "$inc": {"sales": quantity, "revenue": total_price},
                },
                return_document=ReturnDocument.AFTER,
            )
            if updated:
                logger.info(
                    f"Purchase: {quantity} x {item.get('name')} for {total_price} QP "
                    f"(stock {stock} -> {updated['stock']})"
                )
                return serialize(updated), unit_price, total_price

            logger.debug(f"Market item {item_id} changed during purchase, retrying")
