"""Market API endpoints."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Query, status

from app.core.config import get_settings
from app.core.documents import utcnow
from app.core.exceptions import AppException, BadRequestException
from app.core.pagination import build_pagination
from app.market.models import (
    CategoriesResponse,
    CategoryStats,
    FeaturedToggleResponse,
    ItemStatus,
    LevelAccess,
    MarketCategory,
    MarketItemCreate,
    MarketItemResponse,
    MarketItemsListResponse,
    MarketItemsResponse,
    MarketItemUpdate,
    PurchaseRequest,
    PurchaseResponse,
    SearchFilters,
    SearchResponse,
)
from app.market.pricing import compute_discounted_price, is_available
from app.market.service import MarketService

router = APIRouter(prefix="/market", tags=["Market"])
settings = get_settings()
logger = logging.getLogger(__name__)

MarketSortField = Literal["created_at", "qp_price", "sales", "name", "stock"]


def _to_response(item: dict, now: Optional[datetime] = None) -> MarketItemResponse:
    return MarketItemResponse(
        **item,
        is_available=is_available(item),
        discounted_price=compute_discounted_price(item, now or utcnow()),
    )


@router.get("", response_model=MarketItemsListResponse)
async def list_items(
    category: Optional[MarketCategory] = Query(None),
    brand: Optional[str] = Query(None, description="Case-insensitive brand substring"),
    status: Optional[ItemStatus] = Query(None),
    level_access: Optional[LevelAccess] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Text in name, description, brand or tags"),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    in_stock: bool = Query(False, description="Only items with stock left"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: MarketSortField = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
):
    """Get market items with filters and pagination."""
    if min_price is not None and max_price is not None and min_price > max_price:
        raise BadRequestException("min_price cannot be greater than max_price")

    try:
        items, total = await MarketService.list_items(
            category=category,
            brand=brand,
            status=status,
            level_access=level_access,
            featured=featured,
            search=search,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except Exception as e:
        logger.exception("Failed to list market items")
        raise AppException(f"Error fetching market items: {str(e)}")

    now = utcnow()
    return MarketItemsListResponse(
        items=[_to_response(i, now) for i in items],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/featured", response_model=MarketItemsResponse)
async def get_featured_items(limit: int = Query(8, ge=1, le=50)):
    items = await MarketService.get_featured_items(limit=limit)
    now = utcnow()
    return MarketItemsResponse(items=[_to_response(i, now) for i in items], count=len(items))


@router.get("/categories", response_model=CategoriesResponse)
async def get_categories():
    """Item count and QP price range per category (active items only)."""
    groups = await MarketService.get_category_stats()
    categories = [CategoryStats(**g) for g in groups]
    return CategoriesResponse(categories=categories, count=len(categories))


@router.get("/search/{query}", response_model=SearchResponse)
async def search_items(
    query: str,
    category: Optional[MarketCategory] = Query(None),
    brand: Optional[str] = Query(None, description="Exact brand name"),
    max_price: Optional[int] = Query(None, ge=0),
    level_access: Optional[LevelAccess] = Query(None),
    limit: int = Query(20, ge=1, le=settings.MAX_PAGE_SIZE),
):
    """
    Search items that can be bought right now.

    Matches the query in name, description, brand or tags, best sellers first.
    """
    filters = SearchFilters(
        category=category, brand=brand, max_price=max_price, level_access=level_access
    )
    items = await MarketService.search_items(
        query=query,
        category=category,
        brand=brand,
        max_price=max_price,
        level_access=level_access,
        limit=limit,
    )
    now = utcnow()
    return SearchResponse(
        items=[_to_response(i, now) for i in items],
        count=len(items),
        query=query,
        filters=filters,
    )


@router.get("/{item_id}", response_model=MarketItemResponse)
async def get_item(item_id: str):
    return _to_response(await MarketService.get_item(item_id))


@router.post("", response_model=MarketItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(body: MarketItemCreate):
    try:
        item = await MarketService.create_item(body)
    except AppException:
        raise
    except Exception as e:
        logger.exception("Failed to create market item")
        raise AppException(f"Error creating market item: {str(e)}")
    return _to_response(item)


@router.put("/{item_id}", response_model=MarketItemResponse)
async def update_item(item_id: str, body: MarketItemUpdate):
    try:
        item = await MarketService.update_item(item_id, body)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update market item {item_id}")
        raise AppException(f"Error updating market item: {str(e)}")
    return _to_response(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: str):
    await MarketService.delete_item(item_id)


@router.post("/{item_id}/purchase", response_model=PurchaseResponse)
async def purchase_item(item_id: str, body: Optional[PurchaseRequest] = None):
    """
    Redeem an item for QP.

    409 when stock is short or the item is not active. The price charged is
    the discounted price at the moment of purchase.
    """
    quantity = body.quantity if body else 1
    item, unit_price, total_price = await MarketService.purchase(item_id, quantity)
    return PurchaseResponse(
        item=_to_response(item),
        quantity=quantity,
        unit_price=unit_price,
        total_price=total_price,
        message="Purchase successful",
    )


@router.patch("/{item_id}/toggle-featured", response_model=FeaturedToggleResponse)
async def toggle_featured(item_id: str):
    item = await MarketService.toggle_featured(item_id)
    state = "featured" if item["featured"] else "unfeatured"
    return FeaturedToggleResponse(item=_to_response(item), message=f"Item {state} successfully")
