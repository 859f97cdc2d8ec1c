"""Levels API endpoints."""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Query, status

from app.core.exceptions import AppException, BadRequestException
from app.levels.models import (
    LevelByPointsResponse,
    LevelCreate,
    LevelReorderRequest,
    LevelReorderResponse,
    LevelResponse,
    LevelsListResponse,
    LevelToggleResponse,
    LevelUpdate,
)
from app.levels.service import LevelService

router = APIRouter(prefix="/levels", tags=["Levels"])
logger = logging.getLogger(__name__)

LevelSortField = Literal["order", "name", "min_points", "max_points", "created_at"]


def _to_response(level: dict) -> LevelResponse:
    return LevelResponse(**level, point_range=LevelService.point_range(level))


@router.get("", response_model=LevelsListResponse)
async def list_levels(
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    sort_by: LevelSortField = Query("order"),
    sort_order: Literal["asc", "desc"] = Query("asc"),
):
    """Get all levels, optionally only active or inactive ones."""
    try:
        levels = await LevelService.list_levels(active=active, sort_by=sort_by, sort_order=sort_order)
    except Exception as e:
        logger.exception("Failed to list levels")
        raise AppException(f"Error fetching levels: {str(e)}")
    return LevelsListResponse(levels=[_to_response(l) for l in levels], count=len(levels))


@router.get("/active", response_model=LevelsListResponse)
async def get_active_levels():
    """Active levels in display order."""
    levels = await LevelService.get_active_levels()
    return LevelsListResponse(levels=[_to_response(l) for l in levels], count=len(levels))


@router.get("/by-points/{points}", response_model=LevelByPointsResponse)
async def get_level_by_points(points: int):
    """
    Resolve a QP total to its level.

    Also returns the next level up and how many points are missing to reach it.
    """
    if points < 0:
        raise BadRequestException("Invalid points value")

    current, next_level, points_to_next = await LevelService.get_level_for_points(points)
    return LevelByPointsResponse(
        current_level=_to_response(current),
        next_level=_to_response(next_level) if next_level else None,
        points_to_next=points_to_next,
    )


@router.post("/reorder", response_model=LevelReorderResponse)
async def reorder_levels(body: LevelReorderRequest):
    """Set the display order of several levels at once."""
    levels, failed_ids = await LevelService.reorder(body.level_orders)
    return LevelReorderResponse(levels=[_to_response(l) for l in levels], failed_ids=failed_ids)


@router.get("/{level_id}", response_model=LevelResponse)
async def get_level(level_id: str):
    return _to_response(await LevelService.get_level(level_id))


@router.post("", response_model=LevelResponse, status_code=status.HTTP_201_CREATED)
async def create_level(body: LevelCreate):
    """
    Create a level.

    Fails with 409 when the name or order is taken, or when the point range
    overlaps another active level.
    """
    try:
        level = await LevelService.create_level(body)
    except AppException:
        raise
    except Exception as e:
        logger.exception("Failed to create level")
        raise AppException(f"Error creating level: {str(e)}")
    return _to_response(level)


@router.put("/{level_id}", response_model=LevelResponse)
async def update_level(level_id: str, body: LevelUpdate):
    try:
        level = await LevelService.update_level(level_id, body)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update level {level_id}")
        raise AppException(f"Error updating level: {str(e)}")
    return _to_response(level)


@router.delete("/{level_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_level(level_id: str):
    await LevelService.delete_level(level_id)


@router.patch("/{level_id}/toggle", response_model=LevelToggleResponse)
async def toggle_level(level_id: str):
    """Activate or deactivate a level."""
    level = await LevelService.toggle_level(level_id)
    state = "activated" if level["is_active"] else "deactivated"
    return LevelToggleResponse(level=_to_response(level), message=f"Level {state} successfully")
