"""Tasks API endpoints."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Query, status

from app.core.config import get_settings
from app.core.documents import utcnow
from app.core.exceptions import AppException
from app.core.pagination import build_pagination
from app.tasks.deadlines import (
    get_deadline_status,
    get_remaining_time,
    is_task_active,
    is_task_expired,
)
from app.tasks.models import (
    ActiveTasksResponse,
    ParticipateResponse,
    TaskCategory,
    TaskCreate,
    TaskResponse,
    TasksListResponse,
    TaskStatus,
    TaskUpdate,
    WeeklyTaskResponse,
)
from app.tasks.service import TaskService

router = APIRouter(prefix="/tasks", tags=["Tasks"])
settings = get_settings()
logger = logging.getLogger(__name__)

TaskSortField = Literal[
    "created_at", "start_date", "end_date", "reward", "budget", "participants", "title"
]


def _to_response(task: dict, now: Optional[datetime] = None) -> TaskResponse:
    """Attach the time-dependent fields to a stored task."""
    now = now or utcnow()
    return TaskResponse(
        **task,
        is_active=is_task_active(task, now),
        is_expired=is_task_expired(task, now),
        remaining_time=get_remaining_time(task, now),
        deadline_status=get_deadline_status(task, now),
    )


@router.get("", response_model=TasksListResponse)
async def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    brand: Optional[str] = Query(None, description="Case-insensitive brand substring"),
    category: Optional[TaskCategory] = Query(None),
    is_weekly: Optional[bool] = Query(None),
    is_sponsored: Optional[bool] = Query(None),
    featured: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    sort_by: TaskSortField = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
):
    """
    Get tasks with filters and pagination.

    Each task carries its remaining time and deadline badge.
    """
    try:
        tasks, total = await TaskService.list_tasks(
            status=status,
            brand=brand,
            category=category,
            is_weekly=is_weekly,
            is_sponsored=is_sponsored,
            featured=featured,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except Exception as e:
        logger.exception("Failed to list tasks")
        raise AppException(f"Error fetching tasks: {str(e)}")

    now = utcnow()
    return TasksListResponse(
        tasks=[_to_response(t, now) for t in tasks],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/active", response_model=ActiveTasksResponse)
async def get_active_tasks(limit: int = Query(20, ge=1, le=settings.MAX_PAGE_SIZE)):
    """Tasks that are running right now."""
    tasks = await TaskService.get_active_tasks(limit=limit)
    now = utcnow()
    return ActiveTasksResponse(tasks=[_to_response(t, now) for t in tasks], count=len(tasks))


@router.get("/weekly/featured", response_model=WeeklyTaskResponse)
async def get_weekly_featured_task():
    """The task of the week, or null when none is running."""
    task = await TaskService.get_weekly_featured()
    if not task:
        return WeeklyTaskResponse(task=None, message="No weekly task found")
    return WeeklyTaskResponse(task=_to_response(task), message="Weekly task found")


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: str):
    return _to_response(await TaskService.get_task(task_id))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate):
    """
    Create a task.

    End date must be after start date. Weekly tasks are always featured.
    """
    try:
        task = await TaskService.create_task(body)
    except AppException:
        raise
    except Exception as e:
        logger.exception("Failed to create task")
        raise AppException(f"Error creating task: {str(e)}")
    return _to_response(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: str, body: TaskUpdate):
    try:
        task = await TaskService.update_task(task_id, body)
    except AppException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update task {task_id}")
        raise AppException(f"Error updating task: {str(e)}")
    return _to_response(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str):
    await TaskService.delete_task(task_id)


@router.post("/{task_id}/participate", response_model=ParticipateResponse)
async def participate(task_id: str):
    """
    Join a task.

    409 when the task is full, 410 when it has already ended.
    """
    task = await TaskService.participate(task_id)
    return ParticipateResponse(task=_to_response(task), message="Successfully joined the task")
