"""Task models and schemas."""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.documents import as_naive_utc
from app.core.pagination import Pagination

TaskCategory = Literal[
    "Social Media",
    "Photo",
    "Video",
    "Survey",
    "Content Creation",
    "Marketing",
    "Research",
]
TaskStatus = Literal["Active", "Inactive", "Pending", "Completed"]
DeadlineState = Literal["waiting", "active", "expired"]


def _normalize_tags(tags):
    if tags is None:
        return tags
    return [tag.strip().lower() for tag in tags]


# ============================================================================
# Stored / Request Schemas
# ============================================================================

class TaskFields(BaseModel):
    """Fields a brand or admin may set on a task."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    brand: str = Field(..., min_length=1)
    category: TaskCategory = "Photo"
    status: TaskStatus = "Active"
    budget: float = Field(..., ge=0)
    max_participants: int = Field(100, ge=1)
    reward: int = Field(..., ge=1, description="QP granted on completion")
    start_date: datetime
    end_date: datetime
    is_weekly: bool = False
    is_sponsored: bool = False
    sponsor_brand: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    featured: bool = False

    @field_validator("start_date", "end_date")
    @classmethod
    def store_as_utc(cls, v):
        return as_naive_utc(v)

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v):
        return _normalize_tags(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class TaskCreate(TaskFields):
    """Request to create a task. Participants always start at zero."""


class TaskDocument(TaskFields):
    """MongoDB document schema for the tasks collection."""
    participants: int = Field(0, ge=0)


class TaskUpdate(BaseModel):
    """Partial update; the merged document is validated against TaskDocument."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    brand: Optional[str] = Field(None, min_length=1)
    category: Optional[TaskCategory] = None
    status: Optional[TaskStatus] = None
    budget: Optional[float] = Field(None, ge=0)
    max_participants: Optional[int] = Field(None, ge=1)
    reward: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_weekly: Optional[bool] = None
    is_sponsored: Optional[bool] = None
    sponsor_brand: Optional[str] = None
    requirements: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def store_as_utc(cls, v):
        return as_naive_utc(v)

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v):
        return _normalize_tags(v)


# ============================================================================
# Response Schemas
# ============================================================================

class RemainingTime(BaseModel):
    """Countdown until a task's end date."""
    days: int
    hours: int
    minutes: int
    total: int = Field(..., description="Milliseconds left")
    is_expired: bool
    formatted: str


class DeadlineStatus(BaseModel):
    """Badge shown next to a task's deadline."""
    status: DeadlineState
    text: str
    color: str


class TaskResponse(TaskDocument):
    id: str
    created_at: datetime
    updated_at: datetime
    is_active: bool
    is_expired: bool
    remaining_time: RemainingTime
    deadline_status: DeadlineStatus


class TasksListResponse(BaseModel):
    tasks: List[TaskResponse]
    pagination: Pagination


class ActiveTasksResponse(BaseModel):
    tasks: List[TaskResponse]
    count: int


class WeeklyTaskResponse(BaseModel):
    task: Optional[TaskResponse] = None
    message: str


class ParticipateResponse(BaseModel):
    task: TaskResponse
    message: str
