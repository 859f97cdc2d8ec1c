"""Level models - tier definitions, requests and responses."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

HEX_COLOR_PATTERN = r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$"


class SpecialPerk(BaseModel):
    """Extra perk attached to a level."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True


class LevelBase(BaseModel):
    """MongoDB document schema for the levels collection."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=50)
    color: str = Field(..., pattern=HEX_COLOR_PATTERN, description="Hex color, #RGB or #RRGGBB")
    min_points: int = Field(..., ge=0)
    max_points: int
    order: int = Field(..., ge=1, description="Display sequence")
    benefits: List[str] = Field(default_factory=list)
    market_access: bool = True
    special_perks: List[SpecialPerk] = Field(default_factory=list)
    icon: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_point_range(self):
        if self.max_points <= self.min_points:
            raise ValueError("Maximum points must be greater than minimum points")
        return self


class LevelCreate(LevelBase):
    """Request to create a level."""


class LevelUpdate(BaseModel):
    """Partial update; the merged document is validated against LevelBase."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    min_points: Optional[int] = Field(None, ge=0)
    max_points: Optional[int] = None
    order: Optional[int] = Field(None, ge=1)
    benefits: Optional[List[str]] = None
    market_access: Optional[bool] = None
    special_perks: Optional[List[SpecialPerk]] = None
    icon: Optional[str] = None
    is_active: Optional[bool] = None


class LevelResponse(LevelBase):
    """API response for a single level."""
    id: str
    point_range: str
    created_at: datetime
    updated_at: datetime


class LevelsListResponse(BaseModel):
    levels: List[LevelResponse]
    count: int


class LevelByPointsResponse(BaseModel):
    """Level a QP total falls into, plus the next tier up."""
    current_level: LevelResponse
    next_level: Optional[LevelResponse] = None
    points_to_next: Optional[int] = None


class LevelToggleResponse(BaseModel):
    level: LevelResponse
    message: str


class LevelOrderItem(BaseModel):
    id: str
    order: int = Field(..., ge=1)


class LevelReorderRequest(BaseModel):
    level_orders: List[LevelOrderItem]


class LevelReorderResponse(BaseModel):
    """Reorder result; ids that matched no level are listed, not dropped."""
    levels: List[LevelResponse]
    failed_ids: List[str] = Field(default_factory=list)
