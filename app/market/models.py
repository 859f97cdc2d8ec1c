"""Market item models and schemas."""

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.documents import as_naive_utc
from app.core.pagination import Pagination

MarketCategory = Literal[
    "Electronics",
    "Clothing",
    "Sports",
    "Home & Living",
    "Books",
    "Games",
    "Gift Card",
    "Other",
]
ItemStatus = Literal["Active", "Inactive", "SoldOut", "ComingSoon"]
LevelAccess = Literal["All Levels", "Bronze+", "Silver+", "Gold+", "Platinum+", "Diamond+"]
Currency = Literal["TL", "USD", "EUR"]
DeliveryType = Literal["Digital", "Physical", "Voucher"]

UNLIMITED_STOCK = -1


# ============================================================================
# Embedded / Nested Schemas
# ============================================================================

class ItemImage(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    url: str = Field(..., min_length=1)
    alt: Optional[str] = None
    is_primary: bool = False


class Discount(BaseModel):
    """
    Percentage discount applied while the window is open.

    Only the percentage bounds are checked here; callers keep
    start_date <= end_date.
    """
    percentage: float = Field(0, ge=0, le=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: bool = False

    @field_validator("start_date", "end_date")
    @classmethod
    def store_as_utc(cls, v):
        return as_naive_utc(v)


class Specification(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    key: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)


class Rating(BaseModel):
    average: float = Field(0, ge=0, le=5)
    count: int = Field(0, ge=0)


class DeliveryInfo(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: DeliveryType = "Digital"
    estimated_days: int = Field(0, ge=0)
    description: Optional[str] = None


def _normalize_tags(tags):
    if tags is None:
        return tags
    return [tag.strip().lower() for tag in tags]


# ============================================================================
# Stored / Request Schemas
# ============================================================================

class MarketItemFields(BaseModel):
    """Fields an admin may set on a market item."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    brand: str = Field(..., min_length=1)
    category: MarketCategory = "Gift Card"
    qp_price: int = Field(..., ge=1, description="Cost in QP")
    real_price: float = Field(..., ge=0)
    currency: Currency = "TL"
    stock: int = Field(0, ge=UNLIMITED_STOCK, description="-1 means unlimited")
    level_access: LevelAccess
    min_level_points: int = Field(0, ge=0)
    images: List[ItemImage] = Field(default_factory=list)
    status: ItemStatus = "Active"
    featured: bool = False
    discount: Discount = Field(default_factory=Discount)
    specifications: List[Specification] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    rating: Rating = Field(default_factory=Rating)
    delivery_info: DeliveryInfo = Field(default_factory=DeliveryInfo)

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v):
        return _normalize_tags(v)


class MarketItemCreate(MarketItemFields):
    """Request to create a market item. Sales and revenue start at zero."""


class MarketItemDocument(MarketItemFields):
    """MongoDB document schema for the market_items collection."""
    sales: int = Field(0, ge=0)
    revenue: float = Field(0, ge=0)


class MarketItemUpdate(BaseModel):
    """Partial update; the merged document is validated against MarketItemDocument."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    brand: Optional[str] = Field(None, min_length=1)
    category: Optional[MarketCategory] = None
    qp_price: Optional[int] = Field(None, ge=1)
    real_price: Optional[float] = Field(None, ge=0)
    currency: Optional[Currency] = None
    stock: Optional[int] = Field(None, ge=UNLIMITED_STOCK)
    level_access: Optional[LevelAccess] = None
    min_level_points: Optional[int] = Field(None, ge=0)
    images: Optional[List[ItemImage]] = None
    status: Optional[ItemStatus] = None
    featured: Optional[bool] = None
    discount: Optional[Discount] = None
    specifications: Optional[List[Specification]] = None
    tags: Optional[List[str]] = None
    rating: Optional[Rating] = None
    delivery_info: Optional[DeliveryInfo] = None

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v):
        return _normalize_tags(v)


class PurchaseRequest(BaseModel):
    quantity: int = Field(1, ge=1)


# ============================================================================
# Response Schemas
# ============================================================================

class MarketItemResponse(MarketItemDocument):
    id: str
    created_at: datetime
    updated_at: datetime
    is_available: bool
    discounted_price: int


class MarketItemsListResponse(BaseModel):
    items: List[MarketItemResponse]
    pagination: Pagination


class MarketItemsResponse(BaseModel):
    items: List[MarketItemResponse]
    count: int


class SearchFilters(BaseModel):
    category: Optional[MarketCategory] = None
    brand: Optional[str] = None
    max_price: Optional[int] = None
    level_access: Optional[LevelAccess] = None


class SearchResponse(BaseModel):
    items: List[MarketItemResponse]
    count: int
    query: str
    filters: SearchFilters


class CategoryStats(BaseModel):
    """Per-category summary over active items."""
    category: str
    count: int
    avg_price: float
    min_price: int
    max_price: int


class CategoriesResponse(BaseModel):
    categories: List[CategoryStats]
    count: int


class PurchaseResponse(BaseModel):
    item: MarketItemResponse
    quantity: int
    unit_price: int
    total_price: int
    message: str


class FeaturedToggleResponse(BaseModel):
    item: MarketItemResponse
    message: str
