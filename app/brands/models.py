"""Brand directory schemas."""

from typing import List, Optional
from pydantic import BaseModel


class BrandSocial(BaseModel):
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None


class Brand(BaseModel):
    """Brand entry returned to clients."""
    id: str
    name: str
    logo: Optional[str] = None
    email: str
    balance: float = 0
    status: str
    website: Optional[str] = None
    social: BrandSocial = BrandSocial()


class BrandsListResponse(BaseModel):
    brands: List[Brand]
    count: int
