"""API routes for the brand directory."""

from typing import Optional

from fastapi import APIRouter, Query

from app.brands.models import Brand, BrandsListResponse
from app.brands.service import BrandService

router = APIRouter(prefix="/brands", tags=["Brands"])


@router.get("", response_model=BrandsListResponse)
async def list_brands(
    status: Optional[str] = Query(None, description="Exact status, e.g. Active"),
    search: Optional[str] = Query(None, description="Substring of name or email"),
):
    brands = BrandService.list_brands(status=status, search=search)
    return BrandsListResponse(brands=brands, count=len(brands))


@router.get("/{brand_id}", response_model=Brand)
async def get_brand(brand_id: str):
    return BrandService.get_brand(brand_id)
