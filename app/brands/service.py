"""Service layer for the brand directory."""

import copy
from typing import List, Optional

from app.core.exceptions import NotFoundException

# Loaded once at import and never mutated; callers get copies.
BRANDS = (
    {
        "id": "brand-1",
        "name": "Nike",
        "logo": "https://example.com/nike-logo.png",
        "email": "contact@nike.com",
        "balance": 50000,
        "status": "Active",
        "website": "https://nike.com",
        "social": {"instagram": "@nike", "twitter": "@nike", "facebook": "nike"},
    },
    {
        "id": "brand-2",
        "name": "Starbucks",
        "logo": "https://example.com/starbucks-logo.png",
        "email": "info@starbucks.com",
        "balance": 75000,
        "status": "Active",
        "website": "https://starbucks.com",
        "social": {"instagram": "@starbucks", "twitter": "@starbucks", "facebook": "starbucks"},
    },
    {
        "id": "brand-3",
        "name": "Samsung",
        "logo": "https://example.com/samsung-logo.png",
        "email": "contact@samsung.com",
        "balance": 120000,
        "status": "Active",
        "website": "https://samsung.com",
        "social": {"instagram": "@samsung", "twitter": "@samsung", "facebook": "samsung"},
    },
)


class BrandService:
    """Lookups over the static brand list."""

    @classmethod
    def list_brands(cls, status: Optional[str] = None, search: Optional[str] = None) -> List[dict]:
        """
        Filter brands by exact status and/or a case-insensitive
        substring of name or email.
        """
        brands = list(BRANDS)

        if status:
            brands = [b for b in brands if b["status"] == status]

        q = (search or "").strip().lower()
        if q:
            brands = [b for b in brands if q in b["name"].lower() or q in b["email"].lower()]

        return [copy.deepcopy(b) for b in brands]

    @classmethod
    def get_brand(cls, brand_id: str) -> dict:
        for brand in BRANDS:
            if brand["id"] == brand_id:
                return copy.deepcopy(brand)
        raise NotFoundException("Brand not found")
