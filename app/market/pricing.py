"""Pricing and stock rules for market items."""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.documents import utcnow
from app.market.models import UNLIMITED_STOCK


def is_in_stock(item: dict, quantity: int = 1) -> bool:
    stock = item.get("stock", 0)
    return stock == UNLIMITED_STOCK or stock >= quantity


def is_available(item: dict) -> bool:
    stock = item.get("stock", 0)
    return item.get("status") == "Active" and (stock > 0 or stock == UNLIMITED_STOCK)


def is_discount_running(discount: Optional[dict], now: Optional[datetime] = None) -> bool:
    if not discount or not discount.get("is_active") or not discount.get("percentage"):
        return False

    start_date = discount.get("start_date")
    end_date = discount.get("end_date")
    if start_date is None or end_date is None:
        return False

    now = now or utcnow()
    return start_date <= now <= end_date


def compute_discounted_price(item: dict, now: Optional[datetime] = None) -> int:
    """
    QP price after the running discount, rounded half up.
    Outside the discount window this is just qp_price.
    """
    qp_price = item["qp_price"]
    discount = item.get("discount")
    if not is_discount_running(discount, now):
        return qp_price

    factor = (Decimal(100) - Decimal(str(discount["percentage"]))) / Decimal(100)
    return int((Decimal(qp_price) * factor).quantize(Decimal(1), rounding=ROUND_HALF_UP))
