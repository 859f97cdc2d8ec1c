"""Deadline utilities - activity window, countdown and status badges for tasks."""

from datetime import datetime, timedelta
from typing import Dict, Optional

from app.core.documents import utcnow

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

EXPIRED_TEXT = "Expired"


def is_task_expired(task: dict, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return now > task["end_date"]


def is_task_active(task: dict, now: Optional[datetime] = None) -> bool:
    """Active status, inside the date window, and not yet full."""
    now = now or utcnow()
    return (
        task["status"] == "Active"
        and task["start_date"] <= now <= task["end_date"]
        and task.get("participants", 0) < task["max_participants"]
    )


def get_remaining_time(task: dict, now: Optional[datetime] = None) -> Dict:
    """
    Break the time left until end_date into whole days, hours and minutes.

    Units are floored, and only non-zero units appear in `formatted`
    ("2d 5h 30m"). Less than a minute left still reads "1m".
    """
    now = now or utcnow()
    end_date = task["end_date"]

    if now >= end_date:
        return {
            "days": 0,
            "hours": 0,
            "minutes": 0,
            "total": 0,
            "is_expired": True,
            "formatted": EXPIRED_TEXT,
        }

    total = (end_date - now) // timedelta(milliseconds=1)
    days = total // DAY_MS
    hours = (total % DAY_MS) // HOUR_MS
    minutes = (total % HOUR_MS) // MINUTE_MS

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    return {
        "days": days,
        "hours": hours,
        "minutes": minutes,
        "total": total,
        "is_expired": False,
        "formatted": " ".join(parts) or "1m",
    }


def get_deadline_status(task: dict, now: Optional[datetime] = None) -> Dict:
    now = now or utcnow()

    if now < task["start_date"]:
        return {"status": "waiting", "text": "Not started", "color": "gray"}
    if now >= task["end_date"]:
        return {"status": "expired", "text": EXPIRED_TEXT, "color": "red"}
    return {"status": "active", "text": "Active", "color": "green"}
