"""
Tests for brand tasks.

Tests cover:
- Remaining time and deadline badges
- Task CRUD and the weekly/featured rule
- Participation limits, including concurrent joins
- The /api/tasks endpoints
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from app.core.exceptions import ConflictException, ExpiredException, NotFoundException, ValidationException
from app.tasks.deadlines import (
    get_deadline_status,
    get_remaining_time,
    is_task_active,
    is_task_expired,
)
from app.tasks.models import TaskCreate, TaskUpdate
from app.tasks.service import TaskService, normalize_task_payload

NOW = datetime(2025, 6, 1, 12, 0, 0)


def _window(start_offset: timedelta, end_offset: timedelta, **extra) -> dict:
    task = {
        "status": "Active",
        "start_date": NOW + start_offset,
        "end_date": NOW + end_offset,
        "participants": 0,
        "max_participants": 10,
    }
    task.update(extra)
    return task


class TestRemainingTime:

    def test_formats_days_hours_minutes(self):
        task = _window(timedelta(days=-1), timedelta(days=2, hours=5, minutes=30, seconds=10))

        remaining = get_remaining_time(task, NOW)

        assert remaining["days"] == 2
        assert remaining["hours"] == 5
        assert remaining["minutes"] == 30
        assert remaining["is_expired"] is False
        assert remaining["formatted"] == "2d 5h 30m"

    def test_skips_zero_units(self):
        task = _window(timedelta(days=-1), timedelta(days=1, minutes=5))
        assert get_remaining_time(task, NOW)["formatted"] == "1d 5m"

    def test_under_a_minute_reads_one_minute(self):
        task = _window(timedelta(days=-1), timedelta(seconds=90))

        remaining = get_remaining_time(task, NOW)

        assert remaining["formatted"] == "1m"
        assert remaining["minutes"] == 1
        assert remaining["is_expired"] is False
        assert not is_task_expired(task, NOW)

    def test_seconds_only(self):
        task = _window(timedelta(days=-1), timedelta(seconds=30))

        remaining = get_remaining_time(task, NOW)

        assert remaining["formatted"] == "1m"
        assert remaining["total"] == 30000
        assert remaining["is_expired"] is False

    def test_expired(self):
        task = _window(timedelta(days=-3), timedelta(days=-1))

        remaining = get_remaining_time(task, NOW)

        assert remaining == {
            "days": 0,
            "hours": 0,
            "minutes": 0,
            "total": 0,
            "is_expired": True,
            "formatted": "Expired",
        }
        assert is_task_expired(task, NOW)


class TestDeadlineStatus:

    def test_waiting(self):
        task = _window(timedelta(hours=1), timedelta(days=1))
        assert get_deadline_status(task, NOW) == {"status": "waiting", "text": "Not started", "color": "gray"}

    def test_active(self):
        task = _window(timedelta(hours=-1), timedelta(days=1))
        assert get_deadline_status(task, NOW) == {"status": "active", "text": "Active", "color": "green"}

    def test_expired_at_end_date(self):
        task = _window(timedelta(days=-1), timedelta(0))
        assert get_deadline_status(task, NOW)["status"] == "expired"


class TestIsTaskActive:

    def test_running_task_is_active(self):
        assert is_task_active(_window(timedelta(hours=-1), timedelta(days=1)), NOW)

    def test_full_task_is_not_active(self):
        task = _window(timedelta(hours=-1), timedelta(days=1), participants=10)
        assert not is_task_active(task, NOW)

    def test_inactive_status(self):
        task = _window(timedelta(hours=-1), timedelta(days=1), status="Pending")
        assert not is_task_active(task, NOW)

    def test_outside_window(self):
        assert not is_task_active(_window(timedelta(hours=1), timedelta(days=1)), NOW)
        assert not is_task_active(_window(timedelta(days=-2), timedelta(days=-1)), NOW)


class TestTaskModel:

    def test_end_must_follow_start(self, task_payload):
        with pytest.raises(ValidationError) as exc_info:
            TaskCreate(**task_payload(start_date=NOW, end_date=NOW))
        assert "End date must be after start date" in str(exc_info.value)

    def test_aware_dates_stored_as_utc(self, task_payload):
        start = datetime(2025, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=3)))
        task = TaskCreate(**task_payload(start_date=start, end_date=start + timedelta(days=1)))

        assert task.start_date == datetime(2025, 1, 1, 7, 0)
        assert task.start_date.tzinfo is None

    def test_tags_lowercased(self, task_payload):
        task = TaskCreate(**task_payload(tags=[" Sneakers ", "NIKE"]))
        assert task.tags == ["sneakers", "nike"]

    def test_defaults(self, task_payload):
        task = TaskCreate(**task_payload())
        assert task.status == "Active"
        assert task.is_weekly is False
        assert task.featured is False

    def test_weekly_forces_featured(self):
        assert normalize_task_payload({"is_weekly": True, "featured": False})["featured"] is True
        assert normalize_task_payload({"is_weekly": False, "featured": True})["featured"] is True


class TestTaskService:

    async def test_create_and_get(self, db, task_payload):
        created = await TaskService.create_task(TaskCreate(**task_payload()))

        assert created["participants"] == 0
        fetched = await TaskService.get_task(created["id"])
        assert fetched["title"] == "Nike Sneaker Photo"
        assert fetched["tags"] == ["sneakers", "nike"]
        assert fetched["reward"] == 50

    async def test_weekly_task_created_featured(self, db, task_payload):
        created = await TaskService.create_task(TaskCreate(**task_payload(is_weekly=True, featured=False)))
        assert created["featured"] is True

    async def test_update_to_weekly_sets_featured(self, db, task_payload):
        task = await TaskService.create_task(TaskCreate(**task_payload()))

        updated = await TaskService.update_task(task["id"], TaskUpdate(is_weekly=True))
        assert updated["is_weekly"] is True
        assert updated["featured"] is True

        cleared = await TaskService.update_task(task["id"], TaskUpdate(is_weekly=False))
        assert cleared["featured"] is True

    async def test_featured_cannot_be_cleared_on_weekly_task(self, db, task_payload):
        task = await TaskService.create_task(TaskCreate(**task_payload(is_weekly=True)))

        updated = await TaskService.update_task(task["id"], TaskUpdate(featured=False))
        assert updated["featured"] is True

    async def test_update_rejects_end_before_start(self, db, task_payload):
        task = await TaskService.create_task(TaskCreate(**task_payload()))

        with pytest.raises(ValidationException) as exc_info:
            await TaskService.update_task(
                task["id"], TaskUpdate(end_date=task["start_date"] - timedelta(hours=1))
            )
        assert "End date must be after start date" in exc_info.value.errors

    async def test_list_filters_and_total(self, db, task_payload):
        await TaskService.create_task(TaskCreate(**task_payload()))
        await TaskService.create_task(TaskCreate(**task_payload(title="Latte art", brand="Starbucks", category="Video")))
        await TaskService.create_task(TaskCreate(**task_payload(title="Run club", brand="Nike Running")))

        tasks, total = await TaskService.list_tasks(brand="nike", limit=1)
        assert total == 2
        assert len(tasks) == 1

        tasks, total = await TaskService.list_tasks(category="Video")
        assert total == 1
        assert tasks[0]["brand"] == "Starbucks"

    async def test_brand_filter_is_literal(self, db, task_payload):
        await TaskService.create_task(TaskCreate(**task_payload()))

        tasks, total = await TaskService.list_tasks(brand=".*")
        assert total == 0

    async def test_active_tasks(self, db, task_payload):
        now = datetime.utcnow()
        running = await TaskService.create_task(TaskCreate(**task_payload()))
        await TaskService.create_task(TaskCreate(**task_payload(
            title="Upcoming", start_date=now + timedelta(days=1), end_date=now + timedelta(days=5)
        )))
        await TaskService.create_task(TaskCreate(**task_payload(
            title="Finished", start_date=now - timedelta(days=5), end_date=now - timedelta(days=1)
        )))
        await TaskService.create_task(TaskCreate(**task_payload(title="Paused", status="Inactive")))

        tasks = await TaskService.get_active_tasks()

        assert [t["id"] for t in tasks] == [running["id"]]

    async def test_weekly_featured(self, db, task_payload):
        now = datetime.utcnow()
        assert await TaskService.get_weekly_featured() is None

        await TaskService.create_task(TaskCreate(**task_payload(
            title="Next week", is_weekly=True,
            start_date=now + timedelta(days=7), end_date=now + timedelta(days=14),
        )))
        weekly = await TaskService.create_task(TaskCreate(**task_payload(title="This week", is_weekly=True)))

        found = await TaskService.get_weekly_featured()
        assert found["id"] == weekly["id"]

    async def test_delete(self, db, task_payload):
        task = await TaskService.create_task(TaskCreate(**task_payload()))

        await TaskService.delete_task(task["id"])

        with pytest.raises(NotFoundException):
            await TaskService.get_task(task["id"])


class TestParticipation:

    async def test_participate_increments(self, db, task_payload):
        task = await TaskService.create_task(TaskCreate(**task_payload(max_participants=3)))

        updated = await TaskService.participate(task["id"])

        assert updated["participants"] == 1

    async def test_full_task_rejected(self, db, task_payload):
        task = await TaskService.create_task(TaskCreate(**task_payload(max_participants=1)))
        await TaskService.participate(task["id"])

        with pytest.raises(ConflictException) as exc_info:
            await TaskService.participate(task["id"])

        assert exc_info.value.detail == "Task is full"
        assert (await TaskService.get_task(task["id"]))["participants"] == 1

    async def test_expired_task_rejected(self, db, task_payload):
        now = datetime.utcnow()
        task = await TaskService.create_task(TaskCreate(**task_payload(
            start_date=now - timedelta(days=5), end_date=now - timedelta(days=1)
        )))

        with pytest.raises(ExpiredException) as exc_info:
            await TaskService.participate(task["id"])

        assert exc_info.value.status_code == 410
        assert (await TaskService.get_task(task["id"]))["participants"] == 0

    async def test_concurrent_joins_never_exceed_limit(self, interleaved_reads, task_payload, caplog):
        caplog.set_level(logging.DEBUG, logger="app.tasks.service")
        task = await TaskService.create_task(TaskCreate(**task_payload(max_participants=3)))

        results = await asyncio.gather(
            *[TaskService.participate(task["id"]) for _ in range(8)],
            return_exceptions=True,
        )

        successes = [r for r in results if isinstance(r, dict)]
        failures = [r for r in results if isinstance(r, ConflictException)]
        assert len(successes) == 3
        assert len(failures) == 5
        assert (await TaskService.get_task(task["id"]))["participants"] == 3

        retries = [r for r in caplog.records if "changed during participation" in r.getMessage()]
        assert retries

    async def test_unknown_task(self, db):
        with pytest.raises(NotFoundException):
            await TaskService.participate("0123456789abcdef01234567")


class TestTasksApi:
    """Tests for the /api/tasks endpoints."""

    async def test_create_and_get(self, client, task_payload):
        response = await client.post("/api/tasks", json=jsonable_encoder(task_payload()))
        assert response.status_code == 201
        created = response.json()
        assert created["participants"] == 0
        assert created["is_active"] is True
        assert created["deadline_status"]["status"] == "active"
        assert created["remaining_time"]["is_expired"] is False

        response = await client.get(f"/api/tasks/{created['id']}")
        assert response.status_code == 200
        assert response.json()["title"] == created["title"]

    async def test_create_rejects_bad_dates(self, client, task_payload):
        now = datetime.utcnow()
        payload = task_payload(start_date=now, end_date=now - timedelta(days=1))

        response = await client.post("/api/tasks", json=jsonable_encoder(payload))

        assert response.status_code == 422

    async def test_list_paginates(self, client, task_payload):
        for i in range(3):
            await client.post("/api/tasks", json=jsonable_encoder(task_payload(title=f"Task {i}")))

        response = await client.get("/api/tasks", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert len(data["tasks"]) == 1
        assert data["pagination"] == {
            "page": 2,
            "limit": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    async def test_weekly_featured_endpoint(self, client, task_payload):
        response = await client.get("/api/tasks/weekly/featured")
        assert response.status_code == 200
        assert response.json()["task"] is None

        await client.post("/api/tasks", json=jsonable_encoder(task_payload(is_weekly=True)))

        response = await client.get("/api/tasks/weekly/featured")
        task = response.json()["task"]
        assert task["is_weekly"] is True
        assert task["featured"] is True

    async def test_participate_endpoint(self, client, task_payload):
        created = (await client.post(
            "/api/tasks", json=jsonable_encoder(task_payload(max_participants=1))
        )).json()

        response = await client.post(f"/api/tasks/{created['id']}/participate")
        assert response.status_code == 200
        assert response.json()["task"]["participants"] == 1

        response = await client.post(f"/api/tasks/{created['id']}/participate")
        assert response.status_code == 409

    async def test_update_and_delete(self, client, task_payload):
        created = (await client.post("/api/tasks", json=jsonable_encoder(task_payload()))).json()

        response = await client.put(f"/api/tasks/{created['id']}", json={"reward": 75})
        assert response.status_code == 200
        assert response.json()["reward"] == 75

        response = await client.delete(f"/api/tasks/{created['id']}")
        assert response.status_code == 204

        response = await client.get(f"/api/tasks/{created['id']}")
        assert response.status_code == 404
