from datetime import timedelta

import pytest
from beanie import PydanticObjectId
from dateutil.relativedelta import relativedelta

import celery_app
import tasks.maintenance as maintenance
from config import MovementPolicy
from db.models import DailyMovementCounter, Movement
from payloads import make_movement


@pytest.mark.asyncio
async def test_cleanup_soft_deletes_then_purges(beanie_db, now) -> None:
    owner = PydanticObjectId()
    recent = await make_movement(owner, now - timedelta(days=30)).insert()
    stale = await make_movement(owner, now - relativedelta(months=25)).insert()
    await make_movement(owner, now - relativedelta(years=4)).insert()
    await make_movement(
        owner,
        now - relativedelta(months=26),
        deleted=True,
        deleted_reason="user_request",
    ).insert()

    result = await maintenance.cleanup_old_movements_async(MovementPolicy(), now=now)

    assert (result["soft_deleted"], result["hard_deleted"]) == (1, 1)
    assert await Movement.find({}).count() == 3
    kept = await Movement.get(recent.id)
    assert kept.deleted is False
    expired = await Movement.get(stale.id)
    assert expired.deleted is True
    assert expired.deleted_reason == "automatic_cleanup"
    assert expired.deleted_by is None


@pytest.mark.asyncio
async def test_cleanup_honours_configured_windows(beanie_db, now) -> None:
    owner = PydanticObjectId()
    await make_movement(owner, now - relativedelta(months=7)).insert()

    result = await maintenance.cleanup_old_movements_async(
        MovementPolicy(retention_months=6),
        now=now,
    )

    assert result["soft_deleted"] == 1
    assert result["hard_deleted"] == 0


@pytest.mark.asyncio
async def test_prune_keeps_counters_that_can_still_change(beanie_db, now) -> None:
    owner = PydanticObjectId()
    for day in ("2026-03-01", "2026-03-02", "2026-03-10"):
        await DailyMovementCounter(owner_id=owner, day=day, used=3).insert()

    result = await maintenance.prune_daily_counters_async(MovementPolicy(), now=now)

    assert result["deleted"] == 1
    assert result["cutoff_day"] == "2026-03-02"
    remaining = await DailyMovementCounter.find({}).sort("+day").to_list()
    assert [c.day for c in remaining] == ["2026-03-02", "2026-03-10"]


def test_task_wrappers_bridge_to_async(monkeypatch) -> None:
    seen = []

    def fake_bridge(coro):
        seen.append(coro.__name__)
        coro.close()
        return {"status": "success"}

    monkeypatch.setattr(maintenance, "run_async_from_sync", fake_bridge)

    assert maintenance.cleanup_old_movements.run() == {"status": "success"}
    assert maintenance.prune_daily_counters.run() == {"status": "success"}
    assert seen == ["cleanup_old_movements_async", "prune_daily_counters_async"]


def test_beat_schedule_targets_registered_tasks() -> None:
    names = {entry["task"] for entry in celery_app.BEAT_SCHEDULE.values()}

    assert names == {maintenance.cleanup_old_movements.name, maintenance.prune_daily_counters.name}
    assert celery_app.app.conf.timezone == "America/Bogota"
