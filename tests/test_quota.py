import asyncio
from datetime import timedelta

import pytest
from beanie import PydanticObjectId

from config import MovementPolicy
from core.exceptions import QuotaExceededError
from db.models import DailyMovementCounter
from movements.quota import QuotaEnforcer
from payloads import make_movement


@pytest.mark.asyncio
async def test_check_quota_counts_only_live_movements_of_the_day(beanie_db, now) -> None:
    owner = PydanticObjectId()
    other = PydanticObjectId()
    await make_movement(owner, now - timedelta(hours=1)).insert()
    await make_movement(owner, now - timedelta(hours=2)).insert()
    await make_movement(owner, now - timedelta(hours=3), deleted=True).insert()
    await make_movement(owner, now - timedelta(days=1)).insert()
    await make_movement(other, now - timedelta(hours=1)).insert()

    status = await QuotaEnforcer(MovementPolicy()).check_quota(owner, now)

    assert status.count == 2
    assert status.limit == 50
    assert status.allowed is True
    assert status.remaining == 48
    assert status.day == "2026-03-10"


@pytest.mark.asyncio
async def test_check_quota_at_limit_is_not_allowed(beanie_db, now) -> None:
    owner = PydanticObjectId()
    for minutes in range(3):
        await make_movement(owner, now - timedelta(minutes=minutes + 1)).insert()

    status = await QuotaEnforcer(MovementPolicy(max_movements_per_day=3)).check_quota(owner, now)

    assert status.count == 3
    assert status.allowed is False
    assert status.remaining == 0


@pytest.mark.asyncio
async def test_reserve_stops_at_the_limit(beanie_db, now) -> None:
    owner = PydanticObjectId()
    quota = QuotaEnforcer(MovementPolicy(max_movements_per_day=3))

    counts = [(await quota.reserve(owner, now)).count for _ in range(3)]
    with pytest.raises(QuotaExceededError) as raised:
        await quota.reserve(owner, now)

    assert counts == [1, 2, 3]
    assert raised.value.count == 3
    assert raised.value.limit == 3


@pytest.mark.asyncio
async def test_reserve_seeds_from_existing_movements(beanie_db, now) -> None:
    owner = PydanticObjectId()
    await make_movement(owner, now - timedelta(hours=1)).insert()
    await make_movement(owner, now - timedelta(hours=2)).insert()

    status = await QuotaEnforcer(MovementPolicy()).reserve(owner, now)

    assert status.count == 3
    counter = await DailyMovementCounter.find_one({"owner_id": owner, "day": "2026-03-10"})
    assert counter.used == 3


@pytest.mark.asyncio
async def test_concurrent_reservations_never_exceed_the_limit(beanie_db, now) -> None:
    owner = PydanticObjectId()
    quota = QuotaEnforcer(MovementPolicy(max_movements_per_day=5))

    results = await asyncio.gather(
        *(quota.reserve(owner, now) for _ in range(12)),
        return_exceptions=True,
    )

    accepted = [r for r in results if not isinstance(r, Exception)]
    refused = [r for r in results if isinstance(r, QuotaExceededError)]
    assert len(accepted) == 5
    assert len(refused) == 7
    assert sorted(r.count for r in accepted) == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_days_are_counted_separately(beanie_db, now) -> None:
    owner = PydanticObjectId()
    quota = QuotaEnforcer(MovementPolicy(max_movements_per_day=1))

    await quota.reserve(owner, now)
    yesterday = await quota.reserve(owner, now - timedelta(days=1))

    assert yesterday.count == 1
    assert yesterday.day == "2026-03-09"


@pytest.mark.asyncio
async def test_release_gives_a_slot_back(beanie_db, now) -> None:
    owner = PydanticObjectId()
    quota = QuotaEnforcer(MovementPolicy(max_movements_per_day=2))
    await quota.reserve(owner, now)
    await quota.reserve(owner, now)

    await quota.release(owner, now)
    status = await quota.reserve(owner, now)

    assert status.count == 2


@pytest.mark.asyncio
async def test_release_never_goes_negative(beanie_db, now) -> None:
    owner = PydanticObjectId()
    quota = QuotaEnforcer(MovementPolicy())
    await quota.reserve(owner, now)

    await quota.release(owner, now)
    await quota.release(owner, now)

    counter = await DailyMovementCounter.find_one({"owner_id": owner})
    assert counter.used == 0


@pytest.mark.asyncio
async def test_day_follows_the_service_time_zone(beanie_db, now) -> None:
    owner = PydanticObjectId()
    late_evening_bogota = now.replace(hour=3) + timedelta(days=1)

    status = await QuotaEnforcer(MovementPolicy()).reserve(owner, late_evening_bogota)

    assert status.day == "2026-03-10"


@pytest.mark.asyncio
async def test_counter_documents_keep_the_document_count_query(beanie_db, now) -> None:
    owner = PydanticObjectId()
    await QuotaEnforcer(MovementPolicy()).reserve(owner, now)

    assert "count" not in DailyMovementCounter.model_fields
    assert await DailyMovementCounter.find({"owner_id": owner}).count() == 1


@pytest.mark.asyncio
async def test_admit_reserves_only_for_movements_dated_today(beanie_db, now) -> None:
    owner = PydanticObjectId()
    quota = QuotaEnforcer(MovementPolicy(max_movements_per_day=1))

    backdated = await quota.admit(owner, now - timedelta(days=3), now)
    today = await quota.admit(owner, now - timedelta(hours=1), now)

    assert (backdated.count, backdated.day) == (0, "2026-03-10")
    assert (today.count, today.day) == (1, "2026-03-10")
    assert await DailyMovementCounter.find({"owner_id": owner}).count() == 1


@pytest.mark.asyncio
async def test_admit_refuses_backdated_movements_when_today_is_full(beanie_db, now) -> None:
    owner = PydanticObjectId()
    await make_movement(owner, now - timedelta(hours=1)).insert()
    quota = QuotaEnforcer(MovementPolicy(max_movements_per_day=1))

    with pytest.raises(QuotaExceededError) as raised:
        await quota.admit(owner, now - timedelta(days=1), now)

    assert (raised.value.count, raised.value.day) == (1, "2026-03-10")
