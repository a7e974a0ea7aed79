from datetime import timedelta

import pytest
from beanie import PydanticObjectId

from config import MovementPolicy
from movements.services.movement_stats_service import MovementStatsService, speed_bucket
from payloads import make_movement


@pytest.mark.parametrize(
    ("speed", "bucket"),
    [
        (0, "0-10"),
        (9.9, "0-10"),
        (10, "10-20"),
        (65.0, "60-80"),
        (199.9, "100-200"),
        (200, "200+"),
        (240, "200+"),
    ],
)
def test_speed_bucket(speed, bucket) -> None:
    assert speed_bucket(speed) == bucket


@pytest.fixture
async def seeded(beanie_db, now):
    owner = PydanticObjectId()
    await make_movement(
        owner,
        now - timedelta(hours=1),
        avg_speed_kmh=25.0,
        max_speed_kmh=40.0,
        claimed_distance_km=10.0,
        duration_minutes=20,
    ).insert()
    await make_movement(
        owner,
        now - timedelta(hours=3),
        avg_speed_kmh=25.0,
        max_speed_kmh=50.0,
        claimed_distance_km=20.0,
        duration_minutes=60,
    ).insert()
    await make_movement(
        owner,
        now - timedelta(days=2),
        avg_speed_kmh=55.0,
        max_speed_kmh=70.0,
        claimed_distance_km=30.0,
        duration_minutes=40,
        region_label="Medellin",
    ).insert()
    # Outside the window, deleted, or someone else's
    await make_movement(owner, now - timedelta(days=10)).insert()
    await make_movement(owner, now - timedelta(hours=2), deleted=True).insert()
    await make_movement(PydanticObjectId(), now - timedelta(hours=1)).insert()
    return owner


@pytest.mark.asyncio
async def test_summary_covers_the_period(seeded, now) -> None:
    stats = await MovementStatsService(MovementPolicy()).get_stats(seeded, "7d", now=now)

    summary = stats["summary"]
    assert summary["total_movements"] == 3
    assert summary["total_distance_km"] == 60.0
    assert summary["total_duration_minutes"] == 120.0
    assert summary["avg_speed_kmh"] == 35.0
    assert summary["max_speed_kmh"] == 70.0
    assert summary["min_speed_kmh"] == 25.0
    assert summary["avg_distance_km"] == 20.0
    assert summary["max_distance_km"] == 30.0
    assert summary["efficiency"] == 30.0


@pytest.mark.asyncio
async def test_trends_group_by_local_day(seeded, now) -> None:
    stats = await MovementStatsService(MovementPolicy()).get_stats(seeded, "7d", "day", now=now)

    assert [(t["period"], t["count"], t["distance_km"]) for t in stats["trends"]] == [
        ("2026-03-08", 1, 30.0),
        ("2026-03-10", 2, 30.0),
    ]
    assert stats["trends"][1]["duration_minutes"] == 80.0
    assert stats["trends"][1]["avg_speed_kmh"] == 25.0


@pytest.mark.asyncio
async def test_distributions(seeded, now) -> None:
    stats = await MovementStatsService(MovementPolicy()).get_stats(seeded, "7d", now=now)

    assert stats["by_region"] == [
        {"region": "Bogota", "count": 2, "total_distance_km": 30.0, "avg_speed_kmh": 25.0},
        {"region": "Medellin", "count": 1, "total_distance_km": 30.0, "avg_speed_kmh": 55.0},
    ]
    # Hours are local to Bogota
    assert [(h["hour"], h["count"]) for h in stats["by_hour"]] == [(12, 1), (14, 1), (15, 1)]
    assert [(s["bucket"], s["count"]) for s in stats["by_speed"]] == [("20-30", 2), ("50-60", 1)]


@pytest.mark.asyncio
async def test_short_period_and_unknown_values_fall_back(seeded, now) -> None:
    service = MovementStatsService(MovementPolicy())

    one_day = await service.get_stats(seeded, "1d", now=now)
    fallback = await service.get_stats(seeded, "1y", "fortnight", now=now)

    assert one_day["summary"]["total_movements"] == 2
    assert (fallback["period"], fallback["group_by"]) == ("7d", "day")
    assert fallback["summary"]["total_movements"] == 3


@pytest.mark.asyncio
async def test_empty_period(beanie_db, now) -> None:
    stats = await MovementStatsService(MovementPolicy()).get_stats(PydanticObjectId(), now=now)

    assert stats["summary"]["total_movements"] == 0
    assert stats["summary"]["efficiency"] == 0.0
    assert stats["trends"] == []
    assert stats["by_speed"] == []
