import sys
from datetime import UTC, datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from beanie import init_beanie

from config import MovementPolicy, get_movement_policy
from db.models import ALL_DOCUMENT_MODELS


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "MAX_MOVEMENTS_PER_DAY",
        "STRICT_BOUNDS_ENABLED",
        "VALIDATE_COLOMBIA_BOUNDS",
        "DISTANCE_TOLERANCE_KM",
        "MAX_SUBMISSION_AGE_DAYS",
        "SERVICE_TIMEZONE",
        "BOUNDS_MIN_LAT",
        "BOUNDS_MAX_LAT",
        "BOUNDS_MIN_LON",
        "BOUNDS_MAX_LON",
    ):
        monkeypatch.delenv(name, raising=False)
    get_movement_policy.cache_clear()
    yield
    get_movement_policy.cache_clear()


@pytest.fixture
async def beanie_db():
    mongomock_motor = pytest.importorskip("mongomock_motor")
    client = mongomock_motor.AsyncMongoMockClient()
    database = client["test_db"]
    await init_beanie(database=database, document_models=ALL_DOCUMENT_MODELS)
    return database


@pytest.fixture
def policy() -> MovementPolicy:
    return MovementPolicy()


@pytest.fixture
def now() -> datetime:
    # Mid-afternoon in Bogota (UTC-5), far from a calendar-day boundary.
    return datetime(2026, 3, 10, 20, 0, tzinfo=UTC)

