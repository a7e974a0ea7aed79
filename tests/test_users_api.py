import pytest
from fastapi.testclient import TestClient

from app import app
from db.models import User


@pytest.fixture
def client():
    return TestClient(app)


def _payload(**overrides) -> dict:
    payload = {
        "full_name": "Laura Martinez",
        "email": "Laura.Martinez@Example.com",
        "region": "Cundinamarca",
        "transport": "motorcycle",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_user(client, beanie_db) -> None:
    resp = client.post("/api/users", json=_payload())

    assert resp.status_code == 201
    user = resp.json()["user"]
    assert user["email"] == "laura.martinez@example.com"
    assert user["role"] == "worker"
    assert user["active"] is True
    assert await User.find({}).count() == 1


@pytest.mark.asyncio
async def test_duplicate_email_is_a_conflict(client, beanie_db) -> None:
    client.post("/api/users", json=_payload())

    resp = client.post("/api/users", json=_payload(email="laura.martinez@example.com"))

    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "DUPLICATE_RESOURCE"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("full_name", "L"),
        ("email", "not-an-email"),
        ("transport", "rocket"),
        ("role", "owner"),
    ],
)
async def test_create_user_rejects_bad_fields(client, beanie_db, field, value) -> None:
    resp = client.post("/api/users", json=_payload(**{field: value}))

    assert resp.status_code == 400
    assert field in resp.json()["detail"]["errors"]


@pytest.mark.asyncio
async def test_list_users_only_returns_active(client, beanie_db) -> None:
    await User(full_name="Zoe Rios", email="zoe@example.com").insert()
    await User(full_name="Ana Perez", email="ana@example.com", role="supervisor").insert()
    await User(full_name="Old Account", email="old@example.com", active=False).insert()

    everyone = client.get("/api/users").json()
    supervisors = client.get("/api/users", params={"role": "supervisor"}).json()

    assert [u["full_name"] for u in everyone["users"]] == ["Ana Perez", "Zoe Rios"]
    assert everyone["total"] == 2
    assert [u["email"] for u in supervisors["users"]] == ["ana@example.com"]


@pytest.mark.asyncio
async def test_get_user(client, beanie_db) -> None:
    user = User(full_name="Zoe Rios", email="zoe@example.com")
    await user.insert()

    resp = client.get(f"/api/users/{user.id}")

    assert resp.status_code == 200
    assert resp.json()["id"] == str(user.id)
    assert client.get("/api/users/bogus").status_code == 400
    assert client.get("/api/users/65f0c2a1b2c3d4e5f6a7b8c9").status_code == 404


@pytest.mark.asyncio
async def test_deactivate_user(client, beanie_db) -> None:
    user = User(full_name="Zoe Rios", email="zoe@example.com")
    await user.insert()

    resp = client.patch(f"/api/users/{user.id}/deactivate")

    assert resp.status_code == 200
    assert resp.json()["user"]["active"] is False
    stored = await User.get(user.id)
    assert stored.active is False
