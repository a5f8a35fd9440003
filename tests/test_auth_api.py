import pytest
from unittest.mock import patch, AsyncMock
from sqlalchemy.exc import SQLAlchemyError
from fastapi import status


VALID_REGISTRATION = {
    "email": "carol@x.com",
    "username": "carol",
    "displayName": "Carol",
    "password": "carol-password"
}


@pytest.mark.asyncio
async def test_register_returns_own_profile_with_token(client):
    response = await client.post("/api/auth/register", json=VALID_REGISTRATION)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["username"] == "carol"
    assert data["displayName"] == "Carol"
    assert data["apiToken"]
    assert data["followerCount"] == 0
    assert data["followingCount"] == 0
    assert data["postCount"] == 0
    assert isinstance(data["createdAt"], int)
    assert "isFollowing" not in data
    assert "isFollowingBack" not in data
    assert "password" not in data
    assert "hashedPassword" not in data
    assert "email" not in data


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["email", "username", "displayName", "password"])
async def test_register_missing_key(client, missing):
    payload = {k: v for k, v in VALID_REGISTRATION.items() if k != missing}

    response = await client.post("/api/auth/register", json=payload)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "missing keys"


@pytest.mark.asyncio
async def test_register_empty_value_counts_as_missing(client):
    response = await client.post("/api/auth/register", json={**VALID_REGISTRATION, "displayName": ""})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "missing keys"


@pytest.mark.asyncio
async def test_register_without_body(client):
    response = await client.post("/api/auth/register")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "missing keys"


@pytest.mark.asyncio
@pytest.mark.parametrize("field, value, message", [
    ("email", "not-an-email", "invalid email"),
    ("username", "c", "invalid username"),
    ("username", "c" * 41, "invalid username"),
    ("displayName", "d" * 121, "invalid displayName"),
    ("password", "short", "invalid password"),
    ("password", "p" * 201, "invalid password"),
])
async def test_register_invalid_field(client, field, value, message):
    response = await client.post("/api/auth/register", json={**VALID_REGISTRATION, field: value})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error"] == message
    assert body["error_code"] == "INVALID_FIELD"


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    await client.post("/api/auth/register", json=VALID_REGISTRATION)

    response = await client.post(
        "/api/auth/register",
        json={**VALID_REGISTRATION, "email": "CAROL@x.com", "username": "carol2"}
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"error": "email in use", "error_code": "EMAIL_IN_USE"}


@pytest.mark.asyncio
async def test_register_duplicate_username(client):
    await client.post("/api/auth/register", json=VALID_REGISTRATION)

    response = await client.post(
        "/api/auth/register",
        json={**VALID_REGISTRATION, "email": "carol2@x.com"}
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"] == "username in use"


@pytest.mark.asyncio
@pytest.mark.parametrize("identifier", ["carol", "carol@x.com"])
async def test_login_returns_registered_identity(client, identifier):
    registered = (await client.post("/api/auth/register", json=VALID_REGISTRATION)).json()

    response = await client.post(
        "/api/auth/login",
        json={"username": identifier, "password": "carol-password"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == registered["id"]
    assert data["apiToken"] == registered["apiToken"]


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    await client.post("/api/auth/register", json=VALID_REGISTRATION)

    response = await client.post("/api/auth/login", json={"username": "carol", "password": "wrong-password"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "invalid password"


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post("/api/auth/login", json={"username": "nobody", "password": "whatever1"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "unknown user"


@pytest.mark.asyncio
async def test_login_missing_keys(client):
    response = await client.post("/api/auth/login", json={"username": "carol"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "missing keys"


@pytest.mark.asyncio
async def test_body_must_be_an_object(client):
    response = await client.post("/api/auth/login", json=["carol", "carol-password"])

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_store_failure_is_reported_generically(client):
    with patch("app.api.auth.login_user", new=AsyncMock(side_effect=SQLAlchemyError("connection lost"))):
        response = await client.post("/api/auth/login", json={"username": "carol", "password": "carol-password"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    body = response.json()
    assert body["error_code"] == "DATABASE_ERROR"
    assert "connection lost" not in body["error"]
