"""
Shared test fixtures.

The app talks to an in-memory MongoDB (mongomock-motor), so tests run
without a database server. Lifespan events are not triggered by
``ASGITransport``; the fixture sets ``app.mongodb`` directly.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret")

from typing import Dict

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from database.connection import ensure_indexes
from main import app

PASSWORD = "s3cret-pass"

VEHICLE = {"make": "Perodua", "model": "Myvi", "plate_number": "WXY 1234", "color": "white"}


@pytest.fixture
async def db():
    database = AsyncMongoMockClient()["maxim-test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
async def client(db):
    app.mongodb = db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, email: str, path: str = "/api/auth/login") -> Dict[str, str]:
    response = await client.post(path, json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def register_customer(client: AsyncClient, email: str = "alice@example.com") -> Dict[str, str]:
    response = await client.post(
        "/api/users", json={"email": email, "password": PASSWORD, "name": "Alice", "phone": "0123456789"}
    )
    assert response.status_code == 201, response.text
    return await login(client, email)


async def register_driver(client: AsyncClient, email: str = "dan@example.com") -> Dict[str, str]:
    response = await client.post(
        "/api/drivers",
        json={"email": email, "password": PASSWORD, "name": "Dan", "vehicle_details": VEHICLE},
    )
    assert response.status_code == 201, response.text
    return await login(client, email)


async def register_admin(client: AsyncClient, email: str = "root@example.com", headers=None) -> Dict[str, str]:
    response = await client.post(
        "/api/admin/register",
        json={"email": email, "password": PASSWORD, "name": "Root"},
        headers=headers or {},
    )
    assert response.status_code == 201, response.text
    return await login(client, email, "/api/admin/login")


async def request_ride(client: AsyncClient, headers, distance_km: float = 5) -> dict:
    response = await client.post(
        "/api/rides",
        json={
            "pickup_location": "KLCC",
            "dropoff_location": "Bukit Bintang",
            "distance_km": distance_km,
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def customer(client):
    return await register_customer(client)


@pytest.fixture
async def driver(client):
    return await register_driver(client)


@pytest.fixture
async def admin(client):
    return await register_admin(client)
