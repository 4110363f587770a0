"""Integration tests for mp_gateway auth endpoints (requires running PG + Redis).

Pre-condition: make up && make migrate
"""

import pytest
from httpx import AsyncClient

from flow_helpers import PASSWORD, unique_user

pytestmark = pytest.mark.asyncio(loop_scope="session")


class TestRegister:
    async def test_register_returns_lowercase_address(self, client: AsyncClient) -> None:
        user = unique_user()
        user["address"] = user["address"].upper().replace("0X", "0x")
        resp = await client.post("/api/v1/auth/register", json=user)
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["address"] == user["address"].lower()
        assert data["created_at"]

    async def test_duplicate_username_conflicts(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        again = unique_user() | {"username": user["username"]}
        resp = await client.post("/api/v1/auth/register", json=again)
        assert resp.status_code == 409
        assert resp.json()["code"] == 1001

    async def test_duplicate_address_conflicts(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        again = unique_user() | {"address": user["address"]}
        resp = await client.post("/api/v1/auth/register", json=again)
        assert resp.status_code == 409
        assert resp.json()["code"] == 1002


class TestLogin:
    async def test_login_and_refresh(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        resp = await client.post(
            "/api/v1/auth/login", json={"username": user["username"], "password": PASSWORD}
        )
        assert resp.status_code == 200
        tokens = resp.json()["data"]
        assert tokens["user"]["address"] == user["address"]

        resp = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["access_token"]

    async def test_wrong_password_rejected(self, client: AsyncClient) -> None:
        user = unique_user()
        await client.post("/api/v1/auth/register", json=user)
        resp = await client.post(
            "/api/v1/auth/login", json={"username": user["username"], "password": "Wrong1234"}
        )
        assert resp.status_code == 401
        assert resp.json()["code"] == 1003
