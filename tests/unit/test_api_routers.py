"""Router tests: envelope, error mapping and auth wiring via dependency overrides."""

import uuid
from collections.abc import Iterator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from src.main import app
from src.mp_common.database import get_db_session
from src.mp_common.errors import NotAdminError, NotListedError
from src.mp_gateway.auth.dependencies import get_current_user
from src.mp_gateway.user.db_models import UserModel
from src.mp_settlement.application.schemas import OfferOut, SaleOut

COLLECTION = "0x" + "c" * 40
SELLER = "0x" + "5" * 40
BUYER = "0x" + "b" * 40


def _user(address: str) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "trader"
    user.address = address
    user.is_active = True
    return user


@pytest.fixture
def caller() -> Iterator[dict[str, UserModel]]:
    """Override auth and DB; tests set caller["user"] to choose the identity."""
    holder = {"user": _user(SELLER)}

    async def _db():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _db
    app.dependency_overrides[get_current_user] = lambda: holder["user"]
    yield holder
    app.dependency_overrides.clear()


@pytest.fixture
def listings_service() -> Iterator[AsyncMock]:
    with patch("src.mp_settlement.api.router._service", new=AsyncMock()) as svc:
        yield svc


@pytest.fixture
def admin_service() -> Iterator[AsyncMock]:
    with patch("src.mp_admin.api.router._service", new=AsyncMock()) as svc:
        yield svc


class TestListings:
    async def test_list_item(
        self, client: AsyncClient, caller: dict, listings_service: AsyncMock
    ) -> None:
        listings_service.list_item.return_value = OfferOut(
            collection=COLLECTION,
            item_id="7",
            seller=SELLER,
            price=1000,
            created_at="2026-10-18T00:00:00+00:00",
            is_open=True,
        )

        resp = await client.post(
            "/api/v1/listings",
            json={
                "collection": COLLECTION.upper().replace("0X", "0x"),
                "item_id": 7,
                "price": 1000,
            },
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["seller"] == SELLER
        assert resp.headers["X-Request-ID"] == body["request_id"]
        listings_service.list_item.assert_awaited_once()
        args = listings_service.list_item.await_args.args
        assert args[1:] == (COLLECTION, 7, 1000, SELLER)

    async def test_buy_uses_caller_address(
        self, client: AsyncClient, caller: dict, listings_service: AsyncMock
    ) -> None:
        caller["user"] = _user(BUYER)
        listings_service.buy_item.return_value = SaleOut(
            collection=COLLECTION,
            item_id="7",
            buyer=BUYER,
            seller=SELLER,
            price=1000,
            fee=25,
            seller_proceeds=975,
        )

        resp = await client.post(
            "/api/v1/listings/buy",
            json={"collection": COLLECTION, "item_id": 7, "paid_amount": 1000},
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["fee"] == 25
        assert listings_service.buy_item.await_args.args[1:] == (COLLECTION, 7, BUYER, 1000)

    async def test_app_error_is_enveloped(
        self, client: AsyncClient, caller: dict, listings_service: AsyncMock
    ) -> None:
        listings_service.cancel_listing.side_effect = NotListedError(COLLECTION, 7)

        resp = await client.post(
            "/api/v1/listings/cancel", json={"collection": COLLECTION, "item_id": 7}
        )

        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == 3004
        assert body["data"] is None

    async def test_malformed_collection_rejected(
        self, client: AsyncClient, caller: dict, listings_service: AsyncMock
    ) -> None:
        resp = await client.patch(
            "/api/v1/listings/price",
            json={"collection": "0x1234", "item_id": 7, "new_price": 5},
        )
        assert resp.status_code == 422
        listings_service.update_listing_price.assert_not_awaited()

    async def test_get_listing_large_item_id(
        self, client: AsyncClient, caller: dict, listings_service: AsyncMock
    ) -> None:
        big = 2**255
        listings_service.get_listing.return_value = OfferOut(
            collection=COLLECTION,
            item_id=str(big),
            seller="0x" + "0" * 40,
            price=0,
            created_at=None,
            is_open=False,
        )

        resp = await client.get(f"/api/v1/listings/{COLLECTION}/{big}")

        assert resp.status_code == 200
        assert resp.json()["data"]["item_id"] == str(big)

    async def test_requires_token(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/listings", json={"collection": COLLECTION, "item_id": 7, "price": 1}
        )
        assert resp.status_code == 401


class TestAdmin:
    async def test_non_admin_forbidden(
        self, client: AsyncClient, caller: dict, admin_service: AsyncMock
    ) -> None:
        admin_service.pause.side_effect = NotAdminError()

        resp = await client.post("/api/v1/admin/pause")

        assert resp.status_code == 403
        assert resp.json()["code"] == 5001

    async def test_set_fee_rate(
        self, client: AsyncClient, caller: dict, admin_service: AsyncMock
    ) -> None:
        admin_service.set_fee_rate.return_value = 30

        resp = await client.put("/api/v1/admin/fee-rate", json={"fee_rate": 30})

        assert resp.status_code == 200
        assert resp.json()["data"] == {"fee_rate": 30}
        assert admin_service.set_fee_rate.await_args.args[1:] == (30, SELLER)


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_ready_reports_degraded_dependencies(client: AsyncClient) -> None:
    redis = AsyncMock()
    redis.ping.return_value = True
    with (
        patch("src.main.marketplace_state_seeded", AsyncMock(return_value=False)),
        patch("src.main.get_redis", AsyncMock(return_value=redis)),
    ):
        resp = await client.get("/ready")
    assert resp.status_code == 503
    assert resp.json()["checks"] == {"database": False, "redis": True}


async def test_upstream_request_id_is_kept(client: AsyncClient) -> None:
    resp = await client.get("/health", headers={"X-Request-ID": "req_upstream01"})
    assert resp.headers["X-Request-ID"] == "req_upstream01"
