"""Fixtures wiring the settlement engine and admin service to in-memory fakes."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from marketplace_fakes import (
    ADMIN,
    BUYER,
    COLLECTION,
    ITEM,
    OPERATOR,
    SELLER,
    STRANGER,
    FakeAccountRepository,
    FakeCustody,
    FakeEventLog,
    FakeListingRepository,
    FakeSession,
    FakeStateRepository,
    MarketStore,
)

from src.mp_account.domain.constants import ESCROW_ADDRESS
from src.mp_account.domain.models import Account
from src.mp_admin.application.service import AdminService
from src.mp_admin.domain.models import MarketplaceState
from src.mp_listing.domain.models import ListingKey
from src.mp_settlement.engine.engine import SettlementEngine


def _account(address: str, balance: int = 0) -> Account:
    return Account(address=address, available_balance=balance, is_active=True, version=0)


@pytest.fixture
def store() -> MarketStore:
    return MarketStore(
        state=MarketplaceState(admin_address=ADMIN, fee_rate=25, fee_ledger=0, paused=False),
        allowed={COLLECTION},
        accounts={
            addr: _account(addr, balance)
            for addr, balance in [
                (ESCROW_ADDRESS, 0),
                (SELLER, 0),
                (BUYER, 10_000),
                (STRANGER, 0),
                (ADMIN, 0),
            ]
        },
    )


@pytest.fixture
def db(store: MarketStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def custody() -> FakeCustody:
    fake = FakeCustody()
    fake.give(COLLECTION, ITEM, SELLER)
    return fake


@pytest.fixture
def make_engine(store: MarketStore, custody: FakeCustody):
    def _make(reprice_requires_seller: bool = False) -> SettlementEngine:
        return SettlementEngine(
            listings=FakeListingRepository(store),
            state=FakeStateRepository(store),
            accounts=FakeAccountRepository(store),
            custody=custody,
            events=FakeEventLog(store),
            operator_address=OPERATOR,
            reprice_requires_seller=reprice_requires_seller,
        )

    return _make


@pytest.fixture
def engine(make_engine) -> SettlementEngine:
    return make_engine()


@pytest.fixture
def admin_service(store: MarketStore) -> AdminService:
    return AdminService(
        state=FakeStateRepository(store),
        accounts=FakeAccountRepository(store),
        events=FakeEventLog(store),
        max_fee_rate=100,
    )


@pytest.fixture
def listing_key() -> ListingKey:
    return ListingKey(collection=COLLECTION, item_id=ITEM)


@pytest.fixture(autouse=True)
def published() -> SimpleNamespace:
    """Capture post-commit publishes instead of talking to Redis."""
    with (
        patch(
            "src.mp_admin.application.service.publish_events", new_callable=AsyncMock
        ) as admin_publish,
        patch(
            "src.mp_settlement.application.service.publish_events", new_callable=AsyncMock
        ) as settlement_publish,
    ):
        yield SimpleNamespace(admin=admin_publish, settlement=settlement_publish)
