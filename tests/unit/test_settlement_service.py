"""Unit tests for SettlementService: commit, rollback, publish and compensation."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from marketplace_fakes import (
    BUYER,
    COLLECTION,
    ITEM,
    OTHER_COLLECTION,
    SELLER,
    FakeCustody,
    FakeListingRepository,
    FakeSession,
    MarketStore,
)
from sqlalchemy.exc import OperationalError

from src.mp_common.amounts import ZERO_ADDRESS
from src.mp_common.errors import InternalError, NotOwnerError
from src.mp_listing.domain.models import ListingKey, Offer
from src.mp_settlement.application.service import SettlementService
from src.mp_settlement.engine.engine import SettlementEngine


@pytest.fixture
def service(engine: SettlementEngine, store: MarketStore) -> SettlementService:
    return SettlementService(engine=engine, listings=FakeListingRepository(store))


class TestCommands:
    async def test_list_commits_then_publishes(
        self, service: SettlementService, db: FakeSession, published: SimpleNamespace
    ) -> None:
        out = await service.list_item(db, COLLECTION, ITEM, 1000, SELLER)

        assert out.seller == SELLER
        assert out.item_id == str(ITEM)
        assert out.is_open is True
        db.commit.assert_awaited_once()
        published.settlement.assert_awaited_once()
        (events,), _ = published.settlement.call_args
        assert events[0].event_type.value == "ListingCreated"

    async def test_failure_rolls_back_and_publishes_nothing(
        self, service: SettlementService, db: FakeSession, published: SimpleNamespace
    ) -> None:
        with pytest.raises(NotOwnerError):
            await service.list_item(db, COLLECTION, ITEM, 1000, BUYER)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
        published.settlement.assert_not_awaited()

    async def test_reprice_and_cancel(
        self, service: SettlementService, db: FakeSession
    ) -> None:
        await service.list_item(db, COLLECTION, ITEM, 1000, SELLER)
        repriced = await service.update_listing_price(db, COLLECTION, ITEM, 1200, SELLER)
        assert repriced.price == 1200

        cancelled = await service.cancel_listing(db, COLLECTION, ITEM, SELLER)
        assert cancelled.is_open is False
        assert cancelled.seller == ZERO_ADDRESS

    async def test_buy_returns_sale(
        self, service: SettlementService, db: FakeSession, published: SimpleNamespace
    ) -> None:
        await service.list_item(db, COLLECTION, ITEM, 1000, SELLER)

        sale = await service.buy_item(db, COLLECTION, ITEM, BUYER, 1000)

        assert (sale.buyer, sale.seller, sale.price) == (BUYER, SELLER, 1000)
        assert (sale.fee, sale.seller_proceeds) == (25, 975)
        assert published.settlement.await_count == 2

    async def test_commit_failure_after_sale_returns_asset(
        self,
        service: SettlementService,
        db: FakeSession,
        custody: FakeCustody,
        published: SimpleNamespace,
    ) -> None:
        await service.list_item(db, COLLECTION, ITEM, 1000, SELLER)
        db.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

        with pytest.raises(InternalError):
            await service.buy_item(db, COLLECTION, ITEM, BUYER, 1000)

        assert custody.owners[(COLLECTION, ITEM)] == SELLER
        assert custody.transfers[-1] == (COLLECTION, BUYER, SELLER, ITEM)
        db.rollback.assert_awaited()
        assert published.settlement.await_count == 1

    async def test_compensation_not_attempted_when_engine_fails(self, db: FakeSession) -> None:
        engine = AsyncMock()
        engine.buy_item.side_effect = NotOwnerError(SELLER)
        service = SettlementService(engine=engine, listings=AsyncMock())

        with pytest.raises(NotOwnerError):
            await service.buy_item(db, COLLECTION, ITEM, BUYER, 1000)
        engine.revert_asset_transfer.assert_not_awaited()


class TestQueries:
    async def test_get_absent_listing_is_sentinel(
        self, service: SettlementService, db: FakeSession
    ) -> None:
        out = await service.get_listing(db, COLLECTION, 99)
        assert out.seller == ZERO_ADDRESS
        assert out.price == 0
        assert out.is_open is False
        assert out.created_at is None

    async def test_browse_pages_with_cursor(
        self, service: SettlementService, db: FakeSession, store: MarketStore
    ) -> None:
        for collection, item_id in [(COLLECTION, 3), (COLLECTION, 1), (OTHER_COLLECTION, 2)]:
            store.listings[ListingKey(collection, item_id)] = Offer(SELLER, 100, None)

        first = await service.browse_listings(db, None, None, 2)
        assert [(o.collection, o.item_id) for o in first.items] == [
            (COLLECTION, "1"),
            (COLLECTION, "3"),
        ]
        assert first.has_more is True

        second = await service.browse_listings(db, None, first.next_cursor, 2)
        assert [(o.collection, o.item_id) for o in second.items] == [(OTHER_COLLECTION, "2")]
        assert second.has_more is False
        assert second.next_cursor is None

    async def test_browse_filters_by_collection(
        self, service: SettlementService, db: FakeSession, store: MarketStore
    ) -> None:
        store.listings[ListingKey(COLLECTION, 1)] = Offer(SELLER, 100, None)
        store.listings[ListingKey(OTHER_COLLECTION, 1)] = Offer(SELLER, 100, None)

        mixed_case = OTHER_COLLECTION.upper().replace("0X", "0x")
        page = await service.browse_listings(db, mixed_case, None, 10)
        assert [o.collection for o in page.items] == [OTHER_COLLECTION]

    async def test_malformed_cursor_starts_from_first_page(
        self, service: SettlementService, db: FakeSession, store: MarketStore
    ) -> None:
        store.listings[ListingKey(COLLECTION, 1)] = Offer(SELLER, 100, None)
        page = await service.browse_listings(db, None, "%%%not-base64", 10)
        assert len(page.items) == 1
