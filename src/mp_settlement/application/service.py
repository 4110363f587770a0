"""SettlementService — transaction boundary around the SettlementEngine.

Each command runs the engine inside the request's session, commits, and only
then publishes the resulting events. A failed engine call rolls back.
"""

import logging
from collections.abc import Awaitable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.amounts import normalize_address
from src.mp_common.errors import InternalError
from src.mp_common.pagination import cursor_decode, cursor_encode
from src.mp_events.infrastructure.publisher import publish_events
from src.mp_listing.domain.models import ListingKey
from src.mp_listing.domain.repository import ListingRepositoryProtocol
from src.mp_listing.infrastructure.persistence import ListingRepository
from src.mp_settlement.application.schemas import ListingPage, OfferOut, SaleOut
from src.mp_settlement.domain.models import ListingResult
from src.mp_settlement.engine.engine import SettlementEngine

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(
        self,
        engine: SettlementEngine | None = None,
        listings: ListingRepositoryProtocol | None = None,
    ) -> None:
        self._engine = engine or SettlementEngine()
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()

    async def list_item(
        self, db: AsyncSession, collection: str, item_id: int, price: int, caller: str
    ) -> OfferOut:
        result = await self._run(
            db, self._engine.list_item(db, collection, item_id, price, caller)
        )
        return OfferOut.from_domain(result.key, result.offer)

    async def update_listing_price(
        self, db: AsyncSession, collection: str, item_id: int, new_price: int, caller: str
    ) -> OfferOut:
        result = await self._run(
            db, self._engine.update_listing_price(db, collection, item_id, new_price, caller)
        )
        return OfferOut.from_domain(result.key, result.offer)

    async def cancel_listing(
        self, db: AsyncSession, collection: str, item_id: int, caller: str
    ) -> OfferOut:
        result = await self._run(
            db, self._engine.cancel_listing(db, collection, item_id, caller)
        )
        return OfferOut.from_domain(result.key, result.offer)

    async def buy_item(
        self, db: AsyncSession, collection: str, item_id: int, caller: str, paid_amount: int
    ) -> SaleOut:
        try:
            receipt = await self._engine.buy_item(db, collection, item_id, caller, paid_amount)
        except Exception:
            await db.rollback()
            raise
        try:
            await db.commit()
        except SQLAlchemyError as exc:
            # The asset already moved; hand it back before surfacing the failure
            logger.error("Commit failed after custody transfer of %s", receipt.key)
            await db.rollback()
            await self._engine.revert_asset_transfer(receipt)
            raise InternalError("Sale could not be recorded; asset transfer reverted") from exc
        await publish_events(receipt.events)
        return SaleOut.from_receipt(receipt)

    async def get_listing(self, db: AsyncSession, collection: str, item_id: int) -> OfferOut:
        offer = await self._engine.get_listing(db, collection, item_id)
        return OfferOut.from_domain(self._engine.make_key(collection, item_id), offer)

    async def browse_listings(
        self, db: AsyncSession, collection: str | None, cursor: str | None, limit: int
    ) -> ListingPage:
        decoded = cursor_decode(cursor)
        after = (
            ListingKey(collection=decoded["c"], item_id=int(decoded["i"]))
            if decoded and "c" in decoded and "i" in decoded
            else None
        )
        collection = normalize_address(collection) if collection else None
        # Fetch limit+1 to detect has_more without COUNT(*)
        rows = await self._listings.list_open(db, collection, after, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = (
            cursor_encode({"c": page[-1].key.collection, "i": str(page[-1].key.item_id)})
            if has_more and page
            else None
        )
        return ListingPage(
            items=[OfferOut.from_listed(r) for r in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def _run(
        self, db: AsyncSession, operation: Awaitable[ListingResult]
    ) -> ListingResult:
        try:
            result = await operation
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await publish_events(result.events)
        return result
