"""SettlementEngine — the listing lifecycle and purchase state machine.

Every entry point runs under three layers:
  1. non_reentrant guard (no nested marketplace operation in the same task),
  2. a per-item asyncio.Lock keyed by (collection, item_id),
  3. one DB savepoint, so any raised error discards every local effect.

Paused and not-tradeable checks come before any other logic.
"""
import asyncio
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_account.domain.constants import ESCROW_ADDRESS
from src.mp_account.domain.repository import AccountRepositoryProtocol
from src.mp_account.infrastructure.persistence import AccountRepository
from src.mp_admin.domain.models import MarketplaceState
from src.mp_admin.domain.repository import MarketplaceStateRepositoryProtocol
from src.mp_admin.infrastructure.persistence import MarketplaceStateRepository
from src.mp_common.amounts import normalize_address, split_payment
from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import LedgerEntryType, MarketEventType
from src.mp_common.errors import (
    AlreadyListedError,
    AppError,
    AssetTransferFailedError,
    CustodyUnavailableError,
    InsufficientBalanceError,
    InsufficientPaymentError,
    InternalError,
    InvalidPriceError,
    NotListedError,
    NotSellerError,
    NotTradeableError,
    SystemPausedError,
    TransferFailedError,
)
from src.mp_custody.domain.authority import CustodyAuthorityProtocol
from src.mp_custody.domain.entitlement import verify_entitlement
from src.mp_custody.infrastructure.http_client import HttpCustodyAuthority
from src.mp_events.domain.models import MarketEvent
from src.mp_events.domain.repository import EventLogProtocol
from src.mp_events.infrastructure.persistence import MarketEventLog
from src.mp_listing.domain.models import ListingKey, Offer
from src.mp_listing.domain.repository import ListingRepositoryProtocol
from src.mp_listing.infrastructure.persistence import ListingRepository
from src.mp_settlement.domain.invariants import verify_fee_solvency
from src.mp_settlement.domain.models import ListingResult, SaleReceipt
from src.mp_settlement.engine.guard import non_reentrant

logger = logging.getLogger(__name__)

_LEDGER_REFERENCE = "LISTING"


class SettlementEngine:
    def __init__(
        self,
        listings: ListingRepositoryProtocol | None = None,
        state: MarketplaceStateRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        custody: CustodyAuthorityProtocol | None = None,
        events: EventLogProtocol | None = None,
        operator_address: str | None = None,
        reprice_requires_seller: bool | None = None,
    ) -> None:
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._state: MarketplaceStateRepositoryProtocol = state or MarketplaceStateRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._custody: CustodyAuthorityProtocol = custody or HttpCustodyAuthority()
        self._events: EventLogProtocol = events or MarketEventLog()
        self._operator = normalize_address(
            operator_address or settings.MARKETPLACE_OPERATOR_ADDRESS
        )
        self._reprice_requires_seller = (
            settings.REPRICE_REQUIRES_SELLER
            if reprice_requires_seller is None
            else reprice_requires_seller
        )
        # Entries vanish once no coroutine holds or awaits the lock
        self._item_locks: weakref.WeakValueDictionary[ListingKey, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _lock_for(self, key: ListingKey) -> asyncio.Lock:
        lock = self._item_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._item_locks[key] = lock
        return lock

    @asynccontextmanager
    async def _atomic(
        self, operation: str, key: ListingKey, db: AsyncSession
    ) -> AsyncIterator[None]:
        with non_reentrant(operation):
            async with self._lock_for(key):
                try:
                    async with db.begin_nested():
                        yield
                except AppError as exc:
                    logger.info(
                        "%s rejected for %s: [%d] %s", operation, key, exc.code, exc.message
                    )
                    raise

    async def _check_preconditions(
        self, db: AsyncSession, key: ListingKey, for_update: bool = False
    ) -> MarketplaceState:
        state = await self._state.get_state(db, for_update=for_update)
        if state.paused:
            raise SystemPausedError()
        if not await self._state.is_collection_allowed(db, key.collection):
            raise NotTradeableError(key.collection)
        return state

    @staticmethod
    def make_key(collection: str, item_id: int) -> ListingKey:
        return ListingKey(collection=normalize_address(collection), item_id=item_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_listing(self, db: AsyncSession, collection: str, item_id: int) -> Offer:
        """Read-only; the sentinel offer when nothing is listed."""
        return await self._listings.get(db, self.make_key(collection, item_id))

    # ------------------------------------------------------------------
    # Listing lifecycle
    # ------------------------------------------------------------------

    async def list_item(
        self, db: AsyncSession, collection: str, item_id: int, price: int, caller: str
    ) -> ListingResult:
        key = self.make_key(collection, item_id)
        caller = normalize_address(caller)
        async with self._atomic("list_item", key, db):
            await self._check_preconditions(db, key)
            current = await self._listings.get(db, key, for_update=True)
            if current.is_open:
                raise AlreadyListedError(key.collection, key.item_id)
            await verify_entitlement(
                self._custody, key.collection, key.item_id, caller, self._operator
            )
            if price <= 0:
                raise InvalidPriceError(price)

            offer = Offer(seller=caller, price=price, created_at=utc_now())
            # The read above cannot lock an absent row; the insert is the arbiter
            if not await self._listings.insert(db, key, offer):
                raise AlreadyListedError(key.collection, key.item_id)
            event = MarketEvent(
                MarketEventType.LISTING_CREATED,
                actor=caller,
                collection=key.collection,
                item_id=key.item_id,
                amount=price,
                payload={"seller": caller},
            )
            await self._events.append(db, event)

        logger.info("Listed %s by %s at %d", key, caller, price)
        return ListingResult(key=key, offer=offer, events=[event])

    async def update_listing_price(
        self, db: AsyncSession, collection: str, item_id: int, new_price: int, caller: str
    ) -> ListingResult:
        """Reprice an open offer.

        Gated by a fresh entitlement check of the caller, not by the stored
        seller, unless reprice_requires_seller is enabled. The stored seller
        is never changed here.
        """
        key = self.make_key(collection, item_id)
        caller = normalize_address(caller)
        async with self._atomic("update_listing_price", key, db):
            await self._check_preconditions(db, key)
            current = await self._listings.get(db, key, for_update=True)
            if not current.is_open:
                raise NotListedError(key.collection, key.item_id)
            if self._reprice_requires_seller and caller != current.seller:
                raise NotSellerError(caller)
            await verify_entitlement(
                self._custody, key.collection, key.item_id, caller, self._operator
            )
            if new_price <= 0:
                raise InvalidPriceError(new_price)

            offer = Offer(seller=current.seller, price=new_price, created_at=utc_now())
            await self._listings.update(db, key, offer)
            event = MarketEvent(
                MarketEventType.PRICE_UPDATED,
                actor=caller,
                collection=key.collection,
                item_id=key.item_id,
                amount=new_price,
                payload={"seller": current.seller, "old_price": current.price},
            )
            await self._events.append(db, event)

        logger.info("Repriced %s by %s: %d -> %d", key, caller, current.price, new_price)
        return ListingResult(key=key, offer=offer, events=[event])

    async def cancel_listing(
        self, db: AsyncSession, collection: str, item_id: int, caller: str
    ) -> ListingResult:
        key = self.make_key(collection, item_id)
        caller = normalize_address(caller)
        async with self._atomic("cancel_listing", key, db):
            await self._check_preconditions(db, key)
            current = await self._listings.get(db, key, for_update=True)
            if not current.is_open:
                raise NotListedError(key.collection, key.item_id)
            if caller != current.seller:
                raise NotSellerError(caller)

            await self._listings.clear(db, key)
            event = MarketEvent(
                MarketEventType.LISTING_CANCELLED,
                actor=caller,
                collection=key.collection,
                item_id=key.item_id,
                amount=current.price,
                payload={"seller": current.seller},
            )
            await self._events.append(db, event)

        logger.info("Cancelled %s by %s", key, caller)
        return ListingResult(key=key, offer=Offer.sentinel(), events=[event])

    # ------------------------------------------------------------------
    # Purchase
    # ------------------------------------------------------------------

    async def buy_item(
        self, db: AsyncSession, collection: str, item_id: int, caller: str, paid_amount: int
    ) -> SaleReceipt:
        """Settle a purchase all-or-nothing.

        Validation and every local effect (payment in, seller payout, fee
        accrual, offer clear, event) happen first inside the savepoint; the
        custody transfer is the last step and the only irreversible one. If it
        is refused, raising rolls the local effects back. A transfer whose reply
        is lost is settled by the current owner (see _transfer_asset).
        """
        key = self.make_key(collection, item_id)
        buyer = normalize_address(caller)
        async with self._atomic("buy_item", key, db):
            state = await self._check_preconditions(db, key, for_update=True)
            offer = await self._listings.get(db, key, for_update=True)
            if offer.price == 0:
                raise NotListedError(key.collection, key.item_id)
            if paid_amount != offer.price:
                raise InsufficientPaymentError(paid_amount, offer.price)

            # Ownership and approval may have changed since listing
            await verify_entitlement(
                self._custody, key.collection, key.item_id, offer.seller, self._operator
            )

            fee, proceeds = split_payment(offer.price, state.fee_rate)
            await self._collect_payment(db, key, buyer, paid_amount)
            await self._pay_seller(db, key, offer.seller, proceeds)

            fee_ledger = await self._state.adjust_fee_ledger(db, fee)
            escrow = await self._accounts.get_account(db, ESCROW_ADDRESS)
            verify_fee_solvency(fee_ledger, escrow.available_balance if escrow else 0)

            await self._listings.clear(db, key)
            event = MarketEvent(
                MarketEventType.ITEM_SOLD,
                actor=buyer,
                collection=key.collection,
                item_id=key.item_id,
                amount=paid_amount,
                payload={
                    "buyer": buyer,
                    "seller": offer.seller,
                    "fee": fee,
                    "seller_proceeds": proceeds,
                },
            )
            await self._events.append(db, event)

            if not await self._transfer_asset(key, offer.seller, buyer):
                raise AssetTransferFailedError(key.collection, key.item_id)

        logger.info(
            "Sold %s: seller=%s buyer=%s price=%d fee=%d",
            key, offer.seller, buyer, offer.price, fee,
        )
        return SaleReceipt(
            key=key,
            buyer=buyer,
            seller=offer.seller,
            price=offer.price,
            fee=fee,
            seller_proceeds=proceeds,
            events=[event],
        )

    async def _collect_payment(
        self, db: AsyncSession, key: ListingKey, buyer: str, amount: int
    ) -> None:
        ref = str(key)
        debited = await self._accounts.debit(
            db, buyer, amount, LedgerEntryType.SALE_PAYMENT.value, _LEDGER_REFERENCE, ref
        )
        if debited is None:
            account = await self._accounts.get_account(db, buyer)
            raise InsufficientBalanceError(amount, account.available_balance if account else 0)
        credited = await self._accounts.credit(
            db, ESCROW_ADDRESS, amount, LedgerEntryType.SALE_ESCROW_IN.value, _LEDGER_REFERENCE, ref
        )
        if credited is None:
            raise InternalError("escrow account missing or inactive")

    async def _pay_seller(
        self, db: AsyncSession, key: ListingKey, seller: str, proceeds: int
    ) -> None:
        ref = str(key)
        released = await self._accounts.debit(
            db, ESCROW_ADDRESS, proceeds, LedgerEntryType.SALE_ESCROW_OUT.value,
            _LEDGER_REFERENCE, ref,
        )
        if released is None:
            raise InternalError("escrow cannot cover seller proceeds")
        delivered = await self._accounts.credit(
            db, seller, proceeds, LedgerEntryType.SALE_PROCEEDS.value, _LEDGER_REFERENCE, ref
        )
        if delivered is None:
            raise TransferFailedError(seller)

    async def _transfer_asset(self, key: ListingKey, seller: str, buyer: str) -> bool:
        """Move the item to the buyer, resolving an unknown outcome.

        A timeout or unreadable reply may hide a transfer that did happen. The
        current owner decides: the buyer means the sale stands, the seller
        means nothing moved. Anything else (including a failed lookup) gets
        a best-effort return to the seller before the error propagates and
        the local effects roll back.
        """
        try:
            return await self._custody.transfer(key.collection, seller, buyer, key.item_id)
        except CustodyUnavailableError as exc:
            logger.warning("Transfer of %s has unknown outcome: %s", key, exc.message)
            owner: str | None
            try:
                owner = normalize_address(
                    await self._custody.owner_of(key.collection, key.item_id)
                )
            except CustodyUnavailableError:
                owner = None
            if owner == buyer:
                logger.warning("Transfer of %s confirmed by owner lookup", key)
                return True
            if owner != seller:
                await self._return_asset(key, holder=buyer, owner=seller)
            raise

    async def revert_asset_transfer(self, receipt: SaleReceipt) -> bool:
        """Compensate a sale whose custody transfer succeeded but whose commit failed."""
        return await self._return_asset(receipt.key, holder=receipt.buyer, owner=receipt.seller)

    async def _return_asset(self, key: ListingKey, holder: str, owner: str) -> bool:
        try:
            reverted = await self._custody.transfer(key.collection, holder, owner, key.item_id)
        except AppError:
            logger.exception("Compensating transfer of %s raised", key)
            return False
        if reverted:
            logger.warning("Compensated %s: returned from %s to %s", key, holder, owner)
        else:
            logger.error(
                "Compensation FAILED for %s: item may remain with %s, manual repair needed",
                key, holder,
            )
        return reverted
