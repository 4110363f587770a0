"""AdminService — marketplace policy controls, restricted to the administrator.

Every mutation runs in one savepoint, commits, then publishes its event.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_account.domain.constants import ESCROW_ADDRESS
from src.mp_account.domain.repository import AccountRepositoryProtocol
from src.mp_account.infrastructure.persistence import AccountRepository
from src.mp_admin.application.schemas import (
    InvariantReport,
    MarketplaceStateResponse,
    WithdrawFeesResponse,
)
from src.mp_admin.domain.models import MarketplaceState
from src.mp_admin.domain.repository import MarketplaceStateRepositoryProtocol
from src.mp_admin.infrastructure.persistence import MarketplaceStateRepository
from src.mp_common.amounts import FEE_RATE_DENOMINATOR, normalize_address
from src.mp_common.enums import LedgerEntryType, MarketEventType
from src.mp_common.errors import (
    FeeTooHighError,
    InsufficientFundsError,
    InternalError,
    InvalidAmountError,
    NotAdminError,
    WithdrawFailedError,
)
from src.mp_events.domain.models import MarketEvent
from src.mp_events.domain.repository import EventLogProtocol
from src.mp_events.infrastructure.persistence import MarketEventLog
from src.mp_events.infrastructure.publisher import publish_events
from src.mp_settlement.domain.invariants import solvency_violations, verify_fee_solvency
from src.mp_settlement.engine.guard import non_reentrant

logger = logging.getLogger(__name__)

_LEDGER_REFERENCE = "FEE_WITHDRAWAL"


class AdminService:
    def __init__(
        self,
        state: MarketplaceStateRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        events: EventLogProtocol | None = None,
        max_fee_rate: int | None = None,
    ) -> None:
        self._state: MarketplaceStateRepositoryProtocol = state or MarketplaceStateRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._events: EventLogProtocol = events or MarketEventLog()
        self._max_fee_rate = settings.MAX_FEE_RATE if max_fee_rate is None else max_fee_rate

    async def _require_admin(
        self, db: AsyncSession, caller: str, for_update: bool = False
    ) -> MarketplaceState:
        state = await self._state.get_state(db, for_update=for_update)
        if normalize_address(caller) != state.admin_address:
            raise NotAdminError()
        return state

    async def _escrow_balance(self, db: AsyncSession) -> int:
        escrow = await self._accounts.get_account(db, ESCROW_ADDRESS)
        return escrow.available_balance if escrow else 0

    async def _commit_and_publish(self, db: AsyncSession, events: list[MarketEvent]) -> None:
        await db.commit()
        await publish_events(events)

    # ------------------------------------------------------------------
    # Fee policy
    # ------------------------------------------------------------------

    async def set_fee_rate(self, db: AsyncSession, fee_rate: int, caller: str) -> int:
        caller = normalize_address(caller)
        try:
            async with db.begin_nested():
                state = await self._require_admin(db, caller, for_update=True)
                if fee_rate < 0:
                    raise InvalidAmountError(fee_rate)
                if fee_rate >= FEE_RATE_DENOMINATOR:
                    raise FeeTooHighError(fee_rate, FEE_RATE_DENOMINATOR - 1)
                if fee_rate > self._max_fee_rate:
                    raise FeeTooHighError(fee_rate, self._max_fee_rate)
                await self._state.set_fee_rate(db, fee_rate)
                event = MarketEvent(
                    MarketEventType.FEE_RATE_UPDATED,
                    actor=caller,
                    amount=fee_rate,
                    payload={"old_fee_rate": state.fee_rate},
                )
                await self._events.append(db, event)
        except Exception:
            await db.rollback()
            raise
        await self._commit_and_publish(db, [event])
        logger.info("Fee rate set %d -> %d by %s", state.fee_rate, fee_rate, caller)
        return fee_rate

    async def withdraw(
        self, db: AsyncSession, to: str, amount: int, caller: str
    ) -> WithdrawFeesResponse:
        """Move collected fees from escrow to `to`.

        The ledger is decremented before funds leave escrow. A recipient that
        cannot receive fails the whole operation, restoring the ledger.
        """
        caller = normalize_address(caller)
        to = normalize_address(to)
        try:
            with non_reentrant("withdraw_fees"):
                async with db.begin_nested():
                    state = await self._require_admin(db, caller, for_update=True)
                    if amount <= 0:
                        raise InvalidAmountError(amount)
                    if amount > state.fee_ledger:
                        raise InsufficientFundsError(amount, state.fee_ledger)
                    verify_fee_solvency(state.fee_ledger, await self._escrow_balance(db))

                    fee_ledger = await self._state.adjust_fee_ledger(db, -amount)
                    released = await self._accounts.debit(
                        db, ESCROW_ADDRESS, amount,
                        LedgerEntryType.FEE_WITHDRAWAL.value, _LEDGER_REFERENCE, to,
                    )
                    if released is None:
                        raise InternalError("escrow cannot cover fee withdrawal")
                    delivered = await self._accounts.credit(
                        db, to, amount,
                        LedgerEntryType.FEE_PAYOUT.value, _LEDGER_REFERENCE, to,
                    )
                    if delivered is None:
                        raise WithdrawFailedError(to)

                    event = MarketEvent(
                        MarketEventType.FEE_WITHDRAWN,
                        actor=caller,
                        amount=amount,
                        payload={"to": to, "fee_ledger": fee_ledger},
                    )
                    await self._events.append(db, event)
        except Exception:
            await db.rollback()
            raise
        await self._commit_and_publish(db, [event])
        logger.info(
            "Fees withdrawn: %d to %s by %s (ledger now %d)", amount, to, caller, fee_ledger
        )
        return WithdrawFeesResponse(to=to, amount=amount, fee_ledger=fee_ledger)

    # ------------------------------------------------------------------
    # Collections, pause, ownership
    # ------------------------------------------------------------------

    async def allow_collection(self, db: AsyncSession, collection: str, caller: str) -> None:
        await self._set_collection(db, collection, caller, allowed=True)

    async def disallow_collection(self, db: AsyncSession, collection: str, caller: str) -> None:
        await self._set_collection(db, collection, caller, allowed=False)

    async def _set_collection(
        self, db: AsyncSession, collection: str, caller: str, allowed: bool
    ) -> None:
        caller = normalize_address(caller)
        collection = normalize_address(collection)
        try:
            async with db.begin_nested():
                await self._require_admin(db, caller)
                if allowed:
                    await self._state.allow_collection(db, collection)
                else:
                    await self._state.disallow_collection(db, collection)
                event = MarketEvent(
                    MarketEventType.COLLECTION_ALLOWED
                    if allowed
                    else MarketEventType.COLLECTION_DISALLOWED,
                    actor=caller,
                    collection=collection,
                )
                await self._events.append(db, event)
        except Exception:
            await db.rollback()
            raise
        await self._commit_and_publish(db, [event])
        logger.info(
            "Collection %s %s by %s", collection, "allowed" if allowed else "disallowed", caller
        )

    async def pause(self, db: AsyncSession, caller: str) -> None:
        await self._set_paused(db, caller, paused=True)

    async def unpause(self, db: AsyncSession, caller: str) -> None:
        await self._set_paused(db, caller, paused=False)

    async def _set_paused(self, db: AsyncSession, caller: str, paused: bool) -> None:
        caller = normalize_address(caller)
        try:
            async with db.begin_nested():
                await self._require_admin(db, caller, for_update=True)
                await self._state.set_paused(db, paused)
                event = MarketEvent(
                    MarketEventType.PAUSED if paused else MarketEventType.UNPAUSED,
                    actor=caller,
                )
                await self._events.append(db, event)
        except Exception:
            await db.rollback()
            raise
        await self._commit_and_publish(db, [event])
        logger.warning("Marketplace %s by %s", "paused" if paused else "unpaused", caller)

    async def transfer_admin(self, db: AsyncSession, new_admin: str, caller: str) -> str:
        caller = normalize_address(caller)
        new_admin = normalize_address(new_admin)
        try:
            async with db.begin_nested():
                await self._require_admin(db, caller, for_update=True)
                await self._state.set_admin(db, new_admin)
                event = MarketEvent(
                    MarketEventType.ADMIN_TRANSFERRED,
                    actor=caller,
                    payload={"new_admin": new_admin},
                )
                await self._events.append(db, event)
        except Exception:
            await db.rollback()
            raise
        await self._commit_and_publish(db, [event])
        logger.warning("Admin role transferred %s -> %s", caller, new_admin)
        return new_admin

    # ------------------------------------------------------------------
    # Read-only
    # ------------------------------------------------------------------

    async def get_state(self, db: AsyncSession) -> MarketplaceStateResponse:
        state = await self._state.get_state(db)
        return MarketplaceStateResponse(
            admin_address=state.admin_address,
            fee_rate=state.fee_rate,
            fee_ledger=state.fee_ledger,
            escrow_balance=await self._escrow_balance(db),
            paused=state.paused,
            allowed_collections=await self._state.list_allowed_collections(db),
        )

    async def verify_invariants(self, db: AsyncSession) -> InvariantReport:
        state = await self._state.get_state(db)
        held = await self._escrow_balance(db)
        violations = solvency_violations(state.fee_ledger, held)
        return InvariantReport(
            ok=not violations,
            fee_ledger=state.fee_ledger,
            escrow_balance=held,
            violations=violations,
        )
