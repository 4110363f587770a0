"""AccountApplicationService — balance queries and self-service deposit/withdraw.

deposit and withdraw commit their own transaction; reads run without one.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.application.schemas import (
    BalanceChangeResponse,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
)
from src.mp_account.domain.repository import AccountRepositoryProtocol
from src.mp_account.infrastructure.persistence import AccountRepository
from src.mp_common.enums import LedgerEntryType
from src.mp_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
)
from src.mp_common.pagination import cursor_decode, cursor_encode

logger = logging.getLogger(__name__)


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, address: str) -> BalanceResponse:
        account = await self._repo.get_account(db, address)
        if account is None:
            raise AccountNotFoundError(address)
        return BalanceResponse.from_domain(account)

    async def deposit(
        self, db: AsyncSession, address: str, amount: int
    ) -> BalanceChangeResponse:
        if amount <= 0:
            raise InvalidAmountError(amount)
        try:
            account = await self._repo.credit(
                db, address, amount, LedgerEntryType.DEPOSIT.value, "ACCOUNT", address
            )
            if account is None:
                raise AccountNotFoundError(address)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Deposit: address=%s amount=%d", address, amount)
        return BalanceChangeResponse(
            address=address, available_balance=account.available_balance, amount=amount
        )

    async def withdraw(
        self, db: AsyncSession, address: str, amount: int
    ) -> BalanceChangeResponse:
        if amount <= 0:
            raise InvalidAmountError(amount)
        try:
            account = await self._repo.debit(
                db, address, amount, LedgerEntryType.WITHDRAW.value, "ACCOUNT", address
            )
            if account is None:
                current = await self._repo.get_account(db, address)
                if current is None:
                    raise AccountNotFoundError(address)
                raise InsufficientBalanceError(amount, current.available_balance)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdraw: address=%s amount=%d", address, amount)
        return BalanceChangeResponse(
            address=address, available_balance=account.available_balance, amount=-amount
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        address: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        decoded = cursor_decode(cursor)
        cursor_id = int(decoded["id"]) if decoded and "id" in decoded else None
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, address, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode({"id": page[-1].id}) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
