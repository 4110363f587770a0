"""Repository Protocol — dependency inversion for testability.

debit/credit return None instead of raising so the caller can map the
failure onto its own error (InsufficientBalance, TransferFailed, WithdrawFailed).
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, address: str) -> Account | None: ...

    async def open_account(self, db: AsyncSession, address: str) -> None: ...

    async def debit(
        self,
        db: AsyncSession,
        address: str,
        amount: int,
        entry_type: str,
        reference_type: str,
        reference_id: str,
    ) -> Account | None:
        """None when the account is missing, inactive or would be overdrawn."""
        ...

    async def credit(
        self,
        db: AsyncSession,
        address: str,
        amount: int,
        entry_type: str,
        reference_type: str,
        reference_id: str,
    ) -> Account | None:
        """None when the account is missing or inactive (rejects incoming funds)."""
        ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        address: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
