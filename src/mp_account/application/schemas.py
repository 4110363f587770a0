"""Pydantic schemas for mp_account API."""

from pydantic import BaseModel, Field

from src.mp_account.domain.models import Account, LedgerEntry


class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount to deposit in minor units")


class WithdrawRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount to withdraw in minor units")


class BalanceResponse(BaseModel):
    address: str
    available_balance: int
    is_active: bool

    @classmethod
    def from_domain(cls, account: Account) -> "BalanceResponse":
        return cls(
            address=account.address,
            available_balance=account.available_balance,
            is_active=account.is_active,
        )


class BalanceChangeResponse(BaseModel):
    address: str
    available_balance: int
    amount: int


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    created_at: str

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            amount=e.amount,
            balance_after=e.balance_after,
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
