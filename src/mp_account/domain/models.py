"""Domain models for mp_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    address: str
    available_balance: int   # minor units of the payment currency
    is_active: bool
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    address: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # positive=income, negative=expense
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None
