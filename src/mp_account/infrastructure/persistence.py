"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

Balance mutations are single atomic UPDATE ... RETURNING statements.
Zero rows returned means a constraint was violated (overdraft, missing or
inactive account). Every mutation appends a ledger_entries row.

Transaction ownership: the CALLER opens and commits the transaction.
"""

from sqlalchemy import TextClause, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.domain.models import Account, LedgerEntry

_ACCOUNT_COLUMNS = "address, available_balance, is_active, version, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE address = :address
""")

_OPEN_ACCOUNT_SQL = text("""
    INSERT INTO accounts (address, available_balance, is_active, version)
    VALUES (:address, 0, TRUE, 0)
    ON CONFLICT (address) DO NOTHING
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE address = :address AND is_active AND available_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET available_balance = available_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE address = :address AND is_active
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (address, entry_type, amount, balance_after, reference_type, reference_id)
    VALUES
        (:address, :entry_type, :amount, :balance_after, :reference_type, :reference_id)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, address, entry_type, amount, balance_after,
           reference_type, reference_id, created_at
    FROM ledger_entries
    WHERE address = :address
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = CAST(:entry_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> Account:
    return Account(
        address=row.address,  # type: ignore[attr-defined]
        available_balance=row.available_balance,  # type: ignore[attr-defined]
        is_active=row.is_active,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        address=row.address,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    async def get_account(self, db: AsyncSession, address: str) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"address": address})).fetchone()
        return _row_to_account(row) if row else None

    async def open_account(self, db: AsyncSession, address: str) -> None:
        await db.execute(_OPEN_ACCOUNT_SQL, {"address": address})

    async def debit(
        self,
        db: AsyncSession,
        address: str,
        amount: int,
        entry_type: str,
        reference_type: str,
        reference_id: str,
    ) -> Account | None:
        return await self._apply(
            db, _DEBIT_SQL, address, amount, -amount, entry_type, reference_type, reference_id
        )

    async def credit(
        self,
        db: AsyncSession,
        address: str,
        amount: int,
        entry_type: str,
        reference_type: str,
        reference_id: str,
    ) -> Account | None:
        return await self._apply(
            db, _CREDIT_SQL, address, amount, amount, entry_type, reference_type, reference_id
        )

    async def _apply(
        self,
        db: AsyncSession,
        sql: TextClause,
        address: str,
        amount: int,
        signed_amount: int,
        entry_type: str,
        reference_type: str,
        reference_id: str,
    ) -> Account | None:
        row = (await db.execute(sql, {"address": address, "amount": amount})).fetchone()
        if row is None:
            return None
        account = _row_to_account(row)
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "address": address,
                "entry_type": entry_type,
                "amount": signed_amount,
                "balance_after": account.available_balance,
                "reference_type": reference_type,
                "reference_id": reference_id,
            },
        )
        return account

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        address: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "address": address,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
