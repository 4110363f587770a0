"""MarketplaceStateRepository — raw SQL over marketplace_state and allowed_collections.

marketplace_state holds exactly one row (id = 1, seeded by migration 008).
Locking that row FOR UPDATE serialises every fee-ledger mutation across
purchases and withdrawals.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_admin.domain.models import MarketplaceState
from src.mp_common.errors import InternalError

_STATE_ID = 1

_GET_STATE_SQL = text("""
    SELECT admin_address, fee_rate, fee_ledger, paused
    FROM marketplace_state WHERE id = :id
""")

_GET_STATE_FOR_UPDATE_SQL = text("""
    SELECT admin_address, fee_rate, fee_ledger, paused
    FROM marketplace_state WHERE id = :id
    FOR UPDATE
""")

_SET_FEE_RATE_SQL = text(
    "UPDATE marketplace_state SET fee_rate = :fee_rate, updated_at = NOW() WHERE id = :id"
)
_SET_PAUSED_SQL = text(
    "UPDATE marketplace_state SET paused = :paused, updated_at = NOW() WHERE id = :id"
)
_SET_ADMIN_SQL = text(
    "UPDATE marketplace_state SET admin_address = :admin, updated_at = NOW() WHERE id = :id"
)
_ADJUST_LEDGER_SQL = text("""
    UPDATE marketplace_state
    SET fee_ledger = fee_ledger + :delta, updated_at = NOW()
    WHERE id = :id
    RETURNING fee_ledger
""")

_IS_ALLOWED_SQL = text(
    "SELECT 1 FROM allowed_collections WHERE collection_address = :collection"
)
_ALLOW_SQL = text("""
    INSERT INTO allowed_collections (collection_address)
    VALUES (:collection)
    ON CONFLICT (collection_address) DO NOTHING
""")
_DISALLOW_SQL = text(
    "DELETE FROM allowed_collections WHERE collection_address = :collection"
)
_LIST_ALLOWED_SQL = text(
    "SELECT collection_address FROM allowed_collections ORDER BY collection_address"
)


class MarketplaceStateRepository:
    async def get_state(
        self, db: AsyncSession, for_update: bool = False
    ) -> MarketplaceState:
        sql = _GET_STATE_FOR_UPDATE_SQL if for_update else _GET_STATE_SQL
        row = (await db.execute(sql, {"id": _STATE_ID})).fetchone()
        if row is None:
            raise InternalError("marketplace_state row missing; run migrations")
        return MarketplaceState(
            admin_address=row.admin_address,
            fee_rate=row.fee_rate,
            fee_ledger=int(row.fee_ledger),
            paused=row.paused,
        )

    async def set_fee_rate(self, db: AsyncSession, fee_rate: int) -> None:
        await db.execute(_SET_FEE_RATE_SQL, {"id": _STATE_ID, "fee_rate": fee_rate})

    async def set_paused(self, db: AsyncSession, paused: bool) -> None:
        await db.execute(_SET_PAUSED_SQL, {"id": _STATE_ID, "paused": paused})

    async def set_admin(self, db: AsyncSession, admin_address: str) -> None:
        await db.execute(_SET_ADMIN_SQL, {"id": _STATE_ID, "admin": admin_address})

    async def adjust_fee_ledger(self, db: AsyncSession, delta: int) -> int:
        result = await db.execute(_ADJUST_LEDGER_SQL, {"id": _STATE_ID, "delta": delta})
        return int(result.scalar_one())

    async def is_collection_allowed(self, db: AsyncSession, collection: str) -> bool:
        row = (await db.execute(_IS_ALLOWED_SQL, {"collection": collection})).fetchone()
        return row is not None

    async def allow_collection(self, db: AsyncSession, collection: str) -> None:
        await db.execute(_ALLOW_SQL, {"collection": collection})

    async def disallow_collection(self, db: AsyncSession, collection: str) -> None:
        await db.execute(_DISALLOW_SQL, {"collection": collection})

    async def list_allowed_collections(self, db: AsyncSession) -> list[str]:
        rows = (await db.execute(_LIST_ALLOWED_SQL)).fetchall()
        return [row.collection_address for row in rows]
