"""Repository Protocol for marketplace policy state and allowed collections."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_admin.domain.models import MarketplaceState


class MarketplaceStateRepositoryProtocol(Protocol):
    async def get_state(
        self, db: AsyncSession, for_update: bool = False
    ) -> MarketplaceState: ...

    async def set_fee_rate(self, db: AsyncSession, fee_rate: int) -> None: ...

    async def set_paused(self, db: AsyncSession, paused: bool) -> None: ...

    async def set_admin(self, db: AsyncSession, admin_address: str) -> None: ...

    async def adjust_fee_ledger(self, db: AsyncSession, delta: int) -> int:
        """Add delta (negative for withdrawals) and return the new ledger value."""
        ...

    async def is_collection_allowed(self, db: AsyncSession, collection: str) -> bool: ...

    async def allow_collection(self, db: AsyncSession, collection: str) -> None: ...

    async def disallow_collection(self, db: AsyncSession, collection: str) -> None: ...

    async def list_allowed_collections(self, db: AsyncSession) -> list[str]: ...
