# src/mp_listing/domain/repository.py
"""Listing registry Protocol — a pure keyed store, no validation.

The settlement engine is the only writer. Unit tests inject an in-memory
implementation of this Protocol.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_listing.domain.models import ListedOffer, ListingKey, Offer


class ListingRepositoryProtocol(Protocol):
    async def get(
        self, db: AsyncSession, key: ListingKey, for_update: bool = False
    ) -> Offer:
        """Offer for key, or Offer.sentinel() when none is stored."""
        ...

    async def insert(self, db: AsyncSession, key: ListingKey, offer: Offer) -> bool:
        """Create the offer; False when the key already holds one."""
        ...

    async def update(self, db: AsyncSession, key: ListingKey, offer: Offer) -> None: ...

    async def clear(self, db: AsyncSession, key: ListingKey) -> None: ...

    async def list_open(
        self,
        db: AsyncSession,
        collection: str | None,
        after: ListingKey | None,
        limit: int,
    ) -> list[ListedOffer]: ...
