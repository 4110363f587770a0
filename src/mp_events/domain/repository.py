"""Event log Protocol — append-only, written inside the operation's transaction."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_events.domain.models import MarketEvent


class EventLogProtocol(Protocol):
    async def append(self, db: AsyncSession, event: MarketEvent) -> None: ...
