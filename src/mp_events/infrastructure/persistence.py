"""DB writer for marketplace_events.

Called from the settlement engine and admin service within their transaction,
so a rolled-back operation never leaves a notification behind.
"""
import json

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_events.domain.models import MarketEvent

_INSERT_EVENT_SQL = text("""
    INSERT INTO marketplace_events
        (event_type, actor_address, collection_address, item_id, amount, payload)
    VALUES (:event_type, :actor, :collection, :item_id, :amount, CAST(:payload AS JSONB))
""")


class MarketEventLog:
    async def append(self, db: AsyncSession, event: MarketEvent) -> None:
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "event_type": event.event_type.value,
                "actor": event.actor,
                "collection": event.collection,
                "item_id": event.item_id,
                "amount": event.amount,
                "payload": json.dumps(event.to_dict()),
            },
        )
