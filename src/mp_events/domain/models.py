"""Marketplace notifications for off-chain observers."""

from dataclasses import dataclass, field
from typing import Any

from src.mp_common.enums import MarketEventType


@dataclass
class MarketEvent:
    event_type: MarketEventType
    actor: str                           # acting address
    collection: str | None = None
    item_id: int | None = None
    amount: int | None = None            # price / amount paid / fee withdrawn
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "actor": self.actor,
            "collection": self.collection,
            # uint256 item ids exceed JSON-safe integers in most consumers
            "item_id": str(self.item_id) if self.item_id is not None else None,
            "amount": self.amount,
            **self.payload,
        }
