"""Domain models for mp_listing — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.mp_common.amounts import ZERO_ADDRESS


@dataclass(frozen=True)
class ListingKey:
    """Composite identity of a tradeable item."""

    collection: str   # lowercase collection address
    item_id: int      # per-collection item identifier (uint256 range)

    def __str__(self) -> str:
        return f"{self.collection}#{self.item_id}"


@dataclass
class Offer:
    seller: str
    price: int                      # 0 is reserved for "no offer"
    created_at: datetime | None     # creation or last reprice, informational only

    @property
    def is_open(self) -> bool:
        return self.seller != ZERO_ADDRESS and self.price > 0

    @classmethod
    def sentinel(cls) -> "Offer":
        """The "no active listing" record returned for absent keys."""
        return cls(seller=ZERO_ADDRESS, price=0, created_at=None)


@dataclass
class ListedOffer:
    """An open offer together with its key, for browsing queries."""

    key: ListingKey
    offer: Offer
