"""Results returned by the settlement engine."""

from dataclasses import dataclass, field

from src.mp_events.domain.models import MarketEvent
from src.mp_listing.domain.models import ListingKey, Offer


@dataclass
class ListingResult:
    key: ListingKey
    offer: Offer                       # state after the operation (sentinel once cleared)
    events: list[MarketEvent] = field(default_factory=list)


@dataclass
class SaleReceipt:
    key: ListingKey
    buyer: str
    seller: str
    price: int
    fee: int
    seller_proceeds: int
    events: list[MarketEvent] = field(default_factory=list)
