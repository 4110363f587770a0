"""Pydantic schemas for the listing / settlement API."""

from pydantic import BaseModel, Field, field_validator

from src.mp_common.amounts import ADDRESS_PATTERN, normalize_address
from src.mp_common.datetime_utils import iso_or_none
from src.mp_listing.domain.models import ListedOffer, ListingKey, Offer
from src.mp_settlement.domain.models import SaleReceipt


class _ItemRef(BaseModel):
    collection: str = Field(..., pattern=ADDRESS_PATTERN)
    item_id: int = Field(..., ge=0, lt=2**256)

    @field_validator("collection")
    @classmethod
    def lowercase_collection(cls, v: str) -> str:
        return normalize_address(v)


class ListItemRequest(_ItemRef):
    # Zero is accepted here so the engine reports InvalidPrice in its own order
    price: int = Field(..., ge=0)


class UpdatePriceRequest(_ItemRef):
    new_price: int = Field(..., ge=0)


class CancelListingRequest(_ItemRef):
    pass


class BuyItemRequest(_ItemRef):
    paid_amount: int = Field(..., ge=0)


class OfferOut(BaseModel):
    collection: str
    item_id: str            # decimal string; uint256 does not fit JSON numbers
    seller: str
    price: int
    created_at: str | None
    is_open: bool

    @classmethod
    def from_domain(cls, key: ListingKey, offer: Offer) -> "OfferOut":
        return cls(
            collection=key.collection,
            item_id=str(key.item_id),
            seller=offer.seller,
            price=offer.price,
            created_at=iso_or_none(offer.created_at),
            is_open=offer.is_open,
        )

    @classmethod
    def from_listed(cls, listed: ListedOffer) -> "OfferOut":
        return cls.from_domain(listed.key, listed.offer)


class SaleOut(BaseModel):
    collection: str
    item_id: str
    buyer: str
    seller: str
    price: int
    fee: int
    seller_proceeds: int

    @classmethod
    def from_receipt(cls, r: SaleReceipt) -> "SaleOut":
        return cls(
            collection=r.key.collection,
            item_id=str(r.key.item_id),
            buyer=r.buyer,
            seller=r.seller,
            price=r.price,
            fee=r.fee,
            seller_proceeds=r.seller_proceeds,
        )


class ListingPage(BaseModel):
    items: list[OfferOut]
    next_cursor: str | None
    has_more: bool
