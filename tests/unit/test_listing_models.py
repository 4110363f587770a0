"""Unit tests for listing domain models."""

from datetime import UTC, datetime

from src.mp_common.amounts import ZERO_ADDRESS
from src.mp_listing.domain.models import ListingKey, Offer


def test_sentinel_is_closed() -> None:
    offer = Offer.sentinel()
    assert offer.seller == ZERO_ADDRESS
    assert offer.price == 0
    assert offer.created_at is None
    assert not offer.is_open


def test_open_offer() -> None:
    assert Offer("0x" + "5" * 40, 1, datetime.now(UTC)).is_open


def test_zero_price_is_not_open() -> None:
    assert not Offer("0x" + "5" * 40, 0, None).is_open


def test_key_is_hashable_and_printable() -> None:
    key = ListingKey("0xc", 7)
    assert {key: 1}[ListingKey("0xc", 7)] == 1
    assert str(key) == "0xc#7"
