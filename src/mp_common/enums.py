"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class MarketEventType(str, Enum):
    LISTING_CREATED = "ListingCreated"
    PRICE_UPDATED = "PriceUpdated"
    LISTING_CANCELLED = "ListingCancelled"
    ITEM_SOLD = "ItemSold"
    FEE_WITHDRAWN = "FeeWithdrawn"
    FEE_RATE_UPDATED = "FeeRateUpdated"
    COLLECTION_ALLOWED = "CollectionAllowed"
    COLLECTION_DISALLOWED = "CollectionDisallowed"
    PAUSED = "Paused"
    UNPAUSED = "Unpaused"
    ADMIN_TRANSFERRED = "AdminTransferred"


class LedgerEntryType(str, Enum):
    # Deposit/Withdraw (user self-service)
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Purchase (buyer + escrow paired)
    SALE_PAYMENT = "SALE_PAYMENT"
    SALE_ESCROW_IN = "SALE_ESCROW_IN"
    # Seller payout (escrow + seller paired)
    SALE_PROCEEDS = "SALE_PROCEEDS"
    SALE_ESCROW_OUT = "SALE_ESCROW_OUT"
    # Admin fee withdrawal (escrow + recipient paired)
    FEE_WITHDRAWAL = "FEE_WITHDRAWAL"
    FEE_PAYOUT = "FEE_PAYOUT"
