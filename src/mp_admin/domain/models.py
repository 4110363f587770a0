"""Domain models for mp_admin — the marketplace's singleton policy state."""

from dataclasses import dataclass


@dataclass
class MarketplaceState:
    """Policy state consumed by the settlement engine as a precondition.

    Loaded from the single marketplace_state row and passed explicitly, so the
    engine never reads ambient globals.
    """

    admin_address: str
    fee_rate: int       # tenths of a percent, [0, 1000)
    fee_ledger: int     # collected, not yet withdrawn fees
    paused: bool
