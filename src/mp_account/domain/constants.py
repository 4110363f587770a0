"""System account identifiers."""

# Holds buyer payments in flight and all collected, not yet withdrawn fees.
# Not a wallet address, so no user can ever register it.
ESCROW_ADDRESS = "MARKETPLACE_ESCROW"
