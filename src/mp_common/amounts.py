"""Integer amount and address helpers.

All prices, fees and balances are int minor units of the payment currency.
No float, no Decimal.
"""

FEE_RATE_DENOMINATOR = 1000  # fee rate is expressed in tenths of a percent
ZERO_ADDRESS = "0x" + "0" * 40

# Request validation for addresses in paths, queries and bodies
ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


def normalize_address(address: str) -> str:
    """Lowercase an address so comparisons are case-insensitive."""
    return address.strip().lower()


def calculate_fee(price: int, fee_rate: int) -> int:
    """Floor division fee: price * fee_rate // 1000.

    Always <= price while fee_rate < 1000, so seller proceeds never go negative.
    """
    if price < 0:
        raise ValueError(f"price must be non-negative, got {price}")
    if not (0 <= fee_rate < FEE_RATE_DENOMINATOR):
        raise ValueError(f"fee_rate must be in [0, {FEE_RATE_DENOMINATOR}), got {fee_rate}")
    return price * fee_rate // FEE_RATE_DENOMINATOR


def split_payment(price: int, fee_rate: int) -> tuple[int, int]:
    """Return (fee, seller_proceeds) for a sale at price."""
    fee = calculate_fee(price, fee_rate)
    return fee, price - fee
