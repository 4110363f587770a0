"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account / payment delivery
  3xxx: Listing / settlement
  4xxx: Custody / entitlement
  5xxx: Admin controls
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class AddressExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Wallet address already registered", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


# --- 2xxx: Account / payment delivery ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, address: str) -> None:
        super().__init__(2002, f"Account not found for address {address}", 404)


class TransferFailedError(AppError):
    """Seller proceeds could not be delivered."""

    def __init__(self, recipient: str) -> None:
        super().__init__(2003, f"Payment to {recipient} could not be delivered", 502)


class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(2004, f"Invalid amount: {amount}", 422)


# --- 3xxx: Listing / settlement ---

class NotTradeableError(AppError):
    def __init__(self, collection: str) -> None:
        super().__init__(3001, f"Collection is not tradeable: {collection}", 422)


class SystemPausedError(AppError):
    def __init__(self) -> None:
        super().__init__(3002, "Marketplace is paused", 503)


class AlreadyListedError(AppError):
    def __init__(self, collection: str, item_id: int) -> None:
        super().__init__(3003, f"Item already listed: {collection}#{item_id}", 409)


class NotListedError(AppError):
    def __init__(self, collection: str, item_id: int) -> None:
        super().__init__(3004, f"Item not listed: {collection}#{item_id}", 404)


class NotSellerError(AppError):
    def __init__(self, caller: str) -> None:
        super().__init__(3005, f"{caller} is not the seller of this listing", 403)


class InvalidPriceError(AppError):
    def __init__(self, price: int) -> None:
        super().__init__(3006, f"Price must be positive, got {price}", 422)


class InsufficientPaymentError(AppError):
    def __init__(self, paid: int, price: int) -> None:
        super().__init__(
            3007, f"Payment must equal the listing price: paid {paid}, price {price}", 422
        )


class ReentrantCallError(AppError):
    def __init__(self, operation: str) -> None:
        super().__init__(3008, f"Reentrant call rejected: {operation}", 409)


# --- 4xxx: Custody / entitlement ---

class NotOwnerError(AppError):
    def __init__(self, claimed_owner: str) -> None:
        super().__init__(4001, f"{claimed_owner} does not own this item", 403)


class NotApprovedError(AppError):
    def __init__(self) -> None:
        super().__init__(4002, "Marketplace is not approved to transfer this item", 403)


class AssetTransferFailedError(AppError):
    def __init__(self, collection: str, item_id: int) -> None:
        super().__init__(
            4003, f"Custody authority refused transfer of {collection}#{item_id}", 502
        )


class CustodyUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4004, f"Custody authority unavailable: {detail}", 502)


# --- 5xxx: Admin controls ---

class NotAdminError(AppError):
    def __init__(self) -> None:
        super().__init__(5001, "Administrator required", 403)


class FeeTooHighError(AppError):
    def __init__(self, rate: int, ceiling: int) -> None:
        super().__init__(5002, f"Fee rate {rate} exceeds ceiling {ceiling}", 422)


class InsufficientFundsError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            5003,
            f"Withdrawal exceeds collected fees: requested {requested}, available {available}",
            422,
        )


class WithdrawFailedError(AppError):
    def __init__(self, recipient: str) -> None:
        super().__init__(5004, f"Fee withdrawal to {recipient} failed", 502)


class SolvencyViolationError(AppError):
    def __init__(self, fee_ledger: int, held_balance: int) -> None:
        super().__init__(
            5005,
            f"Fee ledger {fee_ledger} exceeds held balance {held_balance}",
            500,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
