"""Pydantic schemas for admin endpoints."""

from pydantic import BaseModel, Field, field_validator

from src.mp_common.amounts import ADDRESS_PATTERN, normalize_address


class SetFeeRateRequest(BaseModel):
    # Range is enforced by the service so FeeTooHigh carries its own error code
    fee_rate: int


class WithdrawFeesRequest(BaseModel):
    to: str = Field(..., pattern=ADDRESS_PATTERN)
    amount: int

    @field_validator("to")
    @classmethod
    def lowercase_to(cls, v: str) -> str:
        return normalize_address(v)


class CollectionRequest(BaseModel):
    collection: str = Field(..., pattern=ADDRESS_PATTERN)

    @field_validator("collection")
    @classmethod
    def lowercase_collection(cls, v: str) -> str:
        return normalize_address(v)


class TransferAdminRequest(BaseModel):
    new_admin: str = Field(..., pattern=ADDRESS_PATTERN)

    @field_validator("new_admin")
    @classmethod
    def lowercase_new_admin(cls, v: str) -> str:
        return normalize_address(v)


class MarketplaceStateResponse(BaseModel):
    admin_address: str
    fee_rate: int
    fee_ledger: int
    escrow_balance: int
    paused: bool
    allowed_collections: list[str]


class WithdrawFeesResponse(BaseModel):
    to: str
    amount: int
    fee_ledger: int


class InvariantReport(BaseModel):
    ok: bool
    fee_ledger: int
    escrow_balance: int
    violations: list[str]
