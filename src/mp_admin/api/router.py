"""Admin REST API — the caller's wallet address must be the marketplace admin."""

from fastapi import APIRouter, Request

from src.mp_admin.application.schemas import (
    CollectionRequest,
    SetFeeRateRequest,
    TransferAdminRequest,
    WithdrawFeesRequest,
)
from src.mp_admin.application.service import AdminService
from src.mp_common.database import DbSession
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CurrentUser

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.get("/state")
async def get_state(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.get_state(db)
    return success_response(data.model_dump(), request)


@router.get("/verify-invariants")
async def verify_invariants(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.verify_invariants(db)
    return success_response(data.model_dump(), request)


@router.put("/fee-rate")
async def set_fee_rate(
    body: SetFeeRateRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    fee_rate = await _service.set_fee_rate(db, body.fee_rate, current_user.address)
    return success_response({"fee_rate": fee_rate}, request)


@router.post("/withdraw")
async def withdraw_fees(
    body: WithdrawFeesRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(db, body.to, body.amount, current_user.address)
    return success_response(data.model_dump(), request)


@router.post("/collections/allow")
async def allow_collection(
    body: CollectionRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    await _service.allow_collection(db, body.collection, current_user.address)
    return success_response({"collection": body.collection, "allowed": True}, request)


@router.post("/collections/disallow")
async def disallow_collection(
    body: CollectionRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    await _service.disallow_collection(db, body.collection, current_user.address)
    return success_response({"collection": body.collection, "allowed": False}, request)


@router.post("/pause")
async def pause(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    await _service.pause(db, current_user.address)
    return success_response({"paused": True}, request)


@router.post("/unpause")
async def unpause(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    await _service.unpause(db, current_user.address)
    return success_response({"paused": False}, request)


@router.post("/transfer")
async def transfer_admin(
    body: TransferAdminRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    new_admin = await _service.transfer_admin(db, body.new_admin, current_user.address)
    return success_response({"admin_address": new_admin}, request)
