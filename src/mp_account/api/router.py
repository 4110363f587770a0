"""mp_account REST API — all endpoints act on the caller's own address."""

from fastapi import APIRouter, Query, Request

from src.mp_account.application.schemas import DepositRequest, WithdrawRequest
from src.mp_account.application.service import AccountApplicationService
from src.mp_common.database import DbSession
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CurrentUser

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, current_user.address)
    return success_response(data.model_dump(), request)


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, current_user.address, body.amount)
    return success_response(data.model_dump(), request)


@router.post("/withdraw")
async def withdraw(
    body: WithdrawRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(db, current_user.address, body.amount)
    return success_response(data.model_dump(), request)


@router.get("/ledger")
async def list_ledger(
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
    entry_type: str | None = Query(None, description="Filter by LedgerEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, current_user.address, cursor, limit, entry_type)
    return success_response(data.model_dump(), request)
