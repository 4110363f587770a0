"""Listings REST API — list, reprice, cancel, buy and browse."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, Request

from src.mp_common.amounts import ADDRESS_PATTERN
from src.mp_common.database import DbSession
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CurrentUser
from src.mp_settlement.application.schemas import (
    BuyItemRequest,
    CancelListingRequest,
    ListItemRequest,
    UpdatePriceRequest,
)
from src.mp_settlement.application.service import SettlementService

router = APIRouter(prefix="/listings", tags=["listings"])

_service = SettlementService()

_COLLECTION_PATH = Path(pattern=ADDRESS_PATTERN)


@router.post("", status_code=201)
async def list_item(
    body: ListItemRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.list_item(
        db, body.collection, body.item_id, body.price, current_user.address
    )
    return success_response(data.model_dump(), request)


@router.patch("/price")
async def update_listing_price(
    body: UpdatePriceRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.update_listing_price(
        db, body.collection, body.item_id, body.new_price, current_user.address
    )
    return success_response(data.model_dump(), request)


@router.post("/cancel")
async def cancel_listing(
    body: CancelListingRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.cancel_listing(
        db, body.collection, body.item_id, current_user.address
    )
    return success_response(data.model_dump(), request)


@router.post("/buy")
async def buy_item(
    body: BuyItemRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.buy_item(
        db, body.collection, body.item_id, current_user.address, body.paid_amount
    )
    return success_response(data.model_dump(), request)


@router.get("")
async def browse_listings(
    db: DbSession,
    request: Request,
    collection: str | None = Query(None, pattern=ADDRESS_PATTERN),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.browse_listings(db, collection, cursor, limit)
    return success_response(data.model_dump(), request)


@router.get("/{collection}/{item_id}")
async def get_listing(
    collection: Annotated[str, _COLLECTION_PATH],
    item_id: Annotated[int, Path(ge=0)],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.get_listing(db, collection, item_id)
    return success_response(data.model_dump(), request)
