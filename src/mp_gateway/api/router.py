"""Auth API router: register, login, refresh."""

from fastapi import APIRouter, Request, status

from config.settings import settings
from src.mp_common.database import DbSession
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.mp_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()

_ACCESS_TTL_SECONDS = settings.JWT_EXPIRE_MINUTES * 60


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def register(request: Request, body: RegisterRequest, db: DbSession) -> ApiResponse:
    """Create a user bound to one wallet address and open its payment account."""
    async with db.begin():
        user = await _service.register(body.username, body.address, body.password, db)
    data = RegisterResponse(
        user_id=str(user.id),
        username=user.username,
        address=user.address,
        created_at=user.created_at.isoformat(),
    )
    return success_response(data.model_dump(), request, message="User registered")


@router.post("/login", response_model=ApiResponse)
async def login(request: Request, body: LoginRequest, db: DbSession) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_ACCESS_TTL_SECONDS,
        user=UserInfo(user_id=str(user.id), username=user.username, address=user.address),
    )
    return success_response(data.model_dump(), request, message="Login successful")


@router.post("/refresh", response_model=ApiResponse)
async def refresh_token(request: Request, body: RefreshRequest, db: DbSession) -> ApiResponse:
    access_token = await _service.refresh(body.refresh_token, db)
    data = RefreshResponse(access_token=access_token, expires_in=_ACCESS_TTL_SECONDS)
    return success_response(data.model_dump(), request, message="Token refreshed")
