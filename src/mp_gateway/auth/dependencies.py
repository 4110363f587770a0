"""FastAPI dependency resolving the authenticated trader.

Routers take ``current_user: CurrentUser`` and act as ``current_user.address``.
"""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.errors import AccountDisabledError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import ACCESS, decode_token
from src.mp_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_UNAUTHORIZED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> UserModel:
    try:
        claims = decode_token(token, expected_type=ACCESS)
        user_id = uuid.UUID(claims.user_id)
    except (InvalidCredentialsError, ValueError):
        raise _UNAUTHORIZED from None

    user = await db.get(UserModel, user_id)
    # Token must still describe the same wallet binding
    if user is None or user.address != claims.address:
        raise _UNAUTHORIZED
    if not user.is_active:
        raise AccountDisabledError()
    return user


CurrentUser = Annotated[UserModel, Depends(get_current_user)]
