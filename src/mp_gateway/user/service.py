"""UserService: registration, login and token refresh for wallet-bound users.

Registration runs inside the router's ``async with db.begin()``; login and
refresh commit their own small updates.
"""

import logging
import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.domain.repository import AccountRepositoryProtocol
from src.mp_account.infrastructure.persistence import AccountRepository
from src.mp_common.datetime_utils import utc_now
from src.mp_common.errors import (
    AccountDisabledError,
    AddressExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.mp_gateway.auth.jwt_handler import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.mp_gateway.auth.password import hash_password, needs_rehash, verify_password
from src.mp_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, accounts: AccountRepositoryProtocol | None = None) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()

    async def register(
        self, username: str, address: str, password: str, db: AsyncSession
    ) -> UserModel:
        """Create the user bound to ``address`` and open its payment account."""
        result = await db.execute(
            select(UserModel).where(
                or_(UserModel.username == username, UserModel.address == address)
            )
        )
        for existing in result.scalars().all():
            if existing.username == username:
                raise UsernameExistsError()
            raise AddressExistsError()

        user = UserModel(
            username=username,
            address=address,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()
        # Pull server defaults (id, created_at) before the response is built
        await db.refresh(user)

        await self._accounts.open_account(db, address)
        logger.info("Registered %s bound to %s", username, address)
        return user

    async def login(
        self, username: str, password: str, db: AsyncSession
    ) -> tuple[UserModel, str, str]:
        """Return (user, access_token, refresh_token).

        Unknown user and wrong password are indistinguishable to the caller.
        """
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDisabledError()

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
        user.last_login_at = utc_now()
        await db.commit()

        user_id = str(user.id)
        return (
            user,
            create_access_token(user_id, user.address),
            create_refresh_token(user_id, user.address),
        )

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Issue a new access token if the refresh token's user is still valid."""
        claims = decode_token(refresh_token, expected_type=REFRESH)
        try:
            user = await db.get(UserModel, uuid.UUID(claims.user_id))
        except ValueError:
            raise InvalidRefreshTokenError() from None
        if user is None or user.address != claims.address:
            raise InvalidRefreshTokenError()
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(claims.user_id, user.address)
