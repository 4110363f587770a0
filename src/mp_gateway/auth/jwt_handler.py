"""JWT token creation and verification (HS256, shared JWT_SECRET).

Both token types carry the user id in ``sub`` and the bound wallet address
in ``addr``. The request dependency re-reads the user row and rejects a token
whose address no longer matches, so a disabled or re-bound user loses access
immediately.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.mp_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

ACCESS = "access"
REFRESH = "refresh"

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    address: str
    token_type: str


def _issue(user_id: str, address: str, token_type: str, ttl: timedelta) -> str:
    now = datetime.now(UTC)
    claims = {"sub": user_id, "addr": address, "type": token_type, "iat": now, "exp": now + ttl}
    return str(jwt.encode(claims, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str, address: str) -> str:
    return _issue(user_id, address, ACCESS, _ACCESS_EXPIRE)


def create_refresh_token(user_id: str, address: str) -> str:
    return _issue(user_id, address, REFRESH, _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> TokenClaims:
    """Verify signature, expiry and type, and return the claims.

    Raises:
        InvalidCredentialsError: bad access token.
        InvalidRefreshTokenError: bad refresh token.
    """
    error = InvalidCredentialsError if expected_type == ACCESS else InvalidRefreshTokenError
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        raise error() from None

    sub, addr = payload.get("sub"), payload.get("addr")
    if payload.get("type") != expected_type or not sub or not addr:
        raise error()
    return TokenClaims(user_id=str(sub), address=str(addr), token_type=expected_type)
