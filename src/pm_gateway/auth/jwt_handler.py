"""JWT token creation and verification.

HS256 (symmetric HMAC) with the shared JWT_SECRET. Access tokens carry the user id
(`sub`) and the user's wallet address (`wallet`) and expire after JWT_EXPIRE_SECONDS.

No token revocation: once issued, a token is valid until expiry.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.pm_common.errors import InvalidTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(seconds=settings.JWT_EXPIRE_SECONDS)


def create_access_token(user_id: str, wallet_address: str) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "wallet": wallet_address,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        InvalidTokenError: bad signature, expired, wrong type or missing claims.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidTokenError() from None

    if payload.get("type") != "access" or not payload.get("sub") or not payload.get("wallet"):
        raise InvalidTokenError()
    return payload
