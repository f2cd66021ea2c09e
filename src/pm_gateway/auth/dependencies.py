"""FastAPI dependency: get_current_user.

Usage in any protected router:
    from src.pm_gateway.auth.dependencies import AuthenticatedUser, get_current_user

    @router.post("/protected")
    async def protected(user: Annotated[AuthenticatedUser, Depends(get_current_user)]):
        ...

Identity lives entirely in the token; no user table is consulted.
"""

from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.pm_common.errors import MissingCredentialsError
from src.pm_gateway.auth.jwt_handler import decode_token

# auto_error=False: a missing header is reported through our own error envelope
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str
    wallet_address: str


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Raises 401 "Unauthorized" without a bearer token, 401 "Invalid token" for a bad one."""
    if credentials is None or not credentials.credentials:
        raise MissingCredentialsError()
    payload = decode_token(credentials.credentials)
    return AuthenticatedUser(user_id=payload["sub"], wallet_address=payload["wallet"])
