"""Request-time access guard for protected routes.

Per request::

    no token                      -> Unauthenticated (401)
    invalid / expired token       -> Unauthenticated (401)
    valid token, user gone        -> NotFound (404)
    valid token, user present     -> authorized, user on request.state
"""

import logging

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.core.database import get_db
from backstage.core.logging import log_warning
from backstage.modules.auth.exceptions import (
    AuthError,
    UnauthenticatedError,
    UserNotFoundError,
    to_http_exception,
)
from backstage.modules.auth.jwt import verify_access_token
from backstage.modules.auth.models import User
from backstage.modules.auth.repository import UserRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        UnauthenticatedError: If the header, the scheme or the token is missing
    """
    if not authorization:
        raise UnauthenticatedError()

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise UnauthenticatedError()
    return token


class AccessGuard:
    """Resolves the caller of a protected request."""

    def __init__(self, session: AsyncSession):
        self.user_repo = UserRepository(session)

    async def authenticate(self, authorization: str | None) -> User:
        """Verify the bearer token and reload its user from the store.

        Claims are not trusted for identity beyond the user id: the record
        is read again so a deleted account loses access immediately.

        Args:
            authorization: Raw ``Authorization`` header value

        Returns:
            User: The current user

        Raises:
            UnauthenticatedError: If the token is missing, invalid or expired
            UserNotFoundError: If the token's user no longer exists
        """
        token = extract_bearer_token(authorization)
        payload = verify_access_token(token)

        user = await self.user_repo.get_by_id(payload.user_id)
        if user is None:
            raise UserNotFoundError("User not found, please login")
        return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    _credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> User:
    """FastAPI dependency returning the authenticated user.

    ``_credentials`` only registers the bearer scheme in the OpenAPI schema;
    the header is parsed by :func:`extract_bearer_token`.

    Raises:
        HTTPException: 401 for token problems, 404 if the user is gone
    """
    try:
        user = await AccessGuard(db).authenticate(request.headers.get("Authorization"))
    except AuthError as e:
        log_warning(
            logger,
            "Access denied",
            path=request.url.path,
            kind=e.kind,
            reason=e.message,
        )
        raise to_http_exception(e)

    request.state.user = user
    return user
