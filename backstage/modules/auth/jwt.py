"""JWT bearer token issuance and verification."""

import uuid
from datetime import datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import BaseModel

from backstage.core.config import settings
from backstage.modules.auth.exceptions import (
    MalformedTokenError,
    TokenExpiredError,
    UnauthenticatedError,
)

ACCESS_TOKEN_TYPE = "access"


class TokenPayload(BaseModel):
    """Verified JWT claims."""

    user_id: int
    name: str
    role: str
    exp: datetime
    iat: datetime
    type: str
    jti: str


class IssuedToken(BaseModel):
    """A freshly signed bearer token."""

    token: str
    jti: str
    expires_in: int
    token_type: str = "bearer"


def create_token(
    user_id: int,
    display_name: str,
    role: str,
    token_type: str,
    expires_delta: timedelta,
) -> tuple[str, str]:
    """Create a signed JWT.

    Args:
        user_id: User primary key
        display_name: Name shown to clients
        role: Account role at issue time
        token_type: Token type claim
        expires_delta: Token lifetime

    Returns:
        tuple[str, str]: (token, jti) - The encoded token and its unique ID
    """
    jti = str(uuid.uuid4())
    now = datetime.utcnow()

    payload = {
        "sub": str(user_id),
        "name": display_name,
        "role": role,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": jti,
    }

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return token, jti


def issue_access_token(
    user_id: int,
    display_name: str,
    role: str,
    expires_minutes: int | None = None,
) -> IssuedToken:
    """Issue an access token for a signed-in user.

    Args:
        user_id: User primary key
        display_name: Name shown to clients
        role: Account role
        expires_minutes: Optional lifetime override (tests, tooling)

    Returns:
        IssuedToken: Signed token with its lifetime in seconds
    """
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    token, jti = create_token(
        user_id,
        display_name,
        role,
        ACCESS_TOKEN_TYPE,
        timedelta(minutes=minutes),
    )
    return IssuedToken(token=token, jti=jti, expires_in=minutes * 60)


def verify_access_token(token: str) -> TokenPayload:
    """Verify signature, expiry and type of an access token.

    Args:
        token: Encoded JWT

    Returns:
        TokenPayload: Verified claims

    Raises:
        MalformedTokenError: If the token cannot be parsed or its claims are unusable
        TokenExpiredError: If the token has expired
        UnauthenticatedError: If the signature or token type is invalid
    """
    try:
        jwt.get_unverified_claims(token)
    except JWTError as e:
        raise MalformedTokenError() from e

    try:
        claims = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except JWTClaimsError as e:
        raise MalformedTokenError() from e
    except JWTError as e:
        raise UnauthenticatedError() from e

    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise UnauthenticatedError()

    try:
        return TokenPayload(
            user_id=int(claims["sub"]),
            name=claims.get("name", ""),
            role=claims["role"],
            exp=datetime.utcfromtimestamp(claims["exp"]),
            iat=datetime.utcfromtimestamp(claims["iat"]),
            type=claims["type"],
            jti=claims["jti"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedTokenError() from e
