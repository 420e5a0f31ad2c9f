"""Authentication router for account signup and signin."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.core.config import settings
from backstage.core.database import get_db
from backstage.modules.auth.exceptions import AuthError, ForbiddenError, to_http_exception
from backstage.modules.auth.guard import get_current_user
from backstage.modules.auth.models import User, UserRole
from backstage.modules.auth.schemas import (
    SigninData,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from backstage.modules.auth.service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


async def _signup(data: SignupRequest, db: AsyncSession, role: str) -> SignupResponse:
    service = AuthService(db)
    try:
        user = await service.signup(
            email=data.email,
            password=data.password,
            user_name=data.user_name,
            role=role,
            field=data.field,
            bio=data.bio,
        )
    except AuthError as e:
        raise to_http_exception(e)
    return SignupResponse(data=UserResponse.model_validate(user))


@router.post(
    "/user/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="""
    Register a new user account.

    The account is created with the `user` role. No token is issued;
    call signin afterwards.
    """,
)
async def user_signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> SignupResponse:
    """Register a new user.

    Raises:
        HTTPException: 409 if the email already exists, 400 if the password is rejected
    """
    return await _signup(data, db, UserRole.USER.value)


@router.post(
    "/admin-account/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new administrator",
    description="Register an account with the `admin` role.",
)
async def admin_signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> SignupResponse:
    """Register a new administrator.

    Raises:
        HTTPException: 403 if admin signup is disabled, 409 if the email already exists
    """
    if not settings.ADMIN_SIGNUP_ENABLED:
        raise to_http_exception(ForbiddenError("Admin signup is disabled"))
    return await _signup(data, db, UserRole.ADMIN.value)


@router.post(
    "/user/signin",
    response_model=SigninResponse,
    summary="Sign in",
    description="Check email and password and return a JWT bearer token.",
)
async def user_signin(
    data: SigninRequest,
    db: AsyncSession = Depends(get_db),
) -> SigninResponse:
    """Sign in and return the redacted user with a token.

    Raises:
        HTTPException: 400 if the credentials are invalid
    """
    service = AuthService(db)
    try:
        result = await service.signin(email=data.email, password=data.password)
    except AuthError as e:
        raise to_http_exception(e)

    user_view = UserResponse.model_validate(result.user)
    return SigninResponse(
        data=SigninData(
            **user_view.model_dump(),
            token=result.token,
            token_type=result.token_type,
            expires_in=result.expires_in,
        )
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get the profile of the bearer token's user.",
)
async def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse.model_validate(current_user)
