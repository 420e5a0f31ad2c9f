"""Users API router.

Password recovery by one-time passcode, plus the guarded profile endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.core.database import get_db
from backstage.modules.auth.exceptions import (
    RESET_PASSWORD_STATUS_OVERRIDES,
    AuthError,
    to_http_exception,
)
from backstage.modules.auth.guard import get_current_user
from backstage.modules.auth.models import User
from backstage.modules.auth.password_reset import PasswordResetService
from backstage.modules.auth.schemas import UserResponse
from backstage.modules.notification.service import OTPNotifier, get_otp_notifier
from backstage.modules.users.schemas import (
    ForgotPasswordResponse,
    MessageResponse,
    OtpRequest,
    OtpVerifyRequest,
    OtpVerifyResponse,
    ResetPasswordRequest,
    ResetPasswordResponse,
    UpdateProfileRequest,
)
from backstage.modules.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_password_reset_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[OTPNotifier, Depends(get_otp_notifier)],
) -> PasswordResetService:
    return PasswordResetService(session, notifier)


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    summary="Start password recovery",
    description="""
    Generate a one-time passcode for the account and email it.

    The passcode is never part of the response. Delivery is best-effort:
    the code is stored even if the email could not be sent.
    """,
)
async def forgot_password(
    data: OtpRequest,
    service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
) -> ForgotPasswordResponse:
    try:
        user = await service.forgot_password(data.email)
    except AuthError as e:
        raise to_http_exception(e)
    return ForgotPasswordResponse(data=UserResponse.model_validate(user))


@router.post(
    "/send-otp",
    response_model=MessageResponse,
    summary="Send a new passcode",
    description="Issue a fresh passcode, replacing any earlier one.",
)
async def send_otp(
    data: OtpRequest,
    service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
) -> MessageResponse:
    try:
        await service.send_otp(data.email)
    except AuthError as e:
        raise to_http_exception(e)
    return MessageResponse(message="OTP sent successfully")


@router.post(
    "/verify-otp",
    response_model=OtpVerifyResponse,
    summary="Verify passcode",
    description="""
    Check the passcode and allow a password reset.

    Returns 400 for a wrong code and 504 for an expired one.
    """,
)
async def verify_otp(
    data: OtpVerifyRequest,
    service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
) -> OtpVerifyResponse:
    try:
        await service.verify_otp(data.email, data.otp)
    except AuthError as e:
        raise to_http_exception(e)
    return OtpVerifyResponse()


@router.post(
    "/reset-password",
    response_model=ResetPasswordResponse,
    summary="Reset password",
    description="Set a new password after a successful passcode verification.",
)
async def reset_password(
    data: ResetPasswordRequest,
    service: Annotated[PasswordResetService, Depends(get_password_reset_service)],
) -> ResetPasswordResponse:
    """Reset the password.

    Raises:
        HTTPException: 400 for every failure, including an unknown email
    """
    try:
        await service.reset_password(data.email, data.password, data.confirm_password)
    except AuthError as e:
        raise to_http_exception(e, overrides=RESET_PASSWORD_STATUS_OVERRIDES)
    return ResetPasswordResponse()


@router.get(
    "/singleUser/{user_id}",
    response_model=UserResponse,
    summary="Get user profile",
)
async def get_single_user(
    user_id: int,
    _current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    service = UserService(session)
    try:
        user = await service.get_user(user_id)
    except AuthError as e:
        raise to_http_exception(e)
    return UserResponse.model_validate(user)


@router.put(
    "/update",
    response_model=UserResponse,
    summary="Update own profile",
)
async def update_profile(
    data: UpdateProfileRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    service = UserService(session)
    user = await service.update_profile(current_user, **data.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)
