"""Password recovery and profile schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from backstage.modules.auth.schemas import EmailBody, SocialLinks, UserResponse


class OtpRequest(EmailBody):
    """Request body for forgot-password and send-otp."""

    model_config = {
        "json_schema_extra": {
            "example": {"email": "alice@example.com"}
        }
    }


class OtpVerifyRequest(EmailBody):
    """Request body for verify-otp."""

    otp: str = Field(..., min_length=1, max_length=12, description="One-time passcode")

    model_config = {
        "json_schema_extra": {
            "example": {"email": "alice@example.com", "otp": "4821"}
        }
    }


class ResetPasswordRequest(EmailBody):
    """Request body for reset-password."""

    password: str = Field(..., description="New password")
    confirm_password: str = Field(..., alias="confirmPassword", description="New password again")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "email": "alice@example.com",
                "password": "N3w!",
                "confirmPassword": "N3w!",
            }
        },
    }


class UpdateProfileRequest(BaseModel):
    """Profile update; omitted fields are left unchanged."""

    user_name: Optional[str] = Field(None, alias="userName", min_length=1, max_length=100)
    field: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    socials: Optional[list[SocialLinks]] = None

    model_config = {"populate_by_name": True}


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class ForgotPasswordResponse(BaseModel):
    """Confirmation plus the redacted account the code was issued for."""

    message: str = "Password reset initiated. Check your email for the OTP"
    data: UserResponse


class OtpVerifyResponse(BaseModel):
    status: str = "success"
    message: str = "OTP verification successfull"


class ResetPasswordResponse(BaseModel):
    success: bool = True
    message: str = "Password reset successful"
