"""Authentication schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class EmailBody(BaseModel):
    """Request body carrying an account email, normalized to lowercase."""

    email: EmailStr = Field(..., description="User email address")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SignupRequest(EmailBody):
    """Account registration request."""

    password: str = Field(..., min_length=1, description="User password")
    user_name: str = Field(
        ..., alias="userName", min_length=1, max_length=100, description="Display name"
    )
    field: Optional[str] = Field(None, max_length=100, description="Artistic field")
    bio: Optional[str] = Field(None, description="Short biography")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "email": "alice@example.com",
                "password": "Pw1!",
                "userName": "alice",
                "field": "music",
            }
        },
    }


class SigninRequest(EmailBody):
    """Signin request."""

    password: str = Field(..., min_length=1, description="User password")

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "alice@example.com",
                "password": "Pw1!",
            }
        }
    }


class SocialLinks(BaseModel):
    """Social profile links."""

    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None


class UserResponse(BaseModel):
    """Redacted user view.

    Password hash and recovery state (otp, otp expiry, reset flag) are not
    part of this model and can never be serialized through it.
    """

    id: int = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    user_name: str = Field(..., alias="userName", description="Display name")
    role: str = Field(..., description="Account role")
    field: Optional[str] = Field(None, description="Artistic field")
    bio: Optional[str] = Field(None, description="Short biography")
    socials: Optional[list[SocialLinks]] = Field(None, description="Social links")
    created_at: datetime = Field(..., alias="createdAt", description="Account creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class SigninData(UserResponse):
    """Redacted user view plus the issued bearer token."""

    token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", alias="tokenType", description="Token type")
    expires_in: int = Field(..., alias="expiresIn", description="Token lifetime in seconds")


class SignupResponse(BaseModel):
    """Signup response envelope."""

    success: bool = True
    message: str = "Signup successful"
    data: UserResponse


class SigninResponse(BaseModel):
    """Signin response envelope."""

    success: bool = True
    message: str = "Login successful"
    data: SigninData
