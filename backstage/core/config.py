"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
No sensitive values should be hardcoded here.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "Backstage API"
    VERSION: str = "0.1.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Database - REQUIRED
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    # Security - REQUIRED (no defaults for sensitive values)
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # Signin returns the same error for unknown email and wrong password
    AUTH_UNIFORM_SIGNIN_ERRORS: bool = True
    ADMIN_SIGNUP_ENABLED: bool = True

    # One-time passcodes for password recovery
    OTP_DIGITS: int = 4
    OTP_EXPIRE_MINUTES: int = 10
    PASSWORD_RESET_URL: str = "https://backstage.app/forgotpassword/confirm"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Email (OTP delivery)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM_EMAIL: str = ""
    SMTP_TLS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
