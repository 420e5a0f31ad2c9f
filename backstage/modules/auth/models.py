"""User credential model and password hashing."""

from datetime import datetime
from enum import Enum

from passlib.context import CryptContext
from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backstage.core.config import settings
from backstage.core.database import Base
from backstage.modules.auth.exceptions import PasswordValidationError

# Password hashing context with bcrypt, cost factor from settings
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class UserRole(str, Enum):
    """Account roles."""

    USER = "user"
    ADMIN = "admin"


def validate_password_policy(password: str) -> list[str]:
    """Validate password against policy requirements.

    Policy requirements:
    - Not empty
    - At most 72 bytes once UTF-8 encoded

    Returns:
        list[str]: List of policy violations (empty if valid)
    """
    violations = []

    if not password:
        violations.append("Password must not be empty")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        violations.append(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes long"
        )

    return violations


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches, False otherwise (including unusable hashes)
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


class User(Base):
    """Credential record plus the public artist profile."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Password recovery state
    otp: Mapped[str | None] = mapped_column(String(12), nullable=True)
    otp_expiry_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    password_reset: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Profile
    field: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    socials: Mapped[list | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def set_password(self, password: str, validate: bool = True) -> None:
        """Set user password with optional validation.

        Args:
            password: Plain text password
            validate: Whether to validate against policy (default True)

        Raises:
            PasswordValidationError: If password doesn't meet policy requirements
        """
        if validate:
            violations = validate_password_policy(password)
            if violations:
                raise PasswordValidationError(violations)
        self.password_hash = hash_password(password)

    def verify_password(self, password: str) -> bool:
        """Verify password against stored hash."""
        return verify_password(password, self.password_hash)

    def __repr__(self) -> str:
        # Secrets stay out of reprs and therefore out of logs
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"
