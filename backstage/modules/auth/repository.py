"""User repository for database operations."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.modules.auth.models import User, UserRole


class UserRepository:
    """Repository for credential record CRUD operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session
        """
        self.session = session

    async def create(
        self,
        email: str,
        password: str,
        user_name: str,
        role: str = UserRole.USER.value,
        validate_password: bool = True,
        **profile,
    ) -> User:
        """Create a new user with default recovery state.

        Args:
            email: User email address
            password: Plain text password
            user_name: Display name
            role: Account role
            validate_password: Whether to validate password policy
            **profile: Optional profile columns (field, bio, socials)

        Returns:
            User: Created user instance
        """
        user = User(
            email=email.lower(),
            user_name=user_name,
            role=role,
            password_hash="",
            otp=None,
            otp_expiry_time=None,
            password_reset=False,
            **profile,
        )
        user.set_password(password, validate=validate_password)
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: int) -> User | None:
        """Get user by ID.

        Args:
            user_id: User primary key

        Returns:
            User | None: User if found, None otherwise
        """
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address (case-insensitive)."""
        result = await self.session.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        """Check if user exists by email."""
        result = await self.session.execute(
            select(User.id).where(User.email == email.lower())
        )
        return result.scalar_one_or_none() is not None

    async def update(self, user: User, **kwargs) -> User:
        """Update user attributes.

        Args:
            user: User instance to update
            **kwargs: Attributes to update

        Returns:
            User: Updated user instance
        """
        for key, value in kwargs.items():
            if hasattr(user, key):
                setattr(user, key, value)
        await self.session.flush()
        return user

    async def set_otp(self, user: User, otp: str, expires_at: datetime) -> User:
        """Store a recovery passcode, replacing any unconsumed one."""
        user.otp = otp
        user.otp_expiry_time = expires_at
        await self.session.flush()
        return user

    async def authorize_password_reset(self, user: User) -> User:
        """Mark the account as cleared for a password reset."""
        user.password_reset = True
        await self.session.flush()
        return user

    async def reset_password(
        self,
        user: User,
        new_password: str,
        validate: bool = True,
    ) -> User:
        """Replace the password hash and revoke the reset authorization together.

        Args:
            user: User instance
            new_password: New plain text password
            validate: Whether to validate password policy

        Returns:
            User: Updated user instance
        """
        user.set_password(new_password, validate=validate)
        user.password_reset = False
        await self.session.flush()
        return user

    async def delete(self, user: User) -> None:
        """Delete a user."""
        await self.session.delete(user)
        await self.session.flush()
