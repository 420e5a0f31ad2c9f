"""Profile lookup and update."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from backstage.core.logging import log_info
from backstage.modules.auth.exceptions import UserNotFoundError
from backstage.modules.auth.models import User
from backstage.modules.auth.repository import UserRepository

logger = logging.getLogger(__name__)

# Columns a user may change on their own profile
PROFILE_FIELDS = ("user_name", "field", "bio", "socials")


class UserService:
    """Service for reading and editing public profiles."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_user(self, user_id: int) -> User:
        """Get a user by ID.

        Raises:
            UserNotFoundError: If no account has this ID
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def update_profile(self, user: User, **changes) -> User:
        """Apply profile changes, ignoring anything outside the profile columns.

        Credentials, role and recovery state can't be changed here.

        Args:
            user: Account to update
            **changes: New values; ``None`` means leave unchanged

        Returns:
            User: Updated user
        """
        updates = {
            key: value
            for key, value in changes.items()
            if key in PROFILE_FIELDS and value is not None
        }
        if not updates:
            return user

        user = await self.user_repo.update(user, **updates)
        log_info(logger, "Profile updated", user_id=user.id, fields=sorted(updates))
        return user
