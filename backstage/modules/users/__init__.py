"""Users module: password recovery endpoints and profiles."""

from backstage.modules.users.service import UserService

__all__ = ["UserService"]
