"""Account repositories package."""

from modules.accounts.repositories.django_repository import UserIdentityResolver
from modules.accounts.repositories.interfaces import IIdentityResolver

__all__ = ["IIdentityResolver", "UserIdentityResolver"]
