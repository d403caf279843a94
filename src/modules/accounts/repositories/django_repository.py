"""Identity resolver backed by Django's user model."""

from __future__ import annotations

from typing import Optional

import structlog
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AbstractBaseUser

from modules.accounts.repositories.interfaces import IIdentityResolver

logger = structlog.get_logger(__name__)


class UserIdentityResolver(IIdentityResolver):
    """Resolve a caller by username first, then by e-mail."""

    def resolve(self, identity: str) -> Optional[AbstractBaseUser]:
        if not identity:
            return None

        User = get_user_model()
        user = User.objects.filter(**{User.USERNAME_FIELD: identity}).first()
        if user is None:
            user = User.objects.filter(email__iexact=identity).first()
        if user is None:
            logger.info("identity.unresolved", identity=identity)
        return user
