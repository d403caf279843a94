"""Identity resolution contract.

The order core never authenticates anyone: it receives the caller's
identity (a username or an e-mail address) and asks this resolver for
the owning account.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser


class IIdentityResolver(ABC):
    @abstractmethod
    def resolve(self, identity: str) -> Optional[AbstractBaseUser]:
        """Return the account behind *identity*, or ``None`` if unknown."""
