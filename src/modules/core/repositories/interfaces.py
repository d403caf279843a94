"""Generic repository interfaces (Dependency Inversion Principle).

Service-layer code depends on these abstractions, never on Django ORM
directly.  Writes report the number of affected records so the caller
can tell a silent no-op apart from a successful write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IReadRepository(ABC, Generic[T]):
    """Read-only repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Product``, ``Order``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key (``None`` when missing)."""


class IRepository(IReadRepository[T]):
    """Read/write repository contract with affected-record counts."""

    @abstractmethod
    def insert(self, entity: T) -> int:
        """Persist a new entity.  Returns the number of records written."""

    @abstractmethod
    def update(self, entity: T) -> int:
        """Persist changes of an existing entity.  Returns affected records."""

    @abstractmethod
    def delete(self, entity: T) -> int:
        """Remove an entity.  Returns the number of records removed."""
