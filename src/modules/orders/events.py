"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when a draft order is created."""


@dataclass(frozen=True)
class OrderSubmitted(DomainEvent):
    """Raised when a draft order is submitted."""


@dataclass(frozen=True)
class OrderUnsubmitted(DomainEvent):
    """Raised when an administrator reopens a submitted order."""


@dataclass(frozen=True)
class OrderReconciled(DomainEvent):
    """Raised when lines were dropped because the catalog changed."""

    removed_product_ids: Tuple[str, ...] = field(default=())


@dataclass(frozen=True)
class OrderDeleted(DomainEvent):
    """Raised when an administrator deletes an order."""
