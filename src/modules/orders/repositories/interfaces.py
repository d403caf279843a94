"""Order store interface.

The lifecycle service depends exclusively on this contract (DIP).
Writes return the number of affected records; a zero is surfaced by the
service as a persistence failure, never retried.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def find_by_owner(self, owner_id: str) -> List[Order]:
        """All orders of an owner, newest first."""

    @abstractmethod
    def find_by_owner_and_id(self, owner_id: str, order_id: str) -> Optional[Order]:
        """An order only if it belongs to *owner_id*."""

    @abstractmethod
    def find_open_by_owner(self, owner_id: str) -> Optional[Order]:
        """The owner's draft order, if any."""

    @abstractmethod
    def find_open(self) -> List[Order]:
        """Every draft order in the store."""

    @abstractmethod
    def lock_owner(self, owner_id: str) -> None:
        """Hold the owner's row until the current transaction ends.

        Serializes order creation per owner so the draft check and the
        insert cannot interleave with a concurrent creation.
        """

    def find_by_id(self, order_id: str) -> Optional[Order]:
        return self.get_by_id(order_id)
