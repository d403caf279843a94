"""Catalog repository interface.

This is the contract the order core consumes to resolve product ids
into price and availability.  ``get_by_ids`` is the batch look-up used
by reconciliation: one round trip per pass instead of one per line.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable

from modules.core.repositories.interfaces import IReadRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product


class ICatalog(IReadRepository["Product"]):
    """Repository contract for catalog products."""

    @abstractmethod
    def get_by_ids(self, ids: Iterable[str]) -> Dict[str, Product]:
        """Resolve many ids at once.

        Returns a mapping keyed by the *requested* id string.  Ids that
        do not resolve to a product are absent from the mapping.
        """

    @abstractmethod
    def save(self, entity: Product, update_fields: list[str] | None = None) -> Product:
        """Persist (create or update) a product."""
