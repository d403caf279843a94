"""Reconciliation of order lines against the current catalog.

``reconcile`` is a pure function: it reads the catalog once (batch
look-up) and returns what should stay, what should go and the
recomputed total.  Callers decide whether to persist the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Sequence, Tuple

from modules.orders.constants import RemovalReason

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import ICatalog


@dataclass(frozen=True)
class RemovedLine:
    product_id: str
    reason: str


@dataclass(frozen=True)
class ReconciliationResult:
    retained: Tuple[str, ...] = ()
    removed: Tuple[RemovedLine, ...] = ()
    total_price: Decimal = Decimal("0.00")

    @property
    def has_removals(self) -> bool:
        return bool(self.removed)

    @property
    def removed_ids(self) -> list[str]:
        return [line.product_id for line in self.removed]


def reconcile(product_ids: Sequence[str], catalog: ICatalog) -> ReconciliationResult:
    """Partition *product_ids* into retained and removed lines.

    A line is retained when its product exists and is available.
    Duplicated ids are kept as separate lines (each one is priced); a
    removed id is reported once, in first-occurrence order.
    """
    products = catalog.get_by_ids(list(dict.fromkeys(product_ids))) if product_ids else {}

    retained: list[str] = []
    removed: dict[str, RemovedLine] = {}
    total = Decimal("0.00")

    for product_id in product_ids:
        product = products.get(product_id)
        if product is None:
            removed.setdefault(
                product_id, RemovedLine(product_id, RemovalReason.NOT_FOUND)
            )
        elif not product.is_available:
            removed.setdefault(
                product_id, RemovedLine(product_id, RemovalReason.UNAVAILABLE)
            )
        else:
            retained.append(product_id)
            total += product.price

    return ReconciliationResult(
        retained=tuple(retained),
        removed=tuple(removed.values()),
        total_price=total,
    )
