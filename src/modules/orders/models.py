"""Order aggregate.

Business rules implemented:
- An order holds an ordered list of product ids (one line per copy, so
  the same id may appear more than once).
- ``total_price`` is the sum of the catalog prices of the present lines
  as of the last reconciliation pass; it is never negative.
- At most one draft (``submitted=False``) order per owner, checked by the
  service when an order is created.
- State transitions are validated against ``VALID_TRANSITIONS``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import VALID_TRANSITIONS, OrderState
from shared.domain.events import DomainEventMixin

if TYPE_CHECKING:
    from modules.orders.reconciliation import ReconciliationResult


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``updated_at`` is the last-modified timestamp and is refreshed by
    every persisted write.
    """

    owner: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="orders",
    )
    product_ids: models.JSONField = models.JSONField(default=list, blank=True)
    total_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    submitted: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(total_price__gte=0),
                name="orders_total_price_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return OrderState.SUBMITTED if self.submitted else OrderState.DRAFT

    @property
    def is_draft(self) -> bool:
        return not self.submitted

    @property
    def is_empty(self) -> bool:
        return not self.product_ids

    def can_transition_to(self, new_state: str) -> bool:
        """Check whether transitioning to *new_state* is valid."""
        return new_state in VALID_TRANSITIONS.get(self.state, set())

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def apply_reconciliation(self, result: ReconciliationResult) -> bool:
        """Replace lines and price with a reconciliation outcome.

        Returns ``True`` when lines or price actually changed.
        """
        lines = list(result.retained)
        changed = lines != list(self.product_ids) or result.total_price != self.total_price
        self.product_ids = lines
        self.total_price = result.total_price
        return changed

    def __str__(self) -> str:
        return f"{self.id} ({self.state})"
