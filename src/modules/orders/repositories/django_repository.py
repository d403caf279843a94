"""Django ORM implementation of the Order store.

Writes go through ``QuerySet.update`` / ``QuerySet.delete`` so the
affected-row count reported by the database is returned as-is.  Each
write runs in its own savepoint.  ``lock_owner`` takes a row lock on
the owner with ``select_for_update()``.
"""

from __future__ import annotations

from typing import List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.orders.models import Order
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order; ``None`` for non-existent or invalid ids."""
        try:
            return Order.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def find_by_owner(self, owner_id: str) -> List[Order]:
        return list(Order.objects.filter(owner_id=owner_id))

    def find_by_owner_and_id(self, owner_id: str, order_id: str) -> Optional[Order]:
        try:
            return Order.objects.filter(id=order_id, owner_id=owner_id).first()
        except (ValueError, ValidationError):
            return None

    def find_open_by_owner(self, owner_id: str) -> Optional[Order]:
        return Order.objects.filter(owner_id=owner_id, submitted=False).first()

    def find_open(self) -> List[Order]:
        return list(Order.objects.filter(submitted=False).order_by("created_at"))

    def lock_owner(self, owner_id: str) -> None:
        get_user_model().objects.select_for_update().filter(pk=owner_id).first()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def insert(self, entity: Order) -> int:
        entity.save(force_insert=True)
        logger.info(
            "order.inserted",
            order_id=str(entity.id),
            line_count=len(entity.product_ids),
        )
        return 1

    @transaction.atomic
    def update(self, entity: Order) -> int:
        now = timezone.now()
        affected = Order.objects.filter(pk=entity.pk).update(
            product_ids=list(entity.product_ids),
            total_price=entity.total_price,
            submitted=entity.submitted,
            updated_at=now,
        )
        if affected:
            entity.updated_at = now
        logger.info("order.updated", order_id=str(entity.pk), affected=affected)
        return affected

    @transaction.atomic
    def delete(self, entity: Order) -> int:
        affected, _ = Order.objects.filter(pk=entity.pk).delete()
        logger.info("order.deleted", order_id=str(entity.pk), affected=affected)
        return affected
