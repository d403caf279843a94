"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrderReconciled,
    OrderSubmitted,
    OrderUnsubmitted,
)

logger = structlog.get_logger(__name__)


class OrderLifecycleHandler:
    """Audit-logs state changes of an order."""

    def handle(self, event) -> None:
        logger.info(
            "order.event.lifecycle",
            event_name=event.event_name,
            order_id=event.aggregate_id,
            occurred_on=event.occurred_on.isoformat(),
        )


class OrderReconciledHandler:
    def handle(self, event: OrderReconciled) -> None:
        logger.warning(
            "order.event.lines_dropped",
            order_id=event.aggregate_id,
            removed_product_ids=list(event.removed_product_ids),
        )


order_lifecycle_handler = OrderLifecycleHandler()
order_reconciled_handler = OrderReconciledHandler()

SUBSCRIPTIONS = (
    (OrderCreated, order_lifecycle_handler),
    (OrderSubmitted, order_lifecycle_handler),
    (OrderUnsubmitted, order_lifecycle_handler),
    (OrderDeleted, order_lifecycle_handler),
    (OrderReconciled, order_reconciled_handler),
)
