"""Celery tasks for the orders module."""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.orders.services import ADMIN_SCOPE, OrderLifecycleService

logger = structlog.get_logger(__name__)


@shared_task(name="orders.reconcile_open_orders")
def reconcile_open_orders() -> dict:
    """Reconcile every draft order with the current catalog.

    Runs the sweep with the administrative scope and returns the
    envelope as a plain dict so the result backend can store it.
    """
    envelope = OrderLifecycleService.default(scope=ADMIN_SCOPE).reconcile_open_orders()
    logger.info("task.reconcile_open_orders.done", status=str(envelope.status), message=envelope.message)
    return envelope.model_dump(mode="json")
