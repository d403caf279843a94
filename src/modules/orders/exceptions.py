"""Order domain exceptions.

Raised inside lifecycle operations when a rule is violated.  Each one
carries the ``ResultStatus`` it is reported with; the operation boundary
converts them into a result envelope, so none of them ever reaches the
caller as an exception.
"""

from __future__ import annotations

from modules.orders.constants import ResultStatus


class OrderError(Exception):
    """Base class of every order lifecycle failure."""

    status: str = ResultStatus.UNEXPECTED


class OrderValidationError(OrderError):
    """Missing/invalid product ids, or an empty order was submitted."""

    status = ResultStatus.VALIDATION


class OrderNotFound(OrderError):
    """The requested order does not exist (or is not visible to the caller)."""

    status = ResultStatus.NOT_FOUND


class OwnerNotFound(OrderNotFound):
    """The caller identity does not resolve to an account."""


class AccessDenied(OrderError):
    """An administrative operation was called without the admin scope."""

    status = ResultStatus.UNAUTHORIZED


class OrderConflict(OrderError):
    """The order is not in a state that allows the operation."""

    status = ResultStatus.CONFLICT


class OpenOrderExists(OrderConflict):
    """The owner already has a draft order."""

    def __init__(self, order_id: str) -> None:
        super().__init__(
            f"OrderId: {order_id}. Please submit the order above "
            "before creating a new order."
        )
        self.order_id = order_id


class OrderAlreadySubmitted(OrderConflict):
    """A submitted order cannot be changed by its owner."""


class OrderNotPersisted(OrderError):
    """A store write affected zero records."""

    status = ResultStatus.PERSISTENCE
