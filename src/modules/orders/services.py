"""Order lifecycle service (Use Cases).

Orchestrates the order lifecycle against two independent stores: the
order store and the product catalog.  There are no cross-store
transactions; instead every mutation (and the details read) reconciles
the order's lines with the current catalog, drops the lines that became
unavailable and recomputes the total price.

Business rules enforced:
- One draft order per owner, checked under a per-owner lock at creation.
- Creation is all-or-nothing; adding products is partial-accept.
- Only draft orders owned by the caller can be changed or submitted.
- An empty order cannot be submitted; an order whose lines changed
  during submission stays a draft and must be resubmitted.
- Unsubmit, delete and the reconcile sweep are administrative.

Every public operation returns a ``ResultEnvelope``; domain failures
and unexpected errors are logged and converted at the operation
boundary (see ``lifecycle_operation``).
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

import structlog
from django.db import transaction
from pydantic import ValidationError

from modules.orders import messages
from modules.orders.constants import OrderState, RemovalReason, ResultStatus
from modules.orders.dtos import OrderOutputDTO, ProductIdsDTO, ResultEnvelope
from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrderReconciled,
    OrderSubmitted,
    OrderUnsubmitted,
)
from modules.orders.exceptions import (
    AccessDenied,
    OpenOrderExists,
    OrderAlreadySubmitted,
    OrderError,
    OrderNotFound,
    OrderNotPersisted,
    OrderValidationError,
    OwnerNotFound,
)
from modules.orders.models import Order
from modules.orders.reconciliation import ReconciliationResult, reconcile
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

    from modules.accounts.repositories.interfaces import IIdentityResolver
    from modules.catalog.repositories.interfaces import ICatalog
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderAccessScope:
    """Capabilities of the caller invoking the service."""

    can_access_any_owner: bool = False


OWNER_SCOPE = OrderAccessScope()
ADMIN_SCOPE = OrderAccessScope(can_access_any_owner=True)


def lifecycle_operation(func: Callable[..., ResultEnvelope]) -> Callable[..., ResultEnvelope]:
    """Recover every failure of a lifecycle operation into an envelope."""

    @functools.wraps(func)
    def wrapper(self: OrderLifecycleService, *args, **kwargs) -> ResultEnvelope:
        log = logger.bind(operation=func.__name__)
        try:
            return func(self, *args, **kwargs)
        except OrderError as exc:
            log.warning("order.operation_rejected", status=str(exc.status), reason=str(exc))
            return ResultEnvelope.rejected(exc.status, str(exc))
        except Exception as exc:
            log.exception("order.operation_failed")
            return ResultEnvelope.rejected(
                ResultStatus.UNEXPECTED,
                f"Unable to process your request: {exc}",
            )

    return wrapper


class OrderLifecycleService:
    """Application service for the order lifecycle.

    Receives the order store, the catalog and the identity resolver via
    constructor injection (DIP).  ``scope`` replaces per-role copies of
    the service: the same operations serve owners and administrators.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        catalog: ICatalog,
        identity_resolver: IIdentityResolver,
        scope: OrderAccessScope = OWNER_SCOPE,
    ) -> None:
        self._order_repo = order_repository
        self._catalog = catalog
        self._identities = identity_resolver
        self._scope = scope

    @classmethod
    def default(cls, scope: OrderAccessScope = OWNER_SCOPE) -> OrderLifecycleService:
        """Build the service over the Django-backed stores."""
        from modules.accounts.repositories import UserIdentityResolver
        from modules.catalog.repositories import ProductDjangoRepository
        from modules.orders.repositories import OrderDjangoRepository

        return cls(
            order_repository=OrderDjangoRepository(),
            catalog=ProductDjangoRepository(),
            identity_resolver=UserIdentityResolver(),
            scope=scope,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @lifecycle_operation
    @transaction.atomic
    def create_order(self, caller: str, product_ids: Sequence[str]) -> ResultEnvelope:
        """Create a draft order holding *product_ids*.

        Every id must resolve to an available product: the first one that
        does not aborts the creation and nothing is persisted.

        Rejections:
            OpenOrderExists: the owner already has a draft order.
            OrderValidationError: an id is unknown or unavailable.
        """
        ids = self._validate_ids(product_ids)
        owner = self._resolve_owner(caller)
        log = logger.bind(owner_id=str(owner.pk))

        self._order_repo.lock_owner(owner.pk)
        open_order = self._order_repo.find_open_by_owner(owner.pk)
        if open_order is not None:
            raise OpenOrderExists(str(open_order.id))

        products = self._catalog.get_by_ids(list(dict.fromkeys(ids))) if ids else {}
        lines: List[str] = []
        total = Decimal("0.00")
        for product_id in ids:
            product = products.get(product_id)
            reason = self._rejection_reason(product)
            if reason is not None:
                log.info("order.creation_aborted", product_id=product_id, reason=str(reason))
                raise OrderValidationError(
                    messages.combine(
                        messages.rejected_product(product_id, reason),
                        "Unable to process your order.",
                    )
                )
            lines.append(str(product.id))
            total += product.price

        order = Order(owner=owner, product_ids=lines, total_price=total)
        order.add_domain_event(OrderCreated(aggregate_id=str(order.id)))
        self._insert(order)
        self._publish(order)

        log.info("order.created", order_id=str(order.id), total_price=str(total))
        return ResultEnvelope.for_order(order, "Order created successfully.")

    @lifecycle_operation
    @transaction.atomic
    def add_products(
        self, caller: str, order_id: str, product_ids: Sequence[str]
    ) -> ResultEnvelope:
        """Append products to a draft order (partial accept).

        Existing lines are reconciled first; requested products that are
        unknown or unavailable are skipped and reported one by one.
        """
        ids = self._validate_ids(product_ids)
        owner = self._resolve_owner(caller)
        order = self._get_draft(owner, order_id)

        result = reconcile(order.product_ids, self._catalog)
        notes = [self._note_dropped(order, result)]

        lines = list(result.retained)
        total = result.total_price
        products = self._catalog.get_by_ids(list(dict.fromkeys(ids))) if ids else {}
        for product_id in ids:
            product = products.get(product_id)
            reason = self._rejection_reason(product)
            if reason is not None:
                notes.append(messages.not_added(product_id, reason))
                continue
            lines.append(str(product.id))
            total += product.price

        order.product_ids = lines
        order.total_price = total
        self._update(order)
        self._publish(order)

        warnings = messages.combine(*notes)
        logger.info(
            "order.products_added",
            order_id=str(order.id),
            line_count=len(lines),
            total_price=str(total),
        )
        return ResultEnvelope.for_order(
            order,
            messages.combine(warnings, "Order updated successfully."),
            warning=bool(warnings),
        )

    @lifecycle_operation
    @transaction.atomic
    def remove_products(
        self, caller: str, order_id: str, product_ids: Sequence[str]
    ) -> ResultEnvelope:
        """Remove every line of each requested id from a draft order.

        Ids that are not in the order are ignored, so repeating a removal
        is harmless.  The remaining lines are re-validated and the price is
        recomputed from the catalog.
        """
        requested = self._validate_ids(product_ids)
        owner = self._resolve_owner(caller)
        order = self._get_draft(owner, order_id)

        # Lines hold the catalog's form of each id.
        known = self._catalog.get_by_ids(list(dict.fromkeys(requested))) if requested else {}
        ids = {str(known[pid].id) if pid in known else pid for pid in requested}
        remaining = [pid for pid in order.product_ids if pid not in ids]
        result = reconcile(remaining, self._catalog)
        order.apply_reconciliation(result)
        note = self._note_dropped(order, result)
        self._update(order)
        self._publish(order)

        logger.info(
            "order.products_removed",
            order_id=str(order.id),
            line_count=len(order.product_ids),
            total_price=str(order.total_price),
        )
        return ResultEnvelope.for_order(
            order,
            messages.combine(note, "Products removed successfully."),
            warning=bool(note),
        )

    @lifecycle_operation
    @transaction.atomic
    def submit_order(self, caller: str, order_id: str) -> ResultEnvelope:
        """Submit a draft order.

        The order is reconciled first.  If any line had to be dropped the
        new lines and price are saved but the order stays a draft: the
        caller has to review it and submit again.
        """
        owner = self._resolve_owner(caller)
        order = self._get_draft(owner, order_id)
        if order.is_empty:
            raise OrderValidationError(
                "Can not submit an empty order, the order should have "
                "at least one product."
            )

        result = reconcile(order.product_ids, self._catalog)
        order.apply_reconciliation(result)
        if result.has_removals:
            self._note_dropped(order, result)
            self._update(order)
            self._publish(order)
            return ResultEnvelope.for_order(
                order, messages.submit_blocked(result.removed_ids), warning=True
            )

        order.submitted = True
        order.add_domain_event(OrderSubmitted(aggregate_id=str(order.id)))
        self._update(order)
        self._publish(order)

        logger.info("order.submitted", order_id=str(order.id))
        return ResultEnvelope.for_order(
            order, f"Order submitted successfully, at: {order.updated_at.isoformat()}."
        )

    @lifecycle_operation
    @transaction.atomic
    def unsubmit_order(self, order_id: str) -> ResultEnvelope:
        """Reopen any order as a draft (administrative, no ownership check)."""
        self._require_admin()
        order = self._order_repo.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order with ID: {order_id} was not found.")

        if order.can_transition_to(OrderState.DRAFT):
            order.add_domain_event(OrderUnsubmitted(aggregate_id=str(order.id)))
        order.submitted = False
        self._update(order)
        self._publish(order)

        logger.info("order.unsubmitted", order_id=str(order.id))
        return ResultEnvelope.for_order(order, f"Order: {order.id}, successfully unsubmitted.")

    @lifecycle_operation
    @transaction.atomic
    def delete_order(self, order_id: str) -> ResultEnvelope:
        """Delete an order whatever its state (administrative)."""
        self._require_admin()
        order = self._order_repo.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order with ID: {order_id} was not found.")

        snapshot = OrderOutputDTO.from_entity(order)
        if not self._order_repo.delete(order):
            raise OrderNotPersisted(f"Unable to process your request for order ID: {order_id}.")
        order.add_domain_event(OrderDeleted(aggregate_id=snapshot.id))
        self._publish(order)

        logger.info("order.deleted", order_id=snapshot.id)
        return ResultEnvelope(
            status=ResultStatus.SUCCESS,
            message="The order was deleted successfully.",
            order=snapshot,
        )

    @lifecycle_operation
    def reconcile_open_orders(self) -> ResultEnvelope:
        """Reconcile every draft order and persist the ones that changed.

        Each order is handled in its own transaction; an order deleted
        while the sweep runs is skipped.
        """
        self._require_admin()
        drafts = self._order_repo.find_open()
        changed: List[Order] = []
        for order in drafts:
            with transaction.atomic():
                result = reconcile(order.product_ids, self._catalog)
                if not order.apply_reconciliation(result):
                    continue
                self._note_dropped(order, result)
                if not self._order_repo.update(order):
                    logger.warning("order.reconcile_skipped", order_id=str(order.id))
                    continue
                self._publish(order)
                changed.append(order)

        logger.info("order.reconcile_sweep", checked=len(drafts), changed=len(changed))
        return ResultEnvelope(
            status=ResultStatus.SUCCESS,
            message=f"Reconciled {len(changed)} of {len(drafts)} draft orders.",
            orders=[OrderOutputDTO.from_entity(order) for order in changed],
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @lifecycle_operation
    @transaction.atomic
    def get_order_details(self, caller: str, order_id: str) -> ResultEnvelope:
        """Return an order, reconciling it first when it is a draft.

        Lines dropped from a draft are persisted even though this is a
        read.  Submitted orders are never changed; their unavailable lines
        are only reported.
        """
        owner = self._resolve_owner(caller)
        if self._scope.can_access_any_owner:
            order = self._order_repo.find_by_id(order_id)
        else:
            order = self._order_repo.find_by_owner_and_id(owner.pk, order_id)
        if order is None:
            raise OrderNotFound(f"Order with Id: {order_id} was not found.")

        result = reconcile(order.product_ids, self._catalog)
        if not result.has_removals:
            return ResultEnvelope.for_order(order)

        if order.submitted:
            return ResultEnvelope.for_order(
                order, messages.dropped_lines(result.removed_ids, submitted=True), warning=True
            )

        order.apply_reconciliation(result)
        note = self._note_dropped(order, result)
        self._update(order)
        self._publish(order)
        return ResultEnvelope.for_order(order, note, warning=True)

    @lifecycle_operation
    def list_orders(self, caller: str) -> ResultEnvelope:
        owner = self._resolve_owner(caller)
        orders = self._order_repo.find_by_owner(owner.pk)
        return ResultEnvelope(
            status=ResultStatus.SUCCESS,
            message="" if orders else "There are no orders for the current user.",
            orders=[OrderOutputDTO.from_entity(order) for order in orders],
        )

    @lifecycle_operation
    def has_open_order(self, caller: str) -> ResultEnvelope:
        owner = self._resolve_owner(caller)
        open_order = self._order_repo.find_open_by_owner(owner.pk)
        return ResultEnvelope(status=ResultStatus.SUCCESS, has_open_order=open_order is not None)

    @lifecycle_operation
    def get_current_open_order(self, caller: str) -> ResultEnvelope:
        owner = self._resolve_owner(caller)
        open_order = self._order_repo.find_open_by_owner(owner.pk)
        if open_order is None:
            raise OrderNotFound("There are no unsubmitted orders for the current user.")
        return ResultEnvelope.for_order(open_order)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_ids(product_ids: Optional[Sequence[str]]) -> List[str]:
        try:
            return ProductIdsDTO(product_ids=product_ids or []).product_ids
        except ValidationError as exc:
            reason = "; ".join(error["msg"] for error in exc.errors())
            raise OrderValidationError(f"Invalid product ids: {reason}") from exc

    @staticmethod
    def _rejection_reason(product) -> Optional[str]:
        if product is None:
            return RemovalReason.NOT_FOUND
        if not product.is_available:
            return RemovalReason.UNAVAILABLE
        return None

    def _resolve_owner(self, caller: str) -> AbstractBaseUser:
        owner = self._identities.resolve(caller)
        if owner is None:
            raise OwnerNotFound(
                "User was not found in the system, please ensure that you are signed in."
            )
        return owner

    def _require_admin(self) -> None:
        if not self._scope.can_access_any_owner:
            raise AccessDenied("This operation requires administrative access.")

    def _get_draft(self, owner: AbstractBaseUser, order_id: str) -> Order:
        order = self._order_repo.find_by_owner_and_id(owner.pk, order_id)
        if order is None:
            raise OrderNotFound(
                f"Sorry, the requested order with id: {order_id} was not found. "
                "Please start a new order."
            )
        if order.submitted:
            raise OrderAlreadySubmitted(
                f"Sorry, the requested order with id: {order_id} is already "
                "submitted. Please start a new order."
            )
        return order

    @staticmethod
    def _note_dropped(order: Order, result: ReconciliationResult) -> str:
        """Record dropped lines on the aggregate and describe them."""
        if not result.has_removals:
            return ""
        order.add_domain_event(
            OrderReconciled(
                aggregate_id=str(order.id),
                removed_product_ids=tuple(result.removed_ids),
            )
        )
        logger.info(
            "order.lines_dropped",
            order_id=str(order.id),
            removed_product_ids=result.removed_ids,
        )
        return messages.dropped_lines(result.removed_ids)

    def _insert(self, order: Order) -> None:
        if not self._order_repo.insert(order):
            raise OrderNotPersisted("Unable to process request. Order was not saved.")

    def _update(self, order: Order) -> None:
        if not self._order_repo.update(order):
            raise OrderNotPersisted(
                f"Unable to process request. Order {order.id} was not saved."
            )

    @staticmethod
    def _publish(order: Order) -> None:
        events = order.pull_domain_events()
        if events:
            # Handler failures are logged; the write stays committed.
            transaction.on_commit(lambda: event_bus.publish_all(events), robust=True)
