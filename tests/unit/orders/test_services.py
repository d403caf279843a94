"""Unit tests for OrderLifecycleService against the Django stores.

Covers:
- Creation: all-or-nothing, single draft per owner, identity resolution.
- Add/Remove: reconciliation of existing lines, partial accept, idempotent removal.
- Submission: blocked when lines drop, empty orders rejected.
- Administrative operations: unsubmit, delete, reconcile sweep, scope checks.
- Reads: reconciling details read, listing, open-order queries.
- Domain events published after commit.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from freezegun import freeze_time

from django.utils import timezone

from modules.catalog.models import Product
from modules.orders.constants import ResultStatus
from modules.orders.events import OrderCreated, OrderReconciled, OrderSubmitted
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.unit


def make_unavailable(*books: Product) -> None:
    Product.objects.filter(id__in=[book.id for book in books]).update(is_available=False)


def ids(*books: Product) -> list[str]:
    return [str(book.id) for book in books]


@pytest.fixture()
def draft_of(service):
    """Create a draft for *caller* through the service and return it."""

    def _draft(caller: str, *books: Product) -> Order:
        envelope = service.create_order(caller, ids(*books))
        assert envelope.status == ResultStatus.SUCCESS, envelope.message
        return Order.objects.get(id=envelope.order.id)

    return _draft


# ---------------------------------------------------------------------------
# CreateOrder
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_creates_draft_with_summed_price(self, service, reader, make_book):
        book_10 = make_book("Ten", "10.00")
        book_15 = make_book("Fifteen", "15.00")

        envelope = service.create_order("reader", ids(book_10, book_15))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.message == "Order created successfully."
        assert envelope.order.total_price == Decimal("25.00")
        assert envelope.order.submitted is False
        stored = Order.objects.get(id=envelope.order.id)
        assert stored.owner == reader
        assert stored.product_ids == ids(book_10, book_15)

    def test_empty_order_is_allowed(self, service, reader):
        envelope = service.create_order("reader", [])

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.product_ids == []
        assert envelope.order.total_price == Decimal("0.00")

    def test_duplicate_ids_are_separate_lines(self, service, reader, book_a):
        envelope = service.create_order("reader", ids(book_a, book_a))

        assert envelope.order.product_ids == ids(book_a, book_a)
        assert envelope.order.total_price == Decimal("19.98")

    def test_conflict_when_draft_exists(self, service, reader, book_a, draft_of):
        existing = draft_of("reader", book_a)

        envelope = service.create_order("reader", ids(book_a))

        assert envelope.status == ResultStatus.CONFLICT
        assert f"OrderId: {existing.id}" in envelope.message
        assert Order.objects.filter(owner=reader).count() == 1

    def test_new_draft_allowed_after_submission(self, service, reader, book_a, draft_of):
        existing = draft_of("reader", book_a)
        service.submit_order("reader", str(existing.id))

        envelope = service.create_order("reader", ids(book_a))

        assert envelope.status == ResultStatus.SUCCESS
        assert Order.objects.filter(owner=reader).count() == 2

    def test_unavailable_product_aborts_creation(self, service, reader, book_a, unavailable_book):
        envelope = service.create_order("reader", ids(book_a, unavailable_book))

        assert envelope.status == ResultStatus.VALIDATION
        assert str(unavailable_book.id) in envelope.message
        assert "currently unavailable" in envelope.message
        assert not Order.objects.filter(owner=reader).exists()

    def test_unknown_product_aborts_creation(self, service, reader):
        envelope = service.create_order("reader", ["no-such-book"])

        assert envelope.status == ResultStatus.VALIDATION
        assert "no-such-book" in envelope.message
        assert not Order.objects.exists()

    def test_blank_id_is_a_validation_error(self, service, reader):
        envelope = service.create_order("reader", ["  "])

        assert envelope.status == ResultStatus.VALIDATION
        assert envelope.message.startswith("Invalid product ids")

    def test_unknown_caller_is_not_found(self, service):
        envelope = service.create_order("ghost", [])

        assert envelope.status == ResultStatus.NOT_FOUND
        assert not Order.objects.exists()

    def test_caller_resolved_by_email(self, service, reader):
        envelope = service.create_order("READER@example.com", [])

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.owner_id == str(reader.pk)

    def test_creation_locks_the_owner(self, service, reader):
        with patch.object(
            OrderDjangoRepository, "lock_owner", autospec=True
        ) as lock_owner:
            envelope = service.create_order("reader", [])

        assert envelope.status == ResultStatus.SUCCESS
        lock_owner.assert_called_once_with(service._order_repo, reader.pk)


# ---------------------------------------------------------------------------
# AddProducts
# ---------------------------------------------------------------------------


class TestAddProducts:
    def test_drops_stale_lines_and_adds_new_ones(self, service, reader, make_book, draft_of):
        x = make_book("X", "3.00")
        y = make_book("Y", "4.00")
        z = make_book("Z", "5.00")
        order = draft_of("reader", x, y)
        make_unavailable(x)

        envelope = service.add_products("reader", str(order.id), ids(z))

        assert envelope.status == ResultStatus.WARNING
        assert envelope.order.product_ids == ids(y, z)
        assert envelope.order.total_price == Decimal("9.00")
        assert f"Removed product IDs: {x.id}" in envelope.message
        assert envelope.message.endswith("Order updated successfully.")
        stored = Order.objects.get(id=order.id)
        assert stored.product_ids == ids(y, z)
        assert stored.total_price == Decimal("9.00")

    def test_partial_accept(self, service, reader, book_a, book_b, unavailable_book, draft_of):
        order = draft_of("reader", book_a)

        envelope = service.add_products(
            "reader", str(order.id), [str(book_b.id), str(unavailable_book.id), "missing"]
        )

        assert envelope.status == ResultStatus.WARNING
        assert envelope.order.product_ids == ids(book_a, book_b)
        assert envelope.order.total_price == Decimal("15.00")
        assert f"{unavailable_book.id} is currently unavailable" in envelope.message
        assert "missing was not found in the catalog" in envelope.message

    def test_clean_add_is_success(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a)

        envelope = service.add_products("reader", str(order.id), ids(book_b))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.message == "Order updated successfully."

    def test_existing_lines_are_repriced(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a)
        Product.objects.filter(id=book_a.id).update(price=Decimal("20.00"))

        envelope = service.add_products("reader", str(order.id), ids(book_b))

        assert envelope.order.total_price == Decimal("25.01")

    def test_submitted_order_is_a_conflict(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a)
        service.submit_order("reader", str(order.id))

        envelope = service.add_products("reader", str(order.id), ids(book_b))

        assert envelope.status == ResultStatus.CONFLICT
        assert Order.objects.get(id=order.id).product_ids == ids(book_a)

    def test_other_owners_order_is_not_found(self, service, reader, other_reader, book_a, draft_of):
        order = draft_of("other", book_a)

        envelope = service.add_products("reader", str(order.id), ids(book_a))

        assert envelope.status == ResultStatus.NOT_FOUND

    def test_malformed_order_id_is_not_found(self, service, reader, book_a):
        envelope = service.add_products("reader", "not-an-id", ids(book_a))

        assert envelope.status == ResultStatus.NOT_FOUND


# ---------------------------------------------------------------------------
# RemoveProducts
# ---------------------------------------------------------------------------


class TestRemoveProducts:
    def test_removes_every_occurrence_and_resums(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b, book_a)

        envelope = service.remove_products("reader", str(order.id), ids(book_a))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.product_ids == ids(book_b)
        assert envelope.order.total_price == Decimal("5.01")

    def test_is_idempotent(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b)

        first = service.remove_products("reader", str(order.id), ids(book_a))
        second = service.remove_products("reader", str(order.id), ids(book_a))

        assert first.order.product_ids == second.order.product_ids == ids(book_b)
        assert first.order.total_price == second.order.total_price

    def test_matches_ids_in_any_spelling(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b, book_a)

        envelope = service.remove_products(
            "reader", str(order.id), [str(book_a.id).upper(), book_b.id.hex]
        )

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.product_ids == []
        assert envelope.order.total_price == Decimal("0.00")

    def test_absent_id_is_a_no_op(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a)

        envelope = service.remove_products("reader", str(order.id), ids(book_b))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.product_ids == ids(book_a)
        assert envelope.order.total_price == Decimal("9.99")

    def test_remaining_lines_are_revalidated(self, service, reader, book_a, book_b, make_book, draft_of):
        c = make_book("C", "1.00")
        order = draft_of("reader", book_a, book_b, c)
        make_unavailable(c)

        envelope = service.remove_products("reader", str(order.id), ids(book_a))

        assert envelope.status == ResultStatus.WARNING
        assert envelope.order.product_ids == ids(book_b)
        assert str(c.id) in envelope.message

    def test_submitted_order_is_a_conflict(self, service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)
        service.submit_order("reader", str(order.id))

        envelope = service.remove_products("reader", str(order.id), ids(book_a))

        assert envelope.status == ResultStatus.CONFLICT


# ---------------------------------------------------------------------------
# SubmitOrder
# ---------------------------------------------------------------------------


class TestSubmitOrder:
    def test_submits_and_refreshes_timestamp(self, service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)
        later = timezone.now() + timedelta(hours=1)

        with freeze_time(later):
            envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.message.startswith("Order submitted successfully")
        stored = Order.objects.get(id=order.id)
        assert stored.submitted is True
        assert stored.updated_at == later

    def test_blocked_when_lines_dropped(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b)
        make_unavailable(book_b)

        envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.WARNING
        assert str(book_b.id) in envelope.message
        assert "resubmit" in envelope.message
        stored = Order.objects.get(id=order.id)
        assert stored.submitted is False
        assert stored.product_ids == ids(book_a)
        assert stored.total_price == Decimal("9.99")

    def test_resubmission_after_block_succeeds(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b)
        make_unavailable(book_b)
        service.submit_order("reader", str(order.id))

        envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.submitted is True

    def test_empty_order_is_rejected(self, service, reader, draft_of):
        order = draft_of("reader")

        envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.VALIDATION
        assert "empty order" in envelope.message
        assert Order.objects.get(id=order.id).submitted is False

    def test_empty_order_rejected_without_consulting_catalog(self, service, reader, draft_of):
        order = draft_of("reader")

        with patch.object(service._catalog, "get_by_ids") as lookup:
            envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.VALIDATION
        lookup.assert_not_called()

    def test_already_submitted_is_a_conflict(self, service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)
        service.submit_order("reader", str(order.id))

        envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.CONFLICT
        assert "already submitted" in envelope.message

    def test_other_owner_cannot_submit(self, service, reader, other_reader, book_a, draft_of):
        order = draft_of("other", book_a)

        envelope = service.submit_order("reader", str(order.id))

        assert envelope.status == ResultStatus.NOT_FOUND
        assert Order.objects.get(id=order.id).submitted is False


# ---------------------------------------------------------------------------
# Administrative operations
# ---------------------------------------------------------------------------


class TestAdminOperations:
    def test_unsubmit_skips_ownership_check(self, service, admin_service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)
        service.submit_order("reader", str(order.id))

        envelope = admin_service.unsubmit_order(str(order.id))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.message == f"Order: {order.id}, successfully unsubmitted."
        assert Order.objects.get(id=order.id).submitted is False

    def test_unsubmit_unknown_order(self, admin_service):
        envelope = admin_service.unsubmit_order("0190a0b4-0000-7000-8000-000000000000")

        assert envelope.status == ResultStatus.NOT_FOUND

    def test_unsubmit_requires_admin_scope(self, service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)
        service.submit_order("reader", str(order.id))

        envelope = service.unsubmit_order(str(order.id))

        assert envelope.status == ResultStatus.UNAUTHORIZED
        assert Order.objects.get(id=order.id).submitted is True

    def test_unsubmit_succeeds_when_owner_has_a_draft(
        self, service, admin_service, reader, book_a, draft_of
    ):
        submitted = draft_of("reader", book_a)
        service.submit_order("reader", str(submitted.id))
        draft_of("reader", book_a)

        envelope = admin_service.unsubmit_order(str(submitted.id))

        assert envelope.status == ResultStatus.SUCCESS
        assert Order.objects.get(id=submitted.id).submitted is False
        assert Order.objects.filter(owner=reader, submitted=False).count() == 2

    def test_delete_order(self, admin_service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)

        envelope = admin_service.delete_order(str(order.id))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.id == str(order.id)
        assert not Order.objects.filter(id=order.id).exists()

    def test_delete_unknown_order(self, admin_service):
        envelope = admin_service.delete_order("nope")

        assert envelope.status == ResultStatus.NOT_FOUND

    def test_delete_requires_admin_scope(self, service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)

        envelope = service.delete_order(str(order.id))

        assert envelope.status == ResultStatus.UNAUTHORIZED
        assert Order.objects.filter(id=order.id).exists()

    def test_reconcile_sweep_fixes_stale_drafts_only(
        self, service, admin_service, reader, other_reader, book_a, book_b, draft_of
    ):
        submitted = draft_of("reader", book_a, book_b)
        service.submit_order("reader", str(submitted.id))
        stale = draft_of("other", book_a, book_b)
        make_unavailable(book_b)

        envelope = admin_service.reconcile_open_orders()

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.message == "Reconciled 1 of 1 draft orders."
        assert [order.id for order in envelope.orders] == [str(stale.id)]
        assert Order.objects.get(id=stale.id).product_ids == ids(book_a)
        assert Order.objects.get(id=submitted.id).product_ids == ids(book_a, book_b)

    def test_reconcile_sweep_persists_price_changes(self, admin_service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)
        Product.objects.filter(id=book_a.id).update(price=Decimal("1.00"))

        admin_service.reconcile_open_orders()

        assert Order.objects.get(id=order.id).total_price == Decimal("1.00")

    def test_reconcile_sweep_requires_admin_scope(self, service):
        assert service.reconcile_open_orders().status == ResultStatus.UNAUTHORIZED


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestGetOrderDetails:
    def test_clean_order(self, service, reader, book_a, draft_of):
        order = draft_of("reader", book_a)

        envelope = service.get_order_details("reader", str(order.id))

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.message == ""
        assert envelope.order.id == str(order.id)

    def test_draft_lines_dropped_and_persisted(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b)
        make_unavailable(book_a)

        envelope = service.get_order_details("reader", str(order.id))

        assert envelope.status == ResultStatus.WARNING
        assert f"Removed product IDs: {book_a.id}" in envelope.message
        stored = Order.objects.get(id=order.id)
        assert stored.product_ids == ids(book_b)
        assert stored.total_price == Decimal("5.01")

    def test_submitted_order_is_left_untouched(self, service, reader, book_a, book_b, draft_of):
        order = draft_of("reader", book_a, book_b)
        service.submit_order("reader", str(order.id))
        make_unavailable(book_a)

        envelope = service.get_order_details("reader", str(order.id))

        assert envelope.status == ResultStatus.WARNING
        assert "No detailed data can be displayed" in envelope.message
        assert Order.objects.get(id=order.id).product_ids == ids(book_a, book_b)

    def test_owner_scope_hides_other_orders(self, service, admin_service, reader, other_reader, staff_user, book_a, draft_of):
        order = draft_of("other", book_a)

        assert service.get_order_details("reader", str(order.id)).status == ResultStatus.NOT_FOUND
        assert admin_service.get_order_details("librarian", str(order.id)).status == ResultStatus.SUCCESS


class TestOrderQueries:
    def test_list_orders_only_returns_own(self, service, reader, other_reader, book_a, draft_of):
        mine = draft_of("reader", book_a)
        draft_of("other", book_a)

        envelope = service.list_orders("reader")

        assert envelope.status == ResultStatus.SUCCESS
        assert [order.id for order in envelope.orders] == [str(mine.id)]

    def test_list_orders_empty(self, service, reader):
        envelope = service.list_orders("reader")

        assert envelope.orders == []
        assert "no orders" in envelope.message

    def test_has_open_order(self, service, reader, book_a, draft_of):
        assert service.has_open_order("reader").has_open_order is False

        order = draft_of("reader", book_a)
        assert service.has_open_order("reader").has_open_order is True

        service.submit_order("reader", str(order.id))
        assert service.has_open_order("reader").has_open_order is False

    def test_current_open_order(self, service, reader, book_a, draft_of):
        assert service.get_current_open_order("reader").status == ResultStatus.NOT_FOUND

        order = draft_of("reader", book_a)
        envelope = service.get_current_open_order("reader")

        assert envelope.status == ResultStatus.SUCCESS
        assert envelope.order.id == str(order.id)

    def test_queries_require_known_caller(self, service):
        assert service.list_orders("ghost").status == ResultStatus.NOT_FOUND
        assert service.has_open_order("ghost").status == ResultStatus.NOT_FOUND


# ---------------------------------------------------------------------------
# Domain events
# ---------------------------------------------------------------------------


class TestDomainEventPublishing:
    def test_events_published_after_commit(self, service, reader, book_a, django_capture_on_commit_callbacks):
        with patch("modules.orders.services.event_bus") as bus:
            with django_capture_on_commit_callbacks(execute=True):
                envelope = service.create_order("reader", ids(book_a))
            with django_capture_on_commit_callbacks(execute=True):
                service.submit_order("reader", envelope.order.id)

        published = [call.args[0] for call in bus.publish_all.call_args_list]
        assert [type(e) for e in published[0]] == [OrderCreated]
        assert [type(e) for e in published[1]] == [OrderSubmitted]

    def test_nothing_published_on_rejection(self, service, reader, unavailable_book, django_capture_on_commit_callbacks):
        with patch("modules.orders.services.event_bus") as bus:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                service.create_order("reader", ids(unavailable_book))

        assert callbacks == []
        bus.publish_all.assert_not_called()

    def test_dropped_lines_raise_reconciled_event(self, service, reader, book_a, book_b, draft_of, django_capture_on_commit_callbacks):
        order = draft_of("reader", book_a, book_b)
        make_unavailable(book_b)

        with patch("modules.orders.services.event_bus") as bus:
            with django_capture_on_commit_callbacks(execute=True):
                service.get_order_details("reader", str(order.id))

        (events,), _ = bus.publish_all.call_args
        assert len(events) == 1
        assert isinstance(events[0], OrderReconciled)
        assert events[0].removed_product_ids == (str(book_b.id),)
