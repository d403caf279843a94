from __future__ import annotations

from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.accounts.repositories import UserIdentityResolver
from modules.catalog.models import Product
from modules.catalog.repositories import ProductDjangoRepository
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import ADMIN_SCOPE, OWNER_SCOPE, OrderLifecycleService

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.fixture()
def reader():
    return User.objects.create_user(
        username="reader", email="reader@example.com", password="testpass123"
    )


@pytest.fixture()
def other_reader():
    return User.objects.create_user(
        username="other", email="other@example.com", password="testpass123"
    )


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="librarian",
        email="librarian@example.com",
        password="testpass123",
        is_staff=True,
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_book():
    """Factory creating catalog products."""

    def _make(title: str = "Book", price: str = "10.00", available: bool = True) -> Product:
        return Product.objects.create(
            title=title, price=Decimal(price), is_available=available
        )

    return _make


@pytest.fixture()
def book_a(make_book):
    return make_book("Dune", "9.99")


@pytest.fixture()
def book_b(make_book):
    return make_book("Solaris", "5.01")


@pytest.fixture()
def unavailable_book(make_book):
    return make_book("Out of Print", "42.00", available=False)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def build_service(scope=OWNER_SCOPE) -> OrderLifecycleService:
    return OrderLifecycleService(
        order_repository=OrderDjangoRepository(),
        catalog=ProductDjangoRepository(),
        identity_resolver=UserIdentityResolver(),
        scope=scope,
    )


@pytest.fixture()
def service():
    return build_service(OWNER_SCOPE)


@pytest.fixture()
def admin_service():
    return build_service(ADMIN_SCOPE)
