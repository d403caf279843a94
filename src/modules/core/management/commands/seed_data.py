from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.catalog.dtos import CreateProductDTO
from modules.catalog.models import Product
from modules.catalog.repositories import ProductDjangoRepository
from modules.catalog.services import CatalogService
from modules.orders.services import OrderLifecycleService

BOOKS = [
    ("Dune", "Frank Herbert", "English", Decimal("9.99"), True),
    ("The Name of the Rose", "Umberto Eco", "English", Decimal("12.50"), True),
    ("Solaris", "Stanislaw Lem", "English", Decimal("8.75"), True),
    ("Kobzar", "Taras Shevchenko", "Ukrainian", Decimal("15.00"), True),
    ("The Master and Margarita", "Mikhail Bulgakov", "English", Decimal("11.20"), True),
    ("Out of Print Atlas", "Unknown", "English", Decimal("42.00"), False),
]


class Command(BaseCommand):
    help = "Seed database with development users, books and a draft order."

    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        books = self._seed_books()
        order_created = self._seed_draft_order(books)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"books={len(books)}, "
                f"draft_orders={int(order_created)}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@bookshop.local", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="reader").exists():
            User.objects.create_user(
                "reader", email="reader@bookshop.local", password="reader123"
            )
            created += 1
        return created

    def _seed_books(self) -> list[Product]:
        self.stdout.write("Creating books...")
        service = CatalogService(ProductDjangoRepository())
        books: list[Product] = []
        for title, author, language, price, available in BOOKS:
            book = Product.objects.filter(title=title).first()
            if book is None:
                book = service.add_product(
                    CreateProductDTO(
                        title=title,
                        author=author,
                        language=language,
                        price=price,
                        is_available=available,
                    )
                )
            books.append(book)
        self.stdout.write(self.style.SUCCESS("Creating books... Done!"))
        return books

    def _seed_draft_order(self, books: list[Product]) -> bool:
        self.stdout.write("Creating draft order...")
        service = OrderLifecycleService.default()
        if service.has_open_order("reader").has_open_order:
            self.stdout.write(self.style.WARNING("Skipping order (reader has a draft)."))
            return False

        available = [str(book.id) for book in books if book.is_available]
        envelope = service.create_order("reader", available[:2])
        if not envelope.ok:
            self.stdout.write(self.style.ERROR(envelope.message))
            return False
        self.stdout.write(self.style.SUCCESS("Creating draft order... Done!"))
        return True
