"""Product (book) model of the catalog.

Business rules implemented:
- Price cannot be negative (free books are allowed).
- Availability is an explicit flag; an unavailable product stays in the
  catalog but cannot be ordered.

The catalog changes independently of orders: prices and availability
may move between any two order operations.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog entry for a book."""

    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255, blank=True, default="")
    language = models.CharField(max_length=64, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_products"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["is_available"], name="catalog_available_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(price__gte=0),
                name="catalog_price_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price < 0:
            raise ValidationError({"price": "Price cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product.created",
                product_id=str(self.id),
                title=self.title,
            )

    def __str__(self) -> str:
        return f"{self.title} ({self.price})"
