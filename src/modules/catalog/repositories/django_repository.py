"""Django ORM implementation of the catalog repository.

Error handling follows the Null Object pattern: look-ups return ``None``
(or omit the id from a batch result) instead of raising, and malformed
ids are treated as unknown products.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.catalog.models import Product
from modules.catalog.repositories.interfaces import ICatalog

logger = structlog.get_logger(__name__)


def _parse_id(raw: str) -> Optional[UUID]:
    try:
        return UUID(str(raw))
    except (TypeError, ValueError, AttributeError):
        return None


class ProductDjangoRepository(ICatalog):
    """Concrete catalog repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key; ``None`` for unknown/invalid ids."""
        pk = _parse_id(id)
        if pk is None:
            return None
        return Product.objects.filter(id=pk).first()

    def get_by_ids(self, ids: Iterable[str]) -> Dict[str, Product]:
        parsed = {raw: _parse_id(raw) for raw in ids}
        wanted = {pk for pk in parsed.values() if pk is not None}
        if not wanted:
            return {}

        by_pk = {p.id: p for p in Product.objects.filter(id__in=wanted)}
        logger.debug(
            "catalog.batch_lookup",
            requested=len(parsed),
            resolved=len(by_pk),
        )
        return {raw: by_pk[pk] for raw, pk in parsed.items() if pk in by_pk}

    @transaction.atomic
    def save(self, entity: Product, update_fields: list[str] | None = None) -> Product:
        """Persist (create or update) a product."""
        entity.save(update_fields=update_fields)
        logger.info("product.saved", product_id=str(entity.id))
        return entity
