"""Catalog service layer.

Small administrative surface over the catalog: add a book and apply a
partial update (price / availability changes are what order
reconciliation reacts to).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.catalog.exceptions import ProductNotFound
from modules.catalog.models import Product

if TYPE_CHECKING:
    from modules.catalog.dtos import CreateProductDTO, ProductUpdateDTO
    from modules.catalog.repositories.interfaces import ICatalog

logger = structlog.get_logger(__name__)


class CatalogService:
    """Application service for catalog maintenance."""

    def __init__(self, catalog: ICatalog) -> None:
        self._catalog = catalog

    @transaction.atomic
    def add_product(self, dto: CreateProductDTO) -> Product:
        product = Product(**dto.model_dump())
        return self._catalog.save(product)

    @transaction.atomic
    def update_product(self, id: str, dto: ProductUpdateDTO) -> Product:
        """Apply the fields present in *dto* to the stored product.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._catalog.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        changes = dto.changes()
        if not changes:
            return product

        for field, value in changes.items():
            setattr(product, field, value)

        product = self._catalog.save(product, update_fields=list(changes))
        logger.info("product.updated", product_id=str(id), fields=sorted(changes))
        return product
