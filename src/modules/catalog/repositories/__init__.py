"""Catalog repositories package."""

from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.catalog.repositories.interfaces import ICatalog

__all__ = ["ICatalog", "ProductDjangoRepository"]
