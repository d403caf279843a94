"""Catalog domain exceptions."""

from __future__ import annotations


class ProductNotFound(Exception):
    """The requested product does not exist in the catalog."""
