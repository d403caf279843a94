"""Catalog DTOs for the Service Layer.

Pydantic v2 models, immutable (``frozen=True``).

- ``CreateProductDTO``: input for adding a book to the catalog.
- ``ProductUpdateDTO``: explicit partial update.  Only the fields the
  caller actually supplied override the stored product; a field set to
  ``None`` on purpose is rejected instead of being silently ignored.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator


def _non_negative(v: Decimal) -> Decimal:
    if v < 0:
        raise ValueError("Price cannot be negative.")
    return v


def _not_blank(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Title must not be empty.")
    return v.strip()


class CreateProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    author: str = ""
    language: str = ""
    price: Decimal = Decimal("0.00")
    is_available: bool = True

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("price")
    @classmethod
    def price_must_be_non_negative(cls, v: Decimal) -> Decimal:
        return _non_negative(v)


class ProductUpdateDTO(BaseModel):
    """Partial update of a catalog product.

    Absent fields keep their stored value.  Present fields must carry a
    real value: there is no null-coalescing merge.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    author: str = ""
    language: str = ""
    price: Decimal = Decimal("0.00")
    is_available: bool = True

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("price")
    @classmethod
    def price_must_be_non_negative(cls, v: Decimal) -> Decimal:
        return _non_negative(v)

    def changes(self) -> Dict[str, Any]:
        """Return only the fields explicitly supplied by the caller."""
        return self.model_dump(exclude_unset=True)
