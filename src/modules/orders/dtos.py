"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``ProductIdsDTO``: validated list of product ids for create/add/remove.
- ``OrderOutputDTO``: read model of an order.
- ``ResultEnvelope``: what every lifecycle operation returns.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import SUCCESSFUL_STATUSES, ResultStatus

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ProductIdsDTO(BaseModel):
    """Immutable list of requested product ids.

    Ids are opaque strings; surrounding whitespace is stripped and blank
    ids are rejected.  Duplicates are kept: each one is a separate line.
    """

    model_config = ConfigDict(frozen=True)

    product_ids: List[str] = []

    @field_validator("product_ids")
    @classmethod
    def ids_must_not_be_blank(cls, v: List[str]) -> List[str]:
        cleaned = [product_id.strip() for product_id in v]
        if any(not product_id for product_id in cleaned):
            raise ValueError("Product ids must not be blank.")
        return cleaned


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderOutputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    product_ids: List[str]
    total_price: Decimal
    submitted: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        return cls(
            id=str(order.id),
            owner_id=str(order.owner_id),
            product_ids=list(order.product_ids),
            total_price=order.total_price,
            submitted=order.submitted,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class ResultEnvelope(BaseModel):
    """Uniform result of a lifecycle operation.

    ``status`` tells success (``SUCCESS``), partial success (``WARNING``:
    the operation went through but lines were dropped or not added) and
    the failure classes apart.  ``message`` is always human readable.
    """

    model_config = ConfigDict(frozen=True)

    status: ResultStatus
    message: str = ""
    order: Optional[OrderOutputDTO] = None
    orders: List[OrderOutputDTO] = []
    has_open_order: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return self.status in SUCCESSFUL_STATUSES

    @classmethod
    def for_order(
        cls, order: Order, message: str = "", warning: bool = False
    ) -> ResultEnvelope:
        return cls(
            status=ResultStatus.WARNING if warning else ResultStatus.SUCCESS,
            message=message,
            order=OrderOutputDTO.from_entity(order),
        )

    @classmethod
    def rejected(cls, status: str, message: str) -> ResultEnvelope:
        return cls(status=status, message=message)
