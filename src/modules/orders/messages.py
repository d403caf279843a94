"""Human-readable texts returned in result envelopes."""

from __future__ import annotations

from typing import Iterable

from modules.orders.constants import RemovalReason


def _join(ids: Iterable[str]) -> str:
    return ", ".join(ids)


def dropped_lines(ids: Iterable[str], submitted: bool = False) -> str:
    ids = list(ids)
    if not ids:
        return ""
    if submitted:
        return (
            "Some products from your order are currently unavailable. "
            f"No detailed data can be displayed for products with IDs: {_join(ids)}."
        )
    return (
        "Some products from your order are currently unavailable. "
        "Total order price recounted and products were removed from your order. "
        f"Removed product IDs: {_join(ids)}."
    )


def rejected_product(product_id: str, reason: str) -> str:
    if reason == RemovalReason.NOT_FOUND:
        detail = "was not found in the catalog, please check if the ID is correct."
    else:
        detail = "is currently unavailable."
    return f"The product with ID: {product_id} {detail}"


def not_added(product_id: str, reason: str) -> str:
    return (
        f"{rejected_product(product_id, reason)} "
        "It was not added to the order."
    )


def submit_blocked(ids: Iterable[str]) -> str:
    return (
        f"The products with IDs: {_join(ids)} were not found or are currently "
        "unavailable. Those products were removed from your order. "
        "Order was not submitted. Please recheck the order and resubmit it."
    )


def combine(*parts: str) -> str:
    return " ".join(part for part in parts if part)
