"""Order DRF serializers for API input/output.

The serializers operate at the Interface layer (API Views): input is
validated here, business logic lives in the Service Layer, and the
output serializers only document the shape of ``ResultEnvelope`` for
the OpenAPI schema.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import ResultStatus

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ProductIdsSerializer(serializers.Serializer):
    """Validates the list of product ids sent to create/add/remove."""

    product_ids = serializers.ListField(
        child=serializers.CharField(max_length=64),
        required=False,
        default=list,
    )


# ---------------------------------------------------------------------------
# Output Serializers (schema only)
# ---------------------------------------------------------------------------


class OrderSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    owner_id = serializers.CharField(read_only=True)
    product_ids = serializers.ListField(child=serializers.CharField(), read_only=True)
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    submitted = serializers.BooleanField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)


class ResultEnvelopeSerializer(serializers.Serializer):
    """Response body of every order endpoint."""

    status = serializers.ChoiceField(choices=ResultStatus.choices, read_only=True)
    message = serializers.CharField(read_only=True)
    order = OrderSerializer(read_only=True, allow_null=True)
    orders = OrderSerializer(many=True, read_only=True)
    has_open_order = serializers.BooleanField(read_only=True, allow_null=True)
