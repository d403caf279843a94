"""Order API views.

Exposes the ``OrderLifecycleService`` via HTTP using a DRF ViewSet.
The service never raises: every operation returns a ``ResultEnvelope``
whose status is translated into the HTTP status code here.  Staff users
get the administrative scope.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.orders.constants import ResultStatus
from modules.orders.dtos import ResultEnvelope
from modules.orders.serializers import ProductIdsSerializer, ResultEnvelopeSerializer
from modules.orders.services import ADMIN_SCOPE, OWNER_SCOPE, OrderLifecycleService

HTTP_STATUS_BY_RESULT: dict[str, int] = {
    ResultStatus.SUCCESS: status.HTTP_200_OK,
    ResultStatus.WARNING: status.HTTP_200_OK,
    ResultStatus.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ResultStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ResultStatus.CONFLICT: status.HTTP_409_CONFLICT,
    ResultStatus.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ResultStatus.PERSISTENCE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ResultStatus.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def envelope_response(envelope: ResultEnvelope, success_status: int = status.HTTP_200_OK) -> Response:
    code = success_status if envelope.ok else HTTP_STATUS_BY_RESULT[envelope.status]
    return Response(envelope.model_dump(mode="json"), status=code)


@extend_schema(responses=ResultEnvelopeSerializer)
class OrderViewSet(ViewSet):
    """ViewSet for Order operations.

    Does **not** touch the ORM: everything goes through the service,
    which is built per request with the caller's scope.
    """

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scopes per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_service(self) -> OrderLifecycleService:
        scope = ADMIN_SCOPE if self.request.user.is_staff else OWNER_SCOPE
        return OrderLifecycleService.default(scope=scope)

    def get_caller(self) -> str:
        return self.request.user.get_username()

    def _product_ids(self, request: Request) -> list[str]:
        serializer = ProductIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data["product_ids"]

    # ------------------------------------------------------------------
    # Create / Delete
    # ------------------------------------------------------------------

    @extend_schema(request=ProductIdsSerializer)
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        envelope = self.get_service().create_order(self.get_caller(), self._product_ids(request))
        return envelope_response(envelope, success_status=status.HTTP_201_CREATED)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (staff only)"""
        return envelope_response(self.get_service().delete_order(pk))

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        return envelope_response(self.get_service().list_orders(self.get_caller()))

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/

        Draft orders are reconciled (and saved) before being returned.
        """
        return envelope_response(self.get_service().get_order_details(self.get_caller(), pk))

    @action(detail=False, methods=["get"])
    def open(self, request: Request) -> Response:
        """GET /api/v1/orders/open/"""
        return envelope_response(self.get_service().get_current_open_order(self.get_caller()))

    @action(detail=False, methods=["get"], url_path="has-open")
    def has_open(self, request: Request) -> Response:
        """GET /api/v1/orders/has-open/"""
        return envelope_response(self.get_service().has_open_order(self.get_caller()))

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    @extend_schema(request=ProductIdsSerializer)
    @action(detail=True, methods=["post"], url_path="add-products")
    def add_products(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/add-products/"""
        envelope = self.get_service().add_products(
            self.get_caller(), pk, self._product_ids(request)
        )
        return envelope_response(envelope)

    @extend_schema(request=ProductIdsSerializer)
    @action(detail=True, methods=["post"], url_path="remove-products")
    def remove_products(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/remove-products/"""
        envelope = self.get_service().remove_products(
            self.get_caller(), pk, self._product_ids(request)
        )
        return envelope_response(envelope)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    @extend_schema(request=None)
    @action(detail=True, methods=["post"])
    def submit(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/submit/"""
        return envelope_response(self.get_service().submit_order(self.get_caller(), pk))

    @extend_schema(request=None)
    @action(detail=True, methods=["post"])
    def unsubmit(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/unsubmit/ (staff only)"""
        return envelope_response(self.get_service().unsubmit_order(pk))

    @extend_schema(request=None)
    @action(detail=False, methods=["post"])
    def reconcile(self, request: Request) -> Response:
        """POST /api/v1/orders/reconcile/ (staff only)"""
        return envelope_response(self.get_service().reconcile_open_orders())
