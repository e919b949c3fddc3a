"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into ``{"error": ...}``
responses; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django.http import HttpResponse
from django.template.loader import render_to_string
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import IsAdminRole
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.pagination import LimitOffsetResultsPagination
from modules.core.validation import first_error_message
from modules.customers.repositories.django_repository import AddressDjangoRepository
from modules.delivery.repositories.django_repository import RegionDjangoRepository
from modules.orders.dtos import (
    ConfirmDeliveryDTO,
    CreateOrderDTO,
    OrderReviewDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.exceptions import (
    InactiveProduct,
    InsufficientInventory,
    InvalidOrderData,
    InvalidOrderState,
    OrderNotFound,
    OrderNumberExhausted,
    OrderPermissionDenied,
    ProductNotFound,
    QRCodeGenerationError,
    ReceiptAccessDenied,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderReviewSerializer,
    OrderSerializer,
)
from modules.orders.services import OrderService


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        address_repository=AddressDjangoRepository(),
        user_repository=UserDjangoRepository(),
        region_repository=RegionDjangoRepository(),
    )


def _validation_error(exc: PydanticValidationError) -> Response:
    return Response(
        {"error": first_error_message(exc)}, status=status.HTTP_400_BAD_REQUEST
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``; all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    lookup_field = "order_number"
    lookup_value_regex = r"[A-Za-z0-9-]+"
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action == "partial_update":
            return [IsAdminRole()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders(self.request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/orders (checkout)"""
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        if not data["items"]:
            return Response(
                {"error": "Order items are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        shipping = data["shipping_address"]
        if not all(shipping.get(field) for field in ("name", "phone", "street")):
            return Response(
                {"error": "Complete shipping address is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            dto = CreateOrderDTO(**data)
        except PydanticValidationError as exc:
            return _validation_error(exc)

        try:
            order = self._service.create_order(request.user, dto)
        except (
            InvalidOrderData,
            ProductNotFound,
            InactiveProduct,
            InsufficientInventory,
        ) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except (OrderNumberExhausted, QRCodeGenerationError) as exc:
            return Response(
                {"error": str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response(
            {"success": True, "order": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/orders

        Admins see every order, customers only their own.  Optional
        ``status`` / ``paymentStatus`` / date / total filters.
        """
        queryset = self.filter_queryset(self.get_queryset())
        paginator = LimitOffsetResultsPagination(results_key="orders", default_limit=10)
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, order_number: str | None = None) -> Response:
        """GET /api/orders/{order_number}"""
        try:
            order = self._service.get_order(order_number or "", request.user)
        except OrderNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response({"order": OrderSerializer(order).data})

    # ------------------------------------------------------------------
    # Status Update (admin)
    # ------------------------------------------------------------------

    def partial_update(
        self, request: Request, order_number: str | None = None
    ) -> Response:
        """PATCH /api/orders/{order_number}

        Body: ``status``, ``paymentStatus``, ``adminNotes`` (all optional).
        """
        try:
            dto = UpdateOrderStatusDTO(
                status=request.data.get("status") or None,
                payment_status=request.data.get("paymentStatus") or None,
                admin_notes=request.data.get("adminNotes"),
            )
        except PydanticValidationError as exc:
            return _validation_error(exc)

        try:
            order = self._service.update_status(order_number or "", request.user, dto)
        except OrderPermissionDenied as exc:
            return Response({"error": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except OrderNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)

        return Response({"success": True, "order": OrderSerializer(order).data})

    # ------------------------------------------------------------------
    # Customer follow-ups
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="confirm-delivery")
    def confirm_delivery(
        self, request: Request, order_number: str | None = None
    ) -> Response:
        """POST /api/orders/{order_number}/confirm-delivery"""
        try:
            dto = ConfirmDeliveryDTO(confirmed_at=request.data.get("confirmedAt"))
        except PydanticValidationError as exc:
            return _validation_error(exc)

        try:
            order = self._service.confirm_delivery(order_number or "", request.user, dto)
        except OrderNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderState as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "success": True,
                "message": "Delivery confirmed successfully",
                "order": OrderSerializer(order).data,
            }
        )

    @action(detail=True, methods=["post"])
    def review(self, request: Request, order_number: str | None = None) -> Response:
        """POST /api/orders/{order_number}/review"""
        try:
            dto = OrderReviewDTO(
                rating=request.data.get("rating"),
                comment=request.data.get("comment") or "",
                issue_type=request.data.get("issueType") or "",
                issue_description=request.data.get("issueDescription") or "",
            )
        except PydanticValidationError as exc:
            return _validation_error(exc)

        try:
            review = self._service.submit_review(order_number or "", request.user, dto)
        except OrderNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderState as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                "success": True,
                "message": "Review submitted successfully",
                "review": OrderReviewSerializer(review).data,
            }
        )

    @action(detail=True, methods=["get"])
    def receipt(self, request: Request, order_number: str | None = None):
        """GET /api/orders/{order_number}/receipt (printable HTML)"""
        try:
            context = self._service.receipt(order_number or "", request.user)
        except OrderNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except ReceiptAccessDenied as exc:
            return Response({"error": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidOrderState as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        response = HttpResponse(
            render_to_string("orders/receipt.html", context, request=request),
            content_type="text/html; charset=utf-8",
        )
        response["Content-Disposition"] = (
            f'inline; filename="romana-receipt-{context["order"].order_number}.html"'
        )
        return response


class AdminStatsView(APIView):
    """GET /api/admin/stats"""

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get(self, request: Request) -> Response:
        stats = self._service.admin_stats()
        return Response(
            {
                "totalOrders": stats["total_orders"],
                "totalRevenue": stats["total_revenue"],
                "totalProducts": stats["total_products"],
                "totalCustomers": stats["total_customers"],
                "pendingOrders": stats["pending_orders"],
                "lowStockProducts": stats["low_stock_products"],
            }
        )
