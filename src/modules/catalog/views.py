"""Catalog API views.

Exposes ``CatalogService`` over HTTP.  Reads are public; writes and
uploads require the ADMIN role.  Domain exceptions are caught and
translated into ``{"error": ...}`` responses.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.accounts.permissions import IsAdminRole
from modules.catalog.dtos import CreateProductDTO, UpdateProductDTO
from modules.catalog.exceptions import (
    CategoryNotFound,
    InvalidUpload,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.filters import ProductFilter
from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.catalog.serializers import ProductSerializer
from modules.catalog.services import CatalogService
from modules.core.pagination import LimitOffsetResultsPagination
from modules.core.validation import first_error_message

PRODUCT_INPUT_KEYS = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "price": "price",
    "categoryId": "category_id",
    "inventory": "inventory",
    "weight": "weight",
    "unit": "unit",
    "isFeatured": "is_featured",
    "images": "images",
    "isActive": "is_active",
}


def _catalog_service() -> CatalogService:
    return CatalogService(
        product_repository=ProductDjangoRepository(),
        category_repository=CategoryDjangoRepository(),
    )


def _product_payload(data) -> dict:
    """Map the client's camelCase body onto DTO field names."""
    return {
        field: data[key]
        for key, field in PRODUCT_INPUT_KEYS.items()
        if key in data and data[key] is not None
    }


class CategoryListView(APIView):
    """GET /api/categories"""

    permission_classes = [AllowAny]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _catalog_service()

    def get(self, request: Request) -> Response:
        return Response({"categories": self._service.list_categories()})


class ProductViewSet(GenericViewSet):
    """ViewSet for Product operations.

    Uses ``CatalogService`` with injected repositories (DIP).  Does
    **not** extend ``ModelViewSet``; all ORM access goes through the
    service/repository layer.
    """

    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _catalog_service()

    def get_permissions(self):
        if self.action in {"list", "retrieve"}:
            return [AllowAny()]
        return [IsAdminRole()]

    def get_queryset(self):
        include_inactive = (
            self.request.query_params.get("admin") == "true"
            and getattr(self.request.user, "is_admin_role", False)
        )
        return self._service.list_products(include_inactive=include_inactive)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/products

        Filters: ``category`` (slug), ``search``, ``lowStock``, ``featured``;
        ``admin=true`` includes inactive products for administrators.
        """
        queryset = self.filter_queryset(self.get_queryset())
        paginator = LimitOffsetResultsPagination(results_key="products")
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = ProductSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/products/{pk}"""
        try:
            product = self._service.get_product(pk or "")
        except ProductNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response({"product": ProductSerializer(product).data})

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/products"""
        payload = _product_payload(request.data)
        required = ("name", "description", "price", "category_id", "inventory")
        if any(payload.get(field) in (None, "") for field in required):
            return Response(
                {"error": "Missing required fields"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            dto = CreateProductDTO(**payload)
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            product = self._service.create_product(dto)
        except (CategoryNotFound, ProductAlreadyExists) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {"success": True, "product": ProductSerializer(product).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/products/{pk}"""
        try:
            dto = UpdateProductDTO(**_product_payload(request.data))
        except PydanticValidationError as exc:
            return Response(
                {"error": first_error_message(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            product = self._service.update_product(pk or "", dto)
        except ProductNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except (CategoryNotFound, ProductAlreadyExists) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"success": True, "product": ProductSerializer(product).data})

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/products/{pk}"""
        try:
            message = self._service.delete_product(pk or "")
        except ProductNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response({"success": True, "message": message})


class UploadView(APIView):
    """POST /api/upload (multipart: ``file`` and optional ``folder``)"""

    permission_classes = [IsAdminRole]
    parser_classes = [MultiPartParser, FormParser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = _catalog_service()

    def post(self, request: Request) -> Response:
        try:
            result = self._service.store_image(
                request.FILES.get("file"), folder=request.data.get("folder", "")
            )
        except InvalidUpload as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(result)
