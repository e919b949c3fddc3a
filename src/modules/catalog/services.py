"""Catalog service layer (Use Cases).

Orchestrates the business logic for categories, products and product
image uploads, delegating persistence to the injected repositories.

Business rules enforced here:
- Product slugs are unique ("Product with this name already exists").
- A product must reference an existing category.
- Products with order history are deactivated, never deleted.
- Uploads are limited to ``UPLOAD_ALLOWED_TYPES`` and ``UPLOAD_MAX_BYTES``.
"""

from __future__ import annotations

import os
import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.core.files.storage import default_storage
from django.db import transaction
from django.utils.text import slugify

from modules.catalog.exceptions import (
    CategoryNotFound,
    InvalidUpload,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.models import Product

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile
    from django.db.models import QuerySet

    from modules.catalog.dtos import CreateProductDTO, UpdateProductDTO
    from modules.catalog.repositories.interfaces import (
        ICategoryRepository,
        IProductRepository,
    )

logger = structlog.get_logger(__name__)

ALL_PRODUCTS_CATEGORY = {
    "id": "all",
    "name": "All Products",
    "slug": "all",
    "description": "Browse all available products",
}

PRODUCT_UPDATE_FIELDS = (
    "name",
    "description",
    "price",
    "inventory",
    "weight",
    "unit",
    "is_featured",
    "images",
    "is_active",
)


class CatalogService:
    """Application service for catalog use-cases.

    Receives its repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        product_repository: IProductRepository,
        category_repository: ICategoryRepository,
    ) -> None:
        self._product_repo = product_repository
        self._category_repo = category_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create an active product.

        Raises:
            CategoryNotFound: the category does not exist.
            ProductAlreadyExists: the slug is already taken.
        """
        slug = slugify(dto.slug or dto.name)
        log = logger.bind(slug=slug)

        category = self._category_repo.get_by_id(str(dto.category_id))
        if not category:
            raise CategoryNotFound("Category not found. Please select a valid category.")

        if self._product_repo.get_by_slug(slug):
            log.warning("product.duplicate_slug")
            raise ProductAlreadyExists("Product with this name already exists")

        product = Product(
            name=dto.name,
            slug=slug,
            description=dto.description,
            price=dto.price,
            category=category,
            inventory=dto.inventory,
            weight=dto.weight,
            unit=dto.unit,
            is_featured=dto.is_featured,
            images=list(dto.images),
            is_active=True,
        )
        product = self._product_repo.save(product)
        log.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Update a product with the supplied fields.

        Raises:
            ProductNotFound: the product does not exist.
            CategoryNotFound: the new category does not exist.
            ProductAlreadyExists: the new slug collides with another product.
        """
        product = self._product_repo.get_by_id(id)
        if not product:
            raise ProductNotFound("Product not found")

        log = logger.bind(product_id=str(product.id))

        if dto.slug is not None:
            slug = slugify(dto.slug)
            if slug != product.slug:
                if self._product_repo.get_by_slug(slug):
                    log.warning("product.duplicate_slug", slug=slug)
                    raise ProductAlreadyExists("Product with this name already exists")
                product.slug = slug

        if dto.category_id is not None:
            category = self._category_repo.get_by_id(str(dto.category_id))
            if not category:
                raise CategoryNotFound(
                    "Category not found. Please select a valid category."
                )
            product.category = category

        for field in PRODUCT_UPDATE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        product = self._product_repo.save(product)
        log.info("product.updated")
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> str:
        """Delete a product, or deactivate it when orders reference it.

        Returns the outcome message.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = self._product_repo.get_by_id(id)
        if not product:
            raise ProductNotFound("Product not found")

        if self._product_repo.has_order_history(product):
            product.is_active = False
            product.save(update_fields=["is_active"])
            logger.info("product.deactivated", product_id=str(product.id))
            return "Product deactivated (has order history)"

        self._product_repo.delete(product)
        return "Product deleted"

    def store_image(self, upload: Optional[UploadedFile], folder: str = "") -> Dict[str, Any]:
        """Persist an uploaded product image through Django's storage.

        Raises:
            InvalidUpload: no file, disallowed MIME type or file too large.
        """
        if upload is None:
            raise InvalidUpload("No file uploaded")
        if upload.content_type not in settings.UPLOAD_ALLOWED_TYPES:
            raise InvalidUpload("Invalid file type. Only JPEG, PNG, and WebP are allowed.")
        if upload.size > settings.UPLOAD_MAX_BYTES:
            raise InvalidUpload("File too large. Maximum size is 10MB.")

        extension = os.path.splitext(upload.name or "")[1].lower()
        filename = f"{uuid.uuid4()}{extension}"
        folder = slugify(folder) or "uploads"
        stored = default_storage.save(f"images/{folder}/{filename}", upload)

        logger.info("upload.stored", path=stored, size=upload.size)
        return {
            "url": default_storage.url(stored),
            "filename": filename,
            "size": upload.size,
            "type": upload.content_type,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, id: str) -> Product:
        """Retrieve a single product.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = self._product_repo.get_by_id(id)
        if not product:
            raise ProductNotFound("Product not found")
        return product

    def list_products(self, include_inactive: bool = False) -> QuerySet:
        filters = None if include_inactive else {"is_active": True}
        return self._product_repo.list(filters)

    def list_categories(self) -> List[Dict[str, Any]]:
        """Active categories, prefixed by the synthetic "All Products" entry."""
        categories = [
            {
                "id": str(category.id),
                "name": category.name,
                "slug": category.slug,
                "description": category.description,
                "productCount": category.product_count,
            }
            for category in self._category_repo.list_active_with_counts()
        ]
        everything = dict(
            ALL_PRODUCTS_CATEGORY, productCount=self._product_repo.count_active()
        )
        return [everything, *categories]
