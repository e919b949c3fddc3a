"""Unit tests for CatalogService."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from pydantic import ValidationError

from modules.catalog.dtos import CreateProductDTO, UpdateProductDTO
from modules.catalog.exceptions import (
    CategoryNotFound,
    InvalidUpload,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.models import Product
from modules.catalog.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.catalog.services import CatalogService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return CatalogService(
        product_repository=ProductDjangoRepository(),
        category_repository=CategoryDjangoRepository(),
    )


def _create_dto(category, **overrides) -> CreateProductDTO:
    data = {
        "name": "Mango Juice",
        "description": "Sun-ripened mangoes",
        "price": Decimal("7500"),
        "category_id": category.id,
        "inventory": 20,
    }
    data.update(overrides)
    return CreateProductDTO(**data)


class TestCreateProduct:
    def test_slug_derived_from_name(self, service, category):
        product = service.create_product(_create_dto(category))
        assert product.slug == "mango-juice"
        assert product.is_active is True

    def test_duplicate_slug_rejected(self, service, category):
        service.create_product(_create_dto(category))
        with pytest.raises(ProductAlreadyExists):
            service.create_product(_create_dto(category, name="Mango  Juice"))

    def test_unknown_category(self, service, category):
        with pytest.raises(CategoryNotFound):
            service.create_product(_create_dto(category, category_id=uuid4()))

    def test_price_must_be_positive(self, category):
        with pytest.raises(ValidationError, match="Price must be greater than zero"):
            _create_dto(category, price=Decimal("0"))


class TestUpdateProduct:
    def test_partial_update_keeps_other_fields(self, service, product):
        updated = service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("9000"))
        )
        assert updated.price == Decimal("9000")
        assert updated.name == "Premium Orange Juice"
        assert updated.inventory == 50

    def test_slug_collision(self, service, product, category):
        other = service.create_product(_create_dto(category))
        with pytest.raises(ProductAlreadyExists):
            service.update_product(str(other.id), UpdateProductDTO(slug=product.slug))

    def test_unknown_product(self, service):
        with pytest.raises(ProductNotFound):
            service.update_product(str(uuid4()), UpdateProductDTO(name="Anything"))


class TestDeleteProduct:
    def test_unordered_product_is_deleted(self, service, product):
        assert service.delete_product(str(product.id)) == "Product deleted"
        assert not Product.objects.filter(id=product.id).exists()

    def test_ordered_product_is_deactivated(self, service, product, make_order):
        make_order()
        message = service.delete_product(str(product.id))
        assert message == "Product deactivated (has order history)"
        product.refresh_from_db()
        assert product.is_active is False


class TestListing:
    def test_inactive_products_hidden_by_default(self, service, product, category):
        hidden = service.create_product(_create_dto(category))
        hidden.is_active = False
        hidden.save()

        assert [p.id for p in service.list_products()] == [product.id]
        assert service.list_products(include_inactive=True).count() == 2

    def test_categories_start_with_all_products(self, service, product):
        categories = service.list_categories()
        assert categories[0]["slug"] == "all"
        assert categories[0]["productCount"] == 1
        assert categories[1]["slug"] == "organic-juices"
        assert categories[1]["productCount"] == 1


class TestStoreImage:
    def test_rejects_missing_file(self, service):
        with pytest.raises(InvalidUpload, match="No file uploaded"):
            service.store_image(None)

    def test_rejects_wrong_type(self, service):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        with pytest.raises(InvalidUpload, match="Invalid file type"):
            service.store_image(upload)

    def test_rejects_large_file(self, service, settings):
        settings.UPLOAD_MAX_BYTES = 4
        upload = SimpleUploadedFile("juice.png", b"12345", content_type="image/png")
        with pytest.raises(InvalidUpload, match="File too large"):
            service.store_image(upload)

    def test_stores_image(self, service):
        upload = SimpleUploadedFile("Juice.PNG", b"\x89PNG....", content_type="image/png")
        result = service.store_image(upload, folder="Products")
        assert result["filename"].endswith(".png")
        assert result["url"].startswith("/images/products/")
        assert result["size"] == 8
        assert result["type"] == "image/png"
