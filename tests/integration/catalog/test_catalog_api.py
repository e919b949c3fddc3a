"""Integration tests for products, categories and image uploads."""

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from modules.catalog.models import Product

pytestmark = pytest.mark.integration


class TestPublicCatalog:
    def test_list_products_anonymous(self, api_client, product):
        response = api_client.get("/api/products")

        assert response.status_code == 200
        body = response.json()
        assert [p["slug"] for p in body["products"]] == ["premium-orange-juice"]
        assert body["products"][0]["price"] == 8500.0
        assert body["products"][0]["category"]["slug"] == "organic-juices"
        assert body["pagination"]["total"] == 1

    def test_filters(self, api_client, product, category):
        Product.objects.create(
            name="Baobab Powder",
            description="Superfood",
            price=8000,
            category=category,
            inventory=3,
            is_featured=True,
        )

        low = api_client.get("/api/products", {"lowStock": "true"}).json()
        search = api_client.get("/api/products", {"search": "orange"}).json()
        other = api_client.get("/api/products", {"category": "honey"}).json()

        assert [p["name"] for p in low["products"]] == ["Baobab Powder"]
        assert [p["name"] for p in search["products"]] == ["Premium Orange Juice"]
        assert other["products"] == []

    def test_inactive_hidden_unless_admin(self, api_client, admin_client, product):
        product.is_active = False
        product.save()

        assert api_client.get("/api/products", {"admin": "true"}).json()["products"] == []
        admin_view = admin_client.get("/api/products", {"admin": "true"}).json()
        assert len(admin_view["products"]) == 1

    def test_retrieve_unknown(self, api_client):
        response = api_client.get("/api/products/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}

    def test_categories(self, api_client, product):
        categories = api_client.get("/api/categories").json()["categories"]
        assert categories[0] == {
            "id": "all",
            "name": "All Products",
            "slug": "all",
            "description": "Browse all available products",
            "productCount": 1,
        }
        assert categories[1]["slug"] == "organic-juices"


class TestProductAdmin:
    def test_create(self, admin_client, category):
        response = admin_client.post(
            "/api/products",
            {
                "name": "Pure Honey",
                "description": "Raw forest honey",
                "price": 15000,
                "categoryId": str(category.id),
                "inventory": 12,
                "images": ["/images/products/honey.jpg"],
            },
            format="json",
        )

        assert response.status_code == 201
        created = response.json()["product"]
        assert created["slug"] == "pure-honey"
        assert created["images"] == ["/images/products/honey.jpg"]

    def test_create_missing_fields(self, admin_client):
        response = admin_client.post("/api/products", {"name": "Pure Honey"}, format="json")
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    def test_customer_cannot_create(self, customer_client, category):
        response = customer_client.post("/api/products", {"name": "X"}, format="json")
        assert response.status_code == 403

    def test_update(self, admin_client, product):
        response = admin_client.put(
            f"/api/products/{product.id}", {"inventory": 5}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["product"]["inventory"] == 5

    def test_delete_ordered_product_deactivates(self, admin_client, product, make_order):
        make_order()
        response = admin_client.delete(f"/api/products/{product.id}")
        assert response.json()["message"] == "Product deactivated (has order history)"


class TestUpload:
    def test_upload_image(self, admin_client):
        upload = SimpleUploadedFile("juice.jpg", b"\xff\xd8\xff\xe0", content_type="image/jpeg")
        response = admin_client.post(
            "/api/upload", {"file": upload, "folder": "products"}, format="multipart"
        )
        assert response.status_code == 200
        assert response.json()["url"].startswith("/images/products/")

    def test_rejects_non_image(self, admin_client):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        response = admin_client.post("/api/upload", {"file": upload}, format="multipart")
        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid file type. Only JPEG, PNG, and WebP are allowed."
        }
