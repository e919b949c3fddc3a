"""Catalog repository interfaces.

``IProductRepository`` extends ``IRepository[Product]`` with the
look-ups the catalog rules need (unique slug, order-history check) and
the locking read used by checkout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Category, Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products (category eager-loaded) with optional filters."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[Product]:
        """Retrieve a product by slug."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Product]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Used by checkout for atomic inventory decrements.
        """

    @abstractmethod
    def has_order_history(self, product: Product) -> bool:
        """Whether any order item references *product*."""

    @abstractmethod
    def delete(self, product: Product) -> None:
        """Hard-delete a product."""

    @abstractmethod
    def count_active(self) -> int:
        """Number of active products."""

    @abstractmethod
    def count_low_stock(self, threshold: int) -> int:
        """Number of active products with ``inventory <= threshold``."""


class ICategoryRepository(ABC):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Category]:
        """Retrieve a category (``None`` for invalid IDs)."""

    @abstractmethod
    def list_active_with_counts(self) -> List[Category]:
        """Active categories annotated with ``product_count``."""
