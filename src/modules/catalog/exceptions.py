"""Catalog domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
``{"error": ...}`` responses.
"""

from __future__ import annotations


class ProductAlreadyExists(Exception):
    """A product with the same slug already exists."""


class ProductNotFound(Exception):
    """The requested product does not exist."""


class CategoryNotFound(Exception):
    """The category referenced by a product does not exist."""


class InvalidUpload(Exception):
    """The uploaded file is missing, too large or of a disallowed type."""
