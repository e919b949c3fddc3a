"""Delivery domain exceptions.

Raised by the Service Layer; the views translate them into
``{"error": ...}`` responses.
"""

from __future__ import annotations


class RegionNotFound(Exception):
    """The delivery region does not exist."""


class RegionAlreadyExists(Exception):
    """A region with the same name or code already exists."""


class SubregionAlreadyExists(Exception):
    """A subregion with the same name already exists in the region."""


class NoDeliveryPersonnel(Exception):
    """Route planning needs at least one delivery person."""


class RoutePlanningDenied(Exception):
    """Only admins may plan or assign delivery routes."""
