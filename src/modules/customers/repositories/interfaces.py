"""Address repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Address


class IAddressRepository(IRepository["Address"]):
    """Repository contract for shipping addresses."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Address]":
        """List addresses, default first."""

    @abstractmethod
    def clear_default(self, user_id) -> int:
        """Unset ``is_default`` on the user's addresses; returns rows updated."""
