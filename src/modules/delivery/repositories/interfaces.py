"""Delivery region repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryRegion, DeliverySubregion


class IRegionRepository(IRepository["DeliveryRegion"]):
    """Repository contract for delivery regions and subregions."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[DeliveryRegion]":
        """List regions with their subregions prefetched."""

    @abstractmethod
    def list_active(self) -> List[DeliveryRegion]:
        """Active regions, each with only its active subregions."""

    @abstractmethod
    def list_subregions(self, region_id: str) -> List[DeliverySubregion]:
        """Subregions of one region, in display order."""

    @abstractmethod
    def get_subregion(self, id: str) -> Optional[DeliverySubregion]:
        """Retrieve a subregion (with its region) by primary key."""

    @abstractmethod
    def save_subregion(self, entity: DeliverySubregion) -> DeliverySubregion:
        """Persist a subregion."""
