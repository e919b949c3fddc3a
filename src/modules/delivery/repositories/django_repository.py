"""Django ORM implementation of the delivery region repository.

Unique-constraint violations propagate as ``IntegrityError``; the
service turns them into domain exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.delivery.models import DeliveryRegion, DeliverySubregion
from modules.delivery.repositories.interfaces import IRegionRepository

logger = structlog.get_logger(__name__)


class RegionDjangoRepository(IRegionRepository):
    def get_by_id(self, id: str) -> Optional[DeliveryRegion]:
        try:
            return DeliveryRegion.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[DeliveryRegion]":
        queryset = DeliveryRegion.objects.prefetch_related(
            models.Prefetch(
                "subregions",
                queryset=DeliverySubregion.objects.order_by("sort_order", "name"),
            )
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("sort_order", "name")

    def list_active(self) -> List[DeliveryRegion]:
        return list(
            DeliveryRegion.objects.filter(is_active=True)
            .prefetch_related(
                models.Prefetch(
                    "subregions",
                    queryset=DeliverySubregion.objects.filter(is_active=True).order_by(
                        "sort_order", "name"
                    ),
                )
            )
            .order_by("sort_order", "name")
        )

    def list_subregions(self, region_id: str) -> List[DeliverySubregion]:
        return list(
            DeliverySubregion.objects.select_related("region")
            .filter(region_id=region_id)
            .order_by("sort_order", "name")
        )

    def save(self, entity: DeliveryRegion) -> DeliveryRegion:
        entity.save()
        logger.info("delivery_region.saved", region_id=str(entity.id))
        return entity

    def get_subregion(self, id: str) -> Optional[DeliverySubregion]:
        try:
            return DeliverySubregion.objects.select_related("region").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save_subregion(self, entity: DeliverySubregion) -> DeliverySubregion:
        entity.save()
        logger.info(
            "delivery_subregion.saved",
            subregion_id=str(entity.id),
            region_id=str(entity.region_id),
        )
        return entity
