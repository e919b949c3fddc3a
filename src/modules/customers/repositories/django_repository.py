"""Django ORM implementation of the Address repository.

Look-ups return ``None`` for missing or malformed IDs; the Service Layer
decides how to translate that into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.customers.models import Address
from modules.customers.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Address]":
        queryset = Address.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-is_default", "-created_at")

    @transaction.atomic
    def save(self, entity: Address) -> Address:
        is_new = entity._state.adding
        entity.save()
        logger.info("address.saved", address_id=str(entity.id), is_new=is_new)
        return entity

    def clear_default(self, user_id) -> int:
        return Address.objects.filter(user_id=user_id, is_default=True).update(
            is_default=False
        )
