"""Address service layer (Use Cases).

Business rules enforced here:
- Setting ``is_default`` clears the user's previous default address in
  the same transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.customers.models import Address

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.accounts.models import User
    from modules.customers.dtos import ShippingAddressDTO
    from modules.customers.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressService:
    """Application service for the address book.

    Receives an ``IAddressRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IAddressRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_address(self, user: User, dto: ShippingAddressDTO) -> Address:
        """Store a new address for *user*."""
        log = logger.bind(user_id=str(user.id))

        if dto.is_default:
            cleared = self._repo.clear_default(user.id)
            if cleared:
                log.info("address.default_cleared")

        address = Address(
            user=user,
            name=dto.name,
            phone=dto.phone,
            street=dto.street,
            city=dto.city,
            region=dto.region,
            zip_code=dto.zip_code or None,
            country=dto.country,
            latitude=dto.latitude,
            longitude=dto.longitude,
            is_default=dto.is_default,
        )
        address = self._repo.save(address)
        log.info("address.created", address_id=str(address.id))
        return address

    def list_addresses(self, user: User) -> QuerySet:
        """Return the user's addresses, default first."""
        return self._repo.list({"user_id": user.id})
