"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items, locking reads for the state machine,
status history appends, reviews and the delivery/admin queries.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.accounts.models import User
    from modules.orders.models import Order, OrderReview, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items.

        ``data`` carries the order fields plus ``items``: a list of dicts
        with ``product``, ``quantity`` and ``price``.
        """

    @abstractmethod
    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with user, address, items and history loaded."""

    @abstractmethod
    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_assigned_for_update(
        self, order_number: str, delivery_person_id: Any
    ) -> Optional[Order]:
        """Locking read restricted to orders assigned to one delivery person."""

    @abstractmethod
    def lock_assignable(
        self,
        order_numbers: Iterable[str],
        order_ids: Iterable[Any],
        statuses: Iterable[str],
    ) -> List[Order]:
        """Lock the listed orders that are currently in ``statuses``."""

    @abstractmethod
    def order_number_exists(self, order_number: str) -> bool:
        """Whether an order already uses ``order_number``."""

    @abstractmethod
    def add_history(
        self,
        order: Order,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by: Optional[User] = None,
    ) -> OrderStatusHistory:
        """Append a status change to the order's audit trail."""

    @abstractmethod
    def get_review(self, order_number: str) -> Optional[OrderReview]:
        """Retrieve the review of an order, if any."""

    @abstractmethod
    def save_review(self, review: OrderReview) -> OrderReview:
        """Persist (create or update) a review."""

    @abstractmethod
    def list_for_delivery_person(
        self,
        delivery_person_id: Any,
        statuses: Optional[Iterable[str]] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> "models.QuerySet[Order]":
        """Orders assigned to one delivery person, oldest first."""

    @abstractmethod
    def list_delivered_by(self, delivery_person_id: Any) -> "models.QuerySet[Order]":
        """Completed deliveries of one delivery person, newest first."""

    @abstractmethod
    def list_unassigned(self, statuses: Iterable[str]) -> "models.QuerySet[Order]":
        """Orders in ``statuses`` with no delivery person, oldest first."""

    @abstractmethod
    def list_route_for_delivery_person(
        self,
        delivery_person_id: Any,
        created_from: datetime,
        created_to: datetime,
        carried_over_statuses: Iterable[str],
    ) -> "models.QuerySet[Order]":
        """Orders of one delivery person created in the window, plus any
        still in ``carried_over_statuses`` from earlier days; oldest first."""

    @abstractmethod
    def list_unassigned_geolocated(
        self, statuses: Iterable[str]
    ) -> "models.QuerySet[Order]":
        """Unassigned orders in ``statuses`` whose address has coordinates."""

    @abstractmethod
    def count_by_delivery_person(
        self, delivery_person_ids: Iterable[Any], statuses: Iterable[str]
    ) -> Dict[Any, int]:
        """Number of orders in ``statuses`` per delivery person (missing = 0)."""

    @abstractmethod
    def totals(self) -> Dict[str, Any]:
        """Order count, revenue (``Decimal``) and pending count."""
