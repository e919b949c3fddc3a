"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.  The Order
aggregate (Order + OrderItems) is written inside ``transaction.atomic()``;
concurrency control on status updates uses ``select_for_update()``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderReview, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

_DETAIL_RELATIONS = ("user", "address", "delivery_person")
_DETAIL_PREFETCH = ("items__product", "status_history")


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically."""
        items = data.pop("items", [])
        order = Order(**data)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product=item["product"],
                    quantity=item["quantity"],
                    price=item["price"],
                )
                for item in items
            ]
        )

        log = logger.bind(order_number=order.order_number, item_count=len(items))
        log.info("order.persisted")
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return (
                Order.objects.select_related(*_DETAIL_RELATIONS)
                .prefetch_related(*_DETAIL_PREFETCH)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        ``select_related`` covers the user, address and delivery person
        (single JOIN); items, their products and the status history are
        prefetched in batched queries.  Prevents N+1.
        """
        return (
            Order.objects.select_related(*_DETAIL_RELATIONS)
            .prefetch_related(*_DETAIL_PREFETCH)
            .filter(order_number=order_number)
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        queryset = Order.objects.select_related(*_DETAIL_RELATIONS).prefetch_related(
            *_DETAIL_PREFETCH
        )
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-created_at", "-id")

    def get_for_update(self, order_number: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked; ``select_related`` is avoided so the
        lock does not spread to the joined user rows.
        """
        return Order.objects.select_for_update().filter(order_number=order_number).first()

    def get_assigned_for_update(
        self, order_number: str, delivery_person_id: Any
    ) -> Optional[Order]:
        return (
            Order.objects.select_for_update()
            .filter(order_number=order_number, delivery_person_id=delivery_person_id)
            .first()
        )

    def lock_assignable(
        self,
        order_numbers: Iterable[str],
        order_ids: Iterable[Any],
        statuses: Iterable[str],
    ) -> List[Order]:
        match = models.Q(order_number__in=list(order_numbers)) | models.Q(
            id__in=list(order_ids)
        )
        return list(
            Order.objects.select_for_update()
            .filter(match, status__in=list(statuses))
            .order_by("created_at", "id")
        )

    def order_number_exists(self, order_number: str) -> bool:
        return Order.objects.filter(order_number=order_number).exists()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_number=entity.order_number)
        return entity

    # ------------------------------------------------------------------
    # Order-specific writes
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order: Order,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        changed_by=None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            status=status,
            notes=notes,
            changed_by=changed_by,
        )
        logger.info(
            "order.history_added",
            order_number=order.order_number,
            old_status=old_status,
            new_status=status,
        )
        return history

    def get_review(self, order_number: str) -> Optional[OrderReview]:
        return OrderReview.objects.filter(order_number=order_number).first()

    def save_review(self, review: OrderReview) -> OrderReview:
        review.save()
        return review

    # ------------------------------------------------------------------
    # Delivery / admin queries
    # ------------------------------------------------------------------

    def list_for_delivery_person(
        self,
        delivery_person_id: Any,
        statuses: Optional[Iterable[str]] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> "models.QuerySet[Order]":
        queryset = Order.objects.select_related("user", "address").prefetch_related(
            "items__product"
        )
        queryset = queryset.filter(delivery_person_id=delivery_person_id)
        if statuses is not None:
            queryset = queryset.filter(status__in=list(statuses))
        if created_from is not None:
            queryset = queryset.filter(created_at__gte=created_from)
        if created_to is not None:
            queryset = queryset.filter(created_at__lt=created_to)
        return queryset.order_by("created_at", "id")

    def list_delivered_by(self, delivery_person_id: Any) -> "models.QuerySet[Order]":
        return (
            Order.objects.select_related("user", "address")
            .filter(
                delivery_person_id=delivery_person_id,
                status=OrderStatus.DELIVERED,
                delivery_completed_at__isnull=False,
            )
            .order_by("-delivery_completed_at")
        )

    def list_unassigned(self, statuses: Iterable[str]) -> "models.QuerySet[Order]":
        return (
            Order.objects.select_related("user", "address")
            .filter(delivery_person__isnull=True, status__in=list(statuses))
            .order_by("created_at", "id")
        )

    def list_route_for_delivery_person(
        self,
        delivery_person_id: Any,
        created_from: datetime,
        created_to: datetime,
        carried_over_statuses: Iterable[str],
    ) -> "models.QuerySet[Order]":
        window = models.Q(created_at__gte=created_from, created_at__lt=created_to)
        carried_over = models.Q(status__in=list(carried_over_statuses))
        return (
            Order.objects.select_related("user", "address")
            .prefetch_related("items__product")
            .filter(window | carried_over, delivery_person_id=delivery_person_id)
            .order_by("created_at", "id")
        )

    def list_unassigned_geolocated(
        self, statuses: Iterable[str]
    ) -> "models.QuerySet[Order]":
        return self.list_unassigned(statuses).filter(
            address__latitude__isnull=False, address__longitude__isnull=False
        )

    def count_by_delivery_person(
        self, delivery_person_ids: Iterable[Any], statuses: Iterable[str]
    ) -> Dict[Any, int]:
        rows = (
            Order.objects.filter(
                delivery_person_id__in=list(delivery_person_ids),
                status__in=list(statuses),
            )
            .values("delivery_person_id")
            .annotate(count=models.Count("id"))
        )
        return {row["delivery_person_id"]: row["count"] for row in rows}

    def totals(self) -> Dict[str, Any]:
        aggregate = Order.objects.aggregate(
            count=models.Count("id"),
            revenue=models.Sum("total"),
            pending=models.Count("id", filter=models.Q(status=OrderStatus.PENDING)),
        )
        return {
            "total_orders": aggregate["count"],
            "total_revenue": aggregate["revenue"] or Decimal("0"),
            "pending_orders": aggregate["pending"],
        }
