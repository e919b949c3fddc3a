"""Order service layer (Use Cases).

Orchestrates checkout and the order lifecycle state machine.  All write
operations are atomic: the service defines the unit-of-work boundary and
locks the order row (``SELECT FOR UPDATE``) before validating a
transition.

Business rules enforced:
- Admins may move an order between any two statuses; customers never
  mutate status; delivery personnel only move their assigned orders
  forward (CONFIRMED/PROCESSING -> SHIPPED -> DELIVERED).
- ``shipped_at`` / ``delivered_at`` are stamped only on the first entry
  into SHIPPED / DELIVERED.
- Exactly one history row per accepted status change, committed together
  with the order update.
- Checkout snapshots catalog prices and decrements inventory under
  product row locks taken in a stable order.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.accounts.constants import Role
from modules.customers.models import Address
from modules.delivery.proof import (
    generate_delivery_token,
    hash_gps_location,
    hash_signature,
)
from modules.orders.constants import (
    ASSIGNABLE_STATES,
    DELIVERY_TRANSITIONS,
    ORDER_NUMBER_MAX_RETRIES,
    ORDER_PLACED_NOTE,
    OrderStatus,
)
from modules.orders.exceptions import (
    InactiveProduct,
    InsufficientInventory,
    InvalidDeliveryPerson,
    InvalidOrderData,
    InvalidOrderState,
    OrderNotFound,
    OrderNumberExhausted,
    OrderPermissionDenied,
    ProductNotFound,
    ReceiptAccessDenied,
)
from modules.orders.models import OrderReview
from modules.orders.tracking import (
    calculate_order_total,
    format_price,
    generate_order_number,
    generate_qr_code,
    generate_tracking_hash,
    tracking_url,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.customers.repositories.interfaces import IAddressRepository
    from modules.delivery.repositories.interfaces import IRegionRepository
    from modules.orders.dtos import (
        AssignDeliveriesDTO,
        ConfirmDeliveryDTO,
        CreateOrderDTO,
        DeliveryStatusUpdateDTO,
        OrderReviewDTO,
        UpdateOrderStatusDTO,
    )
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def _is_admin(user: User) -> bool:
    return getattr(user, "role", None) == Role.ADMIN


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        address_repository: IAddressRepository,
        user_repository: IUserRepository,
        region_repository: IRegionRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._address_repo = address_repository
        self._user_repo = user_repository
        self._region_repo = region_repository

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, actor: User, dto: CreateOrderDTO) -> Order:
        """Place an order for *actor*.

        Steps:
        1. Resolve the shipping cost (subregion fee when one is given).
        2. For each item (sorted by product id to avoid deadlocks):
           - Lock product row (SELECT FOR UPDATE).
           - Validate product exists, is active and has enough inventory.
           - Snapshot current price and decrement inventory.
        3. Allocate an order number, tracking hash and QR code.
        4. Persist address, order and items, then the initial history row.

        Raises:
            InvalidOrderData: unknown delivery subregion.
            ProductNotFound / InactiveProduct / InsufficientInventory.
            OrderNumberExhausted: no free order number within the retries.
            QRCodeGenerationError: the QR code could not be rendered.
        """
        log = logger.bind(user_id=str(actor.id), item_count=len(dto.items))
        log.info("order.creation_started")

        # 1. Shipping cost
        shipping_cost = dto.shipping_cost
        if dto.delivery_subregion_id is not None:
            subregion = self._region_repo.get_subregion(str(dto.delivery_subregion_id))
            if not subregion or not subregion.is_active:
                raise InvalidOrderData("Invalid delivery subregion")
            shipping_cost = subregion.delivery_fee

        # 2. Items — sort by product_id to prevent deadlocks
        sorted_items = sorted(dto.items, key=lambda i: str(i.product_id))
        repo_items: List[Dict[str, Any]] = []
        subtotal = Decimal("0")

        for item_dto in sorted_items:
            product = self._product_repo.get_for_update(str(item_dto.product_id))
            if not product:
                raise ProductNotFound(f"Product not found: {item_dto.product_id}")
            if not product.is_active:
                raise InactiveProduct(f"Product is not available: {item_dto.product_id}")
            if product.inventory < item_dto.quantity:
                raise InsufficientInventory(
                    f"Insufficient inventory for product: {item_dto.product_id}. "
                    f"Available: {product.inventory}"
                )

            product.inventory -= item_dto.quantity
            product.save(update_fields=["inventory", "updated_at"])

            log.info(
                "order.inventory_reserved",
                product_id=str(product.id),
                quantity=item_dto.quantity,
                remaining=product.inventory,
            )

            subtotal += product.price * item_dto.quantity
            repo_items.append(
                {
                    "product": product,
                    "quantity": item_dto.quantity,
                    "price": product.price,
                }
            )

        # 3. Public identifiers
        order_number = self._allocate_order_number()
        tracking_hash = generate_tracking_hash(order_number, actor.email)
        qr_code = generate_qr_code(order_number)

        # 4. Persist
        shipping = dto.shipping_address
        if shipping.is_default:
            self._address_repo.clear_default(actor.id)
        address = self._address_repo.save(
            Address(
                user=actor,
                name=shipping.name,
                phone=shipping.phone,
                street=shipping.street,
                city=shipping.city,
                region=shipping.region,
                zip_code=shipping.zip_code or None,
                country=shipping.country,
                latitude=shipping.latitude,
                longitude=shipping.longitude,
                is_default=shipping.is_default,
            )
        )

        order = self._order_repo.create(
            {
                "order_number": order_number,
                "user": actor,
                "address": address,
                "subtotal": subtotal,
                "shipping_cost": shipping_cost,
                "total": calculate_order_total(subtotal, shipping_cost),
                "status": OrderStatus.PENDING,
                "payment_method": dto.payment_method,
                "qr_code": qr_code,
                "tracking_hash": tracking_hash,
                "items": repo_items,
            }
        )
        self._order_repo.add_history(
            order, OrderStatus.PENDING, notes=ORDER_PLACED_NOTE, changed_by=actor
        )

        log.info("order.created", order_number=order_number, total=str(order.total))
        return self._order_repo.get_by_number(order_number) or order

    def _allocate_order_number(self) -> str:
        for attempt in range(1, ORDER_NUMBER_MAX_RETRIES + 1):
            candidate = generate_order_number()
            if not self._order_repo.order_number_exists(candidate):
                return candidate
            logger.warning("order.number_collision", attempt=attempt)
        raise OrderNumberExhausted("Could not allocate an order number")

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_status(
        self, order_number: str, actor: User, dto: UpdateOrderStatusDTO
    ) -> Order:
        """Admin update of status, payment status and notes.

        Any status may follow any other.  A history row is appended only
        when the status actually changes.

        Raises:
            OrderPermissionDenied: caller is not an admin.
            OrderNotFound: order does not exist.
        """
        if not _is_admin(actor):
            raise OrderPermissionDenied("Admin access required")

        order = self._order_repo.get_for_update(order_number)
        if not order:
            raise OrderNotFound("Order not found")

        old_status = order.status
        new_status = dto.status or old_status
        log = logger.bind(
            order_number=order_number, old_status=old_status, new_status=new_status
        )

        if dto.payment_status is not None:
            order.payment_status = dto.payment_status
        if dto.admin_notes is not None:
            order.admin_notes = dto.admin_notes

        changed = new_status != old_status
        if changed:
            order.status = new_status
            self._stamp_transition(order, new_status, timezone.now())

        self._order_repo.save(order)

        if changed:
            self._order_repo.add_history(
                order,
                new_status,
                notes=dto.admin_notes or f"Order status updated to {new_status}",
                old_status=old_status,
                changed_by=actor,
            )
            log.info("order.status_updated")
        else:
            log.info("order.details_updated")

        return self._order_repo.get_by_number(order_number)

    @transaction.atomic
    def update_delivery_status(self, actor: User, dto: DeliveryStatusUpdateDTO) -> Order:
        """Delivery-person transition with proof of delivery.

        Raises:
            OrderPermissionDenied: caller is not a delivery person.
            OrderNotFound: order does not exist or is assigned to someone else.
            InvalidOrderState: the order cannot move to the requested status.
        """
        if getattr(actor, "role", None) != Role.DELIVERY:
            raise OrderPermissionDenied("Delivery access required")

        order = self._order_repo.get_assigned_for_update(dto.order_number, actor.id)
        if not order:
            raise OrderNotFound("Order not found or not assigned to you")

        old_status = order.status
        log = logger.bind(
            order_number=dto.order_number,
            delivery_person_id=str(actor.id),
            old_status=old_status,
            new_status=dto.status,
        )

        if old_status not in DELIVERY_TRANSITIONS[dto.status]:
            log.warning("order.invalid_delivery_transition")
            raise InvalidOrderState(
                f"Cannot change order from {old_status} to {dto.status}"
            )

        now = timezone.now()
        if dto.status == OrderStatus.SHIPPED and order.delivery_started_at is None:
            order.delivery_started_at = now
        if dto.status == OrderStatus.DELIVERED:
            order.delivery_completed_at = now
            order.delivery_token = generate_delivery_token(
                order.order_number, str(actor.id), now
            )
            if dto.signature:
                order.delivery_signature_hash = hash_signature(dto.signature)
            if dto.latitude is not None and dto.longitude is not None:
                order.gps_delivery_location = hash_gps_location(
                    dto.latitude, dto.longitude
                )
            if dto.notes:
                order.delivery_notes = dto.notes

        changed = dto.status != old_status
        order.status = dto.status
        self._stamp_transition(order, dto.status, now)
        self._order_repo.save(order)

        if changed:
            self._order_repo.add_history(
                order,
                dto.status,
                notes=dto.notes or f"Delivery status updated to {dto.status} by {actor.name}",
                old_status=old_status,
                changed_by=actor,
            )
        log.info("order.delivery_status_updated")
        return self._order_repo.get_by_number(dto.order_number)

    @transaction.atomic
    def assign_deliveries(
        self, actor: User, dto: AssignDeliveriesDTO
    ) -> Tuple[User, List[Order]]:
        """Hand CONFIRMED/PROCESSING orders to a delivery person.

        Each assigned order is moved to SHIPPED; orders in any other
        status are skipped.

        Raises:
            OrderPermissionDenied: caller is not an admin.
            InvalidDeliveryPerson: unknown user or not a delivery person.
        """
        if not _is_admin(actor):
            raise OrderPermissionDenied("Admin access required")

        person = self._user_repo.get_by_id(str(dto.delivery_person_id))
        if not person or person.role != Role.DELIVERY:
            raise InvalidDeliveryPerson("Invalid delivery person")

        now = timezone.now()
        orders = self._order_repo.lock_assignable(
            dto.order_numbers, dto.order_ids, ASSIGNABLE_STATES
        )
        for order in orders:
            old_status = order.status
            order.delivery_person = person
            order.status = OrderStatus.SHIPPED
            self._stamp_transition(order, OrderStatus.SHIPPED, now)
            self._order_repo.save(order)
            self._order_repo.add_history(
                order,
                OrderStatus.SHIPPED,
                notes=f"Assigned to {person.name} for delivery",
                old_status=old_status,
                changed_by=actor,
            )

        logger.info(
            "order.deliveries_assigned",
            delivery_person_id=str(person.id),
            requested=len(dto.order_numbers) + len(dto.order_ids),
            assigned=len(orders),
        )
        return person, orders

    @staticmethod
    def _stamp_transition(order: Order, status: str, now: datetime) -> None:
        if status == OrderStatus.SHIPPED and order.shipped_at is None:
            order.shipped_at = now
        elif status == OrderStatus.DELIVERED and order.delivered_at is None:
            order.delivered_at = now

    # ------------------------------------------------------------------
    # Customer follow-ups
    # ------------------------------------------------------------------

    @transaction.atomic
    def confirm_delivery(
        self, order_number: str, actor: User, dto: ConfirmDeliveryDTO
    ) -> Order:
        """Record the customer's acknowledgement of a delivered order.

        Raises:
            OrderNotFound: order does not exist or belongs to someone else.
            InvalidOrderState: the order is not DELIVERED.
        """
        order = self._order_repo.get_for_update(order_number)
        if not order or not self._is_visible(order, actor):
            raise OrderNotFound("Order not found")
        if order.status != OrderStatus.DELIVERED:
            raise InvalidOrderState("Order must be delivered before confirmation")

        order.customer_confirmed_at = dto.confirmed_at or timezone.now()
        self._order_repo.save(order)
        logger.info("order.delivery_confirmed", order_number=order_number)
        return self._order_repo.get_by_number(order_number)

    @transaction.atomic
    def submit_review(
        self, order_number: str, actor: User, dto: OrderReviewDTO
    ) -> OrderReview:
        """Create or replace the review of the caller's delivered order.

        Raises:
            OrderNotFound: order does not exist or belongs to someone else.
            InvalidOrderState: the order is not DELIVERED.
        """
        order = self._order_repo.get_by_number(order_number)
        if not order or order.user_id != actor.id:
            raise OrderNotFound("Order not found")
        if order.status != OrderStatus.DELIVERED:
            raise InvalidOrderState("Order must be delivered before review")

        review = self._order_repo.get_review(order_number) or OrderReview(
            order_number=order_number, user=actor
        )
        review.rating = dto.rating
        review.comment = dto.comment
        review.issue_type = dto.issue_type
        review.issue_description = dto.issue_description
        review.is_resolved = not dto.reports_issue
        review = self._order_repo.save_review(review)

        logger.info(
            "order.review_submitted",
            order_number=order_number,
            rating=dto.rating,
            reports_issue=dto.reports_issue,
        )
        return review

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def _is_visible(order: Order, actor: User) -> bool:
        return _is_admin(actor) or order.user_id == actor.id

    def get_order(self, order_number: str, actor: User) -> Order:
        """Retrieve a single order visible to *actor*.

        Raises:
            OrderNotFound: order does not exist or belongs to someone else.
        """
        order = self._order_repo.get_by_number(order_number)
        if not order or not self._is_visible(order, actor):
            raise OrderNotFound("Order not found")
        return order

    def list_orders(self, actor: User) -> QuerySet:
        """All orders for admins, the caller's own orders otherwise."""
        filters = None if _is_admin(actor) else {"user_id": actor.id}
        return self._order_repo.list(filters)

    def receipt(self, order_number: str, actor: User) -> Dict[str, Any]:
        """Template context for the printable receipt of a delivered order.

        Raises:
            OrderNotFound: order does not exist.
            ReceiptAccessDenied: caller is neither the owner nor an admin.
            InvalidOrderState: the order is not DELIVERED.
        """
        order = self._order_repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound("Order not found")
        if not self._is_visible(order, actor):
            raise ReceiptAccessDenied("Access denied")
        if order.status != OrderStatus.DELIVERED:
            raise InvalidOrderState("Receipt only available for delivered orders")

        lines = [
            {
                "name": item.product.name,
                "quantity": item.quantity,
                "price": format_price(item.price),
                "total": format_price(item.line_total),
            }
            for item in order.items.all()
        ]
        return {
            "order": order,
            "lines": lines,
            "subtotal": format_price(order.subtotal),
            "shipping_cost": format_price(order.shipping_cost),
            "total": format_price(order.total),
            "tracking_url": tracking_url(order.order_number),
            "generated_at": timezone.now(),
        }

    def admin_stats(self) -> Dict[str, Any]:
        totals = self._order_repo.totals()
        return {
            "total_orders": totals["total_orders"],
            "total_revenue": totals["total_revenue"],
            "total_products": self._product_repo.count_active(),
            "total_customers": self._user_repo.count_by_role(Role.CUSTOMER),
            "pending_orders": totals["pending_orders"],
            "low_stock_products": self._product_repo.count_low_stock(
                settings.LOW_STOCK_THRESHOLD
            ),
        }
