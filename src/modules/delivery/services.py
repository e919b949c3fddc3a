"""Delivery service layer (Use Cases).

- ``RegionService``: delivery regions and subregions (the subregion fee
  becomes the order's shipping cost at checkout).
- ``DeliveryDashboardService``: the delivery person's day, history and
  the admin's view of orders waiting for assignment.
- ``RoutePlanningService``: the courier's routes grouped by region, and
  the admin's route optimization over unassigned geolocated orders.

Status changes themselves, route assignment included, go through
``OrderService``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from modules.accounts.constants import Role
from modules.delivery.exceptions import (
    NoDeliveryPersonnel,
    RegionAlreadyExists,
    RegionNotFound,
    RoutePlanningDenied,
    SubregionAlreadyExists,
)
from modules.delivery.models import DeliveryRegion, DeliverySubregion
from modules.delivery.routing import MapboxRouteOptimizer, RouteStop
from modules.orders.constants import (
    ACTIVE_DELIVERY_STATES,
    ASSIGNABLE_STATES,
    OrderStatus,
)
from modules.orders.dtos import AssignDeliveriesDTO

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.accounts.models import User
    from modules.accounts.repositories.interfaces import IUserRepository
    from modules.delivery.dtos import CreateRegionDTO, CreateSubregionDTO
    from modules.delivery.repositories.interfaces import IRegionRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

AVERAGE_KM_PER_DELIVERY = 8.5
ROUTE_START = time(9, 0)
ROUTE_SLOT = timedelta(minutes=45)


class RegionService:
    """Application service for delivery regions.

    Receives an ``IRegionRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IRegionRepository) -> None:
        self._repo = repository

    def list_regions(self) -> QuerySet:
        return self._repo.list()

    def list_active_regions(self) -> List[DeliveryRegion]:
        return self._repo.list_active()

    def create_region(self, dto: CreateRegionDTO) -> DeliveryRegion:
        """Raises ``RegionAlreadyExists`` on a duplicate name or code."""
        region = DeliveryRegion(
            name=dto.name,
            code=dto.code or None,
            description=dto.description,
            is_active=dto.is_active,
            sort_order=dto.sort_order,
        )
        try:
            with transaction.atomic():
                region = self._repo.save(region)
        except IntegrityError as exc:
            logger.warning("delivery_region.duplicate", name=dto.name, code=dto.code)
            raise RegionAlreadyExists("Region name or code already exists") from exc
        return region

    def list_subregions(self, region_id: str) -> List[DeliverySubregion]:
        """Raises ``RegionNotFound`` for an unknown region."""
        self._get_region(region_id)
        return self._repo.list_subregions(region_id)

    def create_subregion(
        self, region_id: str, dto: CreateSubregionDTO
    ) -> DeliverySubregion:
        """Raises ``RegionNotFound`` / ``SubregionAlreadyExists``."""
        region = self._get_region(region_id)
        subregion = DeliverySubregion(
            region=region,
            name=dto.name,
            code=dto.code or None,
            description=dto.description,
            delivery_fee=dto.delivery_fee,
            is_active=dto.is_active,
            sort_order=dto.sort_order,
        )
        try:
            with transaction.atomic():
                subregion = self._repo.save_subregion(subregion)
        except IntegrityError as exc:
            logger.warning(
                "delivery_subregion.duplicate", region_id=str(region.id), name=dto.name
            )
            raise SubregionAlreadyExists(
                "Subregion name already exists in this region"
            ) from exc
        return subregion

    def _get_region(self, region_id: str) -> DeliveryRegion:
        region = self._repo.get_by_id(region_id)
        if not region:
            raise RegionNotFound("Region not found")
        return region


@dataclass(frozen=True)
class DeliveryStats:
    today_deliveries: int
    completed_today: int
    pending_deliveries: int
    total_distance: float


@dataclass(frozen=True)
class HistoryStats:
    total_deliveries: int
    successful_deliveries: int
    average_time: str
    total_earnings: int


def format_duration(delta: timedelta) -> str:
    """``timedelta(hours=26, minutes=5)`` -> ``"26h 5m"``."""
    total_minutes = max(int(delta.total_seconds() // 60), 0)
    return f"{total_minutes // 60}h {total_minutes % 60}m"


def estimated_delivery_time(index: int) -> str:
    """Route slot for the *index*-th stop of the day, e.g. ``"9:45 AM"``."""
    slot = datetime.combine(timezone.localdate(), ROUTE_START) + ROUTE_SLOT * index
    return slot.strftime("%I:%M %p").lstrip("0")


class DeliveryDashboardService:
    """Read-side use-cases for delivery personnel and dispatch."""

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    @staticmethod
    def _today_bounds() -> Tuple[datetime, datetime]:
        start = timezone.make_aware(datetime.combine(timezone.localdate(), time.min))
        return start, start + timedelta(days=1)

    def dashboard(self, person: User) -> Tuple[List[Order], DeliveryStats]:
        """Today's orders assigned to *person*, in route order."""
        start, end = self._today_bounds()
        orders = list(
            self._order_repo.list_for_delivery_person(
                person.id, created_from=start, created_to=end
            )
        )
        completed = sum(1 for o in orders if o.status == OrderStatus.DELIVERED)
        stats = DeliveryStats(
            today_deliveries=len(orders),
            completed_today=completed,
            pending_deliveries=sum(
                1 for o in orders if o.status in ACTIVE_DELIVERY_STATES
            ),
            total_distance=round(completed * AVERAGE_KM_PER_DELIVERY, 1),
        )
        logger.info(
            "delivery.dashboard_viewed",
            delivery_person_id=str(person.id),
            today_deliveries=stats.today_deliveries,
        )
        return orders, stats

    def assigned_orders(self, person: User) -> Tuple[List[Order], DeliveryStats]:
        """Today's still-open deliveries of *person*."""
        start, end = self._today_bounds()
        orders = list(
            self._order_repo.list_for_delivery_person(
                person.id,
                statuses=ACTIVE_DELIVERY_STATES,
                created_from=start,
                created_to=end,
            )
        )
        stats = DeliveryStats(
            today_deliveries=len(orders),
            completed_today=0,
            pending_deliveries=len(orders),
            total_distance=0.0,
        )
        return orders, stats

    def history(self, person: User) -> Tuple[List[Order], HistoryStats]:
        """Completed deliveries, newest first, with average time and earnings."""
        orders = list(self._order_repo.list_delivered_by(person.id))
        durations = [
            o.delivery_completed_at - o.created_at
            for o in orders
            if o.delivery_completed_at and o.created_at
        ]
        average = (
            sum(durations, timedelta()) / len(durations) if durations else timedelta()
        )
        stats = HistoryStats(
            total_deliveries=len(orders),
            successful_deliveries=sum(
                1 for o in orders if o.status == OrderStatus.DELIVERED
            ),
            average_time=format_duration(average),
            total_earnings=len(orders) * settings.DELIVERY_FEE_EARNINGS,
        )
        return orders, stats

    def available_orders(self) -> List[Order]:
        """Unassigned CONFIRMED/PROCESSING orders, oldest first."""
        return list(self._order_repo.list_unassigned(ASSIGNABLE_STATES))



# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

ROUTE_KM_PER_STOP = 5
ROUTE_MINUTES_PER_STOP = 45


@dataclass(frozen=True)
class CourierRoute:
    """One region's stops on a delivery person's run, oldest order first."""

    region: str
    orders: List[Order]

    @property
    def completed_stops(self) -> int:
        return sum(1 for o in self.orders if o.status == OrderStatus.DELIVERED)

    @property
    def status(self) -> str:
        completed = self.completed_stops
        if self.orders and completed == len(self.orders):
            return "COMPLETED"
        if completed or any(o.status == OrderStatus.SHIPPED for o in self.orders):
            return "IN_PROGRESS"
        return "PLANNED"

    @property
    def estimated_duration(self) -> str:
        return format_duration(timedelta(minutes=ROUTE_MINUTES_PER_STOP * len(self.orders)))

    @property
    def total_distance_km(self) -> float:
        return float(ROUTE_KM_PER_STOP * len(self.orders))


@dataclass(frozen=True)
class PlannedRoute:
    """A chunk of one region's unassigned orders proposed for one driver."""

    id: str
    region: str
    driver: User
    orders: List[Order]
    optimized: bool
    total_distance: int = 0  # meters
    total_duration: int = 0  # minutes


def _group_by_region(orders: List[Order]) -> Dict[str, List[Order]]:
    groups: Dict[str, List[Order]] = {}
    for order in orders:
        groups.setdefault(order.address.region, []).append(order)
    return groups


class RoutePlanningService:
    """Route views for delivery personnel and route optimization for admins.

    Optimization groups unassigned CONFIRMED/PROCESSING orders with a
    geolocated address by region and splits each region into runs of at
    most ``ROUTE_MAX_STOPS``.  An optimized run goes to the least-loaded
    driver (SHIPPED orders plus runs already planned in this pass); a run
    the optimizer could not order is handed out round-robin.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        user_repository: IUserRepository,
        optimizer: Optional[MapboxRouteOptimizer] = None,
    ) -> None:
        self._order_repo = order_repository
        self._user_repo = user_repository
        self._optimizer = optimizer or MapboxRouteOptimizer()

    def courier_routes(self, person: User) -> List[CourierRoute]:
        """Today's orders of *person* plus earlier ones still SHIPPED."""
        start, end = DeliveryDashboardService._today_bounds()
        orders = list(
            self._order_repo.list_route_for_delivery_person(
                person.id,
                created_from=start,
                created_to=end,
                carried_over_statuses=[OrderStatus.SHIPPED],
            )
        )
        return [
            CourierRoute(region=region, orders=region_orders)
            for region, region_orders in _group_by_region(orders).items()
        ]

    def plan_routes(self, actor: User) -> Tuple[List[PlannedRoute], int]:
        """Propose delivery runs; returns the routes and the order count.

        Raises:
            RoutePlanningDenied: caller is not an admin.
            NoDeliveryPersonnel: there are orders but no delivery person.
        """
        if getattr(actor, "role", None) != Role.ADMIN:
            raise RoutePlanningDenied("Admin access required")

        orders = list(self._order_repo.list_unassigned_geolocated(ASSIGNABLE_STATES))
        if not orders:
            return [], 0

        drivers = list(self._user_repo.list_by_role(Role.DELIVERY))
        if not drivers:
            raise NoDeliveryPersonnel("No delivery drivers available")

        shipped = self._order_repo.count_by_delivery_person(
            [d.id for d in drivers], [OrderStatus.SHIPPED]
        )
        load = {d.id: shipped.get(d.id, 0) for d in drivers}
        depot = (settings.DELIVERY_DEPOT_LATITUDE, settings.DELIVERY_DEPOT_LONGITUDE)
        max_stops = settings.ROUTE_MAX_STOPS

        routes: List[PlannedRoute] = []
        for region, region_orders in _group_by_region(orders).items():
            for chunk_index, offset in enumerate(range(0, len(region_orders), max_stops)):
                chunk = region_orders[offset : offset + max_stops]
                stops = [
                    RouteStop(
                        id=str(o.id),
                        coordinates=(o.address.latitude, o.address.longitude),
                    )
                    for o in chunk
                ]
                trip = self._optimizer.optimize(depot, stops)
                route_id = f"route-{region}-{chunk_index + 1}"

                if trip is None:
                    driver = drivers[chunk_index % len(drivers)]
                    route = PlannedRoute(
                        id=route_id,
                        region=region,
                        driver=driver,
                        orders=chunk,
                        optimized=False,
                    )
                else:
                    driver = min(drivers, key=lambda d: load[d.id])
                    by_id = {str(o.id): o for o in chunk}
                    route = PlannedRoute(
                        id=route_id,
                        region=region,
                        driver=driver,
                        orders=[by_id[stop_id] for stop_id in trip.stop_ids],
                        optimized=True,
                        total_distance=round(trip.distance_meters),
                        total_duration=round(trip.duration_seconds / 60),
                    )
                load[driver.id] += len(chunk)
                routes.append(route)

        logger.info(
            "delivery.routes_planned",
            orders=len(orders),
            routes=len(routes),
            optimized=sum(1 for r in routes if r.optimized),
        )
        return routes, len(orders)

    @transaction.atomic
    def assign_planned_routes(
        self, actor: User, order_service: OrderService
    ) -> Tuple[List[Tuple[PlannedRoute, int]], int]:
        """Plan routes and hand every run to its driver.

        Each run goes through ``OrderService.assign_deliveries``, so the
        orders move to SHIPPED with a history row.  Returns each route
        with its assigned-order count, and the planned order count.
        """
        routes, total_orders = self.plan_routes(actor)
        assignments = []
        for route in routes:
            _, assigned = order_service.assign_deliveries(
                actor,
                AssignDeliveriesDTO(
                    delivery_person_id=route.driver.id,
                    order_ids=[o.id for o in route.orders],
                ),
            )
            assignments.append((route, len(assigned)))
        return assignments, total_orders
