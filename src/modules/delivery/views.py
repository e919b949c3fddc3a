"""Delivery API views.

Regions (admin CRUD and a public listing), the delivery person's
dashboard/history/orders/routes, the admin assignment screen and route
optimization.  Domain exceptions are caught and translated into
``{"error": ...}`` responses.
"""

from __future__ import annotations

from dataclasses import asdict

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.constants import Role
from modules.accounts.permissions import IsAdminRole, IsDeliveryRole
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.accounts.serializers import DeliveryPersonSerializer
from modules.core.serializers import to_camel_case
from modules.core.validation import first_error_message
from modules.delivery.dtos import CreateRegionDTO, CreateSubregionDTO
from modules.delivery.exceptions import (
    NoDeliveryPersonnel,
    RegionAlreadyExists,
    RegionNotFound,
    RoutePlanningDenied,
    SubregionAlreadyExists,
)
from modules.delivery.repositories.django_repository import RegionDjangoRepository
from modules.delivery.serializers import (
    PublicRegionSerializer,
    RegionSerializer,
    SubregionSerializer,
    assignment_candidate,
    courier_route,
    delivery_card,
    history_entry,
    planned_route,
)
from modules.delivery.services import (
    DeliveryDashboardService,
    RegionService,
    RoutePlanningService,
)
from modules.orders.dtos import AssignDeliveriesDTO, DeliveryStatusUpdateDTO
from modules.orders.exceptions import (
    InvalidDeliveryPerson,
    InvalidOrderState,
    OrderNotFound,
    OrderPermissionDenied,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.orders.views import build_order_service


def _camel_stats(stats) -> dict:
    return {to_camel_case(key): value for key, value in asdict(stats).items()}


def _bad_request(message: str) -> Response:
    return Response({"error": message}, status=status.HTTP_400_BAD_REQUEST)


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------


class AdminRegionListView(APIView):
    """GET/POST /api/admin/delivery-regions"""

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = RegionService(RegionDjangoRepository())

    def get(self, request: Request) -> Response:
        regions = self._service.list_regions()
        return Response({"regions": RegionSerializer(regions, many=True).data})

    def post(self, request: Request) -> Response:
        if not request.data.get("name"):
            return _bad_request("Region name is required")
        try:
            dto = CreateRegionDTO(
                name=request.data.get("name"),
                code=request.data.get("code") or None,
                description=request.data.get("description") or "",
                is_active=request.data.get("isActive", True),
                sort_order=request.data.get("sortOrder", 0),
            )
        except PydanticValidationError as exc:
            return _bad_request(first_error_message(exc))

        try:
            region = self._service.create_region(dto)
        except RegionAlreadyExists as exc:
            return _bad_request(str(exc))

        return Response(
            {"region": RegionSerializer(region).data}, status=status.HTTP_201_CREATED
        )


class AdminSubregionListView(APIView):
    """GET/POST /api/admin/delivery-regions/{region_id}/subregions"""

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = RegionService(RegionDjangoRepository())

    def get(self, request: Request, region_id: str) -> Response:
        try:
            subregions = self._service.list_subregions(region_id)
        except RegionNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        return Response({"subregions": SubregionSerializer(subregions, many=True).data})

    def post(self, request: Request, region_id: str) -> Response:
        if not request.data.get("name") or request.data.get("deliveryFee") in (None, ""):
            return _bad_request("Subregion name and delivery fee are required")
        try:
            dto = CreateSubregionDTO(
                name=request.data.get("name"),
                delivery_fee=request.data.get("deliveryFee"),
                code=request.data.get("code") or None,
                description=request.data.get("description") or "",
                is_active=request.data.get("isActive", True),
                sort_order=request.data.get("sortOrder", 0),
            )
        except PydanticValidationError as exc:
            return _bad_request(first_error_message(exc))

        try:
            subregion = self._service.create_subregion(region_id, dto)
        except RegionNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except SubregionAlreadyExists as exc:
            return _bad_request(str(exc))

        return Response(
            {"subregion": SubregionSerializer(subregion).data},
            status=status.HTTP_201_CREATED,
        )


class PublicRegionListView(APIView):
    """GET /api/delivery-regions (active regions and subregions only)"""

    authentication_classes: list = []
    permission_classes = [AllowAny]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = RegionService(RegionDjangoRepository())

    def get(self, request: Request) -> Response:
        regions = self._service.list_active_regions()
        return Response({"regions": PublicRegionSerializer(regions, many=True).data})


# ---------------------------------------------------------------------------
# Delivery personnel
# ---------------------------------------------------------------------------


class _DeliveryView(APIView):
    permission_classes = [IsDeliveryRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._dashboard = DeliveryDashboardService(OrderDjangoRepository())


class DeliveryDashboardView(_DeliveryView):
    """GET /api/delivery/dashboard"""

    def get(self, request: Request) -> Response:
        orders, stats = self._dashboard.dashboard(request.user)
        return Response(
            {
                "stats": _camel_stats(stats),
                "todayDeliveries": [
                    delivery_card(order, index) for index, order in enumerate(orders)
                ],
            }
        )


class DeliveryHistoryView(_DeliveryView):
    """GET /api/delivery/history"""

    def get(self, request: Request) -> Response:
        orders, stats = self._dashboard.history(request.user)
        return Response(
            {
                "deliveries": [history_entry(order) for order in orders],
                "stats": _camel_stats(stats),
            }
        )


class DeliveryOrdersView(_DeliveryView):
    """GET/PATCH /api/delivery/orders

    PATCH body: ``orderNumber``, ``status`` (SHIPPED or DELIVERED) and,
    for DELIVERED, optional ``signature``, ``latitude``/``longitude``
    (or ``gpsLocation: {latitude, longitude}``) and ``notes``.
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._orders = build_order_service()

    def get(self, request: Request) -> Response:
        orders, stats = self._dashboard.assigned_orders(request.user)
        return Response(
            {
                "success": True,
                "orders": OrderSerializer(orders, many=True).data,
                "stats": _camel_stats(stats),
            }
        )

    def patch(self, request: Request) -> Response:
        data = request.data
        gps = data.get("gpsLocation") if isinstance(data.get("gpsLocation"), dict) else {}
        try:
            dto = DeliveryStatusUpdateDTO(
                order_number=data.get("orderNumber") or "",
                status=data.get("status") or "",
                signature=data.get("signature") or None,
                latitude=data.get("latitude", gps.get("latitude")),
                longitude=data.get("longitude", gps.get("longitude")),
                notes=data.get("notes") or None,
            )
        except PydanticValidationError as exc:
            return _bad_request(first_error_message(exc))

        try:
            order = self._orders.update_delivery_status(request.user, dto)
        except OrderPermissionDenied as exc:
            return Response({"error": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except OrderNotFound as exc:
            return Response({"error": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderState as exc:
            return _bad_request(str(exc))

        return Response({"success": True, "order": OrderSerializer(order).data})


# ---------------------------------------------------------------------------
# Dispatch (admin)
# ---------------------------------------------------------------------------


class AssignDeliveriesView(APIView):
    """GET/PATCH /api/admin/assign-deliveries

    PATCH body: ``deliveryPersonId`` plus ``orderIds`` and/or
    ``orderNumbers``.
    """

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._orders = build_order_service()
        self._dashboard = DeliveryDashboardService(OrderDjangoRepository())
        self._users = UserDjangoRepository()

    def get(self, request: Request) -> Response:
        orders = self._dashboard.available_orders()
        personnel = self._users.list_by_role(Role.DELIVERY)
        return Response(
            {
                "availableOrders": [assignment_candidate(order) for order in orders],
                "deliveryPersonnel": DeliveryPersonSerializer(personnel, many=True).data,
            }
        )

    def patch(self, request: Request) -> Response:
        order_ids = request.data.get("orderIds") or []
        order_numbers = request.data.get("orderNumbers") or []
        person_id = request.data.get("deliveryPersonId")
        if (
            not person_id
            or not isinstance(order_ids, list)
            or not isinstance(order_numbers, list)
            or not (order_ids or order_numbers)
        ):
            return _bad_request("Missing orderIds array or deliveryPersonId")

        try:
            dto = AssignDeliveriesDTO(
                delivery_person_id=person_id,
                order_ids=order_ids,
                order_numbers=order_numbers,
            )
        except PydanticValidationError as exc:
            return _bad_request(first_error_message(exc))

        try:
            person, orders = self._orders.assign_deliveries(request.user, dto)
        except OrderPermissionDenied as exc:
            return Response({"error": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidDeliveryPerson as exc:
            return _bad_request(str(exc))

        return Response(
            {
                "message": f"Successfully assigned {len(orders)} orders to {person.name}",
                "assignedOrders": len(orders),
            }
        )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def build_route_service() -> RoutePlanningService:
    return RoutePlanningService(
        order_repository=OrderDjangoRepository(),
        user_repository=UserDjangoRepository(),
    )


class DeliveryRoutesView(_DeliveryView):
    """GET /api/delivery/routes

    Today's orders plus earlier ones still SHIPPED, one route per region.
    """

    def get(self, request: Request) -> Response:
        routes = build_route_service().courier_routes(request.user)
        return Response(
            {
                "routes": [courier_route(route, index) for index, route in enumerate(routes)],
                "summary": {
                    "totalRoutes": len(routes),
                    "totalStops": sum(len(route.orders) for route in routes),
                    "completedStops": sum(route.completed_stops for route in routes),
                },
            }
        )


class OptimizeRoutesView(APIView):
    """POST/PATCH /api/admin/optimize-routes

    POST proposes runs over unassigned geolocated orders; PATCH plans the
    same runs and assigns each to its driver.
    """

    permission_classes = [IsAdminRole]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._routes = build_route_service()

    def post(self, request: Request) -> Response:
        try:
            routes, total_orders = self._routes.plan_routes(request.user)
        except RoutePlanningDenied as exc:
            return Response({"error": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except NoDeliveryPersonnel as exc:
            return _bad_request(str(exc))

        if not routes:
            return Response(
                {"message": "No orders available for route optimization", "routes": []}
            )
        return Response(
            {
                "message": f"Generated {len(routes)} optimized delivery routes",
                "routes": [planned_route(route) for route in routes],
                "summary": {
                    "totalOrders": total_orders,
                    "totalRoutes": len(routes),
                    "driversAssigned": len({route.driver.id for route in routes}),
                },
            }
        )

    def patch(self, request: Request) -> Response:
        try:
            assignments, total_orders = self._routes.assign_planned_routes(
                request.user, build_order_service()
            )
        except (RoutePlanningDenied, OrderPermissionDenied) as exc:
            return Response({"error": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except (NoDeliveryPersonnel, InvalidDeliveryPerson) as exc:
            return _bad_request(str(exc))

        if not assignments:
            return Response(
                {"message": "No routes available for assignment", "assignments": []}
            )
        return Response(
            {
                "message": "Routes automatically assigned to delivery drivers",
                "assignments": [
                    {
                        "driverId": str(route.driver.id),
                        "driverName": route.driver.name,
                        "ordersAssigned": assigned,
                        "routeInfo": {
                            "region": route.region,
                            "totalDistance": route.total_distance,
                            "totalDuration": route.total_duration,
                            "estimatedStops": len(route.orders),
                        },
                    }
                    for route, assigned in assignments
                ],
                "summary": {
                    "totalOrders": total_orders,
                    "totalRoutes": len(assignments),
                    "driversAssigned": len({route.driver.id for route, _ in assignments}),
                },
            }
        )
