"""Delivery DRF serializers (output) and dashboard card builders."""

from __future__ import annotations

from typing import Any, Dict, List

from django.conf import settings

from modules.core.serializers import CamelCaseModelSerializer
from modules.delivery.models import DeliveryRegion, DeliverySubregion
from modules.delivery.services import (
    CourierRoute,
    PlannedRoute,
    estimated_delivery_time,
)
from modules.orders.constants import OrderStatus


class SubregionSerializer(CamelCaseModelSerializer):
    class Meta:
        model = DeliverySubregion
        fields = [
            "id",
            "region_id",
            "name",
            "code",
            "description",
            "delivery_fee",
            "is_active",
            "sort_order",
            "created_at",
        ]
        read_only_fields = fields


class PublicSubregionSerializer(CamelCaseModelSerializer):
    class Meta:
        model = DeliverySubregion
        fields = ["id", "name", "code", "delivery_fee"]
        read_only_fields = fields


class RegionSerializer(CamelCaseModelSerializer):
    subregions = SubregionSerializer(many=True, read_only=True)

    class Meta:
        model = DeliveryRegion
        fields = [
            "id",
            "name",
            "code",
            "description",
            "is_active",
            "sort_order",
            "subregions",
            "created_at",
        ]
        read_only_fields = fields


class PublicRegionSerializer(CamelCaseModelSerializer):
    subregions = PublicSubregionSerializer(many=True, read_only=True)

    class Meta:
        model = DeliveryRegion
        fields = ["id", "name", "code", "description", "subregions"]
        read_only_fields = fields


def _customer_and_address(order) -> Dict[str, str]:
    address = order.address
    return {
        "customerName": order.user.name or address.name,
        "address": f"{address.street}, {address.city}",
    }


def delivery_card(order, index: int) -> Dict[str, Any]:
    """Today's stop on the delivery dashboard."""
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        **_customer_and_address(order),
        "status": order.status,
        "estimatedDelivery": estimated_delivery_time(index),
        "total": float(order.total),
        "items": [
            {"name": item.product.name, "quantity": item.quantity}
            for item in order.items.all()
        ],
    }


def history_entry(order) -> Dict[str, Any]:
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        **_customer_and_address(order),
        "deliveredAt": order.delivery_completed_at.isoformat()
        if order.delivery_completed_at
        else "",
        "total": float(order.total),
        "status": order.status,
        "notes": order.delivery_notes or None,
        "signature": bool(order.delivery_signature_hash),
    }


def assignment_candidate(order) -> Dict[str, Any]:
    return {
        "id": str(order.id),
        "orderNumber": order.order_number,
        **_customer_and_address(order),
        "total": float(order.total),
        "status": order.status,
        "createdAt": order.created_at,
    }


def _coordinates(address) -> List[float]:
    if address.has_coordinates:
        return [address.latitude, address.longitude]
    return [settings.DELIVERY_DEPOT_LATITUDE, settings.DELIVERY_DEPOT_LONGITUDE]


def _stop_status(order) -> str:
    if order.status in (OrderStatus.DELIVERED, OrderStatus.SHIPPED):
        return order.status
    return "PENDING"


def courier_route(route: CourierRoute, index: int) -> Dict[str, Any]:
    """A region run on the delivery person's routes screen.

    Stops without coordinates are pinned to the depot.
    """
    region = route.region
    return {
        "id": f"route-{index + 1}",
        "name": f"Morning Route - {region}" if index == 0 else f"Afternoon Route - {region}",
        "totalStops": len(route.orders),
        "estimatedDuration": route.estimated_duration,
        "totalDistance": f"{route.total_distance_km:.1f} km",
        "status": route.status,
        "stops": [
            {
                "id": str(order.id),
                "orderNumber": order.order_number,
                **_customer_and_address(order),
                "coordinates": _coordinates(order.address),
                "estimatedTime": estimated_delivery_time(position),
                "status": _stop_status(order),
                "priority": position + 1,
                "items": [
                    {"name": item.product.name, "quantity": item.quantity}
                    for item in order.items.all()
                ],
            }
            for position, order in enumerate(route.orders)
        ],
    }


def planned_route(route: PlannedRoute) -> Dict[str, Any]:
    return {
        "id": route.id,
        "region": route.region,
        "driverId": str(route.driver.id),
        "driverName": route.driver.name,
        "driverPhone": route.driver.phone or None,
        "optimized": route.optimized,
        "orders": [
            {
                "id": str(order.id),
                "orderNumber": order.order_number,
                "customerName": order.user.name,
                "address": f"{order.address.street}, {order.address.city}",
                "coordinates": {
                    "lat": order.address.latitude,
                    "lng": order.address.longitude,
                },
            }
            for order in route.orders
        ],
        "totalDistance": route.total_distance,
        "totalDuration": route.total_duration,
        "estimatedStops": len(route.orders),
    }
