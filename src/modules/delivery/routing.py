"""Mapbox Optimization API client.

``MapboxRouteOptimizer.optimize`` orders the stops of one delivery run
(depot -> stops -> depot) and returns ``None`` whenever no optimized trip
is available: no access token configured, an HTTP/network error, or a
response without trips.  Callers fall back to unoptimized assignment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import requests
import structlog
from django.conf import settings

logger = structlog.get_logger(__name__)

Coordinates = Tuple[float, float]  # (latitude, longitude)


@dataclass(frozen=True)
class RouteStop:
    id: str
    coordinates: Coordinates


@dataclass(frozen=True)
class OptimizedTrip:
    stop_ids: List[str]
    distance_meters: float
    duration_seconds: float


def _lng_lat(coordinates: Coordinates) -> str:
    latitude, longitude = coordinates
    return f"{longitude},{latitude}"


class MapboxRouteOptimizer:
    """Thin wrapper around ``/optimized-trips/v1/mapbox/driving``."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._token = settings.MAPBOX_ACCESS_TOKEN if access_token is None else access_token
        self._base_url = (base_url or settings.MAPBOX_API_URL).rstrip("/")
        self._timeout = timeout or settings.MAPBOX_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def optimize(
        self, depot: Coordinates, stops: Sequence[RouteStop]
    ) -> Optional[OptimizedTrip]:
        if not self._token:
            logger.warning("route_optimizer.not_configured")
            return None
        if not stops:
            return None

        path = ";".join(
            [_lng_lat(depot), *(_lng_lat(stop.coordinates) for stop in stops), _lng_lat(depot)]
        )
        url = f"{self._base_url}/optimized-trips/v1/mapbox/driving/{path}"
        params = {
            "access_token": self._token,
            "source": "first",
            "destination": "last",
            "roundtrip": "false",
        }

        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning(
                "route_optimizer.request_failed", stops=len(stops), error=str(exc)
            )
            return None

        trips = payload.get("trips") or []
        if not trips:
            logger.info("route_optimizer.no_trip", code=payload.get("code"))
            return None

        trip = trips[0]
        waypoints = payload.get("waypoints") or []
        # Waypoints come back in input order (depot first and last); their
        # ``waypoint_index`` is the position in the optimized trip.
        visits = sorted(
            (wp["waypoint_index"], index - 1)
            for index, wp in enumerate(waypoints)
            if 0 < index <= len(stops)
        )
        stop_ids = [stops[position].id for _, position in visits]
        if len(stop_ids) != len(stops):
            logger.warning(
                "route_optimizer.incomplete_trip", stops=len(stops), visited=len(stop_ids)
            )
            return None

        return OptimizedTrip(
            stop_ids=stop_ids,
            distance_meters=float(trip.get("distance") or 0),
            duration_seconds=float(trip.get("duration") or 0),
        )
