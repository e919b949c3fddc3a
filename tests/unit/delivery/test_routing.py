"""Unit tests for the Mapbox route optimizer client."""

from __future__ import annotations

from unittest import mock

import pytest
import requests

from modules.delivery.routing import MapboxRouteOptimizer, OptimizedTrip, RouteStop

pytestmark = pytest.mark.unit

DEPOT = (-6.7924, 39.2083)
STOPS = [
    RouteStop(id="a", coordinates=(-6.80, 39.28)),
    RouteStop(id="b", coordinates=(-6.77, 39.24)),
    RouteStop(id="c", coordinates=(-6.82, 39.30)),
]


def _session_returning(payload=None, error=None):
    session = mock.Mock(spec=requests.Session)
    if error is not None:
        session.get.side_effect = error
        return session
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session.get.return_value = response
    return session


def _optimizer(session, token="pk.test"):
    return MapboxRouteOptimizer(
        access_token=token,
        base_url="https://api.mapbox.test/",
        timeout=3,
        session=session,
    )


def test_returns_stops_in_trip_order():
    session = _session_returning(
        {
            "code": "Ok",
            "trips": [{"distance": 12345.6, "duration": 1800.0}],
            # input order: depot, a, b, c, depot
            "waypoints": [
                {"waypoint_index": 0},
                {"waypoint_index": 3},
                {"waypoint_index": 1},
                {"waypoint_index": 2},
                {"waypoint_index": 4},
            ],
        }
    )

    trip = _optimizer(session).optimize(DEPOT, STOPS)

    assert trip == OptimizedTrip(
        stop_ids=["b", "c", "a"], distance_meters=12345.6, duration_seconds=1800.0
    )


def test_requests_depot_to_depot_trip():
    session = _session_returning({"trips": []})

    _optimizer(session).optimize(DEPOT, STOPS[:1])

    url = session.get.call_args.args[0]
    assert url == (
        "https://api.mapbox.test/optimized-trips/v1/mapbox/driving/"
        "39.2083,-6.7924;39.28,-6.8;39.2083,-6.7924"
    )
    assert session.get.call_args.kwargs["params"] == {
        "access_token": "pk.test",
        "source": "first",
        "destination": "last",
        "roundtrip": "false",
    }
    assert session.get.call_args.kwargs["timeout"] == 3


def test_without_token_makes_no_request():
    session = _session_returning({"trips": []})

    assert _optimizer(session, token="").optimize(DEPOT, STOPS) is None
    session.get.assert_not_called()


def test_network_error_returns_none():
    session = _session_returning(error=requests.ConnectionError("unreachable"))

    assert _optimizer(session).optimize(DEPOT, STOPS) is None


def test_http_error_returns_none():
    session = _session_returning({"message": "Not Authorized"})
    session.get.return_value.raise_for_status.side_effect = requests.HTTPError("401")

    assert _optimizer(session).optimize(DEPOT, STOPS) is None


def test_response_without_trips_returns_none():
    session = _session_returning({"code": "NoTrips", "trips": []})

    assert _optimizer(session).optimize(DEPOT, STOPS) is None


def test_trip_missing_stops_returns_none():
    session = _session_returning(
        {
            "trips": [{"distance": 10, "duration": 10}],
            "waypoints": [{"waypoint_index": 0}, {"waypoint_index": 1}],
        }
    )

    assert _optimizer(session).optimize(DEPOT, STOPS) is None


def test_reads_token_from_settings(settings):
    settings.MAPBOX_ACCESS_TOKEN = ""
    session = _session_returning({"trips": []})

    assert MapboxRouteOptimizer(session=session).optimize(DEPOT, STOPS) is None
    session.get.assert_not_called()
