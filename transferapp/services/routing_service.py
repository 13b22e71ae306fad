import logging
from math import atan2, cos, radians, sin, sqrt
from typing import Optional

import httpx
from pydantic import BaseModel

from core.exceptions import NetworkError, ServiceUnavailableError, ValidationError
from wizard._state.domain import Coordinate, RouteEstimate
import config.conf as conf

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# Two points closer than this (in degrees) are treated as the same place
COORDINATE_EPSILON = 1e-6

# Fallback speed assumption: 2 minutes per km, ~30 km/h through town
FALLBACK_MINUTES_PER_KM = 2.0


class RouteResponse(BaseModel):
    distance_meters: float
    duration_seconds: float


class NoRouteFoundError(ValidationError):
    """No route found between coordinates."""


class OSRMServiceError(ServiceUnavailableError):
    """OSRM answered with a 5xx or could not be reached."""


class OSRMTimeoutError(NetworkError):
    """OSRM request timed out."""


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometers."""
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def same_place(a: Coordinate, b: Coordinate, epsilon: float = COORDINATE_EPSILON) -> bool:
    return abs(a.latitude - b.latitude) < epsilon and abs(a.longitude - b.longitude) < epsilon


class OSRMClient:
    def __init__(self, base_url: str = conf.OSRM_URL, timeout: float = conf.HTTP_TIMEOUT_SECONDS, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def get_route(self, origin: Coordinate, destination: Coordinate) -> RouteResponse:
        """Driving route between two coordinates. Only the first route is used."""
        url = (
            f"{self.base_url}/route/v1/driving/"
            f"{origin.longitude},{origin.latitude};{destination.longitude},{destination.latitude}"
        )
        params = {"overview": "false"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params)

                if response.status_code >= 500:
                    raise OSRMServiceError(f"OSRM server error: {response.status_code}")

                data = response.json()
                if not isinstance(data, dict):
                    raise OSRMServiceError(f"Unexpected OSRM payload: {type(data).__name__}")

                routes = data.get("routes") or []
                if data.get("code") != "Ok" or not routes:
                    raise NoRouteFoundError(f"No route found between coordinates ({data.get('code')})")

                route = routes[0]
                return RouteResponse(
                    distance_meters=float(route["distance"]),
                    duration_seconds=float(route["duration"]),
                )

        except httpx.TimeoutException as e:
            raise OSRMTimeoutError(f"Request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise OSRMServiceError(f"Network error: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise OSRMServiceError(f"Malformed OSRM response: {e}") from e


class RouteEstimator:
    """
    Distance and duration between pickup and drop-off.

    Never fails: unresolved or coincident points give the minimum estimate,
    and any routing failure falls back to a haversine distance driven at
    the fallback speed. Every result is floored at 0.1 km and 1 minute.
    """

    def __init__(self, router: Optional[OSRMClient] = None):
        self.router = router or OSRMClient()

    async def estimate(self, origin: Optional[Coordinate], destination: Optional[Coordinate]) -> RouteEstimate:
        if (
            origin is None
            or destination is None
            or not origin.is_resolved()
            or not destination.is_resolved()
            or same_place(origin, destination)
        ):
            return RouteEstimate.minimum()

        try:
            route = await self.router.get_route(origin, destination)
        except (NetworkError, ServiceUnavailableError, NoRouteFoundError) as error:
            logger.warning(f"Routing failed, using great-circle estimate: {error}")
            return self.fallback(origin, destination)

        return RouteEstimate.clamped(route.distance_meters / 1000.0, route.duration_seconds / 60.0)

    @staticmethod
    def fallback(origin: Coordinate, destination: Coordinate) -> RouteEstimate:
        distance_km = haversine_distance_km(
            origin.latitude, origin.longitude, destination.latitude, destination.longitude
        )
        return RouteEstimate.clamped(distance_km, distance_km * FALLBACK_MINUTES_PER_KM)
