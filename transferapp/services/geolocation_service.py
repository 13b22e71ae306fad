import httpx
import logging
from pydantic import BaseModel
from typing import List, Optional
from urllib.parse import quote
from core.exceptions import GeocodingError
from wizard._state.domain import Coordinate
import config.conf as conf

logger = logging.getLogger(__name__)

MIN_SUGGEST_QUERY_LENGTH = 3
SUGGESTION_LIMIT = 5


class LocationParams(BaseModel):
    latitude: float
    longitude: float
    place: str


class MapboxService:
    BASE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"

    def __init__(self, token: Optional[str] = None, timeout: float = conf.HTTP_TIMEOUT_SECONDS, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.token = token or conf.MAPBOX_TOKEN
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _get_features(self, path: str, params: dict) -> list:
        url = f"{self.BASE_URL}/{path}.json"
        params = {"access_token": self.token, **params}

        async with self._client() as client:
            try:
                response = await client.get(url, params=params)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise GeocodingError("Mapbox API Error", {"status_code": e.response.status_code}) from e
            except httpx.HTTPError as e:
                raise GeocodingError(f"Mapbox request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodingError("Invalid response from Mapbox") from e

        if not isinstance(data, dict) or not isinstance(data.get("features", []), list):
            raise GeocodingError("Unexpected response from Mapbox", {"payload_type": type(data).__name__})

        return data.get("features", [])

    async def forward_geocode(self, address: str, limit: int = 1) -> List[LocationParams]:
        """
        Converts a text address into coordinates (Forward Geocoding).
        """
        features = await self._get_features(
            quote(address, safe=""),
            {"limit": limit, "types": "poi,place,address"},
        )

        results = []
        for feature in features:
            # Mapbox returns [longitude, latitude]
            lon, lat = feature["center"]
            results.append(LocationParams(longitude=lon, latitude=lat, place=feature["place_name"]))

        return results


    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[LocationParams]:
        """
        Converts coordinates into a venue or address (Reverse Geocoding).
        """
        # Mapbox API URL structure for reverse geocoding: /{longitude},{latitude}.json
        features = await self._get_features(f"{longitude},{latitude}", {"limit": 1, "types": "poi,address"})

        if not features:
            return None

        top_result = features[0]
        lon, lat = top_result["center"]

        return LocationParams(longitude=lon, latitude=lat, place=top_result["place_name"])


class AddressResolver:
    """
    Turns free text into a Coordinate. Never raises: an empty input, a failed
    lookup or an empty result all come back as None ("resolution pending").
    """

    def __init__(self, geocoder: Optional[MapboxService] = None):
        self.geocoder = geocoder or MapboxService()

    async def resolve(self, address: Optional[str]) -> Optional[Coordinate]:
        if not address or not address.strip():
            return None

        try:
            results = await self.geocoder.forward_geocode(address.strip(), limit=1)
        except (GeocodingError, KeyError, TypeError, ValueError) as error:
            logger.warning(f"Geocoding failed for {address!r}: {error}")
            return None

        if not results:
            logger.info(f"No geocoding result for {address!r}")
            return None

        coordinate = Coordinate(latitude=results[0].latitude, longitude=results[0].longitude)
        if not coordinate.is_resolved():
            return None
        return coordinate

    async def suggest(self, query: Optional[str], limit: int = SUGGESTION_LIMIT) -> List[LocationParams]:
        """
        Autocomplete for the address inputs. Short queries and failed lookups
        give an empty list; each suggestion carries its coordinates and the
        formatted place name.
        """
        query = (query or "").strip()
        if len(query) < MIN_SUGGEST_QUERY_LENGTH:
            return []

        try:
            results = await self.geocoder.forward_geocode(query, limit=max(1, limit))
        except (GeocodingError, KeyError, TypeError, ValueError) as error:
            logger.warning(f"Address suggestions failed for {query!r}: {error}")
            return []

        return [location for location in results if Coordinate(latitude=location.latitude, longitude=location.longitude).is_resolved()]

    async def describe(self, coordinate: Coordinate) -> Optional[str]:
        """Address label for a manually placed pin."""
        if not coordinate.is_resolved():
            return None

        try:
            location = await self.geocoder.reverse_geocode(coordinate.latitude, coordinate.longitude)
        except GeocodingError as error:
            logger.warning(f"Reverse geocoding failed for {coordinate.as_tuple()}: {error}")
            return None

        return location.place if location else None
